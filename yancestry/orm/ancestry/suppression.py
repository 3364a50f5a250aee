"""回调抑制

两种方式跳过路径钩子：

1. CascadeContext: 级联内部使用。每次 flush 创建一个上下文，沿级联调用链
   显式传递，被级联改写或删除的子孙登记在其中，钩子不再对它们重复处理。
2. without_ancestry_callbacks(): 对外的上下文管理器，基于 ContextVar，
   不在记录上设置任何可变标记，并发任务之间互不影响。

使用示例:
    from yancestry.orm.ancestry import without_ancestry_callbacks

    # 只修正节点自身的路径，不级联子孙
    with without_ancestry_callbacks(node):
        node.ancestry = "1/5"
        session.flush()

    # 跳过当前上下文中所有路径钩子
    with without_ancestry_callbacks():
        session.flush()

注意：钩子在 flush 时执行，flush 必须发生在 with 块内才会被抑制。
"""

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Set, Union


class _SuppressAll:
    """抑制全部钩子的标记"""

    def __repr__(self) -> str:
        return "<SUPPRESS_ALL>"


SUPPRESS_ALL = _SuppressAll()

_suppressed: ContextVar[Optional[Union[FrozenSet[int], _SuppressAll]]] = ContextVar(
    "yancestry_suppressed_callbacks", default=None
)


@contextmanager
def without_ancestry_callbacks(*nodes):
    """在 with 块内跳过路径钩子

    Args:
        *nodes: 需要跳过的节点；不传则跳过全部
    """
    current = _suppressed.get()
    if not nodes or current is SUPPRESS_ALL:
        value = SUPPRESS_ALL
    else:
        value = (current or frozenset()) | frozenset(id(node) for node in nodes)
    token = _suppressed.set(value)
    try:
        yield
    finally:
        _suppressed.reset(token)


def all_callbacks_suppressed() -> bool:
    """当前上下文是否跳过全部钩子"""
    return _suppressed.get() is SUPPRESS_ALL


def callbacks_suppressed(node) -> bool:
    """当前上下文是否跳过该节点的钩子"""
    current = _suppressed.get()
    if current is None:
        return False
    if current is SUPPRESS_ALL:
        return True
    return id(node) in current


@dataclass
class CascadeContext:
    """单次 flush 内的级联上下文

    Attributes:
        touched: 已被级联处理过的对象（按 id() 记录），每个子孙只处理一次
        rewritten: 被改写路径的子孙数量
        deleted: 被级联删除的子孙数量
    """
    touched: Set[int] = field(default_factory=set)
    rewritten: int = 0
    deleted: int = 0

    def suppress(self, node) -> None:
        self.touched.add(id(node))

    def is_suppressed(self, node) -> bool:
        return id(node) in self.touched or callbacks_suppressed(node)


__all__ = [
    "without_ancestry_callbacks",
    "all_callbacks_suppressed",
    "callbacks_suppressed",
    "CascadeContext",
    "SUPPRESS_ALL",
]
