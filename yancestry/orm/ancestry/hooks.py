"""flush 钩子

一个 Session before_flush 监听器同时承担"持久化前"和"删除前"两个生命周期:

    - 新增/修改的节点: 先全部通过校验（路径、显式缓存深度、循环），
      再逐个写入深度缓存并级联子孙
    - 删除的节点: 孤儿处理

修改的节点按存储深度从深到浅处理，同一次 flush 中父子都被移动时，
子节点先按自己的新位置改写其子孙，祖先的级联再整体平移。

钩子中产生的写入（改写或删除子孙）加入同一次 flush，处于同一事务，
任何一步抛出异常都会中止 flush，由调用方回滚。
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from .component import get_ancestry
from .depth import depth_of
from .path_codec import is_valid_path
from .reparenting import stored_path
from .suppression import CascadeContext, all_callbacks_suppressed, callbacks_suppressed


def _stored_depth(session, ancestry, node) -> int:
    if not inspect(node).has_identity:
        return 0
    path = stored_path(session, node, ancestry.options.ancestry_column)
    return depth_of(path) if is_valid_path(path) else 0


@event.listens_for(Session, "before_flush")
def ancestry_before_flush(session, flush_context, instances):
    """在 flush 前执行物化路径维护"""
    if all_callbacks_suppressed():
        return

    context = CascadeContext()

    with session.no_autoflush:
        pending = []
        for node in list(session.new) + list(session.dirty):
            ancestry = get_ancestry(type(node))
            if ancestry is not None:
                pending.append((_stored_depth(session, ancestry, node), node, ancestry))
        pending.sort(key=lambda item: item[0], reverse=True)

        for _, node, ancestry in pending:
            if not callbacks_suppressed(node):
                ancestry.validate_node(session, node)

        for _, node, ancestry in pending:
            if context.is_suppressed(node):
                continue
            ancestry.before_persist(session, node, context)

        for node in list(session.deleted):
            ancestry = get_ancestry(type(node))
            if ancestry is None or context.is_suppressed(node):
                continue
            ancestry.before_delete(session, node, context)


__all__ = ["ancestry_before_flush"]
