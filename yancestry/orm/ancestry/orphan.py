"""孤儿处理

删除仍有子孙的节点时，按模型配置的策略处理子孙:

- rootify: 子孙整体上移一级，直接子节点挂到被删节点原来的父节点下
  （被删节点是根时，直接子节点成为根）
- destroy: 一次性收集全部子孙并逐个删除（默认）
- restrict: 仍有子节点时抛出 IntegrityError，不做任何修改
"""

from typing import Optional

from sqlalchemy import inspect

from yancestry.exceptions import ErrorCode, IntegrityError
from yancestry.log import get_logger
from .constants import OrphanStrategy
from .path_codec import child_prefix
from .reparenting import collect_descendants, rewrite_descendants
from .suppression import CascadeContext

logger = get_logger("yancestry.orm.ancestry")


def resolve_orphans(session, ancestry, node, path: Optional[str], context: CascadeContext) -> None:
    """在节点删除前处理其子孙

    Args:
        session: 当前会话
        ancestry: 节点所属模型的 Ancestry 组件
        node: 待删除的节点（必须已持久化）
        path: 节点在数据库中存储的路径
        context: 本次 flush 的级联上下文

    Raises:
        IntegrityError: restrict 策略下仍有子节点
    """
    strategy = ancestry.options.orphan_strategy
    prefix = child_prefix(path, node.id)

    if strategy == OrphanStrategy.RESTRICT:
        _restrict(session, ancestry, node, prefix)
    elif strategy == OrphanStrategy.ROOTIFY:
        count = rewrite_descendants(session, ancestry, prefix, path, context)
        logger.info(f"{ancestry.model.__name__}#{node.id} 删除，rootify 提升子孙 {count} 个")
    else:
        count = _destroy(session, ancestry, prefix, context)
        logger.info(f"{ancestry.model.__name__}#{node.id} 删除，destroy 级联删除子孙 {count} 个")


def _restrict(session, ancestry, node, prefix: str) -> None:
    """仍有子节点时阻止删除

    以子节点当前的路径为准：同一次 flush 中已移走或一并删除的子节点不阻止删除，
    新移入的子节点会阻止删除。
    """
    remaining = collect_descendants(session, ancestry, prefix, children_only=True)
    if remaining:
        logger.warning(
            f"{ancestry.model.__name__}#{node.id} 仍有 {len(remaining)} 个子节点，restrict 策略阻止删除"
        )
        raise IntegrityError(
            f"节点 {node.id} 仍有子节点，无法删除",
            code=ErrorCode.RESTRICTED_DELETE,
            node_id=node.id,
            strategy=str(OrphanStrategy.RESTRICT),
            child_ids=[child.id for child in remaining],
        )


def _destroy(session, ancestry, prefix: str, context: CascadeContext) -> int:
    """删除全部子孙

    子孙按当前路径一次性收集（含同一次 flush 中移入的节点，不含已移走的），
    每个子孙被登记到 context 中，不会再次触发孤儿处理。
    """
    count = 0
    for descendant in collect_descendants(session, ancestry, prefix):
        if context.is_suppressed(descendant):
            continue
        context.suppress(descendant)
        if inspect(descendant).has_identity:
            session.delete(descendant)
        else:
            session.expunge(descendant)
        count += 1

    context.deleted += count
    return count


__all__ = ["resolve_orphans"]
