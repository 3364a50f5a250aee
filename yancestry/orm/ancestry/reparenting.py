"""重新挂载（移动节点）时的子孙路径级联更新

节点路径变化时，把每个现有子孙路径开头的旧前缀替换为新前缀。

执行条件（由 flush 钩子判断）:
    - 节点已持久化（不是新建记录）
    - 路径相对数据库中存储的值发生了变化
    - 节点自身的路径校验、深度校验、循环检测均已通过

子孙的改写在同一次 flush 中写入，与节点自身的更新处于同一事务。
"""

from typing import Optional

from sqlalchemy import inspect
from sqlalchemy.orm.attributes import get_history

from yancestry.log import get_logger
from . import query_builder
from .depth import depth_of
from .constants import ANCESTRY_DELIMITER
from .path_codec import child_prefix, rewrite
from .suppression import CascadeContext

logger = get_logger("yancestry.orm.ancestry")


def stored_path(session, node, column_key: str) -> Optional[str]:
    """获取节点在数据库中已存储的路径（修改前的值）

    优先从属性历史中取；属性修改前未加载时回查数据库；
    新建记录返回 None。
    """
    history = get_history(node, column_key)
    if history.deleted:
        return history.deleted[0]
    if not history.added:
        return getattr(node, column_key)

    state = inspect(node)
    if not state.has_identity:
        return None
    model = type(node)
    mapper = state.mapper
    id_column = getattr(model, mapper.primary_key[0].key)
    with session.no_autoflush:
        return (
            session.query(getattr(model, column_key))
            .filter(id_column == state.identity[0])
            .scalar()
        )


def reparent_descendants(session, ancestry, node, old_path: Optional[str],
                         new_path: Optional[str], context: CascadeContext) -> int:
    """改写节点所有子孙的路径

    Args:
        session: 当前会话
        ancestry: 节点所属模型的 Ancestry 组件
        node: 被移动的节点
        old_path: 移动前存储的路径
        new_path: 新路径
        context: 本次 flush 的级联上下文

    Returns:
        被改写的子孙数量
    """
    old_prefix = child_prefix(old_path, node.id)
    new_prefix = child_prefix(new_path, node.id)
    return rewrite_descendants(session, ancestry, old_prefix, new_prefix, context)


def collect_descendants(session, ancestry, prefix: str, children_only: bool = False) -> list:
    """prefix 下的子孙（children_only 时只取直接子节点），以内存中的当前路径为准

    数据库中命中的记录之外，本会话中尚未 flush 的新增和修改节点也参与判断；
    同一次 flush 中已移出 prefix 或已标记删除的节点不计入。
    结果按深度、ID 排序。
    """
    key = ancestry.options.ancestry_column
    column = ancestry.column
    if children_only:
        condition = query_builder.children_condition(column, prefix)
    else:
        condition = query_builder.descendants_condition(column, prefix)

    with session.no_autoflush:
        stored = session.query(ancestry.model).filter(condition).all()
        pending = [obj for obj in list(session.new) + list(session.dirty) if isinstance(obj, ancestry.model)]

        seen = set()
        found = []
        for obj in stored + pending:
            if id(obj) in seen or obj in session.deleted:
                continue
            seen.add(id(obj))
            current = getattr(obj, key) or None
            if current is None:
                continue
            if current == prefix or (not children_only and current.startswith(prefix + ANCESTRY_DELIMITER)):
                found.append((current.count(ANCESTRY_DELIMITER), obj.id or 0, obj))

    found.sort(key=lambda item: item[:2])
    return [obj for _, _, obj in found]


def rewrite_descendants(session, ancestry, old_prefix: str, new_prefix: Optional[str],
                        context: CascadeContext) -> int:
    """把 old_prefix 下所有子孙路径开头的 old_prefix 替换为 new_prefix

    子孙由 collect_descendants() 按内存中的当前路径确定，同一次 flush 中
    移入的节点一并改写，已移出或已标记删除的节点保持不变。未被调用方
    改动过的子孙登记到 context 中，其自身钩子不再触发。
    启用深度缓存时同步更新子孙的缓存深度。
    """
    options = ancestry.options
    descendants = collect_descendants(session, ancestry, old_prefix)

    logger.info(
        f"{ancestry.model.__name__} 路径级联: {old_prefix!r} -> {new_prefix!r}，"
        f"子孙数量 {len(descendants)}"
    )

    count = 0
    for descendant in descendants:
        current = getattr(descendant, options.ancestry_column)
        updated = rewrite(current, old_prefix, new_prefix)
        if updated == current:
            continue
        # 本次 flush 中自行改动过的节点仍走自己的钩子，由它级联自己的子孙
        if not get_history(descendant, options.ancestry_column).has_changes():
            context.suppress(descendant)
        setattr(descendant, options.ancestry_column, updated)
        if options.cache_depth:
            setattr(descendant, options.depth_cache_column, depth_of(updated))
        count += 1

    context.rewritten += count
    return count


__all__ = ["stored_path", "reparent_descendants", "collect_descendants", "rewrite_descendants"]
