"""路径查询条件构建

根据节点的 ID 与路径生成祖先、子节点、兄弟、子孙、子树等查询条件。

前缀匹配按路径段进行：子孙条件是"路径等于前缀"或"路径以 前缀 + '/' 开头"，
因此 ID 12 不会匹配以 120 开头的路径。
"""

from typing import List, Optional, Sequence

from sqlalchemy import and_, case, or_, true
from sqlalchemy.sql.elements import ColumnElement

from .constants import ANCESTRY_DELIMITER


def roots_condition(column) -> ColumnElement:
    """根节点：路径为空"""
    return column.is_(None)


def ancestors_condition(id_column, ancestor_ids: Sequence[int]) -> ColumnElement:
    """祖先（或 path）：ID 属于给定列表"""
    if not ancestor_ids:
        return id_column.in_([])
    return id_column.in_(list(ancestor_ids))


def children_condition(column, prefix: str) -> ColumnElement:
    """直接子节点：路径恰好等于子节点前缀"""
    return column == prefix


def siblings_condition(column, path: Optional[str]) -> ColumnElement:
    """兄弟节点（含自身）：路径与自身路径相同"""
    if not path:
        return column.is_(None)
    return column == path


def descendants_condition(column, prefix: str) -> ColumnElement:
    """所有子孙：路径等于前缀，或以 前缀 + '/' 开头"""
    return or_(
        column == prefix,
        column.startswith(prefix + ANCESTRY_DELIMITER, autoescape=True),
    )


def subtree_condition(id_column, column, node_id, prefix: str) -> ColumnElement:
    """子树：自身或任一子孙"""
    return or_(id_column == node_id, descendants_condition(column, prefix))


def ancestry_order(id_column, column) -> List[ColumnElement]:
    """根优先排序：无路径的在前，其次按路径字符串，最后按 ID

    路径本身是按前缀编码的树位置，父节点总排在其子孙之前，同一子树连续排列。
    """
    return [
        case((column.is_(None), 0), else_=1),
        column,
        id_column,
    ]


def combine(*conditions) -> ColumnElement:
    """合并多个条件（AND），忽略 None"""
    conditions = [c for c in conditions if c is not None]
    if not conditions:
        return true()
    if len(conditions) == 1:
        return conditions[0]
    return and_(*conditions)


__all__ = [
    "roots_condition",
    "ancestors_condition",
    "children_condition",
    "siblings_condition",
    "descendants_condition",
    "subtree_condition",
    "ancestry_order",
    "combine",
]
