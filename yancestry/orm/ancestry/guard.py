"""循环引用检测

默认（cycle_check="self"）只检查节点自身 ID 是否出现在其祖先链中；
cycle_check="descendants" 时还会拒绝把节点移动到自己当前的子孙节点下。
"""

from typing import Optional

from yancestry.exceptions import CycleError
from . import query_builder
from .path_codec import child_prefix, parse


def check_self_reference(node_id, path: Optional[str]) -> None:
    """检查节点 ID 不在自身祖先链中

    Raises:
        CycleError: 节点成为了自己的祖先
    """
    if node_id is None:
        return
    if node_id in parse(path):
        raise CycleError(
            f"节点 {node_id} 不能成为自身的祖先",
            node_id=node_id,
            value=path,
        )


def check_descendant_reference(session, id_column, column, node_id,
                               old_path: Optional[str], new_path: Optional[str]) -> None:
    """检查新路径不引用节点当前的任一子孙

    old_path 是数据库中已存储的路径，用于定位当前子孙。

    Raises:
        CycleError: 新的祖先链中包含当前子孙
    """
    new_ancestor_ids = parse(new_path)
    if node_id is None or not new_ancestor_ids:
        return
    old_prefix = child_prefix(old_path, node_id)
    offender = (
        session.query(id_column)
        .filter(
            id_column.in_(new_ancestor_ids),
            query_builder.descendants_condition(column, old_prefix),
        )
        .first()
    )
    if offender is not None:
        raise CycleError(
            f"不能将节点 {node_id} 移动到其子孙节点 {offender[0]} 下",
            node_id=node_id,
            descendant_id=offender[0],
            value=new_path,
        )


__all__ = ["check_self_reference", "check_descendant_reference"]
