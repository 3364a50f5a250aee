"""嵌套字典森林工具

arrange_dicts() 先把查询结果转成带 parent_id 的扁平字典，再用
build_tree_list() 组装。其余函数用于在业务侧遍历这类嵌套结构。

使用示例:
    from yancestry.orm.ancestry import build_tree_list, flatten_tree

    rows = [
        {"id": 1, "parent_id": None, "title": "电子产品"},
        {"id": 2, "parent_id": 1, "title": "手机"},
    ]
    forest = build_tree_list(rows)
    flatten_tree(forest, depth_field="depth")
"""

from collections import defaultdict
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

TreeNode = Dict[str, Any]


def build_tree_list(
    nodes: List[TreeNode],
    id_field: str = "id",
    parent_field: str = "parent_id",
    children_field: str = "children",
    sort_key: Optional[Callable[[TreeNode], Any]] = None,
    orphans_as_roots: bool = False,
) -> List[TreeNode]:
    """按 parent_field 把扁平字典组装为森林

    Args:
        nodes: 扁平字典列表，不会被修改
        sort_key: 每一层兄弟节点的排序函数，缺省保持输入顺序
        orphans_as_roots: parent_field 指向列表之外的节点是否作为根，
            否则连同其子树一起丢弃

    Returns:
        根节点列表，每个节点带 children_field 键
    """
    copies = [dict(node, **{children_field: []}) for node in nodes]
    known = {node[id_field] for node in copies}

    by_parent: Dict[Any, List[TreeNode]] = defaultdict(list)
    roots: List[TreeNode] = []
    for node in copies:
        parent_id = node.get(parent_field)
        if parent_id is None or (orphans_as_roots and parent_id not in known):
            roots.append(node)
        else:
            by_parent[parent_id].append(node)

    for node in copies:
        node[children_field] = by_parent.get(node[id_field], [])

    if sort_key is not None:
        for _, level in _levels(roots, children_field):
            level.sort(key=sort_key)
    return roots


def _levels(tree: List[TreeNode], children_field: str) -> Iterator[Tuple[int, List[TreeNode]]]:
    # 广度优先产出每一组兄弟列表
    queue = [(0, tree)]
    while queue:
        depth, siblings = queue.pop(0)
        yield depth, siblings
        for node in siblings:
            if node.get(children_field):
                queue.append((depth + 1, node[children_field]))


def walk_tree(tree: List[TreeNode], children_field: str = "children") -> Iterator[Tuple[TreeNode, int]]:
    """先序遍历森林，产出 (节点, 深度)，根深度为 0"""
    stack = [(node, 0) for node in reversed(tree)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        for child in reversed(node.get(children_field) or []):
            stack.append((child, depth + 1))


def flatten_tree(
    tree: List[TreeNode],
    children_field: str = "children",
    depth_field: Optional[str] = None,
) -> List[TreeNode]:
    """展平为先序列表，结果中不含 children_field

    指定 depth_field 时写入节点深度（根为 0）。
    """
    flat = []
    for node, depth in walk_tree(tree, children_field):
        row = {key: value for key, value in node.items() if key != children_field}
        if depth_field:
            row[depth_field] = depth
        flat.append(row)
    return flat


def find_node_in_tree(
    tree: List[TreeNode],
    target_id: Any,
    id_field: str = "id",
    children_field: str = "children",
) -> Optional[TreeNode]:
    return next(
        (node for node, _ in walk_tree(tree, children_field) if node.get(id_field) == target_id),
        None,
    )


def calculate_tree_depth(tree: List[TreeNode], children_field: str = "children") -> int:
    """最大深度：空森林为 -1，只有根时为 0"""
    return max((depth for _, depth in walk_tree(tree, children_field)), default=-1)


__all__ = [
    "build_tree_list",
    "walk_tree",
    "flatten_tree",
    "find_node_in_tree",
    "calculate_tree_depth",
]
