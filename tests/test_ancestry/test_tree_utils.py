"""树形工具函数测试"""

from yancestry.orm.ancestry import (
    build_tree_list,
    calculate_tree_depth,
    find_node_in_tree,
    flatten_tree,
    walk_tree,
)


FLAT = [
    {"id": 1, "parent_id": None, "name": "A"},
    {"id": 2, "parent_id": 1, "name": "A-1"},
    {"id": 3, "parent_id": 1, "name": "A-2"},
    {"id": 4, "parent_id": 2, "name": "A-1-1"},
    {"id": 5, "parent_id": 99, "name": "orphan"},
]


class TestBuildTreeList:
    """扁平列表构建嵌套树测试"""

    def test_build(self):
        tree = build_tree_list(FLAT)

        assert [node["id"] for node in tree] == [1]
        assert [node["id"] for node in tree[0]["children"]] == [2, 3]
        assert tree[0]["children"][0]["children"][0]["id"] == 4

    def test_input_not_modified(self):
        build_tree_list(FLAT)

        assert "children" not in FLAT[0]

    def test_orphans_dropped_by_default(self):
        tree = build_tree_list(FLAT)

        assert find_node_in_tree(tree, 5) is None

    def test_orphans_as_roots(self):
        tree = build_tree_list(FLAT, orphans_as_roots=True)

        assert [node["id"] for node in tree] == [1, 5]

    def test_sort_key(self):
        tree = build_tree_list(FLAT, sort_key=lambda node: -node["id"])

        assert [node["id"] for node in tree[0]["children"]] == [3, 2]

    def test_empty(self):
        assert build_tree_list([]) == []


class TestTreeHelpers:
    """展平、查找、深度测试"""

    def test_flatten_preorder(self):
        flat = flatten_tree(build_tree_list(FLAT))

        assert [node["id"] for node in flat] == [1, 2, 4, 3]
        assert "children" not in flat[0]

    def test_flatten_with_depth(self):
        flat = flatten_tree(build_tree_list(FLAT), depth_field="depth")

        assert {node["id"]: node["depth"] for node in flat} == {1: 0, 2: 1, 4: 2, 3: 1}

    def test_find_node(self):
        tree = build_tree_list(FLAT)

        assert find_node_in_tree(tree, 4)["name"] == "A-1-1"
        assert find_node_in_tree(tree, 42) is None

    def test_calculate_depth(self):
        assert calculate_tree_depth(build_tree_list(FLAT)) == 2
        assert calculate_tree_depth([{"id": 1, "children": []}]) == 0
        assert calculate_tree_depth([]) == -1

    def test_walk_tree(self):
        pairs = [(node["id"], depth) for node, depth in walk_tree(build_tree_list(FLAT))]

        assert pairs == [(1, 0), (2, 1), (4, 2), (3, 1)]
