"""ORM 工具函数

提供通用的命名转换工具。
"""
import re


def to_snake_case(name: str) -> str:
    """驼峰命名转下划线命名（支持连续大写缩写如 E2E、API、URL）

    Examples:
        >>> to_snake_case("TreeNode")
        'tree_node'
        >>> to_snake_case("APICategory")
        'api_category'
    """
    # 处理连续大写+数字后跟大写+小写：APICategory → API_Category
    result = re.sub(r'([A-Z\d]+)([A-Z][a-z])', r'\1_\2', name)
    # 处理小写字母后跟大写：treeNode → tree_Node
    result = re.sub(r'([a-z])([A-Z])', r'\1_\2', result)
    return result.lower()


__all__ = [
    "to_snake_case",
]
