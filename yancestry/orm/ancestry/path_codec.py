"""路径编解码

路径字符串与祖先 ID 列表之间唯一的编码/解码入口。

路径格式:
    - None（或空字符串）: 根节点
    - "1/2/3": 祖先依次为 1、2、3（3 是直接父节点）
"""

from typing import Iterable, List, Optional

from yancestry.exceptions import ErrorCode, StateError, ValidationError
from .constants import ANCESTRY_DELIMITER, ANCESTRY_PATTERN


def parse(value: Optional[str]) -> List[int]:
    """解析路径为祖先 ID 列表（根在前）

    >>> parse("1/2/3")
    [1, 2, 3]
    >>> parse(None)
    []
    """
    if not value:
        return []
    return [int(segment) for segment in value.split(ANCESTRY_DELIMITER)]


def serialize(ids: Iterable[int]) -> Optional[str]:
    """将祖先 ID 列表编码为路径，空列表返回 None（根节点）"""
    ids = list(ids)
    if not ids:
        return None
    return ANCESTRY_DELIMITER.join(str(int(i)) for i in ids)


def is_valid_path(value) -> bool:
    """判断路径是否符合语法（None 与空串视为根节点）"""
    if value is None or value == "":
        return True
    return isinstance(value, str) and ANCESTRY_PATTERN.match(value) is not None


def validate_path(value, node_id=None) -> None:
    """校验路径语法

    Raises:
        ValidationError: 路径不符合语法
    """
    if not is_valid_path(value):
        raise ValidationError(
            f"路径格式无效: {value!r}",
            code=ErrorCode.INVALID_ANCESTRY,
            value=value,
            node_id=node_id,
        )


def child_prefix(path: Optional[str], own_id) -> str:
    """计算直接子节点应携带的路径

    Args:
        path: 当前节点的路径
        own_id: 当前节点的 ID

    Raises:
        StateError: 节点尚未分配持久化 ID
    """
    if own_id is None:
        raise StateError("节点尚未保存，无法计算子节点路径")
    if not path:
        return str(own_id)
    return f"{path}{ANCESTRY_DELIMITER}{own_id}"


def rewrite(value: Optional[str], old_prefix: str, new_prefix: Optional[str]) -> Optional[str]:
    """将 value 开头的 old_prefix 替换为 new_prefix

    只按完整路径段匹配开头：old_prefix 为 "12" 时，"120/5" 保持不变。
    new_prefix 为空表示去掉前缀（节点提升为根或上移一级）。
    不匹配时原样返回。

    >>> rewrite("1/2/3", "1/2", "7")
    '7/3'
    >>> rewrite("1/2", "1/2", None) is None
    True
    """
    if value is None:
        return None
    if value == old_prefix:
        return new_prefix or None
    head = old_prefix + ANCESTRY_DELIMITER
    if not value.startswith(head):
        return value
    rest = value[len(head):]
    if not new_prefix:
        return rest
    return f"{new_prefix}{ANCESTRY_DELIMITER}{rest}"


__all__ = [
    "parse",
    "serialize",
    "is_valid_path",
    "validate_path",
    "child_prefix",
    "rewrite",
]
