"""深度计算与缓存

深度 = 祖先数量，根节点为 0。启用 cache_depth 后，深度在每次持久化前
写入缓存列，并可用于深度范围查询。
"""

from typing import Dict, List, Optional

from yancestry.exceptions import ConfigurationError, ErrorCode, ValidationError
from .constants import DEPTH_SCOPES
from .path_codec import parse


def depth_of(path: Optional[str]) -> int:
    """根据路径计算深度"""
    return len(parse(path))


def validate_depth_value(value, node_id=None) -> None:
    """缓存深度必须是非负整数

    持久化时用于校验调用方显式写入的缓存深度，通过后再由 cache_depth() 覆盖为
    按路径计算的值。

    Raises:
        ValidationError: 深度为负数或不是整数
    """
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(
            f"深度缓存值无效: {value!r}",
            code=ErrorCode.INVALID_DEPTH,
            value=value,
            node_id=node_id,
        )


def cache_depth(node, ancestry_column: str, depth_cache_column: str) -> int:
    """将节点的深度写入缓存列，返回写入的深度"""
    value = depth_of(getattr(node, ancestry_column))
    if getattr(node, depth_cache_column) != value:
        setattr(node, depth_cache_column, value)
    return value


def depth_scope_condition(depth_column, scope: str, depth: int):
    """绝对深度条件，如 at_depth(2) -> depth_column == 2

    Raises:
        ConfigurationError: 未知的深度范围名，或未启用深度缓存
    """
    comparator = DEPTH_SCOPES.get(scope)
    if comparator is None:
        raise ConfigurationError(
            f"未知的深度选项: {scope}",
            code=ErrorCode.UNKNOWN_OPTION,
            option=scope,
        )
    if depth_column is None:
        raise ConfigurationError(
            f"{scope} 需要启用 cache_depth",
            code=ErrorCode.DEPTH_CACHE_DISABLED,
            scope=scope,
        )
    return comparator(depth_column, depth)


def relative_depth_conditions(depth_column, base_depth: int, depth_options: Dict[str, int]) -> List:
    """相对深度条件

    实例方法的深度选项是相对于节点自身的：节点深度为 1 时，
    descendants(at_depth=1) 返回绝对深度为 2 的节点。
    """
    return [
        depth_scope_condition(depth_column, scope, base_depth + relative)
        for scope, relative in depth_options.items()
    ]


__all__ = [
    "depth_of",
    "validate_depth_value",
    "cache_depth",
    "depth_scope_condition",
    "relative_depth_conditions",
]
