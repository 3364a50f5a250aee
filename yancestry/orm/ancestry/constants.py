"""物化路径常量定义"""

import operator
import re
from enum import Enum


# 路径分隔符
ANCESTRY_DELIMITER = "/"

# 路径语法：一个或多个数字 ID，以 "/" 分隔，无首尾分隔符、无空段
ANCESTRY_PATTERN = re.compile(r"\A[0-9]+(/[0-9]+)*\Z")

# 默认列名
DEFAULT_ANCESTRY_COLUMN = "ancestry"
DEFAULT_DEPTH_CACHE_COLUMN = "ancestry_depth"

# 深度范围查询名 -> 比较运算符
DEPTH_SCOPES = {
    "before_depth": operator.lt,
    "to_depth": operator.le,
    "at_depth": operator.eq,
    "from_depth": operator.ge,
    "after_depth": operator.gt,
}


class OrphanStrategy(str, Enum):
    """孤儿策略：删除有子节点的记录时如何处理子节点"""
    ROOTIFY = "rootify"    # 子节点提升一级
    RESTRICT = "restrict"  # 有子节点时禁止删除
    DESTROY = "destroy"    # 删除整棵子树（默认）

    def __str__(self) -> str:
        return self.value


class CycleCheck(str, Enum):
    """循环检测级别"""
    SELF = "self"                # 仅检查自身 ID 是否出现在祖先链中
    DESCENDANTS = "descendants"  # 额外禁止移动到自己的子孙节点下

    def __str__(self) -> str:
        return self.value


DEFAULT_ORPHAN_STRATEGY = OrphanStrategy.DESTROY
DEFAULT_CYCLE_CHECK = CycleCheck.SELF


__all__ = [
    "ANCESTRY_DELIMITER",
    "ANCESTRY_PATTERN",
    "DEFAULT_ANCESTRY_COLUMN",
    "DEFAULT_DEPTH_CACHE_COLUMN",
    "DEPTH_SCOPES",
    "OrphanStrategy",
    "CycleCheck",
    "DEFAULT_ORPHAN_STRATEGY",
    "DEFAULT_CYCLE_CHECK",
]
