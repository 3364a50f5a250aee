"""物化路径（Materialized Path）树模块

用一个字符串列存储每条记录的祖先 ID 路径，在普通行存储中组织任意深度的森林。

主要组件:
    - AncestryMixin / has_ancestry: 在模型上启用物化路径
    - AncestryFieldsMixin / AncestryDepthFieldsMixin: 默认列定义
    - without_ancestry_callbacks: 临时跳过路径钩子
    - configure_ancestry: 全局默认选项

使用示例:
    from yancestry.orm import CoreModel
    from yancestry.orm.ancestry import AncestryFieldsMixin, AncestryMixin

    class Category(CoreModel, AncestryFieldsMixin, AncestryMixin):
        __orphan_strategy__ = "restrict"
        title: Mapped[str] = mapped_column(String(100))
"""

from .constants import (
    ANCESTRY_DELIMITER,
    ANCESTRY_PATTERN,
    DEPTH_SCOPES,
    OrphanStrategy,
    CycleCheck,
)
from . import path_codec
from . import query_builder
from .depth import depth_of
from .options import (
    AncestryOptions,
    AncestryConfig,
    configure_ancestry,
    reset_ancestry_config,
)
from .suppression import without_ancestry_callbacks, CascadeContext
from .component import Ancestry, has_ancestry, get_ancestry, remove_ancestry
from .ancestry_fields import AncestryFieldsMixin, AncestryDepthFieldsMixin
from .ancestry_mixin import AncestryMixin
from .tree_utils import (
    build_tree_list,
    walk_tree,
    flatten_tree,
    find_node_in_tree,
    calculate_tree_depth,
)
# 注册 flush 钩子
from . import hooks  # noqa: F401

__all__ = [
    "ANCESTRY_DELIMITER",
    "ANCESTRY_PATTERN",
    "DEPTH_SCOPES",
    "OrphanStrategy",
    "CycleCheck",
    "path_codec",
    "query_builder",
    "depth_of",
    "AncestryOptions",
    "AncestryConfig",
    "configure_ancestry",
    "reset_ancestry_config",
    "without_ancestry_callbacks",
    "CascadeContext",
    "Ancestry",
    "has_ancestry",
    "get_ancestry",
    "remove_ancestry",
    "AncestryFieldsMixin",
    "AncestryDepthFieldsMixin",
    "AncestryMixin",
    "build_tree_list",
    "walk_tree",
    "flatten_tree",
    "find_node_in_tree",
    "calculate_tree_depth",
]
