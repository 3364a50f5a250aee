"""ORM 模块

提供模型基类、数据库会话管理与物化路径树。

使用示例:
    from yancestry.orm import CoreModel, init_database, db_session_scope
    from yancestry.orm import AncestryFieldsMixin, AncestryMixin

    init_database("sqlite:///./tree.db")
"""

from .id_model import IdModel, Base
from .core_model import CoreModel
from .db_session import (
    db_manager,
    init_database,
    get_engine,
    db_session_scope,
    with_db_session,
)
from .utils import to_snake_case
from .ancestry import (
    Ancestry,
    AncestryMixin,
    AncestryFieldsMixin,
    AncestryDepthFieldsMixin,
    AncestryConfig,
    OrphanStrategy,
    CycleCheck,
    has_ancestry,
    get_ancestry,
    configure_ancestry,
    reset_ancestry_config,
    without_ancestry_callbacks,
)

__all__ = [
    "IdModel",
    "Base",
    "CoreModel",
    "db_manager",
    "init_database",
    "get_engine",
    "db_session_scope",
    "with_db_session",
    "to_snake_case",
    "Ancestry",
    "AncestryMixin",
    "AncestryFieldsMixin",
    "AncestryDepthFieldsMixin",
    "AncestryConfig",
    "OrphanStrategy",
    "CycleCheck",
    "has_ancestry",
    "get_ancestry",
    "configure_ancestry",
    "reset_ancestry_config",
    "without_ancestry_callbacks",
]
