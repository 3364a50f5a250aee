"""
YAncestry - SQLAlchemy 物化路径树形结构库

用单个字符串列存储祖先 ID 路径，提供祖先/子孙/子树/兄弟查询、深度缓存、
移动节点时的子孙路径级联更新，以及删除节点时的孤儿处理策略。
"""

from .version import __version__, __author__, __description__

# 导出日志模块
from .log import (
    setup_logger,
    setup_root_logger,
    ancestry_logger,
    logger,
    get_logger,
)

# 导出配置模块
from .config import (
    AppSettings,
    AncestrySettings,
    DatabaseSettings,
    LoggingSettings,
    ConfigLoader,
    load_yaml_config,
)

# 导出异常模块
from .exceptions import (
    ErrorCode,
    ErrorCodeType,
    AncestryError,
    ConfigurationError,
    ValidationError,
    CycleError,
    StateError,
    IntegrityError,
)

# 导出ORM模块
from .orm import (
    IdModel,
    Base,
    CoreModel,
    db_manager,
    init_database,
    get_engine,
    db_session_scope,
    with_db_session,
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
    # 版本信息
    "__version__",
    "__author__",
    "__description__",

    # Log
    "setup_logger",
    "setup_root_logger",
    "ancestry_logger",
    "logger",
    "get_logger",

    # Config
    "AppSettings",
    "AncestrySettings",
    "DatabaseSettings",
    "LoggingSettings",
    "ConfigLoader",
    "load_yaml_config",

    # Exceptions
    "ErrorCode",
    "ErrorCodeType",
    "AncestryError",
    "ConfigurationError",
    "ValidationError",
    "CycleError",
    "StateError",
    "IntegrityError",

    # ORM
    "IdModel",
    "Base",
    "CoreModel",
    "db_manager",
    "init_database",
    "get_engine",
    "db_session_scope",
    "with_db_session",

    # Ancestry
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
