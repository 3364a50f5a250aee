"""日志模块

使用示例:
    from yancestry.log import get_logger, setup_logger

    logger = get_logger()
    setup_logger("yancestry", level="DEBUG")
"""

from .logger import (
    setup_logger,
    setup_root_logger,
    create_formatter,
    MicrosecondFormatter,
    DEFAULT_LOG_FORMAT,
    ancestry_logger,
    logger,
    get_logger,
)

__all__ = [
    "setup_logger",
    "setup_root_logger",
    "create_formatter",
    "MicrosecondFormatter",
    "DEFAULT_LOG_FORMAT",
    "ancestry_logger",
    "logger",
    "get_logger",
]
