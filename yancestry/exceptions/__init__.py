"""异常模块

提供物化路径相关的异常类。

使用示例:
    from yancestry.exceptions import IntegrityError, CycleError

    try:
        with db_session_scope() as session:
            session.delete(node)
    except IntegrityError as e:
        print(e.to_dict())
"""

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

__all__ = [
    "ErrorCode",
    "ErrorCodeType",
    "AncestryError",
    "ConfigurationError",
    "ValidationError",
    "CycleError",
    "StateError",
    "IntegrityError",
]
