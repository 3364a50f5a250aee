"""物化路径异常类定义

定义 yancestry 使用的异常类体系。所有异常都在违规发生处同步抛出，
不会被静默吞掉。
"""

import copy
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class ErrorCode(str, Enum):
    """错误代码枚举

    继承自 str，可以直接作为字符串使用。

    使用示例:
        try:
            node.delete(commit=True)
        except IntegrityError as e:
            if e.code == ErrorCode.RESTRICTED_DELETE:
                ...
    """

    ANCESTRY_ERROR = "ANCESTRY_ERROR"

    # ==================== 配置相关 ====================
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UNKNOWN_OPTION = "UNKNOWN_OPTION"
    DEPTH_CACHE_DISABLED = "DEPTH_CACHE_DISABLED"

    # ==================== 校验相关 ====================
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ANCESTRY = "INVALID_ANCESTRY"
    INVALID_DEPTH = "INVALID_DEPTH"

    # ==================== 结构相关 ====================
    CYCLE_DETECTED = "CYCLE_DETECTED"
    UNSAVED_NODE = "UNSAVED_NODE"
    NODE_NOT_FOUND = "NODE_NOT_FOUND"
    MISSING_SESSION = "MISSING_SESSION"
    RESTRICTED_DELETE = "RESTRICTED_DELETE"
    MISSING_ANCESTOR = "MISSING_ANCESTOR"
    DEPTH_OUT_OF_SYNC = "DEPTH_OUT_OF_SYNC"


# 类型别名，支持枚举和字符串
ErrorCodeType = Union[str, ErrorCode]


class AncestryError(Exception):
    """物化路径异常基类

    属性:
        message: 错误消息
        code: 错误代码（ErrorCode 枚举或字符串）
        details: 详细错误信息列表
        extra: 额外的上下文信息（如 node_id、value）
    """

    default_message: str = "物化路径操作失败"
    default_code: ErrorCodeType = ErrorCode.ANCESTRY_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[ErrorCodeType] = None,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or []
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return {
            "message": self.message,
            "code": self.code,
            "details": copy.deepcopy(self.details),
            "extra": copy.deepcopy(self.extra),
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r})"
        )


class ConfigurationError(AncestryError):
    """配置异常

    不支持或缺失的配置项；未启用深度缓存时使用深度范围查询。

    使用示例:
        raise ConfigurationError(
            "深度范围查询需要启用 cache_depth",
            code=ErrorCode.DEPTH_CACHE_DISABLED,
            scope="at_depth",
        )
    """

    default_message = "物化路径配置错误"
    default_code = ErrorCode.CONFIGURATION_ERROR


class ValidationError(AncestryError):
    """校验异常

    路径字符串不符合语法，或缓存深度不是非负整数。
    """

    default_message = "物化路径校验失败"
    default_code = ErrorCode.VALIDATION_ERROR


class CycleError(AncestryError):
    """循环引用异常

    节点自身的 ID 出现在其祖先链中。
    """

    default_message = "节点不能成为自身的子孙"
    default_code = ErrorCode.CYCLE_DETECTED


class StateError(AncestryError):
    """状态异常

    需要持久化 ID 的操作（如计算子节点路径前缀）作用在尚未保存的记录上。
    """

    default_message = "记录尚未保存，无法执行树操作"
    default_code = ErrorCode.UNSAVED_NODE


class IntegrityError(AncestryError):
    """完整性异常

    restrict 策略下节点仍有子节点时阻止删除；
    完整性检查发现引用了不存在的祖先或深度缓存不一致。
    """

    default_message = "节点仍有子节点，无法删除"
    default_code = ErrorCode.RESTRICTED_DELETE
