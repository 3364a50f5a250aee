"""物化路径选项与全局默认配置

每个模型的选项由 AncestryOptions 校验（未知选项、非法取值都会抛出
ConfigurationError）；模型未声明的选项取 AncestryConfig 中的全局默认值。

使用示例:
    from yancestry.orm import configure_ancestry

    # 在定义模型之前配置
    configure_ancestry(orphan_strategy="rootify", cache_depth=True)
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from yancestry.exceptions import ConfigurationError, ErrorCode
from yancestry.log import get_logger
from .constants import (
    CycleCheck,
    DEFAULT_ANCESTRY_COLUMN,
    DEFAULT_CYCLE_CHECK,
    DEFAULT_DEPTH_CACHE_COLUMN,
    DEFAULT_ORPHAN_STRATEGY,
    OrphanStrategy,
)

logger = get_logger("yancestry.orm.ancestry")

OPTION_NAMES = (
    "ancestry_column",
    "orphan_strategy",
    "cache_depth",
    "depth_cache_column",
    "cycle_check",
)


class AncestryOptions(BaseModel):
    """单个模型的物化路径选项（创建后不可修改）"""
    model_config = ConfigDict(extra="forbid", frozen=True)

    ancestry_column: str = DEFAULT_ANCESTRY_COLUMN
    orphan_strategy: OrphanStrategy = DEFAULT_ORPHAN_STRATEGY
    cache_depth: bool = False
    depth_cache_column: str = DEFAULT_DEPTH_CACHE_COLUMN
    cycle_check: CycleCheck = DEFAULT_CYCLE_CHECK

    @classmethod
    def build(cls, **options) -> "AncestryOptions":
        """合并全局默认值并校验

        值为 None 的选项视为未声明。

        Raises:
            ConfigurationError: 未知选项或非法取值
        """
        declared = {key: value for key, value in options.items() if value is not None}
        merged = {**AncestryConfig.get_defaults(), **declared}
        try:
            result = cls(**merged)
        except PydanticValidationError as e:
            raise _to_configuration_error(e) from e
        logger.debug(f"物化路径选项: {result.model_dump()}")
        return result


def _to_configuration_error(error: PydanticValidationError) -> ConfigurationError:
    """将 pydantic 校验错误转换为 ConfigurationError"""
    errors = error.errors()
    details = [
        f"{'.'.join(str(loc) for loc in item['loc'])}: {item['msg']}"
        for item in errors
    ]
    unknown = [item for item in errors if item["type"] == "extra_forbidden"]
    if unknown:
        names = [str(item["loc"][-1]) for item in unknown]
        return ConfigurationError(
            f"未知的物化路径选项: {', '.join(names)}",
            code=ErrorCode.UNKNOWN_OPTION,
            details=details,
            options=names,
        )
    return ConfigurationError(
        "物化路径选项取值无效",
        details=details,
    )


class AncestryConfig:
    """物化路径全局默认配置

    使用类变量存储全局默认值，模型未声明的选项从这里取值。
    配置只影响之后定义的模型。
    """
    _defaults: Dict[str, Any] = {}

    @classmethod
    def configure(
        cls,
        ancestry_column: Optional[str] = None,
        orphan_strategy: Optional[str] = None,
        cache_depth: Optional[bool] = None,
        depth_cache_column: Optional[str] = None,
        cycle_check: Optional[str] = None,
        settings: Any = None,
    ):
        """配置全局默认值

        Args:
            ancestry_column: 路径列名
            orphan_strategy: 孤儿策略（rootify / restrict / destroy）
            cache_depth: 是否缓存深度
            depth_cache_column: 深度缓存列名
            cycle_check: 循环检测级别（self / descendants）
            settings: AncestrySettings 对象，显式参数优先于其中的值

        Raises:
            ConfigurationError: 取值无效
        """
        values: Dict[str, Any] = {}
        if settings is not None:
            values.update({name: getattr(settings, name) for name in OPTION_NAMES if hasattr(settings, name)})
        explicit = {
            "ancestry_column": ancestry_column,
            "orphan_strategy": orphan_strategy,
            "cache_depth": cache_depth,
            "depth_cache_column": depth_cache_column,
            "cycle_check": cycle_check,
        }
        values.update({key: value for key, value in explicit.items() if value is not None})

        try:
            validated = AncestryOptions(**values)
        except PydanticValidationError as e:
            raise _to_configuration_error(e) from e

        cls._defaults = validated.model_dump(include=set(values))
        logger.info(f"物化路径全局默认配置: {cls._defaults}")

    @classmethod
    def get_defaults(cls) -> Dict[str, Any]:
        """获取当前全局默认值（仅包含已配置的项）"""
        return dict(cls._defaults)

    @classmethod
    def reset(cls):
        """恢复内置默认值"""
        cls._defaults = {}


def configure_ancestry(**kwargs):
    """配置物化路径全局默认值，参数同 AncestryConfig.configure()"""
    AncestryConfig.configure(**kwargs)


def reset_ancestry_config():
    """恢复物化路径内置默认值"""
    AncestryConfig.reset()


__all__ = [
    "AncestryOptions",
    "AncestryConfig",
    "configure_ancestry",
    "reset_ancestry_config",
    "OPTION_NAMES",
]
