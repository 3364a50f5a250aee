"""YAML 配置加载

使用示例:
    from yancestry.config import AppSettings, ConfigLoader, load_yaml_config

    raw = ConfigLoader.load("config/settings.yaml")
    settings = load_yaml_config("config/settings.yaml", AppSettings)
    configure_ancestry(settings=settings.ancestry)
"""

import os
from typing import Any, Dict, Optional, Type, TypeVar

import yaml


SettingsT = TypeVar("SettingsT")


class ConfigLoader:
    """按绝对路径缓存已解析的 YAML 文件"""

    _cache: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def resolve(config_path: str, base_dir: Optional[str] = None) -> str:
        """相对路径基于 base_dir（缺省为当前目录）解析为绝对路径"""
        if not os.path.isabs(config_path) and base_dir:
            config_path = os.path.join(base_dir, config_path)
        return os.path.abspath(config_path)

    @classmethod
    def load(cls, config_path: str, base_dir: Optional[str] = None, use_cache: bool = True) -> Dict[str, Any]:
        """读取并解析 YAML，空文件返回 {}

        Raises:
            FileNotFoundError: 文件不存在
            yaml.YAMLError: 内容不是合法 YAML
        """
        path = cls.resolve(config_path, base_dir)
        if use_cache and path in cls._cache:
            return cls._cache[path]

        if not os.path.isfile(path):
            raise FileNotFoundError(f"配置文件不存在: {path}")
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if use_cache:
            cls._cache[path] = data
        return data

    @classmethod
    def reload(cls, config_path: str, base_dir: Optional[str] = None) -> Dict[str, Any]:
        """丢弃缓存后重新读取"""
        cls._cache.pop(cls.resolve(config_path, base_dir), None)
        return cls.load(config_path, base_dir)

    @classmethod
    def clear_cache(cls):
        cls._cache.clear()


def load_yaml_config(
    config_path: str,
    settings_class: Type[SettingsT],
    base_dir: Optional[str] = None,
    **overrides: Any,
) -> SettingsT:
    """用 YAML 内容构造 settings_class 实例

    overrides 覆盖 YAML 中的同名顶层键；未在两者中出现的字段仍从
    环境变量或默认值读取。
    """
    values = {**ConfigLoader.load(config_path, base_dir), **overrides}
    return settings_class(**values)
