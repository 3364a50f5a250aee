"""
日志工具

yancestry 的模块都通过 get_logger() 取得 "yancestry.*" 命名空间下的日志器，
本身不安装任何处理器。应用启动时调用 setup_root_logger() 或 setup_logger()
决定输出位置。

级联相关的日志:
    - INFO: 子孙路径改写与子树删除的汇总，全局默认配置变更
    - WARNING: restrict 策略阻止删除
    - DEBUG: 选项解析
"""

import inspect
import logging
import os
import time
from logging.handlers import RotatingFileHandler
from typing import Any, Optional


DEFAULT_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class MicrosecondFormatter(logging.Formatter):
    """时间戳带 6 位微秒的格式化器"""

    def formatTime(self, record, datefmt=None):
        stamp = time.strftime(datefmt or DEFAULT_DATE_FORMAT, self.converter(record.created))
        micros = int((record.created - int(record.created)) * 1_000_000)
        return f"{stamp}.{micros:06d}"


def create_formatter(
    log_format: Optional[str] = None,
    datefmt: str = DEFAULT_DATE_FORMAT,
    use_microseconds: bool = True,
) -> logging.Formatter:
    formatter_class = MicrosecondFormatter if use_microseconds else logging.Formatter
    return formatter_class(fmt=log_format or DEFAULT_LOG_FORMAT, datefmt=datefmt)


def _file_handler(log_file: str, options: Optional[dict]) -> logging.Handler:
    directory = os.path.dirname(log_file)
    if directory:
        os.makedirs(directory, exist_ok=True)
    if not options:
        return logging.FileHandler(log_file, encoding="utf-8")
    return RotatingFileHandler(
        log_file,
        maxBytes=options.get("maxBytes", 10 * 1024 * 1024),
        backupCount=options.get("backupCount", 5),
        encoding=options.get("encoding", "utf-8"),
    )


def setup_logger(
    name: Optional[str] = None,
    level: str = "INFO",
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    console: bool = True,
    use_microseconds: bool = True,
    propagate: bool = True,
    file_handler_options: Optional[dict] = None,
) -> logging.Logger:
    """配置一个日志器并返回

    重复调用会先移除已有处理器。

    Args:
        name: 日志器名称，None 表示根日志器
        level: DEBUG / INFO / WARNING / ERROR / CRITICAL
        log_file: 日志文件路径，目录不存在时自动创建
        log_format: 格式字符串，默认 DEFAULT_LOG_FORMAT
        console: 是否输出到 stderr
        use_microseconds: 时间戳是否带微秒
        propagate: 是否向父日志器传播
        file_handler_options: 提供时使用按大小轮转的文件处理器，
            键为 maxBytes / backupCount / encoding

    使用示例:
        setup_logger("yancestry", level="DEBUG", log_file="logs/tree.log")
    """
    target = logging.getLogger(name)
    target.setLevel(getattr(logging, level.upper(), logging.INFO))
    target.propagate = propagate
    target.handlers.clear()

    formatter = create_formatter(log_format, use_microseconds=use_microseconds)
    handlers = []
    if console:
        handlers.append(logging.StreamHandler())
    if log_file:
        handlers.append(_file_handler(log_file, file_handler_options))
    for handler in handlers:
        handler.setFormatter(formatter)
        target.addHandler(handler)
    return target


def setup_root_logger(
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    use_microseconds: bool = True,
    file_handler_options: Optional[dict] = None,
    config: Any = None,
) -> logging.Logger:
    """配置根日志器，yancestry.* 日志器经传播使用它的处理器

    提供 config（LoggingSettings）时，级别、文件、控制台开关和轮转参数
    都取自 config。

    使用示例:
        setup_root_logger(config=settings.logging)
    """
    if config is not None:
        level = config.level
        log_file = config.file_path or None
        console = config.enable_console
        file_handler_options = {
            "maxBytes": config.parsed_file_max_bytes,
            "backupCount": config.file_backup_count,
            "encoding": config.file_encoding,
        }
    return setup_logger(
        None,
        level=level,
        log_file=log_file,
        console=console,
        use_microseconds=use_microseconds,
        propagate=False,
        file_handler_options=file_handler_options,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """取得日志器

    - 不传名称: 使用调用方模块的 __name__
    - 不含点号的短名称: 加上 "yancestry." 前缀
    - 其他名称原样使用

    使用示例:
        get_logger()                    # 调用方模块
        get_logger("ancestry")          # yancestry.ancestry
        get_logger("sqlalchemy.engine") # 原样
    """
    if name is None:
        caller = inspect.currentframe().f_back
        name = caller.f_globals.get("__name__", "yancestry") if caller else "yancestry"
    elif "." not in name and name != "yancestry":
        name = f"yancestry.{name}"
    return logging.getLogger(name)


logger = logging.getLogger("yancestry")
ancestry_logger = get_logger("yancestry.orm.ancestry")
