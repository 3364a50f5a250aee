"""
数据库会话管理

- db_manager: 全局 DatabaseManager，持有 engine 与 scoped_session
- init_database(): 创建 engine，注入 CoreModel.query
- db_session_scope(): 一个事务范围
- with_db_session(): 装饰器版本的 db_session_scope()

节点移动时的子孙路径改写、删除时的孤儿处理都在节点自身所在的 flush
中完成，包进一个 db_session_scope() 就能让整棵子树要么全部写入，
要么全部回滚。
"""

import logging
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Dict, Generator, Optional, Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from yancestry.log import get_logger

_logger = get_logger("yancestry.orm.session")

_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")

# DatabaseSettings 中可以覆盖的引擎参数
_POOL_KEYS = ("echo", "pool_size", "max_overflow", "pool_timeout", "pool_recycle", "pool_pre_ping")


def _engine_kwargs(url: str, options: Dict[str, Any]) -> Dict[str, Any]:
    """按数据库类型挑选 create_engine 参数

    SQLite 不使用连接池参数；内存库固定单连接，否则每个连接都是一个新的空库。
    """
    kwargs = {"echo": options.get("echo", False)}
    if url in _MEMORY_URLS:
        kwargs.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)
    elif url.startswith("sqlite"):
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": options.get("pool_timeout", 30),
        }
    else:
        kwargs.update({key: options[key] for key in _POOL_KEYS[1:] if key in options})
    return kwargs


class DatabaseManager:
    """engine 与 scoped_session 的持有者（单例）

    使用示例:
        from yancestry.orm import db_manager

        db_manager.init("sqlite:///./tree.db")
        session = db_manager.get_session()
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._engine = None
            instance._session_scope = None
            cls._instance = instance
        return cls._instance

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("数据库未初始化，请先调用 init_database()")
        return self._engine

    @property
    def session_scope(self) -> scoped_session:
        if self._session_scope is None:
            raise RuntimeError("数据库未初始化，请先调用 init_database()")
        return self._session_scope

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None and self._session_scope is not None

    def init(
        self,
        database_url: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
        scopefunc: Optional[Callable] = None,
        config: Any = None,
        auto_setup_query: bool = True,
        **engine_options: Any,
    ) -> Tuple[Engine, scoped_session]:
        """创建 engine 与 scoped_session

        Args:
            database_url: 连接 URL，提供 config 且其 url 非空时以 config 为准
            logger: 日志记录器，默认 yancestry.orm.session
            scopefunc: scoped_session 的作用域函数，默认按线程隔离
            config: DatabaseSettings，其中的连接池参数作为默认值
            auto_setup_query: 是否把 query_property 注入 CoreModel
            **engine_options: echo、pool_size 等引擎参数，优先于 config

        Raises:
            ValueError: 没有可用的连接 URL
        """
        log = logger or _logger

        options: Dict[str, Any] = {}
        if config is not None:
            database_url = getattr(config, "url", None) or database_url
            options.update({key: getattr(config, key) for key in _POOL_KEYS if hasattr(config, key)})
        options.update(engine_options)

        if not database_url:
            raise ValueError("缺少 database_url，请通过参数或 config 提供")

        self._engine = create_engine(database_url, **_engine_kwargs(database_url, options))
        self._session_scope = scoped_session(
            sessionmaker(bind=self._engine, autoflush=True),
            scopefunc=scopefunc,
        )
        log.info(f"数据库引擎已创建: {self._engine.url!r}")

        if auto_setup_query:
            from .core_model import CoreModel
            CoreModel.query = self._session_scope.query_property()

        return self._engine, self._session_scope

    def get_session(self) -> Session:
        """当前作用域的 session"""
        return self.session_scope()

    def cleanup(self):
        """归还当前作用域的 session，未初始化时什么也不做"""
        if self._session_scope is not None:
            self._session_scope.remove()


db_manager = DatabaseManager()


def init_database(database_url: Optional[str] = None, **kwargs) -> Tuple[Engine, scoped_session]:
    """初始化全局数据库连接，参数同 DatabaseManager.init()

    使用示例:
        engine, session_scope = init_database("sqlite:///./tree.db")
        engine, session_scope = init_database(config=settings.database)
    """
    return db_manager.init(database_url, **kwargs)


def get_engine() -> Engine:
    return db_manager.engine


@contextmanager
def db_session_scope(auto_commit: bool = True) -> Generator[Session, None, None]:
    """事务范围

    正常退出时提交（auto_commit=False 时由调用方提交），异常时回滚并
    重新抛出，最后归还 session。

    使用示例:
        with db_session_scope():
            phone.parent = electronics
    """
    session = db_manager.get_session()
    try:
        yield session
        if auto_commit:
            session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        db_manager.cleanup()


def with_db_session(auto_commit: bool = True):
    """以关键字参数 session 注入 db_session_scope() 的 session

    使用示例:
        @with_db_session()
        def move_subtree(node_id, parent_id, session):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            with db_session_scope(auto_commit=auto_commit) as session:
                return func(*args, session=session, **kwargs)
        return wrapper
    return decorator


__all__ = [
    "DatabaseManager",
    "db_manager",
    "init_database",
    "get_engine",
    "db_session_scope",
    "with_db_session",
]
