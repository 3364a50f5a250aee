"""
模型基类

CoreModel 在 IdModel 之上补充表名推导、时间戳和一组便捷的持久化方法。
树节点模型通常写成:

    class Category(CoreModel, AncestryFieldsMixin, AncestryMixin):
        title: Mapped[str] = mapped_column(String(50))

持久化方法在 commit=False 时执行 flush，物化路径的校验与子孙级联
因此在调用处立即发生，错误也在调用处抛出。
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Dict, Iterable, List, Optional, TYPE_CHECKING

from sqlalchemy import DateTime, func, inspect
from sqlalchemy.orm import Mapped, mapped_column, declared_attr, Session, Query

if TYPE_CHECKING:
    from typing_extensions import Self

from .id_model import IdModel, Base
from .utils import to_snake_case


class CoreModel(IdModel):
    """模型基类

    - 表名由类名推导（CategoryNode -> category_node）
    - created_at / updated_at 时间戳
    - save / update / delete / refresh 以及 get / get_all / save_all
    - to_dict 序列化

    query 属性由 init_database() 通过 scoped_session.query_property() 注入。
    """
    __abstract__ = True

    if TYPE_CHECKING:
        query: ClassVar[Query[Self]]

    # 未绑定 session 时的回退 session
    _session: Session = None

    # 构造时丢弃的字段，由数据库维护
    _system_fields: ClassVar[frozenset] = frozenset({"id", "created_at", "updated_at"})

    @declared_attr.directive
    def __tablename__(cls) -> str:
        if "_" in cls.__name__:
            raise ValueError(f"类名 {cls.__name__} 含下划线，无法推导表名，请显式声明 __tablename__")
        return to_snake_case(cls.__name__)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        comment="创建时间",
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=False),
        nullable=True,
        onupdate=func.now(),
        comment="更新时间",
    )

    def __init__(self, **kwargs):
        super().__init__(**{k: v for k, v in kwargs.items() if k not in self._system_fields})

    def __repr__(self):
        return f"<{type(self).__name__} id={self.id}>"

    @property
    def session(self) -> Session:
        """对象所用的 session

        依次尝试: 对象已绑定的 session、Model.query 的 session、全局 db_manager。
        """
        bound = inspect(self).session
        if bound is not None:
            return bound
        if self._session is None:
            query = getattr(type(self), "query", None)
            if query is not None:
                self._session = query.session
            else:
                from .db_session import db_manager
                self._session = db_manager.get_session()
        return self._session

    # ==================== 持久化 ====================

    def save(self, commit: bool = False) -> Self:
        """新增或更新，返回自身"""
        self.session.add(self)
        self.__finish(commit)
        return self

    def update(self, commit: bool = False, **values: Any) -> Self:
        """批量设置已存在的属性后保存

        使用示例:
            node.update(title="手机", ancestry="1/4", commit=True)
        """
        for key, value in values.items():
            if hasattr(self, key):
                setattr(self, key, value)
        self.__finish(commit)
        return self

    def delete(self, commit: bool = False):
        """删除记录；树节点的孤儿处理在本次 flush 中执行"""
        self.session.delete(self)
        self.__finish(commit)

    def refresh(self, attribute_names: Optional[List[str]] = None) -> Self:
        self.session.refresh(self, attribute_names or None)
        return self

    def __finish(self, commit: bool):
        if commit:
            self.session.commit()
        else:
            self.session.flush()

    # ==================== 类级查询 ====================

    @classmethod
    def save_all(cls, objects: Iterable, commit: bool = False) -> list:
        objects = list(objects)
        if objects:
            session = cls.query.session
            session.add_all(objects)
            if commit:
                session.commit()
            else:
                session.flush()
        return objects

    @classmethod
    def get(cls, id: int):
        """按主键获取，不存在返回 None"""
        return cls.query.filter_by(id=id).one_or_none()

    @classmethod
    def get_all(cls) -> list:
        return cls.query.all()

    # ==================== 序列化 ====================

    def to_dict(self, exclude: Optional[set] = None) -> Dict[str, Any]:
        """列属性转字典，exclude 中的键被跳过"""
        skip = exclude or set()
        return {
            attr.key: getattr(self, attr.key)
            for attr in inspect(self).mapper.column_attrs
            if attr.key not in skip
        }


__all__ = ["CoreModel", "Base"]
