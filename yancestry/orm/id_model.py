"""ID模型基类

提供主键（ID）相关的功能。

物化路径把祖先 ID 以 "/" 拼接后存入单个字符串列，路径语法只接受数字段，
因此主键固定为整数自增。

使用说明：
    IdModel 是 CoreModel 的父类，专门负责 ID 相关的功能。
    一般情况下，用户应该使用 CoreModel，而不是直接使用 IdModel。
"""

from __future__ import annotations

from sqlalchemy import Integer
from sqlalchemy.orm import declarative_base, Mapped, mapped_column


# 声明基类
Base = declarative_base()


class IdModel(Base):
    """ID模型基类

    使用示例:
        class Category(IdModel):
            __tablename__ = "category"
            title = mapped_column(String(50))
    """
    __abstract__ = True

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment='主键ID'
    )
