"""物化路径字段定义

提供默认列名的字段 Mixin，简化模型定义。

使用示例:
    from yancestry.orm import CoreModel
    from yancestry.orm.ancestry import AncestryFieldsMixin, AncestryDepthFieldsMixin, AncestryMixin

    class Category(CoreModel, AncestryFieldsMixin, AncestryDepthFieldsMixin, AncestryMixin):
        __cache_depth__ = True

        title: Mapped[str] = mapped_column(String(100))
"""

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column


class AncestryFieldsMixin:
    """路径字段 Mixin

    ancestry: 祖先 ID 路径（如 "1/2/3"），根节点为空
    """

    ancestry: Mapped[Optional[str]] = mapped_column(
        String(1024),
        nullable=True,
        default=None,
        index=True,
        comment="祖先路径（如 1/2/3）"
    )


class AncestryDepthFieldsMixin:
    """深度缓存字段 Mixin，配合 __cache_depth__ = True 使用

    ancestry_depth: 祖先数量，根节点为 0
    """

    ancestry_depth: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        index=True,
        comment="深度缓存（根节点为0）"
    )


__all__ = ["AncestryFieldsMixin", "AncestryDepthFieldsMixin"]
