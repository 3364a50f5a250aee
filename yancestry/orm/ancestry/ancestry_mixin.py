"""物化路径 Mixin

为模型提供树形操作方法，所有方法委托给绑定到该模型的 Ancestry 组件。

物化路径模式说明：
    - 每个节点在 ancestry 列中存储从根到直接父节点的 ID 路径，如 "1/2"
    - 根节点的 ancestry 为空
    - 查询祖先/子孙只需前缀比较，移动节点时由 flush 钩子级联改写子孙路径

可配置属性（子类可覆盖，未声明的取全局默认值）:
    - __ancestry_column__: 路径列名，默认 "ancestry"
    - __orphan_strategy__: 孤儿策略 rootify / restrict / destroy，默认 destroy
    - __cache_depth__: 是否缓存深度，默认 False
    - __depth_cache_column__: 深度缓存列名，默认 "ancestry_depth"
    - __cycle_check__: 循环检测级别 self / descendants，默认 self

使用示例:
    from yancestry.orm import CoreModel
    from yancestry.orm.ancestry import AncestryFieldsMixin, AncestryMixin

    class Category(CoreModel, AncestryFieldsMixin, AncestryMixin):
        __orphan_strategy__ = "rootify"

        title: Mapped[str] = mapped_column(String(100))

    books = Category(title="Books").save()
    novels = Category(title="Novels", parent=books).save()

    novels.ancestor_ids          # [books.id]
    books.descendants().all()    # [novels]
    Category.roots().all()       # [books]
"""

from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.orm import Query
    from .component import Ancestry

from .component import get_ancestry, has_ancestry


class AncestryMixin:
    """物化路径 Mixin

    字段要求（使用者需定义，或使用 AncestryFieldsMixin）:
        - id: 整数主键
        - ancestry: 可为空的字符串列
        - ancestry_depth: 整数列（仅 __cache_depth__ = True 时）
    """

    __ancestry_column__: Optional[str] = None
    __orphan_strategy__: Optional[str] = None
    __cache_depth__: Optional[bool] = None
    __depth_cache_column__: Optional[str] = None
    __cycle_check__: Optional[str] = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        has_ancestry(
            cls,
            ancestry_column=cls.__ancestry_column__,
            orphan_strategy=cls.__orphan_strategy__,
            cache_depth=cls.__cache_depth__,
            depth_cache_column=cls.__depth_cache_column__,
            cycle_check=cls.__cycle_check__,
        )

    @classmethod
    def ancestry_component(cls) -> "Ancestry":
        """获取绑定到本模型的 Ancestry 组件"""
        return get_ancestry(cls)

    # ==================== 路径派生值 ====================

    @property
    def ancestor_ids(self) -> List[int]:
        """祖先 ID 列表，根在前"""
        return self.ancestry_component().ancestor_ids(self)

    @property
    def path_ids(self) -> List[int]:
        """祖先 ID + 自身 ID"""
        return self.ancestry_component().path_ids(self)

    @property
    def depth(self) -> int:
        """深度，根节点为 0"""
        return self.ancestry_component().depth(self)

    @property
    def parent_id(self) -> Optional[int]:
        return self.ancestry_component().parent_id(self)

    @parent_id.setter
    def parent_id(self, value):
        self.ancestry_component().set_parent_id(self, value)

    @property
    def parent(self):
        return self.ancestry_component().parent(self)

    @parent.setter
    def parent(self, value):
        self.ancestry_component().set_parent(self, value)

    @property
    def root_id(self):
        return self.ancestry_component().root_id(self)

    @property
    def root(self):
        return self.ancestry_component().root(self)

    @property
    def child_ancestry(self) -> str:
        """直接子节点的路径，节点未保存时抛出 StateError"""
        return self.ancestry_component().child_ancestry(self)

    # ==================== 节点状态判断 ====================

    def is_root(self) -> bool:
        return self.ancestry_component().is_root(self)

    def has_children(self) -> bool:
        return self.ancestry_component().has_children(self)

    def is_childless(self) -> bool:
        return self.ancestry_component().is_childless(self)

    def has_siblings(self) -> bool:
        return self.ancestry_component().has_siblings(self)

    def is_only_child(self) -> bool:
        return self.ancestry_component().is_only_child(self)

    def is_ancestor_of(self, node) -> bool:
        """判断当前节点是否为指定节点的祖先"""
        return self.ancestry_component().is_ancestor_of(self, node)

    def is_descendant_of(self, node) -> bool:
        """判断当前节点是否为指定节点的子孙"""
        return self.ancestry_component().is_descendant_of(self, node)

    # ==================== 节点查询方法 ====================
    #
    # ancestors/path/descendants/subtree 支持相对深度选项:
    #   before_depth / to_depth / at_depth / from_depth / after_depth
    # 例如 node.descendants(to_depth=2) 返回两层以内的子孙（需启用 __cache_depth__）

    def ancestors(self, **depth_options) -> "Query":
        return self.ancestry_component().ancestors(self, **depth_options)

    def path(self, **depth_options) -> "Query":
        return self.ancestry_component().path(self, **depth_options)

    def children(self) -> "Query":
        return self.ancestry_component().children(self)

    def child_ids(self) -> List[int]:
        return self.ancestry_component().child_ids(self)

    def siblings(self) -> "Query":
        """兄弟节点（含自身）"""
        return self.ancestry_component().siblings(self)

    def sibling_ids(self) -> List[int]:
        return self.ancestry_component().sibling_ids(self)

    def descendants(self, **depth_options) -> "Query":
        return self.ancestry_component().descendants(self, **depth_options)

    def descendant_ids(self, **depth_options) -> List[int]:
        return self.ancestry_component().descendant_ids(self, **depth_options)

    def subtree(self, **depth_options) -> "Query":
        return self.ancestry_component().subtree(self, **depth_options)

    def subtree_ids(self, **depth_options) -> List[int]:
        return self.ancestry_component().subtree_ids(self, **depth_options)

    # ==================== 类方法 ====================

    @classmethod
    def roots(cls) -> "Query":
        return cls.ancestry_component().roots()

    @classmethod
    def ancestors_of(cls, obj) -> "Query":
        """obj 可以是节点或节点 ID"""
        return cls.ancestry_component().ancestors_of(obj)

    @classmethod
    def children_of(cls, obj) -> "Query":
        return cls.ancestry_component().children_of(obj)

    @classmethod
    def descendants_of(cls, obj) -> "Query":
        return cls.ancestry_component().descendants_of(obj)

    @classmethod
    def subtree_of(cls, obj) -> "Query":
        return cls.ancestry_component().subtree_of(obj)

    @classmethod
    def siblings_of(cls, obj) -> "Query":
        return cls.ancestry_component().siblings_of(obj)

    @classmethod
    def ordered_by_ancestry(cls, *extra_order) -> "Query":
        return cls.ancestry_component().ordered_by_ancestry(*extra_order)

    @classmethod
    def before_depth(cls, depth: int) -> "Query":
        return cls.ancestry_component().before_depth(depth)

    @classmethod
    def to_depth(cls, depth: int) -> "Query":
        return cls.ancestry_component().to_depth(depth)

    @classmethod
    def at_depth(cls, depth: int) -> "Query":
        return cls.ancestry_component().at_depth(depth)

    @classmethod
    def from_depth(cls, depth: int) -> "Query":
        return cls.ancestry_component().from_depth(depth)

    @classmethod
    def after_depth(cls, depth: int) -> "Query":
        return cls.ancestry_component().after_depth(depth)

    @classmethod
    def arrange(cls, query=None) -> List[Dict[str, Any]]:
        """嵌套森林：[{"node": 节点, "children": [...]}, ...]"""
        return cls.ancestry_component().arrange(query)

    @classmethod
    def arrange_dicts(cls, query=None, exclude: set = None) -> List[Dict[str, Any]]:
        return cls.ancestry_component().arrange_dicts(query, exclude=exclude)

    @classmethod
    def sort_by_ancestry(cls, nodes) -> List:
        return cls.ancestry_component().sort_by_ancestry(nodes)

    @classmethod
    def check_ancestry_integrity(cls) -> bool:
        return cls.ancestry_component().check_ancestry_integrity()

    @classmethod
    def rebuild_depth_cache(cls) -> int:
        return cls.ancestry_component().rebuild_depth_cache()


__all__ = ["AncestryMixin"]
