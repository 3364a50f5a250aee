"""物化路径组件

Ancestry 把路径编解码、查询构建、深度缓存、级联更新、孤儿处理组合在一起，
绑定到任意满足以下条件的映射类上（不要求继承）:

    - 整数主键 id
    - 可为空的字符串路径列（默认 ancestry）
    - 启用 cache_depth 时，一个整数深度列（默认 ancestry_depth）

使用示例:
    from yancestry.orm.ancestry import has_ancestry

    class Category(CoreModel):
        title: Mapped[str] = mapped_column(String(50))
        ancestry: Mapped[Optional[str]] = mapped_column(String(1024), index=True)

    tree = has_ancestry(Category, orphan_strategy="rootify")

    tree.set_parent(child, parent)
    tree.descendants(parent).all()
    tree.roots().all()
"""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Query, Session, object_session
from sqlalchemy.orm.attributes import get_history

from yancestry.exceptions import (
    AncestryError,
    ConfigurationError,
    ErrorCode,
    IntegrityError,
    StateError,
)
from yancestry.log import get_logger
from . import query_builder
from .constants import CycleCheck
from .depth import (
    cache_depth,
    depth_of,
    depth_scope_condition,
    relative_depth_conditions,
    validate_depth_value,
)
from .guard import check_descendant_reference, check_self_reference
from .options import AncestryOptions
from .orphan import resolve_orphans
from .path_codec import child_prefix, parse, validate_path
from .reparenting import reparent_descendants, stored_path
from .suppression import CascadeContext
from .tree_utils import build_tree_list

logger = get_logger("yancestry.orm.ancestry")


class Ancestry:
    """绑定到某个模型的物化路径组件

    Attributes:
        model: 映射类
        options: AncestryOptions
    """

    def __init__(self, model: type, options: AncestryOptions):
        self.model = model
        self.options = options
        self._columns_checked = False

    def __repr__(self) -> str:
        return f"<Ancestry {self.model.__name__} {self.options.model_dump(mode='json')}>"

    # ==================== 列与会话 ====================

    def check_columns(self) -> None:
        """检查模型映射了所需的列

        Raises:
            ConfigurationError: 模型未映射或缺少列
        """
        mapper = sa_inspect(self.model, raiseerr=False)
        if mapper is None:
            raise ConfigurationError(
                f"{self.model.__name__} 不是映射类",
                model=self.model.__name__,
            )
        required = ["id", self.options.ancestry_column]
        if self.options.cache_depth:
            required.append(self.options.depth_cache_column)
        for name in required:
            if not mapper.has_property(name):
                raise ConfigurationError(
                    f"{self.model.__name__} 缺少列: {name}",
                    model=self.model.__name__,
                    column=name,
                )
        self._columns_checked = True

    def _ensure_columns(self) -> None:
        if not self._columns_checked:
            self.check_columns()

    @property
    def column(self):
        """路径列"""
        self._ensure_columns()
        return getattr(self.model, self.options.ancestry_column)

    @property
    def depth_column(self):
        """深度缓存列，未启用 cache_depth 时为 None"""
        if not self.options.cache_depth:
            return None
        self._ensure_columns()
        return getattr(self.model, self.options.depth_cache_column)

    @property
    def id_column(self):
        self._ensure_columns()
        return self.model.id

    def session_for(self, node=None, session: Optional[Session] = None) -> Session:
        """获取会话：显式传入 > 节点绑定的会话 > Model.query > 全局 db_manager

        Raises:
            ConfigurationError: 无可用会话
        """
        if session is not None:
            return session
        if node is not None:
            bound = object_session(node)
            if bound is not None:
                return bound
        query = getattr(self.model, "query", None)
        if query is not None:
            return query.session
        from ..db_session import db_manager
        if db_manager.is_initialized:
            return db_manager.get_session()
        raise ConfigurationError(
            f"{self.model.__name__} 没有可用的数据库会话",
            code=ErrorCode.MISSING_SESSION,
        )

    def query(self, session: Optional[Session] = None, node=None) -> Query:
        return self.session_for(node, session).query(self.model)

    def _ordered(self, query: Query) -> Query:
        return query.order_by(*query_builder.ancestry_order(self.id_column, self.column))

    # ==================== 路径派生值 ====================

    def path_of(self, node) -> Optional[str]:
        """节点当前的路径（空串视为 None）"""
        return getattr(node, self.options.ancestry_column) or None

    def stored_path_of(self, node) -> Optional[str]:
        """节点在数据库中的路径；未绑定会话时返回当前值"""
        session = object_session(node)
        if session is None:
            return self.path_of(node)
        return stored_path(session, node, self.options.ancestry_column) or None

    def ancestor_ids(self, node) -> List[int]:
        return parse(self.path_of(node))

    def path_ids(self, node) -> List[int]:
        return self.ancestor_ids(node) + [node.id]

    def depth(self, node) -> int:
        return depth_of(self.path_of(node))

    def parent_id(self, node) -> Optional[int]:
        ids = self.ancestor_ids(node)
        return ids[-1] if ids else None

    def root_id(self, node):
        ids = self.ancestor_ids(node)
        return ids[0] if ids else node.id

    def is_root(self, node) -> bool:
        return self.path_of(node) is None

    def child_ancestry(self, node) -> str:
        """直接子节点应携带的路径（基于数据库中存储的路径）

        Raises:
            StateError: 节点尚未保存
        """
        state = sa_inspect(node)
        if not state.has_identity or node.id is None:
            raise StateError(
                f"{self.model.__name__} 尚未保存，无法计算子节点路径",
                model=self.model.__name__,
            )
        return child_prefix(self.stored_path_of(node), node.id)

    def is_ancestor_of(self, node, other) -> bool:
        return node.id is not None and node.id in self.ancestor_ids(other)

    def is_descendant_of(self, node, other) -> bool:
        return other.id is not None and other.id in self.ancestor_ids(node)

    # ==================== 父节点 ====================

    def parent(self, node):
        parent_id = self.parent_id(node)
        if parent_id is None:
            return None
        return self.session_for(node).get(self.model, parent_id)

    def set_parent(self, node, parent) -> None:
        """设置父节点，None 表示成为根节点

        使用父节点当前（可能尚未 flush）的路径，父子在同一次 flush 中移动时结果一致。

        Raises:
            StateError: 父节点尚未保存
        """
        if parent is None:
            setattr(node, self.options.ancestry_column, None)
            return
        if not sa_inspect(parent).has_identity or parent.id is None:
            raise StateError(
                f"父节点尚未保存，无法设置为 {self.model.__name__} 的父节点",
                model=self.model.__name__,
            )
        setattr(node, self.options.ancestry_column, child_prefix(self.path_of(parent), parent.id))

    def set_parent_id(self, node, parent_id) -> None:
        """按 ID 设置父节点

        Raises:
            StateError: 父节点不存在
        """
        if parent_id is None:
            self.set_parent(node, None)
            return
        self.set_parent(node, self._to_node(parent_id, self.session_for(node)))

    def root(self, node):
        root_id = self.root_id(node)
        if root_id == node.id:
            return node
        return self.session_for(node).get(self.model, root_id)

    # ==================== 实例级查询 ====================

    def _depth_filters(self, node, depth_options: Dict[str, int]) -> List:
        if not depth_options:
            return []
        return relative_depth_conditions(self.depth_column, self.depth(node), depth_options)

    def ancestors(self, node, **depth_options) -> Query:
        """祖先节点（根在前），可附加相对深度条件"""
        condition = query_builder.combine(
            query_builder.ancestors_condition(self.id_column, self.ancestor_ids(node)),
            *self._depth_filters(node, depth_options),
        )
        return self._ordered(self.query(node=node).filter(condition))

    def path(self, node, **depth_options) -> Query:
        """祖先 + 自身（根在前）"""
        condition = query_builder.combine(
            query_builder.ancestors_condition(self.id_column, self.path_ids(node)),
            *self._depth_filters(node, depth_options),
        )
        return self._ordered(self.query(node=node).filter(condition))

    def children(self, node) -> Query:
        condition = query_builder.children_condition(self.column, self.child_ancestry(node))
        return self.query(node=node).filter(condition).order_by(self.id_column)

    def child_ids(self, node) -> List[int]:
        return self._ids(node, query_builder.children_condition(self.column, self.child_ancestry(node)))

    def has_children(self, node) -> bool:
        condition = query_builder.children_condition(self.column, self.child_ancestry(node))
        session = self.session_for(node)
        return session.query(self.id_column).filter(condition).first() is not None

    def is_childless(self, node) -> bool:
        return not self.has_children(node)

    def siblings(self, node) -> Query:
        """兄弟节点（含自身）"""
        condition = query_builder.siblings_condition(self.column, self.path_of(node))
        return self.query(node=node).filter(condition).order_by(self.id_column)

    def sibling_ids(self, node) -> List[int]:
        return self._ids(node, query_builder.siblings_condition(self.column, self.path_of(node)))

    def has_siblings(self, node) -> bool:
        """除自身外是否还有兄弟节点"""
        query = self.session_for(node).query(self.id_column).filter(
            query_builder.siblings_condition(self.column, self.path_of(node))
        )
        if node.id is not None:
            query = query.filter(self.id_column != node.id)
        return query.first() is not None

    def is_only_child(self, node) -> bool:
        return not self.has_siblings(node)

    def descendants(self, node, **depth_options) -> Query:
        """所有子孙（根在前），可附加相对深度条件"""
        condition = query_builder.combine(
            query_builder.descendants_condition(self.column, self.child_ancestry(node)),
            *self._depth_filters(node, depth_options),
        )
        return self._ordered(self.query(node=node).filter(condition))

    def descendant_ids(self, node, **depth_options) -> List[int]:
        condition = query_builder.combine(
            query_builder.descendants_condition(self.column, self.child_ancestry(node)),
            *self._depth_filters(node, depth_options),
        )
        return self._ids(node, condition, ordered=True)

    def subtree(self, node, **depth_options) -> Query:
        """自身 + 所有子孙（根在前）"""
        condition = query_builder.combine(
            query_builder.subtree_condition(self.id_column, self.column, node.id, self.child_ancestry(node)),
            *self._depth_filters(node, depth_options),
        )
        return self._ordered(self.query(node=node).filter(condition))

    def subtree_ids(self, node, **depth_options) -> List[int]:
        condition = query_builder.combine(
            query_builder.subtree_condition(self.id_column, self.column, node.id, self.child_ancestry(node)),
            *self._depth_filters(node, depth_options),
        )
        return self._ids(node, condition, ordered=True)

    def _ids(self, node, condition, ordered: bool = False) -> List[int]:
        query = self.session_for(node).query(self.id_column).filter(condition)
        if ordered:
            query = query.order_by(*query_builder.ancestry_order(self.id_column, self.column))
        else:
            query = query.order_by(self.id_column)
        return [row[0] for row in query]

    # ==================== 类级查询 ====================

    def _to_node(self, obj, session: Session):
        """节点对象或 ID 转为节点

        Raises:
            StateError: ID 对应的节点不存在
        """
        if isinstance(obj, self.model):
            return obj
        node = session.get(self.model, obj)
        if node is None:
            raise StateError(
                f"{self.model.__name__} 节点不存在: {obj}",
                code=ErrorCode.NODE_NOT_FOUND,
                node_id=obj,
            )
        return node

    def roots(self, session: Optional[Session] = None) -> Query:
        return self.query(session).filter(query_builder.roots_condition(self.column)).order_by(self.id_column)

    def ancestors_of(self, obj, session: Optional[Session] = None) -> Query:
        return self.ancestors(self._to_node(obj, self.session_for(session=session)))

    def children_of(self, obj, session: Optional[Session] = None) -> Query:
        return self.children(self._to_node(obj, self.session_for(session=session)))

    def descendants_of(self, obj, session: Optional[Session] = None) -> Query:
        return self.descendants(self._to_node(obj, self.session_for(session=session)))

    def subtree_of(self, obj, session: Optional[Session] = None) -> Query:
        return self.subtree(self._to_node(obj, self.session_for(session=session)))

    def siblings_of(self, obj, session: Optional[Session] = None) -> Query:
        return self.siblings(self._to_node(obj, self.session_for(session=session)))

    def ordered_by_ancestry(self, *extra_order, session: Optional[Session] = None) -> Query:
        """按根优先排序，extra_order 用于同一路径下的排序"""
        column = self.column
        return self.query(session).order_by(
            query_builder.ancestry_order(self.id_column, column)[0],
            column,
            *extra_order,
            self.id_column,
        )

    def depth_scope(self, scope: str, depth: int, session: Optional[Session] = None) -> Query:
        """绝对深度范围查询，scope 为 before_depth/to_depth/at_depth/from_depth/after_depth

        Raises:
            ConfigurationError: 未启用 cache_depth 或 scope 未知
        """
        condition = depth_scope_condition(self.depth_column, scope, depth)
        return self.query(session).filter(condition)

    def before_depth(self, depth: int, session: Optional[Session] = None) -> Query:
        return self.depth_scope("before_depth", depth, session)

    def to_depth(self, depth: int, session: Optional[Session] = None) -> Query:
        return self.depth_scope("to_depth", depth, session)

    def at_depth(self, depth: int, session: Optional[Session] = None) -> Query:
        return self.depth_scope("at_depth", depth, session)

    def from_depth(self, depth: int, session: Optional[Session] = None) -> Query:
        return self.depth_scope("from_depth", depth, session)

    def after_depth(self, depth: int, session: Optional[Session] = None) -> Query:
        return self.depth_scope("after_depth", depth, session)

    # ==================== 排列与排序 ====================

    def sort_by_ancestry(self, nodes: Iterable) -> List:
        """内存中按根优先排序（先序遍历，同级按 ID）

        节点必须已保存。
        """
        return sorted(nodes, key=lambda node: self.ancestor_ids(node) + [node.id])

    def arrange(self, query: Optional[Query] = None, session: Optional[Session] = None) -> List[Dict[str, Any]]:
        """构建嵌套森林

        Returns:
            [{"node": 节点, "children": [...]}, ...]
            父节点不在结果集中的节点作为根出现。
        """
        if query is None:
            query = self.ordered_by_ancestry(session=session)
        return self.arrange_nodes(list(query))

    def arrange_nodes(self, nodes: Iterable) -> List[Dict[str, Any]]:
        entries: Dict[Any, Dict[str, Any]] = {}
        roots: List[Dict[str, Any]] = []
        for node in self.sort_by_ancestry(nodes):
            entry = {"node": node, "children": []}
            entries[node.id] = entry
            parent = entries.get(self.parent_id(node))
            if parent is None:
                roots.append(entry)
            else:
                parent["children"].append(entry)
        return roots

    def arrange_dicts(self, query: Optional[Query] = None, session: Optional[Session] = None,
                      exclude: set = None) -> List[Dict[str, Any]]:
        """构建嵌套字典森林，每个字典带 parent_id 与 children 键"""
        if query is None:
            query = self.ordered_by_ancestry(session=session)
        rows = []
        for node in self.sort_by_ancestry(list(query)):
            if hasattr(node, "to_dict"):
                data = node.to_dict(exclude=exclude)
            else:
                data = {
                    attr.key: getattr(node, attr.key)
                    for attr in sa_inspect(node).mapper.column_attrs
                    if not exclude or attr.key not in exclude
                }
            data["id"] = node.id
            data["parent_id"] = self.parent_id(node)
            rows.append(data)
        return build_tree_list(rows, orphans_as_roots=True)

    # ==================== 维护 ====================

    def check_ancestry_integrity(self, session: Optional[Session] = None) -> bool:
        """扫描全表，遇到第一个问题即抛出

        Raises:
            ValidationError: 路径格式错误
            CycleError: 节点成为自身祖先
            IntegrityError: 引用了不存在的祖先，或深度缓存不一致
        """
        session = self.session_for(session=session)
        columns = [self.id_column, self.column]
        if self.options.cache_depth:
            columns.append(self.depth_column)
        with session.no_autoflush:
            rows = session.query(*columns).all()
        known = {row[0] for row in rows}

        try:
            for row in rows:
                node_id, path = row[0], row[1]
                validate_path(path, node_id=node_id)
                check_self_reference(node_id, path)
                missing = [ancestor_id for ancestor_id in parse(path) if ancestor_id not in known]
                if missing:
                    raise IntegrityError(
                        f"节点 {node_id} 引用了不存在的祖先: {missing}",
                        code=ErrorCode.MISSING_ANCESTOR,
                        node_id=node_id,
                        missing_ids=missing,
                    )
                if self.options.cache_depth and row[2] != depth_of(path):
                    raise IntegrityError(
                        f"节点 {node_id} 深度缓存 {row[2]} 与路径深度 {depth_of(path)} 不一致",
                        code=ErrorCode.DEPTH_OUT_OF_SYNC,
                        node_id=node_id,
                        value=row[2],
                    )
        except AncestryError as e:
            logger.warning(f"{self.model.__name__} 完整性检查失败: {e.message}")
            raise

        logger.info(f"{self.model.__name__} 完整性检查通过，共 {len(rows)} 条记录")
        return True

    def rebuild_depth_cache(self, session: Optional[Session] = None) -> int:
        """按路径重算全表的深度缓存

        Returns:
            深度缓存发生变化的记录数

        Raises:
            ConfigurationError: 未启用 cache_depth
        """
        if not self.options.cache_depth:
            raise ConfigurationError(
                f"{self.model.__name__} 未启用 cache_depth，无法重建深度缓存",
                code=ErrorCode.DEPTH_CACHE_DISABLED,
            )
        session = self.session_for(session=session)
        changed = 0
        for node in session.query(self.model).all():
            expected = depth_of(self.path_of(node))
            if getattr(node, self.options.depth_cache_column) != expected:
                setattr(node, self.options.depth_cache_column, expected)
                changed += 1
        session.flush()
        logger.info(f"{self.model.__name__} 深度缓存重建完成，更新 {changed} 条记录")
        return changed

    # ==================== flush 钩子 ====================

    def validate_node(self, session: Session, node) -> None:
        """持久化前的校验，以数据库中存储的树为准

        依次检查: 路径语法、显式写入的缓存深度、自引用、
        （cycle_check="descendants" 时）新路径是否指向自身的子孙。
        同一次 flush 中所有待写入节点先全部通过校验，再执行任何级联。

        Raises:
            ValidationError: 路径格式错误，或显式写入的缓存深度不是非负整数
            CycleError: 节点成为自身祖先
        """
        key = self.options.ancestry_column
        path = getattr(node, key)
        if path == "":
            setattr(node, key, None)
            path = None

        validate_path(path, node_id=node.id)

        if self.options.cache_depth:
            assigned = get_history(node, self.options.depth_cache_column).added
            if assigned:
                validate_depth_value(assigned[-1], node_id=node.id)

        check_self_reference(node.id, path)

        if self.options.cycle_check == CycleCheck.DESCENDANTS and sa_inspect(node).has_identity:
            old_path = stored_path(session, node, key) or None
            if old_path != path:
                check_descendant_reference(session, self.id_column, self.column, node.id, old_path, path)

    def before_persist(self, session: Session, node, context: CascadeContext) -> None:
        """持久化前：深度缓存 -> 子孙级联（节点已通过 validate_node）"""
        key = self.options.ancestry_column
        path = getattr(node, key) or None

        if self.options.cache_depth:
            cache_depth(node, key, self.options.depth_cache_column)

        if not sa_inspect(node).has_identity:
            return
        old_path = stored_path(session, node, key) or None
        if old_path != path:
            reparent_descendants(session, self, node, old_path, path, context)

    def before_delete(self, session: Session, node, context: CascadeContext) -> None:
        """删除前：按孤儿策略处理子孙"""
        if not sa_inspect(node).has_identity:
            return
        path = stored_path(session, node, self.options.ancestry_column) or None
        resolve_orphans(session, self, node, path, context)


# ==================== 注册表 ====================

_registry: Dict[type, Ancestry] = {}


def has_ancestry(model: type, **options) -> Ancestry:
    """为模型启用物化路径，返回绑定的组件

    Args:
        model: 映射类
        **options: ancestry_column / orphan_strategy / cache_depth /
            depth_cache_column / cycle_check

    Raises:
        ConfigurationError: 未知选项、非法取值，或已映射的模型缺少对应列
    """
    component = Ancestry(model, AncestryOptions.build(**options))
    if sa_inspect(model, raiseerr=False) is not None:
        component.check_columns()
    if model in _registry:
        logger.debug(f"{model.__name__} 的物化路径配置被覆盖")
    _registry[model] = component
    return component


def get_ancestry(model: type) -> Optional[Ancestry]:
    """按 MRO 查找模型绑定的组件，未启用返回 None"""
    for klass in model.__mro__:
        component = _registry.get(klass)
        if component is not None:
            return component
    return None


def remove_ancestry(model: type) -> None:
    """解除模型的物化路径绑定"""
    _registry.pop(model, None)


__all__ = [
    "Ancestry",
    "has_ancestry",
    "get_ancestry",
    "remove_ancestry",
]
