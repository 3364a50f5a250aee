"""节点移动与子孙路径级联测试

测试内容：
1. 移动节点后子孙路径同步改写
2. 深度缓存随移动更新
3. 只在路径真正变化时级联
4. 移动与级联处于同一事务
"""

import pytest
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, sessionmaker, scoped_session

from yancestry.exceptions import ValidationError
from yancestry.orm import CoreModel, Base, db_manager
from yancestry.orm.ancestry import (
    AncestryDepthFieldsMixin,
    AncestryFieldsMixin,
    AncestryMixin,
)


# ==================== 测试模型定义 ====================

class MoveNode(CoreModel, AncestryFieldsMixin, AncestryDepthFieldsMixin, AncestryMixin):
    """节点模型 - 启用深度缓存"""
    __tablename__ = "test_move_node"
    __table_args__ = {'extend_existing': True}
    __cache_depth__ = True

    name: Mapped[str] = mapped_column(String(50))


@pytest.fixture(autouse=True)
def setup_db(memory_engine):
    """初始化数据库"""
    Base.metadata.create_all(bind=memory_engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=memory_engine)
    session_scope = scoped_session(SessionLocal)
    CoreModel.query = session_scope.query_property()
    yield session_scope
    session_scope.remove()


def _create_tree():
    """
    A
    ├── B
    │   └── C
    │       └── D
    └── E
    """
    a = MoveNode(name="A").save(commit=True)
    b = MoveNode(name="B", parent=a).save(commit=True)
    c = MoveNode(name="C", parent=b).save(commit=True)
    d = MoveNode(name="D", parent=c).save(commit=True)
    e = MoveNode(name="E", parent=a).save(commit=True)
    return a, b, c, d, e


# ==================== 测试类 ====================

class TestReparenting:
    """节点移动测试"""

    def test_move_leaf_under_root(self):
        """C 直接挂到 A 下（跳过 B）"""
        a, b, c, d, e = _create_tree()

        c.parent = a
        c.save(commit=True)

        assert c.ancestor_ids == [a.id]
        assert c.id not in b.descendant_ids()
        assert d.ancestor_ids == [a.id, c.id]

    def test_move_subtree_updates_descendants(self):
        """B 子树移动到 E 下"""
        a, b, c, d, e = _create_tree()

        b.parent = e
        b.save(commit=True)

        assert b.path_ids == [a.id, e.id, b.id]
        assert c.path_ids == [a.id, e.id, b.id, c.id]
        assert d.path_ids == [a.id, e.id, b.id, c.id, d.id]
        assert e.descendant_ids() == [b.id, c.id, d.id]

    def test_descendant_prefix_matches_moved_node(self):
        """子孙新路径的前 depth(N)+1 段等于 N 的 path_ids"""
        a, b, c, d, e = _create_tree()

        b.parent = e
        b.save(commit=True)

        for descendant in (c, d):
            assert descendant.path_ids[:b.depth + 1] == b.path_ids

    def test_make_subtree_root(self):
        a, b, c, d, e = _create_tree()

        b.parent = None
        b.save(commit=True)

        assert b.is_root() is True
        assert c.ancestor_ids == [b.id]
        assert d.ancestor_ids == [b.id, c.id]
        assert a.descendant_ids() == [e.id]

    def test_set_parent_id(self):
        a, b, c, d, e = _create_tree()

        c.parent_id = e.id
        c.save(commit=True)

        assert c.ancestor_ids == [a.id, e.id]
        assert d.ancestor_ids == [a.id, e.id, c.id]

    def test_move_by_path_assignment(self):
        """直接改写路径列同样触发级联"""
        a, b, c, d, e = _create_tree()

        c.ancestry = str(a.id)
        c.save(commit=True)

        assert d.ancestor_ids == [a.id, c.id]

    def test_unchanged_path_does_not_cascade(self):
        a, b, c, d, e = _create_tree()

        b.name = "B renamed"
        b.save(commit=True)

        assert d.ancestor_ids == [a.id, b.id, c.id]

    def test_move_parent_and_child_in_one_flush(self):
        a, b, c, d, e = _create_tree()

        b.parent = e
        c.parent = a
        MoveNode.query.session.commit()

        assert b.ancestor_ids == [a.id, e.id]
        assert c.ancestor_ids == [a.id]
        assert d.ancestor_ids == [a.id, c.id]

    def test_move_into_moving_subtree_in_one_flush(self):
        """移入一棵同时被移动的子树，随子树一起平移并带上自己的子孙"""
        a, b, c, d, e = _create_tree()
        x = MoveNode(name="X").save(commit=True)
        y = MoveNode(name="Y", parent=x).save(commit=True)

        x.parent = c
        b.parent = None
        MoveNode.query.session.commit()

        assert d.ancestor_ids == [b.id, c.id]
        assert x.ancestor_ids == [b.id, c.id]
        assert x.ancestry_depth == 2
        assert y.ancestor_ids == [b.id, c.id, x.id]
        assert y.ancestry_depth == 3


class TestDepthCache:
    """深度缓存测试"""

    def test_depth_cached_on_create(self):
        a, b, c, d, e = _create_tree()

        for node in (a, b, c, d, e):
            assert node.ancestry_depth == node.depth

    def test_depth_cache_follows_move(self):
        a, b, c, d, e = _create_tree()

        b.parent = e
        b.save(commit=True)

        assert b.ancestry_depth == 2
        assert c.ancestry_depth == 3
        assert d.ancestry_depth == 4

    def test_depth_cache_follows_promotion(self):
        a, b, c, d, e = _create_tree()

        c.parent = None
        c.save(commit=True)

        assert c.ancestry_depth == 0
        assert d.ancestry_depth == 1

    def test_user_supplied_depth_is_overwritten(self):
        a = MoveNode(name="A").save(commit=True)
        b = MoveNode(name="B", parent=a)
        b.ancestry_depth = 7
        b.save(commit=True)

        assert b.ancestry_depth == 1


class TestFailedMove:
    """移动失败测试"""

    def test_invalid_path_rejected(self, setup_db):
        a, b, c, d, e = _create_tree()
        session = setup_db()

        c.ancestry = "not/a/path"
        with pytest.raises(ValidationError):
            session.flush()
        session.rollback()

        assert c.ancestor_ids == [a.id, b.id]
        assert d.ancestor_ids == [a.id, b.id, c.id]

    def test_rollback_restores_subtree(self, setup_db):
        """级联写入与节点自身写入在同一事务中"""
        a, b, c, d, e = _create_tree()
        session = setup_db()

        b.parent = e
        session.flush()
        assert d.ancestor_ids == [a.id, e.id, b.id, c.id]

        session.rollback()

        assert b.ancestor_ids == [a.id]
        assert d.ancestor_ids == [a.id, b.id, c.id]
