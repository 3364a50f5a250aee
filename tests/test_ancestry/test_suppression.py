"""回调抑制测试

测试内容：
1. without_ancestry_callbacks(node) 只跳过指定节点
2. without_ancestry_callbacks() 跳过全部钩子
3. 嵌套与退出后恢复
4. CascadeContext 记录已处理节点
"""

import pytest
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, sessionmaker, scoped_session

from yancestry.orm import CoreModel, Base
from yancestry.orm.ancestry import (
    AncestryFieldsMixin,
    AncestryMixin,
    CascadeContext,
    without_ancestry_callbacks,
)
from yancestry.orm.ancestry.suppression import (
    all_callbacks_suppressed,
    callbacks_suppressed,
)


# ==================== 测试模型定义 ====================

class QuietNode(CoreModel, AncestryFieldsMixin, AncestryMixin):
    __tablename__ = "test_quiet_node"
    __table_args__ = {'extend_existing': True}

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


def _create_abc():
    a = QuietNode(name="A").save(commit=True)
    b = QuietNode(name="B", parent=a).save(commit=True)
    c = QuietNode(name="C", parent=b).save(commit=True)
    return a, b, c


# ==================== 测试类 ====================

class TestContextFlags:
    """上下文标记测试"""

    def test_default_not_suppressed(self):
        node = object()

        assert callbacks_suppressed(node) is False
        assert all_callbacks_suppressed() is False

    def test_suppress_specific_node(self):
        node, other = object(), object()

        with without_ancestry_callbacks(node):
            assert callbacks_suppressed(node) is True
            assert callbacks_suppressed(other) is False
            assert all_callbacks_suppressed() is False

        assert callbacks_suppressed(node) is False

    def test_suppress_all(self):
        node = object()

        with without_ancestry_callbacks():
            assert all_callbacks_suppressed() is True
            assert callbacks_suppressed(node) is True

        assert all_callbacks_suppressed() is False

    def test_nested_blocks_accumulate(self):
        first, second = object(), object()

        with without_ancestry_callbacks(first):
            with without_ancestry_callbacks(second):
                assert callbacks_suppressed(first) is True
                assert callbacks_suppressed(second) is True
            assert callbacks_suppressed(second) is False

    def test_flag_cleared_after_exception(self):
        node = object()

        with pytest.raises(RuntimeError):
            with without_ancestry_callbacks(node):
                raise RuntimeError("boom")

        assert callbacks_suppressed(node) is False

    def test_cascade_context(self):
        context = CascadeContext()
        node = object()

        assert context.is_suppressed(node) is False
        context.suppress(node)
        assert context.is_suppressed(node) is True


class TestSuppressedFlush:
    """抑制钩子后的 flush 行为测试"""

    def test_move_without_cascade(self, setup_db):
        """跳过节点钩子时只修改节点自身路径，子孙保持不变"""
        a, b, c = _create_abc()
        other = QuietNode(name="Other").save(commit=True)
        session = setup_db()

        with without_ancestry_callbacks(b):
            b.parent = other
            session.commit()

        assert b.ancestor_ids == [other.id]
        assert c.ancestor_ids == [a.id, b.id]

    def test_delete_without_orphan_handling(self, setup_db):
        a, b, c = _create_abc()
        c_id = c.id
        session = setup_db()

        with without_ancestry_callbacks():
            session.delete(b)
            session.commit()

        assert QuietNode.get(c_id) is not None

    def test_hooks_active_again_after_block(self, setup_db):
        a, b, c = _create_abc()
        other = QuietNode(name="Other").save(commit=True)
        session = setup_db()

        with without_ancestry_callbacks(a):
            pass

        b.parent = other
        session.commit()

        assert c.ancestor_ids == [other.id, b.id]
