"""测试数据库会话管理与 CoreModel"""

import pytest
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from yancestry.config import DatabaseSettings
from yancestry.orm import (
    Base,
    CoreModel,
    db_manager,
    db_session_scope,
    get_engine,
    init_database,
    with_db_session,
    to_snake_case,
)
from yancestry.orm.db_session import DatabaseManager


class SessionNote(CoreModel):
    __tablename__ = "test_db_session_notes"
    __table_args__ = {"extend_existing": True}

    title: Mapped[str] = mapped_column(String(50))


@pytest.fixture(autouse=True)
def setup_db():
    engine, session_scope = init_database("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine, tables=[SessionNote.__table__])
    yield session_scope
    session_scope.remove()
    engine.dispose()


class TestDatabaseManager:

    def test_singleton(self):
        assert DatabaseManager() is db_manager

    def test_initialized(self):
        assert db_manager.is_initialized
        assert get_engine() is db_manager.engine

    def test_init_from_config(self):
        engine, _ = init_database(config=DatabaseSettings(url="sqlite:///:memory:"))

        assert engine is get_engine()
        Base.metadata.create_all(bind=engine, tables=[SessionNote.__table__])

    def test_init_requires_url(self):
        with pytest.raises(ValueError):
            DatabaseManager().init()


class TestSessionScope:

    def test_commit(self):
        with db_session_scope() as session:
            session.add(SessionNote(title="a"))

        assert SessionNote.query.count() == 1

    def test_rollback_on_error(self):
        with pytest.raises(RuntimeError):
            with db_session_scope() as session:
                session.add(SessionNote(title="b"))
                session.flush()
                raise RuntimeError("boom")

        assert SessionNote.query.count() == 0

    def test_decorator_injects_session(self):
        @with_db_session()
        def create(title, session):
            session.add(SessionNote(title=title))

        create("c")
        assert [n.title for n in SessionNote.get_all()] == ["c"]


class TestCoreModel:

    def test_tablename_generated(self):
        assert SessionNote.__tablename__ == "test_db_session_notes"

    def test_save_get_update_delete(self):
        note = SessionNote(title="draft").save(commit=True)
        assert note.id is not None
        assert SessionNote.get(note.id).title == "draft"

        note.update(title="final", commit=True)
        assert SessionNote.get(note.id).title == "final"

        note.delete(commit=True)
        assert SessionNote.get(note.id) is None

    def test_system_fields_ignored(self):
        note = SessionNote(id=99, title="x")

        assert note.id is None

    def test_save_all_and_to_dict(self):
        notes = SessionNote.save_all([SessionNote(title="a"), SessionNote(title="b")], commit=True)

        data = notes[0].to_dict(exclude={"created_at", "updated_at"})
        assert data == {"id": notes[0].id, "title": "a"}
        assert len(SessionNote.get_all()) == 2


class TestSnakeCase:

    @pytest.mark.parametrize("name,expected", [
        ("TreeNode", "tree_node"),
        ("APICategory", "api_category"),
        ("Folder", "folder"),
    ])
    def test_to_snake_case(self, name, expected):
        assert to_snake_case(name) == expected
