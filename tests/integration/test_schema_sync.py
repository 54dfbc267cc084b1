"""Check that the migrated database matches the ORM metadata.

Requires a PostgreSQL instance with ``alembic upgrade head`` applied.
"""

from collections.abc import Iterator

import pytest
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import Engine, create_engine, inspect, text

from lesson_assistant.config import get_settings
from lesson_assistant.storage.orm import Base

pytestmark = pytest.mark.requires_db


@pytest.fixture()
def db_engine() -> Iterator[Engine]:
    engine = create_engine(get_settings().database_url)
    yield engine
    engine.dispose()


class TestSchemaSync:
    def test_tables_and_columns(self, db_engine: Engine) -> None:
        inspector = inspect(db_engine)
        db_tables = set(inspector.get_table_names())

        missing_tables = set(Base.metadata.tables) - db_tables
        assert not missing_tables, f"Tables missing from DB: {missing_tables}"

        for name, table in Base.metadata.tables.items():
            db_columns = {col["name"] for col in inspector.get_columns(name)}
            missing = {col.name for col in table.columns} - db_columns
            assert not missing, f"Table '{name}': columns missing from DB: {missing}"

    @pytest.mark.parametrize(
        ("table", "constraint"),
        [
            ("transcript_segments", "uq_segment_lesson_order"),
            ("lesson_progress", "uq_progress_user_lesson"),
        ],
    )
    def test_unique_constraints(
        self, db_engine: Engine, table: str, constraint: str
    ) -> None:
        names = {c["name"] for c in inspect(db_engine).get_unique_constraints(table)}
        assert constraint in names

    def test_segment_range_check(self, db_engine: Engine) -> None:
        checks = inspect(db_engine).get_check_constraints("transcript_segments")
        assert "chk_segment_range" in {c["name"] for c in checks}

    def test_migrations_at_head(self, db_engine: Engine) -> None:
        with db_engine.connect() as conn:
            current = conn.execute(
                text("SELECT version_num FROM alembic_version")
            ).scalar_one_or_none()

        head = ScriptDirectory.from_config(Config("alembic.ini")).get_current_head()
        assert current == head, (
            f"DB at revision {current}, head is {head}. Run: alembic upgrade head"
        )
