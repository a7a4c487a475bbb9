import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from scrubber.config.settings import Settings
from scrubber.database.connection import apply_schema, close_pool, get_connection, init_pool


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "scrubber_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            apply_schema(conn)
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to point at one")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def seed_project(db_conn: psycopg.Connection[Any]) -> Generator[int, None, None]:
    """A project with a default processing config. Deleted with everything it owns."""
    with db_conn.cursor() as cur:
        cur.execute("INSERT INTO projects (name) VALUES ('integration') RETURNING id")
        row = cur.fetchone()
        assert row is not None
        project_id = row[0]
        cur.execute("INSERT INTO processing_configs (project_id) VALUES (%s)", (project_id,))
    db_conn.commit()
    try:
        yield project_id
    finally:
        db_conn.rollback()
        db_conn.execute("DELETE FROM projects WHERE id = %s", (project_id,))
        db_conn.commit()


@pytest.fixture
def add_source(db_conn: psycopg.Connection[Any]) -> Callable[..., int]:
    """Insert a source with its field mappings; returns the source id."""

    def _add(
        project_id: int,
        file_path: str = "data.csv",
        status: str = "parsed",
        record_count: int | None = 3,
        mappings: dict[str, str] | None = None,
    ) -> int:
        with db_conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO sources (project_id, name, file_path, file_type, status, record_count)
                VALUES (%s, %s, %s, 'csv', %s, %s)
                RETURNING id
                """,
                (project_id, file_path, file_path, status, record_count),
            )
            row = cur.fetchone()
            assert row is not None
            source_id = row[0]
            for target_field, column in (mappings or {"message_content": "message"}).items():
                cur.execute(
                    """
                    INSERT INTO field_mappings (source_id, source_column, target_field)
                    VALUES (%s, %s, %s)
                    """,
                    (source_id, column, target_field),
                )
        db_conn.commit()
        return source_id

    return _add


@pytest.fixture
def files_root(tmp_path: Path) -> Path:
    return tmp_path
