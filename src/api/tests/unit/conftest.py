"""Unit test fixtures with mocked dependencies."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
from psycopg2 import sql

from tenancy.ports.protocols import ExecutableStatement


def render(composable: Any) -> str:
    """Render a psycopg2.sql object to text without a database connection.

    Placeholders render as ``%s`` and literals with ``repr``; this is for
    asserting on statement shape, not for executing SQL.
    """
    if isinstance(composable, ExecutableStatement):
        return render(composable.query)
    if isinstance(composable, sql.Composed):
        return "".join(render(part) for part in composable.seq)
    if isinstance(composable, sql.SQL):
        return composable.string
    if isinstance(composable, sql.Identifier):
        return ".".join('"%s"' % s for s in composable.strings)
    if isinstance(composable, sql.Placeholder):
        return "%s"
    if isinstance(composable, sql.Literal):
        return repr(composable.wrapped)
    raise TypeError(f"Cannot render {type(composable).__name__}")


def normalize(text: str) -> str:
    """Collapse runs of whitespace so multi-line templates compare simply."""
    return " ".join(text.split())


@pytest.fixture
def render_sql():
    """Provide the SQL renderer for asserting on composed statements."""
    return lambda composable: normalize(render(composable))


@pytest.fixture
def mock_db_settings():
    """Provide test database settings."""
    from infrastructure.settings import DatabaseSettings

    return DatabaseSettings(
        host="testhost",
        port=5432,
        database="testdb",
        username="testuser",
        password="testpass",
    )


@pytest.fixture
def mock_psycopg2_connection():
    """Provide a mocked psycopg2 connection."""
    conn = MagicMock()
    conn.closed = False

    cursor = MagicMock()
    cursor.fetchall.return_value = []
    cursor.fetchone.return_value = (1,)
    cursor.description = None
    cursor.rowcount = 0

    # Set up context manager
    cursor.__enter__ = MagicMock(return_value=cursor)
    cursor.__exit__ = MagicMock(return_value=False)
    conn.cursor.return_value = cursor

    return conn, cursor


@pytest.fixture
def mock_pool(mock_psycopg2_connection):
    """Provide a mocked ConnectionPool handing out the mocked connection."""
    conn, _ = mock_psycopg2_connection
    pool = MagicMock()
    pool.get_connection.return_value = conn
    return pool
