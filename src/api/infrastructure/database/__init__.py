"""Database infrastructure - shared connection primitives."""

from infrastructure.database.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    QueryError,
)

__all__ = [
    "DatabaseConnectionError",
    "DatabaseError",
    "QueryError",
]
