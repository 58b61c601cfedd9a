"""Database-specific exceptions shared by all bounded contexts."""


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when a connection cannot be obtained from the pool."""

    pass


class QueryError(DatabaseError):
    """Raised when a SQL statement cannot be built or fails to execute.

    Covers malformed templates, driver-level execution failures and
    constraint violations. The driver exception is kept as ``__cause__``.
    """

    def __init__(self, message: str, query: str | None = None):
        super().__init__(message)
        self.query = query
