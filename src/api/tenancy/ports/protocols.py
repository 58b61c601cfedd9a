"""Protocols for executing tenant-scoped SQL.

These protocols let the accessor and provisioner depend on an abstraction
rather than on psycopg2 connection handling directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from psycopg2.sql import Composable


@dataclass(frozen=True)
class ExecutableStatement:
    """A composed SQL statement with its bound parameter values.

    ``query`` contains one ``%s`` placeholder per entry in ``params``, in
    the same order. Parameter values are never interpolated into the SQL
    text by this layer; the driver binds them.
    """

    query: Composable
    params: tuple[Any, ...] = ()


class SqlExecutor(Protocol):
    """Runs composed statements against the shared database."""

    def fetch_all(self, statement: ExecutableStatement) -> list[dict[str, Any]]:
        """Execute a statement in its own transaction and return all rows.

        Statements without a result set return an empty list.
        """
        ...

    def execute(self, statement: ExecutableStatement) -> int:
        """Execute a statement in its own transaction.

        Returns:
            The number of rows affected.
        """
        ...

    def execute_batch(
        self,
        statements: Sequence[Composable],
        timeout_ms: int | None = None,
    ) -> None:
        """Execute DDL statements in one transaction.

        Args:
            statements: Parameterless statements, run in order.
            timeout_ms: Optional statement timeout for this transaction.
        """
        ...


class TenantAccessor(Protocol):
    """Data access bound to a single tenant schema."""

    @property
    def tenant_id(self) -> str: ...

    @property
    def schema_name(self) -> str: ...

    def query(self, template: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]: ...

    def execute(self, template: str, params: Sequence[Any] = ()) -> int: ...


class TenantHandleStore(Protocol):
    """Hands out cached accessors per tenant."""

    def get(self, tenant_id: str) -> TenantAccessor:
        """Return the tenant's accessor, building it on first use."""
        ...

    def evict(self, tenant_id: str) -> bool:
        """Drop the tenant's cached accessor, if any."""
        ...


class SchemaProvisioner(Protocol):
    """Creates and destroys tenant schemas."""

    def schema_name_for(self, tenant_id: str) -> str: ...

    def provision(self, tenant_id: str) -> None:
        """Create the tenant schema and its tables.

        Raises:
            ProvisioningError: If any DDL statement fails.
        """
        ...

    def drop(self, tenant_id: str) -> None:
        """Drop the tenant schema and all its data."""
        ...
