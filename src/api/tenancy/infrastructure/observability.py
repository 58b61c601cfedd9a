"""Domain probes for tenancy infrastructure.

Following Domain-Oriented Observability patterns, these probes capture
domain-significant events of SQL execution, schema provisioning and the
tenant accessor cache.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Sequence

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class _StructlogProbe:
    """Shared plumbing for the structlog-backed probes below."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def _log(self, level: str, event: str, **fields: Any) -> None:
        # Event fields win over context fields of the same name
        getattr(self._logger, level)(event, **{**self._get_context_kwargs(), **fields})

    def with_context(self, context: ObservationContext):
        """Create a new probe with observation context bound."""
        return type(self)(logger=self._logger, context=context)


class SqlExecutorProbe(Protocol):
    """Domain probe for statement execution."""

    def statement_failed(self, error: Exception) -> None:
        """Record that a statement was rolled back after a driver error."""
        ...

    def batch_failed(self, statement_count: int, error: Exception) -> None:
        """Record that a DDL batch was rolled back."""
        ...

    def with_context(self, context: ObservationContext) -> SqlExecutorProbe:
        ...


class DefaultSqlExecutorProbe(_StructlogProbe):
    """Default implementation of SqlExecutorProbe using structlog."""

    def statement_failed(self, error: Exception) -> None:
        self._log(
            "error",
            "tenant_statement_failed",
            error=str(error),
            error_type=type(error).__name__,
        )

    def batch_failed(self, statement_count: int, error: Exception) -> None:
        self._log(
            "error",
            "tenant_ddl_batch_failed",
            statement_count=statement_count,
            error=str(error),
            error_type=type(error).__name__,
        )


class ProvisioningProbe(Protocol):
    """Domain probe for tenant schema provisioning."""

    def schema_created(self, tenant_id: str, schema_name: str) -> None:
        ...

    def tables_created(self, tenant_id: str, schema_name: str, table_count: int) -> None:
        ...

    def provisioning_failed(
        self,
        tenant_id: str,
        schema_name: str,
        step: str,
        error: Exception,
    ) -> None:
        ...

    def schema_dropped(self, tenant_id: str, schema_name: str) -> None:
        ...

    def with_context(self, context: ObservationContext) -> ProvisioningProbe:
        ...


class DefaultProvisioningProbe(_StructlogProbe):
    """Default implementation of ProvisioningProbe using structlog."""

    def schema_created(self, tenant_id: str, schema_name: str) -> None:
        self._log(
            "info",
            "tenant_schema_created",
            tenant_id=tenant_id,
            schema_name=schema_name,
        )

    def tables_created(self, tenant_id: str, schema_name: str, table_count: int) -> None:
        self._log(
            "info",
            "tenant_tables_created",
            tenant_id=tenant_id,
            schema_name=schema_name,
            table_count=table_count,
        )

    def provisioning_failed(
        self,
        tenant_id: str,
        schema_name: str,
        step: str,
        error: Exception,
    ) -> None:
        self._log(
            "error",
            "tenant_provisioning_failed",
            tenant_id=tenant_id,
            schema_name=schema_name,
            step=step,
            error=str(error),
            error_type=type(error).__name__,
        )

    def schema_dropped(self, tenant_id: str, schema_name: str) -> None:
        self._log(
            "warning",
            "tenant_schema_dropped",
            tenant_id=tenant_id,
            schema_name=schema_name,
        )


class HandleCacheProbe(Protocol):
    """Domain probe for the tenant accessor cache."""

    def accessor_created(self, tenant_id: str, schema_name: str) -> None:
        ...

    def entries_evicted(self, tenant_ids: Sequence[str], remaining: int) -> None:
        ...

    def sweep_failed(self, error: Exception) -> None:
        ...

    def sweeper_started(self, interval_seconds: float, ttl_seconds: float) -> None:
        ...

    def sweeper_stopped(self) -> None:
        ...

    def with_context(self, context: ObservationContext) -> HandleCacheProbe:
        ...


class DefaultHandleCacheProbe(_StructlogProbe):
    """Default implementation of HandleCacheProbe using structlog."""

    def accessor_created(self, tenant_id: str, schema_name: str) -> None:
        self._log(
            "debug",
            "tenant_accessor_created",
            tenant_id=tenant_id,
            schema_name=schema_name,
        )

    def entries_evicted(self, tenant_ids: Sequence[str], remaining: int) -> None:
        self._log(
            "info",
            "tenant_accessors_evicted",
            evicted_count=len(tenant_ids),
            tenant_ids=list(tenant_ids),
            remaining=remaining,
        )

    def sweep_failed(self, error: Exception) -> None:
        self._log(
            "error",
            "tenant_accessor_sweep_failed",
            error=str(error),
            error_type=type(error).__name__,
        )

    def sweeper_started(self, interval_seconds: float, ttl_seconds: float) -> None:
        self._log(
            "info",
            "tenant_accessor_sweeper_started",
            interval_seconds=interval_seconds,
            ttl_seconds=ttl_seconds,
        )

    def sweeper_stopped(self) -> None:
        self._log("info", "tenant_accessor_sweeper_stopped")
