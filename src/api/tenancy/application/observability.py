"""Domain probes for tenancy application services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext

_EVENT_FIELDS = frozenset({"tenant_id", "schema_name"})


class BackfillProbe(Protocol):
    """Domain probe for backfilling schemas of existing tenants."""

    def backfill_started(self, tenant_count: int) -> None:
        """Record that a backfill run started."""
        ...

    def tenant_provisioned(self, tenant_id: str, schema_name: str) -> None:
        """Record that one tenant's schema was provisioned."""
        ...

    def tenant_failed(self, tenant_id: str, schema_name: str, error: Exception) -> None:
        """Record that one tenant could not be provisioned."""
        ...

    def backfill_finished(self, succeeded: int, failed: int) -> None:
        """Record the outcome of a backfill run."""
        ...

    def with_context(self, context: ObservationContext) -> BackfillProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultBackfillProbe:
    """Default implementation of BackfillProbe using structlog."""

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
        # Events carry their own identity fields
        return {
            key: value
            for key, value in self._context.as_dict().items()
            if key not in _EVENT_FIELDS
        }

    def with_context(self, context: ObservationContext) -> DefaultBackfillProbe:
        """Create a new probe with observation context bound."""
        return DefaultBackfillProbe(logger=self._logger, context=context)

    def backfill_started(self, tenant_count: int) -> None:
        self._logger.info(
            "tenant_backfill_started",
            tenant_count=tenant_count,
            **self._get_context_kwargs(),
        )

    def tenant_provisioned(self, tenant_id: str, schema_name: str) -> None:
        self._logger.info(
            "tenant_backfill_provisioned",
            tenant_id=tenant_id,
            schema_name=schema_name,
            **self._get_context_kwargs(),
        )

    def tenant_failed(self, tenant_id: str, schema_name: str, error: Exception) -> None:
        self._logger.error(
            "tenant_backfill_failed",
            tenant_id=tenant_id,
            schema_name=schema_name,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def backfill_finished(self, succeeded: int, failed: int) -> None:
        self._logger.info(
            "tenant_backfill_finished",
            succeeded=succeeded,
            failed=failed,
            **self._get_context_kwargs(),
        )
