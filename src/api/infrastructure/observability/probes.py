"""Domain probes for the shared database pool.

Every tenant borrows from the same pool, so these events describe pool
health for the whole process rather than for one business.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class ConnectionProbe(Protocol):
    """Domain probe for the shared connection pool."""

    def pool_initialized(
        self,
        target: str,
        min_conn: int,
        max_conn: int,
        statement_timeout_ms: int,
    ) -> None:
        """Record that the pool opened its initial connections."""
        ...

    def pool_initialization_failed(self, target: str, error: Exception) -> None:
        ...

    def connection_checked_out(self) -> None:
        ...

    def connection_checked_in(self) -> None:
        ...

    def pool_exhausted(self, max_conn: int) -> None:
        """Record that every pooled connection was in use."""
        ...

    def connection_return_failed(self, error: Exception) -> None:
        """Record that a connection could not be handed back and was dropped."""
        ...

    def pool_closed(self) -> None:
        ...

    def with_context(self, context: ObservationContext) -> ConnectionProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultConnectionProbe:
    """structlog implementation of ConnectionProbe."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        if self._context is None:
            return {}
        return self._context.as_dict()

    def _log(self, level: str, event: str, **fields: Any) -> None:
        getattr(self._logger, level)(event, **{**self._get_context_kwargs(), **fields})

    def with_context(self, context: ObservationContext) -> DefaultConnectionProbe:
        return DefaultConnectionProbe(logger=self._logger, context=context)

    def pool_initialized(
        self,
        target: str,
        min_conn: int,
        max_conn: int,
        statement_timeout_ms: int,
    ) -> None:
        self._log(
            "info",
            "shared_pool_initialized",
            target=target,
            min_connections=min_conn,
            max_connections=max_conn,
            statement_timeout_ms=statement_timeout_ms or None,
        )

    def pool_initialization_failed(self, target: str, error: Exception) -> None:
        self._log(
            "error",
            "shared_pool_initialization_failed",
            target=target,
            error=str(error),
            error_type=type(error).__name__,
        )

    def connection_checked_out(self) -> None:
        self._log("debug", "shared_pool_connection_checked_out")

    def connection_checked_in(self) -> None:
        self._log("debug", "shared_pool_connection_checked_in")

    def pool_exhausted(self, max_conn: int) -> None:
        self._log("warning", "shared_pool_exhausted", max_connections=max_conn)

    def connection_return_failed(self, error: Exception) -> None:
        self._log(
            "error",
            "shared_pool_connection_discarded",
            error=str(error),
            error_type=type(error).__name__,
        )

    def pool_closed(self) -> None:
        self._log("info", "shared_pool_closed")
