"""Domain probe for tenant context resolution.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to resolving the tenant of an
authenticated caller.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext

_EVENT_FIELDS = frozenset({"tenant_id", "user_id"})


class TenantContextProbe(Protocol):
    """Domain probe for tenant context resolution operations."""

    def tenant_resolved(self, tenant_id: str, user_id: str) -> None:
        """Record that the caller's tenant was resolved."""
        ...

    def caller_without_tenant(self, user_id: str) -> None:
        """Record that an authenticated caller has no business attached."""
        ...

    def caller_missing(self) -> None:
        """Record that no authenticated caller was attached to the request."""
        ...

    def with_context(self, context: ObservationContext) -> TenantContextProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantContextProbe:
    """Default implementation of TenantContextProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultTenantContextProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantContextProbe(logger=self._logger, context=context)

    def tenant_resolved(self, tenant_id: str, user_id: str) -> None:
        self._logger.debug(
            "tenant_context_resolved",
            tenant_id=tenant_id,
            user_id=user_id,
            **self._get_context_kwargs(),
        )

    def caller_without_tenant(self, user_id: str) -> None:
        self._logger.warning(
            "tenant_context_missing_business",
            user_id=user_id,
            message="Authenticated user is not associated with a business",
            **self._get_context_kwargs(),
        )

    def caller_missing(self) -> None:
        self._logger.warning(
            "tenant_context_missing_caller",
            message="No authenticated caller attached to the request",
            **self._get_context_kwargs(),
        )
