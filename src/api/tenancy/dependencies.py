"""FastAPI dependencies and wiring for the Tenancy bounded context.

The authentication layer attaches an ``AuthenticatedCaller`` to
``request.state.caller``. The dependencies here turn it into a tenant
context and hand route handlers the cached accessor for that tenant.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from infrastructure.database.connection_pool import ConnectionPool
from infrastructure.settings import DatabaseSettings, TenancySettings
from shared_kernel.middleware.observability import (
    DefaultTenantContextProbe,
    TenantContextProbe,
)
from shared_kernel.middleware.tenant_context import AuthenticatedCaller, TenantContext
from tenancy.application.tenant_database_service import TenantDatabaseService
from tenancy.infrastructure.data_accessor import TenantDataAccessor
from tenancy.infrastructure.handle_cache import TenantHandleCache
from tenancy.infrastructure.schema_provisioner import SchemaProvisioner
from tenancy.infrastructure.sql_executor import PostgresSqlExecutor
from tenancy.ports.exceptions import TenantContextError


def build_tenant_database_service(
    pool: ConnectionPool,
    database_settings: DatabaseSettings,
    tenancy_settings: TenancySettings,
) -> tuple[TenantDatabaseService, TenantHandleCache]:
    """Wire the executor, provisioner and accessor cache over one pool.

    Every tenant shares ``pool``; isolation comes from schema-qualified
    SQL, not from per-tenant connections.

    Returns:
        The service and the cache backing it. The caller owns the cache's
        sweeper lifecycle (``start``/``stop``).
    """
    executor = PostgresSqlExecutor(pool)
    provisioner = SchemaProvisioner(
        executor,
        schema_prefix=tenancy_settings.schema_prefix,
        timeout_ms=database_settings.provisioning_timeout_ms,
    )

    def create_accessor(tenant_id: str) -> TenantDataAccessor:
        return TenantDataAccessor(
            tenant_id=tenant_id,
            schema_name=provisioner.schema_name_for(tenant_id),
            executor=executor,
        )

    cache = TenantHandleCache(
        factory=create_accessor,
        ttl_seconds=tenancy_settings.handle_ttl_seconds,
        sweep_interval_seconds=tenancy_settings.sweep_interval_seconds,
    )
    return TenantDatabaseService(handles=cache, provisioner=provisioner), cache


def get_tenant_context_probe() -> TenantContextProbe:
    """Get TenantContextProbe instance."""
    return DefaultTenantContextProbe()


def get_tenant_database_service(request: Request) -> TenantDatabaseService:
    """Get the TenantDatabaseService built during application startup."""
    return request.app.state.tenant_database_service


def get_authenticated_caller(
    request: Request,
    probe: Annotated[TenantContextProbe, Depends(get_tenant_context_probe)],
) -> AuthenticatedCaller:
    """Get the caller attached by the authentication layer.

    Raises:
        HTTPException: 401 if the request carries no authenticated caller
    """
    caller = getattr(request.state, "caller", None)
    if caller is None:
        probe.caller_missing()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return caller


def resolve_tenant_context(
    caller: Annotated[AuthenticatedCaller, Depends(get_authenticated_caller)],
    probe: Annotated[TenantContextProbe, Depends(get_tenant_context_probe)],
) -> TenantContext:
    """Resolve the tenant from the caller's identity.

    The tenant always comes from the authenticated identity; request
    headers and parameters are never consulted.

    Raises:
        TenantContextError: If the caller has no business attached
    """
    if not caller.business_id:
        probe.caller_without_tenant(caller.user_id)
        raise TenantContextError(user_id=caller.user_id)

    probe.tenant_resolved(caller.business_id, caller.user_id)
    return TenantContext(tenant_id=caller.business_id, user_id=caller.user_id)


def get_business_db(
    request: Request,
    context: Annotated[TenantContext, Depends(resolve_tenant_context)],
    service: Annotated[TenantDatabaseService, Depends(get_tenant_database_service)],
) -> TenantDataAccessor:
    """Get the data accessor for the caller's tenant.

    The accessor is also attached to ``request.state.business_db`` together
    with the resolved ``request.state.tenant_context``.
    """
    accessor = service.get_business_db(context.tenant_id)
    request.state.tenant_context = context
    request.state.business_db = accessor
    return accessor
