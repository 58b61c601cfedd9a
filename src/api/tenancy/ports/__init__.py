"""Ports for the Tenancy bounded context."""

from tenancy.ports.exceptions import ProvisioningError, TenantContextError
from tenancy.ports.protocols import (
    ExecutableStatement,
    SchemaProvisioner,
    SqlExecutor,
    TenantAccessor,
    TenantHandleStore,
)

__all__ = [
    "ExecutableStatement",
    "ProvisioningError",
    "SchemaProvisioner",
    "SqlExecutor",
    "TenantAccessor",
    "TenantContextError",
    "TenantHandleStore",
]
