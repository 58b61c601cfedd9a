"""Application services for the Tenancy bounded context."""

from tenancy.application.backfill import (
    BackfillReport,
    ExistingTenant,
    backfill_tenant_schemas,
)
from tenancy.application.tenant_database_service import TenantDatabaseService

__all__ = [
    "BackfillReport",
    "ExistingTenant",
    "TenantDatabaseService",
    "backfill_tenant_schemas",
]
