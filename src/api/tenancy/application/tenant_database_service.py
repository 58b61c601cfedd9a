"""Entry point for tenant-scoped database access."""

from __future__ import annotations

from tenancy.ports.exceptions import TenantContextError
from tenancy.ports.protocols import SchemaProvisioner, TenantAccessor, TenantHandleStore


class TenantDatabaseService:
    """Facade over the accessor cache and the schema provisioner.

    Route handlers call ``get_business_db`` on every tenant-scoped request.
    ``initialize_business_database`` runs once at onboarding (and from the
    backfill script). ``drop_business_schema`` is destructive and belongs
    to operator tooling only.
    """

    def __init__(self, handles: TenantHandleStore, provisioner: SchemaProvisioner):
        self._handles = handles
        self._provisioner = provisioner

    def schema_name_for(self, tenant_id: str) -> str:
        return self._provisioner.schema_name_for(tenant_id)

    def get_business_db(self, tenant_id: str) -> TenantAccessor:
        """Return the accessor for a tenant.

        Raises:
            TenantContextError: If ``tenant_id`` is empty.
        """
        if not tenant_id:
            raise TenantContextError()
        return self._handles.get(tenant_id)

    def initialize_business_database(self, tenant_id: str) -> None:
        """Provision the tenant's schema and tables.

        Not retried. A failure may leave the schema partially created.

        Raises:
            ProvisioningError: If any DDL statement fails.
        """
        self._provisioner.provision(tenant_id)

    def drop_business_schema(self, tenant_id: str) -> None:
        """Drop the tenant's schema with all its data and forget its accessor."""
        self._provisioner.drop(tenant_id)
        self._handles.evict(tenant_id)
