"""Provision schemas for tenants that were onboarded before schemas existed."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from infrastructure.database.exceptions import DatabaseError
from tenancy.application.observability import BackfillProbe, DefaultBackfillProbe
from tenancy.application.tenant_database_service import TenantDatabaseService
from tenancy.domain.schema_names import SchemaNameTooLongError
from tenancy.ports.exceptions import ProvisioningError


@dataclass(frozen=True)
class ExistingTenant:
    """A business row from the shared catalog."""

    id: str
    name: str


@dataclass
class BackfillReport:
    """Outcome of one backfill run."""

    provisioned: list[ExistingTenant] = field(default_factory=list)
    failed: list[tuple[ExistingTenant, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.provisioned) + len(self.failed)

    @property
    def succeeded(self) -> bool:
        return not self.failed


def backfill_tenant_schemas(
    tenants: Iterable[ExistingTenant],
    service: TenantDatabaseService,
    probe: BackfillProbe | None = None,
) -> BackfillReport:
    """Provision a schema for every tenant, one at a time.

    A tenant that fails is recorded and skipped; the run continues with the
    next one. Nothing is retried.

    Args:
        tenants: Tenants to provision
        service: Service that performs the provisioning
        probe: Optional probe for observability

    Returns:
        Which tenants were provisioned and which failed, with the error.
    """
    probe = probe or DefaultBackfillProbe()
    tenants = list(tenants)
    report = BackfillReport()

    probe.backfill_started(len(tenants))
    for tenant in tenants:
        try:
            schema_name = service.schema_name_for(tenant.id)
        except SchemaNameTooLongError as e:
            probe.tenant_failed(tenant.id, e.schema_name, e)
            report.failed.append((tenant, str(e)))
            continue
        try:
            service.initialize_business_database(tenant.id)
        except (ProvisioningError, DatabaseError) as e:
            probe.tenant_failed(tenant.id, schema_name, e)
            report.failed.append((tenant, str(e)))
            continue
        probe.tenant_provisioned(tenant.id, schema_name)
        report.provisioned.append(tenant)

    probe.backfill_finished(len(report.provisioned), len(report.failed))
    return report
