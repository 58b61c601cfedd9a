"""DDL for creating and dropping per-tenant schemas."""

from __future__ import annotations

from enum import Enum

from psycopg2 import sql

from infrastructure.database.exceptions import QueryError
from tenancy.domain.schema_names import DEFAULT_SCHEMA_PREFIX, resolve_schema_name
from tenancy.domain.value_objects import (
    RequestStatus,
    ScheduleFrequency,
    ScheduleStatus,
    TenantTable,
)
from tenancy.infrastructure.observability import (
    DefaultProvisioningProbe,
    ProvisioningProbe,
)
from tenancy.ports.exceptions import ProvisioningError
from tenancy.ports.protocols import SqlExecutor

# The enum class name is the type name inside the tenant schema
ENUM_TYPES: tuple[type[Enum], ...] = (RequestStatus, ScheduleFrequency, ScheduleStatus)

# Column definitions per table; {schema} expands to the quoted schema name
TABLE_COLUMNS: dict[TenantTable, str] = {
    TenantTable.AVAILABILITY_REQUEST: """
        id TEXT PRIMARY KEY,
        "startDate" TIMESTAMP NOT NULL,
        "endDate" TIMESTAMP NOT NULL,
        status {schema}."RequestStatus" NOT NULL DEFAULT 'OPEN',
        frequency {schema}."ScheduleFrequency",
        "createdByUserId" TEXT NOT NULL,
        "createdAt" TIMESTAMP NOT NULL DEFAULT NOW()
    """,
    TenantTable.AVAILABILITY_ENTRY: """
        id TEXT PRIMARY KEY,
        "requestId" TEXT NOT NULL,
        "userId" TEXT NOT NULL,
        date TIMESTAMP NOT NULL,
        blocks JSONB NOT NULL,
        note TEXT,
        "createdAt" TIMESTAMP NOT NULL DEFAULT NOW(),
        UNIQUE ("requestId", "userId", date)
    """,
    TenantTable.SCHEDULE_WEEK: """
        id TEXT PRIMARY KEY,
        "startDate" TIMESTAMP NOT NULL,
        "endDate" TIMESTAMP NOT NULL,
        status {schema}."ScheduleStatus" NOT NULL DEFAULT 'DRAFT',
        "createdByUserId" TEXT NOT NULL,
        "availabilityRequestId" TEXT,
        "templateId" TEXT,
        rows JSONB,
        columns JSONB,
        "createdAt" TIMESTAMP NOT NULL DEFAULT NOW(),
        "updatedAt" TIMESTAMP NOT NULL DEFAULT NOW()
    """,
    TenantTable.SHIFT_ASSIGNMENT: """
        id TEXT PRIMARY KEY,
        "scheduleId" TEXT NOT NULL,
        date TIMESTAMP NOT NULL,
        "startTime" TEXT NOT NULL DEFAULT '09:00',
        "endTime" TEXT NOT NULL DEFAULT '17:00',
        position TEXT NOT NULL,
        "shiftType" TEXT NOT NULL DEFAULT 'morning',
        "assignedUserId" TEXT,
        "createdAt" TIMESTAMP NOT NULL DEFAULT NOW()
    """,
    TenantTable.SCHEDULE_TEMPLATE: """
        id TEXT PRIMARY KEY,
        name TEXT,
        rows JSONB,
        columns JSONB,
        "createdAt" TIMESTAMP NOT NULL DEFAULT NOW(),
        "updatedAt" TIMESTAMP NOT NULL DEFAULT NOW()
    """,
    TenantTable.TEMPLATE_EMPLOYEE_ASSIGNMENT: """
        id TEXT PRIMARY KEY,
        "templateId" TEXT NOT NULL,
        "userId" TEXT NOT NULL,
        "createdAt" TIMESTAMP NOT NULL DEFAULT NOW(),
        UNIQUE ("templateId", "userId")
    """,
    TenantTable.CALENDAR_INTEGRATION: """
        id TEXT PRIMARY KEY,
        "userId" TEXT NOT NULL,
        provider TEXT NOT NULL,
        "accessToken" TEXT,
        "refreshToken" TEXT,
        "calendarId" TEXT,
        enabled BOOLEAN NOT NULL DEFAULT true,
        "createdAt" TIMESTAMP NOT NULL DEFAULT NOW(),
        "updatedAt" TIMESTAMP NOT NULL DEFAULT NOW(),
        UNIQUE ("userId", provider)
    """,
}

# (index name, table, column)
INDEXES: tuple[tuple[str, TenantTable, str], ...] = (
    ("idx_availability_request_user", TenantTable.AVAILABILITY_REQUEST, "createdByUserId"),
    ("idx_availability_entry_request", TenantTable.AVAILABILITY_ENTRY, "requestId"),
    ("idx_availability_entry_user", TenantTable.AVAILABILITY_ENTRY, "userId"),
    ("idx_schedule_week_created_by", TenantTable.SCHEDULE_WEEK, "createdByUserId"),
    ("idx_shift_assignment_schedule", TenantTable.SHIFT_ASSIGNMENT, "scheduleId"),
    ("idx_shift_assignment_user", TenantTable.SHIFT_ASSIGNMENT, "assignedUserId"),
    ("idx_template_assignment_template", TenantTable.TEMPLATE_EMPLOYEE_ASSIGNMENT, "templateId"),
    ("idx_template_assignment_user", TenantTable.TEMPLATE_EMPLOYEE_ASSIGNMENT, "userId"),
)


class SchemaProvisioner:
    """Creates and drops the schema that isolates one tenant's tables.

    Provisioning runs in two steps. The schema is created first
    (``IF NOT EXISTS``) and committed on its own. Enum types, tables and
    indexes then run as a single batch in one transaction, bounded by
    ``timeout_ms``.

    Tables and indexes are guarded with ``IF NOT EXISTS``; the enum types
    are not. Provisioning an already provisioned tenant therefore fails at
    the 'tables' step and leaves the existing objects untouched.
    """

    def __init__(
        self,
        executor: SqlExecutor,
        schema_prefix: str = DEFAULT_SCHEMA_PREFIX,
        timeout_ms: int | None = None,
        probe: ProvisioningProbe | None = None,
    ):
        self._executor = executor
        self._schema_prefix = schema_prefix
        self._timeout_ms = timeout_ms
        self._probe = probe or DefaultProvisioningProbe()

    def schema_name_for(self, tenant_id: str) -> str:
        return resolve_schema_name(tenant_id, self._schema_prefix)

    def provision(self, tenant_id: str) -> None:
        """Create the tenant schema with all enum types, tables and indexes.

        Raises:
            ProvisioningError: If any DDL fails. The schema may already exist
                when the error is raised from the 'tables' step.
        """
        schema_name = self.schema_name_for(tenant_id)

        try:
            self._executor.execute_batch(
                [create_schema_statement(schema_name)],
                timeout_ms=self._timeout_ms,
            )
        except QueryError as e:
            self._probe.provisioning_failed(tenant_id, schema_name, "schema", e)
            raise ProvisioningError(tenant_id, schema_name, "schema") from e
        self._probe.schema_created(tenant_id, schema_name)

        try:
            self._executor.execute_batch(
                create_tables_statements(schema_name),
                timeout_ms=self._timeout_ms,
            )
        except QueryError as e:
            self._probe.provisioning_failed(tenant_id, schema_name, "tables", e)
            raise ProvisioningError(tenant_id, schema_name, "tables") from e
        self._probe.tables_created(tenant_id, schema_name, len(TABLE_COLUMNS))

    def drop(self, tenant_id: str) -> None:
        """Drop the tenant schema and everything in it.

        Destructive and irreversible. Callers are responsible for confirming
        intent before calling this.

        Raises:
            QueryError: If the drop fails.
        """
        schema_name = self.schema_name_for(tenant_id)
        self._executor.execute_batch([drop_schema_statement(schema_name)])
        self._probe.schema_dropped(tenant_id, schema_name)


def create_schema_statement(schema_name: str) -> sql.Composable:
    return sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(sql.Identifier(schema_name))


def drop_schema_statement(schema_name: str) -> sql.Composable:
    return sql.SQL("DROP SCHEMA IF EXISTS {} CASCADE").format(sql.Identifier(schema_name))


def create_tables_statements(schema_name: str) -> list[sql.Composable]:
    """Enum types, then tables, then indexes for one tenant schema."""
    schema = sql.Identifier(schema_name)
    statements: list[sql.Composable] = []

    for enum_type in ENUM_TYPES:
        statements.append(
            sql.SQL("CREATE TYPE {} AS ENUM ({})").format(
                sql.Identifier(schema_name, enum_type.__name__),
                sql.SQL(", ").join(sql.Literal(member.value) for member in enum_type),
            )
        )

    for table, columns in TABLE_COLUMNS.items():
        statements.append(
            sql.SQL("CREATE TABLE IF NOT EXISTS {} ({})").format(
                sql.Identifier(schema_name, table.value),
                sql.SQL(columns).format(schema=schema),
            )
        )

    for index_name, table, column in INDEXES:
        statements.append(
            sql.SQL("CREATE INDEX IF NOT EXISTS {} ON {} ({})").format(
                sql.Identifier(index_name),
                sql.Identifier(schema_name, table.value),
                sql.Identifier(column),
            )
        )

    return statements
