"""Domain value objects for the Tenancy bounded context."""

from __future__ import annotations

from enum import Enum


class TenantTable(str, Enum):
    """Every table that lives inside a tenant schema.

    This enum is the allow-list for schema qualification: only these names
    are ever rewritten to ``"<schema>"."<table>"``.
    """

    AVAILABILITY_REQUEST = "AvailabilityRequest"
    AVAILABILITY_ENTRY = "AvailabilityEntry"
    SCHEDULE_WEEK = "ScheduleWeek"
    SHIFT_ASSIGNMENT = "ShiftAssignment"
    SCHEDULE_TEMPLATE = "ScheduleTemplate"
    TEMPLATE_EMPLOYEE_ASSIGNMENT = "TemplateEmployeeAssignment"
    CALENDAR_INTEGRATION = "CalendarIntegration"


class RequestStatus(str, Enum):
    """Lifecycle of an availability request."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class ScheduleFrequency(str, Enum):
    """How often availability is collected."""

    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"


class ScheduleStatus(str, Enum):
    """Lifecycle of a schedule week."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


# Tables whose rows carry an "updatedAt" column refreshed on every update
TABLES_WITH_UPDATED_AT: frozenset[TenantTable] = frozenset(
    {
        TenantTable.SCHEDULE_WEEK,
        TenantTable.SCHEDULE_TEMPLATE,
        TenantTable.CALENDAR_INTEGRATION,
    }
)

# Columns stored as JSONB
JSON_COLUMNS: frozenset[str] = frozenset({"blocks", "rows", "columns"})
