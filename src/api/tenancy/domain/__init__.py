"""Domain layer for the Tenancy bounded context."""

from tenancy.domain.schema_names import (
    DEFAULT_SCHEMA_PREFIX,
    MAX_SCHEMA_NAME_BYTES,
    MAX_SCHEMA_PREFIX_LENGTH,
    SchemaNameTooLongError,
    resolve_schema_name,
)
from tenancy.domain.value_objects import (
    RequestStatus,
    ScheduleFrequency,
    ScheduleStatus,
    TenantTable,
)

__all__ = [
    "DEFAULT_SCHEMA_PREFIX",
    "MAX_SCHEMA_NAME_BYTES",
    "MAX_SCHEMA_PREFIX_LENGTH",
    "RequestStatus",
    "ScheduleFrequency",
    "ScheduleStatus",
    "SchemaNameTooLongError",
    "TenantTable",
    "resolve_schema_name",
]
