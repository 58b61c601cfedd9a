"""Typed payloads and records for tenant-scoped entities.

Python field names are snake_case; the tenant tables use quoted camelCase
column names, so every model aliases its fields with ``to_camel``. Input
models forbid unknown fields. Record models ignore them, since ``SELECT *``
may return columns added after this code was written.

Update models are partial: only fields the caller explicitly set are
written (``model_dump(exclude_unset=True)``) and an explicit ``None``
clears a nullable column. Setting a NOT NULL column to ``None`` is a
validation error.
"""

from __future__ import annotations

import datetime as dt
import json
from typing import Any, ClassVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from tenancy.domain.value_objects import (
    RequestStatus,
    ScheduleFrequency,
    ScheduleStatus,
)


def new_entity_id() -> str:
    """Generate a fresh entity id."""
    return str(uuid4())


def _decode_json(value: Any) -> Any:
    # psycopg2 decodes JSONB already; text-typed JSON arrives as str
    if isinstance(value, (str, bytes, bytearray)):
        return json.loads(value)
    return value


class TenantInput(BaseModel):
    """Base for payloads written to a tenant table."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
        extra="forbid",
    )

    # Columns declared NOT NULL that an explicit None must not reach
    non_nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_explicit_null(self) -> TenantInput:
        cleared = sorted(
            name
            for name in self.model_fields_set & self.non_nullable_fields
            if getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be set to null")
        return self

    def to_columns(self, *, only_set: bool = False) -> dict[str, Any]:
        """Return column name -> value for this payload.

        Args:
            only_set: Include only fields the caller explicitly supplied.
        """
        return self.model_dump(by_alias=True, exclude_unset=only_set)


class TenantRecord(BaseModel):
    """Base for rows read back from a tenant table."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


# --- Availability requests -------------------------------------------------


class AvailabilityRequestCreate(TenantInput):
    id: str = Field(default_factory=new_entity_id)
    start_date: dt.date | dt.datetime
    end_date: dt.date | dt.datetime
    status: RequestStatus = RequestStatus.OPEN
    frequency: ScheduleFrequency | None = None
    created_by_user_id: str


class AvailabilityRequestUpdate(TenantInput):
    non_nullable_fields: ClassVar[frozenset[str]] = frozenset(
        {"start_date", "end_date", "status"}
    )

    start_date: dt.date | dt.datetime | None = None
    end_date: dt.date | dt.datetime | None = None
    status: RequestStatus | None = None
    frequency: ScheduleFrequency | None = None


class AvailabilityRequestFilter(TenantInput):
    status: RequestStatus | None = None
    created_by_user_id: str | None = None


class AvailabilityRequestRecord(TenantRecord):
    id: str
    start_date: dt.datetime
    end_date: dt.datetime
    status: RequestStatus
    frequency: ScheduleFrequency | None = None
    created_by_user_id: str
    created_at: dt.datetime


# --- Availability entries --------------------------------------------------


class AvailabilityEntryUpsert(TenantInput):
    """One employee's availability for one day of a request.

    Unique per (request_id, user_id, date); submitting the same key again
    replaces ``blocks`` and ``note``.
    """

    id: str = Field(default_factory=new_entity_id)
    request_id: str
    user_id: str
    date: dt.date | dt.datetime
    blocks: dict[str, Any]
    note: str | None = None


class AvailabilityEntryRecord(TenantRecord):
    id: str
    request_id: str
    user_id: str
    date: dt.datetime
    blocks: dict[str, Any]
    note: str | None = None
    created_at: dt.datetime

    @field_validator("blocks", mode="before")
    @classmethod
    def decode_blocks(cls, value: Any) -> Any:
        return _decode_json(value)


# --- Schedules -------------------------------------------------------------


class ScheduleCreate(TenantInput):
    id: str = Field(default_factory=new_entity_id)
    start_date: dt.date | dt.datetime
    end_date: dt.date | dt.datetime
    status: ScheduleStatus = ScheduleStatus.DRAFT
    created_by_user_id: str
    availability_request_id: str | None = None
    template_id: str | None = None
    rows: Any = None
    columns: Any = None


class ScheduleUpdate(TenantInput):
    non_nullable_fields: ClassVar[frozenset[str]] = frozenset(
        {"start_date", "end_date", "status"}
    )

    start_date: dt.date | dt.datetime | None = None
    end_date: dt.date | dt.datetime | None = None
    status: ScheduleStatus | None = None
    availability_request_id: str | None = None
    template_id: str | None = None
    rows: Any = None
    columns: Any = None


class ScheduleFilter(TenantInput):
    status: ScheduleStatus | None = None
    created_by_user_id: str | None = None


class ScheduleRecord(TenantRecord):
    id: str
    start_date: dt.datetime
    end_date: dt.datetime
    status: ScheduleStatus
    created_by_user_id: str
    availability_request_id: str | None = None
    template_id: str | None = None
    rows: Any = None
    columns: Any = None
    created_at: dt.datetime
    updated_at: dt.datetime | None = None

    @field_validator("rows", "columns", mode="before")
    @classmethod
    def decode_layout(cls, value: Any) -> Any:
        return _decode_json(value)


# --- Shift assignments -----------------------------------------------------


class ShiftAssignmentCreate(TenantInput):
    id: str = Field(default_factory=new_entity_id)
    schedule_id: str
    date: dt.date | dt.datetime
    start_time: str = "09:00"
    end_time: str = "17:00"
    position: str
    shift_type: str = "morning"
    assigned_user_id: str | None = None


class ShiftAssignmentUpdate(TenantInput):
    non_nullable_fields: ClassVar[frozenset[str]] = frozenset(
        {"date", "start_time", "end_time", "position", "shift_type"}
    )

    date: dt.date | dt.datetime | None = None
    start_time: str | None = None
    end_time: str | None = None
    position: str | None = None
    shift_type: str | None = None
    assigned_user_id: str | None = None


class ShiftAssignmentRecord(TenantRecord):
    id: str
    schedule_id: str
    date: dt.datetime
    start_time: str
    end_time: str
    position: str
    shift_type: str
    assigned_user_id: str | None = None
    created_at: dt.datetime


# --- Schedule templates ----------------------------------------------------


class ScheduleTemplateCreate(TenantInput):
    id: str = Field(default_factory=new_entity_id)
    name: str | None = None
    rows: Any = None
    columns: Any = None


class ScheduleTemplateUpdate(TenantInput):
    name: str | None = None
    rows: Any = None
    columns: Any = None


class ScheduleTemplateRecord(TenantRecord):
    id: str
    name: str | None = None
    rows: Any = None
    columns: Any = None
    created_at: dt.datetime
    updated_at: dt.datetime

    @field_validator("rows", "columns", mode="before")
    @classmethod
    def decode_layout(cls, value: Any) -> Any:
        return _decode_json(value)


class TemplateEmployeeAssignmentRecord(TenantRecord):
    id: str
    template_id: str
    user_id: str
    created_at: dt.datetime


# --- Calendar integrations -------------------------------------------------


class CalendarIntegrationUpsert(TenantInput):
    """OAuth tokens for one user's external calendar.

    Unique per (user_id, provider); reconnecting the same provider replaces
    the tokens, calendar and enabled flag.
    """

    id: str = Field(default_factory=new_entity_id)
    user_id: str
    provider: str
    access_token: str | None = None
    refresh_token: str | None = None
    calendar_id: str | None = None
    enabled: bool = True


class CalendarIntegrationRecord(TenantRecord):
    id: str
    user_id: str
    provider: str
    access_token: str | None = None
    refresh_token: str | None = None
    calendar_id: str | None = None
    enabled: bool
    created_at: dt.datetime
    updated_at: dt.datetime
