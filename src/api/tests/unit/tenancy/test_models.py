"""Unit tests for tenant entity payloads and records."""

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from tenancy.domain.models import (
    AvailabilityRequestCreate,
    AvailabilityRequestUpdate,
    CalendarIntegrationUpsert,
    ScheduleRecord,
    ScheduleUpdate,
    ShiftAssignmentCreate,
    ShiftAssignmentUpdate,
    new_entity_id,
)
from tenancy.domain.value_objects import RequestStatus, ScheduleStatus


class TestTenantInput:
    """Tests for payload serialization to columns."""

    def test_columns_use_camel_case_names(self):
        payload = AvailabilityRequestCreate(
            id="req-1",
            start_date=date(2026, 3, 2),
            end_date=date(2026, 3, 8),
            created_by_user_id="manager-1",
        )

        assert list(payload.to_columns()) == [
            "id",
            "startDate",
            "endDate",
            "status",
            "frequency",
            "createdByUserId",
        ]

    def test_accepts_camel_case_input(self):
        payload = ShiftAssignmentCreate.model_validate(
            {"scheduleId": "s1", "date": "2026-03-03", "position": "Cook"}
        )

        assert payload.schedule_id == "s1"
        assert payload.start_time == "09:00"
        assert payload.end_time == "17:00"
        assert payload.shift_type == "morning"

    def test_enum_defaults_serialize_as_plain_values(self):
        payload = AvailabilityRequestCreate(
            start_date=date(2026, 3, 2),
            end_date=date(2026, 3, 8),
            created_by_user_id="manager-1",
        )

        assert type(payload.to_columns()["status"]) is str
        assert payload.to_columns()["status"] == "OPEN"

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            AvailabilityRequestUpdate(owner="someone")

    def test_invalid_enum_value_is_rejected(self):
        with pytest.raises(ValidationError):
            ScheduleUpdate(status="ARCHIVED")

    def test_partial_update_includes_only_supplied_fields(self):
        changes = ScheduleUpdate(status=ScheduleStatus.PUBLISHED, template_id=None)

        assert changes.to_columns(only_set=True) == {"status": "PUBLISHED", "templateId": None}

    def test_explicit_null_rejected_for_not_null_columns(self):
        with pytest.raises(ValidationError) as exc_info:
            ScheduleUpdate(status=None, start_date=None)

        assert "start_date, status cannot be set to null" in str(exc_info.value)

    @pytest.mark.parametrize(
        "model, field",
        [
            (AvailabilityRequestUpdate, "end_date"),
            (ShiftAssignmentUpdate, "position"),
            (ShiftAssignmentUpdate, "start_time"),
        ],
    )
    def test_each_update_guards_its_not_null_columns(self, model, field):
        with pytest.raises(ValidationError):
            model(**{field: None})

    def test_explicit_null_still_clears_nullable_columns(self):
        changes = ShiftAssignmentUpdate(assigned_user_id=None)

        assert changes.to_columns(only_set=True) == {"assignedUserId": None}

    def test_empty_update_has_no_columns(self):
        assert AvailabilityRequestUpdate().to_columns(only_set=True) == {}

    def test_ids_default_to_fresh_uuids(self):
        first = CalendarIntegrationUpsert(user_id="u1", provider="google")
        second = CalendarIntegrationUpsert(user_id="u1", provider="google")

        assert first.id != second.id
        assert len(new_entity_id()) == 36
        assert first.enabled is True


class TestTenantRecord:
    """Tests for records read back from tenant tables."""

    def test_parses_row_with_camel_case_columns(self):
        record = ScheduleRecord.model_validate(
            {
                "id": "s1",
                "startDate": datetime(2026, 3, 2),
                "endDate": datetime(2026, 3, 8),
                "status": "PUBLISHED",
                "createdByUserId": "m1",
                "rows": '[{"id": "r1"}]',
                "columns": None,
                "createdAt": datetime(2026, 3, 1),
                "addedLater": "ignored",
            }
        )

        assert record.status is ScheduleStatus.PUBLISHED
        assert record.rows == [{"id": "r1"}]
        assert record.columns is None

    def test_records_are_immutable(self):
        record = ScheduleRecord(
            id="s1",
            start_date=datetime(2026, 3, 2),
            end_date=datetime(2026, 3, 8),
            status="DRAFT",
            created_by_user_id="m1",
            created_at=datetime(2026, 3, 1),
        )

        with pytest.raises(ValidationError):
            record.status = "PUBLISHED"


def test_request_status_values():
    assert [status.value for status in RequestStatus] == ["OPEN", "CLOSED"]
