"""Typed data operations against one tenant schema."""

from __future__ import annotations

from typing import Any, Mapping, Sequence, TypeVar

from psycopg2.extras import Json

from tenancy.domain.models import (
    AvailabilityEntryRecord,
    AvailabilityEntryUpsert,
    AvailabilityRequestCreate,
    AvailabilityRequestFilter,
    AvailabilityRequestRecord,
    AvailabilityRequestUpdate,
    CalendarIntegrationRecord,
    CalendarIntegrationUpsert,
    ScheduleCreate,
    ScheduleFilter,
    ScheduleRecord,
    ScheduleTemplateCreate,
    ScheduleTemplateRecord,
    ScheduleTemplateUpdate,
    ScheduleUpdate,
    ShiftAssignmentCreate,
    ShiftAssignmentRecord,
    ShiftAssignmentUpdate,
    TemplateEmployeeAssignmentRecord,
    TenantInput,
    TenantRecord,
    new_entity_id,
)
from tenancy.domain.value_objects import TABLES_WITH_UPDATED_AT, TenantTable
from tenancy.infrastructure.statements import QueryQualifier, StatementBuilder
from tenancy.ports.protocols import SqlExecutor

RecordT = TypeVar("RecordT", bound=TenantRecord)


class TenantDataAccessor:
    """Data operations for one tenant, bound to that tenant's schema.

    Every statement issued here is qualified with the tenant schema, so an
    accessor can only ever reach its own tenant's rows. Instances hold no
    connection and no per-request state; they are safe to share across
    threads and to keep using after the cache has dropped them.

    Lookups by id return ``None`` when the row does not exist. Deletes
    return whether a row was removed.
    """

    def __init__(self, tenant_id: str, schema_name: str, executor: SqlExecutor):
        self._tenant_id = tenant_id
        self._schema_name = schema_name
        self._executor = executor
        self._qualifier = QueryQualifier(schema_name)

    @property
    def tenant_id(self) -> str:
        return self._tenant_id

    @property
    def schema_name(self) -> str:
        return self._schema_name

    @property
    def qualifier(self) -> QueryQualifier:
        return self._qualifier

    def __repr__(self) -> str:
        return f"TenantDataAccessor(tenant_id={self._tenant_id!r}, schema_name={self._schema_name!r})"

    # --- Raw templates ----------------------------------------------------

    def query(self, template: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run a read template against this tenant's schema.

        Args:
            template: SQL using quoted tenant table names and ``$N`` markers.
            params: Values for the markers.

        Raises:
            QueryError: On a malformed template or a driver error.
        """
        return self._executor.fetch_all(self._qualifier.qualify(template, params))

    def execute(self, template: str, params: Sequence[Any] = ()) -> int:
        """Run a write template and return the number of affected rows."""
        return self._executor.execute(self._qualifier.qualify(template, params))

    # --- Availability requests --------------------------------------------

    def create_availability_request(
        self, data: AvailabilityRequestCreate
    ) -> AvailabilityRequestRecord:
        row = self._insert(TenantTable.AVAILABILITY_REQUEST, data)
        return AvailabilityRequestRecord.model_validate(row)

    def list_availability_requests(
        self, filters: AvailabilityRequestFilter | None = None
    ) -> list[AvailabilityRequestRecord]:
        rows = self._select(
            TenantTable.AVAILABILITY_REQUEST,
            _conditions(filters),
            order_by='"createdAt" DESC',
        )
        return _records(AvailabilityRequestRecord, rows)

    def get_availability_request(self, request_id: str) -> AvailabilityRequestRecord | None:
        row = self._get_by_id(TenantTable.AVAILABILITY_REQUEST, request_id)
        return _record(AvailabilityRequestRecord, row)

    def update_availability_request(
        self, request_id: str, changes: AvailabilityRequestUpdate
    ) -> AvailabilityRequestRecord | None:
        row = self._update_by_id(
            TenantTable.AVAILABILITY_REQUEST,
            request_id,
            changes.to_columns(only_set=True),
        )
        return _record(AvailabilityRequestRecord, row)

    def delete_availability_request(self, request_id: str) -> bool:
        """Delete a request together with every entry submitted against it."""
        removed = self.execute(
            """
            WITH entries AS (
                DELETE FROM "AvailabilityEntry" WHERE "requestId" = $1
            )
            DELETE FROM "AvailabilityRequest" WHERE id = $1
            """,
            [request_id],
        )
        return removed > 0

    # --- Availability entries ---------------------------------------------

    def upsert_availability_entry(self, data: AvailabilityEntryUpsert) -> AvailabilityEntryRecord:
        """Insert an entry, or replace blocks and note for an existing key.

        The key is (request_id, user_id, date). The insert and the update
        are one statement, so concurrent resubmissions cannot race.
        """
        rows = self.query(
            """
            INSERT INTO "AvailabilityEntry" (id, "requestId", "userId", date, blocks, note)
            VALUES ($1, $2, $3, $4, $5::jsonb, $6)
            ON CONFLICT ("requestId", "userId", date)
            DO UPDATE SET blocks = EXCLUDED.blocks, note = EXCLUDED.note
            RETURNING *
            """,
            [
                data.id,
                data.request_id,
                data.user_id,
                data.date,
                Json(data.blocks),
                data.note,
            ],
        )
        return AvailabilityEntryRecord.model_validate(rows[0])

    def list_availability_entries(
        self, request_id: str, user_id: str | None = None
    ) -> list[AvailabilityEntryRecord]:
        conditions: dict[str, Any] = {"requestId": request_id}
        if user_id is not None:
            conditions["userId"] = user_id
        rows = self._select(
            TenantTable.AVAILABILITY_ENTRY,
            conditions,
            order_by='date ASC, "userId" ASC',
        )
        return _records(AvailabilityEntryRecord, rows)

    def get_availability_entry(self, entry_id: str) -> AvailabilityEntryRecord | None:
        row = self._get_by_id(TenantTable.AVAILABILITY_ENTRY, entry_id)
        return _record(AvailabilityEntryRecord, row)

    def delete_availability_entry(self, entry_id: str) -> bool:
        return self._delete(TenantTable.AVAILABILITY_ENTRY, {"id": entry_id}) > 0

    # --- Schedules --------------------------------------------------------

    def create_schedule(self, data: ScheduleCreate) -> ScheduleRecord:
        row = self._insert(TenantTable.SCHEDULE_WEEK, data)
        return ScheduleRecord.model_validate(row)

    def list_schedules(self, filters: ScheduleFilter | None = None) -> list[ScheduleRecord]:
        rows = self._select(
            TenantTable.SCHEDULE_WEEK,
            _conditions(filters),
            order_by='"startDate" DESC',
        )
        return _records(ScheduleRecord, rows)

    def get_schedule(self, schedule_id: str) -> ScheduleRecord | None:
        row = self._get_by_id(TenantTable.SCHEDULE_WEEK, schedule_id)
        return _record(ScheduleRecord, row)

    def update_schedule(self, schedule_id: str, changes: ScheduleUpdate) -> ScheduleRecord | None:
        row = self._update_by_id(
            TenantTable.SCHEDULE_WEEK,
            schedule_id,
            changes.to_columns(only_set=True),
        )
        return _record(ScheduleRecord, row)

    def delete_schedule(self, schedule_id: str) -> bool:
        """Delete a schedule together with its shift assignments."""
        removed = self.execute(
            """
            WITH shifts AS (
                DELETE FROM "ShiftAssignment" WHERE "scheduleId" = $1
            )
            DELETE FROM "ScheduleWeek" WHERE id = $1
            """,
            [schedule_id],
        )
        return removed > 0

    # --- Shift assignments ------------------------------------------------

    def create_shift_assignment(self, data: ShiftAssignmentCreate) -> ShiftAssignmentRecord:
        row = self._insert(TenantTable.SHIFT_ASSIGNMENT, data)
        return ShiftAssignmentRecord.model_validate(row)

    def list_shift_assignments(self, schedule_id: str) -> list[ShiftAssignmentRecord]:
        rows = self._select(
            TenantTable.SHIFT_ASSIGNMENT,
            {"scheduleId": schedule_id},
            order_by="date ASC, position ASC",
        )
        return _records(ShiftAssignmentRecord, rows)

    def list_shift_assignments_for_user(self, user_id: str) -> list[ShiftAssignmentRecord]:
        rows = self._select(
            TenantTable.SHIFT_ASSIGNMENT,
            {"assignedUserId": user_id},
            order_by="date ASC, position ASC",
        )
        return _records(ShiftAssignmentRecord, rows)

    def get_shift_assignment(self, assignment_id: str) -> ShiftAssignmentRecord | None:
        row = self._get_by_id(TenantTable.SHIFT_ASSIGNMENT, assignment_id)
        return _record(ShiftAssignmentRecord, row)

    def update_shift_assignment(
        self, assignment_id: str, changes: ShiftAssignmentUpdate
    ) -> ShiftAssignmentRecord | None:
        row = self._update_by_id(
            TenantTable.SHIFT_ASSIGNMENT,
            assignment_id,
            changes.to_columns(only_set=True),
        )
        return _record(ShiftAssignmentRecord, row)

    def delete_shift_assignment(self, assignment_id: str) -> bool:
        return self._delete(TenantTable.SHIFT_ASSIGNMENT, {"id": assignment_id}) > 0

    # --- Schedule templates -----------------------------------------------

    def create_template(self, data: ScheduleTemplateCreate) -> ScheduleTemplateRecord:
        row = self._insert(TenantTable.SCHEDULE_TEMPLATE, data)
        return ScheduleTemplateRecord.model_validate(row)

    def list_templates(self) -> list[ScheduleTemplateRecord]:
        rows = self._select(TenantTable.SCHEDULE_TEMPLATE, {}, order_by='"createdAt" DESC')
        return _records(ScheduleTemplateRecord, rows)

    def get_template(self, template_id: str) -> ScheduleTemplateRecord | None:
        row = self._get_by_id(TenantTable.SCHEDULE_TEMPLATE, template_id)
        return _record(ScheduleTemplateRecord, row)

    def update_template(
        self, template_id: str, changes: ScheduleTemplateUpdate
    ) -> ScheduleTemplateRecord | None:
        row = self._update_by_id(
            TenantTable.SCHEDULE_TEMPLATE,
            template_id,
            changes.to_columns(only_set=True),
        )
        return _record(ScheduleTemplateRecord, row)

    def delete_template(self, template_id: str) -> bool:
        """Delete a template together with its employee assignments."""
        removed = self.execute(
            """
            WITH assignments AS (
                DELETE FROM "TemplateEmployeeAssignment" WHERE "templateId" = $1
            )
            DELETE FROM "ScheduleTemplate" WHERE id = $1
            """,
            [template_id],
        )
        return removed > 0

    # --- Template employee assignments ------------------------------------

    def assign_employee_to_template(
        self, template_id: str, user_id: str
    ) -> TemplateEmployeeAssignmentRecord | None:
        """Assign an employee to a template.

        Returns:
            The new assignment, or ``None`` if the employee was already
            assigned to the template.
        """
        rows = self.query(
            """
            INSERT INTO "TemplateEmployeeAssignment" (id, "templateId", "userId")
            VALUES ($1, $2, $3)
            ON CONFLICT ("templateId", "userId") DO NOTHING
            RETURNING *
            """,
            [new_entity_id(), template_id, user_id],
        )
        return _record(TemplateEmployeeAssignmentRecord, rows[0] if rows else None)

    def unassign_employee_from_template(self, template_id: str, user_id: str) -> bool:
        removed = self._delete(
            TenantTable.TEMPLATE_EMPLOYEE_ASSIGNMENT,
            {"templateId": template_id, "userId": user_id},
        )
        return removed > 0

    def list_template_assignments(self, template_id: str) -> list[TemplateEmployeeAssignmentRecord]:
        rows = self._select(
            TenantTable.TEMPLATE_EMPLOYEE_ASSIGNMENT,
            {"templateId": template_id},
            order_by='"createdAt" ASC',
        )
        return _records(TemplateEmployeeAssignmentRecord, rows)

    def list_employee_template_ids(self, user_id: str) -> list[str]:
        rows = self.query(
            'SELECT "templateId" FROM "TemplateEmployeeAssignment" '
            'WHERE "userId" = $1 ORDER BY "createdAt" ASC',
            [user_id],
        )
        return [row["templateId"] for row in rows]

    # --- Calendar integrations --------------------------------------------

    def upsert_calendar_integration(
        self, data: CalendarIntegrationUpsert
    ) -> CalendarIntegrationRecord:
        """Connect a calendar, or replace the tokens of an existing one.

        The key is (user_id, provider).
        """
        columns = data.to_columns()
        mutable = ["accessToken", "refreshToken", "calendarId", "enabled"]
        statement = (
            StatementBuilder(self._schema_name)
            .text("INSERT INTO ")
            .table(TenantTable.CALENDAR_INTEGRATION)
            .text(" (")
            .columns(columns)
            .text(") VALUES (")
            .values(columns)
            .text(') ON CONFLICT ("userId", provider) DO UPDATE SET ')
            .excluded_assignments(mutable)
            .text(', "updatedAt" = NOW() RETURNING *')
            .build()
        )
        rows = self._executor.fetch_all(statement)
        return CalendarIntegrationRecord.model_validate(rows[0])

    def list_calendar_integrations(self, user_id: str) -> list[CalendarIntegrationRecord]:
        rows = self._select(
            TenantTable.CALENDAR_INTEGRATION,
            {"userId": user_id},
            order_by='"createdAt" DESC',
        )
        return _records(CalendarIntegrationRecord, rows)

    def get_calendar_integration(
        self, user_id: str, provider: str
    ) -> CalendarIntegrationRecord | None:
        rows = self._select(
            TenantTable.CALENDAR_INTEGRATION,
            {"userId": user_id, "provider": provider},
        )
        return _record(CalendarIntegrationRecord, rows[0] if rows else None)

    def delete_calendar_integration(self, integration_id: str, user_id: str) -> bool:
        """Delete an integration, only if it belongs to ``user_id``."""
        removed = self._delete(
            TenantTable.CALENDAR_INTEGRATION,
            {"id": integration_id, "userId": user_id},
        )
        return removed > 0

    # --- Generic statements -----------------------------------------------

    def _builder(self) -> StatementBuilder:
        return StatementBuilder(self._schema_name)

    def _insert(self, table: TenantTable, data: TenantInput) -> dict[str, Any]:
        columns = data.to_columns()
        statement = (
            self._builder()
            .text("INSERT INTO ")
            .table(table)
            .text(" (")
            .columns(columns)
            .text(") VALUES (")
            .values(columns)
            .text(") RETURNING *")
            .build()
        )
        return self._executor.fetch_all(statement)[0]

    def _select(
        self,
        table: TenantTable,
        conditions: Mapping[str, Any],
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        builder = self._builder().text("SELECT * FROM ").table(table).where(conditions)
        if order_by:
            builder.text(f" ORDER BY {order_by}")
        return self._executor.fetch_all(builder.build())

    def _get_by_id(self, table: TenantTable, entity_id: str) -> dict[str, Any] | None:
        rows = self._select(table, {"id": entity_id})
        return rows[0] if rows else None

    def _update_by_id(
        self,
        table: TenantTable,
        entity_id: str,
        changes: Mapping[str, Any],
    ) -> dict[str, Any] | None:
        if not changes:
            return self._get_by_id(table, entity_id)

        builder = self._builder().text("UPDATE ").table(table).text(" SET ").assignments(changes)
        if table in TABLES_WITH_UPDATED_AT:
            builder.text(', "updatedAt" = NOW()')
        statement = builder.where({"id": entity_id}).text(" RETURNING *").build()

        rows = self._executor.fetch_all(statement)
        return rows[0] if rows else None

    def _delete(self, table: TenantTable, conditions: Mapping[str, Any]) -> int:
        statement = self._builder().text("DELETE FROM ").table(table).where(conditions).build()
        return self._executor.execute(statement)


def _conditions(filters: TenantInput | None) -> dict[str, Any]:
    if filters is None:
        return {}
    return {column: value for column, value in filters.to_columns().items() if value is not None}


def _record(model: type[RecordT], row: Mapping[str, Any] | None) -> RecordT | None:
    if row is None:
        return None
    return model.model_validate(row)


def _records(model: type[RecordT], rows: Sequence[Mapping[str, Any]]) -> list[RecordT]:
    return [model.model_validate(row) for row in rows]
