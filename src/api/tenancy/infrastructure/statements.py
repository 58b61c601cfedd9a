"""Composition of schema-qualified, parameter-bound SQL statements.

``StatementBuilder`` assembles a statement from tagged fragments: raw SQL
text, tenant table identifiers resolved from ``TenantTable``, column
identifiers and bound values. Values only ever become driver placeholders;
they are never spliced into the SQL text.

``QueryQualifier`` accepts hand-written templates that use quoted table
literals and ``$1``-style markers and turns them into the same kind of
statement. Table rewriting is a literal match against ``TenantTable``, not
a SQL parser, so templates must be fixed strings written by developers.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Sequence

from psycopg2 import sql
from psycopg2.extras import Json

from infrastructure.database.exceptions import QueryError
from tenancy.domain.value_objects import JSON_COLUMNS, TenantTable
from tenancy.ports.protocols import ExecutableStatement

_TABLE_ALTERNATIVES = "|".join(re.escape(table.value) for table in TenantTable)
# String literals are matched first so their contents pass through untouched
_TOKEN_PATTERN = re.compile(
    r"(?P<literal>'(?:[^']|'')*')"
    rf'|"(?P<table>{_TABLE_ALTERNATIVES})"'
    r"|\$(?P<marker>\d+)"
)


class _RawText(str):
    """Marks a fragment that still needs ``%`` escaping at build time."""


class StatementBuilder:
    """Fluent builder for one statement against one tenant schema.

    Example:
        statement = (
            StatementBuilder("business_biz_1")
            .text("SELECT * FROM ")
            .table(TenantTable.SCHEDULE_WEEK)
            .where({"status": "DRAFT"})
            .text(' ORDER BY "startDate" DESC')
            .build()
        )
    """

    def __init__(self, schema_name: str):
        self._schema_name = schema_name
        self._parts: list[sql.Composable | _RawText] = []
        self._params: list[Any] = []

    @property
    def schema_name(self) -> str:
        return self._schema_name

    def text(self, fragment: str) -> StatementBuilder:
        """Append raw SQL text."""
        if fragment:
            self._parts.append(_RawText(fragment))
        return self

    def table(self, table: TenantTable) -> StatementBuilder:
        """Append ``"<schema>"."<table>"`` for an allow-listed table."""
        self._parts.append(sql.Identifier(self._schema_name, table.value))
        return self

    def column(self, name: str) -> StatementBuilder:
        """Append a quoted column identifier."""
        self._parts.append(sql.Identifier(name))
        return self

    def columns(self, names: Iterable[str]) -> StatementBuilder:
        """Append a comma separated list of quoted column identifiers."""
        self._parts.append(sql.SQL(", ").join(sql.Identifier(n) for n in names))
        return self

    def param(self, value: Any) -> StatementBuilder:
        """Append a placeholder bound to ``value``."""
        self._parts.append(sql.Placeholder())
        self._params.append(value)
        return self

    def json_param(self, value: Any) -> StatementBuilder:
        """Append a placeholder bound to ``value`` serialized as JSONB."""
        self.param(None if value is None else Json(value))
        return self.text("::jsonb")

    def value(self, column: str, value: Any) -> StatementBuilder:
        """Append a placeholder typed for ``column``."""
        if column in JSON_COLUMNS:
            return self.json_param(value)
        return self.param(value)

    def values(self, row: Mapping[str, Any]) -> StatementBuilder:
        """Append one placeholder per column of ``row``, comma separated."""
        for index, (column, value) in enumerate(row.items()):
            if index:
                self.text(", ")
            self.value(column, value)
        return self

    def assignments(self, changes: Mapping[str, Any]) -> StatementBuilder:
        """Append ``"col" = %s, ...`` for an UPDATE ... SET clause."""
        for index, (column, value) in enumerate(changes.items()):
            if index:
                self.text(", ")
            self.column(column).text(" = ").value(column, value)
        return self

    def excluded_assignments(self, columns: Sequence[str]) -> StatementBuilder:
        """Append ``"col" = EXCLUDED."col", ...`` for ON CONFLICT DO UPDATE."""
        for index, column in enumerate(columns):
            if index:
                self.text(", ")
            self.column(column).text(" = EXCLUDED.").column(column)
        return self

    def where(self, conditions: Mapping[str, Any]) -> StatementBuilder:
        """Append ``WHERE "a" = %s AND "b" = %s``; nothing when empty."""
        for index, (column, value) in enumerate(conditions.items()):
            self.text(" AND " if index else " WHERE ")
            self.column(column).text(" = ").param(value)
        return self

    def build(self) -> ExecutableStatement:
        """Compose the fragments into an executable statement."""
        # psycopg2 only interprets '%' when parameters are bound
        escape = bool(self._params)
        parts = [
            sql.SQL(part.replace("%", "%%") if escape else part)
            if isinstance(part, _RawText)
            else part
            for part in self._parts
        ]
        return ExecutableStatement(query=sql.Composed(parts), params=tuple(self._params))


class QueryQualifier:
    """Rewrites SQL templates against one tenant schema.

    Recognised table literals such as ``"ScheduleWeek"`` become
    ``"<schema>"."ScheduleWeek"``; other quoted identifiers are left alone.
    ``$N`` markers are replaced left to right with placeholders bound to
    ``params[N - 1]``; a marker may appear more than once.
    """

    def __init__(self, schema_name: str):
        self._schema_name = schema_name

    @property
    def schema_name(self) -> str:
        return self._schema_name

    def qualify(
        self,
        template: str,
        params: Sequence[Any] = (),
    ) -> ExecutableStatement:
        """Build an executable statement from a template.

        Args:
            template: SQL with quoted table literals and ``$N`` markers.
                Text inside single-quoted string literals is copied as is,
                so a literal such as ``'costs $5'`` is neither a marker nor
                a table reference.
            params: Values referenced by the markers (1-based).

        Returns:
            The schema-qualified statement with parameters in marker order.

        Raises:
            QueryError: If a marker points outside ``params`` or a parameter
                is never referenced.
        """
        builder = StatementBuilder(self._schema_name)
        referenced: set[int] = set()
        position = 0

        for match in _TOKEN_PATTERN.finditer(template):
            builder.text(template[position : match.start()])
            table = match.group("table")
            if match.group("literal") is not None:
                builder.text(match.group("literal"))
            elif table is not None:
                builder.table(TenantTable(table))
            else:
                number = int(match.group("marker"))
                if not 1 <= number <= len(params):
                    raise QueryError(
                        f"Parameter marker ${number} is out of range: "
                        f"{len(params)} parameter(s) supplied",
                        query=template,
                    )
                builder.param(params[number - 1])
                referenced.add(number - 1)
            position = match.end()

        builder.text(template[position:])

        unused = [f"${i + 1}" for i in range(len(params)) if i not in referenced]
        if unused:
            raise QueryError(
                f"Parameter(s) {', '.join(unused)} not referenced by the template",
                query=template,
            )

        return builder.build()
