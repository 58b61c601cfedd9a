"""Mapping from tenant identifiers to schema names."""

from __future__ import annotations

import re

DEFAULT_SCHEMA_PREFIX = "business_"

# PostgreSQL truncates identifiers beyond NAMEDATALEN - 1 bytes
MAX_SCHEMA_NAME_BYTES = 63
UUID_TENANT_ID_LENGTH = 36
MAX_SCHEMA_PREFIX_LENGTH = MAX_SCHEMA_NAME_BYTES - UUID_TENANT_ID_LENGTH

_UNSAFE_IDENTIFIER_CHARS = re.compile(r"[^A-Za-z0-9_]")


class SchemaNameTooLongError(ValueError):
    """Raised when a tenant's schema name would be truncated by PostgreSQL.

    Two tenants whose names only differ past the limit would otherwise share
    one schema.
    """

    def __init__(self, tenant_id: str, schema_name: str):
        self.tenant_id = tenant_id
        self.schema_name = schema_name
        super().__init__(
            f"Schema name '{schema_name}' for tenant '{tenant_id}' is "
            f"{len(schema_name.encode())} bytes; the limit is {MAX_SCHEMA_NAME_BYTES}"
        )


def resolve_schema_name(tenant_id: str, prefix: str = DEFAULT_SCHEMA_PREFIX) -> str:
    """Return the schema that holds a tenant's tables.

    Characters that are not valid in an unquoted SQL identifier (the dashes
    of a UUID in practice) are replaced with underscores. The mapping is
    pure and deterministic, and injective over UUID tenant ids as long as
    the prefix is at most ``MAX_SCHEMA_PREFIX_LENGTH`` characters.

    Args:
        tenant_id: Non-empty tenant (business) identifier.
        prefix: Schema name prefix.

    Returns:
        The schema name, e.g. ``business_biz_123`` for ``biz-123``.

    Raises:
        SchemaNameTooLongError: If the name exceeds ``MAX_SCHEMA_NAME_BYTES``.

    Example:
        >>> resolve_schema_name("3f1c-77aa")
        'business_3f1c_77aa'
    """
    schema_name = prefix + _UNSAFE_IDENTIFIER_CHARS.sub("_", tenant_id)
    if len(schema_name.encode()) > MAX_SCHEMA_NAME_BYTES:
        raise SchemaNameTooLongError(tenant_id, schema_name)
    return schema_name
