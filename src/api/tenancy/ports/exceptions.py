"""Exceptions for the Tenancy bounded context.

Query failures are reported with ``infrastructure.database.QueryError``;
the exceptions here cover provisioning and tenant resolution.
"""


class ProvisioningError(Exception):
    """Raised when the DDL that creates a tenant schema fails.

    Provisioning is not retried and not rolled back across steps: the
    schema itself may already exist when a later step fails. The driver
    error is available as ``__cause__``.

    Attributes:
        tenant_id: The tenant being provisioned.
        schema_name: The schema the DDL targeted.
        step: Which step failed: 'schema' or 'tables'.
    """

    def __init__(self, tenant_id: str, schema_name: str, step: str):
        super().__init__(
            f"Provisioning of schema '{schema_name}' for tenant '{tenant_id}' "
            f"failed at step '{step}'"
        )
        self.tenant_id = tenant_id
        self.schema_name = schema_name
        self.step = step


class TenantContextError(Exception):
    """Raised when a request has no resolvable tenant.

    This is a configuration or authorization defect at the request
    boundary (for example a user not yet attached to a business), not a
    data-layer fault.
    """

    def __init__(self, user_id: str | None = None):
        super().__init__("User is not associated with a business")
        self.user_id = user_id
