"""Tenant context value objects for resolved tenant identification.

Framework-agnostic value objects shared across bounded contexts. The
resolution logic (reading the authenticated caller, rejecting callers
without a business) lives in the tenancy context's dependency layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class AuthenticatedCaller:
    """Identity attached to a request by the authentication layer.

    Attributes:
        user_id: The authenticated user's id.
        role: The user's role within their business (OWNER, MANAGER, EMPLOYEE).
        business_id: The business the user belongs to, or None for users
            that have not been associated with a business yet.
    """

    user_id: str
    role: str
    business_id: str | None = None


@dataclass(frozen=True)
class TenantContext:
    """Resolved tenant context for the current request.

    Attributes:
        tenant_id: The business identifier the request is scoped to.
        user_id: The caller the tenant was resolved for.
        source: How the tenant was resolved. Only 'caller' exists today:
            the tenant is always derived from the authenticated identity,
            never from client-supplied headers.
    """

    tenant_id: str
    user_id: str
    source: Literal["caller"] = "caller"
