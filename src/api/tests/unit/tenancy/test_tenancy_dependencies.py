"""Unit tests for tenancy FastAPI dependencies and wiring."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from infrastructure.settings import DatabaseSettings, TenancySettings
from shared_kernel.middleware.tenant_context import AuthenticatedCaller, TenantContext
from tenancy.application.tenant_database_service import TenantDatabaseService
from tenancy.dependencies import (
    build_tenant_database_service,
    get_authenticated_caller,
    get_business_db,
    get_tenant_database_service,
    resolve_tenant_context,
)
from tenancy.infrastructure.data_accessor import TenantDataAccessor
from tenancy.infrastructure.handle_cache import TenantHandleCache
from tenancy.ports.exceptions import TenantContextError


def make_request(caller=None, service=None):
    state = SimpleNamespace()
    if caller is not None:
        state.caller = caller
    app = SimpleNamespace(state=SimpleNamespace(tenant_database_service=service))
    return SimpleNamespace(state=state, app=app)


@pytest.fixture
def probe():
    return MagicMock()


class TestGetAuthenticatedCaller:
    """Tests for get_authenticated_caller."""

    def test_returns_caller_from_request_state(self, probe):
        caller = AuthenticatedCaller(user_id="u1", role="MANAGER", business_id="biz1")

        assert get_authenticated_caller(make_request(caller), probe) is caller

    def test_missing_caller_is_unauthorized(self, probe):
        with pytest.raises(HTTPException) as exc_info:
            get_authenticated_caller(make_request(), probe)

        assert exc_info.value.status_code == 401
        probe.caller_missing.assert_called_once()


class TestResolveTenantContext:
    """Tests for resolve_tenant_context."""

    def test_tenant_comes_from_caller_business(self, probe):
        caller = AuthenticatedCaller(user_id="u1", role="EMPLOYEE", business_id="biz1")

        context = resolve_tenant_context(caller, probe)

        assert context == TenantContext(tenant_id="biz1", user_id="u1")
        probe.tenant_resolved.assert_called_once_with("biz1", "u1")

    @pytest.mark.parametrize("business_id", [None, ""])
    def test_caller_without_business_raises(self, probe, business_id):
        caller = AuthenticatedCaller(user_id="u1", role="OWNER", business_id=business_id)

        with pytest.raises(TenantContextError) as exc_info:
            resolve_tenant_context(caller, probe)

        assert exc_info.value.user_id == "u1"
        assert str(exc_info.value) == "User is not associated with a business"
        probe.caller_without_tenant.assert_called_once_with("u1")


class TestGetBusinessDb:
    """Tests for the accessor dependency."""

    def test_returns_accessor_for_context_tenant(self):
        service = MagicMock()
        request = make_request()
        context = TenantContext(tenant_id="biz1", user_id="u1")

        accessor = get_business_db(request, context, service)

        service.get_business_db.assert_called_once_with("biz1")
        assert accessor is service.get_business_db.return_value
        assert request.state.business_db is accessor
        assert request.state.tenant_context is context

    def test_service_comes_from_app_state(self):
        service = MagicMock()

        assert get_tenant_database_service(make_request(service=service)) is service


class TestBuildTenantDatabaseService:
    """Tests for build_tenant_database_service."""

    def test_wires_cache_and_service_over_one_pool(self):
        pool = MagicMock()
        service, cache = build_tenant_database_service(
            pool,
            DatabaseSettings(pool_enabled=False),
            TenancySettings(schema_prefix="tenant_", handle_ttl_seconds=120),
        )

        assert isinstance(service, TenantDatabaseService)
        assert isinstance(cache, TenantHandleCache)
        accessor = service.get_business_db("biz-1")
        assert isinstance(accessor, TenantDataAccessor)
        assert accessor.schema_name == "tenant_biz_1"
        assert service.get_business_db("biz-1") is accessor
        assert service.schema_name_for("biz-1") == "tenant_biz_1"
        pool.get_connection.assert_not_called()
