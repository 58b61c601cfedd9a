"""Unit tests for TenantDatabaseService."""

from unittest.mock import MagicMock, call

import pytest

from infrastructure.database.exceptions import QueryError
from tenancy.application.tenant_database_service import TenantDatabaseService
from tenancy.ports.exceptions import ProvisioningError, TenantContextError


@pytest.fixture
def handles():
    return MagicMock()


@pytest.fixture
def provisioner():
    provisioner = MagicMock()
    provisioner.schema_name_for.side_effect = lambda tenant_id: f"business_{tenant_id}"
    return provisioner


@pytest.fixture
def service(handles, provisioner):
    return TenantDatabaseService(handles=handles, provisioner=provisioner)


class TestGetBusinessDb:
    """Tests for get_business_db."""

    def test_returns_cached_accessor(self, service, handles):
        accessor = service.get_business_db("biz1")

        handles.get.assert_called_once_with("biz1")
        assert accessor is handles.get.return_value

    def test_empty_tenant_id_is_rejected(self, service, handles):
        with pytest.raises(TenantContextError):
            service.get_business_db("")

        handles.get.assert_not_called()


class TestInitializeBusinessDatabase:
    """Tests for initialize_business_database."""

    def test_provisions_schema(self, service, provisioner):
        service.initialize_business_database("biz1")

        provisioner.provision.assert_called_once_with("biz1")

    def test_provisioning_errors_surface_without_retry(self, service, provisioner):
        provisioner.provision.side_effect = ProvisioningError("biz1", "business_biz1", "tables")

        with pytest.raises(ProvisioningError):
            service.initialize_business_database("biz1")

        provisioner.provision.assert_called_once()


class TestDropBusinessSchema:
    """Tests for drop_business_schema."""

    def test_drops_schema_then_evicts_handle(self, service, provisioner, handles):
        manager = MagicMock()
        manager.attach_mock(provisioner.drop, "drop")
        manager.attach_mock(handles.evict, "evict")

        service.drop_business_schema("biz1")

        assert manager.mock_calls == [call.drop("biz1"), call.evict("biz1")]

    def test_failed_drop_keeps_handle(self, service, provisioner, handles):
        provisioner.drop.side_effect = QueryError("lock timeout")

        with pytest.raises(QueryError):
            service.drop_business_schema("biz1")

        handles.evict.assert_not_called()


def test_schema_name_for_delegates_to_provisioner(service):
    assert service.schema_name_for("biz1") == "business_biz1"
