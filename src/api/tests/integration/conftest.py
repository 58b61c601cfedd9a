"""Integration test fixtures for database tests.

These fixtures require a running PostgreSQL instance. Tests are skipped
when the database is unreachable.
"""

from collections.abc import Generator
import os
import uuid

import pytest
from pydantic import SecretStr

from infrastructure.database.connection_pool import ConnectionPool
from infrastructure.database.exceptions import DatabaseConnectionError
from infrastructure.settings import DatabaseSettings, TenancySettings
from tenancy.application.tenant_database_service import TenantDatabaseService
from tenancy.dependencies import build_tenant_database_service
from tenancy.infrastructure.data_accessor import TenantDataAccessor


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires database)",
    )


@pytest.fixture(scope="session")
def integration_db_settings() -> DatabaseSettings:
    """Database settings for integration tests.

    Override with environment variables:
        SHIFTBOARD_DB_HOST, SHIFTBOARD_DB_PORT, etc.
    """
    return DatabaseSettings(
        host=os.getenv("SHIFTBOARD_DB_HOST", "localhost"),
        port=int(os.getenv("SHIFTBOARD_DB_PORT", "5432")),
        database=os.getenv("SHIFTBOARD_DB_DATABASE", "shiftboard"),
        username=os.getenv("SHIFTBOARD_DB_USERNAME", "shiftboard"),
        password=SecretStr(
            os.getenv("SHIFTBOARD_DB_PASSWORD", "shiftboard_dev_password")
        ),
        pool_min_connections=1,
        pool_max_connections=10,
        provisioning_timeout_ms=15_000,
    )


@pytest.fixture(scope="session")
def connection_pool(
    integration_db_settings: DatabaseSettings,
) -> Generator[ConnectionPool, None, None]:
    """Provide a pool against the integration database, or skip."""
    try:
        pool = ConnectionPool(integration_db_settings)
    except DatabaseConnectionError as e:
        pytest.skip(f"PostgreSQL not available: {e}")
    yield pool
    pool.close_all()


@pytest.fixture
def tenant_service(
    connection_pool: ConnectionPool,
    integration_db_settings: DatabaseSettings,
) -> TenantDatabaseService:
    """Provide a service with its own accessor cache."""
    service, _ = build_tenant_database_service(
        connection_pool,
        integration_db_settings,
        TenancySettings(schema_prefix="it_business_"),
    )
    return service


@pytest.fixture
def make_tenant(
    tenant_service: TenantDatabaseService,
) -> Generator:
    """Provision throwaway tenants and drop their schemas afterwards."""
    created: list[str] = []

    def _make(provision: bool = True) -> str:
        tenant_id = str(uuid.uuid4())
        created.append(tenant_id)
        if provision:
            tenant_service.initialize_business_database(tenant_id)
        return tenant_id

    yield _make

    for tenant_id in created:
        tenant_service.drop_business_schema(tenant_id)


@pytest.fixture
def tenant_db(make_tenant, tenant_service: TenantDatabaseService) -> TenantDataAccessor:
    """Provide an accessor for a freshly provisioned tenant."""
    return tenant_service.get_business_db(make_tenant())
