"""Architecture tests using pytest-archon.

These tests enforce DDD architectural boundaries between layers
within the Tenancy bounded context.
"""

from pytest_archon import archrule


class TestTenancyDomainLayerBoundaries:
    """Tests that the domain layer has no forbidden dependencies."""

    def test_domain_does_not_import_infrastructure(self):
        """Domain layer should not depend on infrastructure.

        Schema names, table names and entity models are pure values; they
        should not know about psycopg2 or connection handling.
        """
        (
            archrule("domain_no_infrastructure")
            .match("tenancy.domain*")
            .should_not_import("tenancy.infrastructure*", "infrastructure*", "psycopg2*")
            .check("tenancy")
        )

    def test_domain_does_not_import_application(self):
        """Domain layer should not depend on application layer."""
        (
            archrule("domain_no_application")
            .match("tenancy.domain*")
            .should_not_import("tenancy.application*")
            .check("tenancy")
        )

    def test_domain_does_not_import_fastapi(self):
        """Domain layer should not depend on FastAPI.

        Domain objects should be framework-agnostic.
        """
        (
            archrule("domain_no_fastapi")
            .match("tenancy.domain*")
            .should_not_import("fastapi*", "starlette*")
            .check("tenancy")
        )


class TestTenancyPortsLayerBoundaries:
    """Tests that the ports layer has no forbidden dependencies."""

    def test_ports_does_not_import_infrastructure(self):
        """Ports define interfaces, not implementations."""
        (
            archrule("ports_no_infrastructure")
            .match("tenancy.ports*")
            .should_not_import("tenancy.infrastructure*")
            .check("tenancy")
        )

    def test_ports_does_not_import_application(self):
        """Ports are interfaces for the application layer to use,
        not the other way around.
        """
        (
            archrule("ports_no_application")
            .match("tenancy.ports*")
            .should_not_import("tenancy.application*")
            .check("tenancy")
        )


class TestTenancyApplicationLayerBoundaries:
    """Tests that the application layer depends on ports only."""

    def test_application_does_not_import_infrastructure(self):
        """Application services work against ports.

        Concrete executors, provisioners and caches are wired in
        tenancy.dependencies.
        """
        (
            archrule("application_no_infrastructure")
            .match("tenancy.application*")
            .should_not_import("tenancy.infrastructure*")
            .check("tenancy")
        )

    def test_application_does_not_import_fastapi(self):
        (
            archrule("application_no_fastapi")
            .match("tenancy.application*")
            .should_not_import("fastapi*", "starlette*")
            .check("tenancy")
        )


class TestSharedKernelBoundaries:
    """Tests that the shared kernel stays independent of bounded contexts."""

    def test_shared_kernel_does_not_import_tenancy(self):
        (
            archrule("shared_kernel_no_tenancy")
            .match("shared_kernel*")
            .should_not_import("tenancy*")
            .check("shared_kernel")
        )
