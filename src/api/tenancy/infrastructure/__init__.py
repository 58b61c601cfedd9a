"""Infrastructure layer for the Tenancy bounded context."""
