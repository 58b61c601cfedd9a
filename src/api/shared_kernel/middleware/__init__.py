"""Shared middleware for cross-cutting concerns.

Holds the tenant context value objects and their observability probe.
The FastAPI dependency that resolves them lives in the tenancy context.
"""
