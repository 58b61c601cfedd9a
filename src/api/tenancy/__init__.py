"""Tenancy bounded context.

Per-business schema provisioning, schema-qualified data access and the
process-wide cache of tenant accessors.
"""
