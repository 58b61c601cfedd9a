"""Shared infrastructure: settings, logging, database pool, observability."""
