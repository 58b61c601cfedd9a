"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from infrastructure.dependencies import get_connection_pool
from infrastructure.logging import configure_logging
from infrastructure.settings import get_settings
from infrastructure.version import __version__
from tenancy.dependencies import build_tenant_database_service
from tenancy.ports.exceptions import TenantContextError


@asynccontextmanager
async def shiftboard_lifespan(app: FastAPI):
    """Application lifespan context.

    Manages:
    - Logging configuration
    - Connection pool lifecycle (opened on startup, closed on shutdown)
    - Tenant accessor cache and its background sweeper
    """
    settings = get_settings()
    configure_logging(debug=settings.debug)

    pool = get_connection_pool()
    service, cache = build_tenant_database_service(
        pool, settings.database, settings.tenancy
    )
    app.state.connection_pool = pool
    app.state.tenant_handle_cache = cache
    app.state.tenant_database_service = service

    await cache.start()
    try:
        yield
    finally:
        await cache.stop()
        cache.clear()
        pool.close_all()


app = FastAPI(
    title="Shiftboard API",
    description="Multi-tenant scheduling data with one PostgreSQL schema per business",
    version=__version__,
    lifespan=shiftboard_lifespan,
)


@app.exception_handler(TenantContextError)
async def tenant_context_error_handler(
    request: Request, exc: TenantContextError
) -> JSONResponse:
    """Reject tenant-scoped requests from callers without a business."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)},
    )


@app.get("/health")
def health():
    """Basic health check endpoint."""
    return {"status": "ok"}


@app.get("/health/db")
def health_db(request: Request) -> dict:
    """Check database connection health.

    Returns the connection status and the number of cached tenant accessors.
    """
    pool = request.app.state.connection_pool
    cache = request.app.state.tenant_handle_cache
    try:
        with pool.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()

        return {
            "status": "ok",
            "connected": True,
            "cached_tenants": len(cache),
        }
    except Exception as e:
        return {
            "status": "error",
            "connected": False,
            "error": str(e),
        }
