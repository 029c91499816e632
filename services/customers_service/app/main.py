"""FastAPI application for the Customers Service."""

from fastapi import FastAPI
from libs.common.errors import register_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.customers_service.routers import addresses_router, profile_router


def create_app() -> FastAPI:
    """Create and configure the Customers Service FastAPI app."""
    app = FastAPI(
        title="Pasarantar Customers Service",
        version="0.1.0",
        description="Customer profiles and saved delivery addresses.",
    )
    add_observability_middleware(app, service="customers")
    register_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "customers"}

    app.include_router(profile_router, prefix="/customers")
    app.include_router(addresses_router, prefix="/customers")

    return app


app = create_app()
