"""FastAPI application for the Loyalty Service."""

from fastapi import FastAPI
from libs.common.errors import register_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.loyalty_service.routers import admin_loyalty_router, loyalty_router


def create_app() -> FastAPI:
    """Create and configure the Loyalty Service FastAPI app."""
    app = FastAPI(
        title="Pasarantar Loyalty Service",
        version="0.1.0",
        description="Points ledger, tiers, rewards and vouchers.",
    )
    add_observability_middleware(app, service="loyalty")
    register_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "loyalty"}

    app.include_router(loyalty_router, prefix="/loyalty")
    app.include_router(admin_loyalty_router, prefix="/admin/loyalty")

    return app


app = create_app()
