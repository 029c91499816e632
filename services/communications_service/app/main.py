"""FastAPI application for the Communications Service."""

from fastapi import FastAPI
from libs.common.errors import register_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.communications_service.routers import admin_router


def create_app() -> FastAPI:
    """Create and configure the Communications Service FastAPI app."""
    app = FastAPI(
        title="Pasarantar Communications Service",
        version="0.1.0",
        description="WhatsApp gateway settings and order notification outbox.",
    )
    add_observability_middleware(app, service="communications")
    register_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "communications"}

    app.include_router(admin_router, prefix="/admin/communications")

    return app


app = create_app()
