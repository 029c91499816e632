"""FastAPI application for the Store Service."""

from fastapi import FastAPI
from libs.common.errors import register_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.store_service.routers import (
    admin_router,
    cart_router,
    catalog_router,
    orders_router,
    promotions_router,
    shipping_router,
)


def create_app() -> FastAPI:
    """Create and configure the Store Service FastAPI app."""
    app = FastAPI(
        title="Pasarantar Store Service",
        version="0.1.0",
        description="Grocery storefront - catalog, cart, shipping estimates, checkout, orders.",
    )
    add_observability_middleware(app, service="store")
    register_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "store"}

    # Storefront routes
    app.include_router(catalog_router, prefix="/store")
    app.include_router(cart_router, prefix="/store")
    app.include_router(shipping_router, prefix="/store")
    app.include_router(promotions_router, prefix="/store")
    app.include_router(orders_router, prefix="/store")

    # Admin routes (settings, coupons, fulfilment)
    app.include_router(admin_router, prefix="/admin/store")

    return app


app = create_app()
