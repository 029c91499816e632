"""Store service routers package."""

from services.store_service.routers.admin import router as admin_router
from services.store_service.routers.cart import router as cart_router
from services.store_service.routers.catalog import router as catalog_router
from services.store_service.routers.orders import router as orders_router
from services.store_service.routers.promotions import router as promotions_router
from services.store_service.routers.shipping import router as shipping_router

__all__ = [
    "admin_router",
    "cart_router",
    "catalog_router",
    "orders_router",
    "promotions_router",
    "shipping_router",
]
