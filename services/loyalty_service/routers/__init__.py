"""Loyalty service routers package."""

from services.loyalty_service.routers.admin import router as admin_loyalty_router
from services.loyalty_service.routers.member import router as loyalty_router

__all__ = [
    "admin_loyalty_router",
    "loyalty_router",
]
