"""Customers service routers package."""

from services.customers_service.routers.addresses import router as addresses_router
from services.customers_service.routers.profile import router as profile_router

__all__ = [
    "addresses_router",
    "profile_router",
]
