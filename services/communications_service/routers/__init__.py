"""Communications service routers package."""

from services.communications_service.routers.admin import router as admin_router

__all__ = ["admin_router"]
