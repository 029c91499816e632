"""Communications Service models package."""

from services.communications_service.models.core import (
    GatewayConfig,
    NotificationOutbox,
)
from services.communications_service.models.enums import (
    NotificationAudience,
    NotificationStatus,
)

__all__ = [
    "GatewayConfig",
    "NotificationAudience",
    "NotificationOutbox",
    "NotificationStatus",
]
