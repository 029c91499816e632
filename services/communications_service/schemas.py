import uuid
from datetime import datetime
from typing import Optional

from libs.common.schemas import CamelModel
from pydantic import Field
from services.communications_service.models import (
    NotificationAudience,
    NotificationStatus,
)


# ===== GATEWAY CONFIG SCHEMAS =====
class GatewayConfigResponse(CamelModel):
    """Gateway connection settings. Secrets are never echoed back."""

    endpoint: Optional[str] = None
    device_id: Optional[str] = None
    username: Optional[str] = None
    has_password: bool = False
    has_api_key: bool = False
    is_configured: bool = False
    updated_at: Optional[datetime] = None


class GatewayConfigUpdate(CamelModel):
    endpoint: Optional[str] = Field(None, max_length=500)
    device_id: Optional[str] = Field(None, max_length=100)
    api_key: Optional[str] = Field(None, max_length=255)
    username: Optional[str] = Field(None, max_length=100)
    password: Optional[str] = Field(None, max_length=255)


class GatewayTestRequest(CamelModel):
    phone: str = Field(..., min_length=5, max_length=50)
    message: Optional[str] = None


class GatewayTestResponse(CamelModel):
    success: bool
    phone: str
    message_id: Optional[str] = None


# ===== NOTIFICATION CONFIG SCHEMAS =====
class NotificationConfigBase(CamelModel):
    admin_phones: Optional[str] = None  # comma or newline separated
    notify_admin: bool = True
    notify_customer: bool = True
    admin_template: Optional[str] = None
    customer_template: Optional[str] = None


class NotificationConfigResponse(NotificationConfigBase):
    default_admin_template: str
    default_customer_template: str


class NotificationConfigUpdate(CamelModel):
    admin_phones: Optional[str] = None
    notify_admin: Optional[bool] = None
    notify_customer: Optional[bool] = None
    admin_template: Optional[str] = None
    customer_template: Optional[str] = None


# ===== OUTBOX SCHEMAS =====
class NotificationResponse(CamelModel):
    id: uuid.UUID
    order_id: Optional[uuid.UUID] = None
    audience: NotificationAudience
    recipient_phone: str
    message: str
    status: NotificationStatus
    attempts: int
    last_error: Optional[str] = None
    created_at: datetime
    sent_at: Optional[datetime] = None


class DeliveryStats(CamelModel):
    sent: int = 0
    failed: int = 0
