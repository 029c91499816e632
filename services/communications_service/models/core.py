import re
import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.communications_service.models.enums import (
    NotificationAudience,
    NotificationStatus,
    enum_values,
)
from sqlalchemy import Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class GatewayConfig(Base):
    """WhatsApp gateway credentials and order notification settings (id='global')."""

    __tablename__ = "gateway_config"

    id: Mapped[str] = mapped_column(String(20), primary_key=True, default="global")

    # Gateway connection
    endpoint: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    device_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    api_key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Notification settings
    admin_phones: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True
    )  # comma or newline separated
    notify_admin: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1")
    notify_customer: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="1"
    )
    admin_template: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    customer_template: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint)

    def admin_phone_list(self) -> list[str]:
        return [p.strip() for p in re.split(r"[,\n]", self.admin_phones or "") if p.strip()]

    def __repr__(self):
        return f"<GatewayConfig {self.id} endpoint={self.endpoint}>"


class NotificationOutbox(Base):
    """Outgoing WhatsApp message, written in the same transaction as its order."""

    __tablename__ = "notification_outbox"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, index=True, nullable=True
    )  # store_service.store_orders.id
    audience: Mapped[NotificationAudience] = mapped_column(
        SAEnum(
            NotificationAudience,
            name="notification_audience_enum",
            values_callable=enum_values,
        ),
        nullable=False,
    )
    recipient_phone: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[NotificationStatus] = mapped_column(
        SAEnum(
            NotificationStatus,
            name="notification_status_enum",
            values_callable=enum_values,
        ),
        default=NotificationStatus.PENDING,
        server_default="PENDING",
        index=True,
    )
    attempts: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    sent_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self):
        return f"<NotificationOutbox {self.audience} {self.recipient_phone} {self.status}>"
