"""Store shipping models: the delivery options offered at checkout."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import ShippingMethodType, enum_values
from sqlalchemy import Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class ShippingMethod(Base):
    """A delivery option (pickup, flat rate or distance based).

    Empty optional limits fall back to the shop config: no ``free_shipping_min``
    means the shop-wide free-shipping threshold applies, and a DISTANCE method
    without ``price_per_km`` is priced from the shop's fee bands.
    """

    __tablename__ = "store_shipping_methods"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[ShippingMethodType] = mapped_column(
        SAEnum(
            ShippingMethodType,
            values_callable=enum_values,
            name="store_shipping_method_type_enum",
        ),
        nullable=False,
    )

    base_fee: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    price_per_km: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    min_order: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    free_shipping_min: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1")
    sort_order: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<ShippingMethod {self.name} ({self.type.value})>"
