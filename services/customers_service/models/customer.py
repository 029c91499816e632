"""Customer and saved delivery address models."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.customers_service.models.enums import (
    AddressType,
    CustomerTier,
    enum_values,
)
from sqlalchemy import Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship


def _new_customer_id() -> str:
    return str(uuid.uuid4())


class Customer(Base):
    """Storefront customer. The id is the subject of the customer's login token."""

    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=_new_customer_id
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(
        String(50), unique=True, index=True, nullable=True
    )
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Loyalty. `points` caches the sum of the point ledger.
    points: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    tier: Mapped[CustomerTier] = mapped_column(
        SAEnum(
            CustomerTier,
            values_callable=enum_values,
            name="customer_tier_enum",
        ),
        default=CustomerTier.BRONZE,
        server_default="BRONZE",
    )
    total_spent: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=0, server_default="0"
    )
    order_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    last_order_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    addresses = relationship(
        "Address", back_populates="customer", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Customer {self.name} tier={self.tier}>"


class Address(Base):
    """Saved delivery address. At most one default per customer."""

    __tablename__ = "customer_addresses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("customers.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    label: Mapped[str] = mapped_column(String(100), nullable=False)
    recipient_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[Optional[float]] = mapped_column(nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(nullable=True)
    type: Mapped[AddressType] = mapped_column(
        SAEnum(
            AddressType,
            values_callable=enum_values,
            name="customer_address_type_enum",
        ),
        default=AddressType.HOME,
        server_default="home",
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="0"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    customer = relationship("Customer", back_populates="addresses")

    def __repr__(self):
        return f"<Address {self.label} default={self.is_default}>"
