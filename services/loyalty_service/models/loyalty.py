"""Loyalty models: configuration, rewards catalog, point ledger and vouchers."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.loyalty_service.models.enums import (
    PointTransactionType,
    VoucherType,
    enum_values,
)
from sqlalchemy import Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship


class LoyaltyConfig(Base):
    """Singleton row (id='global') with accrual rates and tier thresholds."""

    __tablename__ = "loyalty_config"

    id: Mapped[str] = mapped_column(String(20), primary_key=True, default="global")

    points_per_amount: Mapped[int] = mapped_column(Integer, default=10000)
    # Bronze multiplier
    point_multiplier: Mapped[Decimal] = mapped_column(
        Numeric(4, 2), default=Decimal("1.0")
    )
    multiplier_silver: Mapped[Decimal] = mapped_column(
        Numeric(4, 2), default=Decimal("1.2")
    )
    multiplier_gold: Mapped[Decimal] = mapped_column(
        Numeric(4, 2), default=Decimal("1.5")
    )
    min_spent_silver: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("1000000")
    )
    min_spent_gold: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("5000000")
    )
    voucher_validity_days: Mapped[int] = mapped_column(Integer, default=30)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<LoyaltyConfig {self.id}>"


class LoyaltyReward(Base):
    """Rewards customers can redeem points for."""

    __tablename__ = "loyalty_rewards"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    points_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[VoucherType] = mapped_column(
        SAEnum(
            VoucherType,
            values_callable=enum_values,
            name="loyalty_voucher_type_enum",
        ),
        nullable=False,
    )
    value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, nullable=True
    )  # store_service.store_products.id
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<LoyaltyReward {self.title} cost={self.points_cost}>"


class PointTransaction(Base):
    """Append-only point ledger; the source of truth for a customer's balance."""

    __tablename__ = "loyalty_point_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id: Mapped[str] = mapped_column(
        String(36), index=True, nullable=False
    )  # customers_service.customers.id
    type: Mapped[PointTransactionType] = mapped_column(
        SAEnum(
            PointTransactionType,
            values_callable=enum_values,
            name="loyalty_point_transaction_type_enum",
        ),
        nullable=False,
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)  # signed
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    # Order id for EARNED, reward id for SPENT
    reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True
    )

    def __repr__(self):
        return f"<PointTransaction {self.type} {self.amount:+d}>"


class Voucher(Base):
    """Single-use voucher minted when a customer redeems a reward."""

    __tablename__ = "loyalty_vouchers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    customer_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    reward_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("loyalty_rewards.id", ondelete="SET NULL"),
        nullable=True,
    )
    type: Mapped[VoucherType] = mapped_column(
        SAEnum(
            VoucherType,
            values_callable=enum_values,
            name="loyalty_voucher_type_enum",
        ),
        nullable=False,
    )
    value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    is_used: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    used_order_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    reward = relationship("LoyaltyReward")

    def __repr__(self):
        return f"<Voucher {self.code} used={self.is_used}>"
