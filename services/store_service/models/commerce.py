"""Store commerce models: persisted carts, orders and the shop configuration."""

import random
import string
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import OrderSource, OrderStatus, enum_values
from sqlalchemy import Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import JSON, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# CART MODELS
# ============================================================================


class Cart(Base):
    """Server-side copy of a customer's cart, one row per customer."""

    __tablename__ = "store_carts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id: Mapped[str] = mapped_column(
        String(36), unique=True, index=True, nullable=False
    )  # customers_service.customers.id

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.created_at",
    )

    def __repr__(self):
        return f"<Cart {self.id} customer={self.customer_id}>"


class CartItem(Base):
    """Cart line items as last seen by the storefront."""

    __tablename__ = "store_cart_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    cart_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("store_carts.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    variant: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    # Display snapshot only; checkout re-prices every line
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    original_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True
    )
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    note: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (CheckConstraint("quantity > 0", name="positive_quantity"),)

    cart = relationship("Cart", back_populates="items")

    def __repr__(self):
        return f"<CartItem {self.name} qty={self.quantity}>"


# ============================================================================
# ORDER MODELS
# ============================================================================


class Order(Base):
    """Orders placed through the storefront (or keyed in at the POS)."""

    __tablename__ = "store_orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )

    # Nullable for guest checkout
    customer_id: Mapped[Optional[str]] = mapped_column(
        String(36), index=True, nullable=True
    )

    # Delivery address snapshot (independent of later address edits)
    address_label: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    address_name: Mapped[str] = mapped_column(String(255), nullable=False)
    address_phone: Mapped[str] = mapped_column(String(50), nullable=False)
    address_full: Mapped[str] = mapped_column(Text, nullable=False)

    # Pricing (IDR)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    shipping_fee: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    service_fee: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    voucher_discount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    coupon_discount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    discount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    grand_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    voucher_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    coupon_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(
            OrderStatus,
            values_callable=enum_values,
            name="store_order_status_enum",
        ),
        default=OrderStatus.PENDING,
        server_default="PENDING",
    )
    source: Mapped[OrderSource] = mapped_column(
        SAEnum(
            OrderSource,
            values_callable=enum_values,
            name="store_order_source_enum",
        ),
        default=OrderSource.ONLINE,
        server_default="ONLINE",
    )

    payment_method: Mapped[str] = mapped_column(
        String(50), default="cod", server_default="cod"
    )
    shipping_method: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    shipping_method_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("store_shipping_methods.id", ondelete="SET NULL"),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Set once loyalty points for this order have been granted
    loyalty_processed: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="0"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("grand_total >= 0", name="non_negative_grand_total"),
        CheckConstraint("discount >= 0", name="non_negative_discount"),
    )

    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan"
    )

    @staticmethod
    def generate_order_number() -> str:
        """Generate a unique order number like PSR-20261018-A1B2C."""
        date_part = utc_now().strftime("%Y%m%d")
        random_part = "".join(
            random.choices(string.ascii_uppercase + string.digits, k=5)
        )
        return f"PSR-{date_part}-{random_part}"

    def __repr__(self):
        return f"<Order {self.order_number}>"


class OrderItem(Base):
    """Order line items (snapshot at order time)."""

    __tablename__ = "store_order_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("store_orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Nullable for ad-hoc POS items and products deleted later
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("store_products.id", ondelete="SET NULL"),
        nullable=True,
    )

    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    product_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    variant: Mapped[str] = mapped_column(String(50), default="-")

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    original_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True
    )
    cost_price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    is_promo: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem {self.product_name} qty={self.quantity}>"


# ============================================================================
# SHOP CONFIG
# ============================================================================

DEFAULT_FEE_BANDS = [
    {"upToKm": 3, "fee": 10000},
    {"upToKm": 7, "fee": 15000},
    {"upToKm": 15, "fee": 25000},
]


class ShopConfig(Base):
    """Singleton row (id='global') with storefront and shipping settings."""

    __tablename__ = "store_shop_config"

    id: Mapped[str] = mapped_column(String(20), primary_key=True, default="global")

    store_latitude: Mapped[Optional[float]] = mapped_column(nullable=True)
    store_longitude: Mapped[Optional[float]] = mapped_column(nullable=True)
    max_radius_km: Mapped[float] = mapped_column(default=15.0)
    fee_bands: Mapped[list] = mapped_column(
        JSON, default=lambda: [dict(band) for band in DEFAULT_FEE_BANDS]
    )
    free_shipping_min_subtotal: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    service_fee: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=1000, server_default="1000"
    )
    minimum_order: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<ShopConfig {self.id}>"
