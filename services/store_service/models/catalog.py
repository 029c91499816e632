"""Store catalog models: products and their unit variants."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import StockStatus, enum_values
from sqlalchemy import Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship


class Product(Base):
    """Products sold in the shop (e.g. 'Daging Sapi Has Dalam')."""

    __tablename__ = "store_products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, nullable=True
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Base unit the product price refers to, e.g. "500gr" or "pack"
    unit: Mapped[str] = mapped_column(String(50), nullable=False, default="pcs")

    # Pricing (IDR)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    cost_price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    original_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True
    )  # "was" price for markdown listings

    # Time-boxed promotion
    promo_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True
    )
    promo_start: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    promo_end: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Inventory
    stock: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    stock_status: Mapped[StockStatus] = mapped_column(
        SAEnum(
            StockStatus,
            values_callable=enum_values,
            name="store_stock_status_enum",
        ),
        default=StockStatus.READY_STOCK,
        server_default="READY_STOCK",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="1"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.price",
    )

    @property
    def has_finite_stock(self) -> bool:
        return self.stock_status == StockStatus.READY_STOCK

    def __repr__(self):
        return f"<Product {self.name}>"


class ProductVariant(Base):
    """Alternative selling units of a product (e.g. '1kg' next to a '500gr' base)."""

    __tablename__ = "store_product_variants"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("store_products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    unit: Mapped[str] = mapped_column(String(50), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    cost_price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    # One variant per product should be default; not enforced at the data layer.
    is_default: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="0"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    product = relationship("Product", back_populates="variants")

    def __repr__(self):
        return f"<ProductVariant {self.unit} {self.price}>"
