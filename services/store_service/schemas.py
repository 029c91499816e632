"""Pydantic schemas for store service."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.schemas import CamelModel, Money
from pydantic import Field
from services.loyalty_service.models import VoucherType
from services.store_service.models import (
    CouponType,
    OrderSource,
    OrderStatus,
    ShippingMethodType,
    StockStatus,
)
from services.store_service.services.shipping import FeeBand

# ============================================================================
# CATALOG SCHEMAS
# ============================================================================


class VariantResponse(CamelModel):
    id: uuid.UUID
    unit: str
    price: Money
    is_default: bool


class ProductResponse(CamelModel):
    id: uuid.UUID
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None
    unit: str
    price: Money  # price charged right now (promo applied)
    original_price: Optional[Money] = None
    is_promo: bool = False
    promo_end: Optional[datetime] = None
    stock: int
    stock_status: StockStatus
    variants: list[VariantResponse] = []


# ============================================================================
# CART SCHEMAS
# ============================================================================


class CartItemIn(CamelModel):
    product_id: uuid.UUID
    name: str = Field(..., min_length=1, max_length=255)
    variant: Optional[str] = Field(None, max_length=50)
    quantity: int = Field(..., gt=0)
    price: Money = Field(..., ge=0)
    original_price: Optional[Money] = Field(None, ge=0)
    image: Optional[str] = None
    note: Optional[str] = Field(None, max_length=255)


class CartItemResponse(CartItemIn):
    id: uuid.UUID


class CartUpdate(CamelModel):
    items: list[CartItemIn] = []


class CartResponse(CamelModel):
    items: list[CartItemResponse] = []
    subtotal: Money = Decimal("0")
    updated_at: Optional[datetime] = None


# ============================================================================
# CHECKOUT / ORDER SCHEMAS
# ============================================================================


class CheckoutItem(CamelModel):
    """One cart line as echoed by the storefront. ``price`` is informational only."""

    product_id: uuid.UUID
    name: Optional[str] = None
    price: Optional[Money] = None
    variant: Optional[str] = None
    unit: Optional[str] = None
    quantity: int
    image: Optional[str] = None

    @property
    def variant_label(self) -> Optional[str]:
        return self.variant or self.unit


class CheckoutRequest(CamelModel):
    items: list[CheckoutItem] = []
    address_label: Optional[str] = Field(None, max_length=100)
    address_name: Optional[str] = Field(None, max_length=255)
    address_phone: Optional[str] = Field(None, max_length=50)
    address_full: Optional[str] = None
    payment_method: str = Field("cod", max_length=50)
    shipping_method: Optional[str] = Field(None, max_length=100)
    shipping_method_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    voucher_code: Optional[str] = Field(None, max_length=50)
    coupon_code: Optional[str] = Field(None, max_length=50)
    shipping_fee: Money = Field(Decimal("0"), ge=0)
    service_fee: Optional[Money] = Field(None, ge=0)


class OrderRef(CamelModel):
    id: uuid.UUID
    order_number: str


class CheckoutResponse(CamelModel):
    message: str
    order: OrderRef


class OrderSummaryItem(CamelModel):
    name: str
    quantity: int
    image: str


class OrderSummary(CamelModel):
    id: uuid.UUID
    order_number: str
    date: str
    status: str
    items: list[OrderSummaryItem]
    total: Money


class OrderItemResponse(CamelModel):
    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    product_name: str
    product_image: Optional[str] = None
    variant: str
    quantity: int
    unit_price: Money
    original_price: Optional[Money] = None
    is_promo: bool
    total: Money


class OrderDetail(CamelModel):
    id: uuid.UUID
    order_number: str
    status: OrderStatus
    source: OrderSource
    address_label: Optional[str] = None
    address_name: str
    address_phone: str
    address_full: str
    subtotal: Money
    shipping_fee: Money
    service_fee: Money
    voucher_discount: Money
    coupon_discount: Money
    discount: Money
    grand_total: Money
    voucher_code: Optional[str] = None
    coupon_code: Optional[str] = None
    payment_method: str
    shipping_method: Optional[str] = None
    shipping_method_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    created_at: datetime
    items: list[OrderItemResponse]


# ============================================================================
# COUPON / VOUCHER SCHEMAS
# ============================================================================


class CouponVerifyRequest(CamelModel):
    code: str = Field(..., min_length=1, max_length=50)
    subtotal: Money = Field(Decimal("0"), ge=0)
    # Subtotal of lines not already on promo; defaults to the whole subtotal
    eligible_subtotal: Optional[Money] = Field(None, ge=0)


class CouponVerifyResponse(CamelModel):
    valid: bool = True
    code: str
    type: CouponType
    discount: Money
    message: str = "Kupon berhasil digunakan!"


class CouponCreate(CamelModel):
    code: str = Field(..., min_length=3, max_length=50)
    type: CouponType
    value: Money = Field(..., gt=0)
    max_discount: Optional[Money] = Field(None, gt=0)
    min_purchase: Money = Field(Decimal("0"), ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    usage_limit: Optional[int] = Field(None, gt=0)
    is_active: bool = True


class CouponResponse(CouponCreate):
    id: uuid.UUID
    usage_count: int
    created_at: datetime


class VoucherValidateRequest(CamelModel):
    code: str = Field(..., min_length=1, max_length=50)


class VoucherPreview(CamelModel):
    id: uuid.UUID
    code: str
    type: VoucherType
    value: Money
    product_id: Optional[uuid.UUID] = None
    expires_at: Optional[datetime] = None


class VoucherValidateResponse(CamelModel):
    valid: bool = True
    voucher: VoucherPreview


# ============================================================================
# SHIPPING / CONFIG SCHEMAS
# ============================================================================


class GeocodeRequest(CamelModel):
    address: str = Field(..., min_length=3)


class GeocodeResponse(CamelModel):
    latitude: float
    longitude: float
    display_name: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    match_type: str = "exact"


class CalculateShippingRequest(CamelModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    subtotal: Money = Field(Decimal("0"), ge=0)
    shipping_method_id: Optional[uuid.UUID] = None


class EstimateShippingRequest(CamelModel):
    address: str = Field(..., min_length=3)
    subtotal: Money = Field(Decimal("0"), ge=0)
    shipping_method_id: Optional[uuid.UUID] = None


class ShippingQuoteResponse(CamelModel):
    distance_km: Optional[float] = Field(None, alias="distance_km")
    shipping_fee: Optional[Money] = None
    is_free_shipping: bool = False
    is_out_of_range: bool = False
    message: Optional[str] = None
    service_fee: Optional[Money] = None
    minimum_order: Optional[Money] = None
    shipping_method_id: Optional[uuid.UUID] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class ShopConfigResponse(CamelModel):
    store_latitude: Optional[float] = None
    store_longitude: Optional[float] = None
    max_radius_km: float
    fee_bands: list[FeeBand]
    free_shipping_min_subtotal: Money
    service_fee: Money
    minimum_order: Money


class ShopConfigUpdate(CamelModel):
    store_latitude: Optional[float] = Field(None, ge=-90, le=90)
    store_longitude: Optional[float] = Field(None, ge=-180, le=180)
    max_radius_km: Optional[float] = Field(None, ge=0)
    fee_bands: Optional[list[FeeBand]] = None
    free_shipping_min_subtotal: Optional[Money] = Field(None, ge=0)
    service_fee: Optional[Money] = Field(None, ge=0)
    minimum_order: Optional[Money] = Field(None, ge=0)


class OrderStatusUpdate(CamelModel):
    status: OrderStatus


# ============================================================================
# SHIPPING METHOD SCHEMAS
# ============================================================================


class ShippingMethodBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    type: ShippingMethodType
    base_fee: Money = Field(Decimal("0"), ge=0)
    price_per_km: Money = Field(Decimal("0"), ge=0)
    min_order: Money = Field(Decimal("0"), ge=0)
    free_shipping_min: Optional[Money] = Field(None, ge=0)
    is_active: bool = True
    sort_order: int = 0


class ShippingMethodCreate(ShippingMethodBase):
    pass


class ShippingMethodUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    type: Optional[ShippingMethodType] = None
    base_fee: Optional[Money] = Field(None, ge=0)
    price_per_km: Optional[Money] = Field(None, ge=0)
    min_order: Optional[Money] = Field(None, ge=0)
    free_shipping_min: Optional[Money] = Field(None, ge=0)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class ShippingMethodResponse(ShippingMethodBase):
    id: uuid.UUID
