"""Store Service models package."""

from services.store_service.models.catalog import Product, ProductVariant
from services.store_service.models.commerce import (
    DEFAULT_FEE_BANDS,
    Cart,
    CartItem,
    Order,
    OrderItem,
    ShopConfig,
)
from services.store_service.models.enums import (
    PROCESSING_STATUSES,
    CouponType,
    OrderSource,
    OrderStatus,
    ShippingMethodType,
    StockStatus,
)
from services.store_service.models.promotions import Coupon
from services.store_service.models.shipping import ShippingMethod

__all__ = [
    "Cart",
    "CartItem",
    "Coupon",
    "CouponType",
    "DEFAULT_FEE_BANDS",
    "Order",
    "OrderItem",
    "OrderSource",
    "OrderStatus",
    "PROCESSING_STATUSES",
    "Product",
    "ProductVariant",
    "ShippingMethod",
    "ShippingMethodType",
    "ShopConfig",
    "StockStatus",
]
