"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    product = ProductFactory.create(price=Decimal("50000"), stock=10)
    db_session.add(product)
    await db_session.commit()
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _short() -> str:
    return uuid.uuid4().hex[:6].upper()


# ---------------------------------------------------------------------------
# Customers Service
# ---------------------------------------------------------------------------


class CustomerFactory:
    @staticmethod
    def create(**overrides):
        from services.customers_service.models import Customer, CustomerTier

        defaults = {
            "id": str(_uuid()),
            "name": "Budi Santoso",
            "phone": f"0812{uuid.uuid4().int % 10**8:08d}",
            "email": None,
            "points": 0,
            "tier": CustomerTier.BRONZE,
            "total_spent": Decimal("0"),
            "order_count": 0,
        }
        defaults.update(overrides)
        return Customer(**defaults)


# ---------------------------------------------------------------------------
# Store Service
# ---------------------------------------------------------------------------


class ProductFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Product, StockStatus

        defaults = {
            "id": _uuid(),
            "name": "Daging Sapi Has Dalam",
            "slug": f"daging-sapi-{_short().lower()}",
            "category": "daging",
            "image": "https://cdn.test/daging.jpg",
            "unit": "500gr",
            "price": Decimal("50000"),
            "cost_price": Decimal("42000"),
            "stock": 20,
            "stock_status": StockStatus.READY_STOCK,
            "is_active": True,
        }
        defaults.update(overrides)
        return Product(**defaults)


class ProductVariantFactory:
    @staticmethod
    def create(product_id=None, **overrides):
        from services.store_service.models import ProductVariant

        defaults = {
            "id": _uuid(),
            "product_id": product_id or _uuid(),
            "unit": "1kg",
            "price": Decimal("95000"),
            "cost_price": Decimal("80000"),
            "is_default": False,
        }
        defaults.update(overrides)
        return ProductVariant(**defaults)


class CouponFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Coupon, CouponType

        defaults = {
            "id": _uuid(),
            "code": f"HEMAT{_short()}",
            "type": CouponType.FIXED,
            "value": Decimal("20000"),
            "max_discount": None,
            "min_purchase": Decimal("50000"),
            "usage_limit": None,
            "usage_count": 0,
            "is_active": True,
        }
        defaults.update(overrides)
        return Coupon(**defaults)


class ShippingMethodFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import ShippingMethod, ShippingMethodType

        defaults = {
            "id": _uuid(),
            "name": "Kurir Toko",
            "type": ShippingMethodType.FLAT,
            "base_fee": Decimal("10000"),
            "price_per_km": Decimal("0"),
            "min_order": Decimal("0"),
            "free_shipping_min": None,
            "is_active": True,
            "sort_order": 0,
        }
        defaults.update(overrides)
        return ShippingMethod(**defaults)


class OrderFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Order, OrderStatus

        defaults = {
            "id": _uuid(),
            "order_number": Order.generate_order_number(),
            "customer_id": None,
            "address_name": "Budi Santoso",
            "address_phone": "081234567890",
            "address_full": "Jl. Kaliurang KM 5, Sleman",
            "subtotal": Decimal("100000"),
            "shipping_fee": Decimal("15000"),
            "service_fee": Decimal("1000"),
            "discount": Decimal("0"),
            "grand_total": Decimal("116000"),
            "status": OrderStatus.PENDING,
            "payment_method": "cod",
        }
        defaults.update(overrides)
        return Order(**defaults)


class OrderItemFactory:
    @staticmethod
    def create(order_id=None, **overrides):
        from services.store_service.models import OrderItem

        defaults = {
            "id": _uuid(),
            "order_id": order_id or _uuid(),
            "product_id": None,
            "product_name": "Daging Sapi Has Dalam",
            "variant": "500gr",
            "quantity": 2,
            "unit_price": Decimal("50000"),
            "total": Decimal("100000"),
        }
        defaults.update(overrides)
        return OrderItem(**defaults)


# ---------------------------------------------------------------------------
# Loyalty Service
# ---------------------------------------------------------------------------


class RewardFactory:
    @staticmethod
    def create(**overrides):
        from services.loyalty_service.models import LoyaltyReward, VoucherType

        defaults = {
            "id": _uuid(),
            "title": "Gratis Ongkir",
            "description": "Potongan ongkir hingga Rp 15.000",
            "points_cost": 100,
            "type": VoucherType.SHIPPING,
            "value": Decimal("15000"),
            "is_active": True,
        }
        defaults.update(overrides)
        return LoyaltyReward(**defaults)


class VoucherFactory:
    @staticmethod
    def create(customer_id=None, **overrides):
        from services.loyalty_service.models import Voucher, VoucherType

        defaults = {
            "id": _uuid(),
            "code": f"RW-{_short()}-{uuid.uuid4().int % 10000:04d}",
            "customer_id": customer_id or str(_uuid()),
            "type": VoucherType.DISCOUNT,
            "value": Decimal("10000"),
            "is_used": False,
            "expires_at": _now() + timedelta(days=30),
        }
        defaults.update(overrides)
        return Voucher(**defaults)


# ---------------------------------------------------------------------------
# Communications Service
# ---------------------------------------------------------------------------


class GatewayConfigFactory:
    @staticmethod
    def create(**overrides):
        from services.communications_service.models import GatewayConfig

        defaults = {
            "id": "global",
            "endpoint": "http://wa-gateway.test",
            "username": "admin",
            "password": "secret",
            "admin_phones": "081111111111, 082222222222",
            "notify_admin": True,
            "notify_customer": True,
        }
        defaults.update(overrides)
        return GatewayConfig(**defaults)
