"""Order validator & creator.

``create_order`` re-prices the cart from the catalog, validates stock, applies
at most one voucher and one coupon, and persists the order together with every
side effect (stock, voucher, coupon usage, cart, notification outbox) in one
transaction.
"""

import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from fastapi import status
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.currency import ZERO, format_rupiah, to_decimal
from libs.common.datetime_utils import as_utc, utc_now
from libs.common.errors import DomainError
from libs.common.logging import get_logger
from services.communications_service.services.dispatcher import (
    enqueue_order_notifications,
)
from services.customers_service.services.customer_ops import get_or_create_customer
from services.loyalty_service.models import Voucher, VoucherType
from services.store_service.models import (
    Cart,
    CartItem,
    Coupon,
    Order,
    OrderItem,
    OrderSource,
    OrderStatus,
    Product,
    ShippingMethod,
    ShippingMethodType,
)
from services.store_service.schemas import CheckoutItem, CheckoutRequest
from services.store_service.services.pricing import (
    CouponError,
    ResolvedPrice,
    calculate_coupon_discount,
    ensure_coupon_usable,
    resolve_unit_price,
)
from services.store_service.services.shipping import quote_without_distance
from services.store_service.services.shop_config import (
    get_shipping_method,
    get_shop_config,
    to_shipping_config,
)
from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)


class OrderValidationError(DomainError):
    """Checkout rejected before anything was written."""


class InsufficientStockError(OrderValidationError):
    def __init__(self, product_name: str):
        super().__init__(f"Stok {product_name} tidak mencukupi")


class VoucherError(DomainError):
    """Voucher cannot be used for this order."""


class OrderCreationError(DomainError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Gagal membuat order"):
        super().__init__(message)


@dataclass
class PricedLine:
    item: CheckoutItem
    product: Product
    price: ResolvedPrice

    @property
    def total(self) -> Decimal:
        return self.price.unit_price * self.item.quantity


@dataclass
class OrderTotals:
    subtotal: Decimal
    shipping_fee: Decimal
    service_fee: Decimal
    voucher_discount: Decimal
    coupon_discount: Decimal

    @property
    def discount(self) -> Decimal:
        return self.voucher_discount + self.coupon_discount

    @property
    def grand_total(self) -> Decimal:
        return max(
            ZERO, self.subtotal + self.shipping_fee + self.service_fee - self.discount
        )


# ============================================================================
# VALIDATION RULES
# ============================================================================


def validate_order_limits(items: Sequence[CheckoutItem], subtotal) -> None:
    """Reject empty carts and carts over the configured size/value limits."""
    settings = get_settings()
    if not items:
        raise OrderValidationError("Keranjang kosong")
    if len(items) > settings.ORDER_MAX_ITEMS:
        raise OrderValidationError(
            f"Maksimal {settings.ORDER_MAX_ITEMS} item per order"
        )
    for item in items:
        if item.quantity <= 0:
            raise OrderValidationError("Jumlah item tidak valid")
        if item.quantity > settings.ORDER_MAX_QTY_PER_ITEM:
            raise OrderValidationError(
                f"Maksimal {settings.ORDER_MAX_QTY_PER_ITEM} qty per item"
            )
    if to_decimal(subtotal) > settings.ORDER_MAX_TOTAL:
        raise OrderValidationError(
            f"Maksimal order {format_rupiah(settings.ORDER_MAX_TOTAL)}"
        )


def validate_address(payload: CheckoutRequest) -> None:
    for value in (payload.address_name, payload.address_phone, payload.address_full):
        if not value or not value.strip():
            raise OrderValidationError("Alamat pengiriman wajib diisi")


def check_voucher(
    voucher: Optional[Voucher],
    customer_id: Optional[str],
    now: Optional[datetime] = None,
    not_found_status: int = status.HTTP_400_BAD_REQUEST,
) -> Voucher:
    """Raise VoucherError unless the voucher can be spent by this customer."""
    if voucher is None:
        raise VoucherError("Voucer tidak valid", not_found_status)
    if voucher.customer_id != customer_id:
        raise VoucherError("Voucer ini bukan milik Anda", status.HTTP_403_FORBIDDEN)
    if voucher.is_used:
        raise VoucherError("Voucer sudah digunakan")
    now = now or utc_now()
    if voucher.expires_at and as_utc(voucher.expires_at) < now:
        raise VoucherError("Voucer sudah kedaluwarsa")
    return voucher


def voucher_discount(voucher: Voucher, shipping_fee) -> Decimal:
    """Flat voucher value; shipping vouchers never exceed the shipping fee."""
    value = to_decimal(voucher.value)
    if voucher.type == VoucherType.SHIPPING:
        return min(value, to_decimal(shipping_fee))
    return value


async def find_voucher(db: AsyncSession, code: str) -> Optional[Voucher]:
    result = await db.execute(
        select(Voucher).where(Voucher.code == code.strip().upper())
    )
    return result.scalar_one_or_none()


async def find_coupon(db: AsyncSession, code: str) -> Optional[Coupon]:
    result = await db.execute(select(Coupon).where(Coupon.code == code.strip().upper()))
    return result.scalar_one_or_none()


def method_shipping_fee(
    method: Optional[ShippingMethod], subtotal, client_fee, shop_config
) -> Decimal:
    """Shipping fee to charge for the chosen method.

    Pickup is free and flat-rate methods are priced here. Distance delivery
    keeps the fee quoted to the client, which depends on the drop-off pin.
    """
    if method is None or method.type == ShippingMethodType.DISTANCE:
        return to_decimal(client_fee)
    quote = quote_without_distance(subtotal, to_shipping_config(shop_config), method)
    return quote.shipping_fee


# ============================================================================
# PRICING
# ============================================================================


async def price_lines(
    db: AsyncSession, items: Sequence[CheckoutItem], now: datetime
) -> list[PricedLine]:
    """Load every product and resolve authoritative prices and stock."""
    product_ids = {item.product_id for item in items}
    result = await db.execute(
        select(Product)
        .where(Product.id.in_(product_ids))
        .options(selectinload(Product.variants))
    )
    products = {product.id: product for product in result.scalars().all()}

    requested = defaultdict(int)
    lines = []
    for item in items:
        product = products.get(item.product_id)
        if product is None or not product.is_active:
            raise OrderValidationError(
                f"Produk {item.name or item.product_id} tidak ditemukan"
            )
        requested[product.id] += item.quantity
        if product.has_finite_stock and product.stock < requested[product.id]:
            raise InsufficientStockError(product.name)

        price = resolve_unit_price(product, item.variant_label, now)
        if item.price is not None and to_decimal(item.price) != price.unit_price:
            logger.info(
                "Client price %s for %s (%s) replaced by %s",
                item.price,
                product.name,
                price.variant,
                price.unit_price,
            )
        lines.append(PricedLine(item=item, product=product, price=price))
    return lines


# ============================================================================
# ORDER CREATION
# ============================================================================


async def _decrement_stock(db: AsyncSession, lines: list[PricedLine]) -> None:
    """Compare-and-swap decrement; zero rows updated means someone got there first."""
    quantities = defaultdict(int)
    names = {}
    for line in lines:
        if line.product.has_finite_stock:
            quantities[line.product.id] += line.item.quantity
            names[line.product.id] = line.product.name

    for product_id, quantity in quantities.items():
        result = await db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
        )
        if result.rowcount == 0:
            raise InsufficientStockError(names[product_id])


async def _consume_voucher(
    db: AsyncSession, voucher: Voucher, order_id: uuid.UUID, now: datetime
) -> None:
    result = await db.execute(
        update(Voucher)
        .where(Voucher.id == voucher.id, Voucher.is_used.is_(False))
        .values(is_used=True, used_at=now, used_order_id=order_id)
    )
    if result.rowcount == 0:
        raise VoucherError("Voucer sudah digunakan")


async def _count_coupon_use(db: AsyncSession, coupon: Coupon) -> None:
    result = await db.execute(
        update(Coupon)
        .where(
            Coupon.id == coupon.id,
            or_(Coupon.usage_limit.is_(None), Coupon.usage_count < Coupon.usage_limit),
        )
        .values(usage_count=Coupon.usage_count + 1)
    )
    if result.rowcount == 0:
        raise CouponError("Kuota kupon habis")


async def _clear_cart(db: AsyncSession, customer_id: str) -> None:
    cart_ids = select(Cart.id).where(Cart.customer_id == customer_id)
    await db.execute(delete(CartItem).where(CartItem.cart_id.in_(cart_ids)))
    await db.execute(delete(Cart).where(Cart.customer_id == customer_id))


async def create_order(
    db: AsyncSession,
    payload: CheckoutRequest,
    customer: Optional[AuthUser] = None,
    source: OrderSource = OrderSource.ONLINE,
) -> Order:
    """Validate a checkout and persist the order atomically.

    A signed-in customer without a customer row yet gets one in the same
    transaction, so the order can later earn loyalty points.

    Raises:
        OrderValidationError / InsufficientStockError: bad cart (400)
        VoucherError: voucher unusable (400/401/403)
        CouponError: coupon unusable (400)
        OrderCreationError: any unexpected failure (500)
    """
    now = utc_now()
    customer_id = customer.user_id if customer else None

    # 1. Cheap input checks (value limit re-checked once prices are known)
    validate_order_limits(payload.items, ZERO)
    validate_address(payload)

    try:
        # 2-4. Authoritative prices, stock and limits
        lines = await price_lines(db, payload.items, now)
        subtotal = sum((line.total for line in lines), ZERO)
        validate_order_limits(payload.items, subtotal)

        shop_config = await get_shop_config(db)
        service_fee = (
            to_decimal(payload.service_fee)
            if payload.service_fee is not None
            else to_decimal(shop_config.service_fee)
        )
        shipping_method = None
        if payload.shipping_method_id:
            shipping_method = await get_shipping_method(
                db, payload.shipping_method_id, status.HTTP_400_BAD_REQUEST
            )
            min_order = to_decimal(shipping_method.min_order)
            if min_order > 0 and subtotal < min_order:
                raise OrderValidationError(
                    f"Minimal belanja {format_rupiah(min_order)} untuk "
                    f"{shipping_method.name}"
                )
        shipping_fee = method_shipping_fee(
            shipping_method, subtotal, payload.shipping_fee, shop_config
        )

        # 5. Voucher (owner only)
        voucher = None
        voucher_amount = ZERO
        if payload.voucher_code:
            if customer_id is None:
                raise VoucherError(
                    "Silakan login untuk menggunakan voucer",
                    status.HTTP_401_UNAUTHORIZED,
                )
            voucher = check_voucher(
                await find_voucher(db, payload.voucher_code), customer_id, now
            )
            voucher_amount = voucher_discount(voucher, shipping_fee)

        # 6. Coupon on non-promo lines only
        coupon = None
        coupon_amount = ZERO
        if payload.coupon_code:
            coupon = await find_coupon(db, payload.coupon_code)
            if coupon is None:
                raise CouponError("Kupon tidak ditemukan")
            ensure_coupon_usable(coupon, subtotal, now)
            eligible = sum(
                (line.total for line in lines if not line.price.is_promo), ZERO
            )
            coupon_amount = calculate_coupon_discount(coupon, eligible)

        # 7. Totals
        totals = OrderTotals(
            subtotal=subtotal,
            shipping_fee=shipping_fee,
            service_fee=service_fee,
            voucher_discount=voucher_amount,
            coupon_discount=coupon_amount,
        )

        # 8. One transaction for every write
        order_id = uuid.uuid4()
        if customer is not None:
            await get_or_create_customer(db, customer, commit=False)
        await _decrement_stock(db, lines)
        if voucher is not None:
            await _consume_voucher(db, voucher, order_id, now)
        if coupon is not None and coupon_amount > 0:
            await _count_coupon_use(db, coupon)
        if customer_id:
            await _clear_cart(db, customer_id)

        order = Order(
            id=order_id,
            order_number=Order.generate_order_number(),
            customer_id=customer_id,
            address_label=payload.address_label,
            address_name=payload.address_name.strip(),
            address_phone=payload.address_phone.strip(),
            address_full=payload.address_full.strip(),
            subtotal=totals.subtotal,
            shipping_fee=totals.shipping_fee,
            service_fee=totals.service_fee,
            voucher_discount=totals.voucher_discount,
            coupon_discount=totals.coupon_discount,
            discount=totals.discount,
            grand_total=totals.grand_total,
            voucher_code=voucher.code if voucher else None,
            coupon_code=coupon.code if coupon and coupon_amount > 0 else None,
            status=OrderStatus.PENDING,
            source=source,
            payment_method=payload.payment_method or "cod",
            shipping_method=(
                shipping_method.name if shipping_method else payload.shipping_method
            ),
            shipping_method_id=shipping_method.id if shipping_method else None,
            notes=payload.notes,
        )
        items = [
            OrderItem(
                order_id=order_id,
                product_id=line.product.id,
                product_name=line.product.name,
                product_image=line.product.image or line.item.image,
                variant=line.price.variant,
                quantity=line.item.quantity,
                unit_price=line.price.unit_price,
                original_price=line.price.original_price,
                cost_price=line.price.cost_price,
                is_promo=line.price.is_promo,
                total=line.total,
            )
            for line in lines
        ]
        db.add(order)
        db.add_all(items)
        await db.flush()

        queued = await enqueue_order_notifications(db, order, items)
        await db.commit()
    except DomainError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("Order creation failed: %s", e)
        raise OrderCreationError() from e

    logger.info(
        "Created order %s customer=%s subtotal=%s discount=%s total=%s (%d notifications queued)",
        order.order_number,
        customer_id or "guest",
        totals.subtotal,
        totals.discount,
        totals.grand_total,
        queued,
    )
    return order
