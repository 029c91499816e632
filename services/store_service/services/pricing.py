"""Server-side price resolution and coupon rules.

Checkout never trusts a client-supplied price: unit prices come from the
product, its variants, or its currently running promotion.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from fastapi import status
from libs.common.currency import ZERO, format_rupiah, to_decimal
from libs.common.datetime_utils import as_utc, utc_now
from libs.common.errors import DomainError
from services.store_service.models import Coupon, CouponType, Product

HUNDRED = Decimal("100")


class CouponError(DomainError):
    """Coupon cannot be applied; the message is shown to the shopper."""


@dataclass
class ResolvedPrice:
    """Authoritative price for one order line."""

    unit_price: Decimal
    cost_price: Decimal
    original_price: Optional[Decimal]
    is_promo: bool
    variant: str


def promo_is_active(product: Product, now: Optional[datetime] = None) -> bool:
    """True while the product's promo price applies (open-ended windows allowed)."""
    if product.promo_price is None:
        return False
    now = now or utc_now()
    start, end = as_utc(product.promo_start), as_utc(product.promo_end)
    if start and now < start:
        return False
    if end and now > end:
        return False
    return True


def is_on_promotion(product: Product, now: Optional[datetime] = None) -> bool:
    """Promo window running, or a markdown listing with a higher 'was' price."""
    if promo_is_active(product, now):
        return True
    return product.original_price is not None and to_decimal(
        product.original_price
    ) > to_decimal(product.price)


def current_price(product: Product, now: Optional[datetime] = None) -> Decimal:
    """Price of the product's base unit right now."""
    price = to_decimal(product.price)
    if promo_is_active(product, now):
        return min(to_decimal(product.promo_price), price)
    return price


def resolve_unit_price(
    product: Product, variant_label: Optional[str], now: Optional[datetime] = None
) -> ResolvedPrice:
    """Pick the price for a requested variant.

    A configured ProductVariant wins; otherwise the base unit is priced from
    the product (promo price while its window is open).
    """
    label = (variant_label or "").strip()
    for variant in product.variants or []:
        if label and variant.unit.lower() == label.lower():
            return ResolvedPrice(
                unit_price=to_decimal(variant.price),
                cost_price=to_decimal(variant.cost_price),
                original_price=None,
                is_promo=False,
                variant=variant.unit,
            )

    promo = is_on_promotion(product, now)
    base_price = to_decimal(product.price)
    original = None
    if promo:
        original = max(to_decimal(product.original_price or base_price), base_price)
    return ResolvedPrice(
        unit_price=current_price(product, now),
        cost_price=to_decimal(product.cost_price),
        original_price=original,
        is_promo=promo,
        variant=product.unit or label or "-",
    )


def ensure_coupon_usable(
    coupon: Optional[Coupon], subtotal, now: Optional[datetime] = None
) -> Coupon:
    """Raise CouponError unless the coupon can be applied to this subtotal."""
    if coupon is None:
        raise CouponError("Kupon tidak ditemukan", status.HTTP_404_NOT_FOUND)
    if not coupon.is_active:
        raise CouponError("Kupon tidak aktif")

    now = now or utc_now()
    if coupon.start_date and now < as_utc(coupon.start_date):
        raise CouponError("Promo belum dimulai")
    if coupon.end_date and now > as_utc(coupon.end_date):
        raise CouponError("Kupon sudah kadaluarsa")
    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        raise CouponError("Kuota kupon habis")

    min_purchase = to_decimal(coupon.min_purchase)
    if min_purchase > 0 and to_decimal(subtotal) < min_purchase:
        raise CouponError(f"Minimal belanja {format_rupiah(min_purchase)}")
    return coupon


def calculate_coupon_discount(coupon: Coupon, eligible_subtotal) -> Decimal:
    """Discount granted on the non-promo part of the order.

    PERCENTAGE: eligible x value / 100, capped at max_discount when set.
    FIXED: the coupon value, never more than the eligible subtotal.
    """
    eligible = max(to_decimal(eligible_subtotal), ZERO)
    value = to_decimal(coupon.value)

    if coupon.type == CouponType.PERCENTAGE:
        discount = (eligible * value / HUNDRED).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        if coupon.max_discount is not None:
            discount = min(discount, to_decimal(coupon.max_discount))
    else:
        discount = min(value, eligible)

    return max(discount, ZERO)
