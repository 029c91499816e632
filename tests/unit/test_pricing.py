"""Unit tests for server-side price resolution and coupon rules."""

from datetime import timedelta
from decimal import Decimal

import pytest
from libs.common.datetime_utils import utc_now
from services.store_service.models import CouponType
from services.store_service.services.pricing import (
    CouponError,
    calculate_coupon_discount,
    current_price,
    ensure_coupon_usable,
    is_on_promotion,
    resolve_unit_price,
)
from tests.factories import CouponFactory, ProductFactory, ProductVariantFactory


# ---------------------------------------------------------------------------
# Promotions
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_promo_price_applies_inside_window():
    now = utc_now()
    product = ProductFactory.create(
        price=Decimal("50000"),
        promo_price=Decimal("42000"),
        promo_start=now - timedelta(days=1),
        promo_end=now + timedelta(days=1),
    )

    resolved = resolve_unit_price(product, None, now)

    assert resolved.unit_price == Decimal("42000")
    assert resolved.original_price == Decimal("50000")
    assert resolved.is_promo is True


@pytest.mark.unit
def test_expired_promo_falls_back_to_base_price():
    now = utc_now()
    product = ProductFactory.create(
        price=Decimal("50000"),
        promo_price=Decimal("42000"),
        promo_end=now - timedelta(minutes=1),
    )

    assert current_price(product, now) == Decimal("50000")
    assert is_on_promotion(product, now) is False


@pytest.mark.unit
def test_markdown_listing_counts_as_promotion():
    """A higher 'was' price marks the line as promo without a promo window."""
    product = ProductFactory.create(
        price=Decimal("45000"), original_price=Decimal("60000")
    )

    resolved = resolve_unit_price(product, "500gr")

    assert resolved.unit_price == Decimal("45000")
    assert resolved.original_price == Decimal("60000")
    assert resolved.is_promo is True


@pytest.mark.unit
def test_variant_price_wins_over_base_unit():
    product = ProductFactory.create(price=Decimal("50000"), unit="500gr")
    product.variants = [
        ProductVariantFactory.create(
            product_id=product.id, unit="1kg", price=Decimal("95000")
        )
    ]

    resolved = resolve_unit_price(product, "1KG")

    assert resolved.unit_price == Decimal("95000")
    assert resolved.variant == "1kg"
    assert resolved.is_promo is False


@pytest.mark.unit
def test_unknown_variant_is_priced_as_base_unit():
    product = ProductFactory.create(price=Decimal("50000"), unit="500gr")

    resolved = resolve_unit_price(product, "2kg")

    assert resolved.unit_price == Decimal("50000")
    assert resolved.variant == "500gr"


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_percentage_coupon_capped_at_max_discount():
    coupon = CouponFactory.create(
        type=CouponType.PERCENTAGE,
        value=Decimal("10"),
        max_discount=Decimal("15000"),
    )

    assert calculate_coupon_discount(coupon, Decimal("100000")) == Decimal("10000")
    assert calculate_coupon_discount(coupon, Decimal("300000")) == Decimal("15000")


@pytest.mark.unit
def test_percentage_coupon_rounds_to_whole_rupiah():
    coupon = CouponFactory.create(type=CouponType.PERCENTAGE, value=Decimal("7.5"))

    assert calculate_coupon_discount(coupon, Decimal("12345")) == Decimal("926")


@pytest.mark.unit
def test_fixed_coupon_never_exceeds_eligible_subtotal():
    coupon = CouponFactory.create(type=CouponType.FIXED, value=Decimal("20000"))

    assert calculate_coupon_discount(coupon, Decimal("100000")) == Decimal("20000")
    assert calculate_coupon_discount(coupon, Decimal("12000")) == Decimal("12000")
    assert calculate_coupon_discount(coupon, Decimal("0")) == Decimal("0")


@pytest.mark.unit
@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"is_active": False}, "Kupon tidak aktif"),
        ({"start_date": utc_now() + timedelta(days=1)}, "Promo belum dimulai"),
        ({"end_date": utc_now() - timedelta(days=1)}, "Kupon sudah kadaluarsa"),
        ({"usage_limit": 5, "usage_count": 5}, "Kuota kupon habis"),
        ({"min_purchase": Decimal("150000")}, "Minimal belanja Rp 150.000"),
    ],
)
def test_unusable_coupon_is_rejected(overrides, message):
    coupon = CouponFactory.create(**overrides)

    with pytest.raises(CouponError) as exc_info:
        ensure_coupon_usable(coupon, Decimal("100000"))

    assert exc_info.value.message == message
    assert exc_info.value.status_code == 400


@pytest.mark.unit
def test_missing_coupon_is_not_found():
    with pytest.raises(CouponError) as exc_info:
        ensure_coupon_usable(None, Decimal("100000"))

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Kupon tidak ditemukan"
