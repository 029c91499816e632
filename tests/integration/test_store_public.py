"""Integration tests for store_service catalog, cart, shipping and promotions."""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from libs.common.datetime_utils import utc_now
from services.store_service.models import ShippingMethodType, ShopConfig
from tests.conftest import CUSTOMER_ID, auth_headers_for
from tests.factories import (
    CouponFactory,
    ProductFactory,
    ProductVariantFactory,
    ShippingMethodFactory,
    VoucherFactory,
)

STORE = {"id": "global", "store_latitude": -7.7829, "store_longitude": 110.3671}


async def _seed(db_session, *objects):
    db_session.add_all(objects)
    await db_session.commit()


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_products_hides_inactive(store_client, db_session):
    await _seed(
        db_session,
        ProductFactory.create(name="Ayam Kampung"),
        ProductFactory.create(name="Bebek Potong", is_active=False),
    )

    response = await store_client.get("/store/products")

    assert response.status_code == 200
    assert [p["name"] for p in response.json()] == ["Ayam Kampung"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_running_promo_is_priced_in_catalog(store_client, db_session):
    product = ProductFactory.create(
        price=Decimal("50000"),
        promo_price=Decimal("45000"),
        promo_start=utc_now() - timedelta(days=1),
        promo_end=utc_now() + timedelta(days=1),
    )
    expired = ProductFactory.create(
        name="Telur Ayam",
        price=Decimal("28000"),
        promo_price=Decimal("25000"),
        promo_end=utc_now() - timedelta(days=1),
    )
    await _seed(db_session, product, expired)

    response = await store_client.get("/store/products?promo=true")

    data = response.json()
    assert len(data) == 1
    assert data[0]["id"] == str(product.id)
    assert data[0]["price"] == 45000
    assert data[0]["originalPrice"] == 50000
    assert data[0]["isPromo"] is True


@pytest.mark.asyncio
@pytest.mark.integration
async def test_product_search_and_variants(store_client, db_session):
    product = ProductFactory.create(name="Daging Sapi Has Dalam")
    variant = ProductVariantFactory.create(product_id=product.id, unit="1kg")
    await _seed(db_session, product, variant, ProductFactory.create(name="Telur Ayam"))

    response = await store_client.get("/store/products?search=sapi")

    data = response.json()
    assert [p["name"] for p in data] == ["Daging Sapi Has Dalam"]
    assert data[0]["variants"][0]["unit"] == "1kg"
    assert data[0]["variants"][0]["price"] == 95000


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_unknown_product(store_client):
    response = await store_client.get(f"/store/products/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json() == {"error": "Produk tidak ditemukan"}


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cart_starts_empty(store_client, customer_headers):
    response = await store_client.get("/store/cart", headers=customer_headers)

    assert response.status_code == 200
    assert response.json()["items"] == []
    assert response.json()["subtotal"] == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_replace_cart(store_client, customer_headers):
    product_id = str(uuid.uuid4())
    first = {
        "items": [
            {"productId": product_id, "name": "Ayam", "quantity": 1, "price": 40000}
        ]
    }
    second = {
        "items": [
            {"productId": product_id, "name": "Ayam", "quantity": 3, "price": 40000},
            {
                "productId": str(uuid.uuid4()),
                "name": "Telur",
                "variant": "10 butir",
                "quantity": 1,
                "price": 28000,
            },
        ]
    }

    await store_client.put("/store/cart", json=first, headers=customer_headers)
    response = await store_client.put("/store/cart", json=second, headers=customer_headers)

    assert response.status_code == 200, response.text
    data = response.json()
    assert len(data["items"]) == 2
    assert data["subtotal"] == 148000


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cart_requires_login(store_client):
    response = await store_client.get("/store/cart")

    assert response.status_code == 401


# ---------------------------------------------------------------------------
# Shipping
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_public_config_defaults(store_client):
    response = await store_client.get("/store/config")

    assert response.status_code == 200
    data = response.json()
    assert data["maxRadiusKm"] == 15
    assert data["serviceFee"] == 1000
    assert [band["upToKm"] for band in data["feeBands"]] == [3, 7, 15]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_calculate_shipping_by_route(store_client, db_session):
    await _seed(db_session, ShopConfig(**STORE))

    response = await store_client.post(
        "/store/calculate-shipping",
        json={"latitude": -7.75, "longitude": 110.39, "subtotal": 100000},
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["distance_km"] == 5.0
    assert data["shippingFee"] == 15000
    assert data["isOutOfRange"] is False
    assert data["serviceFee"] == 1000


@pytest.mark.asyncio
@pytest.mark.integration
async def test_calculate_shipping_out_of_range(store_client, db_session, route_distance_m):
    route_distance_m["value"] = 40000
    await _seed(db_session, ShopConfig(**STORE))

    response = await store_client.post(
        "/store/calculate-shipping", json={"latitude": -7.5, "longitude": 110.2}
    )

    data = response.json()
    assert data["isOutOfRange"] is True
    assert data["shippingFee"] is None
    assert data["message"] == "Lokasi di luar jangkauan pengiriman (max 15 km)"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_estimate_shipping_from_address(store_client, db_session):
    await _seed(db_session, ShopConfig(**STORE))

    response = await store_client.post(
        "/store/estimate-shipping",
        json={"address": "Jl. Kaliurang KM 5, Sleman", "subtotal": 50000},
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["latitude"] == -7.75
    assert data["longitude"] == 110.39
    assert data["shippingFee"] == 15000


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_shipping_methods_hides_inactive(store_client, db_session):
    await _seed(
        db_session,
        ShippingMethodFactory.create(name="Kurir Toko", sort_order=2),
        ShippingMethodFactory.create(
            name="Ambil di Toko", type=ShippingMethodType.PICKUP, sort_order=1
        ),
        ShippingMethodFactory.create(name="Ekspres", is_active=False),
    )

    response = await store_client.get("/store/shipping-methods")

    assert response.status_code == 200
    data = response.json()
    assert [m["name"] for m in data] == ["Ambil di Toko", "Kurir Toko"]
    assert data[0]["type"] == "PICKUP"
    assert data[1]["baseFee"] == 10000


@pytest.mark.asyncio
@pytest.mark.integration
async def test_calculate_shipping_with_pickup_method(store_client, db_session):
    pickup = ShippingMethodFactory.create(type=ShippingMethodType.PICKUP)
    await _seed(db_session, ShopConfig(**STORE), pickup)

    response = await store_client.post(
        "/store/calculate-shipping",
        json={
            "latitude": -7.75,
            "longitude": 110.39,
            "subtotal": 100000,
            "shippingMethodId": str(pickup.id),
        },
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["shippingFee"] == 0
    assert data["isFreeShipping"] is True
    assert data["shippingMethodId"] == str(pickup.id)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_calculate_shipping_with_per_km_method(store_client, db_session):
    """Route of 5 km: 5.000 base + 5 x 2.000; the method's minimum order is reported."""
    courier = ShippingMethodFactory.create(
        type=ShippingMethodType.DISTANCE,
        base_fee=Decimal("5000"),
        price_per_km=Decimal("2000"),
        min_order=Decimal("75000"),
    )
    await _seed(db_session, ShopConfig(**STORE), courier)

    response = await store_client.post(
        "/store/calculate-shipping",
        json={
            "latitude": -7.75,
            "longitude": 110.39,
            "subtotal": 100000,
            "shippingMethodId": str(courier.id),
        },
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["distance_km"] == 5.0
    assert data["shippingFee"] == 15000
    assert data["minimumOrder"] == 75000


@pytest.mark.asyncio
@pytest.mark.integration
async def test_calculate_shipping_with_unknown_method(store_client, db_session):
    await _seed(db_session, ShopConfig(**STORE))

    response = await store_client.post(
        "/store/calculate-shipping",
        json={
            "latitude": -7.75,
            "longitude": 110.39,
            "shippingMethodId": str(uuid.uuid4()),
        },
    )

    assert response.status_code == 404
    assert response.json() == {"error": "Metode pengiriman tidak ditemukan"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_geocode_unknown_address(store_client):
    response = await store_client.post(
        "/store/geocode", json={"address": "Alamat Antah Berantah"}
    )

    assert response.status_code == 404
    assert response.json()["error"].startswith("Lokasi tidak ditemukan")


# ---------------------------------------------------------------------------
# Coupons & vouchers
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_coupon(store_client, db_session):
    await _seed(db_session, CouponFactory.create(code="HEMAT20"))

    response = await store_client.post(
        "/store/coupons/verify", json={"code": "hemat20", "subtotal": 100000}
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["valid"] is True
    assert data["discount"] == 20000
    assert data["type"] == "FIXED"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_coupon_below_minimum(store_client, db_session):
    await _seed(
        db_session,
        CouponFactory.create(code="BIG", min_purchase=Decimal("100000")),
    )

    response = await store_client.post(
        "/store/coupons/verify", json={"code": "BIG", "subtotal": 99000}
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Minimal belanja Rp 100.000"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_unknown_coupon(store_client):
    response = await store_client.post(
        "/store/coupons/verify", json={"code": "NOPE", "subtotal": 100000}
    )

    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_validate_own_voucher(store_client, db_session, customer_headers):
    voucher = VoucherFactory.create(customer_id=CUSTOMER_ID)
    await _seed(db_session, voucher)

    response = await store_client.post(
        "/store/vouchers/validate",
        json={"code": voucher.code.lower()},
        headers=customer_headers,
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["valid"] is True
    assert data["voucher"]["code"] == voucher.code
    assert data["voucher"]["value"] == 10000


@pytest.mark.asyncio
@pytest.mark.integration
async def test_validate_voucher_errors(store_client, db_session, customer_headers):
    voucher = VoucherFactory.create(customer_id=CUSTOMER_ID)
    await _seed(db_session, voucher)

    unknown = await store_client.post(
        "/store/vouchers/validate", json={"code": "RW-XXXXXX-0000"}, headers=customer_headers
    )
    foreign = await store_client.post(
        "/store/vouchers/validate",
        json={"code": voucher.code},
        headers=auth_headers_for("cust-9999"),
    )
    guest = await store_client.post("/store/vouchers/validate", json={"code": voucher.code})

    assert unknown.status_code == 404
    assert foreign.status_code == 403
    assert guest.status_code == 401
