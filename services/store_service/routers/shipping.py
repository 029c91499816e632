"""Store shipping router: shipping methods, geocoding and delivery fee estimates."""

from fastapi import APIRouter, Depends
from libs.db.session import get_async_db
from services.store_service.schemas import (
    CalculateShippingRequest,
    EstimateShippingRequest,
    GeocodeRequest,
    GeocodeResponse,
    ShippingMethodResponse,
    ShippingQuoteResponse,
    ShopConfigResponse,
)
from services.store_service.services.shipping import (
    GeocoderClient,
    RoutingClient,
    ShippingQuote,
    calculate_shipping,
    estimate_shipping,
    get_geocoder,
    get_routing_client,
)
from services.store_service.services.shop_config import (
    get_shipping_method,
    get_shop_config,
    list_shipping_methods,
    minimum_order,
    store_location,
    to_shipping_config,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


def _quote_response(
    quote: ShippingQuote, shop, method=None, **location
) -> ShippingQuoteResponse:
    return ShippingQuoteResponse(
        distance_km=quote.distance_km,
        shipping_fee=quote.shipping_fee,
        is_free_shipping=quote.is_free_shipping,
        is_out_of_range=quote.is_out_of_range,
        message=quote.message,
        service_fee=shop.service_fee,
        minimum_order=minimum_order(shop, method),
        shipping_method_id=method.id if method is not None else None,
        **location,
    )


@router.get("/config", response_model=ShopConfigResponse)
async def get_public_config(db: AsyncSession = Depends(get_async_db)):
    """Shipping bands and fees shown at checkout."""
    shop = await get_shop_config(db)
    await db.commit()
    return shop


@router.get("/shipping-methods", response_model=list[ShippingMethodResponse])
async def list_active_shipping_methods(db: AsyncSession = Depends(get_async_db)):
    """Delivery options offered at checkout, in display order."""
    return await list_shipping_methods(db)


@router.post("/geocode", response_model=GeocodeResponse)
async def geocode_address(
    payload: GeocodeRequest, geocoder: GeocoderClient = Depends(get_geocoder)
):
    """Resolve a free-text address to coordinates."""
    location = await geocoder.geocode(payload.address)
    return GeocodeResponse(
        latitude=location.latitude,
        longitude=location.longitude,
        display_name=location.display_name,
        city=location.city,
        country=location.country,
        match_type=location.match_type,
    )


@router.post("/calculate-shipping", response_model=ShippingQuoteResponse)
async def calculate_shipping_fee(
    payload: CalculateShippingRequest,
    db: AsyncSession = Depends(get_async_db),
    routing: RoutingClient = Depends(get_routing_client),
):
    """Quote delivery to known coordinates (e.g. a pin dropped on the map)."""
    shop = await get_shop_config(db)
    method = None
    if payload.shipping_method_id:
        method = await get_shipping_method(db, payload.shipping_method_id)
    quote = await calculate_shipping(
        (payload.latitude, payload.longitude),
        payload.subtotal,
        to_shipping_config(shop),
        store_location(shop),
        routing,
        method,
    )
    return _quote_response(quote, shop, method)


@router.post("/estimate-shipping", response_model=ShippingQuoteResponse)
async def estimate_shipping_fee(
    payload: EstimateShippingRequest,
    db: AsyncSession = Depends(get_async_db),
    geocoder: GeocoderClient = Depends(get_geocoder),
    routing: RoutingClient = Depends(get_routing_client),
):
    """Geocode an address and quote delivery in one call."""
    shop = await get_shop_config(db)
    method = None
    if payload.shipping_method_id:
        method = await get_shipping_method(db, payload.shipping_method_id)
    location, quote = await estimate_shipping(
        payload.address,
        payload.subtotal,
        to_shipping_config(shop),
        store_location(shop),
        geocoder,
        routing,
        method,
    )
    return _quote_response(
        quote, shop, method, latitude=location.latitude, longitude=location.longitude
    )
