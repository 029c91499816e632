"""
Shipping estimator: geocoding, store-to-door distance and banded fees.

External calls:
- Nominatim search for free-text addresses (with cleaned-up fallbacks)
- OSRM driving route for distance, falling back to straight-line haversine
"""

import math
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import httpx
from fastapi import status
from libs.common.config import get_settings
from libs.common.currency import ZERO, round_rupiah, to_decimal
from libs.common.errors import DomainError
from libs.common.logging import get_logger
from libs.common.schemas import CamelModel, Money
from pydantic import Field
from services.store_service.models.enums import ShippingMethodType

logger = get_logger(__name__)

EARTH_RADIUS_KM = 6371.0
NOT_FOUND_MESSAGE = (
    "Lokasi tidak ditemukan. Coba hapus nomor rumah atau gunakan nama jalan "
    "utama/landmark terdekat."
)


class GeocodingError(DomainError):
    """Address could not be resolved to coordinates."""

    def __init__(self, message: str = NOT_FOUND_MESSAGE, attempts: list = None):
        self.attempts = attempts or []
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ShippingMethodError(DomainError):
    """Shipping method missing, inactive or not allowed for this order."""


# ============================================================================
# CONFIG / RESULT TYPES
# ============================================================================


class FeeBand(CamelModel):
    up_to_km: float = Field(..., gt=0)
    fee: Money = Field(..., ge=0)


class ShippingConfig(CamelModel):
    """Recognized keys: maxRadiusKm, feeBands [{upToKm, fee}], freeShippingMinSubtotal."""

    max_radius_km: float = Field(15.0, ge=0)
    fee_bands: list[FeeBand] = Field(default_factory=list)
    free_shipping_min_subtotal: Money = Field(Decimal("0"), ge=0)

    def sorted_bands(self) -> list[FeeBand]:
        return sorted(self.fee_bands, key=lambda band: band.up_to_km)


@dataclass
class ShippingQuote:
    distance_km: Optional[float]
    shipping_fee: Optional[Decimal]
    is_free_shipping: bool = False
    is_out_of_range: bool = False
    message: Optional[str] = None


@dataclass
class GeocodeResult:
    latitude: float
    longitude: float
    display_name: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    match_type: str = "exact"


# ============================================================================
# PURE RULES
# ============================================================================


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def band_fee(distance_km: float, config: ShippingConfig) -> Decimal:
    """Fee of the first band covering the distance; the last band beyond that."""
    bands = config.sorted_bands()
    if not bands:
        return ZERO
    for band in bands:
        if distance_km <= band.up_to_km:
            return to_decimal(band.fee)
    return to_decimal(bands[-1].fee)


def free_shipping_threshold(config: ShippingConfig, method=None) -> Decimal:
    """The method's own free-shipping minimum, else the shop-wide one."""
    if method is not None and method.free_shipping_min is not None:
        return to_decimal(method.free_shipping_min)
    return to_decimal(config.free_shipping_min_subtotal)


def qualifies_for_free_shipping(subtotal, threshold: Decimal) -> bool:
    return threshold > 0 and to_decimal(subtotal) >= threshold


def distance_fee(distance_km: float, config: ShippingConfig, method=None) -> Decimal:
    """Per-km formula when the method sets a rate, else the shop's fee bands."""
    if method is not None and to_decimal(method.price_per_km) > 0:
        per_km = to_decimal(distance_km) * to_decimal(method.price_per_km)
        return to_decimal(method.base_fee) + round_rupiah(per_km)
    return band_fee(distance_km, config)


def quote_shipping(
    distance_km: float, subtotal, config: ShippingConfig, method=None
) -> ShippingQuote:
    """Price delivery for a known distance.

    Out of range (beyond max_radius_km) never carries a fee.
    """
    distance_km = round(distance_km, 1)
    if config.max_radius_km > 0 and distance_km > config.max_radius_km:
        return ShippingQuote(
            distance_km=distance_km,
            shipping_fee=None,
            is_out_of_range=True,
            message=(
                "Lokasi di luar jangkauan pengiriman "
                f"(max {config.max_radius_km:g} km)"
            ),
        )

    if qualifies_for_free_shipping(subtotal, free_shipping_threshold(config, method)):
        return ShippingQuote(
            distance_km=distance_km, shipping_fee=ZERO, is_free_shipping=True
        )

    return ShippingQuote(
        distance_km=distance_km, shipping_fee=distance_fee(distance_km, config, method)
    )


def quote_without_distance(
    subtotal, config: ShippingConfig, method=None, message: Optional[str] = None
) -> ShippingQuote:
    """Price pickup, flat-rate delivery, or distance delivery with no store pin.

    Without a store location a distance method charges its base fee (the
    first fee band when no method is chosen). The free-shipping threshold
    applies in every case.
    """
    if method is not None and method.type == ShippingMethodType.PICKUP:
        return ShippingQuote(distance_km=None, shipping_fee=ZERO, is_free_shipping=True)

    if method is not None:
        fee = to_decimal(method.base_fee)
    else:
        bands = config.sorted_bands()
        fee = to_decimal(bands[0].fee) if bands else ZERO

    if qualifies_for_free_shipping(subtotal, free_shipping_threshold(config, method)):
        return ShippingQuote(
            distance_km=None, shipping_fee=ZERO, is_free_shipping=True, message=message
        )
    return ShippingQuote(distance_km=None, shipping_fee=fee, message=message)


def clean_address(address: str) -> str:
    """Strip house numbers and estate keywords that confuse OSM search."""
    cleaned = re.sub(r"(no\.|nomor)\s*\d+", "", address, flags=re.IGNORECASE)
    cleaned = re.sub(r"\d+/?\d*[a-z]?", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"(komplek|perumahan|cluster)", "", cleaned, flags=re.IGNORECASE)
    return re.sub(r"\s+", " ", cleaned).strip()


def landmark_query(address: str) -> Optional[str]:
    """'Komplek Graha Jl Nanas, Baleendah, Bandung' -> 'Graha Jl Nanas, Baleendah'."""
    if "," not in address:
        return None
    parts = [part.strip() for part in address.split(",")]
    if len(parts) < 2:
        return None
    first = re.sub(r"^(jalan|jl\.|jl)\s+", "", parts[0], flags=re.IGNORECASE)
    first = re.sub(r"(komplek|perumahan)\s+", "", first, flags=re.IGNORECASE)
    return f"{first}, {parts[1]}"


# ============================================================================
# EXTERNAL CLIENTS
# ============================================================================


class GeocoderClient:
    """Async client for the Nominatim search API."""

    def __init__(
        self,
        base_url: str = None,
        user_agent: str = None,
        country_codes: str = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        settings = get_settings()
        self.base_url = base_url or settings.GEOCODER_URL
        self.country_codes = country_codes or settings.GEOCODER_COUNTRY_CODES
        self.timeout = settings.HTTP_TIMEOUT_SECONDS
        self._headers = {"User-Agent": user_agent or settings.GEOCODER_USER_AGENT}
        self._transport = transport

    async def search(self, query: str) -> Optional[GeocodeResult]:
        """Return the best match for a query, or None (including on HTTP errors)."""
        params = {
            "q": query,
            "format": "json",
            "limit": "1",
            "countrycodes": self.country_codes,
            "addressdetails": "1",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(
                    self.base_url, params=params, headers=self._headers
                )
            if not response.is_success:
                logger.warning(
                    "Geocoder returned %s for %r", response.status_code, query
                )
                return None
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Geocoder request failed for %r: %s", query, e)
            return None

        if not data:
            return None
        top = data[0]
        address = top.get("address") or {}
        return GeocodeResult(
            latitude=float(top["lat"]),
            longitude=float(top["lon"]),
            display_name=top.get("display_name"),
            city=address.get("city") or address.get("state"),
            country=address.get("country"),
        )

    async def geocode(self, address: str) -> GeocodeResult:
        """Resolve an address, retrying with simplified queries.

        Raises:
            GeocodingError: when no attempt finds a match.
        """
        address = address.strip()
        attempts = []

        result = await self.search(address)
        attempts.append(f"Original: {address} -> {'Found' if result else 'Null'}")

        if not result:
            cleaned = clean_address(address)
            if cleaned and cleaned != address:
                result = await self.search(cleaned)
                attempts.append(
                    f"Cleaned: {cleaned} -> {'Found' if result else 'Null'}"
                )

        if not result:
            fallback = landmark_query(address)
            if fallback:
                result = await self.search(fallback)
                attempts.append(
                    f"Fallback: {fallback} -> {'Found' if result else 'Null'}"
                )

        if not result:
            logger.info("Geocoding attempts failed: %s", attempts)
            raise GeocodingError(attempts=attempts)

        result.match_type = "exact" if len(attempts) == 1 else "fallback"
        return result


class RoutingClient:
    """Async client for OSRM driving distances."""

    def __init__(self, base_url: str = None, transport: httpx.AsyncBaseTransport = None):
        settings = get_settings()
        self.base_url = (base_url or settings.ROUTING_URL).rstrip("/")
        self.timeout = settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport

    async def route_distance_km(
        self, origin: tuple[float, float], destination: tuple[float, float]
    ) -> Optional[float]:
        """Driving distance, or None when the router cannot answer."""
        (o_lat, o_lon), (d_lat, d_lon) = origin, destination
        url = f"{self.base_url}/{o_lon},{o_lat};{d_lon},{d_lat}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(url, params={"overview": "false"})
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Routing request failed: %s", e)
            return None

        routes = data.get("routes") or []
        if data.get("code") != "Ok" or not routes:
            return None
        return routes[0]["distance"] / 1000

    async def distance_km(
        self, origin: tuple[float, float], destination: tuple[float, float]
    ) -> float:
        """Route distance rounded to 0.1 km, haversine when routing fails."""
        distance = await self.route_distance_km(origin, destination)
        if distance is None:
            distance = haversine_km(*origin, *destination)
        return round(distance, 1)


def get_geocoder() -> GeocoderClient:
    """FastAPI dependency; overridden in tests."""
    return GeocoderClient()


def get_routing_client() -> RoutingClient:
    """FastAPI dependency; overridden in tests."""
    return RoutingClient()


# ============================================================================
# ESTIMATION
# ============================================================================


async def calculate_shipping(
    destination: tuple[float, float],
    subtotal,
    config: ShippingConfig,
    store_location: Optional[tuple[float, float]],
    routing: RoutingClient,
    method=None,
) -> ShippingQuote:
    """Quote delivery to known coordinates with an optional shipping method."""
    if method is not None and method.type != ShippingMethodType.DISTANCE:
        return quote_without_distance(subtotal, config, method)

    if store_location is None:
        return quote_without_distance(
            subtotal,
            config,
            method,
            message="Lokasi toko belum diatur, menggunakan tarif dasar",
        )

    distance = await routing.distance_km(store_location, destination)
    return quote_shipping(distance, subtotal, config, method)


async def estimate_shipping(
    address: str,
    subtotal,
    config: ShippingConfig,
    store_location: Optional[tuple[float, float]],
    geocoder: GeocoderClient,
    routing: RoutingClient,
    method=None,
) -> tuple[GeocodeResult, ShippingQuote]:
    """Free-text address to fee in one call.

    Raises:
        GeocodingError: the address could not be resolved.
    """
    location = await geocoder.geocode(address)
    quote = await calculate_shipping(
        (location.latitude, location.longitude),
        subtotal,
        config,
        store_location,
        routing,
        method,
    )
    return location, quote
