"""Access to the singleton shop configuration row and the shipping methods."""

import uuid
from typing import Optional

from fastapi import status
from libs.common.currency import to_decimal
from services.store_service.models import ShippingMethod, ShopConfig
from services.store_service.services.shipping import (
    ShippingConfig,
    ShippingMethodError,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

CONFIG_ID = "global"


async def get_shop_config(db: AsyncSession) -> ShopConfig:
    """Return the shop config row, creating it with defaults on first read."""
    config = await db.get(ShopConfig, CONFIG_ID)
    if config:
        return config
    config = ShopConfig(id=CONFIG_ID)
    db.add(config)
    await db.flush()
    return config


def to_shipping_config(config: ShopConfig) -> ShippingConfig:
    return ShippingConfig.model_validate(
        {
            "maxRadiusKm": config.max_radius_km,
            "feeBands": config.fee_bands or [],
            "freeShippingMinSubtotal": to_decimal(config.free_shipping_min_subtotal),
        }
    )


def store_location(config: ShopConfig) -> Optional[tuple[float, float]]:
    if config.store_latitude is None or config.store_longitude is None:
        return None
    return (config.store_latitude, config.store_longitude)


async def list_shipping_methods(
    db: AsyncSession, active_only: bool = True
) -> list[ShippingMethod]:
    query = select(ShippingMethod).order_by(
        ShippingMethod.sort_order, ShippingMethod.name
    )
    if active_only:
        query = query.where(ShippingMethod.is_active.is_(True))
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_shipping_method(
    db: AsyncSession,
    method_id: uuid.UUID,
    not_found_status: int = status.HTTP_404_NOT_FOUND,
) -> ShippingMethod:
    """An active shipping method, or ShippingMethodError."""
    method = await db.get(ShippingMethod, method_id)
    if method is None or not method.is_active:
        raise ShippingMethodError("Metode pengiriman tidak ditemukan", not_found_status)
    return method


def minimum_order(config: ShopConfig, method: Optional[ShippingMethod] = None):
    """The method's minimum order when it sets one, else the shop's."""
    if method is not None and to_decimal(method.min_order) > 0:
        return to_decimal(method.min_order)
    return to_decimal(config.minimum_order)
