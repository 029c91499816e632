"""Enum definitions for store service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class StockStatus(str, enum.Enum):
    READY_STOCK = "READY_STOCK"  # finite stock, decremented on order
    ALWAYS_READY = "ALWAYS_READY"  # made/sourced to order, never runs out


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    SHIPPING = "SHIPPING"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


# Statuses shown under the "processing" tab of the order history.
PROCESSING_STATUSES = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.SHIPPING,
)


class OrderSource(str, enum.Enum):
    ONLINE = "ONLINE"
    POS = "POS"


class CouponType(str, enum.Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


class ShippingMethodType(str, enum.Enum):
    PICKUP = "PICKUP"  # collected at the store, never charged
    FLAT = "FLAT"  # one fee regardless of distance
    DISTANCE = "DISTANCE"  # priced from the store-to-door distance
