"""Enum definitions for loyalty service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class PointTransactionType(str, enum.Enum):
    EARNED = "EARNED"
    SPENT = "SPENT"
    ADJUSTED = "ADJUSTED"


class VoucherType(str, enum.Enum):
    PRODUCT = "PRODUCT"  # free/discounted item, flat value
    SHIPPING = "SHIPPING"  # covers shipping up to value
    DISCOUNT = "DISCOUNT"  # flat amount off
