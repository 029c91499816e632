"""Enum definitions for customers service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class CustomerTier(str, enum.Enum):
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK = {
    CustomerTier.BRONZE: 0,
    CustomerTier.SILVER: 1,
    CustomerTier.GOLD: 2,
}


class AddressType(str, enum.Enum):
    HOME = "home"
    OFFICE = "office"
