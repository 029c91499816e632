"""Loyalty Service models package."""

from services.loyalty_service.models.enums import PointTransactionType, VoucherType
from services.loyalty_service.models.loyalty import (
    LoyaltyConfig,
    LoyaltyReward,
    PointTransaction,
    Voucher,
)

__all__ = [
    "LoyaltyConfig",
    "LoyaltyReward",
    "PointTransaction",
    "PointTransactionType",
    "Voucher",
    "VoucherType",
]
