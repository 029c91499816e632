"""Pydantic schemas for loyalty service."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.schemas import CamelModel, Money
from pydantic import Field
from services.customers_service.models import CustomerTier
from services.loyalty_service.models import PointTransactionType, VoucherType

# ============================================================================
# CONFIG SCHEMAS
# ============================================================================


class LoyaltyConfigResponse(CamelModel):
    points_per_amount: int
    point_multiplier: float
    multiplier_silver: float
    multiplier_gold: float
    min_spent_silver: Money
    min_spent_gold: Money
    voucher_validity_days: int


class LoyaltyConfigUpdate(CamelModel):
    points_per_amount: Optional[int] = Field(None, gt=0)
    point_multiplier: Optional[Decimal] = Field(None, gt=0)
    multiplier_silver: Optional[Decimal] = Field(None, gt=0)
    multiplier_gold: Optional[Decimal] = Field(None, gt=0)
    min_spent_silver: Optional[Decimal] = Field(None, ge=0)
    min_spent_gold: Optional[Decimal] = Field(None, ge=0)
    voucher_validity_days: Optional[int] = Field(None, gt=0)


# ============================================================================
# REWARD SCHEMAS
# ============================================================================


class RewardBase(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = None
    points_cost: int = Field(..., gt=0)
    type: VoucherType
    value: Money = Field(Decimal("0"), ge=0)
    product_id: Optional[uuid.UUID] = None
    is_active: bool = True


class RewardCreate(RewardBase):
    pass


class RewardResponse(RewardBase):
    id: uuid.UUID
    created_at: datetime


class RedeemRequest(CamelModel):
    reward_id: uuid.UUID


# ============================================================================
# LEDGER / VOUCHER SCHEMAS
# ============================================================================


class PointTransactionResponse(CamelModel):
    id: uuid.UUID
    type: PointTransactionType
    amount: int
    balance_after: int
    description: str
    reference: Optional[str] = None
    created_at: datetime


class VoucherResponse(CamelModel):
    id: uuid.UUID
    code: str
    type: VoucherType
    value: Money
    product_id: Optional[uuid.UUID] = None
    is_used: bool
    used_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime


class RedeemResponse(CamelModel):
    message: str
    voucher: VoucherResponse


class LoyaltyProfileResponse(CamelModel):
    points: int
    tier: CustomerTier
    total_spent: Money
    order_count: int
    next_tier: Optional[CustomerTier] = None
    amount_to_next_tier: Optional[Money] = None
    transactions: list[PointTransactionResponse]
    vouchers: list[VoucherResponse]


class PointAdjustRequest(CamelModel):
    customer_id: str
    amount: int = Field(..., description="Signed point delta")
    description: str = Field(..., min_length=1, max_length=500)
