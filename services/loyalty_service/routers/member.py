"""Customer-facing loyalty endpoints: rewards catalog, profile, redemption."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.currency import to_decimal
from libs.db.session import get_async_db
from services.customers_service.models import CustomerTier
from services.customers_service.services.customer_ops import get_or_create_customer
from services.loyalty_service.models import LoyaltyReward, PointTransaction, Voucher
from services.loyalty_service.schemas import (
    LoyaltyConfigResponse,
    LoyaltyProfileResponse,
    PointTransactionResponse,
    RedeemRequest,
    RedeemResponse,
    RewardResponse,
    VoucherResponse,
)
from services.loyalty_service.services.loyalty_ops import (
    get_loyalty_config,
    redeem_reward,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["loyalty"])

PROFILE_TRANSACTION_LIMIT = 50


@router.get("/rewards", response_model=list[RewardResponse])
async def list_rewards(db: AsyncSession = Depends(get_async_db)):
    """Active rewards, cheapest first."""
    result = await db.execute(
        select(LoyaltyReward)
        .where(LoyaltyReward.is_active.is_(True))
        .order_by(LoyaltyReward.points_cost)
    )
    return result.scalars().all()


@router.get("/config", response_model=LoyaltyConfigResponse)
async def get_config(db: AsyncSession = Depends(get_async_db)):
    """Tier thresholds and multipliers for the loyalty page."""
    config = await get_loyalty_config(db)
    await db.commit()
    return config


@router.get("/profile", response_model=LoyaltyProfileResponse)
async def get_profile(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Balance, tier progress, recent ledger entries and owned vouchers."""
    customer = await get_or_create_customer(db, current_user)
    config = await get_loyalty_config(db)

    transactions = await db.execute(
        select(PointTransaction)
        .where(PointTransaction.customer_id == customer.id)
        .order_by(PointTransaction.created_at.desc())
        .limit(PROFILE_TRANSACTION_LIMIT)
    )
    vouchers = await db.execute(
        select(Voucher)
        .where(Voucher.customer_id == customer.id)
        .order_by(Voucher.is_used, Voucher.created_at.desc())
    )

    next_tier, threshold = None, None
    if customer.tier == CustomerTier.BRONZE:
        next_tier, threshold = CustomerTier.SILVER, config.min_spent_silver
    elif customer.tier == CustomerTier.SILVER:
        next_tier, threshold = CustomerTier.GOLD, config.min_spent_gold

    amount_to_next = None
    if threshold is not None:
        amount_to_next = max(
            to_decimal(threshold) - to_decimal(customer.total_spent), to_decimal(0)
        )

    await db.commit()
    return LoyaltyProfileResponse(
        points=customer.points,
        tier=customer.tier,
        total_spent=customer.total_spent,
        order_count=customer.order_count,
        next_tier=next_tier,
        amount_to_next_tier=amount_to_next,
        transactions=[
            PointTransactionResponse.model_validate(txn)
            for txn in transactions.scalars().all()
        ],
        vouchers=[VoucherResponse.model_validate(v) for v in vouchers.scalars().all()],
    )


@router.post("/redeem", response_model=RedeemResponse)
async def redeem(
    payload: RedeemRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Redeem points for a reward voucher."""
    customer = await get_or_create_customer(db, current_user)
    voucher = await redeem_reward(
        db, customer_id=customer.id, reward_id=payload.reward_id
    )
    return RedeemResponse(
        message="Berhasil menukarkan poin",
        voucher=VoucherResponse.model_validate(voucher),
    )
