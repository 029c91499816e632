"""Admin loyalty endpoints: config, rewards, manual adjustments, order accrual."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.loyalty_service.models import LoyaltyReward
from services.loyalty_service.schemas import (
    LoyaltyConfigResponse,
    LoyaltyConfigUpdate,
    PointAdjustRequest,
    PointTransactionResponse,
    RewardCreate,
    RewardResponse,
)
from services.loyalty_service.services.loyalty_ops import (
    accrue_order_points,
    adjust_points,
    get_loyalty_config,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-loyalty"])


@router.put("/config", response_model=LoyaltyConfigResponse)
async def update_config(
    payload: LoyaltyConfigUpdate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Update accrual rates and tier thresholds."""
    config = await get_loyalty_config(db)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(config, field, value)
    await db.commit()
    await db.refresh(config)
    return config


@router.get("/rewards", response_model=list[RewardResponse])
async def list_all_rewards(
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """All rewards including inactive ones."""
    result = await db.execute(
        select(LoyaltyReward).order_by(LoyaltyReward.created_at.desc())
    )
    return result.scalars().all()


@router.post(
    "/rewards", response_model=RewardResponse, status_code=status.HTTP_201_CREATED
)
async def create_reward(
    payload: RewardCreate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    reward = LoyaltyReward(**payload.model_dump())
    db.add(reward)
    await db.commit()
    await db.refresh(reward)
    return reward


@router.post("/adjust", response_model=PointTransactionResponse)
async def adjust_customer_points(
    payload: PointAdjustRequest,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Manually add or remove points (recorded as ADJUSTED)."""
    return await adjust_points(
        db,
        customer_id=payload.customer_id,
        amount=payload.amount,
        description=payload.description,
        adjusted_by=admin.user_id,
    )


@router.post("/orders/{order_id}/accrue")
async def accrue_for_order(
    order_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Grant points for a delivered order. Safe to call more than once."""
    order = await accrue_order_points(db, order_id)
    return {
        "orderId": str(order.id),
        "orderNumber": order.order_number,
        "loyaltyProcessed": order.loyalty_processed,
    }
