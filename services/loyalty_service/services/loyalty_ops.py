"""Core loyalty operations: point accrual, redemption, adjustment and reconciliation.

The point ledger (``PointTransaction``) is the source of truth. Every write
appends a ledger row and updates the cached ``Customer.points`` balance in the
same transaction; ``reconcile_balances`` repairs any drift after the fact.
"""

import random
import string
import time
import uuid
from datetime import timedelta
from decimal import ROUND_FLOOR, Decimal
from typing import Optional

from fastapi import status
from libs.common.config import get_settings
from libs.common.currency import to_decimal
from libs.common.datetime_utils import utc_now
from libs.common.errors import DomainError
from libs.common.logging import get_logger
from services.customers_service.models import Customer, CustomerTier
from services.loyalty_service.models import (
    LoyaltyConfig,
    LoyaltyReward,
    PointTransaction,
    PointTransactionType,
    Voucher,
)
from services.store_service.models import Order, OrderStatus
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

CONFIG_ID = "global"


class LoyaltyError(DomainError):
    """Loyalty rule violation with a user-facing message."""


class InsufficientPointsError(LoyaltyError):
    def __init__(self, message: str = "Poin tidak mencukupi"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class NotFoundError(LoyaltyError):
    def __init__(self, message: str):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


async def get_loyalty_config(db: AsyncSession) -> LoyaltyConfig:
    """Return the loyalty config row, creating it with defaults on first read."""
    config = await db.get(LoyaltyConfig, CONFIG_ID)
    if config:
        return config

    config = LoyaltyConfig(
        id=CONFIG_ID,
        voucher_validity_days=get_settings().VOUCHER_VALIDITY_DAYS,
    )
    db.add(config)
    await db.flush()
    return config


# ---------------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------------


def tier_multiplier(tier: CustomerTier, config: LoyaltyConfig) -> Decimal:
    if tier == CustomerTier.GOLD:
        return to_decimal(config.multiplier_gold)
    if tier == CustomerTier.SILVER:
        return to_decimal(config.multiplier_silver)
    return to_decimal(config.point_multiplier)


def calculate_points(amount, tier: CustomerTier, config: LoyaltyConfig) -> int:
    """Points for a purchase: floor(floor(amount / pointsPerAmount) x multiplier)."""
    amount = to_decimal(amount)
    if amount <= 0 or config.points_per_amount <= 0:
        return 0
    base_points = int(amount // config.points_per_amount)
    earned = Decimal(base_points) * tier_multiplier(tier, config)
    return int(earned.to_integral_value(rounding=ROUND_FLOOR))


def resolve_tier(
    total_spent, current_tier: CustomerTier, config: LoyaltyConfig
) -> CustomerTier:
    """Tier earned by lifetime spend. Never lower than the current tier."""
    total_spent = to_decimal(total_spent)
    earned = CustomerTier.BRONZE
    if total_spent >= to_decimal(config.min_spent_gold):
        earned = CustomerTier.GOLD
    elif total_spent >= to_decimal(config.min_spent_silver):
        earned = CustomerTier.SILVER

    current_tier = current_tier or CustomerTier.BRONZE
    return earned if earned.rank > current_tier.rank else current_tier


def generate_voucher_code() -> str:
    """Voucher code like RW-K3J9QX-4821 (suffix from the unix clock)."""
    random_part = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"RW-{random_part}-{str(int(time.time()))[-4:]}"


# ---------------------------------------------------------------------------
# Ledger writes
# ---------------------------------------------------------------------------


async def _lock_customer(db: AsyncSession, customer_id: str) -> Customer:
    result = await db.execute(
        select(Customer).where(Customer.id == customer_id).with_for_update()
    )
    customer = result.scalar_one_or_none()
    if not customer:
        raise NotFoundError("Pelanggan tidak ditemukan")
    return customer


def _append_ledger(
    db: AsyncSession,
    customer: Customer,
    *,
    txn_type: PointTransactionType,
    amount: int,
    description: str,
    reference: Optional[str] = None,
) -> PointTransaction:
    """Apply a signed point delta to the cached balance and record it."""
    customer.points = (customer.points or 0) + amount
    customer.updated_at = utc_now()
    return _record_ledger(
        db,
        customer,
        txn_type=txn_type,
        amount=amount,
        description=description,
        reference=reference,
    )


def _record_ledger(
    db: AsyncSession,
    customer: Customer,
    *,
    txn_type: PointTransactionType,
    amount: int,
    description: str,
    reference: Optional[str] = None,
) -> PointTransaction:
    """Ledger row for a delta already applied to customer.points."""
    txn = PointTransaction(
        customer_id=customer.id,
        type=txn_type,
        amount=amount,
        balance_after=customer.points,
        description=description,
        reference=reference,
    )
    db.add(txn)
    return txn


async def accrue_points(
    db: AsyncSession,
    *,
    customer_id: str,
    amount,
    description: str,
    reference: Optional[str] = None,
) -> Optional[PointTransaction]:
    """Grant points for a paid purchase and roll up spend, order count and tier.

    1. Lock the customer row
    2. Compute points at the customer's current tier
    3. Append an EARNED ledger row and update the cached balance
    4. Add to total_spent / order_count and recompute the tier (never down)

    Does not commit; the caller owns the transaction.
    """
    amount = to_decimal(amount)
    config = await get_loyalty_config(db)
    customer = await _lock_customer(db, customer_id)

    points = calculate_points(amount, customer.tier, config)
    txn = None
    if points > 0:
        txn = _append_ledger(
            db,
            customer,
            txn_type=PointTransactionType.EARNED,
            amount=points,
            description=description,
            reference=reference,
        )

    previous_tier = customer.tier
    customer.total_spent = to_decimal(customer.total_spent) + amount
    customer.order_count = (customer.order_count or 0) + 1
    customer.last_order_date = utc_now()
    customer.tier = resolve_tier(customer.total_spent, previous_tier, config)

    logger.info(
        "Accrued %d points for customer %s (amount=%s, tier %s→%s)",
        points,
        customer_id,
        amount,
        previous_tier.value,
        customer.tier.value,
    )
    return txn


async def accrue_order_points(
    db: AsyncSession, order_id: uuid.UUID, commit: bool = True
) -> Order:
    """Grant loyalty points for a delivered order, at most once per order.

    With ``commit=False`` the credit joins the caller's transaction (the
    status change that delivered the order).
    """
    result = await db.execute(
        select(Order).where(Order.id == order_id).with_for_update()
    )
    order = result.scalar_one_or_none()
    if not order:
        raise NotFoundError("Pesanan tidak ditemukan")
    if order.loyalty_processed:
        logger.info("Order %s already credited, skipping", order.order_number)
        return order
    if not order.customer_id:
        raise LoyaltyError("Pesanan tamu tidak mendapatkan poin")
    if order.status != OrderStatus.DELIVERED:
        raise LoyaltyError("Poin hanya diberikan untuk pesanan yang sudah selesai")

    await accrue_points(
        db,
        customer_id=order.customer_id,
        amount=order.grand_total,
        description=f"Poin dari pesanan #{order.order_number}",
        reference=str(order.id),
    )
    order.loyalty_processed = True
    if commit:
        await db.commit()
    return order


async def redeem_reward(
    db: AsyncSession, *, customer_id: str, reward_id: uuid.UUID
) -> Voucher:
    """Exchange points for a single-use voucher.

    Nothing is written when the balance does not cover the reward.
    """
    result = await db.execute(
        select(LoyaltyReward).where(
            LoyaltyReward.id == reward_id, LoyaltyReward.is_active.is_(True)
        )
    )
    reward = result.scalar_one_or_none()
    if not reward:
        raise NotFoundError("Hadiah tidak ditemukan")

    config = await get_loyalty_config(db)
    customer = await _lock_customer(db, customer_id)
    balance_before = customer.points

    # Debit only if the stored balance still covers the cost
    debit = await db.execute(
        update(Customer)
        .where(Customer.id == customer.id, Customer.points >= reward.points_cost)
        .values(points=Customer.points - reward.points_cost, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    if debit.rowcount == 0:
        await db.rollback()
        raise InsufficientPointsError()
    await db.refresh(customer)

    _record_ledger(
        db,
        customer,
        txn_type=PointTransactionType.SPENT,
        amount=-reward.points_cost,
        description=f"Redeem hadiah: {reward.title}",
        reference=str(reward.id),
    )

    code = generate_voucher_code()
    while (
        await db.execute(select(Voucher.id).where(Voucher.code == code))
    ).first() is not None:
        code = generate_voucher_code()

    voucher = Voucher(
        code=code,
        customer_id=customer.id,
        reward_id=reward.id,
        type=reward.type,
        value=reward.value,
        product_id=reward.product_id,
        expires_at=utc_now() + timedelta(days=config.voucher_validity_days),
    )
    db.add(voucher)
    await db.commit()
    await db.refresh(voucher)

    logger.info(
        "Customer %s redeemed reward %s for %d points (balance %d→%d), voucher %s",
        customer_id,
        reward.id,
        reward.points_cost,
        balance_before,
        customer.points,
        voucher.code,
    )
    return voucher


async def adjust_points(
    db: AsyncSession,
    *,
    customer_id: str,
    amount: int,
    description: str,
    adjusted_by: Optional[str] = None,
) -> PointTransaction:
    """Manual correction by an admin. The balance may not go below zero."""
    customer = await _lock_customer(db, customer_id)
    if customer.points + amount < 0:
        await db.rollback()
        raise InsufficientPointsError()

    txn = _append_ledger(
        db,
        customer,
        txn_type=PointTransactionType.ADJUSTED,
        amount=amount,
        description=description,
        reference=adjusted_by,
    )
    await db.commit()
    await db.refresh(txn)

    logger.info(
        "Adjusted customer %s points by %+d (by=%s), balance now %d",
        customer_id,
        amount,
        adjusted_by,
        customer.points,
    )
    return txn


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


async def reconcile_balances(db: AsyncSession) -> int:
    """Reset every cached balance to its ledger sum. Returns the number fixed."""
    ledger = await db.execute(
        select(PointTransaction.customer_id, func.sum(PointTransaction.amount)).group_by(
            PointTransaction.customer_id
        )
    )
    ledger_totals = {customer_id: int(total or 0) for customer_id, total in ledger}

    customers = (await db.execute(select(Customer))).scalars().all()
    fixed = 0
    for customer in customers:
        expected = ledger_totals.get(customer.id, 0)
        if customer.points != expected:
            logger.warning(
                "Point balance drift for customer %s: cached=%d ledger=%d",
                customer.id,
                customer.points,
                expected,
            )
            customer.points = expected
            fixed += 1

    await db.commit()
    if fixed:
        logger.info("Reconciled %d customer point balances", fixed)
    return fixed
