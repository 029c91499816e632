"""Unit tests for loyalty_ops core business logic.

Pure rules are checked directly; ledger operations run against db_session.
"""

import re
from decimal import Decimal

import pytest
from services.customers_service.models import Customer, CustomerTier
from services.loyalty_service.models import (
    LoyaltyConfig,
    PointTransaction,
    PointTransactionType,
    Voucher,
)
from services.loyalty_service.services.loyalty_ops import (
    InsufficientPointsError,
    LoyaltyError,
    accrue_order_points,
    accrue_points,
    adjust_points,
    calculate_points,
    generate_voucher_code,
    reconcile_balances,
    redeem_reward,
    resolve_tier,
)
from services.store_service.models import OrderStatus
from sqlalchemy import func, select, update
from tests.factories import CustomerFactory, OrderFactory, RewardFactory

CONFIG = LoyaltyConfig(
    id="global",
    points_per_amount=10000,
    point_multiplier=Decimal("1.0"),
    multiplier_silver=Decimal("1.2"),
    multiplier_gold=Decimal("1.5"),
    min_spent_silver=Decimal("1000000"),
    min_spent_gold=Decimal("5000000"),
    voucher_validity_days=30,
)


# ---------------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    "amount, tier, points",
    [
        (116000, CustomerTier.BRONZE, 11),
        (116000, CustomerTier.SILVER, 13),
        (116000, CustomerTier.GOLD, 16),
        (9999, CustomerTier.GOLD, 0),
        (0, CustomerTier.BRONZE, 0),
    ],
)
def test_calculate_points_floors_twice(amount, tier, points):
    assert calculate_points(Decimal(amount), tier, CONFIG) == points


@pytest.mark.unit
def test_tier_upgrades_with_lifetime_spend():
    assert resolve_tier(Decimal("999999"), CustomerTier.BRONZE, CONFIG) == CustomerTier.BRONZE
    assert resolve_tier(Decimal("1000000"), CustomerTier.BRONZE, CONFIG) == CustomerTier.SILVER
    assert resolve_tier(Decimal("5000000"), CustomerTier.SILVER, CONFIG) == CustomerTier.GOLD


@pytest.mark.unit
def test_tier_never_downgrades():
    assert resolve_tier(Decimal("0"), CustomerTier.GOLD, CONFIG) == CustomerTier.GOLD
    assert resolve_tier(Decimal("1200000"), CustomerTier.GOLD, CONFIG) == CustomerTier.GOLD


@pytest.mark.unit
def test_voucher_code_format():
    assert re.fullmatch(r"RW-[A-Z0-9]{6}-\d{4}", generate_voucher_code())


# ---------------------------------------------------------------------------
# Accrual
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_accrue_points_writes_ledger_and_rollups(db_session):
    customer = CustomerFactory.create(total_spent=Decimal("950000"), order_count=3)
    db_session.add(customer)
    await db_session.commit()

    txn = await accrue_points(
        db_session,
        customer_id=customer.id,
        amount=Decimal("116000"),
        description="Poin dari pesanan #PSR-1",
        reference="order-1",
    )
    await db_session.commit()

    assert txn.type == PointTransactionType.EARNED
    assert txn.amount == 11
    assert txn.balance_after == 11
    assert customer.points == 11
    assert customer.order_count == 4
    assert customer.total_spent == Decimal("1066000")
    assert customer.tier == CustomerTier.SILVER


@pytest.mark.asyncio
@pytest.mark.unit
async def test_accrue_order_points_is_idempotent(db_session):
    customer = CustomerFactory.create()
    order = OrderFactory.create(
        customer_id=customer.id,
        status=OrderStatus.DELIVERED,
        grand_total=Decimal("116000"),
    )
    db_session.add_all([customer, order])
    await db_session.commit()

    await accrue_order_points(db_session, order.id)
    await accrue_order_points(db_session, order.id)

    ledger_rows = await db_session.scalar(
        select(func.count(PointTransaction.id)).where(
            PointTransaction.customer_id == customer.id
        )
    )
    await db_session.refresh(customer)
    assert ledger_rows == 1
    assert customer.points == 11
    assert customer.order_count == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_undelivered_order_earns_nothing(db_session):
    customer = CustomerFactory.create()
    order = OrderFactory.create(customer_id=customer.id, status=OrderStatus.SHIPPING)
    db_session.add_all([customer, order])
    await db_session.commit()

    with pytest.raises(LoyaltyError):
        await accrue_order_points(db_session, order.id)


# ---------------------------------------------------------------------------
# Redemption
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redeem_mints_voucher_and_debits_points(db_session):
    customer = CustomerFactory.create(points=150)
    reward = RewardFactory.create(points_cost=100)
    db_session.add_all([customer, reward])
    await db_session.commit()

    voucher = await redeem_reward(
        db_session, customer_id=customer.id, reward_id=reward.id
    )

    await db_session.refresh(customer)
    assert customer.points == 50
    assert voucher.customer_id == customer.id
    assert voucher.type == reward.type
    assert voucher.value == reward.value
    assert voucher.is_used is False
    assert re.fullmatch(r"RW-[A-Z0-9]{6}-\d{4}", voucher.code)

    spent = (
        await db_session.execute(
            select(PointTransaction).where(
                PointTransaction.type == PointTransactionType.SPENT
            )
        )
    ).scalar_one()
    assert spent.amount == -100
    assert spent.balance_after == 50


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redeem_with_insufficient_points_changes_nothing(db_session):
    customer = CustomerFactory.create(points=99)
    reward = RewardFactory.create(points_cost=100)
    db_session.add_all([customer, reward])
    await db_session.commit()

    with pytest.raises(InsufficientPointsError) as exc_info:
        await redeem_reward(db_session, customer_id=customer.id, reward_id=reward.id)

    assert exc_info.value.message == "Poin tidak mencukupi"
    await db_session.refresh(customer)
    assert customer.points == 99
    assert await db_session.scalar(select(func.count(Voucher.id))) == 0
    assert await db_session.scalar(select(func.count(PointTransaction.id))) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redeem_checks_stored_balance_not_loaded_copy(db_session):
    """Points spent elsewhere after the row was loaded cannot be spent twice."""
    customer = CustomerFactory.create(points=150)
    reward = RewardFactory.create(points_cost=100)
    db_session.add_all([customer, reward])
    await db_session.commit()
    await db_session.execute(
        update(Customer)
        .where(Customer.id == customer.id)
        .values(points=40)
        .execution_options(synchronize_session=False)
    )
    await db_session.commit()
    assert customer.points == 150

    with pytest.raises(InsufficientPointsError):
        await redeem_reward(db_session, customer_id=customer.id, reward_id=reward.id)

    await db_session.refresh(customer)
    assert customer.points == 40
    assert await db_session.scalar(select(func.count(Voucher.id))) == 0


# ---------------------------------------------------------------------------
# Adjustment & reconciliation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_adjust_points_cannot_go_negative(db_session):
    customer = CustomerFactory.create(points=10)
    db_session.add(customer)
    await db_session.commit()

    txn = await adjust_points(
        db_session, customer_id=customer.id, amount=25, description="Kompensasi"
    )
    assert txn.balance_after == 35

    with pytest.raises(InsufficientPointsError):
        await adjust_points(
            db_session, customer_id=customer.id, amount=-50, description="Koreksi"
        )
    await db_session.refresh(customer)
    assert customer.points == 35


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reconcile_resets_cached_balance_to_ledger(db_session):
    drifted = CustomerFactory.create(points=500)
    consistent = CustomerFactory.create(points=20)
    db_session.add_all([drifted, consistent])
    db_session.add_all(
        [
            PointTransaction(
                customer_id=drifted.id,
                type=PointTransactionType.EARNED,
                amount=30,
                balance_after=30,
                description="Poin",
            ),
            PointTransaction(
                customer_id=consistent.id,
                type=PointTransactionType.EARNED,
                amount=20,
                balance_after=20,
                description="Poin",
            ),
        ]
    )
    await db_session.commit()

    fixed = await reconcile_balances(db_session)

    assert fixed == 1
    refreshed = await db_session.get(Customer, drifted.id)
    assert refreshed.points == 30
    assert consistent.points == 20
