"""Store orders router: checkout and order history."""

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from libs.auth.dependencies import get_current_user, get_optional_user
from libs.auth.models import AuthUser
from libs.common.datetime_utils import format_id_date
from libs.db.session import get_async_db, get_session_factory
from services.communications_service.services.dispatcher import (
    deliver_order_notifications,
)
from services.store_service.models import PROCESSING_STATUSES, Order, OrderStatus
from services.store_service.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    OrderDetail,
    OrderRef,
    OrderSummary,
    OrderSummaryItem,
)
from services.store_service.services.order_service import create_order
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

router = APIRouter(tags=["store"])

PLACEHOLDER_IMAGE = "https://images.unsplash.com/photo-1542838132-92c53300491e?w=200&q=80"


# ============================================================================
# CHECKOUT
# ============================================================================


@router.post(
    "/orders", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED
)
async def checkout(
    payload: CheckoutRequest,
    background_tasks: BackgroundTasks,
    current_user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """Place an order. Guests may check out without a token but cannot use vouchers."""
    order = await create_order(db, payload, customer=current_user)

    # Best effort; undelivered rows stay in the outbox for the worker
    background_tasks.add_task(deliver_order_notifications, session_factory, order.id)

    return CheckoutResponse(
        message="Order berhasil dibuat",
        order=OrderRef(id=order.id, order_number=order.order_number),
    )


# ============================================================================
# ORDERS
# ============================================================================


def _summary(order: Order) -> OrderSummary:
    return OrderSummary(
        id=order.id,
        order_number=order.order_number,
        date=format_id_date(order.created_at),
        status=order.status.value.lower(),
        items=[
            OrderSummaryItem(
                name=item.product_name,
                quantity=item.quantity,
                image=item.product_image or PLACEHOLDER_IMAGE,
            )
            for item in order.items
        ],
        total=order.grand_total,
    )


@router.get("/orders", response_model=list[OrderSummary])
async def list_my_orders(
    status_filter: str = Query("all", alias="status"),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List the customer's orders, newest first.

    ``status`` is ``all``, ``processing`` (not yet delivered or cancelled),
    ``delivered`` or any explicit order status.
    """
    query = (
        select(Order)
        .where(Order.customer_id == current_user.user_id)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
    )

    wanted = (status_filter or "all").strip().upper()
    if wanted == "PROCESSING":
        query = query.where(Order.status.in_(PROCESSING_STATUSES))
    elif wanted != "ALL":
        try:
            query = query.where(Order.status == OrderStatus(wanted))
        except ValueError:
            raise HTTPException(status_code=400, detail="Status tidak valid")

    result = await db.execute(query)
    return [_summary(order) for order in result.scalars().all()]


@router.get("/orders/{order_id}", response_model=OrderDetail)
async def get_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Get one of the customer's orders."""
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id, Order.customer_id == current_user.user_id)
        .options(selectinload(Order.items))
    )
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="Pesanan tidak ditemukan")
    return order
