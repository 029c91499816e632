"""Admin endpoints for store settings, shipping, coupons and order fulfilment."""

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.errors import DomainError
from libs.common.logging import get_logger
from libs.db.session import get_async_db, get_session_factory
from services.communications_service.services.dispatcher import (
    deliver_order_notifications,
    enqueue_status_notification,
)
from services.loyalty_service.services.loyalty_ops import accrue_order_points
from services.store_service.models import (
    Coupon,
    Order,
    OrderStatus,
    Product,
    ShippingMethod,
    StockStatus,
)
from services.store_service.schemas import (
    CouponCreate,
    CouponResponse,
    OrderDetail,
    OrderStatusUpdate,
    ShippingMethodCreate,
    ShippingMethodResponse,
    ShippingMethodUpdate,
    ShopConfigResponse,
    ShopConfigUpdate,
)
from services.store_service.services.shop_config import (
    get_shop_config,
    list_shipping_methods,
)
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

router = APIRouter(tags=["admin-store"])


# ============================================================================
# SHOP CONFIG
# ============================================================================


@router.put("/config", response_model=ShopConfigResponse)
async def update_shop_config(
    payload: ShopConfigUpdate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    config = await get_shop_config(db)

    update_data = payload.model_dump(exclude_unset=True)
    if "fee_bands" in update_data:
        bands = sorted(payload.fee_bands or [], key=lambda band: band.up_to_km)
        update_data["fee_bands"] = [
            band.model_dump(mode="json", by_alias=True) for band in bands
        ]
    for field, value in update_data.items():
        setattr(config, field, value)

    await db.commit()
    await db.refresh(config)
    return config


# ============================================================================
# SHIPPING METHODS
# ============================================================================


async def _load_shipping_method(
    db: AsyncSession, method_id: uuid.UUID
) -> ShippingMethod:
    method = await db.get(ShippingMethod, method_id)
    if not method:
        raise HTTPException(
            status_code=404, detail="Metode pengiriman tidak ditemukan"
        )
    return method


@router.get("/shipping-methods", response_model=list[ShippingMethodResponse])
async def list_all_shipping_methods(
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Every shipping method, inactive ones included."""
    return await list_shipping_methods(db, active_only=False)


@router.post(
    "/shipping-methods",
    response_model=ShippingMethodResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_shipping_method(
    payload: ShippingMethodCreate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    method = ShippingMethod(**payload.model_dump())
    db.add(method)
    await db.commit()
    await db.refresh(method)
    logger.info("Created shipping method %s (%s)", method.name, method.type.value)
    return method


@router.patch("/shipping-methods/{method_id}", response_model=ShippingMethodResponse)
async def update_shipping_method(
    method_id: uuid.UUID,
    payload: ShippingMethodUpdate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    method = await _load_shipping_method(db, method_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(method, field, value)
    await db.commit()
    await db.refresh(method)
    return method


@router.delete(
    "/shipping-methods/{method_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_shipping_method(
    method_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a method; past orders keep its name but lose the link."""
    method = await _load_shipping_method(db, method_id)
    await db.execute(
        update(Order)
        .where(Order.shipping_method_id == method.id)
        .values(shipping_method_id=None)
    )
    await db.delete(method)
    await db.commit()


# ============================================================================
# COUPONS
# ============================================================================


@router.get("/coupons", response_model=list[CouponResponse])
async def list_coupons(
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(select(Coupon).order_by(Coupon.created_at.desc()))
    return result.scalars().all()


@router.post(
    "/coupons", response_model=CouponResponse, status_code=status.HTTP_201_CREATED
)
async def create_coupon(
    payload: CouponCreate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a coupon. Codes are stored uppercase."""
    if payload.start_date and payload.end_date and payload.end_date < payload.start_date:
        raise HTTPException(
            status_code=400, detail="Tanggal berakhir harus setelah tanggal mulai"
        )

    code = payload.code.strip().upper()
    existing = await db.execute(select(Coupon.id).where(Coupon.code == code))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Kode kupon sudah digunakan")

    coupon = Coupon(**payload.model_dump(exclude={"code"}), code=code)
    db.add(coupon)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Kode kupon sudah digunakan")
    await db.refresh(coupon)
    return coupon


# ============================================================================
# ORDERS
# ============================================================================


@router.get("/orders", response_model=list[OrderDetail])
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(Order)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
        .limit(limit)
    )
    if status_filter:
        query = query.where(Order.status == status_filter)
    result = await db.execute(query)
    return result.scalars().all()


@router.patch("/orders/{order_id}/status", response_model=OrderDetail)
async def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """Move an order through fulfilment.

    Delivering a customer order credits loyalty points (once) in the same
    transaction as the status change; cancelling puts the stock back. The
    customer gets a WhatsApp update for each customer-facing status.
    """
    result = await db.execute(
        select(Order).where(Order.id == order_id).options(selectinload(Order.items))
    )
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="Pesanan tidak ditemukan")

    if order.status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED):
        if order.status == payload.status:
            return order
        raise HTTPException(
            status_code=400, detail="Status pesanan sudah final dan tidak dapat diubah"
        )

    if payload.status == OrderStatus.CANCELLED:
        for item in order.items:
            if item.product_id is None:
                continue
            await db.execute(
                update(Product)
                .where(
                    Product.id == item.product_id,
                    Product.stock_status == StockStatus.READY_STOCK,
                )
                .values(stock=Product.stock + item.quantity)
            )

    changed = order.status != payload.status
    order.status = payload.status
    try:
        if payload.status == OrderStatus.DELIVERED and order.customer_id:
            await accrue_order_points(db, order.id, commit=False)
        queued = changed and await enqueue_status_notification(db, order)
        await db.commit()
    except DomainError:
        await db.rollback()
        raise
    logger.info("Order %s moved to %s", order.order_number, payload.status.value)

    if queued:
        background_tasks.add_task(
            deliver_order_notifications, session_factory, order.id
        )
    return order
