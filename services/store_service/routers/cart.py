"""Store cart router: the customer's persisted server-side cart."""

from decimal import Decimal

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.currency import ZERO, to_decimal
from libs.db.session import get_async_db
from services.store_service.models import Cart, CartItem
from services.store_service.schemas import (
    CartItemResponse,
    CartResponse,
    CartUpdate,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(tags=["store"])


async def _load_cart(db: AsyncSession, customer_id: str):
    result = await db.execute(
        select(Cart)
        .where(Cart.customer_id == customer_id)
        .options(selectinload(Cart.items))
    )
    return result.scalar_one_or_none()


def _cart_response(cart) -> CartResponse:
    if cart is None:
        return CartResponse()
    items = [CartItemResponse.model_validate(item) for item in cart.items]
    subtotal = sum(
        (to_decimal(item.price) * item.quantity for item in items), ZERO
    )
    return CartResponse(items=items, subtotal=subtotal, updated_at=cart.updated_at)


@router.get("/cart", response_model=CartResponse)
async def get_cart(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Get the saved cart (empty when none is stored)."""
    return _cart_response(await _load_cart(db, current_user.user_id))


@router.put("/cart", response_model=CartResponse)
async def replace_cart(
    payload: CartUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Replace the saved cart with the storefront's current contents."""
    cart = await _load_cart(db, current_user.user_id)
    if cart is None:
        cart = Cart(customer_id=current_user.user_id, items=[])
        db.add(cart)

    cart.items = [
        CartItem(
            product_id=item.product_id,
            name=item.name,
            variant=item.variant,
            quantity=item.quantity,
            price=Decimal(item.price),
            original_price=item.original_price,
            image=item.image,
            note=item.note,
        )
        for item in payload.items
    ]
    await db.commit()

    return _cart_response(await _load_cart(db, current_user.user_id))
