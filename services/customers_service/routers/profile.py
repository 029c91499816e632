"""Customer profile endpoints."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.customers_service.schemas import CustomerResponse, CustomerUpdate
from services.customers_service.services.customer_ops import get_or_create_customer
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["customers"])


@router.get("/me", response_model=CustomerResponse)
async def get_my_profile(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Get the current customer's profile, points and tier."""
    return await get_or_create_customer(db, current_user)


@router.patch("/me", response_model=CustomerResponse)
async def update_my_profile(
    payload: CustomerUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Update display name or email."""
    customer = await get_or_create_customer(db, current_user)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(customer, field, value)
    await db.commit()
    await db.refresh(customer)
    return customer
