"""Saved delivery addresses for the current customer."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.customers_service.models import Address
from services.customers_service.schemas import (
    AddressCreate,
    AddressResponse,
    AddressUpdate,
)
from services.customers_service.services.customer_ops import get_or_create_customer
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["addresses"])


async def _clear_default(db: AsyncSession, customer_id: str) -> None:
    await db.execute(
        update(Address)
        .where(Address.customer_id == customer_id, Address.is_default.is_(True))
        .values(is_default=False)
    )


async def _get_owned_address(
    db: AsyncSession, customer_id: str, address_id: uuid.UUID
) -> Address:
    result = await db.execute(
        select(Address).where(
            Address.id == address_id, Address.customer_id == customer_id
        )
    )
    address = result.scalar_one_or_none()
    if not address:
        raise HTTPException(status_code=404, detail="Alamat tidak ditemukan")
    return address


@router.get("/me/addresses", response_model=list[AddressResponse])
async def list_addresses(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List saved addresses, default first."""
    result = await db.execute(
        select(Address)
        .where(Address.customer_id == current_user.user_id)
        .order_by(Address.is_default.desc(), Address.created_at.desc())
    )
    return result.scalars().all()


@router.post(
    "/me/addresses",
    response_model=AddressResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_address(
    payload: AddressCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Save a new address. The first address always becomes the default."""
    customer = await get_or_create_customer(db, current_user)

    existing = await db.execute(
        select(Address.id).where(Address.customer_id == customer.id).limit(1)
    )
    is_default = payload.is_default or existing.first() is None
    if is_default:
        await _clear_default(db, customer.id)

    address = Address(
        customer_id=customer.id,
        **payload.model_dump(exclude={"is_default"}),
        is_default=is_default,
    )
    db.add(address)
    await db.commit()
    await db.refresh(address)
    return address


@router.patch("/me/addresses/{address_id}", response_model=AddressResponse)
async def update_address(
    address_id: uuid.UUID,
    payload: AddressUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Edit an address. Setting isDefault clears the previous default."""
    address = await _get_owned_address(db, current_user.user_id, address_id)
    data = payload.model_dump(exclude_unset=True)

    if data.pop("is_default", None) and not address.is_default:
        await _clear_default(db, current_user.user_id)
        address.is_default = True

    for field, value in data.items():
        setattr(address, field, value)

    await db.commit()
    await db.refresh(address)
    return address


@router.delete("/me/addresses/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_address(
    address_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete an address; the most recent remaining one inherits the default."""
    address = await _get_owned_address(db, current_user.user_id, address_id)
    was_default = address.is_default
    await db.delete(address)
    await db.flush()

    if was_default:
        result = await db.execute(
            select(Address)
            .where(Address.customer_id == current_user.user_id)
            .order_by(Address.created_at.desc())
            .limit(1)
        )
        successor = result.scalar_one_or_none()
        if successor:
            successor.is_default = True

    await db.commit()
