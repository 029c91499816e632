"""Pydantic schemas for customers service."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.schemas import CamelModel, Money
from pydantic import Field
from services.customers_service.models import AddressType, CustomerTier

# ============================================================================
# CUSTOMER SCHEMAS
# ============================================================================


class CustomerResponse(CamelModel):
    id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    points: int
    tier: CustomerTier
    total_spent: Money
    order_count: int
    last_order_date: Optional[datetime] = None
    created_at: datetime


class CustomerUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)


# ============================================================================
# ADDRESS SCHEMAS
# ============================================================================


class AddressBase(CamelModel):
    label: str = Field(..., min_length=1, max_length=100)
    recipient_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=5, max_length=50)
    address: str = Field(..., min_length=5)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    type: AddressType = AddressType.HOME
    is_default: bool = False


class AddressCreate(AddressBase):
    pass


class AddressUpdate(CamelModel):
    label: Optional[str] = Field(None, min_length=1, max_length=100)
    recipient_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, min_length=5, max_length=50)
    address: Optional[str] = Field(None, min_length=5)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    type: Optional[AddressType] = None
    is_default: Optional[bool] = None


class AddressResponse(AddressBase):
    id: uuid.UUID
    created_at: datetime
