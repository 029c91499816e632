"""Customers Service models package."""

from services.customers_service.models.customer import Address, Customer
from services.customers_service.models.enums import AddressType, CustomerTier

__all__ = [
    "Address",
    "AddressType",
    "Customer",
    "CustomerTier",
]
