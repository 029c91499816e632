"""Customer lookups shared by the storefront services."""

from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from services.customers_service.models import Customer
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def get_or_create_customer(
    db: AsyncSession, user: AuthUser, commit: bool = True
) -> Customer:
    """Return the customer row for a token subject, creating it on first use.

    Accounts are issued by the login flow; the first authenticated request
    materializes the loyalty-bearing row from the token claims. With
    ``commit=False`` the new row only joins the caller's transaction.
    """
    customer = await db.get(Customer, user.user_id)
    if customer:
        return customer

    customer = Customer(
        id=user.user_id,
        name=user.name or user.phone or "Pelanggan",
        phone=user.phone,
        email=user.email,
    )
    db.add(customer)
    if commit:
        await db.commit()
    else:
        await db.flush()
    logger.info("Created customer record for %s", user.user_id)
    return customer
