"""Store promotions router: coupon and voucher checks before checkout."""

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.schemas import (
    CouponVerifyRequest,
    CouponVerifyResponse,
    VoucherPreview,
    VoucherValidateRequest,
    VoucherValidateResponse,
)
from services.store_service.services.order_service import (
    check_voucher,
    find_coupon,
    find_voucher,
)
from services.store_service.services.pricing import (
    calculate_coupon_discount,
    ensure_coupon_usable,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


@router.post("/coupons/verify", response_model=CouponVerifyResponse)
async def verify_coupon(
    payload: CouponVerifyRequest, db: AsyncSession = Depends(get_async_db)
):
    """Preview a coupon discount. Usage is only counted when an order is placed."""
    coupon = ensure_coupon_usable(await find_coupon(db, payload.code), payload.subtotal)
    eligible = (
        payload.eligible_subtotal
        if payload.eligible_subtotal is not None
        else payload.subtotal
    )
    return CouponVerifyResponse(
        code=coupon.code,
        type=coupon.type,
        discount=calculate_coupon_discount(coupon, eligible),
    )


@router.post("/vouchers/validate", response_model=VoucherValidateResponse)
async def validate_voucher(
    payload: VoucherValidateRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Check that a loyalty voucher belongs to the caller and is still spendable."""
    voucher = check_voucher(
        await find_voucher(db, payload.code),
        current_user.user_id,
        not_found_status=status.HTTP_404_NOT_FOUND,
    )
    return VoucherValidateResponse(voucher=VoucherPreview.model_validate(voucher))
