"""Admin endpoints for the WhatsApp gateway and order notifications."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.communications_service.models import (
    GatewayConfig,
    NotificationOutbox,
    NotificationStatus,
)
from services.communications_service.schemas import (
    DeliveryStats,
    GatewayConfigResponse,
    GatewayConfigUpdate,
    GatewayTestRequest,
    GatewayTestResponse,
    NotificationConfigResponse,
    NotificationConfigUpdate,
    NotificationResponse,
)
from services.communications_service.services.dispatcher import (
    deliver_pending,
    get_gateway_config,
)
from services.communications_service.templates.orders import (
    DEFAULT_ADMIN_TEMPLATE,
    DEFAULT_CUSTOMER_TEMPLATE,
)
from services.communications_service.whatsapp_client import (
    GatewayError,
    WhatsAppClient,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(tags=["admin-communications"])

TEST_MESSAGE = "Tes koneksi WhatsApp gateway berhasil."


def _gateway_response(config: GatewayConfig) -> GatewayConfigResponse:
    return GatewayConfigResponse(
        endpoint=config.endpoint,
        device_id=config.device_id,
        username=config.username,
        has_password=bool(config.password),
        has_api_key=bool(config.api_key),
        is_configured=config.is_configured,
        updated_at=config.updated_at,
    )


def _notification_response(config: GatewayConfig) -> NotificationConfigResponse:
    return NotificationConfigResponse(
        admin_phones=config.admin_phones,
        notify_admin=config.notify_admin,
        notify_customer=config.notify_customer,
        admin_template=config.admin_template,
        customer_template=config.customer_template,
        default_admin_template=DEFAULT_ADMIN_TEMPLATE,
        default_customer_template=DEFAULT_CUSTOMER_TEMPLATE,
    )


# ===== GATEWAY CONFIG =====


@router.get("/gateway-config", response_model=GatewayConfigResponse)
async def get_gateway_settings(
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    config = await get_gateway_config(db)
    await db.commit()
    return _gateway_response(config)


@router.put("/gateway-config", response_model=GatewayConfigResponse)
async def update_gateway_settings(
    payload: GatewayConfigUpdate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Update gateway connection settings. Omitted secrets are left unchanged."""
    config = await get_gateway_config(db)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if isinstance(value, str):
            value = value.strip() or None
        setattr(config, field, value)
    await db.commit()
    await db.refresh(config)
    return _gateway_response(config)


@router.post("/gateway-config/test", response_model=GatewayTestResponse)
async def test_gateway(
    payload: GatewayTestRequest,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Send a test message through the configured gateway."""
    config = await get_gateway_config(db)
    if not config.is_configured:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="WhatsApp gateway belum dikonfigurasi",
        )

    try:
        result = await WhatsAppClient.from_config(config).send_message(
            payload.phone, payload.message or TEST_MESSAGE
        )
    except GatewayError as e:
        logger.warning("Gateway test to %s failed: %s", payload.phone, e.message)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)

    return GatewayTestResponse(
        success=True, phone=result.phone, message_id=result.message_id
    )


# ===== NOTIFICATION CONFIG =====


@router.get("/notification-config", response_model=NotificationConfigResponse)
async def get_notification_settings(
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    config = await get_gateway_config(db)
    await db.commit()
    return _notification_response(config)


@router.put("/notification-config", response_model=NotificationConfigResponse)
async def update_notification_settings(
    payload: NotificationConfigUpdate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Update recipients, toggles and templates. Blank templates reset to default."""
    config = await get_gateway_config(db)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field in ("notify_admin", "notify_customer") and value is None:
            continue
        if field in ("admin_template", "customer_template") and value is not None:
            value = value.strip() or None
        setattr(config, field, value)
    await db.commit()
    await db.refresh(config)
    return _notification_response(config)


# ===== OUTBOX =====


@router.get("/notifications", response_model=List[NotificationResponse])
async def list_notifications(
    status_filter: Optional[NotificationStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Most recent outbox rows, newest first."""
    query = (
        select(NotificationOutbox)
        .order_by(NotificationOutbox.created_at.desc())
        .limit(limit)
    )
    if status_filter:
        query = query.where(NotificationOutbox.status == status_filter)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/notifications/retry", response_model=DeliveryStats)
async def retry_notifications(
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Run an outbox sweep now instead of waiting for the worker."""
    return DeliveryStats(**await deliver_pending(db))
