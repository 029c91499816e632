"""
Order notification dispatcher built on the notification outbox.

Handles:
- Building outbox rows for a new order (inside the order transaction)
- Building the customer update for an admin status change
- Delivering pending rows through the WhatsApp gateway after commit
- Sweeping PENDING/FAILED rows from the background worker
"""

import uuid
from datetime import datetime
from typing import Optional

import httpx
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.communications_service.models import (
    GatewayConfig,
    NotificationAudience,
    NotificationOutbox,
    NotificationStatus,
)
from services.communications_service.templates.orders import (
    DEFAULT_ADMIN_TEMPLATE,
    DEFAULT_CUSTOMER_TEMPLATE,
    DEFAULT_STATUS_TEMPLATE,
    STATUS_MESSAGES,
    build_order_context,
    render_template,
)
from services.communications_service.whatsapp_client import (
    GatewayError,
    WhatsAppClient,
    normalize_phone,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)

CONFIG_ID = "global"


async def get_gateway_config(db: AsyncSession) -> GatewayConfig:
    """Return the gateway config row, creating it with defaults on first read."""
    config = await db.get(GatewayConfig, CONFIG_ID)
    if config:
        return config
    config = GatewayConfig(id=CONFIG_ID)
    db.add(config)
    await db.flush()
    return config


def build_order_notifications(
    order, items, config: GatewayConfig
) -> list[NotificationOutbox]:
    """Outbox rows for every admin phone and the customer, per the toggles."""
    context = build_order_context(order, items)
    entries = []

    if config.notify_admin:
        message = render_template(
            config.admin_template or DEFAULT_ADMIN_TEMPLATE, context
        )
        for phone in config.admin_phone_list():
            entries.append(
                NotificationOutbox(
                    order_id=order.id,
                    audience=NotificationAudience.ADMIN,
                    recipient_phone=normalize_phone(phone),
                    message=message,
                )
            )

    customer_phone = normalize_phone(order.address_phone)
    if config.notify_customer and customer_phone:
        entries.append(
            NotificationOutbox(
                order_id=order.id,
                audience=NotificationAudience.CUSTOMER,
                recipient_phone=customer_phone,
                message=render_template(
                    config.customer_template or DEFAULT_CUSTOMER_TEMPLATE, context
                ),
            )
        )
    return entries


async def enqueue_order_notifications(db: AsyncSession, order, items) -> int:
    """Add outbox rows for an order to the caller's transaction (no commit)."""
    config = await get_gateway_config(db)
    entries = build_order_notifications(order, items, config)
    db.add_all(entries)
    return len(entries)


def build_status_notification(
    order, config: GatewayConfig
) -> Optional[NotificationOutbox]:
    """Customer update for the order's current status, if that status has one."""
    status_key = getattr(order.status, "value", order.status)
    status_message = STATUS_MESSAGES.get(status_key)
    customer_phone = normalize_phone(order.address_phone)
    if not status_message or not config.notify_customer or not customer_phone:
        return None

    context = build_order_context(order, order.items)
    context["StatusMessage"] = status_message
    return NotificationOutbox(
        order_id=order.id,
        audience=NotificationAudience.CUSTOMER,
        recipient_phone=customer_phone,
        message=render_template(DEFAULT_STATUS_TEMPLATE, context),
    )


async def enqueue_status_notification(db: AsyncSession, order) -> bool:
    """Queue the status update in the caller's transaction (no commit)."""
    config = await get_gateway_config(db)
    entry = build_status_notification(order, config)
    if entry is None:
        return False
    db.add(entry)
    return True


async def deliver_outbox_entry(
    db: AsyncSession,
    entry: NotificationOutbox,
    config: Optional[GatewayConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """
    Attempt delivery of one outbox row and record the outcome.

    Never raises; returns True when the message was accepted by the gateway.
    """
    if entry.status == NotificationStatus.SENT:
        return True

    config = config or await get_gateway_config(db)
    entry.attempts = (entry.attempts or 0) + 1

    try:
        if not config.is_configured:
            raise GatewayError("WhatsApp gateway not configured")
        client = WhatsAppClient.from_config(config, transport=transport)
        await client.send_message(entry.recipient_phone, entry.message)
    except GatewayError as e:
        entry.status = NotificationStatus.FAILED
        entry.last_error = e.message
        logger.warning(
            f"Notification {entry.id} to {entry.recipient_phone} failed "
            f"(attempt {entry.attempts}): {e.message}"
        )
    except Exception as e:
        entry.status = NotificationStatus.FAILED
        entry.last_error = str(e) or e.__class__.__name__
        logger.exception(f"Unexpected error delivering notification {entry.id}")
    else:
        entry.status = NotificationStatus.SENT
        entry.sent_at = utc_now()
        entry.last_error = None
        logger.info(
            f"Notification {entry.id} ({entry.audience.value}) sent to "
            f"{entry.recipient_phone}"
        )

    await db.commit()
    return entry.status == NotificationStatus.SENT


async def deliver_order_notifications(
    session_factory: async_sessionmaker,
    order_id: uuid.UUID,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """Post-commit delivery of an order's pending outbox rows.

    Runs as a background task; anything left undelivered is picked up by the
    worker sweep.
    """
    try:
        async with session_factory() as db:
            result = await db.execute(
                select(NotificationOutbox).where(
                    NotificationOutbox.order_id == order_id,
                    NotificationOutbox.status == NotificationStatus.PENDING,
                )
            )
            entries = result.scalars().all()
            if not entries:
                return
            config = await get_gateway_config(db)
            for entry in entries:
                await deliver_outbox_entry(db, entry, config, transport)
    except Exception:
        logger.exception(f"Notification dispatch for order {order_id} failed")


async def find_undelivered(
    db: AsyncSession,
    max_attempts: Optional[int] = None,
    limit: int = 100,
    older_than: Optional[datetime] = None,
) -> list[NotificationOutbox]:
    """PENDING and FAILED rows still under the attempt cap, oldest first."""
    max_attempts = max_attempts or get_settings().NOTIFICATION_MAX_ATTEMPTS
    query = (
        select(NotificationOutbox)
        .where(
            NotificationOutbox.status.in_(
                [NotificationStatus.PENDING, NotificationStatus.FAILED]
            ),
            NotificationOutbox.attempts < max_attempts,
        )
        .order_by(NotificationOutbox.created_at)
        .limit(limit)
    )
    if older_than is not None:
        query = query.where(NotificationOutbox.created_at < older_than)
    result = await db.execute(query)
    return list(result.scalars().all())


async def deliver_pending(
    db: AsyncSession,
    max_attempts: Optional[int] = None,
    limit: int = 100,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict[str, int]:
    """Retry PENDING and FAILED rows that are still under the attempt cap."""
    entries = await find_undelivered(db, max_attempts=max_attempts, limit=limit)

    stats = {"sent": 0, "failed": 0}
    if not entries:
        return stats

    config = await get_gateway_config(db)
    for entry in entries:
        if await deliver_outbox_entry(db, entry, config, transport):
            stats["sent"] += 1
        else:
            stats["failed"] += 1

    logger.info(
        f"Outbox sweep: {stats['sent']} sent, {stats['failed']} failed "
        f"of {len(entries)}"
    )
    return stats
