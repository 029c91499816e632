"""Unit tests for order notifications: templates, phone numbers and the outbox."""

import json
from decimal import Decimal

import httpx
import pytest
from libs.common.config import get_settings
from services.communications_service.models import (
    NotificationAudience,
    NotificationOutbox,
    NotificationStatus,
)
from services.communications_service.services.dispatcher import (
    build_order_notifications,
    build_status_notification,
    deliver_order_notifications,
    deliver_outbox_entry,
    deliver_pending,
)
from services.communications_service.templates.orders import (
    build_order_context,
    format_item_lines,
    render_template,
)
from services.communications_service.whatsapp_client import (
    GatewayError,
    WhatsAppClient,
    normalize_phone,
)
from services.store_service.models import OrderStatus
from sqlalchemy import select
from tests.factories import GatewayConfigFactory, OrderFactory, OrderItemFactory


def _gateway(status_code=200, sent=None):
    """MockTransport for the WhatsApp gateway that records every request."""
    sent = sent if sent is not None else []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        if status_code >= 400:
            return httpx.Response(status_code, json={"message": "device offline"})
        return httpx.Response(
            200, json={"results": {"message_id": "wamid-1", "status": "sent"}}
        )

    return httpx.MockTransport(handler)


def _order_with_items():
    order = OrderFactory.create(
        order_number="PSR-20261018-AB12C",
        address_phone="0812-3456-7890",
        discount=Decimal("20000"),
        grand_total=Decimal("96000"),
        notes=None,
    )
    items = [
        OrderItemFactory.create(order_id=order.id),
        OrderItemFactory.create(
            order_id=order.id,
            product_name="Telur Ayam",
            variant="-",
            quantity=1,
            unit_price=Decimal("28000"),
            total=Decimal("28000"),
        ),
    ]
    return order, items


# ---------------------------------------------------------------------------
# Phone numbers & templates
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0812-3456-7890", "6281234567890"),
        ("+62 812 3456 7890", "6281234567890"),
        ("81234567890", "6281234567890"),
        ("12345", "12345"),
        (None, ""),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.unit
def test_render_template_keeps_unknown_tokens():
    rendered = render_template(
        "Halo {{ CustomerName }}, total {{Total}} {{Unknown}}",
        {"CustomerName": "Budi", "Total": "Rp 96.000"},
    )

    assert rendered == "Halo Budi, total Rp 96.000 {{Unknown}}"


@pytest.mark.unit
def test_order_context_formats_amounts_and_items():
    order, items = _order_with_items()

    context = build_order_context(order, items)

    assert context["Total"] == "Rp 96.000"
    assert context["Diskon"] == "Rp 20.000"
    assert context["PaymentMethod"] == "COD"
    assert context["Notes"] == "-"
    assert format_item_lines(items) == (
        "- Daging Sapi Has Dalam (500gr) x2 = Rp 100.000\n"
        "- Telur Ayam x1 = Rp 28.000"
    )


# ---------------------------------------------------------------------------
# Outbox rows
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_build_notifications_for_admins_and_customer():
    order, items = _order_with_items()
    config = GatewayConfigFactory.create(admin_template="Order {{OrderNumber}}")

    entries = build_order_notifications(order, items, config)

    admin = [e for e in entries if e.audience == NotificationAudience.ADMIN]
    customer = [e for e in entries if e.audience == NotificationAudience.CUSTOMER]
    assert [e.recipient_phone for e in admin] == ["6281111111111", "6282222222222"]
    assert admin[0].message == "Order PSR-20261018-AB12C"
    assert customer[0].recipient_phone == "6281234567890"
    assert "PSR-20261018-AB12C" in customer[0].message


@pytest.mark.unit
def test_build_notifications_respects_toggles():
    order, items = _order_with_items()
    config = GatewayConfigFactory.create(notify_admin=False, notify_customer=False)

    assert build_order_notifications(order, items, config) == []


@pytest.mark.unit
def test_status_update_for_customer():
    order, items = _order_with_items()
    order.items = items
    order.status = OrderStatus.DELIVERED

    entry = build_status_notification(order, GatewayConfigFactory.create())

    assert entry.audience == NotificationAudience.CUSTOMER
    assert entry.recipient_phone == "6281234567890"
    assert entry.message == (
        "Halo Budi Santoso,\n\n"
        "Update pesanan *#PSR-20261018-AB12C*: "
        "Pesanan Anda telah sampai di tujuan. Terima kasih!\n"
        "Total: Rp 96.000"
    )


@pytest.mark.unit
@pytest.mark.parametrize(
    "order_status, notify_customer",
    [(OrderStatus.PENDING, True), (OrderStatus.SHIPPING, False)],
)
def test_status_update_skipped(order_status, notify_customer):
    order, _ = _order_with_items()
    order.status = order_status
    config = GatewayConfigFactory.create(notify_customer=notify_customer)

    assert build_status_notification(order, config) is None


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_whatsapp_client_uses_basic_auth():
    sent = []
    client = WhatsAppClient(
        "http://wa-gateway.test/",
        username="admin",
        password="secret",
        transport=_gateway(sent=sent),
    )

    result = await client.send_message("0812 3456 7890", "Halo")

    assert result.message_id == "wamid-1"
    request = sent[0]
    assert str(request.url) == "http://wa-gateway.test/send/message"
    assert request.headers["Authorization"].startswith("Basic ")
    assert json.loads(request.content) == {"phone": "6281234567890", "message": "Halo"}


@pytest.mark.unit
def test_whatsapp_client_reads_timeout_when_built(monkeypatch):
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "3")
    get_settings.cache_clear()
    try:
        client = WhatsAppClient("http://wa-gateway.test", api_key="key")
    finally:
        get_settings.cache_clear()

    assert client.timeout == 3.0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_whatsapp_client_raises_on_gateway_error():
    client = WhatsAppClient(
        "http://wa-gateway.test", api_key="key", transport=_gateway(status_code=503)
    )

    with pytest.raises(GatewayError) as exc_info:
        await client.send_message("081234567890", "Halo")

    assert exc_info.value.status_code == 503
    assert exc_info.value.message == "device offline"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unconfigured_gateway_marks_entry_failed(db_session):
    entry = NotificationOutbox(
        audience=NotificationAudience.CUSTOMER,
        recipient_phone="6281234567890",
        message="Halo",
    )
    db_session.add(entry)
    await db_session.commit()

    delivered = await deliver_outbox_entry(db_session, entry)

    assert delivered is False
    assert entry.status == NotificationStatus.FAILED
    assert entry.attempts == 1
    assert entry.last_error == "WhatsApp gateway not configured"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_notifications_delivered_after_commit(db_session, session_factory):
    order, items = _order_with_items()
    config = GatewayConfigFactory.create()
    db_session.add_all([config, order, *items])
    db_session.add_all(build_order_notifications(order, items, config))
    await db_session.commit()

    sent = []
    await deliver_order_notifications(
        session_factory, order.id, transport=_gateway(sent=sent)
    )

    assert len(sent) == 3
    db_session.expire_all()
    entries = (
        (await db_session.execute(select(NotificationOutbox))).scalars().all()
    )
    assert {e.status for e in entries} == {NotificationStatus.SENT}
    assert all(e.sent_at is not None for e in entries)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_sweep_retries_failed_rows_under_attempt_cap(db_session):
    db_session.add(GatewayConfigFactory.create())
    retryable = NotificationOutbox(
        audience=NotificationAudience.ADMIN,
        recipient_phone="6281111111111",
        message="Halo",
        status=NotificationStatus.FAILED,
        attempts=2,
    )
    exhausted = NotificationOutbox(
        audience=NotificationAudience.ADMIN,
        recipient_phone="6282222222222",
        message="Halo",
        status=NotificationStatus.FAILED,
        attempts=5,
    )
    db_session.add_all([retryable, exhausted])
    await db_session.commit()

    stats = await deliver_pending(db_session, max_attempts=5, transport=_gateway())

    assert stats == {"sent": 1, "failed": 0}
    assert retryable.status == NotificationStatus.SENT
    assert retryable.attempts == 3
    assert exhausted.status == NotificationStatus.FAILED
    assert exhausted.attempts == 5
