"""
Order notification message templates.

Templates are plain WhatsApp text with ``{{Placeholder}}`` tokens. Admins can
override the new-order templates in the gateway config; unknown tokens are
left as-is.
"""

import re
from typing import Mapping

from libs.common.config import get_settings
from libs.common.currency import format_rupiah, to_decimal

PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")

DEFAULT_ADMIN_TEMPLATE = """*Pesanan Baru #{{OrderNumber}}*

Pelanggan: {{CustomerName}} ({{CustomerPhone}})
Alamat: {{Address}}

{{Items}}

Subtotal: {{Subtotal}}
Ongkir: {{Ongkir}}
Diskon: {{Diskon}}
*Total: {{Total}}*

Pembayaran: {{PaymentMethod}}
Pengiriman: {{ShippingMethod}}
Catatan: {{Notes}}"""

DEFAULT_CUSTOMER_TEMPLATE = """Halo {{CustomerName}}, terima kasih sudah berbelanja di {{ShopName}}!

Pesanan *#{{OrderNumber}}* sudah kami terima:
{{Items}}

Subtotal: {{Subtotal}}
Ongkir: {{Ongkir}}
Diskon: {{Diskon}}
*Total: {{Total}}*

Metode pembayaran: {{PaymentMethod}}
Kami akan segera memproses pesanan Anda."""

DEFAULT_STATUS_TEMPLATE = """Halo {{CustomerName}},

Update pesanan *#{{OrderNumber}}*: {{StatusMessage}}
Total: {{Total}}"""

# Customer-facing text per order status; other statuses send nothing.
STATUS_MESSAGES = {
    "CONFIRMED": "Pesanan Anda telah dikonfirmasi oleh admin.",
    "PREPARING": "Pesanan Anda sedang disiapkan.",
    "SHIPPING": "Pesanan Anda sedang dalam perjalanan.",
    "DELIVERED": "Pesanan Anda telah sampai di tujuan. Terima kasih!",
    "CANCELLED": "Maaf, pesanan Anda telah dibatalkan.",
}


def render_template(template: str, context: Mapping[str, object]) -> str:
    """Substitute ``{{Name}}`` tokens from context."""

    def _replace(match: re.Match) -> str:
        key = match.group(1)
        if key not in context:
            return match.group(0)
        value = context[key]
        return "" if value is None else str(value)

    return PLACEHOLDER.sub(_replace, template)


def format_item_lines(items) -> str:
    lines = []
    for item in items:
        variant = f" ({item.variant})" if item.variant and item.variant != "-" else ""
        lines.append(
            f"- {item.product_name}{variant} x{item.quantity} = {format_rupiah(item.total)}"
        )
    return "\n".join(lines)


def build_order_context(order, items) -> dict[str, str]:
    """Template values for an order and its line items."""
    return {
        "OrderNumber": order.order_number,
        "CustomerName": order.address_name,
        "CustomerPhone": order.address_phone,
        "Address": order.address_full,
        "Items": format_item_lines(items),
        "Subtotal": format_rupiah(order.subtotal),
        "Ongkir": format_rupiah(order.shipping_fee),
        "BiayaLayanan": format_rupiah(order.service_fee),
        "Diskon": format_rupiah(to_decimal(order.discount)),
        "Total": format_rupiah(order.grand_total),
        "PaymentMethod": (order.payment_method or "-").upper(),
        "ShippingMethod": order.shipping_method or "-",
        "Notes": order.notes or "-",
        "ShopName": get_settings().SHOP_NAME,
    }
