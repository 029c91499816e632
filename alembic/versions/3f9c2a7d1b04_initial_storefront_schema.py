"""initial_storefront_schema

Revision ID: 3f9c2a7d1b04
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1b04'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Enum types are created once up front so tables can share them.
customer_tier = postgresql.ENUM('BRONZE', 'SILVER', 'GOLD', name='customer_tier_enum', create_type=False)
address_type = postgresql.ENUM('home', 'office', name='customer_address_type_enum', create_type=False)
stock_status = postgresql.ENUM('READY_STOCK', 'ALWAYS_READY', name='store_stock_status_enum', create_type=False)
order_status = postgresql.ENUM(
    'PENDING', 'CONFIRMED', 'PREPARING', 'SHIPPING', 'DELIVERED', 'CANCELLED',
    name='store_order_status_enum', create_type=False,
)
order_source = postgresql.ENUM('ONLINE', 'POS', name='store_order_source_enum', create_type=False)
coupon_type = postgresql.ENUM('PERCENTAGE', 'FIXED', name='store_coupon_type_enum', create_type=False)
voucher_type = postgresql.ENUM('PRODUCT', 'SHIPPING', 'DISCOUNT', name='loyalty_voucher_type_enum', create_type=False)
point_transaction_type = postgresql.ENUM(
    'EARNED', 'SPENT', 'ADJUSTED', name='loyalty_point_transaction_type_enum', create_type=False
)
notification_audience = postgresql.ENUM('ADMIN', 'CUSTOMER', name='notification_audience_enum', create_type=False)
notification_status = postgresql.ENUM('PENDING', 'SENT', 'FAILED', name='notification_status_enum', create_type=False)

ENUMS = (
    customer_tier,
    address_type,
    stock_status,
    order_status,
    order_source,
    coupon_type,
    voucher_type,
    point_transaction_type,
    notification_audience,
    notification_status,
)


def _timestamps(updated: bool = True) -> list:
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), nullable=False)]
    if updated:
        columns.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False))
    return columns


def upgrade() -> None:
    """Upgrade schema - customers, store, loyalty and notification tables."""
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    # Customers
    op.create_table(
        'customers',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('points', sa.Integer(), server_default='0', nullable=False),
        sa.Column('tier', customer_tier, server_default='BRONZE', nullable=False),
        sa.Column('total_spent', sa.Numeric(14, 2), server_default='0', nullable=False),
        sa.Column('order_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_order_date', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_customers_phone', 'customers', ['phone'], unique=True)

    op.create_table(
        'customer_addresses',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=False),
        sa.Column('label', sa.String(100), nullable=False),
        sa.Column('recipient_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=False),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('type', address_type, server_default='home', nullable=False),
        sa.Column('is_default', sa.Boolean(), server_default='0', nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_customer_addresses_customer_id', 'customer_addresses', ['customer_id'])

    # Store catalog
    op.create_table(
        'store_products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('image', sa.String(500), nullable=True),
        sa.Column('unit', sa.String(50), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('cost_price', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('original_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('promo_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('promo_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('promo_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('stock', sa.Integer(), server_default='0', nullable=False),
        sa.Column('stock_status', stock_status, server_default='READY_STOCK', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='1', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )

    op.create_table(
        'store_product_variants',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('unit', sa.String(50), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('cost_price', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('is_default', sa.Boolean(), server_default='0', nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(['product_id'], ['store_products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_store_product_variants_product_id', 'store_product_variants', ['product_id'])

    op.create_table(
        'store_coupons',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('type', coupon_type, nullable=False),
        sa.Column('value', sa.Numeric(12, 2), nullable=False),
        sa.Column('max_discount', sa.Numeric(12, 2), nullable=True),
        sa.Column('min_purchase', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('usage_limit', sa.Integer(), nullable=True),
        sa.Column('usage_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='1', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_store_coupons_code', 'store_coupons', ['code'], unique=True)

    # Carts
    op.create_table(
        'store_carts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_store_carts_customer_id', 'store_carts', ['customer_id'], unique=True)

    op.create_table(
        'store_cart_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('cart_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('variant', sa.String(50), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('original_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('image', sa.String(500), nullable=True),
        sa.Column('note', sa.String(255), nullable=True),
        *_timestamps(updated=False),
        sa.CheckConstraint('quantity > 0', name='positive_quantity'),
        sa.ForeignKeyConstraint(['cart_id'], ['store_carts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )

    # Orders
    op.create_table(
        'store_orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_number', sa.String(20), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=True),
        sa.Column('address_label', sa.String(100), nullable=True),
        sa.Column('address_name', sa.String(255), nullable=False),
        sa.Column('address_phone', sa.String(50), nullable=False),
        sa.Column('address_full', sa.Text(), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('shipping_fee', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('service_fee', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('voucher_discount', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('coupon_discount', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('discount', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('grand_total', sa.Numeric(12, 2), nullable=False),
        sa.Column('voucher_code', sa.String(50), nullable=True),
        sa.Column('coupon_code', sa.String(50), nullable=True),
        sa.Column('status', order_status, server_default='PENDING', nullable=False),
        sa.Column('source', order_source, server_default='ONLINE', nullable=False),
        sa.Column('payment_method', sa.String(50), server_default='cod', nullable=False),
        sa.Column('shipping_method', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('loyalty_processed', sa.Boolean(), server_default='0', nullable=False),
        *_timestamps(),
        sa.CheckConstraint('grand_total >= 0', name='non_negative_grand_total'),
        sa.CheckConstraint('discount >= 0', name='non_negative_discount'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_store_orders_order_number', 'store_orders', ['order_number'], unique=True)
    op.create_index('ix_store_orders_customer_id', 'store_orders', ['customer_id'])

    op.create_table(
        'store_order_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=True),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('product_image', sa.String(500), nullable=True),
        sa.Column('variant', sa.String(50), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('original_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('cost_price', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('is_promo', sa.Boolean(), server_default='0', nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(['order_id'], ['store_orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['store_products.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'store_shop_config',
        sa.Column('id', sa.String(20), nullable=False),
        sa.Column('store_latitude', sa.Float(), nullable=True),
        sa.Column('store_longitude', sa.Float(), nullable=True),
        sa.Column('max_radius_km', sa.Float(), nullable=False),
        sa.Column('fee_bands', sa.JSON(), nullable=False),
        sa.Column('free_shipping_min_subtotal', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('service_fee', sa.Numeric(12, 2), server_default='1000', nullable=False),
        sa.Column('minimum_order', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    # Loyalty
    op.create_table(
        'loyalty_config',
        sa.Column('id', sa.String(20), nullable=False),
        sa.Column('points_per_amount', sa.Integer(), nullable=False),
        sa.Column('point_multiplier', sa.Numeric(4, 2), nullable=False),
        sa.Column('multiplier_silver', sa.Numeric(4, 2), nullable=False),
        sa.Column('multiplier_gold', sa.Numeric(4, 2), nullable=False),
        sa.Column('min_spent_silver', sa.Numeric(14, 2), nullable=False),
        sa.Column('min_spent_gold', sa.Numeric(14, 2), nullable=False),
        sa.Column('voucher_validity_days', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'loyalty_rewards',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image', sa.String(500), nullable=True),
        sa.Column('points_cost', sa.Integer(), nullable=False),
        sa.Column('type', voucher_type, nullable=False),
        sa.Column('value', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='1', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'loyalty_point_transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=False),
        sa.Column('type', point_transaction_type, nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('balance_after', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('reference', sa.String(100), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_loyalty_point_transactions_customer_id', 'loyalty_point_transactions', ['customer_id'])
    op.create_index('ix_loyalty_point_transactions_created_at', 'loyalty_point_transactions', ['created_at'])

    op.create_table(
        'loyalty_vouchers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=False),
        sa.Column('reward_id', sa.Uuid(), nullable=True),
        sa.Column('type', voucher_type, nullable=False),
        sa.Column('value', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=True),
        sa.Column('is_used', sa.Boolean(), server_default='0', nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('used_order_id', sa.Uuid(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(['reward_id'], ['loyalty_rewards.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_loyalty_vouchers_code', 'loyalty_vouchers', ['code'], unique=True)
    op.create_index('ix_loyalty_vouchers_customer_id', 'loyalty_vouchers', ['customer_id'])

    # Notifications
    op.create_table(
        'gateway_config',
        sa.Column('id', sa.String(20), nullable=False),
        sa.Column('endpoint', sa.String(500), nullable=True),
        sa.Column('device_id', sa.String(100), nullable=True),
        sa.Column('api_key', sa.String(255), nullable=True),
        sa.Column('username', sa.String(100), nullable=True),
        sa.Column('password', sa.String(255), nullable=True),
        sa.Column('admin_phones', sa.Text(), nullable=True),
        sa.Column('notify_admin', sa.Boolean(), server_default='1', nullable=False),
        sa.Column('notify_customer', sa.Boolean(), server_default='1', nullable=False),
        sa.Column('admin_template', sa.Text(), nullable=True),
        sa.Column('customer_template', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'notification_outbox',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=True),
        sa.Column('audience', notification_audience, nullable=False),
        sa.Column('recipient_phone', sa.String(50), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('status', notification_status, server_default='PENDING', nullable=False),
        sa.Column('attempts', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notification_outbox_order_id', 'notification_outbox', ['order_id'])
    op.create_index('ix_notification_outbox_status', 'notification_outbox', ['status'])


def downgrade() -> None:
    """Downgrade schema - drop everything created above."""
    for table in (
        'notification_outbox',
        'gateway_config',
        'loyalty_vouchers',
        'loyalty_point_transactions',
        'loyalty_rewards',
        'loyalty_config',
        'store_shop_config',
        'store_order_items',
        'store_orders',
        'store_cart_items',
        'store_carts',
        'store_coupons',
        'store_product_variants',
        'store_products',
        'customer_addresses',
        'customers',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
