"""shipping_methods

Revision ID: 8b41e6c0d2a9
Revises: 3f9c2a7d1b04
Create Date: 2026-10-25 10:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '8b41e6c0d2a9'
down_revision: Union[str, Sequence[str], None] = '3f9c2a7d1b04'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


shipping_method_type = postgresql.ENUM(
    'PICKUP', 'FLAT', 'DISTANCE', name='store_shipping_method_type_enum', create_type=False
)


def upgrade() -> None:
    """Upgrade schema - shipping methods and the order's chosen method."""
    shipping_method_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'store_shipping_methods',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', shipping_method_type, nullable=False),
        sa.Column('base_fee', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('price_per_km', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('min_order', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('free_shipping_min', sa.Numeric(12, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='1', nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    with op.batch_alter_table('store_orders') as batch_op:
        batch_op.add_column(sa.Column('shipping_method_id', sa.Uuid(), nullable=True))
        batch_op.create_foreign_key(
            'fk_store_orders_shipping_method_id',
            'store_shipping_methods',
            ['shipping_method_id'],
            ['id'],
            ondelete='SET NULL',
        )


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table('store_orders') as batch_op:
        batch_op.drop_constraint('fk_store_orders_shipping_method_id', type_='foreignkey')
        batch_op.drop_column('shipping_method_id')

    op.drop_table('store_shipping_methods')
    shipping_method_type.drop(op.get_bind(), checkfirst=True)
