"""initial tables: cards, card_events, store_orders, payments

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

card_event_type_enum = sa.Enum(
    'view', 'link_click', 'qr_scan', 'share', name='card_event_type_enum'
)
product_type_enum = sa.Enum(
    'NFC_CARD', 'QR_STICKER', 'SUBSCRIPTION', 'REMAP', name='store_product_type_enum'
)
material_enum = sa.Enum('plastic', 'metal', 'wood', name='store_material_enum')
order_payment_method_enum = sa.Enum('PAYFAST', 'COD', name='store_payment_method_enum')
order_payment_status_enum = sa.Enum(
    'pending', 'paid', 'failed', 'refunded', name='store_payment_status_enum'
)
order_status_enum = sa.Enum(
    'pending', 'processing', 'shipped', 'delivered', 'cancelled',
    name='store_order_status_enum',
)
payment_gateway_enum = sa.Enum('PAYFAST', name='payment_gateway_enum')
payment_status_enum = sa.Enum('pending', 'paid', 'failed', name='payment_status_enum')


def upgrade() -> None:
    """Create the card, analytics, order and payment tables."""
    op.create_table(
        'cards',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('slug', sa.String(length=60), nullable=False),
        sa.Column('data', JSONB(), nullable=False),
        sa.Column('theme', JSONB(), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.Column('public_url', sa.String(), nullable=True),
        sa.Column('qr_code_url', sa.String(), nullable=True),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('analytics', JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_cards_user_id', 'cards', ['user_id'])
    op.create_index('ix_cards_slug', 'cards', ['slug'], unique=True)

    op.create_table(
        'card_events',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('card_id', UUID(as_uuid=True), nullable=False),
        sa.Column('event_type', card_event_type_enum, nullable=False),
        sa.Column('metadata', JSONB(), nullable=False),
        sa.Column('ip_hash', sa.String(length=64), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['card_id'], ['cards.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_card_events_card_time', 'card_events', ['card_id', 'occurred_at'])

    op.create_table(
        'store_orders',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('order_number', sa.String(length=20), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('card_id', UUID(as_uuid=True), nullable=True),
        sa.Column('product_type', product_type_enum, nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('material', material_enum, nullable=True),
        sa.Column('custom_design', sa.Text(), nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('payment_method', order_payment_method_enum, nullable=False),
        sa.Column('payment_status', order_payment_status_enum, nullable=False),
        sa.Column('status', order_status_enum, nullable=False),
        sa.Column('shipping_info', JSONB(), nullable=False),
        sa.Column('tracking_no', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('quantity BETWEEN 1 AND 100', name='order_quantity_range'),
        sa.ForeignKeyConstraint(['card_id'], ['cards.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_store_orders_order_number', 'store_orders', ['order_number'], unique=True)
    op.create_index('ix_store_orders_user_id', 'store_orders', ['user_id'])

    op.create_table(
        'payments',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('order_id', UUID(as_uuid=True), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('gateway', payment_gateway_enum, nullable=False),
        sa.Column('status', payment_status_enum, nullable=False),
        sa.Column('gateway_id', sa.String(length=128), nullable=True),
        sa.Column('metadata', JSONB(), nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['store_orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payments_user_id', 'payments', ['user_id'])
    op.create_index('ix_payments_order_id', 'payments', ['order_id'])
    op.create_index('ix_payments_gateway_id', 'payments', ['gateway_id'])


def downgrade() -> None:
    """Drop all tables and enum types."""
    op.drop_table('payments')
    op.drop_table('store_orders')
    op.drop_table('card_events')
    op.drop_table('cards')

    bind = op.get_bind()
    for enum_type in (
        payment_status_enum,
        payment_gateway_enum,
        order_status_enum,
        order_payment_status_enum,
        order_payment_method_enum,
        material_enum,
        product_type_enum,
        card_event_type_enum,
    ):
        enum_type.drop(bind, checkfirst=True)
