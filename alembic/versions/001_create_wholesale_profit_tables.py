"""Create wholesale pricing, profit report and partner payout tables

Revision ID: 001_wholesale_profit
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers
revision = '001_wholesale_profit'
down_revision = None
branch_labels = None
depends_on = None


def _money(name, nullable=False, default=None):
    kwargs = {'nullable': nullable}
    if default is not None:
        kwargs['server_default'] = default
    return sa.Column(name, sa.Numeric(14, 2), **kwargs)


def _percent(name, nullable=False, default=None):
    kwargs = {'nullable': nullable}
    if default is not None:
        kwargs['server_default'] = default
    return sa.Column(name, sa.Numeric(7, 2), **kwargs)


def _timestamps(with_updated=True):
    columns = [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    ]
    if with_updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False)
        )
    return columns


def upgrade():
    """Create pricing, order, payout and profit report tables"""

    # ====================
    # PRODUCTS
    # ====================
    op.create_table(
        'products',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('sku', sa.String(50), unique=True, nullable=False),
        _money('base_price'),
        _money('wholesale_price'),
        sa.Column('moq', sa.Integer, nullable=True),
        sa.Column('stock_quantity', sa.Integer, nullable=True, server_default='0'),
        _percent('platform_profit_percentage', default='0'),
        _percent('seller_commission_percentage', default='0'),
        _money('cost_per_unit', nullable=True),
        _money('shipping_cost', nullable=True),
        _money('handling_cost', nullable=True),
        sa.Column('seller_id', UUID(as_uuid=True), nullable=True),
        sa.Column('is_active', sa.Boolean, server_default='true', nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_products_sku', 'products', ['sku'])

    op.create_table(
        'wholesale_tiers',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('product_id', UUID(as_uuid=True), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('min_quantity', sa.Integer, nullable=False),
        sa.Column('max_quantity', sa.Integer, nullable=True),
        _money('price'),
        _percent('discount', nullable=True),
    )
    op.create_index('ix_wholesale_tiers_product_min', 'wholesale_tiers', ['product_id', 'min_quantity'])

    # ====================
    # ORDERS
    # ====================
    op.create_table(
        'orders',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('order_number', sa.String(30), unique=True, nullable=False),
        sa.Column('status', sa.String(50), server_default='PENDING', nullable=False),
        _money('subtotal', default='0'),
        _money('shipping', default='0'),
        _money('total', default='0'),
        _money('total_cost', nullable=True),
        _money('gross_profit', nullable=True),
        _money('platform_profit', nullable=True),
        _money('seller_profit', nullable=True),
        _percent('profit_margin', nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_orders_status_created', 'orders', ['status', 'created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('order_id', UUID(as_uuid=True), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', UUID(as_uuid=True), sa.ForeignKey('products.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False),
        _money('price'),
        _money('total'),
        # Cost snapshot; NULL on legacy rows
        _money('cost_per_unit', nullable=True),
        _money('profit_per_unit', nullable=True),
        _money('total_profit', nullable=True),
        _percent('profit_margin', nullable=True),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'operational_costs',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('category', sa.String(50), nullable=False),
        _money('amount'),
        sa.Column('cost_date', sa.Date, nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        *_timestamps(with_updated=False),
    )
    op.create_index('ix_operational_costs_cost_date', 'operational_costs', ['cost_date'])

    # ====================
    # PARTNERS & PAYOUTS
    # ====================
    op.create_table(
        'partners',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), unique=True, nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        _percent('profit_share_percentage'),
        sa.Column('is_active', sa.Boolean, server_default='true', nullable=False),
        *_timestamps(with_updated=False),
    )

    op.create_table(
        'profit_distributions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('partner_id', UUID(as_uuid=True), sa.ForeignKey('partners.id', ondelete='CASCADE'), nullable=False),
        sa.Column('period_type', sa.String(20), server_default='CUSTOM', nullable=False),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date, nullable=False),
        _money('total_revenue', default='0'),
        _money('total_costs', default='0'),
        _money('net_profit', default='0'),
        _percent('partner_share'),
        _money('distribution_amount', default='0'),
        sa.Column('status', sa.String(20), server_default='PENDING', nullable=False),
        sa.Column('approved_by', UUID(as_uuid=True), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('payment_method', sa.String(30), nullable=True),
        sa.Column('payment_reference', sa.String(100), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text, nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('partner_id', 'start_date', 'end_date', name='uq_profit_distribution_period'),
    )
    op.create_index('ix_profit_distributions_partner_id', 'profit_distributions', ['partner_id'])
    op.create_index('ix_profit_distributions_status', 'profit_distributions', ['status'])

    # ====================
    # PROFIT REPORTS
    # ====================
    op.create_table(
        'profit_reports',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('order_id', UUID(as_uuid=True), sa.ForeignKey('orders.id', ondelete='CASCADE'), unique=True, nullable=False),
        _money('revenue'),
        _money('cost_of_goods'),
        _money('gross_profit'),
        _money('net_profit'),
        _percent('profit_margin'),
        _money('platform_profit'),
        _percent('platform_profit_percent'),
        _money('seller_profit'),
        _percent('seller_profit_percent'),
        sa.Column('seller_id', UUID(as_uuid=True), nullable=True),
        sa.Column('legacy_items', sa.Integer, server_default='0', nullable=False),
        sa.Column('report_period', sa.String(20), server_default='daily', nullable=False),
        sa.Column('report_date', sa.Date, nullable=False),
        *_timestamps(with_updated=False),
    )


def downgrade():
    """Drop all tables in reverse dependency order"""
    op.drop_table('profit_reports')
    op.drop_table('profit_distributions')
    op.drop_table('partners')
    op.drop_table('operational_costs')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('wholesale_tiers')
    op.drop_table('products')
