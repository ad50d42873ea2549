"""Add reorder settings, inventory log and financial ledger

Revision ID: 002_stock_ledger
Revises: 001_wholesale_profit
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers
revision = '002_stock_ledger'
down_revision = '001_wholesale_profit'
branch_labels = None
depends_on = None


def upgrade():
    """Add reorder columns, inventory_logs and ledger_entries"""

    # ====================
    # STOCK
    # ====================
    op.add_column('products', sa.Column('reorder_level', sa.Integer, nullable=True))
    op.add_column('products', sa.Column('reorder_quantity', sa.Integer, nullable=True))

    op.create_table(
        'inventory_logs',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('product_id', UUID(as_uuid=True), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('action', sa.String(30), server_default='ADJUSTMENT', nullable=False),
        sa.Column('adjustment_type', sa.String(10), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('previous_stock', sa.Integer, nullable=False),
        sa.Column('new_stock', sa.Integer, nullable=False),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('performed_by', UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )
    op.create_index('ix_inventory_logs_product_id', 'inventory_logs', ['product_id'])

    # ====================
    # LEDGER
    # ====================
    op.create_table(
        'ledger_entries',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('source_type', sa.String(20), nullable=False),
        sa.Column('source_id', UUID(as_uuid=True), nullable=False),
        sa.Column('source_name', sa.String(100), nullable=True),
        sa.Column('order_id', UUID(as_uuid=True), sa.ForeignKey('orders.id', ondelete='SET NULL'), nullable=True),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('direction', sa.String(10), nullable=False),
        sa.Column('category', sa.String(30), nullable=False),
        sa.Column('subcategory', sa.String(50), nullable=True),
        sa.Column('party_id', UUID(as_uuid=True), nullable=True),
        sa.Column('party_name', sa.String(200), nullable=True),
        sa.Column('party_type', sa.String(20), nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('entry_date', sa.Date, nullable=False),
        sa.Column('fiscal_year', sa.Integer, nullable=False),
        sa.Column('fiscal_month', sa.Integer, nullable=False),
        sa.Column('is_reconciled', sa.Boolean, server_default='false', nullable=False),
        sa.Column('reconciled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reconciled_by', UUID(as_uuid=True), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )
    op.create_index('ix_ledger_entries_entry_date', 'ledger_entries', ['entry_date'])
    op.create_index('ix_ledger_entries_source', 'ledger_entries', ['source_type', 'source_id'])
    op.create_index('ix_ledger_entries_order_id', 'ledger_entries', ['order_id'])


def downgrade():
    op.drop_table('ledger_entries')
    op.drop_table('inventory_logs')
    op.drop_column('products', 'reorder_quantity')
    op.drop_column('products', 'reorder_level')
