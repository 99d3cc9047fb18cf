"""order, line item and observation tables

Revision ID: a3f1c9e2b7d4
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

revision: str = 'a3f1c9e2b7d4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)
    tables = set(inspector.get_table_names())

    if 'orders' not in tables:
        op.create_table(
            'orders',
            sa.Column('id', sa.String(length=36), primary_key=True, nullable=False),
            sa.Column('client_id', sa.String(length=64), nullable=False),
            sa.Column('client_name', sa.String(length=255), nullable=False),
            sa.Column('client_account', sa.String(length=64), nullable=False, server_default=''),
            sa.Column('operation_type', sa.String(length=30), nullable=False),
            sa.Column('status', sa.String(length=30), nullable=False),
            sa.Column('market', sa.String(length=50), nullable=True),
            sa.Column('term', sa.String(length=50), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index('ix_orders_client_id', 'orders', ['client_id'])
        op.create_index('ix_orders_status', 'orders', ['status'])

    if 'order_line_items' not in tables:
        op.create_table(
            'order_line_items',
            sa.Column('id', sa.String(length=36), primary_key=True, nullable=False),
            sa.Column('order_id', sa.String(length=36), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
            sa.Column('ticker', sa.String(length=20), nullable=False),
            sa.Column('quantity', sa.Integer(), nullable=False),
            sa.Column('price', sa.Float(), nullable=False, server_default='0'),
            sa.Column('is_market_order', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.CheckConstraint('quantity > 0', name='ck_order_line_items_quantity_positive'),
            sa.CheckConstraint('price >= 0', name='ck_order_line_items_price_non_negative'),
        )
        op.create_index('ix_order_line_items_order_id', 'order_line_items', ['order_id'])

    if 'order_observations' not in tables:
        op.create_table(
            'order_observations',
            sa.Column('id', sa.String(length=36), primary_key=True, nullable=False),
            sa.Column('order_id', sa.String(length=36), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
            sa.Column('text', sa.Text(), nullable=False),
            sa.Column('author_id', sa.String(length=64), nullable=True),
            sa.Column('author_name', sa.String(length=255), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index('ix_order_observations_order_id', 'order_observations', ['order_id'])


def downgrade() -> None:
    op.drop_index('ix_order_observations_order_id', table_name='order_observations')
    op.drop_table('order_observations')
    op.drop_index('ix_order_line_items_order_id', table_name='order_line_items')
    op.drop_table('order_line_items')
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_client_id', table_name='orders')
    op.drop_table('orders')
