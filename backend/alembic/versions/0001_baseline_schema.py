"""Baseline schema

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers used by Alembic
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('sub_role', sa.String(), nullable=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('mobile', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'])
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sku', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=True, unique=True),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('product_type', sa.String(), nullable=True),
        sa.Column('btb_product', sa.Boolean(), nullable=False),
        sa.Column('unit', sa.String(), nullable=True),
        sa.Column('packaging', sa.String(), nullable=True),
        sa.Column('product_availability', sa.Boolean(), nullable=False),
        sa.Column('price', sa.Float(), sa.CheckConstraint('price >= 0'), nullable=False),
        sa.Column('btc_price', sa.Float(), nullable=False),
        sa.Column('btb_price', sa.Float(), nullable=False),
        sa.Column('price_3weeks_delivery', sa.Float(), nullable=False),
        sa.Column('price_5weeks_delivery', sa.Float(), nullable=False),
        sa.Column('discount', sa.Float(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('stock_source', sa.String(), nullable=False),
        sa.Column('warehouse_enabled', sa.Boolean(), nullable=False),
        sa.Column('warehouse_stock_on_arrival', sa.Integer(), nullable=False),
        sa.Column('warehouse_damaged_qty', sa.Integer(), nullable=False),
        sa.Column('warehouse_expired_qty', sa.Integer(), nullable=False),
        sa.Column('warehouse_refurbished_qty', sa.Integer(), nullable=False),
        sa.Column('warehouse_final_stock', sa.Integer(), nullable=False),
        sa.Column('warehouse_online_stock', sa.Integer(), nullable=False),
        sa.Column('warehouse_offline_stock', sa.Integer(), nullable=False),
        sa.Column('warehouse_notes', sa.String(), nullable=True),
        sa.Column('warehouse_last_updated', sa.DateTime(timezone=True), nullable=True),
        sa.Column('warehouse_updated_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock'),
        sa.CheckConstraint('warehouse_final_stock >= 0', name='ck_products_wh_final'),
        sa.CheckConstraint('warehouse_online_stock >= 0', name='ck_products_wh_online'),
        sa.CheckConstraint('warehouse_offline_stock >= 0', name='ck_products_wh_offline'),
    )
    op.create_index(op.f('ix_products_id'), 'products', ['id'])
    op.create_index(op.f('ix_products_sku'), 'products', ['sku'], unique=True)
    op.create_index(op.f('ix_products_name'), 'products', ['name'])

    op.create_table(
        'stock_batches',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('batch_number', sa.String(), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('supplier', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('quality_status', sa.String(), nullable=False),
        sa.Column('quality_notes', sa.String(), nullable=True),
        sa.Column('original_quantity', sa.Integer(), nullable=False),
        sa.Column('good_quantity', sa.Integer(), nullable=False),
        sa.Column('refurbished_quantity', sa.Integer(), nullable=False),
        sa.Column('damaged_quantity', sa.Integer(), nullable=False),
        sa.Column('online_stock', sa.Integer(), nullable=False),
        sa.Column('offline_stock', sa.Integer(), nullable=False),
        sa.Column('unit_cost', sa.Float(), nullable=False),
        sa.Column('received_date', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('expiry_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(op.f('ix_stock_batches_id'), 'stock_batches', ['id'])
    op.create_index(op.f('ix_stock_batches_batch_number'), 'stock_batches', ['batch_number'], unique=True)
    op.create_index(op.f('ix_stock_batches_product_id'), 'stock_batches', ['product_id'])
    op.create_index(op.f('ix_stock_batches_status'), 'stock_batches', ['status'])

    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('mobile', sa.String(), nullable=True),
        sa.Column('street', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('state', sa.String(), nullable=True),
        sa.Column('country', sa.String(), nullable=True),
        sa.Column('postal_code', sa.String(), nullable=True),
        sa.Column('customer_type', sa.String(), nullable=False),
        sa.Column('customer_mode', sa.String(), nullable=False),
        sa.Column('company_name', sa.String(), nullable=True),
        sa.Column('registration_number', sa.String(), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True, unique=True),
        sa.Column('is_website_customer', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('total_orders', sa.Integer(), nullable=False),
        sa.Column('total_order_value', sa.Float(), nullable=False),
        sa.Column('last_order_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(op.f('ix_customers_id'), 'customers', ['id'])
    op.create_index(op.f('ix_customers_email'), 'customers', ['email'], unique=True)
    op.create_index(op.f('ix_customers_customer_type'), 'customers', ['customer_type'])
    op.create_index(op.f('ix_customers_customer_mode'), 'customers', ['customer_mode'])
    op.create_index(op.f('ix_customers_created_by'), 'customers', ['created_by'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.String(), nullable=False),
        sa.Column('order_group_id', sa.String(), nullable=False),
        sa.Column('is_parent', sa.Boolean(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('is_website_order', sa.Boolean(), nullable=False),
        sa.Column('order_type', sa.String(), nullable=False),
        sa.Column('order_mode', sa.String(), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('product_name', sa.String(), nullable=False),
        sa.Column('product_sku', sa.String(), nullable=True),
        sa.Column('price_option', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.Column('sub_total_amt', sa.Float(), nullable=False),
        sa.Column('discount_amount', sa.Float(), nullable=False),
        sa.Column('tax_amount', sa.Float(), nullable=False),
        sa.Column('shipping_cost', sa.Float(), nullable=False),
        sa.Column('total_amt', sa.Float(), nullable=False),
        sa.Column('group_sub_total', sa.Float(), nullable=True),
        sa.Column('group_discount', sa.Float(), nullable=True),
        sa.Column('group_tax', sa.Float(), nullable=True),
        sa.Column('group_shipping', sa.Float(), nullable=True),
        sa.Column('group_total', sa.Float(), nullable=True),
        sa.Column('group_size', sa.Integer(), nullable=True),
        sa.Column('currency', sa.String(), nullable=False),
        sa.Column('exchange_rate', sa.Float(), nullable=False),
        sa.Column('payment_id', sa.String(), nullable=True),
        sa.Column('payment_method', sa.String(), nullable=True),
        sa.Column('payment_status', sa.String(), nullable=False),
        sa.Column('order_status', sa.String(), nullable=False),
        sa.Column('delivery_address', sa.String(), nullable=True),
        sa.Column('shipping_method', sa.String(), nullable=True),
        sa.Column('estimated_delivery', sa.DateTime(timezone=True), nullable=True),
        sa.Column('actual_delivery', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('customer_notes', sa.String(), nullable=True),
        sa.Column('admin_notes', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(op.f('ix_orders_id'), 'orders', ['id'])
    op.create_index(op.f('ix_orders_order_id'), 'orders', ['order_id'], unique=True)
    for column in ('order_group_id', 'user_id', 'customer_id', 'created_by', 'is_website_order',
                   'product_id', 'payment_id', 'payment_status', 'order_status', 'created_at'):
        op.create_index(op.f(f'ix_orders_{column}'), 'orders', [column])

    op.create_table(
        'cart_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('price_option', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_snapshot', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'product_id', 'price_option', name='uq_cartitem_user_product_option'),
    )
    op.create_index(op.f('ix_cart_items_id'), 'cart_items', ['id'])
    op.create_index(op.f('ix_cart_items_user_id'), 'cart_items', ['user_id'])
    op.create_index(op.f('ix_cart_items_product_id'), 'cart_items', ['product_id'])

    op.create_table(
        'warehouse_activities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('ts', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('target_type', sa.String(length=20), nullable=False),
        sa.Column('target_id', sa.Integer(), nullable=True),
        sa.Column('target_name', sa.String(), nullable=True),
        sa.Column('target_sku', sa.String(), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(), nullable=True),
    )
    op.create_index(op.f('ix_warehouse_activities_id'), 'warehouse_activities', ['id'])
    op.create_index(op.f('ix_warehouse_activities_ts'), 'warehouse_activities', ['ts'])
    op.create_index(op.f('ix_warehouse_activities_user_id'), 'warehouse_activities', ['user_id'])
    op.create_index(op.f('ix_warehouse_activities_action'), 'warehouse_activities', ['action'])
    op.create_index(op.f('ix_warehouse_activities_target_id'), 'warehouse_activities', ['target_id'])

    op.create_table(
        'warehouse_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('auto_sync_enabled', sa.Boolean(), nullable=False),
        sa.Column('low_stock_threshold', sa.Integer(), nullable=False),
        sa.Column('critical_stock_threshold', sa.Integer(), nullable=False),
        sa.Column('notification_emails', sa.JSON(), nullable=False),
        sa.Column('updated_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'exchange_rates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('base_currency', sa.String(length=3), nullable=False),
        sa.Column('target_currency', sa.String(length=3), nullable=False),
        sa.Column('rate', sa.Float(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('base_currency', 'target_currency', name='uq_exchange_rate_pair'),
    )
    op.create_index(op.f('ix_exchange_rates_id'), 'exchange_rates', ['id'])

    op.create_table(
        'shipping_zones',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('states', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
    )
    op.create_index(op.f('ix_shipping_zones_id'), 'shipping_zones', ['id'])

    op.create_table(
        'shipping_methods',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('code', sa.String(), nullable=False, unique=True),
        sa.Column('zone_id', sa.Integer(), sa.ForeignKey('shipping_zones.id'), nullable=True),
        sa.Column('cost', sa.Float(), nullable=False),
        sa.Column('estimated_days', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
    )
    op.create_index(op.f('ix_shipping_methods_id'), 'shipping_methods', ['id'])

    op.create_table(
        'checkout_sessions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('reference', sa.String(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('provider', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('sub_total', sa.Float(), nullable=False),
        sa.Column('shipping_cost', sa.Float(), nullable=False),
        sa.Column('shipping_method', sa.String(), nullable=True),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('exchange_rate', sa.Float(), nullable=False),
        sa.Column('delivery_address', sa.String(), nullable=True),
        sa.Column('provider_session_id', sa.String(), nullable=True),
        sa.Column('payment_url', sa.String(), nullable=True),
        sa.Column('payment_id', sa.String(), nullable=True),
        sa.Column('order_group_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(op.f('ix_checkout_sessions_id'), 'checkout_sessions', ['id'])
    op.create_index(op.f('ix_checkout_sessions_reference'), 'checkout_sessions', ['reference'], unique=True)
    op.create_index(op.f('ix_checkout_sessions_user_id'), 'checkout_sessions', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    for table in ('checkout_sessions', 'shipping_methods', 'shipping_zones', 'exchange_rates',
                  'warehouse_settings', 'warehouse_activities', 'cart_items', 'orders',
                  'customers', 'stock_batches', 'products', 'users'):
        op.drop_table(table)
