"""create_store_tables

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_type_enum = sa.Enum('customer', 'admin', name='store_user_type_enum')
address_type_enum = sa.Enum('home', 'office', 'other', name='store_address_type_enum')
order_status_enum = sa.Enum(
    'pending', 'processing', 'partial_paid', 'paid', 'shipped', 'delivered', 'cancelled',
    name='store_order_status_enum',
)
payment_method_enum = sa.Enum(
    'card', 'bkash', 'cash_on_delivery', 'bank_transfer', 'manual',
    name='store_payment_method_enum',
)


def upgrade() -> None:
    """Upgrade schema - Create storefront tables."""

    # Customers
    op.create_table(
        'store_users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('mobile_no', sa.String(length=50), nullable=True),
        sa.Column('is_guest', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('user_type', user_type_enum, server_default='customer', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_store_users_email', 'store_users', ['email'])

    op.create_table(
        'store_addresses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('mobile_no', sa.String(length=50), nullable=False),
        sa.Column('address_line', sa.Text(), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('address_type', address_type_enum, server_default='home', nullable=False),
        sa.Column('is_default_shipping', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_default_billing', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_guest_address', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['store_users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_store_addresses_user_id_guest', 'store_addresses', ['user_id', 'is_guest_address']
    )

    # Catalog
    op.create_table(
        'store_categories',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['parent_id'], ['store_categories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug', name='uq_store_categories_slug')
    )

    op.create_table(
        'store_products',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('brand', sa.String(length=100), nullable=True),
        sa.Column('main_image', sa.String(length=500), nullable=True),
        sa.Column('base_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('offer_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('is_featured', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('stock_quantity >= 0', name='ck_store_products_product_stock_non_negative'),
        sa.ForeignKeyConstraint(['category_id'], ['store_categories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug', name='uq_store_products_slug')
    )
    op.create_index('ix_store_products_category_id', 'store_products', ['category_id'])

    op.create_table(
        'store_variation_combinations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=100), nullable=True),
        sa.Column('variation_axis_1', sa.String(length=100), nullable=True),
        sa.Column('variation_axis_2', sa.String(length=100), nullable=True),
        sa.Column('variation_axis_3', sa.String(length=100), nullable=True),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('offer_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('stock_quantity >= 0', name='ck_store_variation_combinations_combination_stock_non_negative'),
        sa.ForeignKeyConstraint(['product_id'], ['store_products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku', name='uq_store_variation_combinations_sku')
    )
    op.create_index(
        'ix_store_variation_combinations_product_id',
        'store_variation_combinations',
        ['product_id'],
    )

    op.create_table(
        'store_shipping_methods',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('base_cost', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('estimated_days', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'store_currencies',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(length=8), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('symbol', sa.String(length=8), nullable=False),
        sa.Column('exchange_rate', sa.Numeric(precision=18, scale=8), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code', name='uq_store_currencies_code')
    )

    # Orders and payments
    op.create_table(
        'store_orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('order_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('mobile_no', sa.String(length=50), nullable=False),
        sa.Column('subtotal', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('shipping_charge', sa.Numeric(precision=12, scale=2), server_default='0', nullable=False),
        sa.Column('coupon_amount', sa.Numeric(precision=12, scale=2), server_default='0', nullable=False),
        sa.Column('discount_amount', sa.Numeric(precision=12, scale=2), server_default='0', nullable=False),
        sa.Column('reward_points_used', sa.Integer(), server_default='0', nullable=False),
        sa.Column('reward_discount', sa.Numeric(precision=12, scale=2), server_default='0', nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('status', order_status_enum, server_default='pending', nullable=False),
        sa.Column('shipping_address_id', sa.Integer(), nullable=False),
        sa.Column('billing_address_id', sa.Integer(), nullable=False),
        sa.Column('shipping_method_name', sa.String(length=100), nullable=False),
        sa.Column('customer_notes', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['store_users.id']),
        sa.ForeignKeyConstraint(['shipping_address_id'], ['store_addresses.id']),
        sa.ForeignKeyConstraint(['billing_address_id'], ['store_addresses.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_store_orders_user_id', 'store_orders', ['user_id'])

    op.create_table(
        'store_order_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('variation_combination_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('item_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('variation_details', sa.String(length=255), nullable=True),
        sa.CheckConstraint('quantity > 0', name='ck_store_order_items_order_item_positive_quantity'),
        sa.ForeignKeyConstraint(['order_id'], ['store_orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['store_products.id']),
        sa.ForeignKeyConstraint(['variation_combination_id'], ['store_variation_combinations.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_store_order_items_order_id', 'store_order_items', ['order_id'])

    op.create_table(
        'store_payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('payment_method', payment_method_enum, nullable=False),
        sa.Column('payment_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('transaction_id', sa.String(length=128), nullable=True),
        sa.CheckConstraint('payment_amount > 0', name='ck_store_payments_payment_positive_amount'),
        sa.ForeignKeyConstraint(['order_id'], ['store_orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_store_payments_order_id', 'store_payments', ['order_id'])
    op.create_index('ix_store_payments_transaction_id', 'store_payments', ['transaction_id'])

    # Reward points
    op.create_table(
        'store_reward_rules',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('points_per_unit', sa.Integer(), server_default='0', nullable=False),
        sa.Column('priority', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'store_product_reward_rules',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('reward_rule_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['store_products.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reward_rule_id'], ['store_reward_rules.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', 'reward_rule_id', name='unique_product_rule')
    )
    op.create_index(
        'ix_store_product_reward_rules_product_id', 'store_product_reward_rules', ['product_id']
    )

    op.create_table(
        'store_reward_points',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=True),
        sa.Column('source_order_id', sa.Integer(), nullable=True),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('earned_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expiry_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_used', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['store_users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['order_id'], ['store_orders.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['source_order_id'], ['store_orders.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('source_order_id', name='unique_reward_source_order')
    )
    op.create_index(
        'ix_store_reward_points_user_used',
        'store_reward_points',
        ['user_id', 'is_used', 'expiry_date'],
    )


def downgrade() -> None:
    """Downgrade schema - Drop storefront tables."""

    op.drop_index('ix_store_reward_points_user_used', table_name='store_reward_points')
    op.drop_table('store_reward_points')
    op.drop_index('ix_store_product_reward_rules_product_id', table_name='store_product_reward_rules')
    op.drop_table('store_product_reward_rules')
    op.drop_table('store_reward_rules')

    op.drop_index('ix_store_payments_transaction_id', table_name='store_payments')
    op.drop_index('ix_store_payments_order_id', table_name='store_payments')
    op.drop_table('store_payments')
    op.drop_index('ix_store_order_items_order_id', table_name='store_order_items')
    op.drop_table('store_order_items')
    op.drop_index('ix_store_orders_user_id', table_name='store_orders')
    op.drop_table('store_orders')

    op.drop_table('store_currencies')
    op.drop_table('store_shipping_methods')
    op.drop_index('ix_store_variation_combinations_product_id', table_name='store_variation_combinations')
    op.drop_table('store_variation_combinations')
    op.drop_index('ix_store_products_category_id', table_name='store_products')
    op.drop_table('store_products')
    op.drop_table('store_categories')

    op.drop_index('ix_store_addresses_user_id_guest', table_name='store_addresses')
    op.drop_table('store_addresses')
    op.drop_index('ix_store_users_email', table_name='store_users')
    op.drop_table('store_users')

    bind = op.get_bind()
    for enum_type in (payment_method_enum, order_status_enum, address_type_enum, user_type_enum):
        enum_type.drop(bind, checkfirst=True)
