"""create storefront and sync bookkeeping tables

Revision ID: 7b1e4c2a9d10
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '7b1e4c2a9d10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'storefront_brands',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('erpnext_name', sa.String(length=140), nullable=False, unique=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('logo_cf_image_id', sa.String(length=255), nullable=True),
        sa.Column('is_visible', sa.Integer(), nullable=False, server_default='1'),
    )
    op.create_index('ix_storefront_brands_slug', 'storefront_brands', ['slug'])

    op.create_table(
        'storefront_categories',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('erpnext_name', sa.String(length=140), nullable=False, unique=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('parent_id', sa.String(length=36), sa.ForeignKey('storefront_categories.id'), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_visible', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('cf_image_id', sa.String(length=255), nullable=True),
    )
    op.create_index('ix_storefront_categories_slug', 'storefront_categories', ['slug'])
    op.create_index('ix_storefront_categories_parent_id', 'storefront_categories', ['parent_id'])

    op.create_table(
        'storefront_products',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('erpnext_name', sa.String(length=140), nullable=False, unique=True),
        sa.Column('sku', sa.String(length=140), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('brand_id', sa.String(length=36), nullable=True),
        sa.Column('item_group', sa.String(length=140), nullable=True),
        sa.Column('categories', sa.Text(), nullable=True),
        sa.Column('price', sa.Float(), nullable=True),
        sa.Column('sale_price', sa.Float(), nullable=True),
        sa.Column('stock_qty', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_visible', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('cf_image_id', sa.String(length=255), nullable=True),
        sa.Column('thumbnail_url', sa.String(length=500), nullable=True),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('weight_lbs', sa.Float(), nullable=True),
        sa.Column('has_variants', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('variant_of', sa.String(length=140), nullable=True),
        sa.Column('is_featured', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('featured_category_id', sa.String(length=36), nullable=True),
        sa.Column('shipping_weight', sa.Float(), nullable=True),
        sa.Column('shipping_weight_uom', sa.String(length=20), nullable=True),
        sa.Column('shipping_length', sa.Float(), nullable=True),
        sa.Column('shipping_width', sa.Float(), nullable=True),
        sa.Column('shipping_height', sa.Float(), nullable=True),
        sa.Column('shipping_dimension_uom', sa.String(length=20), nullable=True),
        sa.Column('ships_usps', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('ships_ups', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('ships_ltl', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('ships_pickup', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('hazmat_flag', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('hazmat_class', sa.String(length=50), nullable=True),
        sa.Column('oversized_flag', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('inherit_shipping_from_parent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('search_boost', sa.Float(), nullable=False, server_default='1.0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('synced_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_storefront_products_sku', 'storefront_products', ['sku'])
    op.create_index('ix_storefront_products_brand_id', 'storefront_products', ['brand_id'])

    op.create_table(
        'sync_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('entity_type', sa.String(length=20), nullable=False),
        sa.Column('entity_id', sa.String(length=140), nullable=False),
        sa.Column('action', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_sync_log_entity', 'sync_log', ['entity_type', 'entity_id'])

    op.create_table(
        'sync_state',
        sa.Column('entity_type', sa.String(length=20), primary_key=True),
        sa.Column('last_sync_at', sa.DateTime(), nullable=True),
        sa.Column('last_modified', sa.DateTime(), nullable=True),
        sa.Column('cursor', sa.String(length=255), nullable=True),
    )

    op.create_table(
        'sync_lock',
        sa.Column('name', sa.String(length=50), primary_key=True),
        sa.Column('owner', sa.String(length=64), nullable=False),
        sa.Column('acquired_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
    )


def downgrade():
    op.drop_table('sync_lock')
    op.drop_table('sync_state')
    op.drop_index('ix_sync_log_entity', table_name='sync_log')
    op.drop_table('sync_log')
    op.drop_index('ix_storefront_products_brand_id', table_name='storefront_products')
    op.drop_index('ix_storefront_products_sku', table_name='storefront_products')
    op.drop_table('storefront_products')
    op.drop_index('ix_storefront_categories_parent_id', table_name='storefront_categories')
    op.drop_index('ix_storefront_categories_slug', table_name='storefront_categories')
    op.drop_table('storefront_categories')
    op.drop_index('ix_storefront_brands_slug', table_name='storefront_brands')
    op.drop_table('storefront_brands')
