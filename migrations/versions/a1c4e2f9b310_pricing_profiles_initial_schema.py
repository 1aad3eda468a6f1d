"""Initial schema: users, catalog taxonomy, products, pricing profiles

Revision ID: a1c4e2f9b310
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c4e2f9b310'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'categories',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'name', name='uq_category_user_name'),
    )
    op.create_index('ix_categories_user_id', 'categories', ['user_id'])

    op.create_table(
        'subcategories',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('category_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('category_id', 'name', name='uq_subcategory_category_name'),
    )
    op.create_index('ix_subcategories_user_id', 'subcategories', ['user_id'])
    op.create_index('ix_subcategories_category_id', 'subcategories', ['category_id'])

    op.create_table(
        'segments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('subcategory_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['subcategory_id'], ['subcategories.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('subcategory_id', 'name', name='uq_segment_subcategory_name'),
    )
    op.create_index('ix_segments_user_id', 'segments', ['user_id'])
    op.create_index('ix_segments_subcategory_id', 'segments', ['subcategory_id'])

    op.create_table(
        'products',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=100), nullable=False),
        sa.Column('brand', sa.String(length=255), nullable=False),
        sa.Column('category_id', sa.String(length=36), nullable=False),
        sa.Column('subcategory_id', sa.String(length=36), nullable=False),
        sa.Column('segment_id', sa.String(length=36), nullable=False),
        sa.Column('global_wholesale_price', sa.Numeric(precision=14, scale=4), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['subcategory_id'], ['subcategories.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['segment_id'], ['segments.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'sku', name='uq_product_user_sku'),
        sa.CheckConstraint('global_wholesale_price >= 0', name='ck_product_price_non_negative'),
    )
    op.create_index('ix_products_user_id', 'products', ['user_id'])
    op.create_index('ix_products_brand', 'products', ['brand'])
    op.create_index('ix_products_category_id', 'products', ['category_id'])
    op.create_index('ix_products_subcategory_id', 'products', ['subcategory_id'])
    op.create_index('ix_products_segment_id', 'products', ['segment_id'])

    op.create_table(
        'pricing_profiles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('based_on', sa.String(length=64), nullable=False),
        sa.Column('price_adjust_mode', sa.String(length=10), nullable=False),
        sa.Column('increment_mode', sa.String(length=10), nullable=False),
        sa.Column('status', sa.String(length=10), nullable=False, server_default='DRAFT'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("price_adjust_mode IN ('FIXED', 'DYNAMIC')", name='ck_profile_adjust_mode'),
        sa.CheckConstraint("increment_mode IN ('INCREASE', 'DECREASE')", name='ck_profile_increment_mode'),
        sa.CheckConstraint("status IN ('DRAFT', 'COMPLETED', 'ARCHIVED')", name='ck_profile_status'),
    )
    op.create_index('ix_pricing_profiles_user_id', 'pricing_profiles', ['user_id'])
    op.create_index('ix_pricing_profiles_status', 'pricing_profiles', ['status'])
    op.create_index('idx_pricing_profiles_user_updated', 'pricing_profiles', ['user_id', 'updated_at'])

    op.create_table(
        'product_pricing_profiles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('pricing_profile_id', sa.String(length=36), nullable=False),
        sa.Column('product_id', sa.String(length=36), nullable=False),
        sa.Column('adjustment', sa.Numeric(precision=14, scale=4), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['pricing_profile_id'], ['pricing_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pricing_profile_id', 'product_id', name='uq_profile_product'),
        sa.CheckConstraint('adjustment >= 0', name='ck_item_adjustment_non_negative'),
    )
    op.create_index('ix_product_pricing_profiles_pricing_profile_id', 'product_pricing_profiles', ['pricing_profile_id'])
    op.create_index('ix_product_pricing_profiles_product_id', 'product_pricing_profiles', ['product_id'])


def downgrade() -> None:
    op.drop_table('product_pricing_profiles')
    op.drop_table('pricing_profiles')
    op.drop_table('products')
    op.drop_table('segments')
    op.drop_table('subcategories')
    op.drop_table('categories')
    op.drop_table('users')
