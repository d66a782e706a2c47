"""Add favorites and banners

Revision ID: 8b4e7d2c1a93
Revises: 3f1c2a9d8e01
Create Date: 2026-10-20 14:03:51.902114

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers used by Alembic
revision: str = '8b4e7d2c1a93'
down_revision: Union[str, Sequence[str], None] = '3f1c2a9d8e01'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'favorites',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_favorite_user_product'),
    )
    op.create_index('ix_favorites_id', 'favorites', ['id'])
    op.create_index('ix_favorites_user_id', 'favorites', ['user_id'])
    op.create_index('ix_favorites_product_id', 'favorites', ['product_id'])

    op.create_table(
        'banners',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('audience', sa.String(length=20), nullable=False, server_default='all'),
        sa.Column('title', sa.String(length=150), nullable=False),
        sa.Column('subtitle', sa.String(length=255), nullable=True),
        sa.Column('image_url', sa.String(length=600), nullable=False),
        sa.Column('link_url', sa.String(length=600), nullable=True),
        sa.Column('alt_text', sa.String(length=200), nullable=False),
        sa.Column('display_mode', sa.String(length=20), nullable=False, server_default='contain'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('starts_at', sa.DateTime(), nullable=True),
        sa.Column('ends_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_banners_id', 'banners', ['id'])
    op.create_index('ix_banners_audience', 'banners', ['audience'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_banners_audience', table_name='banners')
    op.drop_index('ix_banners_id', table_name='banners')
    op.drop_table('banners')
    op.drop_index('ix_favorites_product_id', table_name='favorites')
    op.drop_index('ix_favorites_user_id', table_name='favorites')
    op.drop_index('ix_favorites_id', table_name='favorites')
    op.drop_table('favorites')
