"""Initial schema: car listings and valuation cache.

Revision ID: 001_initial
Revises: 
Create Date: 2026-09-02

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create car_listings table
    op.create_table(
        'car_listings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('platform', sa.String(20), nullable=False),
        sa.Column('platform_listing_id', sa.String(100), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('seller_info', sa.JSON(), nullable=True),
        sa.Column('platform_url', sa.Text(), nullable=False),
        sa.Column('vin', sa.String(17), nullable=True),
        sa.Column('make', sa.String(50), nullable=True),
        sa.Column('model', sa.String(100), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('mileage', sa.Integer(), nullable=True),
        sa.Column('condition', sa.String(20), nullable=True),
        sa.Column('status', sa.String(10), nullable=False, server_default='active'),
        sa.Column('sold_at', sa.DateTime(), nullable=True),
        sa.Column('days_on_market', sa.Integer(), nullable=True),
        sa.Column('first_seen_at', sa.DateTime(), nullable=False),
        sa.Column('last_seen_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('platform', 'platform_listing_id', name='uq_car_listings_platform_listing'),
    )
    op.create_index('ix_car_listings_make', 'car_listings', ['make'])
    op.create_index('ix_car_listings_model', 'car_listings', ['model'])
    op.create_index('ix_car_listings_status_last_seen', 'car_listings', ['status', 'last_seen_at'])
    op.create_index('ix_car_listings_status_sold_at', 'car_listings', ['status', 'sold_at'])

    # Create valuation_cache table
    op.create_table(
        'valuation_cache',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('vin', sa.String(17), nullable=True),
        sa.Column('make', sa.String(50), nullable=False),
        sa.Column('model', sa.String(100), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('mileage', sa.Integer(), nullable=False),
        sa.Column('condition', sa.String(20), nullable=False),
        sa.Column('estimated_value', sa.Integer(), nullable=False),
        sa.Column('low_value', sa.Integer(), nullable=False),
        sa.Column('high_value', sa.Integer(), nullable=False),
        sa.Column('source', sa.String(30), nullable=False, server_default='retention_model'),
        sa.Column('fetched_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('low_value <= estimated_value AND estimated_value <= high_value', name='ck_valuation_cache_range'),
    )
    op.create_index('ix_valuation_cache_lookup', 'valuation_cache', ['make', 'model', 'year', 'expires_at'])


def downgrade() -> None:
    op.drop_index('ix_valuation_cache_lookup', table_name='valuation_cache')
    op.drop_table('valuation_cache')
    op.drop_index('ix_car_listings_status_sold_at', table_name='car_listings')
    op.drop_index('ix_car_listings_status_last_seen', table_name='car_listings')
    op.drop_index('ix_car_listings_model', table_name='car_listings')
    op.drop_index('ix_car_listings_make', table_name='car_listings')
    op.drop_table('car_listings')
