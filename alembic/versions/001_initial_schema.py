"""Initial schema with all tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create protection_level enum
    protection_level_enum = postgresql.ENUM(
        'low', 'medium', 'high',
        name='protectionlevel',
        create_type=False
    )
    protection_level_enum.create(op.get_bind(), checkfirst=True)

    # Create price_category enum
    price_category_enum = postgresql.ENUM(
        'budget', 'mid-range', 'premium',
        name='pricecategory',
        create_type=False
    )
    price_category_enum.create(op.get_bind(), checkfirst=True)

    # Create payload_items table
    op.create_table(
        'payload_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('brand', sa.String(255), nullable=True, index=True),
        sa.Column('category', sa.String(100), nullable=True, index=True),
        sa.Column('type', sa.String(100), nullable=True, index=True),
        sa.Column('length', sa.Float(), nullable=False),
        sa.Column('width', sa.Float(), nullable=False),
        sa.Column('height', sa.Float(), nullable=False),
        sa.Column('dimension_unit', sa.String(10), default='in'),
        sa.Column('weight_value', sa.Float(), nullable=True),
        sa.Column('weight_unit', sa.String(10), default='lb'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('popularity', sa.Integer(), default=0, index=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create container_items table
    op.create_table(
        'container_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('brand', sa.String(255), nullable=True, index=True),
        sa.Column('type', sa.String(100), nullable=True, index=True),
        sa.Column('internal_length', sa.Float(), nullable=False, index=True),
        sa.Column('internal_width', sa.Float(), nullable=False, index=True),
        sa.Column('internal_height', sa.Float(), nullable=False, index=True),
        sa.Column('external_length', sa.Float(), nullable=True),
        sa.Column('external_width', sa.Float(), nullable=True),
        sa.Column('external_height', sa.Float(), nullable=True),
        sa.Column('dimension_unit', sa.String(10), default='in'),
        sa.Column('weight_value', sa.Float(), nullable=True),
        sa.Column('weight_unit', sa.String(10), default='lb'),
        sa.Column('price', sa.Float(), nullable=True, index=True),
        sa.Column('currency', sa.String(3), default='USD'),
        sa.Column('rating', sa.Float(), nullable=True, index=True),
        sa.Column('review_count', sa.Integer(), nullable=True),
        sa.Column('url', sa.String(1024), nullable=True),
        sa.Column('protection_level', protection_level_enum, nullable=True, index=True),
        sa.Column('waterproof', sa.Boolean(), default=False),
        sa.Column('shockproof', sa.Boolean(), default=False),
        sa.Column('has_handle', sa.Boolean(), default=False),
        sa.Column('has_wheels', sa.Boolean(), default=False),
        sa.Column('has_lock', sa.Boolean(), default=False),
        sa.Column('material', sa.String(100), nullable=True),
        sa.Column('color', sa.String(100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('features', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create matches table (one row per payload/container pair)
    op.create_table(
        'matches',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('payload_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('payload_items.id'), nullable=False, index=True),
        sa.Column('container_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('container_items.id'), nullable=False, index=True),
        sa.Column('compatibility_score', sa.Integer(), nullable=False, index=True),
        sa.Column('dimension_fit', postgresql.JSONB(), nullable=True),
        sa.Column('feature_score', sa.Integer(), nullable=True),
        sa.Column('price_category', price_category_enum, nullable=False),
        sa.Column('protection_level', protection_level_enum, nullable=True),
        sa.Column('features', postgresql.JSONB(), nullable=True),
        sa.Column('feedback_count', sa.Integer(), default=0),
        sa.Column('positive_feedback_count', sa.Integer(), default=0),
        sa.Column('negative_feedback_count', sa.Integer(), default=0),
        sa.Column('user_feedback_score', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
        sa.UniqueConstraint('payload_id', 'container_id', name='uq_matches_payload_container'),
    )

    # Create feedback table (append-only)
    op.create_table(
        'feedback',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.String(100), nullable=True),
        sa.Column('payload_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('payload_items.id'), nullable=False),
        sa.Column('container_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('container_items.id'), nullable=False),
        sa.Column('match_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('matches.id'), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('fit_accuracy', sa.Integer(), nullable=True),
        sa.Column('protection_quality', sa.Integer(), nullable=True),
        sa.Column('value_for_money', sa.Integer(), nullable=True),
        sa.Column('actually_purchased', sa.Boolean(), default=False),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )
    op.create_index('ix_feedback_payload_container', 'feedback', ['payload_id', 'container_id'])


def downgrade() -> None:
    op.drop_index('ix_feedback_payload_container', table_name='feedback')
    op.drop_table('feedback')
    op.drop_table('matches')
    op.drop_table('container_items')
    op.drop_table('payload_items')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS pricecategory')
    op.execute('DROP TYPE IF EXISTS protectionlevel')
