"""Initial events schema

Revision ID: 001_initial_events
Revises:
Create Date: 2026-03-02

Creates events and past_events tables with:
- Events table for gathering listings (moderation status, recurrence JSON)
- Past events table for the gallery (one row per source event at most)
- Foreign key past_events.event_id -> events.id, SET NULL on delete
- Unique slugs in each table
"""
from alembic import op
import sqlalchemy as sa

from backend.src.models.mixins.guid import UUIDType


# revision identifiers, used by Alembic.
revision = '001_initial_events'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """
    Create events and past_events tables.

    Tables:
    - events: Gathering listings
    - past_events: Gallery records, optionally linked to an event
    """

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', UUIDType(), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('city', sa.String(length=120), nullable=False),
        sa.Column('state', sa.String(length=60), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('contact_name', sa.String(length=255), nullable=False),
        sa.Column('contact_phone', sa.String(length=64), nullable=False),
        sa.Column('contact_phone_secondary', sa.String(length=64), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('start_at', sa.DateTime(), nullable=False),
        sa.Column('end_at', sa.DateTime(), nullable=True),
        sa.Column('recurrence', sa.JSON(), nullable=False),
        sa.Column('website_url', sa.String(length=500), nullable=True),
        sa.Column('live_url', sa.String(length=500), nullable=True),
        sa.Column('cover_image', sa.String(length=500), nullable=True),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('featured_until', sa.DateTime(), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=False, server_default='anonymous'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_events_uuid', 'events', ['uuid'], unique=True)
    op.create_index('ix_events_slug', 'events', ['slug'], unique=True)
    op.create_index('ix_events_start_at', 'events', ['start_at'], unique=False)
    op.create_index('ix_events_status', 'events', ['status'], unique=False)
    op.create_index('ix_events_created_by', 'events', ['created_by'], unique=False)
    op.create_index('idx_events_status_start', 'events', ['status', 'start_at'], unique=False)

    op.create_table(
        'past_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', UUIDType(), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=120), nullable=False),
        sa.Column('state', sa.String(length=60), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('videos', sa.JSON(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('attendance', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_past_events_uuid', 'past_events', ['uuid'], unique=True)
    op.create_index('ix_past_events_slug', 'past_events', ['slug'], unique=True)
    op.create_index('ix_past_events_event_id', 'past_events', ['event_id'], unique=True)
    op.create_index('ix_past_events_date', 'past_events', ['date'], unique=False)


def downgrade() -> None:
    """Drop past_events then events."""
    op.drop_index('ix_past_events_date', table_name='past_events')
    op.drop_index('ix_past_events_event_id', table_name='past_events')
    op.drop_index('ix_past_events_slug', table_name='past_events')
    op.drop_index('ix_past_events_uuid', table_name='past_events')
    op.drop_table('past_events')

    op.drop_index('idx_events_status_start', table_name='events')
    op.drop_index('ix_events_created_by', table_name='events')
    op.drop_index('ix_events_status', table_name='events')
    op.drop_index('ix_events_start_at', table_name='events')
    op.drop_index('ix_events_slug', table_name='events')
    op.drop_index('ix_events_uuid', table_name='events')
    op.drop_table('events')
