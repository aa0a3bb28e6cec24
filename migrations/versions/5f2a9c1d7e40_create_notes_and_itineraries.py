"""Create notes and itineraries tables.

Revision ID: 5f2a9c1d7e40
Revises:
Create Date: 2025-11-01

Itineraries carry the uniqueness rules the generation lifecycle relies on:
one version number per note, one itinerary per client request id, and at
most one pending or running itinerary per user (a partial unique index).
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '5f2a9c1d7e40'
down_revision = None
branch_labels = None
depends_on = None

ACTIVE_STATUS_PREDICATE = sa.text("status IN ('pending', 'running')")


def upgrade() -> None:
    """Create notes and itineraries tables."""
    op.create_table(
        'notes',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('title', sa.String(120), nullable=False, server_default=''),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True),
                  server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True),
                  server_default=sa.func.now(), nullable=True),
        sa.Column('deleted_at', sa.TIMESTAMP(timezone=True), nullable=True),
    )
    op.create_index('ix_notes_user_id', 'notes', ['user_id'])

    op.create_table(
        'itineraries',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('note_id', sa.String(64),
                  sa.ForeignKey('notes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending',
                  comment='pending | running | completed | failed | cancelled'),
        sa.Column('request_id', sa.String(128), nullable=False,
                  comment='Client idempotency key'),

        # Populated on completion only
        sa.Column('route_geojson', sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'),
                  nullable=True),
        sa.Column('title', sa.String(60), nullable=True),
        sa.Column('total_distance_km', sa.Float(), nullable=True),
        sa.Column('total_duration_h', sa.Float(), nullable=True),
        sa.Column('waypoint_count', sa.Integer(), nullable=True),
        sa.Column('route_name', sa.String(120), nullable=True),

        # Populated on failure only
        sa.Column('failure_reason', sa.Text(), nullable=True),

        sa.Column('created_at', sa.TIMESTAMP(timezone=True),
                  server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True),
                  server_default=sa.func.now(), nullable=True),
        sa.Column('deleted_at', sa.TIMESTAMP(timezone=True), nullable=True),

        sa.UniqueConstraint('note_id', 'version', name='uq_itineraries_note_version'),
        sa.UniqueConstraint('user_id', 'request_id', name='uq_itineraries_user_request'),
    )
    op.create_index('ix_itineraries_note_id', 'itineraries', ['note_id'])
    op.create_index('ix_itineraries_user_id', 'itineraries', ['user_id'])
    op.create_index(
        'uq_itineraries_user_active',
        'itineraries',
        ['user_id'],
        unique=True,
        postgresql_where=ACTIVE_STATUS_PREDICATE,
        sqlite_where=ACTIVE_STATUS_PREDICATE,
    )


def downgrade() -> None:
    """Drop itineraries and notes tables."""
    op.drop_index('uq_itineraries_user_active', table_name='itineraries')
    op.drop_index('ix_itineraries_user_id', table_name='itineraries')
    op.drop_index('ix_itineraries_note_id', table_name='itineraries')
    op.drop_table('itineraries')
    op.drop_index('ix_notes_user_id', table_name='notes')
    op.drop_table('notes')
