"""create_bookings_tables

Revision ID: 3f1c9a2b7d10
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


booking_status_enum = postgresql.ENUM(
    'pending', 'confirmed', 'completed', 'cancelled', 'disputed',
    name='booking_status_enum', create_type=False,
)
booking_action_enum = postgresql.ENUM(
    'confirm', 'cancel', 'complete', 'dispute',
    name='booking_action_enum', create_type=False,
)
sport_enum = postgresql.ENUM(
    'hockey', 'baseball', 'basketball', 'football', 'soccer', 'tennis', 'golf',
    'swimming', 'track_and_field', 'volleyball', 'lacrosse', 'wrestling',
    'boxing', 'martial_arts', 'gymnastics', 'skiing', 'snowboarding',
    'figure_skating', 'softball', 'rugby',
    name='sport_enum', create_type=False,
)


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    booking_status_enum.create(bind, checkfirst=True)
    booking_action_enum.create(bind, checkfirst=True)
    sport_enum.create(bind, checkfirst=True)

    op.create_table(
        'trainer_profiles',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('trainer_id', sa.String(length=64), nullable=False),
        sa.Column('hourly_rate_cents', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('sports', sa.JSON(), nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('hourly_rate_cents > 0', name='ck_trainer_rate_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_trainer_profiles_trainer_id'), 'trainer_profiles', ['trainer_id'], unique=True)

    op.create_table(
        'bookings',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('athlete_id', sa.String(length=64), nullable=False),
        sa.Column('trainer_id', sa.String(length=64), nullable=False),
        sa.Column('sport', sport_enum, nullable=False),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('ends_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', booking_status_enum, nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('platform_fee_cents', sa.Integer(), nullable=True),
        sa.Column('net_amount_cents', sa.Integer(), nullable=True),
        sa.Column('payout_hold_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('late_cancellation', sa.Boolean(), nullable=False),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_by', sa.String(length=64), nullable=True),
        sa.Column('cancel_reason', sa.Text(), nullable=True),
        sa.Column('disputed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('dispute_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.CheckConstraint('athlete_id <> trainer_id', name='ck_booking_distinct_parties'),
        sa.CheckConstraint('duration_minutes > 0', name='ck_booking_duration_positive'),
        sa.CheckConstraint('price_cents > 0', name='ck_booking_price_positive'),
        sa.CheckConstraint(
            'platform_fee_cents IS NULL OR (platform_fee_cents >= 0 AND platform_fee_cents <= price_cents)',
            name='ck_booking_fee_within_price',
        ),
        sa.CheckConstraint(
            'net_amount_cents IS NULL OR net_amount_cents = price_cents - platform_fee_cents',
            name='ck_booking_net_matches_split',
        ),
        sa.CheckConstraint(
            "(net_amount_cents IS NULL AND status NOT IN ('completed', 'disputed')) OR "
            "(net_amount_cents IS NOT NULL AND status IN ('completed', 'disputed'))",
            name='ck_booking_settled_iff_completed',
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_bookings_athlete_id'), 'bookings', ['athlete_id'], unique=False)
    op.create_index(op.f('ix_bookings_trainer_id'), 'bookings', ['trainer_id'], unique=False)
    op.create_index('ix_bookings_trainer_window', 'bookings', ['trainer_id', 'scheduled_at', 'ends_at'], unique=False)
    op.create_index('ix_bookings_status_ends_at', 'bookings', ['status', 'ends_at'], unique=False)

    op.create_table(
        'booking_slot_claims',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('booking_id', sa.UUID(), nullable=False),
        sa.Column('trainer_id', sa.String(length=64), nullable=False),
        sa.Column('slot_start', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('trainer_id', 'slot_start', name='uq_booking_slot_claims_trainer_slot'),
    )
    op.create_index(op.f('ix_booking_slot_claims_booking_id'), 'booking_slot_claims', ['booking_id'], unique=False)

    op.create_table(
        'booking_status_events',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('booking_id', sa.UUID(), nullable=False),
        sa.Column('from_status', booking_status_enum, nullable=True),
        sa.Column('to_status', booking_status_enum, nullable=False),
        sa.Column('action', booking_action_enum, nullable=True),
        sa.Column('actor_id', sa.String(length=64), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_booking_status_events_booking_id'), 'booking_status_events', ['booking_id'], unique=False)

    op.create_table(
        'booking_reviews',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('booking_id', sa.UUID(), nullable=False),
        sa.Column('reviewer_id', sa.String(length=64), nullable=False),
        sa.Column('reviewee_id', sa.String(length=64), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('review_text', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_booking_review_rating_range'),
        sa.CheckConstraint('reviewer_id <> reviewee_id', name='ck_booking_review_distinct_parties'),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('booking_id', 'reviewer_id', name='uq_booking_reviews_booking_reviewer'),
    )
    op.create_index(op.f('ix_booking_reviews_booking_id'), 'booking_reviews', ['booking_id'], unique=False)
    op.create_index(op.f('ix_booking_reviews_reviewee_id'), 'booking_reviews', ['reviewee_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_booking_reviews_reviewee_id'), table_name='booking_reviews')
    op.drop_index(op.f('ix_booking_reviews_booking_id'), table_name='booking_reviews')
    op.drop_table('booking_reviews')
    op.drop_index(op.f('ix_booking_status_events_booking_id'), table_name='booking_status_events')
    op.drop_table('booking_status_events')
    op.drop_index(op.f('ix_booking_slot_claims_booking_id'), table_name='booking_slot_claims')
    op.drop_table('booking_slot_claims')
    op.drop_index('ix_bookings_status_ends_at', table_name='bookings')
    op.drop_index('ix_bookings_trainer_window', table_name='bookings')
    op.drop_index(op.f('ix_bookings_trainer_id'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_athlete_id'), table_name='bookings')
    op.drop_table('bookings')
    op.drop_index(op.f('ix_trainer_profiles_trainer_id'), table_name='trainer_profiles')
    op.drop_table('trainer_profiles')

    bind = op.get_bind()
    sport_enum.drop(bind, checkfirst=True)
    booking_action_enum.drop(bind, checkfirst=True)
    booking_status_enum.drop(bind, checkfirst=True)
