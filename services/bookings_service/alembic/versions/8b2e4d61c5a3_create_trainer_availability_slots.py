"""create_trainer_availability_slots

Revision ID: 8b2e4d61c5a3
Revises: 3f1c9a2b7d10
Create Date: 2026-10-17 14:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8b2e4d61c5a3'
down_revision: Union[str, Sequence[str], None] = '3f1c9a2b7d10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'trainer_availability_slots',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('trainer_id', sa.String(length=64), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=True),
        sa.Column('specific_date', sa.Date(), nullable=True),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('is_blocked', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'day_of_week IS NULL OR (day_of_week >= 0 AND day_of_week <= 6)',
            name='ck_availability_day_of_week',
        ),
        sa.CheckConstraint(
            '(day_of_week IS NULL) <> (specific_date IS NULL)',
            name='ck_availability_recurring_or_dated',
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_trainer_availability_slots_trainer_id'), 'trainer_availability_slots', ['trainer_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_trainer_availability_slots_trainer_id'), table_name='trainer_availability_slots')
    op.drop_table('trainer_availability_slots')
