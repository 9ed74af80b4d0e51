"""create_events_and_registrations

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Schema:
- events: Event catalogue with capacity and payment timeout
- registrations: One row per booking attempt (pending / confirmed / canceled)

Active registrations (pending + confirmed) count against events.capacity.
Admission locks the events row (SELECT ... FOR UPDATE) so the count and the
insert happen under one lock per event.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create events and registrations."""

    op.create_table(
        'events',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('payment_timeout_minutes', sa.Integer(), nullable=False),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('capacity > 0', name='ck_events_capacity_positive'),
        sa.CheckConstraint(
            'payment_timeout_minutes >= 1', name='ck_events_payment_timeout_positive'
        ),
    )

    op.create_table(
        'registrations',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.BigInteger(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='RESTRICT'),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'canceled')", name='ck_registrations_status'
        ),
    )
    op.create_index(
        'ix_registrations_event_id_status', 'registrations', ['event_id', 'status']
    )
    op.create_index('ix_registrations_event_id_email', 'registrations', ['event_id', 'email'])


def downgrade() -> None:
    """Drop registrations and events."""
    op.drop_index('ix_registrations_event_id_email', table_name='registrations')
    op.drop_index('ix_registrations_event_id_status', table_name='registrations')
    op.drop_table('registrations')
    op.drop_table('events')
