"""add notification outbox table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19 10:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB


# revision identifiers, used by Alembic.
revision: str = '003'
down_revision: Union[str, None] = '002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NOTIFICATION_TYPES = (
    'new_booking', 'booking_pending', 'booking_confirmed', 'booking_rejected', 'booking_cancelled',
    'completion_requested', 'completion_confirmed', 'completion_disputed', 'reminder_24h', 'reminder_1h',
)


def upgrade() -> None:
    op.create_table(
        'notification_outbox',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('recipient_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('appointment_id', UUID(as_uuid=True), sa.ForeignKey('appointments.id', ondelete='CASCADE'), nullable=True),
        sa.Column('type', sa.Enum(*NOTIFICATION_TYPES, name='notification_type'), nullable=False),
        sa.Column('payload', JSONB(), nullable=False, server_default='{}'),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_notification_outbox_recipient_id', 'notification_outbox', ['recipient_id'])
    op.create_index('ix_notification_outbox_status', 'notification_outbox', ['status'])
    op.create_index('ix_notification_outbox_created_at', 'notification_outbox', ['created_at'])
    op.create_index('ix_notification_outbox_appointment_type', 'notification_outbox', ['appointment_id', 'type'])


def downgrade() -> None:
    op.drop_index('ix_notification_outbox_appointment_type', 'notification_outbox')
    op.drop_index('ix_notification_outbox_created_at', 'notification_outbox')
    op.drop_index('ix_notification_outbox_status', 'notification_outbox')
    op.drop_index('ix_notification_outbox_recipient_id', 'notification_outbox')
    op.drop_table('notification_outbox')
    sa.Enum(name='notification_type').drop(op.get_bind(), checkfirst=True)
