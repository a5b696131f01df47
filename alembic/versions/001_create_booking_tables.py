"""create users, master profiles, services, appointments and reviews

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

APPOINTMENT_STATUSES = ('pending', 'confirmed', 'cancelled', 'awaiting_review', 'completed')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('telegram_id', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='client'),
        sa.Column('first_name', sa.String(), nullable=True),
        sa.Column('username', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_users_telegram_id', 'users', ['telegram_id'], unique=True)

    op.create_table(
        'master_profiles',
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('phone_number', sa.String(), nullable=True),
        sa.Column('location', JSONB(), nullable=True),
        sa.Column('working_dates', JSONB(), nullable=False, server_default='{}'),
        sa.Column('gap_minutes', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        'services',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('master_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('currency', sa.String(3), nullable=False, server_default='RUB'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('location_type', sa.String(), nullable=False, server_default='at_master'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('duration_minutes > 0', name='ck_services_duration_positive'),
    )
    op.create_index('ix_services_master_id', 'services', ['master_id'])

    appointment_status = sa.Enum(*APPOINTMENT_STATUSES, name='appointmentstatus')
    op.create_table(
        'appointments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('master_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('client_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('service_id', UUID(as_uuid=True), sa.ForeignKey('services.id'), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('status', appointment_status, nullable=False, server_default='pending'),
        sa.Column('client_comment', sa.Text(), nullable=True),
        sa.Column('location_type', sa.String(), nullable=True),
        sa.Column('address', JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('end_time > start_time', name='ck_appointments_interval'),
    )
    op.create_index('ix_appointments_master_id', 'appointments', ['master_id'])
    op.create_index('ix_appointments_client_id', 'appointments', ['client_id'])
    op.create_index('ix_appointments_status', 'appointments', ['status'])
    op.create_index('ix_appointments_master_start', 'appointments', ['master_id', 'start_time'])

    op.create_table(
        'reviews',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('master_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('client_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('appointment_id', UUID(as_uuid=True), sa.ForeignKey('appointments.id'), nullable=False, unique=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_reviews_rating_range'),
    )
    op.create_index('ix_reviews_master_id', 'reviews', ['master_id'])
    op.create_index('ix_reviews_created_at', 'reviews', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_reviews_created_at', 'reviews')
    op.drop_index('ix_reviews_master_id', 'reviews')
    op.drop_table('reviews')
    op.drop_index('ix_appointments_master_start', 'appointments')
    op.drop_index('ix_appointments_status', 'appointments')
    op.drop_index('ix_appointments_client_id', 'appointments')
    op.drop_index('ix_appointments_master_id', 'appointments')
    op.drop_table('appointments')
    sa.Enum(name='appointmentstatus').drop(op.get_bind(), checkfirst=True)
    op.drop_index('ix_services_master_id', 'services')
    op.drop_table('services')
    op.drop_table('master_profiles')
    op.drop_index('ix_users_telegram_id', 'users')
    op.drop_table('users')
