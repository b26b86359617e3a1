"""initial booking schema: services, schedules, appointments, slot claims, temporary blocks

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'services',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('price', sa.Integer()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('duration_minutes > 0', name='ck_services_duration_positive'),
    )

    op.create_table(
        'schedule_templates',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('schedule', sa.JSON(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'template_assignments',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('template_id', sa.String(32),
                  sa.ForeignKey('schedule_templates.id', ondelete='CASCADE'), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer()),
        sa.Column('description', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_template_assignments_year_month', 'template_assignments', ['year', 'month'])

    op.create_table(
        'monthly_schedules',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('template_id', sa.String(32), sa.ForeignKey('schedule_templates.id', ondelete='SET NULL')),
        sa.Column('blocked_slots', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('year', 'month', name='uq_monthly_schedules_year_month'),
    )

    op.create_table(
        'blocked_slots',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date()),
        sa.Column('start_time', sa.String(5)),
        sa.Column('end_time', sa.String(5)),
        sa.Column('is_all_day', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('reason', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_blocked_slots_dates', 'blocked_slots', ['start_date', 'end_date'])

    op.create_table(
        'appointments',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('service_id', sa.String(64), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('phone', sa.String(32)),
        sa.Column('message', sa.Text()),
        sa.Column('preferred_date', sa.Date(), nullable=False),
        sa.Column('preferred_time', sa.String(5), nullable=False),
        sa.Column('confirmed_date', sa.Date()),
        sa.Column('confirmed_time', sa.String(5)),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('reschedule_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('original_date', sa.Date()),
        sa.Column('original_time', sa.String(5)),
        sa.Column('reservation_token', sa.String(36), nullable=False),
        sa.Column('token_expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('archived_at', sa.DateTime(timezone=True)),
        sa.Column('cancelled_at', sa.DateTime(timezone=True)),
        sa.Column('cancelled_by', sa.String(16)),
        sa.Column('cancellation_reason', sa.Text()),
        sa.Column('completed_at', sa.DateTime(timezone=True)),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('reservation_token', name='uq_appointments_reservation_token'),
    )
    op.create_index('ix_appointments_preferred_date', 'appointments', ['preferred_date'])
    op.create_index('ix_appointments_confirmed_date', 'appointments', ['confirmed_date'])
    op.create_index('ix_appointments_status', 'appointments', ['status'])

    # One row per occupied grid slot: the at-most-one-booking guarantee
    op.create_table(
        'slot_claims',
        sa.Column('date', sa.Date(), primary_key=True),
        sa.Column('time', sa.String(5), primary_key=True),
        sa.Column('appointment_id', sa.String(32),
                  sa.ForeignKey('appointments.id', ondelete='CASCADE'), nullable=False),
    )
    op.create_index('ix_slot_claims_appointment_id', 'slot_claims', ['appointment_id'])

    op.create_table(
        'temporary_blocks',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time', sa.String(5), nullable=False),
        sa.Column('session_id', sa.String(128), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('session_id', name='uq_temporary_blocks_session_id'),
        sa.UniqueConstraint('date', 'time', name='uq_temporary_blocks_date_time'),
    )
    op.create_index(
        'ix_temporary_blocks_date_session_expires', 'temporary_blocks', ['date', 'session_id', 'expires_at']
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_temporary_blocks_date_session_expires', table_name='temporary_blocks')
    op.drop_table('temporary_blocks')
    op.drop_index('ix_slot_claims_appointment_id', table_name='slot_claims')
    op.drop_table('slot_claims')
    op.drop_index('ix_appointments_status', table_name='appointments')
    op.drop_index('ix_appointments_confirmed_date', table_name='appointments')
    op.drop_index('ix_appointments_preferred_date', table_name='appointments')
    op.drop_table('appointments')
    op.drop_index('ix_blocked_slots_dates', table_name='blocked_slots')
    op.drop_table('blocked_slots')
    op.drop_table('monthly_schedules')
    op.drop_index('ix_template_assignments_year_month', table_name='template_assignments')
    op.drop_table('template_assignments')
    op.drop_table('schedule_templates')
    op.drop_table('services')
