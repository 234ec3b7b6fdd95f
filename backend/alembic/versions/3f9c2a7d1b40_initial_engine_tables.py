"""initial_engine_tables

Revision ID: 3f9c2a7d1b40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'contracts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('employer_id', sa.Uuid(), nullable=False),
        sa.Column('employee_id', sa.Uuid(), nullable=False),
        sa.Column('employee_name', sa.String(length=200), nullable=False),
        sa.Column('weekly_hours', sa.Numeric(5, 2), nullable=False),
        sa.Column('hourly_rate', sa.Numeric(8, 2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('habitual_holiday_work', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('pch_type', sa.String(length=40), nullable=True),
        sa.Column('pch_monthly_hours', sa.Numeric(6, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_contracts_employer_id', 'contracts', ['employer_id'])
    op.create_index('ix_contracts_employee_id', 'contracts', ['employee_id'])

    op.create_table(
        'shifts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('contract_id', sa.Uuid(), nullable=False),
        sa.Column('employee_id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('break_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('shift_kind', sa.String(length=30), nullable=False, server_default='effective'),
        sa.Column('night_interventions_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('has_night_action', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('guard_segments', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='planned'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('effective_hours', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('is_requalified', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('computed_pay', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['contract_id'], ['contracts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_shifts_contract_id', 'shifts', ['contract_id'])
    op.create_index('ix_shifts_employee_id', 'shifts', ['employee_id'])

    op.create_table(
        'absences',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('employee_id', sa.Uuid(), nullable=False),
        sa.Column('absence_type', sa.String(length=30), nullable=False),
        sa.Column('family_event_type', sa.String(length=40), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('business_days', sa.Numeric(5, 1), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('decided_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_absences_employee_id', 'absences', ['employee_id'])

    op.create_table(
        'leave_balances',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('employee_id', sa.Uuid(), nullable=False),
        sa.Column('leave_year', sa.String(length=9), nullable=False),
        sa.Column('acquired_days', sa.Numeric(5, 1), nullable=False, server_default='0'),
        sa.Column('taken_days', sa.Numeric(5, 1), nullable=False, server_default='0'),
        sa.Column('adjustment_days', sa.Numeric(5, 1), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('employee_id', 'leave_year'),
    )
    op.create_index('ix_leave_balances_employee_id', 'leave_balances', ['employee_id'])


def downgrade() -> None:
    op.drop_index('ix_leave_balances_employee_id', table_name='leave_balances')
    op.drop_table('leave_balances')
    op.drop_index('ix_absences_employee_id', table_name='absences')
    op.drop_table('absences')
    op.drop_index('ix_shifts_employee_id', table_name='shifts')
    op.drop_index('ix_shifts_contract_id', table_name='shifts')
    op.drop_table('shifts')
    op.drop_index('ix_contracts_employee_id', table_name='contracts')
    op.drop_index('ix_contracts_employer_id', table_name='contracts')
    op.drop_table('contracts')
