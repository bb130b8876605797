"""create billing tables

Revision ID: a1c3e5f7b901
Revises:
Create Date: 2026-10-19 10:12:44.318205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f7b901'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PAYMENT_MODES = ('cash', 'upi', 'card', 'other', 'unpaid')
EXPENSE_CATEGORIES = (
    'rent', 'salary', 'supplies', 'utilities', 'equipment',
    'maintenance', 'marketing', 'insurance', 'taxes', 'other',
)
RECURRING_FREQUENCIES = ('monthly', 'quarterly', 'yearly')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def upgrade() -> None:
    """Create receipts, expenses, budget targets, app config and audit log tables."""
    op.create_table(
        'app_config',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('value', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('name', 'tenant_id', name='_app_config_name_tenant_uc'),
    )
    op.create_index('ix_app_config_id', 'app_config', ['id'])
    op.create_index('ix_app_config_name', 'app_config', ['name'])
    op.create_index('ix_app_config_tenant_id', 'app_config', ['tenant_id'])

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.Column('table_name', sa.String(), nullable=False),
        sa.Column('record_id', sa.Integer(), nullable=False),
        sa.Column('changed_at', sa.DateTime(), nullable=True),
        sa.Column('changed_by', sa.String(), nullable=True),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
    )
    op.create_index('ix_audit_log_id', 'audit_log', ['id'])
    op.create_index('ix_audit_log_tenant_id', 'audit_log', ['tenant_id'])

    op.create_table(
        'receipts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('receipt_number', sa.String(length=32), nullable=False),
        sa.Column('receipt_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount_reason', sa.String(), nullable=True),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_mode', sa.Enum(*PAYMENT_MODES, name='paymentmode'), nullable=True),
        sa.Column('is_paid', sa.Boolean(), nullable=False),
        sa.Column('patient_name', sa.String(), nullable=False),
        sa.Column('patient_phone', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'receipt_number', name='_tenant_receipt_number_uc'),
    )
    op.create_index('ix_receipts_id', 'receipts', ['id'])
    op.create_index('ix_receipts_tenant_id', 'receipts', ['tenant_id'])
    op.create_index('ix_receipts_tenant_date', 'receipts', ['tenant_id', 'receipt_date'])

    op.create_table(
        'receipt_line_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('receipt_id', sa.Integer(), sa.ForeignKey('receipts.id'), nullable=False),
        sa.Column('description', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
    )
    op.create_index('ix_receipt_line_items_id', 'receipt_line_items', ['id'])

    op.create_table(
        'expenses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('category', sa.Enum(*EXPENSE_CATEGORIES, name='expensecategory'), nullable=False),
        sa.Column('expense_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_recurring', sa.Boolean(), nullable=False),
        sa.Column('recurring_frequency', sa.Enum(*RECURRING_FREQUENCIES, name='recurringfrequency'), nullable=True),
        sa.Column('vendor', sa.String(), nullable=True),
        sa.Column('invoice_number', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_by', sa.String(), nullable=True),
    )
    op.create_index('ix_expenses_id', 'expenses', ['id'])
    op.create_index('ix_expenses_tenant_id', 'expenses', ['tenant_id'])
    op.create_index('ix_expenses_category', 'expenses', ['category'])
    op.create_index('ix_expenses_tenant_date', 'expenses', ['tenant_id', 'expense_date'])

    op.create_table(
        'budget_targets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('target_revenue', sa.Numeric(12, 2), nullable=False),
        sa.Column('target_expenses', sa.Numeric(12, 2), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'year', 'month', name='_tenant_year_month_budget_uc'),
    )
    op.create_index('ix_budget_targets_id', 'budget_targets', ['id'])
    op.create_index('ix_budget_targets_tenant_id', 'budget_targets', ['tenant_id'])


def downgrade() -> None:
    """Drop the billing tables and their enum types."""
    op.drop_table('budget_targets')
    op.drop_table('expenses')
    op.drop_table('receipt_line_items')
    op.drop_table('receipts')
    op.drop_table('audit_log')
    op.drop_table('app_config')

    bind = op.get_bind()
    for enum_name in ('paymentmode', 'expensecategory', 'recurringfrequency'):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
