"""initial ledger schema

Revision ID: 0001_initial_ledger
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_initial_ledger'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

account_type = sa.Enum('ASSET', 'LIABILITY', 'EQUITY', 'REVENUE', 'EXPENSE', name='accounttype')
partner_status = sa.Enum('ACTIVE', 'INACTIVE', 'BLOCKED', name='partnerstatus')
supplier_ledger_type = sa.Enum('CREDIT', 'DEBIT', name='supplierledgertype')
purchase_order_status = sa.Enum('DRAFT', 'APPROVED', 'PARTIALLY_PAID', 'PAID', name='purchaseorderstatus')
expense_status = sa.Enum('DRAFT', 'PENDING_APPROVAL', 'POSTED', 'REJECTED', name='expensestatus')
funding_source = sa.Enum('WALLET', 'BANK', name='fundingsource')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def upgrade() -> None:
    """Create the chart of accounts, journal, audit and payment tables."""
    op.create_table(
        'chart_of_accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('account_type', account_type, nullable=False),
        sa.Column('sub_type', sa.String(length=50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('balance', sa.Numeric(15, 2), nullable=False),
        sa.Column('tenant_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'code', name='_tenant_account_code_uc'),
    )
    op.create_index('ix_chart_of_accounts_id', 'chart_of_accounts', ['id'])
    op.create_index('ix_chart_of_accounts_code', 'chart_of_accounts', ['code'])
    op.create_index('ix_chart_of_accounts_tenant_id', 'chart_of_accounts', ['tenant_id'])

    op.create_table(
        'journal_entries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('entry_number', sa.String(length=50), nullable=False),
        sa.Column('sequence_number', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('reference_type', sa.String(length=100), nullable=True),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('total_debit', sa.Numeric(15, 2), nullable=False),
        sa.Column('total_credit', sa.Numeric(15, 2), nullable=False),
        sa.Column('is_reversed', sa.Boolean(), nullable=False),
        sa.Column('reversed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reversed_by', sa.String(), nullable=True),
        sa.Column('reversal_of_entry_id', sa.Integer(), sa.ForeignKey('journal_entries.id'), nullable=True, unique=True),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'entry_number', name='_tenant_entry_number_uc'),
    )
    op.create_index('ix_journal_entries_id', 'journal_entries', ['id'])
    op.create_index('ix_journal_entries_tenant_id', 'journal_entries', ['tenant_id'])
    op.create_index('ix_journal_entries_entry_number', 'journal_entries', ['entry_number'])
    op.create_index('ix_journal_entries_sequence_number', 'journal_entries', ['sequence_number'])

    op.create_table(
        'journal_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('journal_entry_id', sa.Integer(), sa.ForeignKey('journal_entries.id', ondelete='CASCADE'), nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('debit', sa.Numeric(15, 2), sa.CheckConstraint('debit >= 0'), nullable=False),
        sa.Column('credit', sa.Numeric(15, 2), sa.CheckConstraint('credit >= 0'), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('(debit > 0 AND credit = 0) OR (debit = 0 AND credit > 0)', name='check_debit_or_credit_exclusive'),
    )
    op.create_index('ix_journal_items_id', 'journal_items', ['id'])
    op.create_index('ix_journal_items_tenant_id', 'journal_items', ['tenant_id'])

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.Column('entity_type', sa.String(length=100), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('entity_identifier', sa.String(), nullable=True),
        sa.Column('action', sa.String(length=20), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('changed_fields', sa.JSON(), nullable=True),
        sa.Column('original_audit_id', sa.Integer(), sa.ForeignKey('audit_log.id'), nullable=True),
        sa.Column('reversal_reason', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('performed_by', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    for column in ('id', 'tenant_id', 'entity_type', 'entity_id', 'action', 'created_at'):
        op.create_index(f'ix_audit_log_{column}', 'audit_log', [column])

    op.create_table(
        'business_partners',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('contact_name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('status', partner_status, nullable=False),
        sa.Column('is_vendor', sa.Boolean(), nullable=False),
        sa.Column('is_customer', sa.Boolean(), nullable=False),
        sa.Column('wallet_balance', sa.Numeric(15, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_business_partners_id', 'business_partners', ['id'])
    op.create_index('ix_business_partners_tenant_id', 'business_partners', ['tenant_id'])

    op.create_table(
        'supplier_ledger_entries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.Column('supplier_id', sa.Integer(), sa.ForeignKey('business_partners.id'), nullable=False),
        sa.Column('type', supplier_ledger_type, nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('balance', sa.Numeric(15, 2), nullable=False),
        sa.Column('transaction_id', sa.String(), nullable=True),
        sa.Column('reason', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_supplier_ledger_entries_id', 'supplier_ledger_entries', ['id'])
    op.create_index('ix_supplier_ledger_entries_tenant_id', 'supplier_ledger_entries', ['tenant_id'])
    op.create_index('ix_supplier_ledger_entries_supplier_id', 'supplier_ledger_entries', ['supplier_id'])

    op.create_table(
        'banks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('account_number', sa.String(length=50), nullable=True),
        sa.Column('current_balance', sa.Numeric(15, 2), nullable=False),
        sa.Column('chart_of_account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_banks_id', 'banks', ['id'])
    op.create_index('ix_banks_tenant_id', 'banks', ['tenant_id'])

    op.create_table(
        'purchase_orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('po_number', sa.Integer(), nullable=True),
        sa.Column('bill_no', sa.String(), nullable=True),
        sa.Column('vendor_id', sa.Integer(), sa.ForeignKey('business_partners.id'), nullable=False),
        sa.Column('order_date', sa.Date(), nullable=False),
        sa.Column('total_amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('total_amount_paid', sa.Numeric(15, 2), server_default='0', nullable=False),
        sa.Column('status', purchase_order_status, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'po_number', name='_tenant_po_number_uc'),
    )
    op.create_index('ix_purchase_orders_id', 'purchase_orders', ['id'])
    op.create_index('ix_purchase_orders_po_number', 'purchase_orders', ['po_number'])
    op.create_index('ix_purchase_orders_tenant_id', 'purchase_orders', ['tenant_id'])

    op.create_table(
        'expenses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('expense_date', sa.Date(), nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=False),
        sa.Column('payment_account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=True),
        sa.Column('funding_source', funding_source, nullable=False),
        sa.Column('bank_id', sa.Integer(), sa.ForeignKey('banks.id'), nullable=True),
        sa.Column('supplier_id', sa.Integer(), sa.ForeignKey('business_partners.id'), nullable=True),
        sa.Column('reference_type', sa.String(length=100), nullable=True),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('reference_number', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', expense_status, nullable=False),
        sa.Column('paid_by', sa.String(), nullable=True),
        sa.Column('approved_by', sa.String(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_by', sa.String(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('journal_entry_id', sa.Integer(), sa.ForeignKey('journal_entries.id'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_expenses_id', 'expenses', ['id'])
    op.create_index('ix_expenses_tenant_id', 'expenses', ['tenant_id'])

    op.create_table(
        'financial_settings',
        sa.Column('tenant_id', sa.String(), primary_key=True),
        sa.Column('is_initialized', sa.Boolean(), nullable=False),
        sa.Column('default_cash_account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=True),
        sa.Column('default_accounts_payable_account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=True),
        sa.Column('default_supplier_advance_account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_financial_settings_tenant_id', 'financial_settings', ['tenant_id'])


def downgrade() -> None:
    """Drop every ledger table, dependents first."""
    for table in (
        'financial_settings',
        'expenses',
        'purchase_orders',
        'banks',
        'supplier_ledger_entries',
        'business_partners',
        'audit_log',
        'journal_items',
        'journal_entries',
        'chart_of_accounts',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in (funding_source, expense_status, purchase_order_status, supplier_ledger_type, partner_status, account_type):
        enum_type.drop(bind, checkfirst=True)
