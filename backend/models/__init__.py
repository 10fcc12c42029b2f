from models.chart_of_accounts import ChartOfAccounts, AccountType
from models.journal_entry import JournalEntry
from models.journal_item import JournalItem
from models.audit_log import AuditLog, AuditAction
from models.business_partners import BusinessPartner, PartnerStatus
from models.supplier_ledger import SupplierLedgerEntry, SupplierLedgerType
from models.banks import Bank
from models.purchase_orders import PurchaseOrder, PurchaseOrderStatus
from models.expenses import Expense, ExpenseStatus, FundingSource
from models.financial_settings import FinancialSettings

__all__ = ['AccountType', 'AuditAction', 'AuditLog', 'Bank', 'BusinessPartner', 'ChartOfAccounts', 'Expense', 'ExpenseStatus', 'FinancialSettings', 'FundingSource', 'JournalEntry', 'JournalItem', 'PartnerStatus', 'PurchaseOrder', 'PurchaseOrderStatus', 'SupplierLedgerEntry', 'SupplierLedgerType',]
