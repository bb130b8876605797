from models.app_config import AppConfig
from models.audit_log import AuditLog
from models.receipts import Receipt, ReceiptLineItem, PaymentMode
from models.expenses import Expense, ExpenseCategory, RecurringFrequency
from models.budget_targets import BudgetTarget

__all__ = ['AppConfig', 'AuditLog', 'BudgetTarget', 'Expense', 'ExpenseCategory', 'PaymentMode', 'Receipt', 'ReceiptLineItem', 'RecurringFrequency',]
