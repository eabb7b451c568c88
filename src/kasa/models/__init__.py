"""Database models."""
from kasa.models.account import BankAccount
from kasa.models.category import Category
from kasa.models.category_rule import CategoryRule
from kasa.models.manual_expense import ManualExpense
from kasa.models.reconciliation import Reconciliation
from kasa.models.recurring_pattern import RecurrenceFrequency, RecurrenceSource, RecurringPattern
from kasa.models.transaction import CategorySource, ImportedTransaction, TransactionStatus
from kasa.models.transfer_label_rule import TransferLabelRule
from kasa.models.user import User

__all__ = [
    "BankAccount",
    "Category",
    "CategoryRule",
    "CategorySource",
    "ImportedTransaction",
    "ManualExpense",
    "Reconciliation",
    "RecurrenceFrequency",
    "RecurrenceSource",
    "RecurringPattern",
    "TransactionStatus",
    "TransferLabelRule",
    "User",
]
