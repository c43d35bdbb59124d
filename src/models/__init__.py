"""
Data Models Package

This package contains all Pydantic models used by the shop ledger.
All data flowing through the system must conform to these schemas.
"""

from src.models.ledger import (
    AdjustDirection,
    CashPocket,
    CreditInput,
    Customer,
    CustomerInput,
    CustomerStatement,
    EntryKind,
    Expense,
    ExpenseInput,
    LedgerDocument,
    LedgerEntry,
    LedgerTotals,
    PaymentInput,
    PocketAdjustment,
    Purchase,
    PurchaseInput,
    StoreSettings,
    ValidationIssue,
    ValidationResult,
    round_money,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "AdjustDirection",
    "CashPocket",
    "CreditInput",
    "Customer",
    "CustomerInput",
    "CustomerStatement",
    "EntryKind",
    "Expense",
    "ExpenseInput",
    "LedgerDocument",
    "LedgerEntry",
    "LedgerTotals",
    "PaymentInput",
    "PocketAdjustment",
    "Purchase",
    "PurchaseInput",
    "StoreSettings",
    "ValidationIssue",
    "ValidationResult",
    "round_money",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
