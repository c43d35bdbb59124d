"""
Main Orchestrator for the Shop Credit Ledger

This module ties the components together and is the boundary where
ledger errors become messages for the shop owner:
1. Actions (customer, credit, payment, purchase, expense, cash, backup)
2. Reports (dashboard totals, statements, reminder links, backup export)

DESIGN DECISION: The orchestrator never lets a ledger or storage error
escape to the UI. Every action returns an ActionResult saying what
happened in plain words. The store itself stays strict and raises.
"""

from typing import Any, Optional

import structlog
from pydantic import BaseModel, Field

from src.audit import AuditLogger, configure_logging
from src.config import get_settings
from src.ledger.errors import LedgerError
from src.ledger.formatting import format_inr
from src.ledger.store import LedgerStore
from src.models.ledger import (
    CreditInput,
    CustomerInput,
    CustomerStatement,
    ExpenseInput,
    LedgerTotals,
    PaymentInput,
    PocketAdjustment,
    PurchaseInput,
)
from src.services.messaging import WhatsAppReminderService
from src.services.storage import (
    DocumentStorageInterface,
    InMemoryDocumentStorage,
    JsonFileDocumentStorage,
    PersistenceError,
    StorageError,
)
from src.validation import LedgerValidator

logger = structlog.get_logger(__name__)


class ActionResult(BaseModel):
    """Outcome of one user action, ready to show."""

    success: bool
    message: str
    warnings: list[str] = Field(default_factory=list)
    error_type: Optional[str] = None
    record_id: Optional[str] = None


def _failure(error: Exception) -> ActionResult:
    """Turn a ledger or storage error into a user-facing result."""
    if isinstance(error, PersistenceError):
        message = f"Could not save the ledger: {error}. Your last change was not kept."
    else:
        message = str(error)
    return ActionResult(success=False, message=message, error_type=type(error).__name__)


class LedgerActions:
    """
    Runs user actions against the store.

    Each method takes one structured input, runs exactly one store
    operation, and reports the outcome.
    """

    def __init__(self, store: LedgerStore):
        self._store = store

    def add_customer(self, data: CustomerInput) -> ActionResult:
        try:
            customer = self._store.register_customer(
                data.name, data.phone, data.opening_balance
            )
        except (LedgerError, StorageError) as e:
            return _failure(e)
        return ActionResult(
            success=True,
            message=f"{customer.name} added",
            record_id=customer.id,
        )

    def add_credit(self, customer_id: str, data: CreditInput) -> ActionResult:
        try:
            self._store.record_credit(customer_id, data.amount, data.note)
            customer = self._store.get_customer(customer_id)
        except (LedgerError, StorageError) as e:
            return _failure(e)
        return ActionResult(
            success=True,
            message=(
                f"{customer.name} credited {format_inr(data.amount)}; "
                f"now owes {format_inr(customer.balance)}"
            ),
            record_id=customer_id,
        )

    def receive_payment(self, customer_id: str, data: PaymentInput) -> ActionResult:
        try:
            self._store.record_payment(customer_id, data.amount, data.pocket, data.note)
            customer = self._store.get_customer(customer_id)
        except (LedgerError, StorageError) as e:
            return _failure(e)

        warnings = []
        if customer.balance < 0:
            warnings.append(
                f"{customer.name} has paid {format_inr(-customer.balance)} in advance"
            )
        return ActionResult(
            success=True,
            message=f"Payment of {format_inr(data.amount)} from {customer.name} recorded",
            warnings=warnings,
            record_id=customer_id,
        )

    def add_purchase(self, data: PurchaseInput) -> ActionResult:
        warnings = self._store.deduction_warnings(data.pocket, data.amount)
        try:
            purchase = self._store.record_purchase(
                data.dealer, data.amount, data.pocket, data.purchase_date
            )
        except (LedgerError, StorageError) as e:
            return _failure(e)
        return ActionResult(
            success=True,
            message=f"Purchase of {format_inr(purchase.amount)} from {purchase.dealer} recorded",
            warnings=warnings,
            record_id=purchase.id,
        )

    def delete_purchase(self, purchase_id: str) -> ActionResult:
        try:
            purchase = self._store.delete_purchase(purchase_id)
        except (LedgerError, StorageError) as e:
            return _failure(e)
        return ActionResult(
            success=True,
            message=f"Purchase from {purchase.dealer} deleted",
            warnings=[f"{purchase.pocket.value} balance was not changed"],
            record_id=purchase.id,
        )

    def add_expense(self, data: ExpenseInput) -> ActionResult:
        warnings = self._store.deduction_warnings(data.pocket, data.amount)
        try:
            expense = self._store.record_expense(
                data.title, data.amount, data.pocket, data.expense_date
            )
        except (LedgerError, StorageError) as e:
            return _failure(e)
        return ActionResult(
            success=True,
            message=f"Expense '{expense.title}' of {format_inr(expense.amount)} recorded",
            warnings=warnings,
            record_id=expense.id,
        )

    def delete_expense(self, expense_id: str) -> ActionResult:
        try:
            expense = self._store.delete_expense(expense_id)
        except (LedgerError, StorageError) as e:
            return _failure(e)
        return ActionResult(
            success=True,
            message=f"Expense '{expense.title}' deleted",
            warnings=[f"{expense.pocket.value} balance was not changed"],
            record_id=expense.id,
        )

    def adjust_pocket(self, data: PocketAdjustment) -> ActionResult:
        try:
            balance = self._store.adjust_pocket(data.pocket, data.amount, data.direction)
        except (LedgerError, StorageError) as e:
            return _failure(e)
        warnings = ["Balance is now below zero"] if balance < 0 else []
        return ActionResult(
            success=True,
            message=f"New balance: {format_inr(balance)}",
            warnings=warnings,
        )

    def update_reminder_template(self, template: str) -> ActionResult:
        try:
            self._store.update_reminder_template(template)
        except (LedgerError, StorageError) as e:
            return _failure(e)
        return ActionResult(success=True, message="Reminder message saved")

    def import_backup(self, content: Any) -> ActionResult:
        """Import backup text/bytes, or an already parsed document."""
        try:
            if isinstance(content, (str, bytes)):
                result = self._store.import_json(content)
            else:
                result = self._store.import_snapshot(content)
        except (LedgerError, StorageError) as e:
            return _failure(e)
        return ActionResult(success=True, message="Imported", warnings=result.warnings)

    def clear_all(self) -> ActionResult:
        try:
            self._store.reset()
        except (LedgerError, StorageError) as e:
            return _failure(e)
        return ActionResult(success=True, message="All data cleared")


class LedgerReports:
    """
    Read-only views for the UI.

    Reports never change the ledger; reminder links are built from one
    customer's fields and the stored template.
    """

    def __init__(
        self,
        store: LedgerStore,
        reminder_service: Optional[WhatsAppReminderService] = None,
        recent_display_limit: int = 20,
    ):
        self._store = store
        self._reminders = reminder_service or WhatsAppReminderService()
        self._recent_display_limit = recent_display_limit

    def totals(self) -> LedgerTotals:
        return self._store.compute_totals()

    def statement(self, customer_id: str) -> tuple[Optional[CustomerStatement], str]:
        """
        Returns:
            (statement, message). Statement is None if the customer is unknown.
        """
        try:
            statement = self._store.build_statement(customer_id)
        except LedgerError as e:
            return None, str(e)
        message = ""
        if statement.has_drift:
            message = (
                f"Balance {format_inr(statement.balance)} differs from entries total "
                f"{format_inr(statement.ledger_balance)}"
            )
        return statement, message

    def reminder_link(self, customer_id: str) -> tuple[Optional[str], str]:
        """
        Returns:
            (link, message). Link is None when a reminder cannot be built.
        """
        try:
            customer = self._store.get_customer(customer_id)
            link = self._reminders.build_link(customer, self._store.reminder_template)
        except LedgerError as e:
            return None, str(e)
        return link, f"Reminder ready for {customer.name}"

    def recent_activity(self) -> list[str]:
        return self._store.recent_activity(self._recent_display_limit)

    def deduction_warnings(self, pocket: Any, amount: Any) -> list[str]:
        """Overdraw warnings for a purchase or expense that is not saved yet."""
        return self._store.deduction_warnings(pocket, amount)

    def export_backup(self) -> tuple[str, str]:
        """
        Returns:
            (filename, json_text)
        """
        return self._store.backup_filename(), self._store.export_json()


def create_storage(backend: Optional[str] = None) -> DocumentStorageInterface:
    """Build the configured storage backend."""
    storage_settings = get_settings().storage
    backend = backend or storage_settings.backend
    if backend == "memory":
        return InMemoryDocumentStorage()
    return JsonFileDocumentStorage(storage_settings.data_file)


def create_app_components(
    storage: Optional[DocumentStorageInterface] = None,
) -> tuple[LedgerActions, LedgerReports, LedgerStore]:
    """
    Factory function to create all application components.

    Args:
        storage: Storage backend to use. Defaults to the configured one.

    Returns:
        (actions, reports, store)

    Raises:
        StorageError: If the stored ledger cannot be read
        SchemaError: If the stored ledger has the wrong shape
    """
    settings = get_settings()
    app_settings = settings.app
    configure_logging("DEBUG" if app_settings.debug_mode else app_settings.log_level)

    storage = storage or create_storage()
    store = LedgerStore(
        storage=storage,
        validator=LedgerValidator(business_name=app_settings.business_name),
        audit_logger=AuditLogger(),
        app_name=app_settings.app_name,
        recent_log_limit=app_settings.recent_log_limit,
    )
    logger.info(
        "ledger_ready",
        storage=storage.location,
        environment=app_settings.app_environment,
    )

    actions = LedgerActions(store)
    reports = LedgerReports(
        store,
        reminder_service=WhatsAppReminderService(settings.messaging),
        recent_display_limit=app_settings.recent_display_limit,
    )
    return actions, reports, store
