"""
Ledger Store

The single owner of the shop's ledger document.

Every mutation follows the same steps:
1. Validate the input (nothing has changed yet)
2. Apply the change to a working copy of the document
3. Prepend a human-readable activity line
4. Persist the whole working copy
5. Swap the copy in as the live document and notify subscribers

If any step fails the live document is untouched and the error propagates.
The persisted document therefore always equals the in-memory one.

CONCURRENCY: One re-entrant lock covers the whole document. Operations
read-modify-write the entire state, so finer locking would buy nothing.
"""

import json
import threading
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterator, Optional

from src.audit.logger import AuditLogger
from src.ledger.errors import LedgerError, NotFoundError, SchemaError, ValidationError
from src.ledger.formatting import format_inr
from src.models.audit import AuditEventBuilder
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
    ValidationResult,
    round_money,
)
from src.queries.executor import LedgerQueryExecutor
from src.services.storage.interface import DocumentStorageInterface, PersistenceError
from src.validation.validator import LedgerValidator

Listener = Callable[[str], None]

DEFAULT_CREDIT_NOTE = "Sale on credit"
DEFAULT_PAYMENT_NOTE = "Payment received"
OPENING_NOTE = "Opening balance"


class LedgerStore:
    """
    Holds the canonical ledger state and exposes its operations.

    Usage:
        store = LedgerStore(JsonFileDocumentStorage("data/ledger.json"))
        customer = store.register_customer("Ravi", "98400 12345", 1000)
        store.record_payment(customer.id, 200, "bank")
    """

    def __init__(
        self,
        storage: DocumentStorageInterface,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        app_name: str = "oil_murugan",
        recent_log_limit: int = 200,
        clock: Callable[[], date] = date.today,
    ):
        """
        Initialize the store and load the stored document.

        Args:
            storage: Backend holding the ledger document
            validator: Input and snapshot validator
            audit_logger: Structured event logger
            app_name: Prefix for backup file names
            recent_log_limit: Activity lines kept in the document
            clock: Returns "today"; injectable for tests

        Raises:
            CorruptDocumentError: If the stored file is not valid JSON
            SchemaError: If the stored document has the wrong shape
        """
        self._storage = storage
        self._validator = validator or LedgerValidator()
        self._audit = audit_logger or AuditLogger()
        self._app_name = app_name
        self._recent_log_limit = recent_log_limit
        self._clock = clock
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._document = self._load()

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def _load(self) -> LedgerDocument:
        raw = self._storage.load()
        if raw is None:
            return self._validator.default_document()

        document, result = self._validator.validate_snapshot(raw, require_core_keys=False)
        self._audit.emit(
            AuditEventBuilder.store_loaded,
            location=self._storage.location,
            customers=len(document.customers),
            warnings=result.warnings,
        )
        return document

    def _persist(self, document: LedgerDocument) -> None:
        self._storage.save(document.to_json_dict())

    def _notify(self, operation: str) -> None:
        """Call every listener; the change is already saved, so failures are only logged."""
        for listener in list(self._listeners):
            try:
                listener(operation)
            except Exception as e:
                self._audit.log_listener_failure(operation, e)

    @contextmanager
    def _mutation(self, operation: str) -> Iterator[LedgerDocument]:
        """
        Run one mutation against a working copy.

        The copy is persisted and swapped in only if the block completes
        and the write succeeds.
        """
        with self._lock:
            working = self._document.model_copy(deep=True)
            try:
                yield working
            except LedgerError as e:
                self._audit.log_rejected(operation, e)
                raise
            except ValueError as e:
                # Arithmetic on stored amounts, e.g. a balance past the amount cap
                error = ValidationError(str(e))
                self._audit.log_rejected(operation, error)
                raise error from e

            try:
                self._persist(working)
            except PersistenceError as e:
                self._audit.log_persistence_failure(operation, e)
                raise

            self._document = working
        self._notify(operation)

    def _add_activity(self, document: LedgerDocument, line: str) -> None:
        document.recent.insert(0, line)
        del document.recent[self._recent_log_limit:]

    def _query(self) -> LedgerQueryExecutor:
        return LedgerQueryExecutor(self._document, self._clock())

    @staticmethod
    def _require_customer(document: LedgerDocument, customer_id: str) -> Customer:
        customer = document.find_customer(customer_id)
        if customer is None:
            raise NotFoundError("customer", customer_id)
        return customer

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call ``listener(operation_name)`` after every successful mutation.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Customers
    # -------------------------------------------------------------------------

    def register_customer(
        self,
        name: str,
        phone: Optional[str] = None,
        opening_balance: Any = 0,
    ) -> Customer:
        """
        Add a customer.

        A positive opening balance is also recorded as an ``opening`` entry.

        Raises:
            ValidationError: If the name is blank or the balance is not a number
        """
        with self._mutation("register_customer") as doc:
            data = self._validator.validate_customer(self._validator.parse_input(
                CustomerInput,
                name=name or "",
                phone=phone,
                opening_balance=0 if opening_balance is None else opening_balance,
            ))
            customer = Customer(
                name=data.name,
                phone=data.phone,
                balance=data.opening_balance,
            )
            if data.opening_balance > 0:
                customer.entries.append(LedgerEntry(
                    kind=EntryKind.OPENING,
                    amount=data.opening_balance,
                    entry_date=self._clock(),
                    note=OPENING_NOTE,
                ))
            doc.customers.append(customer)
            self._add_activity(
                doc, f"{customer.name} added (opening {format_inr(data.opening_balance)})"
            )

        self._audit.emit(
            AuditEventBuilder.customer_registered,
            customer.id, customer.name, str(customer.balance)
        )
        return customer.model_copy(deep=True)

    def record_credit(
        self,
        customer_id: str,
        amount: Any,
        note: Optional[str] = None,
    ) -> LedgerEntry:
        """
        Extend credit: the customer owes ``amount`` more.

        Raises:
            NotFoundError: Unknown customer
            ValidationError: Amount not positive
        """
        with self._mutation("record_credit") as doc:
            customer = self._require_customer(doc, customer_id)
            data = self._validator.validate_credit(
                self._validator.parse_input(CreditInput, amount=amount, note=note)
            )
            entry = LedgerEntry(
                kind=EntryKind.CREDIT,
                amount=data.amount,
                entry_date=self._clock(),
                note=data.note or DEFAULT_CREDIT_NOTE,
            )
            customer.balance = round_money(customer.balance + data.amount)
            customer.entries.append(entry)
            self._add_activity(doc, f"{customer.name} credited {format_inr(data.amount)}")

        self._audit.emit(
            AuditEventBuilder.credit_recorded,
            customer_id, str(data.amount), str(customer.balance)
        )
        return entry

    def record_payment(
        self,
        customer_id: str,
        amount: Any,
        pocket: Any,
        note: Optional[str] = None,
    ) -> LedgerEntry:
        """
        Receive a payment into a cash pocket.

        The balance may go below zero (the customer has paid in advance).

        Raises:
            NotFoundError: Unknown customer
            ValidationError: Amount not positive
            InvalidPocketError: Pocket not one of the fixed pockets
        """
        with self._mutation("record_payment") as doc:
            customer = self._require_customer(doc, customer_id)
            data = self._validator.validate_payment(self._validator.parse_input(
                PaymentInput, amount=amount, pocket=pocket, note=note
            ))
            entry = LedgerEntry(
                kind=EntryKind.PAYMENT,
                amount=data.amount,
                entry_date=self._clock(),
                note=data.note or DEFAULT_PAYMENT_NOTE,
            )
            customer.balance = round_money(customer.balance - data.amount)
            customer.entries.append(entry)
            doc.cash[data.pocket] = round_money(doc.cash[data.pocket] + data.amount)
            self._add_activity(
                doc,
                f"{customer.name} paid {format_inr(data.amount)} (to {data.pocket.value})",
            )

        self._audit.emit(
            AuditEventBuilder.payment_recorded,
            customer_id, str(data.amount), data.pocket.value, str(customer.balance)
        )
        return entry

    # -------------------------------------------------------------------------
    # Purchases and expenses
    # -------------------------------------------------------------------------

    def record_purchase(
        self,
        dealer: str,
        amount: Any,
        pocket: Any,
        purchase_date: Optional[date] = None,
    ) -> Purchase:
        """
        Record stock bought from a dealer and take the amount out of ``pocket``.

        The pocket may go below zero; use ``deduction_warnings`` first to
        tell the user.

        Raises:
            ValidationError: Blank dealer or amount not positive
            InvalidPocketError: Unknown pocket
        """
        with self._mutation("record_purchase") as doc:
            data = self._validator.validate_purchase(self._validator.parse_input(
                PurchaseInput,
                dealer=dealer or "",
                amount=amount,
                pocket=pocket,
                purchase_date=purchase_date,
            ))
            purchase = Purchase(
                dealer=data.dealer,
                amount=data.amount,
                pocket=data.pocket,
                purchase_date=data.purchase_date or self._clock(),
            )
            doc.purchases.insert(0, purchase)
            doc.cash[purchase.pocket] = round_money(doc.cash[purchase.pocket] - purchase.amount)
            self._add_activity(
                doc,
                f"Purchase {format_inr(purchase.amount)} from {purchase.dealer} "
                f"(from {purchase.pocket.value})",
            )

        self._audit.emit(
            AuditEventBuilder.record_created,
            "purchase",
            purchase.id,
            str(purchase.amount),
            purchase.pocket.value,
            str(self._document.cash[purchase.pocket]),
        )
        return purchase.model_copy()

    def delete_purchase(self, purchase_id: str) -> Purchase:
        """
        Remove a purchase record.

        NOTE: The pocket it was paid from is NOT credited back. Deleting
        corrects the list, not the cash; use ``adjust_pocket`` for that.

        Raises:
            NotFoundError: Unknown purchase id
        """
        with self._mutation("delete_purchase") as doc:
            purchase = next((p for p in doc.purchases if p.id == purchase_id), None)
            if purchase is None:
                raise NotFoundError("purchase", purchase_id)
            doc.purchases = [p for p in doc.purchases if p.id != purchase_id]
            self._add_activity(
                doc,
                f"Purchase {format_inr(purchase.amount)} from {purchase.dealer} deleted",
            )

        self._audit.emit(
            AuditEventBuilder.record_deleted,
            "purchase", purchase.id, str(purchase.amount)
        )
        return purchase

    def record_expense(
        self,
        title: str,
        amount: Any,
        pocket: Any,
        expense_date: Optional[date] = None,
    ) -> Expense:
        """
        Record a shop expense and take the amount out of ``pocket``.

        Raises:
            ValidationError: Blank title or amount not positive
            InvalidPocketError: Unknown pocket
        """
        with self._mutation("record_expense") as doc:
            data = self._validator.validate_expense(self._validator.parse_input(
                ExpenseInput,
                title=title or "",
                amount=amount,
                pocket=pocket,
                expense_date=expense_date,
            ))
            expense = Expense(
                title=data.title,
                amount=data.amount,
                pocket=data.pocket,
                expense_date=data.expense_date or self._clock(),
            )
            doc.expenses.insert(0, expense)
            doc.cash[expense.pocket] = round_money(doc.cash[expense.pocket] - expense.amount)
            self._add_activity(
                doc,
                f"Expense {format_inr(expense.amount)}: {expense.title} "
                f"(from {expense.pocket.value})",
            )

        self._audit.emit(
            AuditEventBuilder.record_created,
            "expense",
            expense.id,
            str(expense.amount),
            expense.pocket.value,
            str(self._document.cash[expense.pocket]),
        )
        return expense.model_copy()

    def delete_expense(self, expense_id: str) -> Expense:
        """
        Remove an expense record. The pocket is NOT credited back.

        Raises:
            NotFoundError: Unknown expense id
        """
        with self._mutation("delete_expense") as doc:
            expense = next((e for e in doc.expenses if e.id == expense_id), None)
            if expense is None:
                raise NotFoundError("expense", expense_id)
            doc.expenses = [e for e in doc.expenses if e.id != expense_id]
            self._add_activity(
                doc, f"Expense {format_inr(expense.amount)}: {expense.title} deleted"
            )

        self._audit.emit(
            AuditEventBuilder.record_deleted,
            "expense", expense.id, str(expense.amount)
        )
        return expense

    # -------------------------------------------------------------------------
    # Cash pockets
    # -------------------------------------------------------------------------

    def adjust_pocket(
        self,
        pocket: Any,
        amount: Any,
        direction: Any = AdjustDirection.ADD,
    ) -> Decimal:
        """
        Manually add money to or remove money from a pocket.

        Returns:
            The pocket's new balance

        Raises:
            ValidationError: Amount not positive or unknown direction
            InvalidPocketError: Unknown pocket
        """
        with self._mutation("adjust_pocket") as doc:
            data = self._validator.validate_adjustment(self._validator.parse_input(
                PocketAdjustment, pocket=pocket, amount=amount, direction=direction
            ))
            if data.direction is AdjustDirection.ADD:
                doc.cash[data.pocket] = round_money(doc.cash[data.pocket] + data.amount)
                line = f"Added {format_inr(data.amount)} to {data.pocket.value}"
            else:
                doc.cash[data.pocket] = round_money(doc.cash[data.pocket] - data.amount)
                line = f"Removed {format_inr(data.amount)} from {data.pocket.value}"
            balance = doc.cash[data.pocket]
            self._add_activity(doc, line)

        self._audit.emit(
            AuditEventBuilder.pocket_adjusted,
            data.pocket.value, data.direction.value, str(data.amount), str(balance)
        )
        return balance

    def deduction_warnings(self, pocket: Any, amount: Any) -> list[str]:
        """
        Warnings to show before paying ``amount`` out of ``pocket``.

        Invalid input yields no warnings; the operation itself reports it.
        """
        try:
            resolved = self._validator.resolve_pocket(pocket)
            value = round_money(amount)
        except (LedgerError, ValueError):
            return []
        with self._lock:
            current = self._document.cash[resolved]
        return self._validator.deduction_warnings(current, resolved, value)

    # -------------------------------------------------------------------------
    # Settings and whole-document operations
    # -------------------------------------------------------------------------

    def update_reminder_template(self, template: str) -> str:
        """
        Replace the WhatsApp reminder text.

        Raises:
            ValidationError: If the template is blank
        """
        with self._mutation("update_reminder_template") as doc:
            text = self._validator.validate_template(template)
            doc.settings.reminder_template = text
            self._add_activity(doc, "Reminder message updated")

        self._audit.emit(AuditEventBuilder.settings_updated, "reminder_template")
        return text

    def reset(self) -> None:
        """Clear all data, leaving a fresh ledger."""
        with self._mutation("reset") as doc:
            fresh = self._validator.default_document()
            for field_name in LedgerDocument.model_fields:
                setattr(doc, field_name, getattr(fresh, field_name))
            for extra in list((doc.model_extra or {}).keys()):
                del doc.model_extra[extra]
            self._add_activity(doc, "All data cleared")

        self._audit.emit(AuditEventBuilder.store_reset)

    def export_snapshot(self) -> dict[str, Any]:
        """The whole document as a JSON-ready dict."""
        with self._lock:
            return self._document.to_json_dict()

    def export_json(self) -> str:
        """The whole document as pretty-printed JSON text."""
        return json.dumps(self.export_snapshot(), indent=2, ensure_ascii=False)

    def backup_filename(self) -> str:
        """``<app>_backup_<ISO-date>.json``"""
        return f"{self._app_name}_backup_{self._clock().isoformat()}.json"

    def import_snapshot(self, raw: Any) -> ValidationResult:
        """
        Replace the whole ledger with a backup document.

        Missing optional sections are filled from defaults. The current
        ledger is untouched if the backup is rejected.

        Returns:
            ValidationResult with any warnings (balance drift etc.)

        Raises:
            SchemaError: If the backup does not have the ledger's shape
        """
        with self._mutation("import_snapshot") as doc:
            imported, result = self._validator.validate_snapshot(raw)
            for field_name in LedgerDocument.model_fields:
                setattr(doc, field_name, getattr(imported, field_name))
            for extra in list((doc.model_extra or {}).keys()):
                del doc.model_extra[extra]
            doc.model_extra.update(imported.model_extra or {})
            self._add_activity(
                doc, f"Backup imported ({len(imported.customers)} customers)"
            )

        self._audit.emit(
            AuditEventBuilder.snapshot_imported,
            len(imported.customers), result.warnings
        )
        return result

    def import_json(self, text: str | bytes) -> ValidationResult:
        """
        Parse backup text and import it.

        Raises:
            SchemaError: If the text is not JSON or not a ledger backup
        """
        try:
            raw = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            error = SchemaError(f"Invalid JSON: {e}")
            self._audit.log_rejected("import_snapshot", error)
            raise error from e
        return self.import_snapshot(raw)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def compute_totals(self) -> LedgerTotals:
        with self._lock:
            return self._query().compute_totals()

    def build_statement(self, customer_id: str) -> CustomerStatement:
        """
        Raises:
            NotFoundError: Unknown customer
        """
        with self._lock:
            return self._query().build_statement(customer_id).model_copy(deep=True)

    def get_customer(self, customer_id: str) -> Customer:
        with self._lock:
            return self._query().get_customer(customer_id).model_copy(deep=True)

    def list_customers(self, outstanding_only: bool = False) -> list[Customer]:
        with self._lock:
            return [
                c.model_copy(deep=True)
                for c in self._query().list_customers(outstanding_only)
            ]

    def list_purchases(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Purchase]:
        with self._lock:
            return [p.model_copy() for p in self._query().list_purchases(date_from, date_to)]

    def list_expenses(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Expense]:
        with self._lock:
            return [e.model_copy() for e in self._query().list_expenses(date_from, date_to)]

    def cash_balances(self) -> dict[CashPocket, Decimal]:
        with self._lock:
            return self._query().cash_balances()

    def recent_activity(self, limit: int = 20) -> list[str]:
        with self._lock:
            return self._query().recent_activity(limit)

    @property
    def reminder_template(self) -> str:
        with self._lock:
            return self._document.settings.reminder_template

    def snapshot(self) -> LedgerDocument:
        """A deep copy of the live document."""
        with self._lock:
            return self._document.model_copy(deep=True)
