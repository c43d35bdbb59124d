"""
Ledger Query Engine

DESIGN DECISION: Queries are pure projections of one LedgerDocument.
They never mutate, never format for display, and never read storage.
The UI receives typed results (LedgerTotals, CustomerStatement, records)
and decides how to render them.

The store hands the executor its current document under its lock, so a
query always sees one consistent state.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from src.ledger.errors import NotFoundError
from src.models.ledger import (
    ZERO,
    CashPocket,
    Customer,
    CustomerStatement,
    Expense,
    LedgerDocument,
    LedgerTotals,
    Purchase,
)


def _in_range(day: date, date_from: Optional[date], date_to: Optional[date]) -> bool:
    if date_from and day < date_from:
        return False
    if date_to and day > date_to:
        return False
    return True


class LedgerQueryExecutor:
    """
    Executes read-only queries against a ledger document.

    GUARANTEES:
    - Only reports what is in the document
    - Never changes the document
    - Raises NotFoundError rather than returning an empty statement
    """

    def __init__(self, document: LedgerDocument, today: date):
        self._document = document
        self._today = today

    def compute_totals(self) -> LedgerTotals:
        """
        Dashboard totals.

        ``total_expenses`` covers all time while ``today_purchases`` covers
        today only; ``today_expenses`` is the same-day counterpart.
        """
        doc = self._document
        return LedgerTotals(
            as_of=self._today,
            total_outstanding=sum((c.balance for c in doc.customers), ZERO),
            today_purchases=sum(
                (p.amount for p in doc.purchases if p.purchase_date == self._today),
                ZERO,
            ),
            total_expenses=sum((e.amount for e in doc.expenses), ZERO),
            today_expenses=sum(
                (e.amount for e in doc.expenses if e.expense_date == self._today),
                ZERO,
            ),
            total_cash=sum(doc.cash.values(), ZERO),
        )

    def get_customer(self, customer_id: str) -> Customer:
        customer = self._document.find_customer(customer_id)
        if customer is None:
            raise NotFoundError("customer", customer_id)
        return customer

    def build_statement(self, customer_id: str) -> CustomerStatement:
        """Entries sorted by date ascending (insertion order within a day)."""
        customer = self.get_customer(customer_id)
        entries = sorted(customer.entries, key=lambda entry: entry.entry_date)
        return CustomerStatement(
            customer_id=customer.id,
            name=customer.name,
            phone=customer.phone,
            balance=customer.balance,
            ledger_balance=customer.ledger_balance,
            entries=entries,
            generated_on=self._today,
        )

    def list_customers(self, outstanding_only: bool = False) -> list[Customer]:
        """Customers in registration order, optionally only those who owe."""
        customers = self._document.customers
        if outstanding_only:
            customers = [c for c in customers if c.balance > 0]
        return list(customers)

    def list_purchases(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Purchase]:
        """Purchases newest-recorded first, optionally within a date range."""
        return [
            p for p in self._document.purchases
            if _in_range(p.purchase_date, date_from, date_to)
        ]

    def list_expenses(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Expense]:
        """Expenses newest-recorded first, optionally within a date range."""
        return [
            e for e in self._document.expenses
            if _in_range(e.expense_date, date_from, date_to)
        ]

    def cash_balances(self) -> dict[CashPocket, Decimal]:
        return dict(self._document.cash)

    def recent_activity(self, limit: int) -> list[str]:
        """Most recent activity lines first."""
        return list(self._document.recent[:limit])
