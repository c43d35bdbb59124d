"""Shared fixtures: an in-memory ledger with a fixed "today"."""

from datetime import date

import pytest

from src.ledger.store import LedgerStore
from src.orchestrator import LedgerActions, LedgerReports
from src.services.storage import InMemoryDocumentStorage
from src.validation import LedgerValidator

TODAY = date(2026, 10, 19)


@pytest.fixture
def storage():
    return InMemoryDocumentStorage()


@pytest.fixture
def clock():
    return lambda: TODAY


@pytest.fixture
def store(storage, clock):
    return LedgerStore(storage, validator=LedgerValidator(), clock=clock)


@pytest.fixture
def actions(store):
    return LedgerActions(store)


@pytest.fixture
def reports(store):
    return LedgerReports(store)


@pytest.fixture
def legacy_backup():
    """A backup in the shape the browser version exported."""
    return {
        "customers": [
            {
                "id": "c1",
                "name": "Ravi",
                "mobile": "98400 12345",
                "balance": 1300,
                "entries": [
                    {"type": "opening", "amount": 1000, "date": "2026-10-01", "note": "Opening balance"},
                    {"type": "credit", "amount": 500, "date": "2026-10-05", "note": "Oil 5L"},
                    {"type": "payment", "amount": 200, "date": "2026-10-10", "note": "Payment received"},
                ],
            },
        ],
        "purchases": [
            {"id": "p1", "dealer": "Gold Winner", "amount": 4500, "source": "kalla", "date": "2026-10-19"},
        ],
        "expenses": [
            {"id": "e1", "title": "Tea", "amount": 40, "source": "kalla", "date": "2026-10-18"},
        ],
        "cash": {"kalla": 2500, "home": 0, "bank": 10000, "upi": 350.5, "other": 0},
        "settings": {"waTemplate": "Hi {name}, please pay ₹{balance}."},
        "recent": ["Ravi paid ₹200 (to kalla)"],
    }
