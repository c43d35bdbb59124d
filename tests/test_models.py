"""
Tests for the Shop Credit Ledger models

Test strategy:
1. Unit tests for individual models (money, records, document)
2. Round-trip of the legacy backup key names
3. No storage or clock involved
"""

import pytest
from datetime import date
from decimal import Decimal

from src.audit import AuditLogger
from src.ledger.errors import ValidationError
from src.models.ledger import (
    CashPocket,
    Customer,
    CustomerStatement,
    EntryKind,
    LedgerDocument,
    LedgerEntry,
    Purchase,
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


class TestMoney:
    """Tests for amount rounding."""

    def test_float_uses_shortest_repr(self):
        """0.1 is one tenth, not its binary expansion."""
        assert round_money(0.1) == Decimal("0.10")

    def test_rounds_half_up(self):
        assert round_money(2.675) == Decimal("2.68")
        assert round_money("1.005") == Decimal("1.01")

    def test_string_with_grouping(self):
        assert round_money("1,500") == Decimal("1500.00")
        assert round_money(" 250.5 ") == Decimal("250.50")

    def test_blank_string_is_zero(self):
        assert round_money("") == Decimal("0.00")

    def test_rejects_non_numbers(self):
        values = (True, None, "abc", [1], float("nan"), float("inf"), "1e30", 1e30, 10**30)
        for value in values:
            with pytest.raises(ValueError):
                round_money(value)

    def test_huge_amounts_are_refused(self):
        """Amounts past the cap raise ValueError, not a decimal context error."""
        with pytest.raises(ValueError, match="Amount too large"):
            round_money("1e26")
        assert round_money("999999999999999") == Decimal("999999999999999.00")


class TestLedgerRecords:
    """Tests for customers, entries and records."""

    def test_entry_uses_legacy_keys(self):
        """Entries load from ``type`` and ``date``."""
        entry = LedgerEntry.model_validate(
            {"type": "credit", "amount": 500, "date": "2026-10-05", "note": "Oil"}
        )
        assert entry.kind == EntryKind.CREDIT
        assert entry.entry_date == date(2026, 10, 5)
        assert entry.amount == Decimal("500.00")

    def test_entry_is_frozen(self):
        entry = LedgerEntry(kind=EntryKind.CREDIT, amount=10, entry_date=date(2026, 1, 1))
        with pytest.raises(ValueError):
            entry.amount = Decimal("20")

    def test_payment_entry_reduces_balance(self):
        entry = LedgerEntry(kind=EntryKind.PAYMENT, amount=200, entry_date=date(2026, 1, 1))
        assert entry.signed_amount == Decimal("-200.00")

    def test_customer_requires_name(self):
        with pytest.raises(ValueError):
            Customer(name="   ")

    def test_blank_phone_becomes_none(self):
        customer = Customer(name="Ravi", phone="  ")
        assert customer.phone is None

    def test_customer_ids_are_unique(self):
        assert Customer(name="A").id != Customer(name="B").id

    def test_ledger_balance_and_drift(self):
        """Stored balance is compared with the entries, never replaced."""
        customer = Customer(
            name="Ravi",
            balance=900,
            entries=[
                LedgerEntry(kind=EntryKind.OPENING, amount=1000, entry_date=date(2026, 1, 1)),
                LedgerEntry(kind=EntryKind.PAYMENT, amount=200, entry_date=date(2026, 1, 2)),
            ],
        )
        assert customer.ledger_balance == Decimal("800.00")
        assert customer.balance_drift == Decimal("100.00")
        assert customer.balance == Decimal("900.00")

    def test_purchase_pocket_from_source(self):
        purchase = Purchase.model_validate(
            {"dealer": "Gold Winner", "amount": 4500, "source": "bank", "date": "2026-10-19"}
        )
        assert purchase.pocket == CashPocket.BANK

    def test_purchase_rejects_unknown_pocket(self):
        with pytest.raises(ValueError):
            Purchase.model_validate(
                {"dealer": "X", "amount": 1, "source": "wallet", "date": "2026-10-19"}
            )


class TestCashPocket:
    """Tests for the fixed pocket set."""

    def test_all_pockets_exist(self):
        assert [p.value for p in CashPocket] == ["kalla", "home", "bank", "upi", "other"]

    def test_from_str_ignores_case(self):
        assert CashPocket.from_str(" Bank ") == CashPocket.BANK

    def test_from_str_rejects_unknown(self):
        with pytest.raises(ValueError, match="Unsupported cash pocket"):
            CashPocket.from_str("wallet")


class TestLedgerDocument:
    """Tests for the persisted document."""

    def test_missing_pockets_are_backfilled(self):
        document = LedgerDocument.model_validate({"cash": {"bank": 100}})
        assert list(document.cash) == list(CashPocket)
        assert document.cash[CashPocket.BANK] == Decimal("100.00")
        assert document.cash[CashPocket.KALLA] == Decimal("0.00")

    def test_json_dict_uses_legacy_keys(self):
        document = LedgerDocument(
            customers=[Customer(
                name="Ravi",
                phone="9840012345",
                entries=[LedgerEntry(kind=EntryKind.CREDIT, amount=5, entry_date=date(2026, 1, 1))],
            )],
        )
        data = document.to_json_dict()
        customer = data["customers"][0]
        assert customer["mobile"] == "9840012345"
        assert customer["entries"][0] == {
            "type": "credit", "amount": 5.0, "date": "2026-01-01", "note": "",
        }
        assert data["cash"]["kalla"] == 0.0
        assert "waTemplate" in data["settings"]

    def test_unknown_keys_survive(self):
        document = LedgerDocument.model_validate(
            {"version": 3, "settings": {"waTemplate": "Hi", "theme": "dark"}}
        )
        data = document.to_json_dict()
        assert data["version"] == 3
        assert data["settings"]["theme"] == "dark"

    def test_find_customer(self):
        customer = Customer(name="Ravi")
        document = LedgerDocument(customers=[customer])
        assert document.find_customer(customer.id) is customer
        assert document.find_customer("missing") is None

    def test_default_template_has_placeholders(self):
        template = StoreSettings().reminder_template
        assert "{name}" in template
        assert "{balance}" in template


class TestQueryModels:
    """Tests for typed query results."""

    def test_statement_drift_flag(self):
        statement = CustomerStatement(
            customer_id="c1",
            name="Ravi",
            balance=Decimal("10"),
            ledger_balance=Decimal("0"),
            generated_on=date(2026, 10, 19),
        )
        assert statement.has_drift is True


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.STORE_RESET,
            description="Ledger cleared",
        )
        assert event.event_type == AuditEventType.STORE_RESET
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.payment_recorded("c1", "200.00", "bank", "300.00")
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "payment_recorded"
        assert log_dict["entity_id"] == "c1"
        assert log_dict["details"]["pocket"] == "bank"

    def test_audit_event_builder_operation_rejected(self):
        """Rejections carry the error type and message."""
        event = AuditEventBuilder.operation_rejected(
            "record_credit", ValidationError("Enter a positive amount")
        )
        assert event.event_type == AuditEventType.OPERATION_REJECTED
        assert event.severity == AuditSeverity.WARNING
        assert event.error_type == "ValidationError"
        assert event.error_message == "Enter a positive amount"

    def test_audit_event_builder_persistence_failed(self):
        event = AuditEventBuilder.persistence_failed("reset", OSError("disk full"))
        assert event.severity == AuditSeverity.ERROR
        assert event.operation == "reset"

    def test_audit_event_builder_listener_failed(self):
        event = AuditEventBuilder.listener_failed("adjust_pocket", RuntimeError("boom"))
        assert event.event_type == AuditEventType.LISTENER_FAILED
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "boom"

    def test_long_customer_name_goes_to_details(self):
        """A name longer than the description limit still builds an event."""
        event = AuditEventBuilder.customer_registered("c1", "R" * 600, "0.00")
        assert event.description == "Customer registered"
        assert event.details["name"] == "R" * 600

    def test_emit_never_raises(self):
        """A builder that fails is reported as False instead of raising."""
        def broken_builder():
            raise ValueError("description too long")

        assert AuditLogger().emit(broken_builder) is False
        assert AuditLogger().emit(AuditEventBuilder.store_reset) is True


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            schema_valid=False,
            semantic_valid=False,
            issues=[
                ValidationIssue(
                    field="customers",
                    issue_type="missing",
                    message="Backup has no 'customers' section",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.warnings == []

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            schema_valid=True,
            semantic_valid=True,
            issues=[
                ValidationIssue(
                    field="cash.bank",
                    issue_type="negative_balance",
                    message="bank is below zero",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.warnings == ["bank is below zero"]

    def test_severity_is_restricted(self):
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
