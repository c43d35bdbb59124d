"""
Tests for the orchestrator

Test strategy:
1. Actions turn ledger errors into ActionResults, never exceptions
2. Reports return typed results plus a message
3. Factory wiring uses settings from the environment
"""

import json
from decimal import Decimal

import pytest

from src.config import get_settings
from src.models.ledger import (
    AdjustDirection,
    CashPocket,
    CreditInput,
    CustomerInput,
    ExpenseInput,
    PaymentInput,
    PocketAdjustment,
    PurchaseInput,
)
from src.orchestrator import (
    LedgerActions,
    LedgerReports,
    create_app_components,
    create_storage,
)
from src.services.storage import (
    InMemoryDocumentStorage,
    JsonFileDocumentStorage,
    PersistenceError,
)


class BrokenStorage(InMemoryDocumentStorage):
    def save(self, document):
        raise PersistenceError("read-only file system")


class TestLedgerActions:
    """Tests for user actions."""

    def test_add_customer(self, actions, store):
        result = actions.add_customer(CustomerInput(name="Ravi", opening_balance=500))
        assert result.success is True
        assert result.message == "Ravi added"
        assert store.get_customer(result.record_id).balance == Decimal("500.00")

    def test_add_customer_failure(self, actions):
        result = actions.add_customer(CustomerInput(name=""))
        assert result.success is False
        assert result.error_type == "ValidationError"
        assert result.message == "Enter customer name"

    def test_add_customer_with_long_name(self, actions, store, storage):
        """A 600-character name is saved and reported as a success."""
        result = actions.add_customer(CustomerInput(name="R" * 600))
        assert result.success is True
        customers = store.list_customers()
        assert len(customers) == 1
        assert len(customers[0].name) == 600
        assert storage.save_count == 1

    def test_credit_reports_new_balance(self, actions):
        customer_id = actions.add_customer(CustomerInput(name="Ravi")).record_id
        result = actions.add_credit(customer_id, CreditInput(amount=1500))
        assert result.message == "Ravi credited ₹1,500; now owes ₹1,500"

    def test_advance_payment_warns(self, actions):
        customer_id = actions.add_customer(
            CustomerInput(name="Ravi", opening_balance=100)
        ).record_id
        result = actions.receive_payment(
            customer_id, PaymentInput(amount=150, pocket=CashPocket.UPI)
        )
        assert result.success is True
        assert result.warnings == ["Ravi has paid ₹50 in advance"]

    def test_payment_unknown_customer(self, actions):
        result = actions.receive_payment("nope", PaymentInput(amount=10))
        assert result.success is False
        assert result.error_type == "NotFoundError"

    def test_purchase_warns_before_overdraw(self, actions, store):
        result = actions.add_purchase(
            PurchaseInput(dealer="Gold Winner", amount=300, pocket="kalla")
        )
        assert result.success is True
        assert result.warnings == ["kalla has ₹0, this leaves it at ₹-300"]
        assert store.cash_balances()[CashPocket.KALLA] == Decimal("-300.00")

    def test_purchase_invalid_pocket(self, actions):
        result = actions.add_purchase(PurchaseInput(dealer="X", amount=1, pocket="wallet"))
        assert result.success is False
        assert result.error_type == "InvalidPocketError"
        assert result.warnings == []

    def test_delete_purchase_notes_pocket_unchanged(self, actions):
        purchase_id = actions.add_purchase(
            PurchaseInput(dealer="X", amount=10, pocket="bank")
        ).record_id
        result = actions.delete_purchase(purchase_id)
        assert result.success is True
        assert result.warnings == ["bank balance was not changed"]

    def test_expense_round_trip(self, actions, store):
        expense_id = actions.add_expense(
            ExpenseInput(title="Tea", amount=40, pocket=CashPocket.HOME)
        ).record_id
        assert actions.delete_expense(expense_id).success is True
        assert actions.delete_expense(expense_id).success is False
        assert store.cash_balances()[CashPocket.HOME] == Decimal("-40.00")

    def test_adjust_pocket(self, actions):
        result = actions.adjust_pocket(PocketAdjustment(
            pocket="bank", amount=50, direction=AdjustDirection.SUBTRACT
        ))
        assert result.message == "New balance: ₹-50"
        assert result.warnings == ["Balance is now below zero"]

    def test_import_backup_bytes(self, actions, store, legacy_backup):
        result = actions.import_backup(json.dumps(legacy_backup).encode("utf-8"))
        assert result.success is True
        assert store.get_customer("c1").name == "Ravi"

    def test_import_backup_rejected(self, actions, store):
        actions.add_customer(CustomerInput(name="Ravi"))
        result = actions.import_backup('{"customers": "Ravi"}')
        assert result.success is False
        assert result.error_type == "SchemaError"
        assert len(store.list_customers()) == 1

    def test_clear_all(self, actions, store):
        actions.add_customer(CustomerInput(name="Ravi"))
        assert actions.clear_all().success is True
        assert store.list_customers() == []

    def test_update_reminder_template(self, actions, store):
        assert actions.update_reminder_template("Pay {balance}").success is True
        assert actions.update_reminder_template("").success is False
        assert store.reminder_template == "Pay {balance}"

    def test_persistence_failure_message(self):
        _, _, store = create_app_components(storage=BrokenStorage())
        result = LedgerActions(store).add_customer(CustomerInput(name="Ravi"))
        assert result.success is False
        assert result.error_type == "PersistenceError"
        assert "was not kept" in result.message
        assert store.list_customers() == []


class TestLedgerReports:
    """Tests for read-only reports."""

    def test_statement(self, reports, store, legacy_backup):
        store.import_snapshot(legacy_backup)
        statement, message = reports.statement("c1")
        assert statement.name == "Ravi"
        assert message == ""

    def test_statement_with_drift(self, reports, store, legacy_backup):
        legacy_backup["customers"][0]["balance"] = 1000
        store.import_snapshot(legacy_backup)
        statement, message = reports.statement("c1")
        assert statement is not None
        assert "differs" in message

    def test_statement_unknown(self, reports):
        statement, message = reports.statement("nope")
        assert statement is None
        assert "not found" in message

    def test_reminder_link(self, reports, store, legacy_backup):
        store.import_snapshot(legacy_backup)
        link, message = reports.reminder_link("c1")
        assert link.startswith("https://wa.me/919840012345?text=Hi%20Ravi")
        assert message == "Reminder ready for Ravi"

    def test_reminder_link_without_phone(self, reports, store):
        customer = store.register_customer("Mani")
        link, message = reports.reminder_link(customer.id)
        assert link is None
        assert "Mani" in message

    def test_deduction_warnings_before_submit(self, reports, store):
        """Warnings are available before the purchase is recorded."""
        store.adjust_pocket("kalla", 100)
        assert reports.deduction_warnings("kalla", 50) == []
        assert reports.deduction_warnings(CashPocket.KALLA, 150) == [
            "kalla has ₹100, this leaves it at ₹-50"
        ]
        assert store.list_purchases() == []
        assert reports.deduction_warnings("kalla", 1e30) == []

    def test_export_backup(self, reports, store):
        store.register_customer("Ravi", None, 100)
        filename, payload = reports.export_backup()
        assert filename.endswith(".json")
        assert json.loads(payload)["customers"][0]["name"] == "Ravi"

    def test_recent_activity_uses_display_limit(self, store):
        for _ in range(5):
            store.adjust_pocket("kalla", 1)
        assert len(LedgerReports(store, recent_display_limit=3).recent_activity()) == 3


class TestFactory:
    """Tests for component wiring from settings."""

    @pytest.fixture(autouse=True)
    def fresh_settings(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LEDGER_STORAGE_DATA_FILE", str(tmp_path / "ledger.json"))
        monkeypatch.setenv("LEDGER_APP_NAME", "test_shop")
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_create_storage_defaults_to_file(self, tmp_path):
        storage = create_storage()
        assert isinstance(storage, JsonFileDocumentStorage)
        assert storage.path == tmp_path / "ledger.json"

    def test_create_storage_memory(self):
        assert isinstance(create_storage("memory"), InMemoryDocumentStorage)

    def test_components_use_settings(self, tmp_path):
        actions, reports, store = create_app_components()
        actions.add_customer(CustomerInput(name="Ravi"))

        assert (tmp_path / "ledger.json").exists()
        assert reports.export_backup()[0].startswith("test_shop_backup_")

    def test_debug_mode_sets_debug_logging(self, monkeypatch):
        """Debug mode overrides the configured log level."""
        monkeypatch.setenv("LEDGER_DEBUG_MODE", "true")
        monkeypatch.setenv("LEDGER_LOG_LEVEL", "WARNING")
        get_settings.cache_clear()
        levels = []
        monkeypatch.setattr("src.orchestrator.configure_logging", levels.append)

        create_app_components(InMemoryDocumentStorage())
        assert levels == ["DEBUG"]

    def test_log_level_used_without_debug_mode(self, monkeypatch):
        monkeypatch.delenv("LEDGER_DEBUG_MODE", raising=False)
        monkeypatch.setenv("LEDGER_LOG_LEVEL", "WARNING")
        get_settings.cache_clear()
        levels = []
        monkeypatch.setattr("src.orchestrator.configure_logging", levels.append)

        create_app_components(InMemoryDocumentStorage())
        assert levels == ["WARNING"]
