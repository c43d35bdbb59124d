"""
Tests for the LedgerValidator

Test strategy:
1. Action inputs rejected with ledger errors, never pydantic ones
2. Snapshot stage 1 rejects the wrong shape
3. Snapshot stage 2 warns but never changes values
"""

import pytest
from decimal import Decimal

from src.ledger.errors import InvalidPocketError, SchemaError, ValidationError
from src.models.ledger import (
    AdjustDirection,
    CashPocket,
    CreditInput,
    CustomerInput,
    PaymentInput,
    PocketAdjustment,
    PurchaseInput,
)
from src.validation import LedgerValidator


@pytest.fixture
def validator():
    return LedgerValidator(business_name="Test Shop")


class TestInputValidation:
    """Tests for per-action input checks."""

    def test_parse_input_wraps_type_errors(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.parse_input(CreditInput, amount="ten")
        assert exc_info.value.issues[0].field == "amount"

    def test_customer_requires_name(self, validator):
        with pytest.raises(ValidationError, match="Enter customer name"):
            validator.validate_customer(CustomerInput(name="  "))

    def test_credit_must_be_positive(self, validator):
        with pytest.raises(ValidationError):
            validator.validate_credit(CreditInput(amount=0))
        assert validator.validate_credit(CreditInput(amount="12.345")).amount == Decimal("12.35")

    def test_payment_resolves_pocket(self, validator):
        data = validator.validate_payment(PaymentInput(amount=10, pocket="UPI"))
        assert data.pocket is CashPocket.UPI

    def test_payment_unknown_pocket(self, validator):
        with pytest.raises(InvalidPocketError, match="wallet"):
            validator.validate_payment(PaymentInput(amount=10, pocket="wallet"))

    def test_purchase_collects_all_errors(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_purchase(PurchaseInput(dealer="", amount=0))
        assert len(exc_info.value.issues) == 2

    def test_adjustment_resolves_direction(self, validator):
        data = validator.validate_adjustment(
            PocketAdjustment(pocket="home", amount=5, direction="Subtract")
        )
        assert data.direction is AdjustDirection.SUBTRACT
        assert data.pocket is CashPocket.HOME

    def test_template_is_trimmed(self, validator):
        assert validator.validate_template("  Hi {name} ") == "Hi {name}"
        with pytest.raises(ValidationError):
            validator.validate_template(None)

    def test_deduction_warning_only_below_zero(self):
        assert LedgerValidator.deduction_warnings(
            Decimal("100"), CashPocket.KALLA, Decimal("100")
        ) == []
        assert len(LedgerValidator.deduction_warnings(
            Decimal("100"), CashPocket.KALLA, Decimal("100.01")
        )) == 1


class TestSnapshotValidation:
    """Tests for the two-stage snapshot pipeline."""

    def test_default_document_uses_business_name(self, validator):
        document = validator.default_document()
        assert "Test Shop" in document.settings.reminder_template
        assert document.customers == []

    def test_valid_backup(self, validator, legacy_backup):
        document, result = validator.validate_snapshot(legacy_backup)
        assert result.schema_valid and result.semantic_valid
        assert document.customers[0].name == "Ravi"

    def test_core_keys_required_for_import(self, validator):
        with pytest.raises(SchemaError) as exc_info:
            validator.validate_snapshot({"purchases": []})
        assert {issue.field for issue in exc_info.value.issues} == {"customers", "cash"}

    def test_core_keys_optional_for_load(self, validator):
        document, _ = validator.validate_snapshot({"purchases": []}, require_core_keys=False)
        assert document.customers == []

    def test_wrong_container_type(self, validator):
        with pytest.raises(SchemaError, match="'cash' must be an object"):
            validator.validate_snapshot({"customers": [], "cash": [1, 2]})

    def test_bad_amount_in_record(self, validator, legacy_backup):
        legacy_backup["expenses"][0]["amount"] = "forty"
        with pytest.raises(SchemaError):
            validator.validate_snapshot(legacy_backup)

    def test_does_not_modify_input(self, validator, legacy_backup):
        legacy_backup["cash"]["wallet"] = 5
        validator.validate_snapshot(legacy_backup)
        assert legacy_backup["cash"]["wallet"] == 5

    def test_negative_pocket_warns(self, validator, legacy_backup):
        legacy_backup["cash"]["home"] = -20
        document, result = validator.validate_snapshot(legacy_backup)
        assert document.cash[CashPocket.HOME] == Decimal("-20.00")
        assert any(issue.issue_type == "negative_balance" for issue in result.issues)

    def test_duplicate_ids_warn(self, validator, legacy_backup):
        legacy_backup["expenses"].append(dict(legacy_backup["expenses"][0]))
        _, result = validator.validate_snapshot(legacy_backup)
        assert any(issue.issue_type == "duplicate_id" for issue in result.issues)
        assert result.semantic_valid is True

    def test_friendly_summary(self, validator, legacy_backup):
        _, clean = validator.validate_snapshot(legacy_backup)
        assert validator.get_user_friendly_summary(clean).startswith("✅")

        legacy_backup["customers"][0]["balance"] = 1
        _, drifted = validator.validate_snapshot(legacy_backup)
        summary = validator.get_user_friendly_summary(drifted)
        assert "Ravi" in summary
