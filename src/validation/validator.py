"""
Ledger Validation

Two jobs live here:

ACTION INPUTS:
- Every user action arrives as one structured input (amount, pocket, note...)
- All fields are checked before anything in the ledger changes
- Failures raise ledger errors (ValidationError, InvalidPocketError)

SNAPSHOTS (backup import and start-up load) go through two stages:

STAGE 1 - SCHEMA VALIDATION:
- The document is a JSON object
- ``customers`` is a list and ``cash`` is an object
- Every record matches its model
- Missing optional keys are backfilled from defaults

STAGE 2 - SEMANTIC VALIDATION:
- Customer balances that disagree with their entries
- Pockets already below zero
- Duplicate identifiers

Stage 1 failures reject the document with SchemaError.
Stage 2 only produces warnings: the shop owner decides what to do.

IMPORTANT: Validation NEVER silently fixes balances or amounts.
It reports them.
"""

import copy
from collections import Counter
from decimal import Decimal
from typing import Any, Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.ledger.errors import InvalidPocketError, SchemaError, ValidationError
from src.ledger.formatting import format_inr
from src.models.ledger import (
    AdjustDirection,
    CashPocket,
    CreditInput,
    CustomerInput,
    ExpenseInput,
    LedgerDocument,
    PaymentInput,
    PocketAdjustment,
    PurchaseInput,
    StoreSettings,
    ValidationIssue,
    ValidationResult,
    default_cash,
    default_reminder_template,
)

InputModel = TypeVar("InputModel", bound=BaseModel)

# Top-level keys and the JSON container type each must have
DOCUMENT_SHAPE: dict[str, type] = {
    "customers": list,
    "purchases": list,
    "expenses": list,
    "cash": dict,
    "settings": dict,
    "recent": list,
}

# Keys an imported backup cannot do without
REQUIRED_IMPORT_KEYS = ("customers", "cash")


def _pydantic_issues(error: PydanticValidationError) -> list[ValidationIssue]:
    """Translate pydantic errors into ValidationIssues."""
    issues = []
    for err in error.errors():
        field = ".".join(str(part) for part in err["loc"]) or "document"
        issues.append(ValidationIssue(
            field=field,
            issue_type=err["type"],
            message=f"{field}: {err['msg']}",
            severity="error",
        ))
    return issues


class LedgerValidator:
    """
    Validates action inputs and ledger snapshots.

    Holds no ledger state; the store passes in whatever it needs checked.
    """

    def __init__(self, business_name: str = "Oil Murugan"):
        self._business_name = business_name

    # -------------------------------------------------------------------------
    # Defaults
    # -------------------------------------------------------------------------

    def default_document(self) -> LedgerDocument:
        """A fresh, empty ledger."""
        return LedgerDocument(
            settings=StoreSettings(
                reminder_template=default_reminder_template(self._business_name)
            ),
        )

    # -------------------------------------------------------------------------
    # Action inputs
    # -------------------------------------------------------------------------

    def parse_input(self, model: type[InputModel], **fields: Any) -> InputModel:
        """Build an input model, reporting type errors as ValidationError."""
        try:
            return model(**fields)
        except PydanticValidationError as e:
            issues = _pydantic_issues(e)
            raise ValidationError(issues[0].message, issues) from e

    @staticmethod
    def _raise_if_errors(issues: list[ValidationIssue]) -> None:
        errors = [issue for issue in issues if issue.severity == "error"]
        if errors:
            raise ValidationError(errors[0].message, errors)

    @staticmethod
    def _amount_issues(amount: Decimal, field: str = "amount") -> list[ValidationIssue]:
        if amount <= 0:
            return [ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message="Enter a positive amount",
                severity="error",
                suggested_fix="Amounts must be greater than zero",
            )]
        return []

    @staticmethod
    def _required_text_issues(value: str, field: str, label: str) -> list[ValidationIssue]:
        if not value:
            return [ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"Enter {label}",
                severity="error",
            )]
        return []

    @staticmethod
    def resolve_pocket(value: Any) -> CashPocket:
        """Map a pocket name onto the fixed set or raise InvalidPocketError."""
        try:
            return CashPocket.from_str(value)
        except ValueError as e:
            raise InvalidPocketError(value) from e

    def validate_customer(self, data: CustomerInput) -> CustomerInput:
        self._raise_if_errors(
            self._required_text_issues(data.name, "name", "customer name")
        )
        return data

    def validate_credit(self, data: CreditInput) -> CreditInput:
        self._raise_if_errors(self._amount_issues(data.amount))
        return data

    def validate_payment(self, data: PaymentInput) -> PaymentInput:
        """Amount first, then pocket; returns the input with a resolved pocket."""
        self._raise_if_errors(self._amount_issues(data.amount))
        pocket = self.resolve_pocket(data.pocket)
        return data.model_copy(update={"pocket": pocket})

    def validate_purchase(self, data: PurchaseInput) -> PurchaseInput:
        issues = self._required_text_issues(data.dealer, "dealer", "dealer name")
        issues.extend(self._amount_issues(data.amount))
        self._raise_if_errors(issues)
        pocket = self.resolve_pocket(data.pocket)
        return data.model_copy(update={"pocket": pocket})

    def validate_expense(self, data: ExpenseInput) -> ExpenseInput:
        issues = self._required_text_issues(data.title, "title", "expense title")
        issues.extend(self._amount_issues(data.amount))
        self._raise_if_errors(issues)
        pocket = self.resolve_pocket(data.pocket)
        return data.model_copy(update={"pocket": pocket})

    def validate_adjustment(self, data: PocketAdjustment) -> PocketAdjustment:
        issues = self._amount_issues(data.amount)
        try:
            direction = AdjustDirection.from_str(data.direction)
        except ValueError:
            issues.append(ValidationIssue(
                field="direction",
                issue_type="invalid_value",
                message=f"Direction must be 'add' or 'subtract', got {data.direction!r}",
                severity="error",
            ))
            direction = None
        self._raise_if_errors(issues)
        pocket = self.resolve_pocket(data.pocket)
        return data.model_copy(update={"pocket": pocket, "direction": direction})

    def validate_template(self, template: Optional[str]) -> str:
        text = (template or "").strip()
        self._raise_if_errors(
            self._required_text_issues(text, "reminder_template", "a reminder message")
        )
        return text

    @staticmethod
    def deduction_warnings(
        current_balance: Decimal,
        pocket: CashPocket,
        amount: Decimal,
    ) -> list[str]:
        """
        Warn when paying ``amount`` out of ``pocket`` would leave it below zero.

        The ledger still allows it; this is shown before the user commits.
        """
        remaining = current_balance - amount
        if remaining < 0:
            return [
                f"{pocket.value} has {format_inr(current_balance)}, "
                f"this leaves it at {format_inr(remaining)}"
            ]
        return []

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def _validate_schema(
        self,
        raw: Any,
        require_core_keys: bool,
    ) -> tuple[Optional[LedgerDocument], list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Checks the container shape, backfills defaults, and validates every
        record against its model.

        Returns: (document or None, list_of_issues)
        """
        issues: list[ValidationIssue] = []

        if not isinstance(raw, dict):
            issues.append(ValidationIssue(
                field="document",
                issue_type="invalid_type",
                message="Backup must be a JSON object",
                severity="error",
            ))
            return None, issues

        if require_core_keys:
            for key in REQUIRED_IMPORT_KEYS:
                if key not in raw:
                    issues.append(ValidationIssue(
                        field=key,
                        issue_type="missing",
                        message=f"Backup has no '{key}' section",
                        severity="error",
                        suggested_fix="Choose a backup file exported from this ledger",
                    ))

        for key, expected in DOCUMENT_SHAPE.items():
            if key in raw and not isinstance(raw[key], expected):
                kind = "a list" if expected is list else "an object"
                issues.append(ValidationIssue(
                    field=key,
                    issue_type="invalid_type",
                    message=f"'{key}' must be {kind}",
                    severity="error",
                ))

        if issues:
            return None, issues

        merged = self._merge_with_defaults(raw, issues)

        try:
            document = LedgerDocument.model_validate(merged)
        except PydanticValidationError as e:
            issues.extend(_pydantic_issues(e))
            return None, issues

        return document, issues

    def _merge_with_defaults(
        self,
        raw: dict[str, Any],
        issues: list[ValidationIssue],
    ) -> dict[str, Any]:
        """Overlay the raw document on defaults; unknown keys pass through."""
        merged = self.default_document().to_json_dict()
        for key, value in copy.deepcopy(raw).items():
            if key == "cash":
                cash = {pocket.value: amount for pocket, amount in default_cash().items()}
                for name, amount in value.items():
                    try:
                        cash[CashPocket.from_str(name).value] = amount
                    except ValueError:
                        issues.append(ValidationIssue(
                            field=f"cash.{name}",
                            issue_type="unknown_pocket",
                            message=f"Ignoring unknown cash pocket '{name}' ({amount})",
                            severity="warning",
                        ))
                merged["cash"] = cash
            elif key == "settings":
                merged["settings"] = {**merged["settings"], **value}
            else:
                merged[key] = value
        return merged

    def _validate_semantic(
        self,
        document: LedgerDocument,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Checks:
        - Balance vs entries drift per customer
        - Negative pocket balances
        - Duplicate identifiers

        Returns: (is_valid, list_of_issues)
        """
        issues: list[ValidationIssue] = []

        for customer in document.customers:
            drift = customer.balance_drift
            if drift != 0:
                issues.append(ValidationIssue(
                    field=f"customers.{customer.id}.balance",
                    issue_type="balance_drift",
                    message=(
                        f"{customer.name}: balance {format_inr(customer.balance)} does not "
                        f"match entries total {format_inr(customer.ledger_balance)}"
                    ),
                    severity="warning",
                    suggested_fix="Check the statement before recording new entries",
                ))

        for pocket, balance in document.cash.items():
            if balance < 0:
                issues.append(ValidationIssue(
                    field=f"cash.{pocket.value}",
                    issue_type="negative_balance",
                    message=f"{pocket.value} is below zero ({format_inr(balance)})",
                    severity="warning",
                ))

        for section in ("customers", "purchases", "expenses"):
            counts = Counter(record.id for record in getattr(document, section))
            for record_id, count in counts.items():
                if count > 1:
                    issues.append(ValidationIssue(
                        field=f"{section}.{record_id}",
                        issue_type="duplicate_id",
                        message=f"{count} {section} share the id '{record_id}'",
                        severity="warning",
                    ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate_snapshot(
        self,
        raw: Any,
        require_core_keys: bool = True,
    ) -> tuple[LedgerDocument, ValidationResult]:
        """
        Run the two-stage pipeline over a raw JSON document.

        Args:
            raw: Parsed JSON (normally a dict)
            require_core_keys: Reject documents without ``customers``/``cash``.
                Imports require them; loading the store's own file does not.

        Returns:
            (validated document, ValidationResult with any warnings)

        Raises:
            SchemaError: If stage 1 fails. Nothing is returned to apply.
        """
        document, issues = self._validate_schema(raw, require_core_keys)
        schema_valid = document is not None and not any(
            issue.severity == "error" for issue in issues
        )
        if not schema_valid:
            errors = [issue for issue in issues if issue.severity == "error"]
            raise SchemaError(
                f"Invalid backup: {errors[0].message}" if errors else "Invalid backup",
                errors,
            )

        semantic_valid, semantic_issues = self._validate_semantic(document)
        issues.extend(semantic_issues)

        return document, ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            issues=issues,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Summary of snapshot warnings for the shop owner."""
        if not result.warnings:
            return "✅ Backup looks consistent."

        lines = ["⚠️ Please check the following:"]
        for warning in result.warnings:
            lines.append(f"   • {warning}")
        return "\n".join(lines)
