"""
Ledger Error Hierarchy

Every failure a ledger operation can report is one of these.
They are raised before any state changes and are caught at the
orchestrator boundary, where they become human-readable messages.
"""

from typing import Optional

from src.models.ledger import ValidationIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """A required field is missing or invalid (empty name, non-positive amount)."""

    def __init__(
        self,
        message: str,
        issues: Optional[list[ValidationIssue]] = None,
    ):
        super().__init__(message)
        self.issues = issues or []


class NotFoundError(LedgerError):
    """Referenced customer, purchase or expense does not exist."""

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(f"{entity_type.capitalize()} not found: {entity_id}")
        self.entity_type = entity_type
        self.entity_id = entity_id


class InvalidPocketError(LedgerError):
    """Pocket name is outside the fixed set of cash pockets."""

    def __init__(self, pocket: object):
        super().__init__(f"Unknown cash pocket: {pocket!r}")
        self.pocket = pocket


class SchemaError(LedgerError):
    """An imported or stored document failed the structural check."""

    def __init__(
        self,
        message: str,
        issues: Optional[list[ValidationIssue]] = None,
    ):
        super().__init__(message)
        self.issues = issues or []
