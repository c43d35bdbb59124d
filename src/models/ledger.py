"""
Core Ledger Models for the Shop Credit Ledger

These models define the strict schemas for everything the shop keeps:
customers and their ledger entries, dealer purchases, expenses, the
cash pockets, and the single document that holds them all.

They are designed to:
1. Round every amount to two decimal places at the point it enters a model
2. Read and write the same JSON shape as the original browser backups
3. Keep unknown keys from newer backups instead of dropping them
4. Give the UI typed query results instead of display strings

DESIGN DECISION: Persisted key names follow the legacy backup format
(``mobile``, ``type``, ``source``, ``waTemplate``) through aliases, while
Python code uses descriptive attribute names.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Optional, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)


# =============================================================================
# MONEY
# =============================================================================

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")
# Keeps running sums well inside the 28-digit decimal context
MAX_AMOUNT = Decimal("1e15")


def round_money(value: Any) -> Decimal:
    """
    Convert a user or JSON value to a Decimal rounded half-up to 0.01.

    Floats go through their shortest repr so 0.1 becomes Decimal("0.1"),
    not the binary expansion. Blank strings count as zero, matching how
    an empty form field was read.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("Amount must be a number")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        try:
            amount = Decimal(text or "0")
        except InvalidOperation as e:
            raise ValueError(f"Not a valid amount: {value!r}") from e
    else:
        raise ValueError(f"Not a valid amount: {value!r}")

    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    if abs(amount) >= MAX_AMOUNT:
        raise ValueError(f"Amount too large: {value!r}")
    return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


Money = Annotated[
    Decimal,
    BeforeValidator(round_money),
    PlainSerializer(float, return_type=float, when_used="json"),
]


def new_record_id() -> str:
    """Opaque identifier for customers and records."""
    return uuid4().hex[:12]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class CashPocket(str, Enum):
    """
    The fixed set of places the shop holds money.

    DESIGN DECISION: A closed enumeration instead of free-text keys, so a
    mistyped pocket is rejected when it is parsed rather than creating a
    sixth balance nobody sees.
    """
    KALLA = "kalla"  # shop till
    HOME = "home"
    BANK = "bank"
    UPI = "upi"      # mobile wallet
    OTHER = "other"

    @classmethod
    def from_str(cls, value: Union["CashPocket", str]) -> "CashPocket":
        """Coerce arbitrary casing into a valid pocket."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError) as error:
            raise ValueError(f"Unsupported cash pocket: {value!r}") from error


class EntryKind(str, Enum):
    """Kinds of balance-affecting events on a customer account."""
    OPENING = "opening"
    CREDIT = "credit"
    PAYMENT = "payment"

    @property
    def sign(self) -> int:
        """+1 if the entry increases what the customer owes."""
        return -1 if self is EntryKind.PAYMENT else 1


class AdjustDirection(str, Enum):
    """Direction of a manual pocket adjustment."""
    ADD = "add"
    SUBTRACT = "subtract"

    @classmethod
    def from_str(cls, value: Union["AdjustDirection", str]) -> "AdjustDirection":
        if isinstance(value, cls):
            return value
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError) as error:
            raise ValueError(f"Unsupported adjustment direction: {value!r}") from error


def default_cash() -> dict[CashPocket, Decimal]:
    """All five pockets at zero."""
    return {pocket: ZERO for pocket in CashPocket}


def default_reminder_template(business_name: str = "Oil Murugan") -> str:
    return (
        f"Dear {{name}}, your outstanding at {business_name} is ₹{{balance}}. "
        f"Please pay when convenient. - {business_name}"
    )


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class LedgerEntry(BaseModel):
    """
    One balance-affecting event on a customer account.

    Entries are immutable once appended.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    kind: EntryKind = Field(..., alias="type")
    amount: Money
    entry_date: date = Field(..., alias="date")
    note: str = ""

    @property
    def signed_amount(self) -> Decimal:
        """Effect of this entry on the balance."""
        return self.amount * self.kind.sign


class Customer(BaseModel):
    """
    A credit customer.

    ``balance`` is stored alongside ``entries`` and both are updated
    together. ``ledger_balance`` recomputes the balance from entries so
    callers can detect drift in imported data.
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_record_id)
    name: str = Field(..., min_length=1)
    phone: Optional[str] = Field(default=None, alias="mobile")
    balance: Money = ZERO
    entries: list[LedgerEntry] = Field(default_factory=list)

    @field_validator("phone")
    @classmethod
    def blank_phone_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def ledger_balance(self) -> Decimal:
        """Balance recomputed from the entries."""
        total = sum((entry.signed_amount for entry in self.entries), ZERO)
        return total.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

    @property
    def balance_drift(self) -> Decimal:
        """Stored balance minus entry-derived balance (zero when consistent)."""
        return self.balance - self.ledger_balance


class Purchase(BaseModel):
    """Stock bought from a dealer, paid out of one cash pocket."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_record_id)
    dealer: str = Field(..., min_length=1)
    amount: Money
    pocket: CashPocket = Field(..., alias="source")
    purchase_date: date = Field(..., alias="date")


class Expense(BaseModel):
    """A shop expense paid out of one cash pocket."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_record_id)
    title: str = Field(..., min_length=1)
    amount: Money
    pocket: CashPocket = Field(..., alias="source")
    expense_date: date = Field(..., alias="date")


class StoreSettings(BaseModel):
    """User-editable settings kept inside the ledger document."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    reminder_template: str = Field(
        default_factory=default_reminder_template,
        alias="waTemplate",
        description="WhatsApp reminder text with {name} and {balance} placeholders",
    )


class LedgerDocument(BaseModel):
    """
    The whole persisted state of the shop.

    CRITICAL: This document is always written as one unit.
    There is no partial write of a single customer or pocket.

    Unknown top-level keys are kept (``extra="allow"``) so a backup made
    by a newer version survives a load/save cycle here.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    customers: list[Customer] = Field(default_factory=list)
    purchases: list[Purchase] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    cash: dict[CashPocket, Money] = Field(default_factory=default_cash)
    settings: StoreSettings = Field(default_factory=StoreSettings)
    recent: list[str] = Field(default_factory=list)

    @field_validator("cash")
    @classmethod
    def backfill_pockets(cls, v: dict[CashPocket, Decimal]) -> dict[CashPocket, Decimal]:
        """Every pocket is always present, in enumeration order."""
        return {pocket: v.get(pocket, ZERO) for pocket in CashPocket}

    def find_customer(self, customer_id: str) -> Optional[Customer]:
        return next((c for c in self.customers if c.id == customer_id), None)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialise with legacy key names, amounts as JSON numbers."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# STRUCTURED INPUTS
# =============================================================================
# One object per user action, validated as a whole before anything changes.
# Business rules (non-empty, positive, known pocket) live in the validator so
# they raise ledger errors rather than pydantic errors.

class CustomerInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ""
    phone: Optional[str] = None
    opening_balance: Money = ZERO


class CreditInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Money
    note: Optional[str] = None


class PaymentInput(BaseModel):
    """Amount, pocket and note for a received payment, captured together."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Money
    pocket: Union[CashPocket, str] = CashPocket.KALLA
    note: Optional[str] = None


class PurchaseInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    dealer: str = ""
    amount: Money
    pocket: Union[CashPocket, str] = CashPocket.KALLA
    purchase_date: Optional[date] = None


class ExpenseInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = ""
    amount: Money
    pocket: Union[CashPocket, str] = CashPocket.KALLA
    expense_date: Optional[date] = None


class PocketAdjustment(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    pocket: Union[CashPocket, str]
    amount: Money
    direction: Union[AdjustDirection, str] = AdjustDirection.ADD


# =============================================================================
# QUERY RESULTS
# =============================================================================

class LedgerTotals(BaseModel):
    """
    Dashboard figures.

    NOTE: ``total_expenses`` is all-time while ``today_purchases`` is for
    today only, as the shop dashboard has always shown them.
    ``today_expenses`` is provided for a like-for-like comparison.
    """
    as_of: date
    total_outstanding: Decimal
    today_purchases: Decimal
    total_expenses: Decimal
    today_expenses: Decimal
    total_cash: Decimal


class CustomerStatement(BaseModel):
    """A customer's entries in date order with their current balance."""
    customer_id: str
    name: str
    phone: Optional[str] = None
    balance: Decimal
    ledger_balance: Decimal
    entries: list[LedgerEntry] = Field(default_factory=list)
    generated_on: date

    @property
    def has_drift(self) -> bool:
        return self.balance != self.ledger_balance


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'balance_drift')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage snapshot validation.

    Stage 1: Schema validation (shape, types, required fields)
    Stage 2: Semantic validation (balance drift, negative pockets, duplicate ids)
    """

    schema_valid: bool
    semantic_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def warnings(self) -> list[str]:
        """Messages of warning-level issues."""
        return [issue.message for issue in self.issues if issue.severity == "warning"]
