"""
WhatsApp Reminder Links

Builds a click-to-chat link that opens WhatsApp with a payment reminder
already typed in. Nothing is sent from here: the shop owner presses send.

The message comes from the template stored in the ledger settings, with
``{name}`` and ``{balance}`` replaced. The destination is the customer's
mobile number reduced to digits, with the country code in front.

DESIGN DECISION: A number that is not exactly ten digits is refused
instead of producing a link to the wrong person.
"""

import re
from decimal import Decimal
from typing import Optional
from urllib.parse import quote

from src.config import MessagingSettings, get_settings
from src.ledger.errors import ValidationError
from src.ledger.formatting import format_plain_amount
from src.models.ledger import Customer, ValidationIssue

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


class InvalidPhoneNumberError(ValidationError):
    """The customer's stored number cannot be used for a reminder."""

    def __init__(self, customer_name: str, phone: Optional[str], digits_required: int):
        message = (
            f"{customer_name} has no valid {digits_required}-digit mobile number"
            + (f" (stored: {phone!r})" if phone else "")
        )
        super().__init__(message, [ValidationIssue(
            field="phone",
            issue_type="invalid_value",
            message=message,
            severity="error",
            suggested_fix="Edit the customer's mobile number",
        )])


class WhatsAppReminderService:
    """
    Builds reminder messages and wa.me links for customers.

    Pure: depends only on the customer's fields, the template, and settings.
    """

    def __init__(self, settings: Optional[MessagingSettings] = None):
        self._settings = settings or get_settings().messaging

    @staticmethod
    def normalize_phone(phone: Optional[str]) -> str:
        """Strip everything except digits."""
        return re.sub(r"\D", "", phone or "")

    @staticmethod
    def render_message(template: str, name: str, balance: Decimal) -> str:
        """Fill every ``{name}`` and ``{balance}`` placeholder."""
        return (
            template
            .replace("{name}", name)
            .replace("{balance}", format_plain_amount(balance))
        )

    def build_link(self, customer: Customer, template: str) -> str:
        """
        Build the reminder link for one customer.

        Raises:
            InvalidPhoneNumberError: If the number is not exactly the
                configured number of digits
        """
        digits = self.normalize_phone(customer.phone)
        if len(digits) != self._settings.phone_digits:
            raise InvalidPhoneNumberError(
                customer.name, customer.phone, self._settings.phone_digits
            )

        message = self.render_message(template, customer.name, customer.balance)
        base = self._settings.base_url.rstrip("/")
        return (
            f"{base}/{self._settings.country_code}{digits}"
            f"?text={quote(message, safe=_URI_COMPONENT_SAFE)}"
        )
