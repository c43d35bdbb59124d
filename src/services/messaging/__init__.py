"""Messaging services package."""

from src.services.messaging.whatsapp import (
    InvalidPhoneNumberError,
    WhatsAppReminderService,
)

__all__ = ["InvalidPhoneNumberError", "WhatsAppReminderService"]
