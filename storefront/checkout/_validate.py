"""
Client-side format checks for checkout input.

Each check returns the first problem found, or None.
"""

from __future__ import annotations

import re

from storefront._errors import ValidationError
from storefront._types import AddressDraft
from storefront.checkout._types import PaymentDetails

_CARD = re.compile(r"\d{13,19}")
_EXPIRY = re.compile(r"(0[1-9]|1[0-2])/\d{2}")
_CVV = re.compile(r"\d{3,4}")

_ADDRESS_REQUIRED: tuple[tuple[str, str], ...] = (
    ("full_name", "Full name"),
    ("phone", "Phone number"),
    ("address_line1", "Address line 1"),
    ("city", "City"),
    ("state", "State"),
    ("postal_code", "Postal code"),
)


def validate_address(draft: AddressDraft) -> ValidationError | None:
    for name, label in _ADDRESS_REQUIRED:
        if not getattr(draft, name).strip():
            return ValidationError(f"{label} is required", field=name)
    return None


def validate_payment(payment: PaymentDetails) -> ValidationError | None:
    if not _CARD.fullmatch(payment.digits):
        return ValidationError("Card number must be 13 to 19 digits", field="card_number")
    if not payment.cardholder_name.strip():
        return ValidationError("Cardholder name is required", field="cardholder_name")
    if not _EXPIRY.fullmatch(payment.expiry.strip()):
        return ValidationError("Expiry must be MM/YY", field="expiry")
    if not _CVV.fullmatch(payment.cvv.strip()):
        return ValidationError("CVV must be 3 or 4 digits", field="cvv")
    return None


__all__ = ("validate_address", "validate_payment")
