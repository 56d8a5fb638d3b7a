"""
Checkout types — states and payment input.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CheckoutStep(Enum):
    ADDRESS_SELECTION = "address_selection"
    ADDRESS_FORM = "address_form"
    PAYMENT_ENTRY = "payment_entry"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PaymentDetails:
    """
    Card fields as typed by the user.

    Format-checked only; never stored or sent anywhere.
    """

    card_number: str
    cardholder_name: str
    expiry: str
    cvv: str

    @property
    def digits(self) -> str:
        return self.card_number.replace(" ", "")

    @property
    def last_four(self) -> str:
        return self.digits[-4:]

    def __repr__(self) -> str:
        return f"PaymentDetails(card=****{self.last_four}, name={self.cardholder_name!r})"


__all__ = ("CheckoutStep", "PaymentDetails")
