"""
Pricing — subtotal, shipping, tax, total for a set of cart lines.

Amounts stay exact Decimals throughout; rounding to cents happens only
when presenting or persisting a figure.

    breakdown = price(cart.lines)
    print(format_money(breakdown.total))
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from storefront._types import CartLine, Product

ZERO = Decimal("0")
CENT = Decimal("0.01")

# ═══════════════════════════════════════════════════════════════════════════════
# Policy
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PricingPolicy:
    """Flat-rate shipping and tax. No jurisdiction logic."""

    free_shipping_threshold: Decimal = Decimal("50.00")
    shipping_fee: Decimal = Decimal("5.99")
    tax_rate: Decimal = Decimal("0.08")


DEFAULT_POLICY = PricingPolicy()

# ═══════════════════════════════════════════════════════════════════════════════
# Breakdown
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PriceBreakdown:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    free_shipping_remaining: Decimal = ZERO

    @property
    def ships_free(self) -> bool:
        return self.shipping == ZERO

    def rounded(self) -> PriceBreakdown:
        """Copy with every figure rounded to cents."""
        return PriceBreakdown(
            subtotal=to_cents(self.subtotal),
            shipping=to_cents(self.shipping),
            tax=to_cents(self.tax),
            total=to_cents(self.total),
            free_shipping_remaining=to_cents(self.free_shipping_remaining),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# price()
# ═══════════════════════════════════════════════════════════════════════════════


def line_total(line: CartLine) -> Decimal:
    """Quantity × unit price; zero when the product did not resolve."""
    if line.product is None:
        return ZERO
    return line.product.price * line.quantity


def price(
    lines: Iterable[CartLine],
    policy: PricingPolicy = DEFAULT_POLICY,
) -> PriceBreakdown:
    """
    Price a set of cart lines.

    Shipping is waived only when the subtotal is strictly greater than
    the threshold.

    Example:
        >>> price([]).total
        Decimal('5.99')
    """
    subtotal = sum((line_total(line) for line in lines), ZERO)
    shipping = ZERO if subtotal > policy.free_shipping_threshold else policy.shipping_fee
    tax = subtotal * policy.tax_rate

    remaining = ZERO
    if ZERO < subtotal < policy.free_shipping_threshold:
        remaining = policy.free_shipping_threshold - subtotal

    return PriceBreakdown(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=subtotal + shipping + tax,
        free_shipping_remaining=remaining,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Presentation
# ═══════════════════════════════════════════════════════════════════════════════


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal) -> str:
    return f"${to_cents(amount):,.2f}"


def discount_percent(product: Product) -> int:
    """Whole percent off the original price; 0 without one."""
    original = product.original_price
    if original is None or original <= ZERO or original <= product.price:
        return 0
    pct = (original - product.price) / original * 100
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


__all__ = (
    "PricingPolicy",
    "DEFAULT_POLICY",
    "PriceBreakdown",
    "price",
    "line_total",
    "to_cents",
    "format_money",
    "discount_percent",
)
