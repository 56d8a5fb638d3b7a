"""
Checkout — address selection → payment entry → order placement.

    from storefront.checkout import CheckoutFlow, PaymentDetails

    flow = CheckoutFlow(gateway, session, cart)
    await flow.load_addresses()
    flow.continue_to_payment()

    match await flow.place_order(PaymentDetails("4242 4242 4242 4242", "Ada", "12/29", "123")):
        case Ok(order): ...
        case Error(ConsistencyGap() as gap): ...   # order exists, lines do not
        case Error(e): ...
"""

from storefront.checkout._types import CheckoutStep, PaymentDetails
from storefront.checkout._validate import validate_address, validate_payment
from storefront.checkout._steps import (
    Step,
    Chain,
    ChainResult,
    StepFailure,
    run_chain,
)
from storefront.checkout._flow import CheckoutFlow, order_line_drafts

__all__ = (
    # State machine
    "CheckoutFlow",
    "CheckoutStep",
    "PaymentDetails",
    "order_line_drafts",
    # Validation
    "validate_address",
    "validate_payment",
    # Step chains
    "Step",
    "Chain",
    "ChainResult",
    "StepFailure",
    "run_chain",
)
