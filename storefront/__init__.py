"""
storefront — cart, pricing and checkout over a remote data gateway.

    from storefront import Storefront, Settings
    from storefront import gateway as GW     # Durable store + identity
    from storefront import checkout as CO    # Address → payment → order
    from storefront import catalog           # Browse, reviews
    from storefront import account           # Order history, address book
"""

from storefront import account
from storefront import cart
from storefront import catalog
from storefront import checkout
from storefront import gateway
from storefront import lift
from storefront import pricing
from storefront._errors import (
    CartError,
    CheckoutError,
    ConsistencyGap,
    GatewayError,
    ValidationError,
)
from storefront._log import configure_logging, get_logger
from storefront.app import Storefront
from storefront.cart import CartStore
from storefront.checkout import CheckoutFlow, CheckoutStep, PaymentDetails
from storefront.config import Settings
from storefront.navigator import Navigator, View
from storefront.pricing import PriceBreakdown, PricingPolicy, price
from storefront.session import Session

__version__ = "0.1.0"

__all__ = (
    # Subpackages
    "account",
    "cart",
    "catalog",
    "checkout",
    "gateway",
    "lift",
    "pricing",
    # Facade
    "Storefront",
    "Settings",
    "Session",
    "CartStore",
    "CheckoutFlow",
    "CheckoutStep",
    "PaymentDetails",
    "Navigator",
    "View",
    "PriceBreakdown",
    "PricingPolicy",
    "price",
    # Errors
    "ValidationError",
    "GatewayError",
    "ConsistencyGap",
    "CartError",
    "CheckoutError",
    # Logging
    "configure_logging",
    "get_logger",
)
