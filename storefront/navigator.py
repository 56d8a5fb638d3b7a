"""
Navigator — which screen is showing, plus the browse parameters.
"""

from __future__ import annotations

from enum import Enum

from kungfu import Result, Ok, Error

from storefront._errors import ValidationError
from storefront._types import ProductId
from storefront.cart import CartStore
from storefront.catalog import ALL_CATEGORIES, ProductQuery
from storefront.session import Session


class View(Enum):
    PRODUCTS = "products"
    PRODUCT_DETAIL = "product-detail"
    CHECKOUT = "checkout"
    ACCOUNT = "account"
    ORDER_SUCCESS = "order-success"


class Navigator:
    def __init__(self, redirect_seconds: float = 3.0) -> None:
        self.view = View.PRODUCTS
        self.search = ""
        self.category = ALL_CATEGORIES
        self.product_id: ProductId | None = None
        self.cart_open = False
        self.redirect_seconds = redirect_seconds

    def query(self) -> ProductQuery:
        """ProductQuery for the current search and category."""
        return ProductQuery(search=self.search, category=self.category)

    def set_search(self, text: str) -> None:
        self.search = text
        self.view = View.PRODUCTS

    def set_category(self, slug: str) -> None:
        self.category = slug
        self.search = ""
        self.view = View.PRODUCTS

    def open_product(self, product_id: ProductId) -> None:
        self.product_id = product_id
        self.view = View.PRODUCT_DETAIL

    def back_to_products(self) -> None:
        self.product_id = None
        self.view = View.PRODUCTS

    def open_account(self) -> None:
        self.view = View.ACCOUNT

    def toggle_cart(self) -> bool:
        self.cart_open = not self.cart_open
        return self.cart_open

    def proceed_to_checkout(
        self, session: Session, cart: CartStore
    ) -> Result[None, ValidationError]:
        if not session.is_signed_in:
            return Error(ValidationError("Please sign in to proceed to checkout"))
        if cart.is_empty:
            return Error(ValidationError("Your cart is empty"))
        self.cart_open = False
        self.view = View.CHECKOUT
        return Ok(None)

    def checkout_succeeded(self) -> float:
        """Show the success screen. Returns seconds until redirect_home()."""
        self.view = View.ORDER_SUCCESS
        return self.redirect_seconds

    def redirect_home(self) -> None:
        self.product_id = None
        self.view = View.PRODUCTS


__all__ = ("View", "Navigator")
