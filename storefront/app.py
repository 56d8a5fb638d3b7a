"""
Storefront — wires session, cart, navigator and checkout over one gateway.

    store = Storefront(gateway, Settings())
    await store.start()
    await store.sign_in("ada@example.com", "secret1")
    await store.cart.add_line(ProductId("kettle"))

    match store.begin_checkout():
        case Ok(flow):
            await flow.load_addresses()
"""

from __future__ import annotations

from kungfu import Result, Ok, Error

from storefront import catalog
from storefront._errors import GatewayError, ValidationError
from storefront._types import Address, Product, ProductId, Review, User
from storefront.account import OrderWithLines, address_book, order_history
from storefront.cart import CartStore
from storefront.checkout import CheckoutFlow
from storefront.config import Settings
from storefront.gateway import Gateway
from storefront.navigator import Navigator
from storefront.pricing import PriceBreakdown, price
from storefront.session import Session


class Storefront:
    def __init__(self, gateway: Gateway, settings: Settings | None = None) -> None:
        self.settings = settings if settings is not None else Settings()
        self.gateway = gateway
        self.policy = self.settings.pricing_policy()

        self.session = Session(gateway)
        self.cart = CartStore(gateway, self.session)
        self.navigator = Navigator(self.settings.success_redirect_seconds)

    # ═══════════════════════════════════════════════════════════════════════════
    # Session
    # ═══════════════════════════════════════════════════════════════════════════

    async def start(self) -> Result[User | None, GatewayError]:
        """Resume a session the gateway already holds and load its cart."""
        result = await self.session.restore()
        if self.session.is_signed_in:
            await self.cart.refresh()
        return result

    async def sign_in(
        self, email: str, password: str
    ) -> Result[User, ValidationError | GatewayError]:
        """Sign in, then replace the local cart with the user's durable one."""
        result = await self.session.sign_in(email, password)
        match result:
            case Ok(_):
                await self.cart.refresh()
        return result

    async def sign_up(
        self, email: str, password: str
    ) -> Result[User, ValidationError | GatewayError]:
        return await self.session.sign_up(email, password)

    async def sign_out(self) -> Result[None, GatewayError]:
        result = await self.session.sign_out()
        match result:
            case Ok(_):
                self.cart.detach()
                self.navigator.redirect_home()
        return result

    # ═══════════════════════════════════════════════════════════════════════════
    # Catalog
    # ═══════════════════════════════════════════════════════════════════════════

    async def browse(
        self, query: catalog.ProductQuery | None = None
    ) -> Result[list[Product], GatewayError]:
        return await catalog.browse(
            self.gateway, query if query is not None else self.navigator.query()
        )

    async def product(self, product_id: ProductId) -> Result[Product | None, GatewayError]:
        result = await catalog.product_detail(self.gateway, product_id)
        match result:
            case Ok(found) if found is not None:
                self.navigator.open_product(product_id)
        return result

    async def reviews(self, product_id: ProductId) -> Result[list[Review], GatewayError]:
        return await catalog.reviews(self.gateway, product_id, self.settings.review_limit)

    # ═══════════════════════════════════════════════════════════════════════════
    # Cart + Checkout
    # ═══════════════════════════════════════════════════════════════════════════

    def breakdown(self) -> PriceBreakdown:
        return price(self.cart.lines, self.policy)

    def begin_checkout(self) -> Result[CheckoutFlow, ValidationError]:
        match self.navigator.proceed_to_checkout(self.session, self.cart):
            case Ok(_):
                return Ok(CheckoutFlow(self.gateway, self.session, self.cart, self.policy))
            case Error(e):
                return Error(e)

    def order_placed(self) -> float:
        """Show the success view; returns the redirect delay in seconds."""
        return self.navigator.checkout_succeeded()

    # ═══════════════════════════════════════════════════════════════════════════
    # Account
    # ═══════════════════════════════════════════════════════════════════════════

    async def order_history(
        self,
    ) -> Result[tuple[OrderWithLines, ...], ValidationError | GatewayError]:
        user = self.session.user
        if user is None:
            return Error(ValidationError("Please sign in to see your orders"))
        self.navigator.open_account()
        return await order_history(self.gateway, user.id)

    async def address_book(
        self,
    ) -> Result[tuple[Address, ...], ValidationError | GatewayError]:
        user = self.session.user
        if user is None:
            return Error(ValidationError("Please sign in to see your addresses"))
        return await address_book(self.gateway, user.id)


__all__ = ("Storefront",)
