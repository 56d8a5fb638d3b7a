"""
CheckoutFlow — address selection, payment entry, order placement.

    ADDRESS_SELECTION ⇄ ADDRESS_FORM
            │ continue_to_payment()
            ▼
      PAYMENT_ENTRY ──place_order()──▶ SUBMITTING ──▶ SUCCESS
            ▲                              │
            │ retry_payment()              ▼
            └─────────────────────────── FAILED ──change_address()──▶ ADDRESS_SELECTION

Placing an order runs three steps in order: insert the Order, insert
its OrderLines, clear the cart. An Order whose lines failed is left in
place and reported as ConsistencyGap.
"""

from __future__ import annotations

from kungfu import Result, Ok, Error

from storefront._errors import (
    CheckoutError,
    ConsistencyGap,
    GatewayError,
    ValidationError,
)
from storefront._log import get_logger
from storefront._types import (
    Address,
    AddressDraft,
    AddressId,
    CartLine,
    Order,
    OrderDraft,
    OrderLineDraft,
)
from storefront.cart import CartStore
from storefront.checkout._steps import Step, StepFailure, run_chain
from storefront.checkout._types import CheckoutStep, PaymentDetails
from storefront.checkout._validate import validate_address, validate_payment
from storefront.gateway import Gateway
from storefront.lift import deferred
from storefront.pricing import (
    DEFAULT_POLICY,
    ZERO,
    PriceBreakdown,
    PricingPolicy,
    price,
    to_cents,
)
from storefront.session import Session

log = get_logger("checkout")


def order_line_drafts(lines: tuple[CartLine, ...]) -> list[OrderLineDraft]:
    """Snapshot cart lines at their current unit price."""
    return [
        OrderLineDraft(
            product_id=line.product_id,
            quantity=line.quantity,
            price=line.product.price if line.product is not None else ZERO,
        )
        for line in lines
    ]


class CheckoutFlow:
    """
    One checkout attempt for the session's user.

    Refusals (ValidationError) leave the state untouched and never reach
    the gateway.
    """

    def __init__(
        self,
        gateway: Gateway,
        session: Session,
        cart: CartStore,
        policy: PricingPolicy = DEFAULT_POLICY,
    ) -> None:
        self._gateway = gateway
        self._session = session
        self._cart = cart
        self._policy = policy

        self.step = CheckoutStep.ADDRESS_SELECTION
        self.addresses: tuple[Address, ...] = ()
        self.selected_address_id: AddressId | None = None
        self.order: Order | None = None
        self.error: CheckoutError | None = None
        # False after an order was placed but its cart lines could not be deleted
        self.cart_cleared = True

    # ═══════════════════════════════════════════════════════════════════════════
    # Reads
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def selected_address(self) -> Address | None:
        for address in self.addresses:
            if address.id == self.selected_address_id:
                return address
        return None

    def summary(self) -> PriceBreakdown:
        """Price of the cart as it is right now."""
        return price(self._cart.lines, self._policy)

    # ═══════════════════════════════════════════════════════════════════════════
    # Address selection
    # ═══════════════════════════════════════════════════════════════════════════

    async def load_addresses(self) -> Result[tuple[Address, ...], CheckoutError]:
        """
        Fetch saved addresses, default first.

        Preselects the default (or the first one); with none saved, opens
        the address form.
        """
        user = self._session.user
        if user is None:
            return Error(ValidationError("Please sign in to check out"))

        result = await self._gateway.list_addresses(user.id)
        match result:
            case Ok(found):
                self.addresses = tuple(found)
            case Error(e):
                log.warning("gateway.error", operation=e.operation, error=e.message)
                return Error(e)

        if not self.addresses:
            self.selected_address_id = None
            self._transition(CheckoutStep.ADDRESS_FORM)
            return Ok(self.addresses)

        if self.selected_address is None:
            default = next((a for a in self.addresses if a.is_default), self.addresses[0])
            self.selected_address_id = default.id
        return Ok(self.addresses)

    def open_address_form(self) -> Result[None, ValidationError]:
        if self.step is not CheckoutStep.ADDRESS_SELECTION:
            return Error(ValidationError("Addresses can only be added while choosing one"))
        self._transition(CheckoutStep.ADDRESS_FORM)
        return Ok(None)

    def cancel_address_form(self) -> Result[None, ValidationError]:
        if self.step is not CheckoutStep.ADDRESS_FORM:
            return Error(ValidationError("The address form is not open"))
        self._transition(CheckoutStep.ADDRESS_SELECTION)
        return Ok(None)

    async def save_address(self, draft: AddressDraft) -> Result[Address, CheckoutError]:
        """
        Persist a new address and select it.

        The user's first address becomes the default. The address stays
        saved whether or not the checkout is completed.
        """
        user = self._session.user
        if user is None:
            return Error(ValidationError("Please sign in to check out"))
        if (invalid := validate_address(draft)) is not None:
            return Error(invalid)

        result = await self._gateway.insert_address(user.id, draft)
        match result:
            case Ok(address):
                self.addresses = (*self.addresses, address)
                self.selected_address_id = address.id
                log.info("checkout.address_saved", address_id=address.id.value,
                         is_default=address.is_default)
                if self.step is CheckoutStep.ADDRESS_FORM:
                    self._transition(CheckoutStep.ADDRESS_SELECTION)
                return Ok(address)
            case Error(e):
                log.warning("gateway.error", operation=e.operation, error=e.message)
                return Error(e)

    def select_address(self, address_id: AddressId) -> Result[Address, ValidationError]:
        for address in self.addresses:
            if address.id == address_id:
                self.selected_address_id = address_id
                return Ok(address)
        return Error(ValidationError("Unknown address", field="address_id"))

    def continue_to_payment(self) -> Result[None, ValidationError]:
        if self.step is not CheckoutStep.ADDRESS_SELECTION:
            return Error(ValidationError("Choose an address first"))
        if self.selected_address is None:
            return Error(ValidationError("Please select a shipping address", field="address_id"))
        self._transition(CheckoutStep.PAYMENT_ENTRY)
        return Ok(None)

    # ═══════════════════════════════════════════════════════════════════════════
    # Placing the order
    # ═══════════════════════════════════════════════════════════════════════════

    async def place_order(self, payment: PaymentDetails) -> Result[Order, CheckoutError]:
        if (refusal := self._refusal(payment)) is not None:
            return Error(refusal)

        user = self._session.user
        address = self.selected_address
        assert user is not None and address is not None

        self._transition(CheckoutStep.SUBMITTING)
        self.error = None
        self.cart_cleared = True

        lines = self._cart.lines
        total = to_cents(price(lines, self._policy).total)
        draft = OrderDraft(user_id=user.id, address_id=address.id, total_amount=total)

        chain = (
            Step("order", deferred(lambda: self._insert_order(draft)))
            .then(lambda order: Step("lines", deferred(lambda: self._insert_lines(order, lines))))
            .then(lambda order: Step("clear", deferred(lambda: self._clear_cart(order))))
        )

        match await run_chain(chain):
            case Ok(done):
                self.order = done.value
                self._transition(CheckoutStep.SUCCESS)
                log.info(
                    "checkout.order_placed",
                    order_id=done.value.id.value,
                    total=str(done.value.total_amount),
                    lines=len(lines),
                )
                return Ok(done.value)
            case Error(failure):
                return Error(self._fail(failure))

    def retry_payment(self) -> Result[None, ValidationError]:
        if self.step is not CheckoutStep.FAILED:
            return Error(ValidationError("Nothing to retry"))
        self.error = None
        self._transition(CheckoutStep.PAYMENT_ENTRY)
        return Ok(None)

    def change_address(self) -> Result[None, ValidationError]:
        if self.step not in (CheckoutStep.FAILED, CheckoutStep.PAYMENT_ENTRY):
            return Error(ValidationError("Cannot change the address now"))
        self.error = None
        self._transition(CheckoutStep.ADDRESS_SELECTION)
        return Ok(None)

    # ═══════════════════════════════════════════════════════════════════════════
    # Internals
    # ═══════════════════════════════════════════════════════════════════════════

    def _refusal(self, payment: PaymentDetails) -> ValidationError | None:
        if self.step is CheckoutStep.SUBMITTING:
            return ValidationError("An order is already being placed")
        if self._session.user is None:
            return ValidationError("Please sign in to check out")
        if self.selected_address is None:
            return ValidationError("Please select a shipping address", field="address_id")
        if self._cart.is_empty:
            return ValidationError("Your cart is empty")
        if self.step is not CheckoutStep.PAYMENT_ENTRY:
            return ValidationError("Continue to payment first")
        return validate_payment(payment)

    async def _insert_order(self, draft: OrderDraft) -> Result[Order, GatewayError]:
        return await self._gateway.insert_order(draft)

    async def _insert_lines(
        self, order: Order, lines: tuple[CartLine, ...]
    ) -> Result[Order, ConsistencyGap]:
        result = await self._gateway.insert_order_lines(order.id, order_line_drafts(lines))
        match result:
            case Ok(_):
                return Ok(order)
            case Error(e):
                return Error(ConsistencyGap(
                    order_id=order.id,
                    message="order saved without its lines",
                    cause=e,
                ))

    async def _clear_cart(self, order: Order) -> Result[Order, GatewayError]:
        match await self._cart.clear():
            case Error(e):
                self.cart_cleared = False
                log.warning(
                    "checkout.cart_not_cleared",
                    order_id=order.id.value,
                    operation=e.operation,
                    error=e.message,
                )
        return Ok(order)

    def _fail(self, failure: StepFailure[CheckoutError]) -> CheckoutError:
        error = failure.error
        match error:
            case ConsistencyGap(order_id=order_id, cause=cause):
                log.error(
                    "checkout.consistency_gap",
                    order_id=order_id.value,
                    operation=cause.operation,
                    error=cause.message,
                    completed=list(failure.completed),
                )
            case GatewayError(operation=operation, message=message):
                log.warning("gateway.error", operation=operation, error=message,
                            step=failure.step_failed)
        self.error = error
        self._transition(CheckoutStep.FAILED)
        return error

    def _transition(self, to: CheckoutStep) -> None:
        log.info("checkout.transition", from_step=self.step.value, to_step=to.value)
        self.step = to


__all__ = ("CheckoutFlow", "order_line_drafts")
