"""
CartStore — in-memory cart lines kept in step with the gateway.

Every mutation runs in two phases:

    1. apply tentatively to the local lines (snapshot kept)
    2. send the write to the gateway
       Ok    → settle the returned row, then reload from the gateway
       Error → restore the snapshot, then reload from the gateway

The gateway is the source of truth; a reload always wins.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import datetime

from kungfu import Result, Ok, Error

from storefront._errors import CartError, GatewayError, ValidationError
from storefront._log import get_logger
from storefront._types import CartLine, CartLineId, Product, ProductId, User
from storefront.gateway import Gateway
from storefront.session import Session

log = get_logger("cart")


def clamp_quantity(quantity: int, stock: int | None) -> int:
    """Clamp into [1, stock]; only the lower bound without a known stock."""
    if stock is None:
        return max(1, quantity)
    return max(1, min(quantity, stock))


class CartStore:
    """
    Cart of the session's user.

    Example:
        cart = CartStore(gateway, session)
        await cart.refresh()
        await cart.add_line(ProductId("kettle"), 2)
        print(cart.count)
    """

    def __init__(self, gateway: Gateway, session: Session) -> None:
        self._gateway = gateway
        self._session = session
        self._lines: list[CartLine] = []

    # ═══════════════════════════════════════════════════════════════════════════
    # Reads
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def count(self) -> int:
        """Sum of quantities across all lines."""
        return sum(line.quantity for line in self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def line_for(self, product_id: ProductId) -> CartLine | None:
        for line in self._lines:
            if line.product_id == product_id:
                return line
        return None

    def get(self, line_id: CartLineId) -> CartLine | None:
        for line in self._lines:
            if line.id == line_id:
                return line
        return None

    # ═══════════════════════════════════════════════════════════════════════════
    # Sync
    # ═══════════════════════════════════════════════════════════════════════════

    async def refresh(self) -> Result[list[CartLine], GatewayError]:
        """Replace the local lines with the durable ones."""
        user = self._session.user
        if user is None:
            self._lines = []
            return Ok([])

        result = await self._gateway.list_cart_lines(user.id)
        match result:
            case Ok(lines):
                self._lines = list(lines)
            case Error(e):
                log.warning("gateway.error", operation=e.operation, error=e.message)
        return result

    def detach(self) -> None:
        """Drop the local view, e.g. on sign-out."""
        self._lines = []

    # ═══════════════════════════════════════════════════════════════════════════
    # Mutations
    # ═══════════════════════════════════════════════════════════════════════════

    async def add_line(
        self, product_id: ProductId, quantity: int = 1
    ) -> Result[CartLine | None, CartError]:
        """
        Add `quantity` of a product, merging into an existing line.

        Ok(None) without a signed-in user. The resulting quantity never
        exceeds the product's stock. Lines are reloaded first, so a line
        added elsewhere is merged into rather than duplicated.
        """
        user = self._session.user
        if user is None:
            return Ok(None)
        if quantity < 1:
            return Error(ValidationError("Quantity must be at least 1", field="quantity"))

        match await self._load_product(product_id):
            case Error(e):
                return Error(e)
            case Ok(product):
                pass

        if product.stock < 1:
            return Error(ValidationError(f"{product.name} is out of stock", field="product_id"))

        # merge against the durable lines; another session may have added this product
        match await self.refresh():
            case Error(e):
                return Error(e)

        existing = self.line_for(product_id)
        if existing is not None:
            target = clamp_quantity(existing.quantity + quantity, product.stock)
            result = await self._write_quantity(existing, target)
            match result:
                case Ok(line):
                    log.info("cart.line_updated", product_id=product_id.value, quantity=target)
                    return Ok(line)
                case Error(e):
                    return Error(e)

        target = clamp_quantity(quantity, product.stock)
        result = await self._insert(user, product, target)
        match result:
            case Ok(line):
                log.info("cart.line_added", product_id=product_id.value, quantity=target)
                return Ok(line)
            case Error(e):
                return Error(e)

    async def update_quantity(
        self, line_id: CartLineId, new_quantity: int
    ) -> Result[CartLine | None, CartError]:
        """
        Set a line's quantity, clamped to [1, stock].

        A quantity of zero or below removes the line and returns Ok(None).
        """
        if self._session.user is None:
            return Ok(None)
        if new_quantity <= 0:
            match await self.remove_line(line_id):
                case Ok(_):
                    return Ok(None)
                case Error(e):
                    return Error(e)

        line = self.get(line_id)
        if line is None:
            return Error(ValidationError("Cart line not found", field="line_id"))
        if line.stock is not None and line.stock < 1:
            return Error(ValidationError("Product is out of stock", field="quantity"))

        target = clamp_quantity(new_quantity, line.stock)
        result = await self._write_quantity(line, target)
        match result:
            case Ok(updated):
                log.info("cart.line_updated", line_id=line_id.value, quantity=target)
                return Ok(updated)
            case Error(e):
                return Error(e)

    async def remove_line(self, line_id: CartLineId) -> Result[None, GatewayError]:
        """Delete a line. Removing a line that is already gone is Ok."""
        if self._session.user is None:
            return Ok(None)

        snapshot = self.lines
        self._lines = [line for line in self._lines if line.id != line_id]

        result = await self._commit(
            snapshot,
            lambda: self._gateway.delete_cart_line(line_id),
        )
        match result:
            case Ok(existed):
                if existed:
                    log.info("cart.line_removed", line_id=line_id.value)
                return Ok(None)
            case Error(e):
                return Error(e)

    async def clear(self) -> Result[int, GatewayError]:
        """Delete every line of the current user. Returns how many went."""
        user = self._session.user
        if user is None:
            return Ok(0)

        snapshot = self.lines
        self._lines = []

        result = await self._commit(
            snapshot,
            lambda: self._gateway.delete_cart_lines(user.id),
        )
        match result:
            case Ok(removed):
                log.info("cart.cleared", user_id=user.id.value, removed=removed)
        return result

    # ═══════════════════════════════════════════════════════════════════════════
    # Two-phase plumbing
    # ═══════════════════════════════════════════════════════════════════════════

    async def _load_product(
        self, product_id: ProductId
    ) -> Result[Product, CartError]:
        match await self._gateway.get_product(product_id):
            case Ok(None):
                return Error(ValidationError("Product not found", field="product_id"))
            case Ok(product):
                return Ok(product)
            case Error(e):
                log.warning("gateway.error", operation=e.operation, error=e.message)
                return Error(e)

    async def _insert(
        self, user: User, product: Product, quantity: int
    ) -> Result[CartLine, GatewayError]:
        snapshot = self.lines
        now = datetime.now()
        provisional = CartLine(
            id=CartLineId(f"pending-{product.id.value}"),
            user_id=user.id,
            product_id=product.id,
            quantity=quantity,
            created_at=now,
            updated_at=now,
            product=product,
        )
        self._lines.append(provisional)

        def settle(line: CartLine) -> None:
            self._swap(provisional.id, line)

        return await self._commit(
            snapshot,
            lambda: self._gateway.insert_cart_line(user.id, product.id, quantity),
            settle,
        )

    async def _write_quantity(
        self, line: CartLine, quantity: int
    ) -> Result[CartLine | None, GatewayError]:
        snapshot = self.lines
        self._swap(line.id, replace(line, quantity=quantity))

        def settle(updated: CartLine | None) -> None:
            if updated is not None:
                self._swap(line.id, updated)

        return await self._commit(
            snapshot,
            lambda: self._gateway.update_cart_line(line.id, quantity),
            settle,
        )

    async def _commit[T](
        self,
        snapshot: tuple[CartLine, ...],
        write: Callable[[], Awaitable[Result[T, GatewayError]]],
        settle: Callable[[T], None] | None = None,
    ) -> Result[T, GatewayError]:
        result = await write()
        match result:
            case Ok(value):
                if settle is not None:
                    settle(value)
            case Error(e):
                self._lines = list(snapshot)
                log.warning(
                    "cart.reverted", operation=e.operation, error=e.message
                )
        await self.refresh()
        return result

    def _swap(self, line_id: CartLineId, line: CartLine) -> None:
        self._lines = [line if current.id == line_id else current for current in self._lines]


__all__ = ("CartStore", "clamp_quantity")
