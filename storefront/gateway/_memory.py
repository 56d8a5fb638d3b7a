"""
In-memory gateway.

Note: single process only. No persistence, nothing survives a restart.
Used by tests and as a stand-in backend.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import datetime

from kungfu import Result, Ok, Error

from storefront._errors import GatewayError
from storefront._types import (
    Address,
    AddressDraft,
    AddressId,
    CartLine,
    CartLineId,
    Category,
    Order,
    OrderDraft,
    OrderId,
    OrderLine,
    OrderLineDraft,
    OrderLineId,
    Product,
    ProductId,
    Review,
    User,
    UserId,
)
from storefront.gateway._auth import hash_password, verify_password
from storefront.gateway._protocol import ProductFilter, ProductOrdering


class MemoryGateway:
    """
    Dict-backed gateway.

    Example:
        gateway = MemoryGateway()
        gateway.seed(categories=[...], products=[...])
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._counter = 0

        self.users: dict[str, tuple[User, str]] = {}
        self.current: User | None = None

        self.categories: dict[str, Category] = {}
        self.products: dict[str, Product] = {}
        self.reviews: dict[str, Review] = {}

        self.cart_lines: dict[str, CartLine] = {}
        self.addresses: dict[str, Address] = {}
        self.orders: dict[str, Order] = {}
        self.order_lines: dict[str, OrderLine] = {}

    def seed(
        self,
        categories: Iterable[Category] = (),
        products: Iterable[Product] = (),
        reviews: Iterable[Review] = (),
    ) -> None:
        for category in categories:
            self.categories[category.id.value] = category
        for product in products:
            self.products[product.id.value] = product
        for review in reviews:
            self.reviews[review.id.value] = review

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter:04d}"

    def _resolve(self, line: CartLine) -> CartLine:
        return replace(line, product=self.products.get(line.product_id.value))

    # ═══════════════════════════════════════════════════════════════════════════
    # Identity
    # ═══════════════════════════════════════════════════════════════════════════

    async def current_user(self) -> Result[User | None, GatewayError]:
        return Ok(self.current)

    async def sign_up(self, email: str, password: str) -> Result[User, GatewayError]:
        async with self._lock:
            key = email.strip().lower()
            if key in self.users:
                return Error(GatewayError("sign_up", "User already registered"))
            user = User(UserId(self._next_id("user")), key)
            self.users[key] = (user, hash_password(password))
            return Ok(user)

    async def sign_in(self, email: str, password: str) -> Result[User, GatewayError]:
        async with self._lock:
            entry = self.users.get(email.strip().lower())
            if entry is None or not verify_password(password, entry[1]):
                return Error(GatewayError("sign_in", "Invalid login credentials"))
            self.current = entry[0]
            return Ok(entry[0])

    async def sign_out(self) -> Result[None, GatewayError]:
        self.current = None
        return Ok(None)

    # ═══════════════════════════════════════════════════════════════════════════
    # Cart
    # ═══════════════════════════════════════════════════════════════════════════

    async def list_cart_lines(
        self, user_id: UserId
    ) -> Result[list[CartLine], GatewayError]:
        async with self._lock:
            lines = [
                self._resolve(line)
                for line in self.cart_lines.values()
                if line.user_id == user_id
            ]
            lines.sort(key=lambda line: line.created_at)
            return Ok(lines)

    async def insert_cart_line(
        self, user_id: UserId, product_id: ProductId, quantity: int
    ) -> Result[CartLine, GatewayError]:
        async with self._lock:
            for line in self.cart_lines.values():
                if line.user_id == user_id and line.product_id == product_id:
                    return Error(GatewayError(
                        "insert_cart_line",
                        f"duplicate cart line for product {product_id.value}",
                    ))
            now = datetime.now()
            line = CartLine(
                id=CartLineId(self._next_id("line")),
                user_id=user_id,
                product_id=product_id,
                quantity=quantity,
                created_at=now,
                updated_at=now,
            )
            self.cart_lines[line.id.value] = line
            return Ok(self._resolve(line))

    async def update_cart_line(
        self, line_id: CartLineId, quantity: int
    ) -> Result[CartLine | None, GatewayError]:
        async with self._lock:
            existing = self.cart_lines.get(line_id.value)
            if existing is None:
                return Ok(None)
            updated = replace(existing, quantity=quantity, updated_at=datetime.now())
            self.cart_lines[line_id.value] = updated
            return Ok(self._resolve(updated))

    async def delete_cart_line(self, line_id: CartLineId) -> Result[bool, GatewayError]:
        async with self._lock:
            return Ok(self.cart_lines.pop(line_id.value, None) is not None)

    async def delete_cart_lines(self, user_id: UserId) -> Result[int, GatewayError]:
        async with self._lock:
            doomed = [k for k, line in self.cart_lines.items() if line.user_id == user_id]
            for key in doomed:
                del self.cart_lines[key]
            return Ok(len(doomed))

    # ═══════════════════════════════════════════════════════════════════════════
    # Addresses
    # ═══════════════════════════════════════════════════════════════════════════

    async def list_addresses(
        self, user_id: UserId
    ) -> Result[list[Address], GatewayError]:
        async with self._lock:
            found = [a for a in self.addresses.values() if a.user_id == user_id]
            found.sort(key=lambda a: (not a.is_default, a.created_at))
            return Ok(found)

    async def insert_address(
        self, user_id: UserId, draft: AddressDraft
    ) -> Result[Address, GatewayError]:
        async with self._lock:
            first = not any(a.user_id == user_id for a in self.addresses.values())
            address = Address.from_draft(
                AddressId(self._next_id("addr")),
                user_id,
                draft,
                is_default=first,
                created_at=datetime.now(),
            )
            self.addresses[address.id.value] = address
            return Ok(address)

    # ═══════════════════════════════════════════════════════════════════════════
    # Orders
    # ═══════════════════════════════════════════════════════════════════════════

    async def insert_order(self, draft: OrderDraft) -> Result[Order, GatewayError]:
        async with self._lock:
            now = datetime.now()
            order = Order(
                id=OrderId(self._next_id("ord")),
                user_id=draft.user_id,
                address_id=draft.address_id,
                total_amount=draft.total_amount,
                status=draft.status,
                payment_method=draft.payment_method,
                created_at=now,
                updated_at=now,
            )
            self.orders[order.id.value] = order
            return Ok(order)

    async def insert_order_lines(
        self, order_id: OrderId, lines: Sequence[OrderLineDraft]
    ) -> Result[list[OrderLine], GatewayError]:
        async with self._lock:
            if order_id.value not in self.orders:
                return Error(GatewayError(
                    "insert_order_lines", f"unknown order {order_id.value}"
                ))
            now = datetime.now()
            created = [
                OrderLine(
                    id=OrderLineId(self._next_id("item")),
                    order_id=order_id,
                    product_id=draft.product_id,
                    quantity=draft.quantity,
                    price=draft.price,
                    created_at=now,
                )
                for draft in lines
            ]
            for line in created:
                self.order_lines[line.id.value] = line
            return Ok(created)

    async def list_orders(self, user_id: UserId) -> Result[list[Order], GatewayError]:
        async with self._lock:
            found = [o for o in self.orders.values() if o.user_id == user_id]
            found.sort(key=lambda o: (o.created_at, o.id.value), reverse=True)
            return Ok(found)

    async def list_order_lines(
        self, order_id: OrderId
    ) -> Result[list[OrderLine], GatewayError]:
        async with self._lock:
            return Ok([
                replace(line, product=self.products.get(line.product_id.value))
                for line in self.order_lines.values()
                if line.order_id == order_id
            ])

    # ═══════════════════════════════════════════════════════════════════════════
    # Catalog
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_product(
        self, product_id: ProductId
    ) -> Result[Product | None, GatewayError]:
        return Ok(self.products.get(product_id.value))

    async def query_products(
        self, query: ProductFilter
    ) -> Result[list[Product], GatewayError]:
        found = list(self.products.values())
        if query.category_id is not None:
            found = [p for p in found if p.category_id == query.category_id]
        if query.name_contains:
            needle = query.name_contains.lower()
            found = [p for p in found if needle in p.name.lower()]

        match query.order_by:
            case ProductOrdering.PRICE:
                found.sort(key=lambda p: p.price, reverse=query.descending)
            case ProductOrdering.RATING:
                found.sort(key=lambda p: p.rating, reverse=query.descending)
            case ProductOrdering.CREATED_AT:
                found.sort(key=lambda p: p.created_at, reverse=query.descending)

        if query.limit is not None:
            found = found[: query.limit]
        return Ok(found)

    async def list_categories(self) -> Result[list[Category], GatewayError]:
        return Ok(sorted(self.categories.values(), key=lambda c: c.name))

    async def list_reviews(
        self, product_id: ProductId, limit: int
    ) -> Result[list[Review], GatewayError]:
        found = [r for r in self.reviews.values() if r.product_id == product_id]
        found.sort(key=lambda r: r.created_at, reverse=True)
        return Ok(found[:limit])


__all__ = ("MemoryGateway",)
