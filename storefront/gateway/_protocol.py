"""
Gateway — the remote persistence and identity service, as a protocol.

All methods return Result for explicit error handling.
Request/response only; no streaming, no retries.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from kungfu import Result

from storefront._errors import GatewayError
from storefront._types import (
    Address,
    AddressDraft,
    CartLine,
    CartLineId,
    Category,
    CategoryId,
    Order,
    OrderDraft,
    OrderId,
    OrderLine,
    OrderLineDraft,
    Product,
    ProductId,
    Review,
    User,
    UserId,
)

# ═══════════════════════════════════════════════════════════════════════════════
# Product Filter: what the gateway can filter/sort/limit on
# ═══════════════════════════════════════════════════════════════════════════════


class ProductOrdering(Enum):
    CREATED_AT = "created_at"
    PRICE = "price"
    RATING = "rating"


@dataclass(frozen=True, slots=True)
class ProductFilter:
    category_id: CategoryId | None = None
    name_contains: str | None = None
    order_by: ProductOrdering = ProductOrdering.CREATED_AT
    descending: bool = True
    limit: int | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Gateway Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class Gateway(Protocol):
    """
    Remote data gateway protocol.

    Example — wrapping a hosted backend client:

        class HostedGateway:
            async def list_cart_lines(self, user_id):
                try:
                    rows = await client.table("cart_items").select("*, product:products(*)") \\
                        .eq("user_id", user_id.value).execute()
                    return Ok([to_cart_line(r) for r in rows.data])
                except Exception as e:
                    return Error(GatewayError("list_cart_lines", str(e), e))

            # ... other methods
    """

    # --- identity -----------------------------------------------------------

    async def current_user(self) -> Result[User | None, GatewayError]:
        """User of the active session, Ok(None) when signed out."""
        ...

    async def sign_up(self, email: str, password: str) -> Result[User, GatewayError]:
        ...

    async def sign_in(self, email: str, password: str) -> Result[User, GatewayError]:
        ...

    async def sign_out(self) -> Result[None, GatewayError]:
        ...

    # --- cart ---------------------------------------------------------------

    async def list_cart_lines(
        self, user_id: UserId
    ) -> Result[list[CartLine], GatewayError]:
        """Lines with products resolved (None where the product is gone)."""
        ...

    async def insert_cart_line(
        self, user_id: UserId, product_id: ProductId, quantity: int
    ) -> Result[CartLine, GatewayError]:
        """Fails when a line for (user, product) already exists."""
        ...

    async def update_cart_line(
        self, line_id: CartLineId, quantity: int
    ) -> Result[CartLine | None, GatewayError]:
        """Ok(None) when the line does not exist."""
        ...

    async def delete_cart_line(self, line_id: CartLineId) -> Result[bool, GatewayError]:
        """Ok(True) if the line existed."""
        ...

    async def delete_cart_lines(self, user_id: UserId) -> Result[int, GatewayError]:
        """Delete every line of a user. Returns count."""
        ...

    # --- addresses ----------------------------------------------------------

    async def list_addresses(
        self, user_id: UserId
    ) -> Result[list[Address], GatewayError]:
        """Default address first."""
        ...

    async def insert_address(
        self, user_id: UserId, draft: AddressDraft
    ) -> Result[Address, GatewayError]:
        """The user's first address becomes the default."""
        ...

    # --- orders -------------------------------------------------------------

    async def insert_order(self, draft: OrderDraft) -> Result[Order, GatewayError]:
        ...

    async def insert_order_lines(
        self, order_id: OrderId, lines: Sequence[OrderLineDraft]
    ) -> Result[list[OrderLine], GatewayError]:
        """Single batch insert; all or nothing."""
        ...

    async def list_orders(self, user_id: UserId) -> Result[list[Order], GatewayError]:
        """Newest first."""
        ...

    async def list_order_lines(
        self, order_id: OrderId
    ) -> Result[list[OrderLine], GatewayError]:
        ...

    # --- catalog ------------------------------------------------------------

    async def get_product(
        self, product_id: ProductId
    ) -> Result[Product | None, GatewayError]:
        ...

    async def query_products(
        self, query: ProductFilter
    ) -> Result[list[Product], GatewayError]:
        ...

    async def list_categories(self) -> Result[list[Category], GatewayError]:
        """Ordered by name."""
        ...

    async def list_reviews(
        self, product_id: ProductId, limit: int
    ) -> Result[list[Review], GatewayError]:
        """Newest first."""
        ...


__all__ = (
    "ProductOrdering",
    "ProductFilter",
    "Gateway",
)
