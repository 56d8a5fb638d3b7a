"""
Core types for storefront.

Re-exports from kungfu + domain records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# IDs
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class UserId:
    value: str


@dataclass(frozen=True, slots=True)
class ProductId:
    value: str


@dataclass(frozen=True, slots=True)
class CategoryId:
    value: str


@dataclass(frozen=True, slots=True)
class CartLineId:
    value: str


@dataclass(frozen=True, slots=True)
class AddressId:
    value: str


@dataclass(frozen=True, slots=True)
class OrderId:
    value: str


@dataclass(frozen=True, slots=True)
class OrderLineId:
    value: str


@dataclass(frozen=True, slots=True)
class ReviewId:
    value: str


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog Domain
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Category:
    id: CategoryId
    name: str
    slug: str
    description: str = ""


@dataclass(frozen=True, slots=True)
class Product:
    """Read-only from the core's perspective. Stock is owned externally."""

    id: ProductId
    category_id: CategoryId
    name: str
    price: Decimal
    stock: int
    description: str = ""
    original_price: Decimal | None = None
    image_url: str = ""
    images: tuple[str, ...] = ()
    rating: float = 0.0
    review_count: int = 0
    brand: str = ""
    features: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True, slots=True)
class Review:
    id: ReviewId
    product_id: ProductId
    user_id: UserId
    rating: int
    title: str
    comment: str
    verified_purchase: bool = False
    helpful_count: int = 0
    created_at: datetime = field(default_factory=datetime.now)


# ═══════════════════════════════════════════════════════════════════════════════
# Identity
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class User:
    id: UserId
    email: str


# ═══════════════════════════════════════════════════════════════════════════════
# Cart Domain
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartLine:
    """
    One product-and-quantity entry in a user's cart.

    `product` is the resolved catalog row, or None when the reference
    failed to resolve (such a line prices at zero).
    """

    id: CartLineId
    user_id: UserId
    product_id: ProductId
    quantity: int
    created_at: datetime
    updated_at: datetime
    product: Product | None = None

    @property
    def stock(self) -> int | None:
        return self.product.stock if self.product is not None else None


# ═══════════════════════════════════════════════════════════════════════════════
# Address Domain
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class AddressDraft:
    full_name: str
    address_line1: str
    city: str
    state: str
    postal_code: str
    phone: str
    address_line2: str = ""
    country: str = "United States"


@dataclass(frozen=True, slots=True)
class Address:
    """Immutable once created."""

    id: AddressId
    user_id: UserId
    full_name: str
    address_line1: str
    address_line2: str
    city: str
    state: str
    postal_code: str
    country: str
    phone: str
    is_default: bool
    created_at: datetime

    @classmethod
    def from_draft(
        cls,
        id: AddressId,
        user_id: UserId,
        draft: AddressDraft,
        is_default: bool,
        created_at: datetime,
    ) -> Address:
        return cls(
            id=id,
            user_id=user_id,
            full_name=draft.full_name,
            address_line1=draft.address_line1,
            address_line2=draft.address_line2,
            city=draft.city,
            state=draft.state,
            postal_code=draft.postal_code,
            country=draft.country,
            phone=draft.phone,
            is_default=is_default,
            created_at=created_at,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Order Domain
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class OrderDraft:
    user_id: UserId
    address_id: AddressId
    total_amount: Decimal
    payment_method: str = "card"
    status: OrderStatus = OrderStatus.PENDING


@dataclass(frozen=True, slots=True)
class Order:
    """Status is only changed by fulfillment, never by this package."""

    id: OrderId
    user_id: UserId
    address_id: AddressId
    total_amount: Decimal
    status: OrderStatus
    payment_method: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class OrderLineDraft:
    product_id: ProductId
    quantity: int
    price: Decimal


@dataclass(frozen=True, slots=True)
class OrderLine:
    """Priced snapshot of a CartLine at checkout time."""

    id: OrderLineId
    order_id: OrderId
    product_id: ProductId
    quantity: int
    price: Decimal
    created_at: datetime
    product: Product | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # IDs
    "UserId",
    "ProductId",
    "CategoryId",
    "CartLineId",
    "AddressId",
    "OrderId",
    "OrderLineId",
    "ReviewId",
    # Records
    "Category",
    "Product",
    "Review",
    "User",
    "CartLine",
    "AddressDraft",
    "Address",
    "OrderStatus",
    "OrderDraft",
    "Order",
    "OrderLineDraft",
    "OrderLine",
)
