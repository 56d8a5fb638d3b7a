"""
Catalog — product listing, categories, reviews.

Plain query-in, result-out functions. Nothing re-fetches on its own;
callers decide when to ask again.

    query = ProductQuery(search="mug", sort=SortOrder.PRICE_LOW)
    match await browse(gateway, query):
        case Ok(products): ...
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from kungfu import Result, Ok, Error

from storefront._errors import GatewayError
from storefront._types import Category, Product, ProductId, Review
from storefront.gateway import Gateway, ProductFilter, ProductOrdering

ALL_CATEGORIES = "all"
DEFAULT_PRICE_RANGE: tuple[Decimal, Decimal] = (Decimal("0"), Decimal("1000"))


class SortOrder(Enum):
    FEATURED = "featured"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    RATING = "rating"


_ORDERING: dict[SortOrder, tuple[ProductOrdering, bool]] = {
    SortOrder.FEATURED: (ProductOrdering.CREATED_AT, True),
    SortOrder.PRICE_LOW: (ProductOrdering.PRICE, False),
    SortOrder.PRICE_HIGH: (ProductOrdering.PRICE, True),
    SortOrder.RATING: (ProductOrdering.RATING, True),
}


@dataclass(frozen=True, slots=True)
class ProductQuery:
    search: str = ""
    category: str = ALL_CATEGORIES
    sort: SortOrder = SortOrder.FEATURED
    min_rating: float = 0.0
    price_range: tuple[Decimal, Decimal] = DEFAULT_PRICE_RANGE

    @property
    def narrows_price(self) -> bool:
        low, high = self.price_range
        return low > DEFAULT_PRICE_RANGE[0] or high < DEFAULT_PRICE_RANGE[1]


async def browse(
    gateway: Gateway, query: ProductQuery
) -> Result[list[Product], GatewayError]:
    """
    Products matching a query.

    Category slug "all", or one that matches no category, means every
    category. Search and sort run at the gateway; rating and price range
    are applied here.
    """
    category_id = None
    if query.category != ALL_CATEGORIES:
        match await gateway.list_categories():
            case Ok(found):
                category_id = next(
                    (c.id for c in found if c.slug == query.category), None
                )
            case Error(e):
                return Error(e)

    order_by, descending = _ORDERING[query.sort]
    search = query.search.strip()
    result = await gateway.query_products(ProductFilter(
        category_id=category_id,
        name_contains=search or None,
        order_by=order_by,
        descending=descending,
    ))

    match result:
        case Ok(products):
            return Ok([p for p in products if _keep(p, query)])
        case Error(e):
            return Error(e)


def _keep(product: Product, query: ProductQuery) -> bool:
    if product.rating < query.min_rating:
        return False
    if query.narrows_price:
        low, high = query.price_range
        return low <= product.price <= high
    return True


async def categories(gateway: Gateway) -> Result[list[Category], GatewayError]:
    return await gateway.list_categories()


async def reviews(
    gateway: Gateway, product_id: ProductId, limit: int = 10
) -> Result[list[Review], GatewayError]:
    """Newest reviews of a product."""
    return await gateway.list_reviews(product_id, limit)


async def product_detail(
    gateway: Gateway, product_id: ProductId
) -> Result[Product | None, GatewayError]:
    return await gateway.get_product(product_id)


def gallery(product: Product) -> tuple[str, ...]:
    """Main image first, then the extra ones, without repeats."""
    seen: dict[str, None] = {}
    for url in (product.image_url, *product.images):
        if url:
            seen.setdefault(url, None)
    return tuple(seen)


__all__ = (
    "ALL_CATEGORIES",
    "DEFAULT_PRICE_RANGE",
    "SortOrder",
    "ProductQuery",
    "browse",
    "categories",
    "reviews",
    "product_detail",
    "gallery",
)
