"""
Demo catalog for the shell and local databases.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from kungfu import Result

from storefront._errors import GatewayError
from storefront._types import (
    Category,
    CategoryId,
    Product,
    ProductId,
    Review,
    ReviewId,
    UserId,
)
from storefront.gateway._sqlalchemy import SQLAlchemyGateway

_EPOCH = datetime(2024, 1, 1, 9, 0)

ELECTRONICS = Category(CategoryId("cat-electronics"), "Electronics", "electronics",
                       "Headphones, speakers and gadgets")
HOME = Category(CategoryId("cat-home"), "Home & Kitchen", "home", "Things for the house")
APPAREL = Category(CategoryId("cat-apparel"), "Apparel", "apparel", "Clothing and bags")
BOOKS = Category(CategoryId("cat-books"), "Books", "books", "Paper and ink")

CATEGORIES: tuple[Category, ...] = (ELECTRONICS, HOME, APPAREL, BOOKS)


def _product(
    n: int,
    slug: str,
    category: Category,
    name: str,
    price: str,
    stock: int,
    *,
    original: str | None = None,
    rating: float = 0.0,
    reviews: int = 0,
    brand: str = "",
    features: tuple[str, ...] = (),
) -> Product:
    image = f"https://img.example.com/{slug}.jpg"
    return Product(
        id=ProductId(slug),
        category_id=category.id,
        name=name,
        price=Decimal(price),
        stock=stock,
        description=f"{name} from {brand or 'our shelves'}.",
        original_price=Decimal(original) if original is not None else None,
        image_url=image,
        images=(image, f"https://img.example.com/{slug}-2.jpg"),
        rating=rating,
        review_count=reviews,
        brand=brand,
        features=features,
        created_at=_EPOCH + timedelta(days=n),
    )


PRODUCTS: tuple[Product, ...] = (
    _product(1, "headphones", ELECTRONICS, "Wireless Headphones", "79.99", 12,
             original="99.99", rating=4.6, reviews=2, brand="Sonance",
             features=("Noise cancelling", "30h battery")),
    _product(2, "speaker", ELECTRONICS, "Pocket Speaker", "34.50", 3,
             rating=4.1, reviews=1, brand="Sonance"),
    _product(3, "cable", ELECTRONICS, "USB-C Cable", "9.99", 40,
             rating=3.8, brand="Wirely"),
    _product(4, "kettle", HOME, "Electric Kettle", "45.00", 7,
             original="60.00", rating=4.3, brand="Brewline",
             features=("1.7 L", "Auto shut-off")),
    _product(5, "mug", HOME, "Stoneware Mug", "12.00", 25,
             rating=4.8, reviews=1, brand="Kiln & Co"),
    _product(6, "backpack", APPAREL, "Canvas Backpack", "64.00", 0,
             rating=4.0, brand="Trailhead"),
    _product(7, "tshirt", APPAREL, "Cotton T-Shirt", "20.00", 5,
             rating=3.9, brand="Basics"),
    _product(8, "novel", BOOKS, "The Long Harbor", "14.99", 9,
             original="18.99", rating=4.5, brand="Quay Press"),
)

_REVIEWER = UserId("demo-reviewer")

REVIEWS: tuple[Review, ...] = (
    Review(ReviewId("rev-1"), ProductId("headphones"), _REVIEWER, 5, "Quiet bliss",
           "Blocks out the train completely.", verified_purchase=True,
           helpful_count=4, created_at=_EPOCH + timedelta(days=20)),
    Review(ReviewId("rev-2"), ProductId("headphones"), _REVIEWER, 4, "Good, heavy",
           "Great sound, a bit heavy after a few hours.",
           created_at=_EPOCH + timedelta(days=30)),
    Review(ReviewId("rev-3"), ProductId("speaker"), _REVIEWER, 4, "Loud for its size",
           "Fits in a jacket pocket.", verified_purchase=True,
           created_at=_EPOCH + timedelta(days=25)),
    Review(ReviewId("rev-4"), ProductId("mug"), _REVIEWER, 5, "Daily driver",
           "Keeps coffee warm.", created_at=_EPOCH + timedelta(days=22)),
)


async def seed_catalog(gateway: SQLAlchemyGateway) -> Result[None, GatewayError]:
    """Insert the demo categories, products and reviews."""
    return await gateway.seed(CATEGORIES, PRODUCTS, REVIEWS)


__all__ = (
    "CATEGORIES",
    "PRODUCTS",
    "REVIEWS",
    "seed_catalog",
)
