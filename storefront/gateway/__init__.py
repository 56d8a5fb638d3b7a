"""
Gateway — the durable store and identity service the core depends on.

    from storefront import gateway as GW

    gateway = GW.MemoryGateway()
    gateway.seed(GW.CATEGORIES, GW.PRODUCTS, GW.REVIEWS)

    # or, against a real database
    session_factory, engine = await GW.create_database(url)
    gateway = GW.SQLAlchemyGateway(session_factory)
    await GW.seed_catalog(gateway)
"""

from storefront.gateway._protocol import (
    Gateway,
    ProductFilter,
    ProductOrdering,
)
from storefront.gateway._memory import MemoryGateway
from storefront.gateway._sqlalchemy import (
    Base,
    SQLAlchemyGateway,
    create_database,
)
from storefront.gateway._seed import (
    CATEGORIES,
    PRODUCTS,
    REVIEWS,
    seed_catalog,
)
from storefront.gateway._auth import hash_password, verify_password

__all__ = (
    # Protocol
    "Gateway",
    "ProductFilter",
    "ProductOrdering",
    # Implementations
    "MemoryGateway",
    "SQLAlchemyGateway",
    "Base",
    "create_database",
    # Demo data
    "CATEGORIES",
    "PRODUCTS",
    "REVIEWS",
    "seed_catalog",
    # Passwords
    "hash_password",
    "verify_password",
)
