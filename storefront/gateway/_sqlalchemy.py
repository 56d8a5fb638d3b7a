"""
SQLAlchemy gateway — async tables for every capability the core needs.

Usage:
    session_factory, engine = await create_database("sqlite+aiosqlite:///shop.db")
    gateway = SQLAlchemyGateway(session_factory)
    try:
        ...
    finally:
        await engine.dispose()
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    delete,
    select,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from kungfu import Result, Ok, Error

from storefront._errors import GatewayError
from storefront._types import (
    Address,
    AddressDraft,
    AddressId,
    CartLine,
    CartLineId,
    Category,
    CategoryId,
    Order,
    OrderDraft,
    OrderId,
    OrderLine,
    OrderLineDraft,
    OrderLineId,
    OrderStatus,
    Product,
    ProductId,
    Review,
    ReviewId,
    User,
    UserId,
)
from storefront.gateway._auth import hash_password, verify_password
from storefront.gateway._protocol import ProductFilter, ProductOrdering
from storefront.lift import guarded


def _new_id() -> str:
    return str(uuid.uuid4())


def _escape_like(text: str) -> str:
    """Make % and _ match literally in a LIKE pattern."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# ═══════════════════════════════════════════════════════════════════════════════
# Tables
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)


class CategoryRow(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")


class ProductRow(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    category_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    original_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    image_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    brand: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    features: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)


class ReviewRow(Base):
    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    product_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    comment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    verified_purchase: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    helpful_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)


class CartItemRow(Base):
    """At most one row per (user, product)."""

    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("user_id", "product_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    product_id: Mapped[str] = mapped_column(String(36), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class AddressRow(Base):
    __tablename__ = "user_addresses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    address_line1: Mapped[str] = mapped_column(String(255), nullable=False)
    address_line2: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class OrderRow(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    address_id: Mapped[str] = mapped_column(String(36), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class OrderItemRow(Base):
    __tablename__ = "order_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    order_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("orders.id"), nullable=False, index=True
    )
    product_id: Mapped[str] = mapped_column(String(36), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Row ↔ Domain
# ═══════════════════════════════════════════════════════════════════════════════


def _to_product(row: ProductRow) -> Product:
    return Product(
        id=ProductId(row.id),
        category_id=CategoryId(row.category_id),
        name=row.name,
        price=Decimal(row.price),
        stock=row.stock,
        description=row.description,
        original_price=Decimal(row.original_price) if row.original_price is not None else None,
        image_url=row.image_url,
        images=tuple(row.images or ()),
        rating=row.rating,
        review_count=row.review_count,
        brand=row.brand,
        features=tuple(row.features or ()),
        created_at=row.created_at,
    )


def _from_product(product: Product) -> ProductRow:
    return ProductRow(
        id=product.id.value,
        category_id=product.category_id.value,
        name=product.name,
        description=product.description,
        price=product.price,
        original_price=product.original_price,
        image_url=product.image_url,
        images=list(product.images),
        stock=product.stock,
        rating=product.rating,
        review_count=product.review_count,
        brand=product.brand,
        features=list(product.features),
        created_at=product.created_at,
    )


def _to_cart_line(row: CartItemRow, product: ProductRow | None) -> CartLine:
    return CartLine(
        id=CartLineId(row.id),
        user_id=UserId(row.user_id),
        product_id=ProductId(row.product_id),
        quantity=row.quantity,
        created_at=row.created_at,
        updated_at=row.updated_at,
        product=_to_product(product) if product is not None else None,
    )


def _to_address(row: AddressRow) -> Address:
    return Address(
        id=AddressId(row.id),
        user_id=UserId(row.user_id),
        full_name=row.full_name,
        address_line1=row.address_line1,
        address_line2=row.address_line2,
        city=row.city,
        state=row.state,
        postal_code=row.postal_code,
        country=row.country,
        phone=row.phone,
        is_default=row.is_default,
        created_at=row.created_at,
    )


def _to_order(row: OrderRow) -> Order:
    return Order(
        id=OrderId(row.id),
        user_id=UserId(row.user_id),
        address_id=AddressId(row.address_id),
        total_amount=Decimal(row.total_amount),
        status=OrderStatus(row.status),
        payment_method=row.payment_method,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_order_line(row: OrderItemRow, product: ProductRow | None = None) -> OrderLine:
    return OrderLine(
        id=OrderLineId(row.id),
        order_id=OrderId(row.order_id),
        product_id=ProductId(row.product_id),
        quantity=row.quantity,
        price=Decimal(row.price),
        created_at=row.created_at,
        product=_to_product(product) if product is not None else None,
    )


def _to_review(row: ReviewRow) -> Review:
    return Review(
        id=ReviewId(row.id),
        product_id=ProductId(row.product_id),
        user_id=UserId(row.user_id),
        rating=row.rating,
        title=row.title,
        comment=row.comment,
        verified_purchase=row.verified_purchase,
        helpful_count=row.helpful_count,
        created_at=row.created_at,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Gateway
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyGateway:
    """
    Gateway over an async SQLAlchemy session factory.

    Every call runs in its own session; writes in their own transaction.
    Backend exceptions come back as Error(GatewayError).
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session = session_factory
        self._current: User | None = None

    # ═══════════════════════════════════════════════════════════════════════════
    # Identity
    # ═══════════════════════════════════════════════════════════════════════════

    async def current_user(self) -> Result[User | None, GatewayError]:
        return Ok(self._current)

    async def sign_up(self, email: str, password: str) -> Result[User, GatewayError]:
        key = email.strip().lower()

        async def _insert() -> User | None:
            async with self._session() as session, session.begin():
                taken = await session.scalar(select(UserRow.id).where(UserRow.email == key))
                if taken is not None:
                    return None
                row = UserRow(id=_new_id(), email=key, password_hash=hash_password(password))
                session.add(row)
                return User(UserId(row.id), key)

        result = await guarded("sign_up", _insert)
        match result:
            case Ok(None):
                return Error(GatewayError("sign_up", "User already registered"))
            case _:
                return result

    async def sign_in(self, email: str, password: str) -> Result[User, GatewayError]:
        key = email.strip().lower()

        async def _lookup() -> UserRow | None:
            async with self._session() as session:
                return await session.scalar(select(UserRow).where(UserRow.email == key))

        result = await guarded("sign_in", _lookup)
        match result:
            case Ok(row) if row is not None and verify_password(password, row.password_hash):
                self._current = User(UserId(row.id), row.email)
                return Ok(self._current)
            case Ok(_):
                return Error(GatewayError("sign_in", "Invalid login credentials"))
            case Error(e):
                return Error(e)

    async def sign_out(self) -> Result[None, GatewayError]:
        self._current = None
        return Ok(None)

    # ═══════════════════════════════════════════════════════════════════════════
    # Cart
    # ═══════════════════════════════════════════════════════════════════════════

    async def list_cart_lines(
        self, user_id: UserId
    ) -> Result[list[CartLine], GatewayError]:
        async def _select() -> list[CartLine]:
            stmt = (
                select(CartItemRow, ProductRow)
                .outerjoin(ProductRow, ProductRow.id == CartItemRow.product_id)
                .where(CartItemRow.user_id == user_id.value)
                .order_by(CartItemRow.created_at)
            )
            async with self._session() as session:
                rows = (await session.execute(stmt)).all()
                return [_to_cart_line(item, product) for item, product in rows]

        return await guarded("list_cart_lines", _select)

    async def insert_cart_line(
        self, user_id: UserId, product_id: ProductId, quantity: int
    ) -> Result[CartLine, GatewayError]:
        async def _insert() -> CartLine:
            now = datetime.now()
            row = CartItemRow(
                id=_new_id(),
                user_id=user_id.value,
                product_id=product_id.value,
                quantity=quantity,
                created_at=now,
                updated_at=now,
            )
            async with self._session() as session:
                async with session.begin():
                    session.add(row)
                product = await session.get(ProductRow, product_id.value)
                return _to_cart_line(row, product)

        return await guarded("insert_cart_line", _insert)

    async def update_cart_line(
        self, line_id: CartLineId, quantity: int
    ) -> Result[CartLine | None, GatewayError]:
        async def _update() -> CartLine | None:
            async with self._session() as session:
                async with session.begin():
                    row = await session.get(CartItemRow, line_id.value)
                    if row is None:
                        return None
                    row.quantity = quantity
                    row.updated_at = datetime.now()
                product = await session.get(ProductRow, row.product_id)
                return _to_cart_line(row, product)

        return await guarded("update_cart_line", _update)

    async def delete_cart_line(self, line_id: CartLineId) -> Result[bool, GatewayError]:
        async def _delete() -> bool:
            async with self._session() as session, session.begin():
                result: Any = await session.execute(
                    delete(CartItemRow).where(CartItemRow.id == line_id.value)
                )
                return bool(result.rowcount)

        return await guarded("delete_cart_line", _delete)

    async def delete_cart_lines(self, user_id: UserId) -> Result[int, GatewayError]:
        async def _delete() -> int:
            async with self._session() as session, session.begin():
                result: Any = await session.execute(
                    delete(CartItemRow).where(CartItemRow.user_id == user_id.value)
                )
                return int(result.rowcount or 0)

        return await guarded("delete_cart_lines", _delete)

    # ═══════════════════════════════════════════════════════════════════════════
    # Addresses
    # ═══════════════════════════════════════════════════════════════════════════

    async def list_addresses(
        self, user_id: UserId
    ) -> Result[list[Address], GatewayError]:
        async def _select() -> list[Address]:
            stmt = (
                select(AddressRow)
                .where(AddressRow.user_id == user_id.value)
                .order_by(AddressRow.is_default.desc(), AddressRow.created_at)
            )
            async with self._session() as session:
                return [_to_address(row) for row in await session.scalars(stmt)]

        return await guarded("list_addresses", _select)

    async def insert_address(
        self, user_id: UserId, draft: AddressDraft
    ) -> Result[Address, GatewayError]:
        async def _insert() -> Address:
            async with self._session() as session, session.begin():
                existing = await session.scalar(
                    select(AddressRow.id).where(AddressRow.user_id == user_id.value).limit(1)
                )
                address = Address.from_draft(
                    AddressId(_new_id()),
                    user_id,
                    draft,
                    is_default=existing is None,
                    created_at=datetime.now(),
                )
                session.add(AddressRow(
                    id=address.id.value,
                    user_id=user_id.value,
                    full_name=address.full_name,
                    address_line1=address.address_line1,
                    address_line2=address.address_line2,
                    city=address.city,
                    state=address.state,
                    postal_code=address.postal_code,
                    country=address.country,
                    phone=address.phone,
                    is_default=address.is_default,
                    created_at=address.created_at,
                ))
            return address

        return await guarded("insert_address", _insert)

    # ═══════════════════════════════════════════════════════════════════════════
    # Orders
    # ═══════════════════════════════════════════════════════════════════════════

    async def insert_order(self, draft: OrderDraft) -> Result[Order, GatewayError]:
        async def _insert() -> Order:
            now = datetime.now()
            row = OrderRow(
                id=_new_id(),
                user_id=draft.user_id.value,
                address_id=draft.address_id.value,
                total_amount=draft.total_amount,
                status=draft.status.value,
                payment_method=draft.payment_method,
                created_at=now,
                updated_at=now,
            )
            async with self._session() as session, session.begin():
                session.add(row)
            return _to_order(row)

        return await guarded("insert_order", _insert)

    async def insert_order_lines(
        self, order_id: OrderId, lines: Sequence[OrderLineDraft]
    ) -> Result[list[OrderLine], GatewayError]:
        async def _insert() -> list[OrderLine]:
            now = datetime.now()
            rows = [
                OrderItemRow(
                    id=_new_id(),
                    order_id=order_id.value,
                    product_id=line.product_id.value,
                    quantity=line.quantity,
                    price=line.price,
                    created_at=now,
                )
                for line in lines
            ]
            async with self._session() as session, session.begin():
                session.add_all(rows)
            return [_to_order_line(row) for row in rows]

        return await guarded("insert_order_lines", _insert)

    async def list_orders(self, user_id: UserId) -> Result[list[Order], GatewayError]:
        async def _select() -> list[Order]:
            stmt = (
                select(OrderRow)
                .where(OrderRow.user_id == user_id.value)
                .order_by(OrderRow.created_at.desc())
            )
            async with self._session() as session:
                return [_to_order(row) for row in await session.scalars(stmt)]

        return await guarded("list_orders", _select)

    async def list_order_lines(
        self, order_id: OrderId
    ) -> Result[list[OrderLine], GatewayError]:
        async def _select() -> list[OrderLine]:
            stmt = (
                select(OrderItemRow, ProductRow)
                .outerjoin(ProductRow, ProductRow.id == OrderItemRow.product_id)
                .where(OrderItemRow.order_id == order_id.value)
            )
            async with self._session() as session:
                rows = (await session.execute(stmt)).all()
                return [_to_order_line(item, product) for item, product in rows]

        return await guarded("list_order_lines", _select)

    # ═══════════════════════════════════════════════════════════════════════════
    # Catalog
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_product(
        self, product_id: ProductId
    ) -> Result[Product | None, GatewayError]:
        async def _get() -> Product | None:
            async with self._session() as session:
                row = await session.get(ProductRow, product_id.value)
                return _to_product(row) if row is not None else None

        return await guarded("get_product", _get)

    async def query_products(
        self, query: ProductFilter
    ) -> Result[list[Product], GatewayError]:
        async def _select() -> list[Product]:
            stmt = select(ProductRow)
            if query.category_id is not None:
                stmt = stmt.where(ProductRow.category_id == query.category_id.value)
            if query.name_contains:
                needle = _escape_like(query.name_contains)
                stmt = stmt.where(ProductRow.name.ilike(f"%{needle}%", escape="\\"))

            column: Any
            match query.order_by:
                case ProductOrdering.PRICE:
                    column = ProductRow.price
                case ProductOrdering.RATING:
                    column = ProductRow.rating
                case ProductOrdering.CREATED_AT:
                    column = ProductRow.created_at
            stmt = stmt.order_by(column.desc() if query.descending else column.asc())

            if query.limit is not None:
                stmt = stmt.limit(query.limit)
            async with self._session() as session:
                return [_to_product(row) for row in await session.scalars(stmt)]

        return await guarded("query_products", _select)

    async def list_categories(self) -> Result[list[Category], GatewayError]:
        async def _select() -> list[Category]:
            async with self._session() as session:
                rows = await session.scalars(select(CategoryRow).order_by(CategoryRow.name))
                return [
                    Category(CategoryId(r.id), r.name, r.slug, r.description)
                    for r in rows
                ]

        return await guarded("list_categories", _select)

    async def list_reviews(
        self, product_id: ProductId, limit: int
    ) -> Result[list[Review], GatewayError]:
        async def _select() -> list[Review]:
            stmt = (
                select(ReviewRow)
                .where(ReviewRow.product_id == product_id.value)
                .order_by(ReviewRow.created_at.desc())
                .limit(limit)
            )
            async with self._session() as session:
                return [_to_review(row) for row in await session.scalars(stmt)]

        return await guarded("list_reviews", _select)

    # ═══════════════════════════════════════════════════════════════════════════
    # Seeding
    # ═══════════════════════════════════════════════════════════════════════════

    async def seed(
        self,
        categories: Iterable[Category] = (),
        products: Iterable[Product] = (),
        reviews: Iterable[Review] = (),
    ) -> Result[None, GatewayError]:
        async def _insert() -> None:
            async with self._session() as session, session.begin():
                session.add_all(
                    CategoryRow(id=c.id.value, name=c.name, slug=c.slug, description=c.description)
                    for c in categories
                )
                session.add_all(_from_product(p) for p in products)
                session.add_all(
                    ReviewRow(
                        id=r.id.value,
                        product_id=r.product_id.value,
                        user_id=r.user_id.value,
                        rating=r.rating,
                        title=r.title,
                        comment=r.comment,
                        verified_purchase=r.verified_purchase,
                        helpful_count=r.helpful_count,
                        created_at=r.created_at,
                    )
                    for r in reviews
                )

        return await guarded("seed", _insert)


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create schema and return (session_factory, engine)."""
    engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


__all__ = (
    "Base",
    "SQLAlchemyGateway",
    "create_database",
)
