from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from kungfu import Ok, Error

from storefront import CartStore, Session
from storefront._errors import GatewayError
from storefront._types import (
    AddressDraft,
    Category,
    CategoryId,
    Product,
    ProductId,
    Review,
    ReviewId,
    UserId,
)
from storefront.checkout import PaymentDetails
from storefront.gateway import MemoryGateway

T0 = datetime(2024, 1, 1, 12, 0)

GADGETS = Category(CategoryId("cat-gadgets"), "Gadgets", "gadgets")
BOOKS = Category(CategoryId("cat-books"), "Books", "books")


def make_product(
    pid: str,
    price: str,
    stock: int,
    *,
    category: Category = GADGETS,
    rating: float = 4.0,
    age_days: int = 0,
    **extra,
) -> Product:
    return Product(
        id=ProductId(pid),
        category_id=category.id,
        name=extra.pop("name", pid.title()),
        price=Decimal(price),
        stock=stock,
        rating=rating,
        created_at=T0 + timedelta(days=age_days),
        **extra,
    )


CATALOG = (
    make_product("lamp", "20.00", 5, rating=4.5, age_days=3),
    make_product("cable", "10.00", 2, rating=3.0, age_days=1),
    make_product("radio", "50.00", 3, rating=4.9, age_days=2,
                 original_price=Decimal("80.00")),
    make_product("soldout", "15.00", 0, rating=2.0, age_days=0),
    make_product("atlas", "35.00", 4, category=BOOKS, rating=3.8, age_days=4,
                 image_url="a.jpg", images=("a.jpg", "b.jpg", "a.jpg", "c.jpg")),
)

REVIEWS = tuple(
    Review(ReviewId(f"r{n}"), ProductId("lamp"), UserId("someone"), 5 - n % 2,
           f"Review {n}", "ok", created_at=T0 + timedelta(hours=n))
    for n in range(12)
)

EMAIL = "ada@example.com"
PASSWORD = "secret1"


# ═══════════════════════════════════════════════════════════════════════════════
# Failure injection
# ═══════════════════════════════════════════════════════════════════════════════

_FAILABLE = (
    "current_user",
    "sign_up",
    "sign_in",
    "sign_out",
    "list_cart_lines",
    "insert_cart_line",
    "update_cart_line",
    "delete_cart_line",
    "delete_cart_lines",
    "list_addresses",
    "insert_address",
    "insert_order",
    "insert_order_lines",
    "list_orders",
    "list_order_lines",
    "get_product",
    "query_products",
    "list_categories",
    "list_reviews",
)

WRITES = frozenset({
    "insert_cart_line",
    "update_cart_line",
    "delete_cart_line",
    "delete_cart_lines",
    "insert_address",
    "insert_order",
    "insert_order_lines",
})


def _failable(name: str):
    async def method(self, *args, **kwargs):
        self.calls.append(name)
        if name in self.failing:
            return Error(GatewayError(name, "injected failure"))
        return await getattr(MemoryGateway, name)(self, *args, **kwargs)

    method.__name__ = name
    return method


class FlakyGateway(MemoryGateway):
    """MemoryGateway that records calls and fails the operations named in `failing`."""

    def __init__(self) -> None:
        super().__init__()
        self.failing: set[str] = set()
        self.calls: list[str] = []

    def writes(self) -> list[str]:
        return [c for c in self.calls if c in WRITES]


for _name in _FAILABLE:
    setattr(FlakyGateway, _name, _failable(_name))


# ═══════════════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def gateway() -> FlakyGateway:
    gw = FlakyGateway()
    gw.seed(categories=(GADGETS, BOOKS), products=CATALOG, reviews=REVIEWS)
    return gw


@pytest.fixture
async def session(gateway) -> Session:
    await gateway.sign_up(EMAIL, PASSWORD)
    s = Session(gateway)
    await s.sign_in(EMAIL, PASSWORD)
    gateway.calls.clear()
    return s


@pytest.fixture
def anonymous(gateway) -> Session:
    return Session(gateway)


@pytest.fixture
def cart(gateway, session) -> CartStore:
    return CartStore(gateway, session)


@pytest.fixture
def payment() -> PaymentDetails:
    return PaymentDetails(
        card_number="4242 4242 4242 4242",
        cardholder_name="Ada Lovelace",
        expiry="12/29",
        cvv="123",
    )


@pytest.fixture
def address_draft() -> AddressDraft:
    return AddressDraft(
        full_name="Ada Lovelace",
        address_line1="12 St James's Square",
        city="London",
        state="LDN",
        postal_code="SW1Y 4JH",
        phone="+44 20 7946 0000",
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Result helpers
# ═══════════════════════════════════════════════════════════════════════════════


def ok_value(result):
    match result:
        case Ok(value):
            return value
        case _:
            pytest.fail(f"expected Ok, got {result!r}")


def err_value(result):
    match result:
        case Error(error):
            return error
        case _:
            pytest.fail(f"expected Error, got {result!r}")
