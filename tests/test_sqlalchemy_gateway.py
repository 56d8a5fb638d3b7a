from decimal import Decimal

import pytest

from storefront._types import OrderDraft, OrderLineDraft, OrderLineId, ProductId
from storefront.gateway import (
    CATEGORIES,
    PRODUCTS,
    ProductFilter,
    ProductOrdering,
    SQLAlchemyGateway,
    create_database,
    seed_catalog,
)

from conftest import EMAIL, PASSWORD, err_value, ok_value


@pytest.fixture
async def db(tmp_path) -> SQLAlchemyGateway:
    session_factory, engine = await create_database(f"sqlite+aiosqlite:///{tmp_path}/shop.db")
    gateway = SQLAlchemyGateway(session_factory)
    ok_value(await seed_catalog(gateway))
    yield gateway
    await engine.dispose()


@pytest.fixture
async def user(db):
    ok_value(await db.sign_up(EMAIL, PASSWORD))
    return ok_value(await db.sign_in(EMAIL, PASSWORD))


@pytest.mark.asyncio
async def test_catalog_is_seeded(db):
    categories = ok_value(await db.list_categories())
    products = ok_value(await db.query_products(ProductFilter()))

    assert len(categories) == len(CATEGORIES)
    assert [c.name for c in categories] == sorted(c.name for c in CATEGORIES)
    assert len(products) == len(PRODUCTS)
    assert products[0].id == ProductId("novel")


@pytest.mark.asyncio
async def test_query_by_name_and_price(db):
    found = ok_value(await db.query_products(ProductFilter(
        name_contains="cAbLe", order_by=ProductOrdering.PRICE, descending=False,
    )))

    assert [p.id for p in found] == [ProductId("cable")]
    assert found[0].price == Decimal("9.99")


@pytest.mark.asyncio
@pytest.mark.parametrize("needle", ["%", "o_e", "\\"])
async def test_name_search_is_literal(db, needle):
    found = ok_value(await db.query_products(ProductFilter(name_contains=needle)))

    assert found == []


@pytest.mark.asyncio
async def test_product_round_trips_through_row(db):
    headphones = ok_value(await db.get_product(ProductId("headphones")))

    assert headphones.original_price == Decimal("99.99")
    assert headphones.features == ("Noise cancelling", "30h battery")
    assert len(headphones.images) == 2
    assert ok_value(await db.get_product(ProductId("missing"))) is None


@pytest.mark.asyncio
async def test_identity(db, user):
    assert user.email == EMAIL
    assert ok_value(await db.current_user()) == user

    assert err_value(await db.sign_up(EMAIL, PASSWORD)).operation == "sign_up"
    assert err_value(await db.sign_in(EMAIL, "not-the-one")).operation == "sign_in"

    ok_value(await db.sign_out())
    assert ok_value(await db.current_user()) is None


@pytest.mark.asyncio
async def test_cart_lines(db, user):
    line = ok_value(await db.insert_cart_line(user.id, ProductId("mug"), 2))
    assert line.product is not None

    duplicate = await db.insert_cart_line(user.id, ProductId("mug"), 1)
    assert err_value(duplicate).operation == "insert_cart_line"

    updated = ok_value(await db.update_cart_line(line.id, 5))
    assert updated.quantity == 5

    lines = ok_value(await db.list_cart_lines(user.id))
    assert [(l.product_id, l.quantity) for l in lines] == [(ProductId("mug"), 5)]

    assert ok_value(await db.delete_cart_line(line.id)) is True
    assert ok_value(await db.delete_cart_line(line.id)) is False


@pytest.mark.asyncio
async def test_clear_cart_counts_rows(db, user):
    await db.insert_cart_line(user.id, ProductId("mug"), 1)
    await db.insert_cart_line(user.id, ProductId("novel"), 1)

    assert ok_value(await db.delete_cart_lines(user.id)) == 2
    assert ok_value(await db.list_cart_lines(user.id)) == []


@pytest.mark.asyncio
async def test_addresses_default_first(db, user, address_draft):
    first = ok_value(await db.insert_address(user.id, address_draft))
    second = ok_value(await db.insert_address(user.id, address_draft))

    found = ok_value(await db.list_addresses(user.id))

    assert first.is_default and not second.is_default
    assert [a.id for a in found] == [first.id, second.id]
    assert [a.is_default for a in found] == [True, False]


@pytest.mark.asyncio
async def test_order_with_lines(db, user, address_draft):
    address = ok_value(await db.insert_address(user.id, address_draft))
    order = ok_value(await db.insert_order(OrderDraft(
        user_id=user.id,
        address_id=address.id,
        total_amount=Decimal("46.43"),
    )))
    ok_value(await db.insert_order_lines(order.id, [
        OrderLineDraft(ProductId("mug"), 2, Decimal("12.00")),
        OrderLineDraft(ProductId("novel"), 1, Decimal("14.99")),
    ]))

    orders = ok_value(await db.list_orders(user.id))
    lines = ok_value(await db.list_order_lines(order.id))

    assert [o.id for o in orders] == [order.id]
    assert orders[0].total_amount == Decimal("46.43")
    assert sorted(l.product_id.value for l in lines) == ["mug", "novel"]
    assert all(l.product is not None for l in lines)
    assert all(isinstance(l.id, OrderLineId) for l in lines)


@pytest.mark.asyncio
async def test_reviews_newest_first(db):
    found = ok_value(await db.list_reviews(ProductId("headphones"), 10))

    assert [r.id.value for r in found] == ["rev-2", "rev-1"]
