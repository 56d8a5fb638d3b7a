from decimal import Decimal

import pytest

from storefront import catalog
from storefront._types import ProductId
from storefront.catalog import ProductQuery, SortOrder

from conftest import CATALOG, err_value, ok_value


def ids(products) -> list[str]:
    return [p.id.value for p in products]


@pytest.mark.asyncio
async def test_featured_is_newest_first(gateway):
    products = ok_value(await catalog.browse(gateway, ProductQuery()))

    assert ids(products) == ["atlas", "lamp", "radio", "cable", "soldout"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("sort", "expected"),
    [
        (SortOrder.PRICE_LOW, ["cable", "soldout", "lamp", "atlas", "radio"]),
        (SortOrder.PRICE_HIGH, ["radio", "atlas", "lamp", "soldout", "cable"]),
        (SortOrder.RATING, ["radio", "lamp", "atlas", "cable", "soldout"]),
    ],
)
async def test_sort_orders(gateway, sort, expected):
    products = ok_value(await catalog.browse(gateway, ProductQuery(sort=sort)))

    assert ids(products) == expected


@pytest.mark.asyncio
async def test_category_filter(gateway):
    products = ok_value(await catalog.browse(gateway, ProductQuery(category="books")))

    assert ids(products) == ["atlas"]


@pytest.mark.asyncio
async def test_unknown_category_means_all(gateway):
    products = ok_value(await catalog.browse(gateway, ProductQuery(category="garden")))

    assert len(products) == len(CATALOG)


@pytest.mark.asyncio
async def test_search_is_case_insensitive(gateway):
    products = ok_value(await catalog.browse(gateway, ProductQuery(search="  LAM ")))

    assert ids(products) == ["lamp"]


@pytest.mark.asyncio
async def test_min_rating_and_price_range(gateway):
    query = ProductQuery(
        min_rating=3.5,
        price_range=(Decimal("15"), Decimal("40")),
        sort=SortOrder.PRICE_LOW,
    )

    products = ok_value(await catalog.browse(gateway, query))

    assert ids(products) == ["lamp", "atlas"]


def test_default_price_range_does_not_narrow():
    assert not ProductQuery().narrows_price
    assert ProductQuery(price_range=(Decimal("0"), Decimal("999"))).narrows_price


@pytest.mark.asyncio
async def test_gateway_failure_is_reported(gateway):
    gateway.failing.add("query_products")

    error = err_value(await catalog.browse(gateway, ProductQuery()))

    assert error.operation == "query_products"


@pytest.mark.asyncio
async def test_categories_sorted_by_name(gateway):
    found = ok_value(await catalog.categories(gateway))

    assert [c.slug for c in found] == ["books", "gadgets"]


@pytest.mark.asyncio
async def test_reviews_newest_first_and_limited(gateway):
    found = ok_value(await catalog.reviews(gateway, ProductId("lamp")))

    assert len(found) == 10
    assert found[0].id.value == "r11"
    assert all(a.created_at >= b.created_at for a, b in zip(found, found[1:]))


def test_gallery_dedupes_and_keeps_order():
    atlas = next(p for p in CATALOG if p.id.value == "atlas")
    lamp = next(p for p in CATALOG if p.id.value == "lamp")

    assert catalog.gallery(atlas) == ("a.jpg", "b.jpg", "c.jpg")
    assert catalog.gallery(lamp) == ()
