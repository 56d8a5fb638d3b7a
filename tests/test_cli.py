import pytest

from storefront.catalog import SortOrder
from storefront._types import ProductId
from storefront.cli import parse_count, parse_sort, pick_line


def test_parse_count():
    assert parse_count("3") == 3
    assert parse_count("-1") == -1

    with pytest.raises(ValueError, match="quantity must be a whole number"):
        parse_count("three")


@pytest.mark.asyncio
async def test_pick_line_is_one_based(cart):
    await cart.add_line(ProductId("lamp"))
    await cart.add_line(ProductId("cable"))

    assert pick_line(cart.lines, "2").product_id == ProductId("cable")
    with pytest.raises(ValueError, match="no cart line #3"):
        pick_line(cart.lines, "3")
    with pytest.raises(ValueError, match="no cart line #0"):
        pick_line(cart.lines, "0")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("featured", SortOrder.FEATURED),
        ("PRICE-LOW", SortOrder.PRICE_LOW),
        ("price-high", SortOrder.PRICE_HIGH),
        ("rating", SortOrder.RATING),
    ],
)
def test_parse_sort(text, expected):
    assert parse_sort(text) is expected


def test_parse_sort_lists_options():
    with pytest.raises(ValueError, match="price-low"):
        parse_sort("cheapest")
