import pytest
from kungfu import Ok, Error

from storefront import CartStore
from storefront._errors import GatewayError, ValidationError
from storefront._types import CartLineId, ProductId
from storefront.cart import clamp_quantity

from conftest import err_value, ok_value

LAMP = ProductId("lamp")      # 20.00, stock 5
CABLE = ProductId("cable")    # 10.00, stock 2


# ═══════════════════════════════════════════════════════════════════════════════
# add_line
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_add_line_creates_line(cart, gateway):
    result = await cart.add_line(LAMP, 3)

    assert isinstance(result, Ok)
    assert cart.count == 3
    assert len(cart.lines) == 1
    assert cart.lines[0].product is not None
    assert len(gateway.cart_lines) == 1


@pytest.mark.asyncio
async def test_add_line_twice_accumulates_without_duplicates(cart, gateway):
    await cart.add_line(LAMP, 2)
    await cart.add_line(LAMP, 2)

    assert len(cart.lines) == 1
    assert cart.count == 4
    assert len(gateway.cart_lines) == 1


@pytest.mark.asyncio
async def test_add_line_never_exceeds_stock(cart):
    await cart.add_line(CABLE, 1)
    await cart.add_line(CABLE, 5)

    assert cart.count == 2

    await cart.add_line(LAMP, 9)
    assert cart.line_for(LAMP).quantity == 5


@pytest.mark.asyncio
async def test_add_line_without_session_is_noop(gateway, anonymous):
    cart = CartStore(gateway, anonymous)

    result = await cart.add_line(LAMP)

    assert ok_value(result) is None
    assert cart.count == 0
    assert gateway.writes() == []


@pytest.mark.asyncio
async def test_add_out_of_stock_product_is_refused(cart, gateway):
    result = await cart.add_line(ProductId("soldout"))

    match result:
        case Error(ValidationError() as e):
            assert "out of stock" in e.message
        case _:
            pytest.fail(f"expected ValidationError, got {result}")
    assert gateway.writes() == []


@pytest.mark.asyncio
async def test_add_unknown_product_is_refused(cart):
    result = await cart.add_line(ProductId("nope"))

    assert isinstance(err_value(result), ValidationError)


@pytest.mark.asyncio
async def test_failed_insert_reverts_local_state(cart, gateway):
    gateway.failing.add("insert_cart_line")

    result = await cart.add_line(LAMP, 2)

    assert isinstance(result, Error)
    assert isinstance(err_value(result), GatewayError)
    assert cart.lines == ()
    assert cart.count == 0


@pytest.mark.asyncio
async def test_add_line_merges_into_line_added_by_another_store(cart, gateway, session):
    await cart.add_line(LAMP, 1)
    other = CartStore(gateway, session)
    gateway.calls.clear()

    line = ok_value(await other.add_line(LAMP, 2))

    assert line.quantity == 3
    assert other.count == 3
    assert len(gateway.cart_lines) == 1
    assert gateway.writes() == ["update_cart_line"]


@pytest.mark.asyncio
async def test_add_line_from_stale_store_still_clamps_to_stock(cart, gateway, session):
    await cart.add_line(CABLE, 2)
    other = CartStore(gateway, session)

    line = ok_value(await other.add_line(CABLE, 1))

    assert line.quantity == 2
    assert len(gateway.cart_lines) == 1


@pytest.mark.asyncio
async def test_add_line_reload_failure_writes_nothing(cart, gateway):
    gateway.failing.add("list_cart_lines")

    error = err_value(await cart.add_line(LAMP))

    assert error.operation == "list_cart_lines"
    assert gateway.writes() == []


# ═══════════════════════════════════════════════════════════════════════════════
# update_quantity / remove_line / clear
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [1, 2, 3, 4, 5])
async def test_update_sets_exact_quantity_within_stock(cart, quantity):
    await cart.add_line(LAMP, 1)
    line = cart.line_for(LAMP)

    result = await cart.update_quantity(line.id, quantity)

    assert isinstance(result, Ok)
    assert cart.line_for(LAMP).quantity == quantity


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [0, -3])
async def test_update_to_zero_or_less_removes(cart, gateway, quantity):
    await cart.add_line(LAMP, 2)
    line = cart.line_for(LAMP)

    result = await cart.update_quantity(line.id, quantity)

    assert ok_value(result) is None
    assert cart.lines == ()
    assert gateway.cart_lines == {}


@pytest.mark.asyncio
async def test_update_clamps_to_stock(cart):
    await cart.add_line(CABLE, 1)
    line = cart.line_for(CABLE)

    await cart.update_quantity(line.id, 50)

    assert cart.line_for(CABLE).quantity == 2


@pytest.mark.asyncio
async def test_failed_update_reverts_to_durable_quantity(cart, gateway):
    await cart.add_line(LAMP, 2)
    line = cart.line_for(LAMP)
    gateway.failing.add("update_cart_line")

    result = await cart.update_quantity(line.id, 4)

    assert isinstance(result, Error)
    assert cart.line_for(LAMP).quantity == 2
    assert gateway.cart_lines[line.id.value].quantity == 2


@pytest.mark.asyncio
async def test_remove_line_is_idempotent(cart, gateway):
    await cart.add_line(LAMP, 1)
    await cart.add_line(CABLE, 1)
    line = cart.line_for(LAMP)

    first = await cart.remove_line(line.id)
    after_first = cart.lines
    second = await cart.remove_line(line.id)

    assert ok_value(first) is None
    assert ok_value(second) is None
    assert cart.lines == after_first
    assert [l.product_id for l in cart.lines] == [CABLE]


@pytest.mark.asyncio
async def test_remove_missing_line_is_ok(cart):
    assert ok_value(await cart.remove_line(CartLineId("never-existed"))) is None


@pytest.mark.asyncio
async def test_failed_remove_restores_line(cart, gateway):
    await cart.add_line(LAMP, 1)
    line = cart.line_for(LAMP)
    gateway.failing.add("delete_cart_line")

    result = await cart.remove_line(line.id)

    assert isinstance(result, Error)
    assert cart.line_for(LAMP) is not None


@pytest.mark.asyncio
async def test_clear_empties_cart(cart, gateway):
    await cart.add_line(LAMP, 2)
    await cart.add_line(CABLE, 1)

    result = await cart.clear()

    assert ok_value(result) == 2
    assert cart.count == 0
    assert gateway.cart_lines == {}


@pytest.mark.asyncio
async def test_count_follows_every_mutation(cart):
    await cart.add_line(LAMP, 2)
    assert cart.count == 2
    await cart.add_line(CABLE, 1)
    assert cart.count == 3
    await cart.update_quantity(cart.line_for(LAMP).id, 4)
    assert cart.count == 5


@pytest.mark.asyncio
async def test_refresh_picks_up_durable_changes(cart, gateway, session):
    await cart.add_line(LAMP, 1)
    await gateway.insert_cart_line(session.user.id, CABLE, 2)

    await cart.refresh()

    assert cart.count == 3


@pytest.mark.asyncio
async def test_detach_drops_local_view_only(cart, gateway):
    await cart.add_line(LAMP, 1)

    cart.detach()

    assert cart.count == 0
    assert len(gateway.cart_lines) == 1


def test_clamp_quantity():
    assert clamp_quantity(0, 5) == 1
    assert clamp_quantity(7, 5) == 5
    assert clamp_quantity(3, 5) == 3
    assert clamp_quantity(9, None) == 9
