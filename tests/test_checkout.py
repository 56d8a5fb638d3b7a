from dataclasses import replace
from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from storefront import CheckoutFlow, CheckoutStep
from storefront._errors import ConsistencyGap, GatewayError, ValidationError
from storefront._types import AddressId, OrderLineId, OrderStatus, ProductId
from storefront.checkout import validate_address, validate_payment

from conftest import err_value, ok_value

LAMP = ProductId("lamp")


@pytest.fixture
def flow(gateway, session, cart) -> CheckoutFlow:
    return CheckoutFlow(gateway, session, cart)


@pytest.fixture
async def ready(flow, cart, gateway, address_draft) -> CheckoutFlow:
    """Three lamps in the cart, an address saved and selected, at payment entry."""
    await cart.add_line(LAMP, 3)
    await flow.load_addresses()
    await flow.save_address(address_draft)
    ok_value(flow.continue_to_payment())
    gateway.calls.clear()
    return flow


# ═══════════════════════════════════════════════════════════════════════════════
# Address selection
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_no_saved_addresses_opens_form(flow):
    ok_value(await flow.load_addresses())

    assert flow.step is CheckoutStep.ADDRESS_FORM
    assert flow.selected_address is None


@pytest.mark.asyncio
async def test_first_address_becomes_default_and_selected(flow, address_draft):
    await flow.load_addresses()

    first = ok_value(await flow.save_address(address_draft))
    second = ok_value(await flow.save_address(replace(address_draft, full_name="Charles")))

    assert first.is_default
    assert not second.is_default
    assert flow.selected_address_id == second.id
    assert flow.step is CheckoutStep.ADDRESS_SELECTION


@pytest.mark.asyncio
async def test_address_saved_from_unloaded_flow_is_not_default(
    flow, gateway, session, cart, address_draft
):
    await flow.load_addresses()
    ok_value(await flow.save_address(address_draft))

    other = CheckoutFlow(gateway, session, cart)
    saved = ok_value(await other.save_address(replace(address_draft, full_name="Charles")))

    assert not saved.is_default
    stored = ok_value(await gateway.list_addresses(session.user.id))
    assert [a.is_default for a in stored].count(True) == 1


@pytest.mark.asyncio
async def test_load_preselects_default(flow, gateway, session, address_draft):
    default = ok_value(await gateway.insert_address(session.user.id, address_draft))
    await gateway.insert_address(session.user.id, replace(address_draft, full_name="Other"))

    addresses = ok_value(await flow.load_addresses())

    assert addresses[0].id == default.id
    assert flow.selected_address_id == default.id
    assert flow.step is CheckoutStep.ADDRESS_SELECTION


@pytest.mark.asyncio
async def test_incomplete_address_is_refused(flow, gateway, address_draft):
    await flow.load_addresses()

    error = err_value(await flow.save_address(replace(address_draft, city="  ")))

    assert isinstance(error, ValidationError)
    assert error.field == "city"
    assert gateway.writes() == []
    assert flow.step is CheckoutStep.ADDRESS_FORM


@pytest.mark.asyncio
async def test_address_form_can_be_cancelled(flow, address_draft):
    await flow.load_addresses()
    await flow.save_address(address_draft)

    ok_value(flow.open_address_form())
    assert flow.step is CheckoutStep.ADDRESS_FORM
    ok_value(flow.cancel_address_form())
    assert flow.step is CheckoutStep.ADDRESS_SELECTION


@pytest.mark.asyncio
async def test_select_unknown_address_is_refused(flow, address_draft):
    await flow.load_addresses()
    await flow.save_address(address_draft)

    assert isinstance(err_value(flow.select_address(AddressId("elsewhere"))), ValidationError)


@pytest.mark.asyncio
async def test_continue_requires_selected_address(flow):
    flow.step = CheckoutStep.ADDRESS_SELECTION

    assert isinstance(err_value(flow.continue_to_payment()), ValidationError)
    assert flow.step is CheckoutStep.ADDRESS_SELECTION


@pytest.mark.asyncio
async def test_signed_out_user_cannot_check_out(gateway, anonymous, cart):
    flow = CheckoutFlow(gateway, anonymous, cart)

    assert isinstance(err_value(await flow.load_addresses()), ValidationError)


# ═══════════════════════════════════════════════════════════════════════════════
# Refusals
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_empty_cart_refused_before_any_write(flow, gateway, address_draft, payment):
    await flow.load_addresses()
    await flow.save_address(address_draft)
    flow.continue_to_payment()
    gateway.calls.clear()

    error = err_value(await flow.place_order(payment))

    assert isinstance(error, ValidationError)
    assert error.message == "Your cart is empty"
    assert gateway.writes() == []
    assert flow.step is CheckoutStep.PAYMENT_ENTRY


@pytest.mark.asyncio
async def test_missing_address_refused_before_any_write(flow, cart, gateway, payment):
    await cart.add_line(LAMP, 1)
    gateway.calls.clear()

    error = err_value(await flow.place_order(payment))

    assert isinstance(error, ValidationError)
    assert error.field == "address_id"
    assert gateway.writes() == []
    assert gateway.orders == {}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("changes", "field"),
    [
        ({"card_number": "4242 4242"}, "card_number"),
        ({"card_number": "4242 4242 4242 4242 4242"}, "card_number"),
        ({"card_number": "4242-4242-4242-4242"}, "card_number"),
        ({"cardholder_name": " "}, "cardholder_name"),
        ({"expiry": "13/29"}, "expiry"),
        ({"expiry": "1229"}, "expiry"),
        ({"cvv": "12"}, "cvv"),
        ({"cvv": "12a"}, "cvv"),
    ],
)
async def test_malformed_payment_refused(ready, gateway, payment, changes, field):
    error = err_value(await ready.place_order(replace(payment, **changes)))

    assert isinstance(error, ValidationError)
    assert error.field == field
    assert gateway.writes() == []
    assert ready.step is CheckoutStep.PAYMENT_ENTRY


@pytest.mark.asyncio
async def test_submission_in_flight_is_refused(ready, gateway, payment):
    ready.step = CheckoutStep.SUBMITTING

    error = err_value(await ready.place_order(payment))

    assert "already" in error.message
    assert gateway.writes() == []


# ═══════════════════════════════════════════════════════════════════════════════
# Submission
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_successful_checkout(ready, cart, gateway, payment):
    order = ok_value(await ready.place_order(payment))

    assert ready.step is CheckoutStep.SUCCESS
    assert ready.order == order
    assert order.total_amount == Decimal("64.80")
    assert order.status is OrderStatus.PENDING
    assert order.payment_method == "card"
    assert order.address_id == ready.selected_address_id

    lines = ok_value(await gateway.list_order_lines(order.id))
    assert [(l.product_id, l.quantity, l.price) for l in lines] == [(LAMP, 3, Decimal("20.00"))]
    assert isinstance(lines[0].id, OrderLineId)

    assert cart.lines == ()
    assert cart.count == 0
    assert ready.cart_cleared is True
    assert gateway.calls[:3] == ["insert_order", "insert_order_lines", "delete_cart_lines"]


@pytest.mark.asyncio
async def test_total_reflects_cart_at_submission(ready, cart, payment):
    before = ready.summary().total
    await cart.add_line(ProductId("cable"), 1)

    order = ok_value(await ready.place_order(payment))

    assert order.total_amount > before
    assert order.total_amount == Decimal("75.60")


@pytest.mark.asyncio
async def test_order_failure_leaves_cart_untouched(ready, cart, gateway, payment):
    gateway.failing.add("insert_order")

    error = err_value(await ready.place_order(payment))

    assert isinstance(error, GatewayError)
    assert ready.step is CheckoutStep.FAILED
    assert ready.error == error
    assert cart.count == 3
    assert "insert_order_lines" not in gateway.calls
    assert "delete_cart_lines" not in gateway.calls


@pytest.mark.asyncio
async def test_line_failure_is_a_consistency_gap(ready, cart, gateway, payment):
    gateway.failing.add("insert_order_lines")

    with capture_logs() as logs:
        error = err_value(await ready.place_order(payment))

    assert isinstance(error, ConsistencyGap)
    assert error.order_id.value in gateway.orders
    assert gateway.order_lines == {}
    assert ready.step is CheckoutStep.FAILED
    assert cart.count == 3
    assert "delete_cart_lines" not in gateway.calls

    gaps = [e for e in logs if e["event"] == "checkout.consistency_gap"]
    assert len(gaps) == 1
    assert gaps[0]["log_level"] == "error"
    assert gaps[0]["order_id"] == error.order_id.value


@pytest.mark.asyncio
async def test_clear_failure_still_succeeds(ready, cart, gateway, payment):
    gateway.failing.add("delete_cart_lines")

    with capture_logs() as logs:
        order = ok_value(await ready.place_order(payment))

    assert ready.step is CheckoutStep.SUCCESS
    assert order.id.value in gateway.orders
    assert len(gateway.order_lines) == 1
    assert ready.cart_cleared is False
    assert cart.count == 3
    assert any(e["event"] == "checkout.cart_not_cleared" and e["log_level"] == "warning"
               for e in logs)


@pytest.mark.asyncio
async def test_retry_after_failure(ready, cart, gateway, payment):
    gateway.failing.add("insert_order")
    await ready.place_order(payment)
    gateway.failing.clear()

    ok_value(ready.retry_payment())
    assert ready.step is CheckoutStep.PAYMENT_ENTRY
    assert ready.error is None

    ok_value(await ready.place_order(payment))
    assert ready.step is CheckoutStep.SUCCESS
    assert cart.count == 0


@pytest.mark.asyncio
async def test_change_address_after_failure(ready, gateway, payment):
    gateway.failing.add("insert_order")
    await ready.place_order(payment)

    ok_value(ready.change_address())

    assert ready.step is CheckoutStep.ADDRESS_SELECTION
    assert ready.selected_address is not None


@pytest.mark.asyncio
async def test_retry_only_from_failed(ready):
    assert isinstance(err_value(ready.retry_payment()), ValidationError)


# ═══════════════════════════════════════════════════════════════════════════════
# Validators
# ═══════════════════════════════════════════════════════════════════════════════


def test_payment_validator_accepts_common_formats(payment):
    assert validate_payment(payment) is None
    assert validate_payment(replace(payment, card_number="4111111111111", cvv="1234")) is None
    assert validate_payment(replace(payment, expiry="01/30")) is None


def test_address_validator_reports_first_missing_field(address_draft):
    assert validate_address(address_draft) is None
    assert validate_address(replace(address_draft, full_name="", phone="")).field == "full_name"
