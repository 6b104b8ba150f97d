"""BDD tests for code-verified pickup and delivery."""

from dispatch.order.order import Order
from dispatch.order.status import UpdateOrderStatus
from dispatch.order.verification import verify_delivery, verify_pickup
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/pickup_handoff.feature")


def _wrong(code: str) -> str:
    return str((int(code) + 1) % 10**6).zfill(len(code))


@given(parsers.cfparse('"{partner_id}" entered the pickup code'), target_fixture="used_code")
def _(order_id, partner_id, code_channel):
    code = code_channel.last_code("Pickup")
    verify_pickup(order_id, code, partner_id)
    return code


@given("the parcel is out for delivery")
def _(order_id):
    for status in ("In_Transit", "Out_For_Delivery"):
        current_domain.process(UpdateOrderStatus(order_id=order_id, new_status=status), asynchronous=False)


@when(parsers.cfparse('"{partner_id}" enters the pickup code'))
def _(order_id, partner_id, code_channel, error):
    try:
        verify_pickup(order_id, code_channel.last_code("Pickup"), partner_id)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('"{partner_id}" enters the same pickup code again'))
def _(order_id, partner_id, used_code, error):
    try:
        verify_pickup(order_id, used_code, partner_id)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('"{partner_id}" enters a wrong pickup code'))
def _(order_id, partner_id, code_channel, error):
    try:
        verify_pickup(order_id, _wrong(code_channel.last_code("Pickup")), partner_id)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('"{partner_id}" enters the delivery code'))
def _(order_id, partner_id, code_channel, error):
    try:
        verify_delivery(order_id, code_channel.last_code("Delivery"), partner_id)
    except ValidationError as exc:
        error["exc"] = exc


@then("the pickup time is recorded")
def _(order_id):
    assert current_domain.repository_for(Order).get(order_id).picked_up_at is not None
