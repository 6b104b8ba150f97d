"""Shared BDD fixtures and step definitions for the Dispatch domain."""

import pytest
from dispatch.order.assignment import AssignPartner
from dispatch.order.order import Order
from dispatch.order.payment import RecordPayment
from dispatch.otp.ledger import OTPLedger
from dispatch.partner.partner import Partner
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then


@pytest.fixture()
def error():
    """Container for the error raised by a When step."""
    return {"exc": None}


def _order(order_id) -> Order:
    return current_domain.repository_for(Order).get(order_id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a registered customer "{customer_id}"'))
def _(customers, customer_id):
    customers.register(customer_id)


@given(parsers.cfparse('an available partner "{partner_id}"'))
def _(register_partner, partner_id):
    register_partner(partner_id)


@given(
    parsers.cfparse('an available partner "{partner_id}" at {latitude:f}, {longitude:f}'),
)
def _(register_partner, partner_id, latitude, longitude):
    register_partner(partner_id, latitude=latitude, longitude=longitude)


@given(parsers.cfparse('a pending order for "{customer_id}"'), target_fixture="order_id")
def _(place_order, customer_id):
    return place_order(customer_id=customer_id)


@given(parsers.cfparse('the order is assigned to "{partner_id}"'))
def _(order_id, partner_id):
    current_domain.process(AssignPartner(order_id=order_id, partner_id=partner_id), asynchronous=False)


@given(parsers.cfparse('the payment is "{payment_status}"'))
def _(order_id, payment_status):
    current_domain.process(RecordPayment(order_id=order_id, payment_status=payment_status), asynchronous=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order_id, status):
    assert _order(order_id).status == status


@then(parsers.cfparse('the payment status is "{payment_status}"'))
def _(order_id, payment_status):
    assert _order(order_id).payment_status == payment_status


@then(parsers.cfparse('the order is assigned to "{partner_id}"'))
def _(order_id, partner_id):
    assert _order(order_id).partner_id == partner_id


@then(parsers.cfparse('the request fails with "{error_name}"'))
def _(error, error_name):
    assert error["exc"] is not None, "Expected the step to fail"
    assert isinstance(error["exc"], ValidationError)
    assert type(error["exc"]).__name__ == error_name


@then(parsers.cfparse('an active "{purpose}" code exists for the order'))
def _(order_id, purpose):
    order = _order(order_id)
    assert OTPLedger().active_record(str(order.customer_id), purpose, order_id=order_id) is not None


@then(parsers.cfparse('partner "{partner_id}" has {count:d} ongoing orders'))
def _(partner_id, count):
    assert current_domain.repository_for(Partner).get(partner_id).ongoing_orders == count
