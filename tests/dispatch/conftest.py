import json
import os

import pytest


@pytest.fixture(scope="session")
def _dispatch_domain(request):
    """Initialize the dispatch domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from dispatch.domain import dispatch

    dispatch.init()
    return dispatch


@pytest.fixture(scope="session", autouse=True)
def setup_db(_dispatch_domain):
    from dispatch.utils.db import drop_db, setup_db

    setup_db(_dispatch_domain)

    yield

    drop_db(_dispatch_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_dispatch_domain):
    """Push domain context and fresh adapters before each test, cleanup after."""
    from dispatch.channel import reset_code_channel
    from dispatch.customers import reset_customer_directory
    from dispatch.order.numbering import SequentialOrderNumbers, set_order_numbers
    from dispatch.partner_index import reset_partner_index

    reset_code_channel()
    reset_customer_directory()
    reset_partner_index()
    set_order_numbers(SequentialOrderNumbers())

    ctx = _dispatch_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


@pytest.fixture()
def code_channel(run_around_tests):
    from dispatch.channel import get_code_channel

    return get_code_channel()


@pytest.fixture()
def customers(run_around_tests):
    from dispatch.customers import get_customer_directory

    directory = get_customer_directory()
    directory.register("cust-001", "cust-002")
    return directory


# ---------------------------------------------------------------------------
# Shared builders
# ---------------------------------------------------------------------------
PICKUP = {"line1": "12 MG Road", "city": "Bengaluru", "latitude": 12.90, "longitude": 77.58}
DROPOFF = {"line1": "4 Church Street", "city": "Bengaluru", "latitude": 12.93, "longitude": 77.61}
ITEMS = [{"name": "Documents", "quantity": 1, "weight": 2.0, "value": 500.0}]


def _create_order_command(**overrides):
    from dispatch.order.creation import CreateOrder

    defaults = {
        "customer_id": "cust-001",
        "items": json.dumps(ITEMS),
        "pickup_address": json.dumps(PICKUP),
        "delivery_address": json.dumps(DROPOFF),
        "tier": "Standard",
        "payment_method": "UPI",
    }
    defaults.update(overrides)
    return CreateOrder(**defaults)


def _place_order(**overrides) -> str:
    from protean import current_domain

    from dispatch.customers import get_customer_directory

    get_customer_directory().register(overrides.get("customer_id", "cust-001"))
    return current_domain.process(_create_order_command(**overrides), asynchronous=False)


def _register_partner(partner_id="partner-001", available=True, latitude=None, longitude=None, **overrides) -> str:
    """Register a partner, optionally make them available and place them on the map."""
    from datetime import UTC, datetime, timedelta

    from protean import current_domain

    from dispatch.location.recording import RecordLocation
    from dispatch.partner.management import RegisterPartner, SetPartnerAvailability

    current_domain.process(
        RegisterPartner(partner_id=partner_id, name=overrides.pop("name", "Ravi Kumar"), **overrides),
        asynchronous=False,
    )
    if available:
        current_domain.process(SetPartnerAvailability(partner_id=partner_id, is_available=True), asynchronous=False)
    if latitude is not None:
        current_domain.process(
            RecordLocation(
                subject_id=partner_id,
                latitude=latitude,
                longitude=longitude,
                is_online=True,
                recorded_at=datetime.now(UTC) - timedelta(minutes=10),
            ),
            asynchronous=False,
        )
    return partner_id


def _confirmed_order(partner_id="partner-001", **overrides) -> str:
    """A PENDING order assigned to an available partner."""
    from protean import current_domain

    from dispatch.order.assignment import AssignPartner

    order_id = _place_order(**overrides)
    _register_partner(partner_id)
    current_domain.process(AssignPartner(order_id=order_id, partner_id=partner_id), asynchronous=False)
    return order_id


@pytest.fixture()
def create_order_command():
    return _create_order_command


@pytest.fixture()
def place_order():
    return _place_order


@pytest.fixture()
def register_partner():
    return _register_partner


@pytest.fixture()
def confirmed_order():
    return _confirmed_order
