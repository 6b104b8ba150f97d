"""FastAPI routes for the Dispatch domain — orders, partners and locations.

The identity layer in front of this service authenticates the caller and
forwards who they are in the ``X-Actor-Id`` / ``X-Actor-Role`` headers.
"""

import json
from datetime import datetime

from fastapi import APIRouter, Depends, Header, HTTPException
from protean.utils.globals import current_domain

from dispatch.api.schemas import (
    ActiveRequest,
    AssignPartnerRequest,
    AvailabilityRequest,
    CancelOrderRequest,
    CreateOrderRequest,
    DispatchOrderRequest,
    OnlineRequest,
    OrderCreatedResponse,
    PartnerIdResponse,
    PurgeResponse,
    RankPartnersRequest,
    RateOrderRequest,
    RecordLocationRequest,
    RecordPaymentRequest,
    RegisterPartnerRequest,
    ResendCodeRequest,
    SampleIdResponse,
    StatusResponse,
    UpdateStatusRequest,
    VerifyCodeRequest,
)
from dispatch.exceptions import Unauthorized
from dispatch.location import queries as location_queries
from dispatch.location.recording import RecordLocation
from dispatch.location.retention import PurgeLocationHistory
from dispatch.matching.matcher import PartnerMatcher
from dispatch.order import queries as order_queries
from dispatch.order.assignment import AssignPartner, DispatchOrder
from dispatch.order.authorization import (
    Actor,
    Role,
    authorize_admin,
    authorize_listing,
    authorize_partner_self,
    authorize_staff,
    authorize_subject_access,
    authorize_view,
    booking_customer,
)
from dispatch.order.cancellation import CancelOrder
from dispatch.order.codes import ResendOrderCode
from dispatch.order.creation import CreateOrder
from dispatch.order.payment import RecordPayment
from dispatch.order.rating import RateOrder
from dispatch.order.status import UpdateOrderStatus
from dispatch.order.verification import verify_delivery, verify_pickup
from dispatch.partner.management import (
    RegisterPartner,
    SetPartnerActive,
    SetPartnerAvailability,
    SetPartnerOnline,
)
from dispatch.partner.partner import Partner


def current_actor(
    x_actor_id: str = Header(...),
    x_actor_role: str = Header(...),
) -> Actor:
    try:
        role = Role(x_actor_role)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Unknown actor role: {x_actor_role}") from exc
    return Actor(x_actor_id, role)


def _order_view(order) -> dict:
    return order.to_dict()


def _actor_fields(actor: Actor) -> dict:
    return {"actor_id": actor.id, "actor_role": actor.role.value}


def _partner_id(actor: Actor) -> str:
    # Only a partner can present a handoff code
    if actor.role != Role.PARTNER:
        raise Unauthorized("Only the assigned delivery partner can verify handoff codes")
    return actor.id


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderCreatedResponse)
async def create_order(body: CreateOrderRequest, actor: Actor = Depends(current_actor)) -> OrderCreatedResponse:
    command = CreateOrder(
        customer_id=booking_customer(actor, body.customer_id),
        items=json.dumps([item.model_dump() for item in body.items]),
        pickup_address=json.dumps(body.pickup_address.model_dump()),
        delivery_address=json.dumps(body.delivery_address.model_dump()),
        tier=body.tier,
        payment_method=body.payment_method,
        scheduled_pickup_at=body.scheduled_pickup_at,
        scheduled_delivery_at=body.scheduled_delivery_at,
        special_instructions=body.special_instructions,
        customer_notes=body.customer_notes,
    )
    order_id = current_domain.process(command, asynchronous=False)
    order = order_queries.get_order(order_id)
    return OrderCreatedResponse(order_id=order_id, order_number=order.order_number)


@order_router.get("")
async def list_orders(
    customer_id: str | None = None,
    partner_id: str | None = None,
    status: str | None = None,
    page: int = 1,
    per_page: int = 20,
    actor: Actor = Depends(current_actor),
) -> dict:
    authorize_listing(actor, customer_id=customer_id, partner_id=partner_id)
    if customer_id:
        result = order_queries.orders_for_customer(customer_id, page, per_page, status)
    elif partner_id:
        result = order_queries.orders_for_partner(partner_id, page, per_page, status)
    elif status:
        result = order_queries.orders_by_status(status, page, per_page)
    else:
        raise HTTPException(status_code=400, detail="Filter by customer_id, partner_id or status")
    return result.to_dict(_order_view)


@order_router.get("/available")
async def list_available_orders(page: int = 1, per_page: int = 20, actor: Actor = Depends(current_actor)) -> dict:
    authorize_staff(actor)
    return order_queries.available_orders(page, per_page).to_dict(_order_view)


@order_router.get("/active")
async def list_active_orders(partner_id: str | None = None, actor: Actor = Depends(current_actor)) -> dict:
    authorize_listing(actor, partner_id=partner_id)
    return {"items": [_order_view(order) for order in order_queries.active_orders(partner_id)]}


@order_router.get("/range")
async def list_orders_in_range(
    start: datetime,
    end: datetime,
    page: int = 1,
    per_page: int = 20,
    actor: Actor = Depends(current_actor),
) -> dict:
    authorize_admin(actor)
    return order_queries.orders_in_range(start, end, page, per_page).to_dict(_order_view)


@order_router.get("/nearby")
async def list_orders_nearby(
    latitude: float,
    longitude: float,
    radius_km: float = 5.0,
    status: str | None = None,
    actor: Actor = Depends(current_actor),
) -> dict:
    authorize_staff(actor)
    orders = order_queries.orders_near(latitude, longitude, radius_km, status)
    return {"items": [_order_view(order) for order in orders]}


@order_router.get("/stats")
async def get_order_stats(partner_id: str | None = None, actor: Actor = Depends(current_actor)) -> dict:
    if partner_id:
        authorize_listing(actor, partner_id=partner_id)
    else:
        authorize_admin(actor)
    return order_queries.order_stats(partner_id)


@order_router.get("/number/{order_number}")
async def get_order_by_number(order_number: str, actor: Actor = Depends(current_actor)) -> dict:
    order = order_queries.get_order_by_number(order_number)
    authorize_view(actor, order)
    return _order_view(order)


@order_router.get("/{order_id}")
async def get_order(order_id: str, actor: Actor = Depends(current_actor)) -> dict:
    order = order_queries.get_order(order_id)
    authorize_view(actor, order)
    return _order_view(order)


@order_router.post("/{order_id}/assign", response_model=PartnerIdResponse)
async def assign_partner(
    order_id: str, body: AssignPartnerRequest, actor: Actor = Depends(current_actor)
) -> PartnerIdResponse:
    command = AssignPartner(order_id=order_id, partner_id=body.partner_id, **_actor_fields(actor))
    current_domain.process(command, asynchronous=False)
    return PartnerIdResponse(partner_id=body.partner_id)


@order_router.post("/{order_id}/dispatch", response_model=PartnerIdResponse)
async def dispatch_order(
    order_id: str, body: DispatchOrderRequest, actor: Actor = Depends(current_actor)
) -> PartnerIdResponse:
    command = DispatchOrder(order_id=order_id, radius_km=body.radius_km, **_actor_fields(actor))
    partner_id = current_domain.process(command, asynchronous=False)
    return PartnerIdResponse(partner_id=partner_id)


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(
    order_id: str, body: UpdateStatusRequest, actor: Actor = Depends(current_actor)
) -> StatusResponse:
    command = UpdateOrderStatus(order_id=order_id, new_status=body.status, notes=body.notes, **_actor_fields(actor))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/verify-pickup")
async def verify_pickup_code(order_id: str, body: VerifyCodeRequest, actor: Actor = Depends(current_actor)) -> dict:
    return _order_view(verify_pickup(order_id, body.code, _partner_id(actor)))


@order_router.post("/{order_id}/verify-delivery")
async def verify_delivery_code(order_id: str, body: VerifyCodeRequest, actor: Actor = Depends(current_actor)) -> dict:
    return _order_view(verify_delivery(order_id, body.code, _partner_id(actor)))


@order_router.post("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest, actor: Actor = Depends(current_actor)) -> StatusResponse:
    command = CancelOrder(order_id=order_id, reason=body.reason, **_actor_fields(actor))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/rate", response_model=StatusResponse)
async def rate_order(order_id: str, body: RateOrderRequest, actor: Actor = Depends(current_actor)) -> StatusResponse:
    command = RateOrder(
        order_id=order_id,
        score=body.score,
        comment=body.comment,
        rating_type=body.rating_type,
        **_actor_fields(actor),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/codes/resend", response_model=StatusResponse)
async def resend_order_code(
    order_id: str, body: ResendCodeRequest, actor: Actor = Depends(current_actor)
) -> StatusResponse:
    command = ResendOrderCode(order_id=order_id, purpose=body.purpose, **_actor_fields(actor))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/payment", response_model=StatusResponse)
async def record_payment(
    order_id: str, body: RecordPaymentRequest, actor: Actor = Depends(current_actor)
) -> StatusResponse:
    authorize_admin(actor)
    current_domain.process(
        RecordPayment(order_id=order_id, payment_status=body.payment_status),
        asynchronous=False,
    )
    return StatusResponse()


# ---------------------------------------------------------------------------
# Partner Router
# ---------------------------------------------------------------------------
partner_router = APIRouter(prefix="/partners", tags=["partners"])


@partner_router.post("", status_code=201, response_model=PartnerIdResponse)
async def register_partner(
    body: RegisterPartnerRequest, actor: Actor = Depends(current_actor)
) -> PartnerIdResponse:
    authorize_admin(actor)
    command = RegisterPartner(
        partner_id=body.partner_id,
        name=body.name,
        phone=body.phone,
        max_concurrent_orders=body.max_concurrent_orders,
    )
    partner_id = current_domain.process(command, asynchronous=False)
    return PartnerIdResponse(partner_id=partner_id)


@partner_router.get("/nearby")
async def find_nearby_partners(
    latitude: float,
    longitude: float,
    radius_km: float | None = None,
    actor: Actor = Depends(current_actor),
) -> dict:
    authorize_admin(actor)
    candidates = PartnerMatcher().find_nearby(latitude, longitude, radius_km)
    return {"items": [candidate.to_dict() for candidate in candidates]}


@partner_router.post("/rank")
async def rank_partners(body: RankPartnersRequest, actor: Actor = Depends(current_actor)) -> dict:
    authorize_admin(actor)
    ranked = PartnerMatcher().rank_for_delivery(body.pickup, body.dropoff, body.radius_km)
    return {"items": [candidate.to_dict() for candidate in ranked]}


@partner_router.get("/{partner_id}")
async def get_partner(partner_id: str, actor: Actor = Depends(current_actor)) -> dict:
    authorize_partner_self(actor, partner_id)
    return current_domain.repository_for(Partner).get(partner_id).to_dict()


@partner_router.put("/{partner_id}/availability", response_model=StatusResponse)
async def set_availability(
    partner_id: str, body: AvailabilityRequest, actor: Actor = Depends(current_actor)
) -> StatusResponse:
    authorize_partner_self(actor, partner_id)
    current_domain.process(
        SetPartnerAvailability(partner_id=partner_id, is_available=body.is_available),
        asynchronous=False,
    )
    return StatusResponse()


@partner_router.put("/{partner_id}/online", response_model=StatusResponse)
async def set_online(partner_id: str, body: OnlineRequest, actor: Actor = Depends(current_actor)) -> StatusResponse:
    authorize_partner_self(actor, partner_id)
    current_domain.process(SetPartnerOnline(partner_id=partner_id, is_online=body.is_online), asynchronous=False)
    return StatusResponse()


@partner_router.put("/{partner_id}/active", response_model=StatusResponse)
async def set_active(partner_id: str, body: ActiveRequest, actor: Actor = Depends(current_actor)) -> StatusResponse:
    authorize_admin(actor)
    current_domain.process(SetPartnerActive(partner_id=partner_id, is_active=body.is_active), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Location Router
# ---------------------------------------------------------------------------
location_router = APIRouter(prefix="/locations", tags=["locations"])


@location_router.post("", status_code=201, response_model=SampleIdResponse)
async def record_location(body: RecordLocationRequest, actor: Actor = Depends(current_actor)) -> SampleIdResponse:
    command = RecordLocation(subject_id=actor.id, **body.model_dump(exclude_none=True))
    sample_id = current_domain.process(command, asynchronous=False)
    return SampleIdResponse(sample_id=sample_id)


@location_router.get("/heatmap")
async def get_heatmap(
    min_lat: float,
    min_lon: float,
    max_lat: float,
    max_lon: float,
    start: datetime | None = None,
    end: datetime | None = None,
    actor: Actor = Depends(current_actor),
) -> dict:
    authorize_admin(actor)
    return {"cells": location_queries.heatmap(min_lat, min_lon, max_lat, max_lon, start, end)}


@location_router.get("/analytics")
async def get_location_analytics(
    start: datetime | None = None,
    end: datetime | None = None,
    actor: Actor = Depends(current_actor),
) -> dict:
    authorize_admin(actor)
    return location_queries.location_analytics(start, end)


@location_router.delete("/history", response_model=PurgeResponse)
async def purge_location_history(days_old: int, actor: Actor = Depends(current_actor)) -> PurgeResponse:
    authorize_admin(actor)
    deleted = current_domain.process(PurgeLocationHistory(days_old=days_old), asynchronous=False)
    return PurgeResponse(deleted=deleted)


@location_router.get("/orders/{order_id}/tracking")
async def get_order_tracking(order_id: str, actor: Actor = Depends(current_actor)) -> dict:
    authorize_view(actor, order_queries.get_order(order_id))
    return {"items": [sample.to_dict() for sample in location_queries.order_tracking(order_id)]}


@location_router.get("/{subject_id}/latest")
async def get_latest_location(subject_id: str, actor: Actor = Depends(current_actor)) -> dict:
    authorize_subject_access(actor, subject_id)
    return location_queries.latest_location(subject_id).to_dict()


@location_router.get("/{subject_id}/history")
async def get_location_history(
    subject_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = 1,
    per_page: int = 50,
    actor: Actor = Depends(current_actor),
) -> dict:
    authorize_subject_access(actor, subject_id)
    return location_queries.location_history(subject_id, start, end, page, per_page).to_dict()


@location_router.get("/{subject_id}/movement")
async def get_movement_stats(
    subject_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
    actor: Actor = Depends(current_actor),
) -> dict:
    authorize_subject_access(actor, subject_id)
    return location_queries.movement_stats(subject_id, start, end)
