"""Pydantic request/response schemas for the Dispatch API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class GeoPointSchema(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class AddressSchema(BaseModel):
    line1: str
    line2: str | None = None
    city: str
    state: str | None = None
    postal_code: str | None = None
    country: str = "IN"
    contact_name: str | None = None
    contact_phone: str | None = None
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: float | None = Field(default=None, ge=0)


class OrderItemSchema(BaseModel):
    name: str
    description: str | None = None
    quantity: int = Field(ge=1, default=1)
    weight: float = Field(ge=0, default=0.0)
    value: float = Field(ge=0, default=0.0)


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    customer_id: str | None = None  # Admins book on behalf of a customer
    items: list[OrderItemSchema] = Field(min_length=1)
    pickup_address: AddressSchema
    delivery_address: AddressSchema
    tier: str = "Standard"
    payment_method: str = "Cash"
    scheduled_pickup_at: datetime | None = None
    scheduled_delivery_at: datetime | None = None
    special_instructions: str | None = None
    customer_notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"name": "Documents", "quantity": 1, "weight": 0.5, "value": 200.0}],
                    "pickup_address": {
                        "line1": "12 MG Road",
                        "city": "Bengaluru",
                        "latitude": 12.90,
                        "longitude": 77.58,
                    },
                    "delivery_address": {
                        "line1": "4 Church Street",
                        "city": "Bengaluru",
                        "latitude": 12.93,
                        "longitude": 77.61,
                    },
                    "tier": "Standard",
                    "payment_method": "UPI",
                }
            ]
        }
    }


class AssignPartnerRequest(BaseModel):
    partner_id: str


class DispatchOrderRequest(BaseModel):
    radius_km: float | None = Field(default=None, gt=0, le=100)


class UpdateStatusRequest(BaseModel):
    status: str
    notes: str | None = None


class VerifyCodeRequest(BaseModel):
    code: str = Field(min_length=4, max_length=10)


class CancelOrderRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class RateOrderRequest(BaseModel):
    score: int = Field(ge=1, le=5)
    comment: str | None = None
    rating_type: str = "Customer"


class ResendCodeRequest(BaseModel):
    purpose: str


class RecordPaymentRequest(BaseModel):
    payment_status: str


class RankPartnersRequest(BaseModel):
    pickup: GeoPointSchema
    dropoff: GeoPointSchema
    radius_km: float | None = None


# ---------------------------------------------------------------------------
# Partner Request Schemas
# ---------------------------------------------------------------------------
class RegisterPartnerRequest(BaseModel):
    partner_id: str | None = None
    name: str
    phone: str | None = None
    max_concurrent_orders: int = Field(ge=1, default=1)


class AvailabilityRequest(BaseModel):
    is_available: bool


class OnlineRequest(BaseModel):
    is_online: bool


class ActiveRequest(BaseModel):
    is_active: bool


# ---------------------------------------------------------------------------
# Location Request Schemas
# ---------------------------------------------------------------------------
class RecordLocationRequest(BaseModel):
    latitude: float
    longitude: float
    accuracy: float | None = None
    heading: float | None = None
    speed: float | None = None
    battery_level: int | None = None
    network_type: str | None = None
    address: str | None = None
    is_online: bool = True
    order_id: str | None = None
    recorded_at: datetime | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class OrderCreatedResponse(BaseModel):
    order_id: str
    order_number: str


class PartnerIdResponse(BaseModel):
    partner_id: str


class SampleIdResponse(BaseModel):
    sample_id: str


class PurgeResponse(BaseModel):
    deleted: int


class StatusResponse(BaseModel):
    status: str = "ok"
