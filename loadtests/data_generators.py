"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the domain's validation rules
(coordinate ranges, item quantities, tier and payment choices) and match the
exact field names expected by the API's Pydantic request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker("en_IN")

# Bengaluru city centre; every generated point stays within a few km of it
CITY_CENTRE = (12.9716, 77.5946)
CITY_SPREAD_DEG = 0.05

TIERS = ["Standard", "Express", "Same_Day", "Scheduled"]
PAYMENT_METHODS = ["Cash", "Card", "UPI", "Wallet"]


# ---------- Actors ----------


def customer_id() -> str:
    """Customer ids as the identity service would forward them."""
    return f"cust-lt-{uuid.uuid4().hex[:8]}"


def partner_id() -> str:
    return f"partner-lt-{uuid.uuid4().hex[:8]}"


def actor_headers(actor_id: str, role: str) -> dict:
    """Identity headers the gateway adds to every forwarded request."""
    return {"X-Actor-Id": actor_id, "X-Actor-Role": role}


def admin_headers() -> dict:
    return actor_headers("admin-lt", "Admin")


# ---------- Geography ----------


def city_point() -> dict:
    """A random point inside the service area."""
    lat, lon = CITY_CENTRE
    return {
        "latitude": round(lat + random.uniform(-CITY_SPREAD_DEG, CITY_SPREAD_DEG), 6),
        "longitude": round(lon + random.uniform(-CITY_SPREAD_DEG, CITY_SPREAD_DEG), 6),
    }


def nudge(point: dict, max_offset_deg: float = 0.001) -> dict:
    """A point a short walk (≈100 m) away, so speed checks pass."""
    return {
        "latitude": round(point["latitude"] + random.uniform(-max_offset_deg, max_offset_deg), 6),
        "longitude": round(point["longitude"] + random.uniform(-max_offset_deg, max_offset_deg), 6),
    }


def address_data(point: dict | None = None) -> dict:
    """Generate AddressSchema payload matching schema field names."""
    point = point or city_point()
    return {
        "line1": fake.street_address()[:255],
        "city": "Bengaluru",
        "state": "Karnataka",
        "postal_code": fake.postcode()[:20],
        "country": "IN",
        "contact_name": fake.name()[:150],
        "contact_phone": fake.phone_number()[:30],
        **point,
    }


# ---------- Orders ----------


def item_data() -> dict:
    return {
        "name": fake.word().capitalize(),
        "quantity": random.randint(1, 3),
        "weight": round(random.uniform(0.1, 5.0), 2),
        "value": round(random.uniform(100.0, 5000.0), 2),
    }


def order_data(pickup: dict | None = None) -> dict:
    """Generate CreateOrderRequest payload with 1-3 items."""
    return {
        "items": [item_data() for _ in range(random.randint(1, 3))],
        "pickup_address": address_data(pickup),
        "delivery_address": address_data(),
        "tier": random.choice(TIERS),
        "payment_method": random.choice(PAYMENT_METHODS),
        "special_instructions": fake.sentence()[:200] if random.random() < 0.3 else None,
    }


def cancellation_reason() -> str:
    return random.choice(
        [
            "Changed my mind",
            "Booked the wrong pickup address",
            "Sender not available",
            "Found a faster option",
        ]
    )


# ---------- Partners ----------


def partner_data(pid: str | None = None) -> dict:
    """Generate RegisterPartnerRequest payload."""
    return {
        "partner_id": pid or partner_id(),
        "name": fake.name()[:150],
        "phone": fake.phone_number()[:30],
        "max_concurrent_orders": random.randint(1, 3),
    }


def location_data(point: dict, is_online: bool = True) -> dict:
    """Generate RecordLocationRequest payload for a device fix."""
    return {
        **point,
        "accuracy": round(random.uniform(3.0, 25.0), 1),
        "heading": round(random.uniform(0.0, 359.0), 1),
        "speed": round(random.uniform(0.0, 40.0), 1),
        "battery_level": random.randint(15, 100),
        "network_type": random.choice(["4G", "5G", "WiFi"]),
        "is_online": is_online,
    }
