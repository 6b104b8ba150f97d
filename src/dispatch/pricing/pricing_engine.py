"""Pricing engine — deterministic delivery cost from distance, weight and tier.

    subtotal = base + distance_km × per_km + total_weight_kg × per_kg + tier surcharge
    tax      = subtotal × tax_rate
    total    = subtotal + tax

No I/O and no clock: identical inputs always yield identical quotes.
"""

from dataclasses import asdict, dataclass
from enum import Enum

from dispatch.geo.geomath import distance_between


class DeliveryTier(Enum):
    STANDARD = "Standard"
    EXPRESS = "Express"
    SAME_DAY = "Same_Day"
    SCHEDULED = "Scheduled"


BASE_PRICE = 50.0
PER_KM = 10.0
PER_KG = 5.0
TAX_RATE = 0.18

TIER_SURCHARGE = {
    DeliveryTier.STANDARD: 25.0,
    DeliveryTier.EXPRESS: 100.0,
    DeliveryTier.SAME_DAY: 200.0,
    DeliveryTier.SCHEDULED: 50.0,
}


@dataclass(frozen=True)
class PriceQuote:
    distance_km: float
    total_weight: float
    total_value: float
    base_price: float
    distance_charge: float
    weight_charge: float
    tier_surcharge: float
    subtotal: float
    tax_amount: float
    discount: float
    total_amount: float

    def to_dict(self) -> dict:
        return asdict(self)


def _item_value(item, key: str) -> float:
    value = item.get(key) if isinstance(item, dict) else getattr(item, key, None)
    return float(value or 0.0)


def price_for_distance(distance_km: float, items, tier: DeliveryTier | str) -> PriceQuote:
    """Price an already-measured trip."""
    tier = DeliveryTier(tier) if not isinstance(tier, DeliveryTier) else tier

    total_weight = sum(_item_value(item, "weight") for item in items)
    total_value = sum(_item_value(item, "value") for item in items)

    distance_charge = distance_km * PER_KM
    weight_charge = total_weight * PER_KG
    surcharge = TIER_SURCHARGE[tier]

    subtotal = BASE_PRICE + distance_charge + weight_charge + surcharge
    tax_amount = subtotal * TAX_RATE

    return PriceQuote(
        distance_km=distance_km,
        total_weight=total_weight,
        total_value=total_value,
        base_price=BASE_PRICE,
        distance_charge=distance_charge,
        weight_charge=weight_charge,
        tier_surcharge=surcharge,
        subtotal=subtotal,
        tax_amount=tax_amount,
        discount=0.0,
        total_amount=subtotal + tax_amount,
    )


def price(items, pickup, dropoff, tier: DeliveryTier | str) -> PriceQuote:
    """Quote a delivery between two points.

    Args:
        items: Iterable of dicts or objects with ``weight`` (line weight in kg)
            and ``value``.
        pickup: Object with ``latitude``/``longitude`` (e.g. a GeoPoint).
        dropoff: Object with ``latitude``/``longitude``.
        tier: A DeliveryTier or its string value.
    """
    return price_for_distance(distance_between(pickup, dropoff), items, tier)
