"""Read-side order queries: lookups, paged listings, radius search and stats."""

from collections import Counter
from datetime import datetime

from protean.utils.globals import current_domain

from dispatch.exceptions import InvalidQuery
from dispatch.geo.geomath import bounding_box, distance_km
from dispatch.matching.matcher import check_point, check_radius
from dispatch.order.order import ACTIVE_STATES, Order, OrderStatus
from dispatch.utils.clock import as_utc
from dispatch.utils.query import Page, iter_all, paginate


def _repo():
    return current_domain.repository_for(Order)


def _newest_first(query):
    return query.order_by("-created_at")


def get_order(order_id: str) -> Order:
    return _repo().load(order_id)


def get_order_by_number(order_number: str) -> Order:
    return _repo().find_by_number(order_number)


def orders_for_customer(customer_id: str, page: int = 1, per_page: int = 20, status: str | None = None) -> Page:
    filters = {"customer_id": str(customer_id)}
    if status:
        filters["status"] = OrderStatus(status).value
    return paginate(_newest_first(_repo().search(**filters)), page, per_page)


def orders_for_partner(partner_id: str, page: int = 1, per_page: int = 20, status: str | None = None) -> Page:
    filters = {"partner_id": str(partner_id)}
    if status:
        filters["status"] = OrderStatus(status).value
    return paginate(_newest_first(_repo().search(**filters)), page, per_page)


def orders_by_status(status: str, page: int = 1, per_page: int = 20) -> Page:
    return paginate(_newest_first(_repo().search(status=OrderStatus(status).value)), page, per_page)


def available_orders(page: int = 1, per_page: int = 20) -> Page:
    """PENDING orders nobody has taken yet, oldest first."""
    query = _repo().search(status=OrderStatus.PENDING.value).order_by("created_at")
    orders = [order for order in iter_all(query) if not order.partner_id]
    start = (max(1, page) - 1) * per_page
    return Page(items=orders[start : start + per_page], total=len(orders), page=max(1, page), per_page=per_page)


def active_orders(partner_id: str | None = None) -> list[Order]:
    """Orders between confirmation and handoff, optionally for one partner."""
    filters = {"status__in": [status.value for status in ACTIVE_STATES]}
    if partner_id:
        filters["partner_id"] = str(partner_id)
    return list(iter_all(_newest_first(_repo().search(**filters))))


def orders_in_range(start: datetime, end: datetime, page: int = 1, per_page: int = 20) -> Page:
    start, end = as_utc(start), as_utc(end)
    if start > end:
        raise InvalidQuery("Start date must not be after end date")
    query = _repo().search(created_at__gte=start, created_at__lte=end)
    return paginate(_newest_first(query), page, per_page)


def orders_near(latitude: float, longitude: float, radius_km: float, status: str | None = None) -> list[Order]:
    """Orders whose pickup lies within the radius, nearest first."""
    check_point(latitude, longitude)
    radius_km = check_radius(radius_km)

    min_lat, min_lon, max_lat, max_lon = bounding_box(latitude, longitude, radius_km)
    query = _repo().search(status=OrderStatus(status).value) if status else _repo().search()

    found = []
    for order in iter_all(query):
        pickup = order.pickup_address
        if not (min_lat <= pickup.latitude <= max_lat and min_lon <= pickup.longitude <= max_lon):
            continue
        distance = distance_km(latitude, longitude, pickup.latitude, pickup.longitude)
        if distance <= radius_km:
            found.append((distance, order))
    found.sort(key=lambda entry: entry[0])
    return [order for _, order in found]


def order_stats(partner_id: str | None = None) -> dict:
    """Order count, delivered revenue and status breakdown."""
    query = _repo().search(partner_id=str(partner_id)) if partner_id else _repo().search()
    breakdown = Counter()
    revenue = 0.0
    total = 0
    for order in iter_all(query):
        total += 1
        breakdown[order.status] += 1
        if order.status == OrderStatus.DELIVERED.value and order.pricing:
            revenue += order.pricing.total_amount or 0.0
    return {
        "total_orders": total,
        "total_revenue": round(revenue, 2),
        "status_breakdown": dict(breakdown),
    }
