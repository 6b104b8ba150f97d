"""Read-side location queries: latest fix, history, tracking and aggregates.

Aggregates are computed in a single pass over the samples in the window.
"""

from collections import Counter
from datetime import datetime

from protean.utils.globals import current_domain

from dispatch.exceptions import InvalidQuery, LocationNotFound
from dispatch.geo.geomath import distance_km, validate_coordinates
from dispatch.location.sample import LocationSample
from dispatch.utils.clock import as_utc
from dispatch.utils.query import Page, iter_all, paginate

HEATMAP_PRECISION = 3


def _repo():
    return current_domain.repository_for(LocationSample)


def latest_location(subject_id: str) -> LocationSample:
    sample = _repo().latest_for(subject_id)
    if sample is None:
        raise LocationNotFound(f"No location recorded for {subject_id}")
    return sample


def location_history(
    subject_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = 1,
    per_page: int = 50,
) -> Page:
    """Samples of one subject, newest first."""
    query = _repo().in_window(as_utc(start), as_utc(end), newest_first=True, subject_id=str(subject_id))
    return paginate(query, page, per_page)


def order_tracking(order_id: str) -> list[LocationSample]:
    """The trail of fixes reported against an order, oldest first."""
    return list(iter_all(_repo().in_window(order_id=str(order_id))))


def movement_stats(subject_id: str, start: datetime | None = None, end: datetime | None = None) -> dict:
    """Distance covered and reported speeds of one subject over a window."""
    samples = list(iter_all(_repo().in_window(as_utc(start), as_utc(end), subject_id=str(subject_id))))
    speeds = [s.speed for s in samples if s.speed is not None]
    total_distance = sum(
        distance_km(a.latitude, a.longitude, b.latitude, b.longitude) for a, b in zip(samples, samples[1:])
    )
    return {
        "subject_id": str(subject_id),
        "total_updates": len(samples),
        "average_speed": sum(speeds) / len(speeds) if speeds else 0.0,
        "max_speed": max(speeds) if speeds else 0.0,
        "total_distance_km": round(total_distance, 3),
        "first_location_at": samples[0].recorded_at if samples else None,
        "last_location_at": samples[-1].recorded_at if samples else None,
    }


def heatmap(
    min_lat: float,
    min_lon: float,
    max_lat: float,
    max_lon: float,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[dict]:
    """Sample counts per ~100 m grid cell inside a bounding box, densest first."""
    try:
        validate_coordinates(min_lat, min_lon)
        validate_coordinates(max_lat, max_lon)
    except ValueError as exc:
        raise InvalidQuery(str(exc)) from exc
    if min_lat > max_lat or min_lon > max_lon:
        raise InvalidQuery("Bounding box corners are reversed")

    query = (
        _repo()
        .in_window(as_utc(start), as_utc(end))
        .filter(
            latitude__gte=min_lat,
            latitude__lte=max_lat,
            longitude__gte=min_lon,
            longitude__lte=max_lon,
        )
    )
    cells = Counter(
        (round(s.latitude, HEATMAP_PRECISION), round(s.longitude, HEATMAP_PRECISION)) for s in iter_all(query)
    )
    return [
        {"latitude": lat, "longitude": lon, "weight": weight}
        for (lat, lon), weight in sorted(cells.items(), key=lambda cell: (-cell[1], cell[0]))
    ]


def location_analytics(start: datetime | None = None, end: datetime | None = None) -> dict:
    samples = list(iter_all(_repo().in_window(as_utc(start), as_utc(end))))
    total = len(samples)
    accuracies = [s.accuracy for s in samples if s.accuracy is not None]
    batteries = [s.battery_level for s in samples if s.battery_level is not None]
    online = sum(1 for s in samples if s.is_online)
    return {
        "total_updates": total,
        "unique_subjects": len({s.subject_id for s in samples}),
        "average_accuracy": sum(accuracies) / len(accuracies) if accuracies else None,
        "online_percentage": round(online * 100.0 / total, 2) if total else 0.0,
        "average_battery_level": sum(batteries) / len(batteries) if batteries else None,
        "network_types": dict(Counter(s.network_type for s in samples if s.network_type)),
    }
