"""Great-circle math on WGS84 coordinates (spherical Earth approximation)."""

import math

EARTH_RADIUS_KM = 6371.0


def validate_coordinates(latitude: float, longitude: float) -> None:
    """Raise ``ValueError`` when a coordinate pair is outside the valid ranges."""
    if latitude is None or longitude is None:
        raise ValueError("Both latitude and longitude are required")
    if not -90.0 <= latitude <= 90.0:
        raise ValueError(f"Invalid latitude: {latitude!r}")
    if not -180.0 <= longitude <= 180.0:
        raise ValueError(f"Invalid longitude: {longitude!r}")


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two points, in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_between(origin, destination) -> float:
    """Distance between two objects exposing ``latitude`` and ``longitude``."""
    return distance_km(origin.latitude, origin.longitude, destination.latitude, destination.longitude)


def initial_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial compass bearing from the first point to the second, in degrees [0, 360)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_lambda = math.radians(lon2 - lon1)

    x = math.sin(d_lambda) * math.cos(phi2)
    y = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    return (math.degrees(math.atan2(x, y)) + 360.0) % 360.0


def bounding_box(latitude: float, longitude: float, radius_km: float) -> tuple[float, float, float, float]:
    """Approximate (min_lat, min_lon, max_lat, max_lon) box enclosing a radius.

    Used to pre-filter candidates before the exact haversine check.
    """
    d_lat = math.degrees(radius_km / EARTH_RADIUS_KM)
    cos_lat = math.cos(math.radians(latitude))
    d_lon = 180.0 if cos_lat < 1e-12 else min(180.0, math.degrees(radius_km / (EARTH_RADIUS_KM * cos_lat)))
    return (
        max(-90.0, latitude - d_lat),
        max(-180.0, longitude - d_lon),
        min(90.0, latitude + d_lat),
        min(180.0, longitude + d_lon),
    )
