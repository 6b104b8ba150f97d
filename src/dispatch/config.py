"""Business settings for the Dispatch domain.

Protean infrastructure settings live in ``domain.toml``. The values here are
domain constants that operators tune per deployment, read from environment
variables with production defaults.
"""

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw not in (None, "") else default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw not in (None, "") else default


@dataclass(frozen=True)
class OTPSettings:
    code_length: int = 6
    ttl_minutes: int = 10
    max_attempts: int = 5


@dataclass(frozen=True)
class LocationSettings:
    max_speed_kmh: float = 120.0
    min_update_interval_seconds: float = 5.0
    min_retention_days: int = 7


@dataclass(frozen=True)
class MatchWeights:
    """Weights of the dispatch score. Lower scores win."""

    distance: float = 0.7
    rating: float = 0.2
    experience: float = 0.001
    max_rating: float = 5.0
    experience_ceiling: int = 100


@dataclass(frozen=True)
class Settings:
    otp: OTPSettings
    location: LocationSettings
    matching: MatchWeights
    default_search_radius_km: float = 10.0


def load_settings() -> Settings:
    """Build settings from the environment."""
    return Settings(
        otp=OTPSettings(
            code_length=_env_int("DISPATCH_OTP_LENGTH", 6),
            ttl_minutes=_env_int("DISPATCH_OTP_TTL_MINUTES", 10),
            max_attempts=_env_int("DISPATCH_OTP_MAX_ATTEMPTS", 5),
        ),
        location=LocationSettings(
            max_speed_kmh=_env_float("DISPATCH_MAX_SPEED_KMH", 120.0),
            min_update_interval_seconds=_env_float("DISPATCH_MIN_UPDATE_INTERVAL_SECONDS", 5.0),
        ),
        matching=MatchWeights(
            distance=_env_float("DISPATCH_MATCH_DISTANCE_WEIGHT", 0.7),
            rating=_env_float("DISPATCH_MATCH_RATING_WEIGHT", 0.2),
            experience=_env_float("DISPATCH_MATCH_EXPERIENCE_WEIGHT", 0.001),
        ),
        default_search_radius_km=_env_float("DISPATCH_SEARCH_RADIUS_KM", 10.0),
    )


settings = load_settings()
