"""LocationIntegrityValidator — rejects physically implausible GPS fixes.

A candidate fix is compared with the subject's last accepted fix:

* no previous fix: accept;
* less than the minimum interval since the previous fix (including equal or
  earlier timestamps): ``TooFrequent``;
* farther than ``max_speed_kmh`` allows in the elapsed time:
  ``ImplausibleSpeed``;
* otherwise accept.

The validator is pure: both fixes are passed in, nothing is read or written.
"""

from dataclasses import dataclass

from dispatch.config import LocationSettings, settings
from dispatch.exceptions import ImplausibleSpeed, TooFrequent
from dispatch.geo.geomath import distance_km


@dataclass(frozen=True)
class IntegrityVerdict:
    accepted: bool
    reason: str | None = None
    elapsed_seconds: float | None = None
    distance_km: float | None = None
    max_distance_km: float | None = None


class LocationIntegrityValidator:
    def __init__(self, location_settings: LocationSettings | None = None):
        self.settings = location_settings or settings.location

    def check(self, last, candidate) -> IntegrityVerdict:
        """Judge ``candidate`` against ``last``.

        Both arguments expose ``latitude``, ``longitude`` and an aware
        ``recorded_at``; ``last`` may be None.
        """
        if last is None:
            return IntegrityVerdict(accepted=True)

        elapsed = (candidate.recorded_at - last.recorded_at).total_seconds()
        if elapsed < self.settings.min_update_interval_seconds:
            return IntegrityVerdict(
                accepted=False,
                reason=f"Location updates must be at least {self.settings.min_update_interval_seconds:g}s apart",
                elapsed_seconds=elapsed,
            )

        moved = distance_km(last.latitude, last.longitude, candidate.latitude, candidate.longitude)
        max_distance = self.settings.max_speed_kmh * elapsed / 3600.0
        if moved > max_distance:
            return IntegrityVerdict(
                accepted=False,
                reason=(
                    f"Moved {moved:.2f} km in {elapsed:.0f}s, "
                    f"more than {max_distance:.2f} km allowed at {self.settings.max_speed_kmh:g} km/h"
                ),
                elapsed_seconds=elapsed,
                distance_km=moved,
                max_distance_km=max_distance,
            )

        return IntegrityVerdict(accepted=True, elapsed_seconds=elapsed, distance_km=moved, max_distance_km=max_distance)

    def validate(self, last, candidate) -> IntegrityVerdict:
        """Like ``check`` but raises the typed rejection."""
        verdict = self.check(last, candidate)
        if verdict.accepted:
            return verdict
        if verdict.distance_km is None:
            raise TooFrequent(verdict.reason)
        raise ImplausibleSpeed(verdict.reason, verdict.distance_km, verdict.max_distance_km)
