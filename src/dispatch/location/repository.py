"""LocationSample repository with the subject-scoped lookups the handlers need."""

from dispatch.domain import dispatch
from dispatch.location.sample import LocationSample


@dispatch.repository(part_of=LocationSample)
class LocationSampleRepository:
    def latest_for(self, subject_id: str) -> LocationSample | None:
        """The subject's most recent accepted sample."""
        result = self._dao.query.filter(subject_id=str(subject_id)).order_by("-recorded_at").limit(1).all()
        return result.items[0] if result.items else None

    def in_window(self, start=None, end=None, newest_first: bool = False, **filters):
        """Queryset of samples recorded in ``[start, end]``."""
        query = self._dao.query.filter(**filters) if filters else self._dao.query
        if start is not None:
            query = query.filter(recorded_at__gte=start)
        if end is not None:
            query = query.filter(recorded_at__lte=end)
        return query.order_by("-recorded_at" if newest_first else "recorded_at")
