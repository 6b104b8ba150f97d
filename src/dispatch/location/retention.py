"""PurgeLocationHistory — drop location samples past the retention window.

Run from ``manage.py purge-locations`` on a schedule, never on the order path.
"""

from datetime import timedelta

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Integer
from protean.utils.globals import current_domain

from dispatch.config import settings
from dispatch.domain import dispatch
from dispatch.location.sample import LocationSample
from dispatch.utils.clock import utcnow
from dispatch.utils.query import iter_all

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="LocationSample")
class PurgeLocationHistory:
    days_old = Integer(required=True)


@dispatch.command_handler(part_of=LocationSample)
class LocationRetentionHandler:
    @handle(PurgeLocationHistory)
    def purge(self, command):
        minimum = settings.location.min_retention_days
        if command.days_old < minimum:
            raise ValidationError({"days_old": [f"Location history must be kept for at least {minimum} days"]})

        cutoff = utcnow() - timedelta(days=command.days_old)
        repo = current_domain.repository_for(LocationSample)
        stale = list(iter_all(repo._dao.query.filter(recorded_at__lt=cutoff)))
        for sample in stale:
            repo._dao.delete(sample)

        logger.info("Location history purged", days_old=command.days_old, deleted=len(stale))
        return len(stale)
