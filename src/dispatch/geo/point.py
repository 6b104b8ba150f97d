"""GeoPoint value object — the closed coordinate shape accepted at the boundary."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float

from dispatch.domain import dispatch


@dispatch.value_object
class GeoPoint:
    """Latitude/longitude pair with an optional GPS accuracy radius in metres.

    Both coordinates are required; partial or out-of-range coordinates are
    rejected before they ever reach the distance math.
    """

    latitude = Float(required=True, min_value=-90.0, max_value=90.0)
    longitude = Float(required=True, min_value=-180.0, max_value=180.0)
    accuracy = Float(min_value=0.0)

    @invariant.post
    def both_coordinates_required(self):
        if self.latitude is None or self.longitude is None:
            raise ValidationError({"coordinates": ["Both latitude and longitude are required"]})
