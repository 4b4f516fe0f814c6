"""Corner ordering for polygon rendering."""

import math
from collections.abc import Sequence

LatLng = tuple[float, float]


def order_corners_for_display(positions: Sequence[LatLng]) -> list[LatLng]:
    """Sort ``(lat, lng)`` points by angle around their centroid.

    Manually entered corners are not guaranteed to be in ring order; sorting
    by ``atan2`` around the mean point yields a non-crossing ring for
    star-shaped point sets (convex or mildly concave). Arbitrary concave
    shapes may still self-intersect.

    The sort is stable, so points with the same angle keep their input order
    and applying the function twice gives the same result as applying it once.

    Args:
        positions: Points as ``(lat, lng)`` pairs.

    Returns:
        A new list; unchanged order when there are two points or fewer.
    """
    if len(positions) <= 2:
        return list(positions)

    center_lat = math.fsum(lat for lat, _ in positions) / len(positions)
    center_lng = math.fsum(lng for _, lng in positions) / len(positions)

    return sorted(
        positions,
        key=lambda p: math.atan2(p[0] - center_lat, p[1] - center_lng),
    )
