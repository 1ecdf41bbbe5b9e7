"""Great-circle distance between coordinate pairs."""
import math

from processor.models import Coordinates

EARTH_RADIUS_KM = 6371.0


def to_radians(degrees: float) -> float:
    """Convert degrees to radians."""
    return degrees * (math.pi / 180)


def haversine_km(origin: Coordinates, target: Coordinates) -> float:
    """
    Calculate haversine distance between two points.

    Args:
        origin: First coordinate pair
        target: Second coordinate pair

    Returns:
        Distance in kilometers
    """
    d_lat = to_radians(target.latitude - origin.latitude)
    d_lng = to_radians(target.longitude - origin.longitude)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(to_radians(origin.latitude))
        * math.cos(to_radians(target.latitude))
        * math.sin(d_lng / 2) ** 2
    )
    # Rounding can push a slightly above 1 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c
