"""Distance helpers for the place detail header."""

from math import asin, cos, radians, sin, sqrt

EARTH_RADIUS_M = 6371000


def haversine_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    dlat = radians(lat2 - lat1)
    dlng = radians(lng2 - lng1)
    a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlng / 2) ** 2
    return EARTH_RADIUS_M * 2 * asin(sqrt(a))


def format_distance(meters: float) -> str:
    """Render meters as ``850m`` below one kilometre and ``1.2km`` above."""
    rounded = int(round(meters))
    if rounded < 1000:
        return f"{rounded}m"
    return f"{meters / 1000:.1f}km"
