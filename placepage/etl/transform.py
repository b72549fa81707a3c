"""Utilities for transforming store API responses into place sources."""

import logging
import math
from typing import Any, Dict, Optional, Tuple

from placepage.models import Coordinate, RemoteSourced

logger = logging.getLogger(__name__)


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None or isinstance(value, bool):
            return None
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def safe_rating(value: Any) -> float:
    """Finite, non-negative rating; anything else becomes 0."""
    rating = _safe_float(value)
    if rating is None or rating < 0:
        return 0
    return rating


def parse_coordinate(details: Dict[str, Any]) -> Optional[Coordinate]:
    lat = _safe_float(details.get("lat"))
    lng = _safe_float(details.get("lng"))
    if lat is None or lng is None:
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        logger.warning("Ignoring out-of-range coordinate lat=%s lng=%s", lat, lng)
        return None
    return Coordinate(lat=lat, lng=lng)


def _photo_urls(photos: Any) -> Tuple[str, ...]:
    if not isinstance(photos, list):
        return ()
    return tuple(photo["url"] for photo in photos if isinstance(photo, dict) and photo.get("url"))


def to_remote_source(details: Dict[str, Any]) -> RemoteSourced:
    reviews = details.get("reviews")
    if reviews is not None and not isinstance(reviews, list):
        logger.warning("Ignoring non-list reviews field of type %s", type(reviews).__name__)
        reviews = None

    return RemoteSourced(
        name=str(details.get("name") or ""),
        rating=safe_rating(details.get("rating")),
        address=str(details.get("formattedAddress") or ""),
        images=_photo_urls(details.get("photos")),
        coordinate=parse_coordinate(details),
        raw_reviews=tuple(reviews or ()),
    )
