"""Remote-first place detail retrieval with a static dataset fallback."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from placepage.core.geo import format_distance, haversine_meters
from placepage.errors import PlaceServiceError
from placepage.etl.fallback import FallbackTable
from placepage.etl.transform import to_remote_source
from placepage.models import Coordinate, PlaceRecord, PlaceSource, RemoteSourced, resolve_place_record
from placepage.vendors import store_api

logger = logging.getLogger(__name__)

StoreClient = Callable[[int], Dict[str, Any]]


@dataclass(frozen=True)
class PlaceLoad:
    record: PlaceRecord
    raw_reviews: Tuple[Dict[str, Any], ...]
    source: PlaceSource

    @property
    def is_remote(self) -> bool:
        return isinstance(self.source, RemoteSourced)


def parse_store_id(place_id: str) -> int:
    """Store key for a route id; only plain ASCII digits are accepted."""
    if not (isinstance(place_id, str) and place_id.isascii() and place_id.isdigit()):
        raise ValueError(f"place id must be a non-negative integer, got {place_id!r}")
    return int(place_id)


def compute_distance(origin: Optional[Coordinate], target: Optional[Coordinate]) -> str:
    """Formatted distance between two points, or "" when either is unknown."""
    if origin is None or target is None:
        return ""
    return format_distance(haversine_meters(origin.lat, origin.lng, target.lat, target.lng))


class PlaceDetailFetcher:
    def __init__(self, store_client: StoreClient, fallback: FallbackTable) -> None:
        self._store_client = store_client
        self._fallback = fallback

    @classmethod
    def from_settings(cls, settings, fallback: FallbackTable) -> "PlaceDetailFetcher":
        base_url = settings.place_api_url
        return cls(lambda store_id: store_api.get_store_details(store_id, base_url), fallback)

    async def fetch(self, place_id: str, current_coordinate: Optional[Coordinate] = None) -> PlaceLoad:
        store_id = parse_store_id(place_id)

        try:
            details = await asyncio.to_thread(self._store_client, store_id)
            source = to_remote_source(details)
        except PlaceServiceError as exc:
            logger.error("Store details lookup failed for id=%s: %s", place_id, exc)
            return self._from_fallback(place_id)

        distance = compute_distance(current_coordinate, source.coordinate)
        return PlaceLoad(
            record=resolve_place_record(source, distance=distance),
            raw_reviews=source.raw_reviews,
            source=source,
        )

    def _from_fallback(self, place_id: str) -> PlaceLoad:
        entry = self._fallback.get(place_id)
        if entry is None:
            logger.info("No fallback entry for id=%s; leaving defaults", place_id)
        return PlaceLoad(record=resolve_place_record(entry), raw_reviews=(), source=entry)
