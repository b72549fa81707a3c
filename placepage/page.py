"""Place detail page controller.

Owns one ``ViewState`` and drives the location, fetch and review stages on the
running asyncio loop. Results that arrive for a superseded fetch, or after
``teardown``, are dropped instead of being applied.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from placepage.core.config import Settings
from placepage.core.device_location import (
    DeviceLocationProvider,
    FixedDeviceLocationProvider,
    UnavailableDeviceLocationProvider,
)
from placepage.core.fetcher import PlaceDetailFetcher, parse_store_id
from placepage.core.location import LocationResolver
from placepage.etl.fallback import FallbackTable, load_fallback_places
from placepage.etl.reviews import ReviewLabels, normalize_reviews
from placepage.models import Coordinate, FallbackSourced, ViewState

logger = logging.getLogger(__name__)

REVIEW_WRITE_PATH = "/mypage/review"
MAX_STARS = 5


def validate_place_id(place_id: str) -> str:
    place_id = str(place_id).strip()
    parse_store_id(place_id)
    return place_id


def device_provider_from_settings(settings: Settings) -> DeviceLocationProvider:
    if settings.device_lat is not None and settings.device_lng is not None:
        return FixedDeviceLocationProvider(settings.device_lat, settings.device_lng)
    return UnavailableDeviceLocationProvider()


class PlaceDetailPage:
    def __init__(self, fetcher: PlaceDetailFetcher, resolver: LocationResolver, labels: ReviewLabels) -> None:
        self._fetcher = fetcher
        self._resolver = resolver
        self._labels = labels
        self.state = ViewState()
        self.place_id: Optional[str] = None
        self._fetch_seq = 0
        self._torn_down = False
        self._tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        fallback: Optional[FallbackTable] = None,
        device_provider: Optional[DeviceLocationProvider] = None,
    ) -> "PlaceDetailPage":
        if fallback is None:
            fallback = load_fallback_places(settings.fallback_places_path)
        if device_provider is None:
            device_provider = device_provider_from_settings(settings)
        return cls(
            fetcher=PlaceDetailFetcher.from_settings(settings, fallback),
            resolver=LocationResolver.from_settings(settings, device_provider=device_provider),
            labels=ReviewLabels.for_locale(settings.locale, settings.timezone),
        )

    # ---------- Lifecycle ----------

    def mount(self, place_id: str, external_coordinate: Optional[Coordinate] = None) -> None:
        """Start loading ``place_id``. Must be called from a running event loop."""
        self.place_id = validate_place_id(place_id)
        if external_coordinate is not None:
            self._adopt_external(external_coordinate)
        else:
            self._spawn(self._resolve_location())
        self._issue_fetch()

    def set_place_id(self, place_id: str) -> None:
        place_id = validate_place_id(place_id)
        if place_id == self.place_id:
            return
        self.place_id = place_id
        self._issue_fetch()

    def set_external_coordinate(self, coordinate: Optional[Coordinate]) -> None:
        if coordinate is None or coordinate == self.state.coordinate:
            return
        self._adopt_external(coordinate)
        self._issue_fetch()

    def teardown(self) -> None:
        self._torn_down = True

    async def settle(self) -> ViewState:
        """Wait until every in-flight stage, including re-fetches it triggers, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
        return self.state

    async def load(self, place_id: str, external_coordinate: Optional[Coordinate] = None) -> ViewState:
        self.mount(place_id, external_coordinate)
        return await self.settle()

    # ---------- View actions ----------

    def toggle_bookmark(self) -> bool:
        self.state.bookmark = not self.state.bookmark
        return self.state.bookmark

    def review_draft(self) -> Dict[str, Any]:
        return {
            "path": REVIEW_WRITE_PATH,
            "state": {"name": self.state.place.name, "rating": 0.0, "reviewText": ""},
        }

    def back_target(self) -> int:
        return -1

    def stars(self) -> List[bool]:
        filled = int(round(self.state.place.rating))
        return [index <= filled for index in range(1, MAX_STARS + 1)]

    # ---------- Internals ----------

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _adopt_external(self, coordinate: Coordinate) -> None:
        self._resolver.adopt_external(coordinate)
        self.state.coordinate = coordinate

    def _issue_fetch(self) -> None:
        self._fetch_seq += 1
        self._spawn(self._run_fetch(self._fetch_seq, self.place_id, self.state.coordinate))

    async def _resolve_location(self) -> None:
        coordinate = await self._resolver.resolve()
        if self._torn_down:
            logger.debug("Discarding location result after teardown")
            return
        if coordinate is None or coordinate == self.state.coordinate:
            return
        self.state.coordinate = coordinate
        self._issue_fetch()

    async def _run_fetch(self, seq: int, place_id: str, coordinate: Optional[Coordinate]) -> None:
        load = await self._fetcher.fetch(place_id, coordinate)
        if self._torn_down:
            logger.debug("Discarding fetch #%d for id=%s after teardown", seq, place_id)
            return
        if seq != self._fetch_seq:
            logger.debug("Discarding stale fetch #%d for id=%s (latest is #%d)", seq, place_id, self._fetch_seq)
            return

        self.state.place = load.record
        if isinstance(load.source, FallbackSourced):
            self.state.bookmark = load.source.bookmark
        self.state.user_reviews = []
        self.state.google_reviews = normalize_reviews(load.raw_reviews, self._labels) if load.is_remote else []
