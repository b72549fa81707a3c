"""Best-effort viewer location resolution.

Tiers run strictly in order and each one is attempted only when the previous one is
unavailable or failed:

1. an externally supplied coordinate, adopted verbatim;
2. network geolocation (Google Geolocation API, IP context only);
3. the device location provider (high accuracy, bounded timeout, cached fix allowed).

Every failure degrades to ``None``; ``resolve`` never raises.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Callable, Optional

from placepage.core.device_location import DeviceLocationProvider, PositionOptions, request_position
from placepage.errors import DeviceLocationError, GeolocationError
from placepage.models import Coordinate
from placepage.vendors import google_geolocation

logger = logging.getLogger(__name__)


class LocationState(enum.Enum):
    UNRESOLVED = "unresolved"
    TRY_EXTERNAL = "try_external"
    TRY_GEOCODE = "try_geocode"
    TRY_DEVICE = "try_device"
    RESOLVED = "resolved"


Geolocator = Callable[[], Coordinate]


class LocationResolver:
    def __init__(
        self,
        geolocator: Optional[Geolocator] = None,
        device_provider: Optional[DeviceLocationProvider] = None,
        position_options: Optional[PositionOptions] = None,
    ) -> None:
        self._geolocator = geolocator
        self._device_provider = device_provider
        self._position_options = position_options or PositionOptions()
        self._external_in_force = False
        self.state = LocationState.UNRESOLVED
        self.coordinate: Optional[Coordinate] = None

    @classmethod
    def from_settings(cls, settings, device_provider: Optional[DeviceLocationProvider] = None) -> "LocationResolver":
        api_key = settings.google_api_key
        return cls(
            geolocator=lambda: google_geolocation.geolocate(api_key),
            device_provider=device_provider,
            position_options=PositionOptions(
                high_accuracy=True,
                timeout_ms=settings.geolocation_timeout_ms,
                max_cached_age_ms=settings.geolocation_max_age_ms,
            ),
        )

    def adopt_external(self, coordinate: Coordinate) -> Coordinate:
        """Take ``coordinate`` verbatim; network and device tiers never run afterwards."""
        self._external_in_force = True
        return self._finish(coordinate)

    async def resolve(self, external_coordinate: Optional[Coordinate] = None) -> Optional[Coordinate]:
        self.state = LocationState.TRY_EXTERNAL
        while True:
            if self.state is LocationState.TRY_EXTERNAL:
                if external_coordinate is not None:
                    return self.adopt_external(external_coordinate)
                if self._external_in_force:
                    return self._keep_external()
                self.state = LocationState.TRY_GEOCODE

            elif self.state is LocationState.TRY_GEOCODE:
                coordinate = await self._try_geocode()
                if self._external_in_force:
                    return self._keep_external()
                if coordinate is not None:
                    return self._finish(coordinate)
                self.state = LocationState.TRY_DEVICE

            elif self.state is LocationState.TRY_DEVICE:
                coordinate = await self._try_device()
                if self._external_in_force:
                    return self._keep_external()
                return self._finish(coordinate)

    def _keep_external(self) -> Optional[Coordinate]:
        # An external coordinate adopted at any point stays authoritative.
        self.state = LocationState.RESOLVED
        return self.coordinate

    def _finish(self, coordinate: Optional[Coordinate]) -> Optional[Coordinate]:
        if coordinate is None:
            self.state = LocationState.UNRESOLVED
            return None
        self.coordinate = coordinate
        self.state = LocationState.RESOLVED
        return coordinate

    async def _try_geocode(self) -> Optional[Coordinate]:
        if self._geolocator is None:
            return None
        try:
            return await asyncio.to_thread(self._geolocator)
        except GeolocationError as exc:
            logger.debug("Network geolocation unavailable, trying device location: %s", exc)
            return None

    async def _try_device(self) -> Optional[Coordinate]:
        if self._device_provider is None:
            return None
        try:
            return await request_position(self._device_provider, self._position_options)
        except DeviceLocationError as exc:
            logger.info("Unable to read device location: %s", exc)
            return None
