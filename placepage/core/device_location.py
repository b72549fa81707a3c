"""Device location providers and the asyncio bridge used by the location resolver."""

from __future__ import annotations

import asyncio
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from placepage.errors import DeviceLocationError
from placepage.models import Coordinate

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[Dict[str, float]], None]
ErrorCallback = Callable[[str], None]


@dataclass(frozen=True)
class PositionOptions:
    high_accuracy: bool = True
    timeout_ms: int = 10000
    max_cached_age_ms: int = 300000


class DeviceLocationProvider:
    """Callback-style position source.

    Subclasses implement ``_acquire``. The base class serves a cached fix while it
    is younger than ``options.max_cached_age_ms`` and reports every other outcome
    through exactly one of the two callbacks.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._last_fix: Optional[Tuple[float, Dict[str, float]]] = None

    def get_current_position(
        self,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
        options: PositionOptions,
    ) -> None:
        if self._last_fix is not None:
            taken_at, position = self._last_fix
            if (self._clock() - taken_at) * 1000 <= options.max_cached_age_ms:
                logger.debug("Serving cached device fix taken at %.1f", taken_at)
                on_success(dict(position))
                return

        try:
            position = self._acquire(options)
        except DeviceLocationError as exc:
            on_error(str(exc))
            return

        self._last_fix = (self._clock(), dict(position))
        on_success(position)

    def _acquire(self, options: PositionOptions) -> Dict[str, float]:
        raise NotImplementedError


class UnavailableDeviceLocationProvider(DeviceLocationProvider):
    """Provider for hosts without any location sensor."""

    def _acquire(self, options: PositionOptions) -> Dict[str, float]:
        raise DeviceLocationError("location services are not available on this device")


class FixedDeviceLocationProvider(DeviceLocationProvider):
    """Reports a configured position, e.g. DEVICE_LAT/DEVICE_LNG from the environment."""

    def __init__(self, latitude: float, longitude: float, **kwargs) -> None:
        super().__init__(**kwargs)
        self._position = {"latitude": float(latitude), "longitude": float(longitude)}

    def _acquire(self, options: PositionOptions) -> Dict[str, float]:
        return dict(self._position)


async def request_position(provider: DeviceLocationProvider, options: PositionOptions) -> Coordinate:
    """Await one position from ``provider``, bounded by ``options.timeout_ms``.

    Raises DeviceLocationError on provider failure or timeout.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()

    def _settle(result: Optional[Dict[str, float]], message: Optional[str]) -> None:
        if future.done():
            return
        if message is not None:
            future.set_exception(DeviceLocationError(message))
        else:
            future.set_result(result)

    def _post(result: Optional[Dict[str, float]], message: Optional[str]) -> None:
        try:
            loop.call_soon_threadsafe(_settle, result, message)
        except RuntimeError:
            logger.debug("Dropping device location result; event loop already closed")

    def _on_success(position: Dict[str, float]) -> None:
        _post(position, None)

    def _on_error(message: str) -> None:
        _post(None, message)

    def _run() -> None:
        try:
            provider.get_current_position(_on_success, _on_error, options)
        except Exception as exc:  # noqa: BLE001 - sensor drivers raise arbitrary errors
            _on_error(f"{type(exc).__name__}: {exc}")

    # Daemon thread; loop shutdown never joins it.
    threading.Thread(target=_run, name="device-location", daemon=True).start()

    try:
        position = await asyncio.wait_for(future, timeout=options.timeout_ms / 1000)
    except asyncio.TimeoutError as exc:
        raise DeviceLocationError(f"Timeout expired after {options.timeout_ms}ms") from exc

    try:
        lat, lng = float(position["latitude"]), float(position["longitude"])
    except (KeyError, TypeError, ValueError) as exc:
        raise DeviceLocationError(f"device position is malformed: {position!r}") from exc
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise DeviceLocationError(f"device position is not finite: {position!r}")
    return Coordinate(lat=lat, lng=lng)
