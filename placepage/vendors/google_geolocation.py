"""Client utilities for the Google Geolocation API."""

import logging
import math
from typing import Any, Dict

import requests

from placepage.errors import GeolocationError
from placepage.models import Coordinate

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://www.googleapis.com/geolocation/v1/geolocate"


def build_geolocate_body() -> Dict[str, Any]:
    # Network context only: no wifi scans, no cell towers.
    return {"considerIp": True, "wifiAccessPoints": [], "cellTowers": []}


def geolocate(api_key: str) -> Coordinate:
    if not api_key:
        raise GeolocationError("GOOGLE_API_KEY is required for network geolocation")
    try:
        response = _SESSION.post(
            _BASE_URL,
            params={"key": api_key},
            json=build_geolocate_body(),
            timeout=10,
        )
    except requests.RequestException as exc:
        raise GeolocationError(f"geolocate request failed: {exc}") from exc

    if not (200 <= response.status_code < 300):
        logger.warning("geolocate failed: status=%s", response.status_code)
        raise GeolocationError(f"geolocate returned status {response.status_code}")

    try:
        location = response.json()["location"]
        lat, lng = float(location["lat"]), float(location["lng"])
    except (ValueError, KeyError, TypeError) as exc:
        raise GeolocationError(f"geolocate returned a malformed payload: {exc}") from exc
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise GeolocationError(f"geolocate returned a non-finite location: {lat}, {lng}")
    return Coordinate(lat=lat, lng=lng)
