"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Raised when a configured value cannot be used."""


@dataclass(frozen=True)
class Settings:
    google_api_key: str
    place_api_url: str
    locale: str = "ko-KR"
    timezone: str = "Asia/Seoul"
    geolocation_timeout_ms: int = 10000
    geolocation_max_age_ms: int = 300000
    fallback_places_path: Optional[str] = None
    device_lat: Optional[float] = None
    device_lng: Optional[float] = None
    server_port: int = 8080


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be numeric, got {raw!r}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_api_key = os.getenv("GOOGLE_API_KEY", "")
    place_api_url = os.getenv("PLACE_API_URL", "").rstrip("/")
    locale = os.getenv("PLACE_LOCALE", "ko-KR")
    timezone = os.getenv("PLACE_TIMEZONE", "Asia/Seoul")
    geolocation_timeout_ms = int(os.getenv("GEOLOCATION_TIMEOUT_MS", "10000"))
    geolocation_max_age_ms = int(os.getenv("GEOLOCATION_MAX_AGE_MS", "300000"))
    fallback_places_path = os.getenv("FALLBACK_PLACES_PATH") or None
    device_lat = _optional_float("DEVICE_LAT")
    device_lng = _optional_float("DEVICE_LNG")
    server_port = int(os.getenv("SERVER_PORT", "8080"))

    if not google_api_key:
        logger.warning("GOOGLE_API_KEY is not configured; network geolocation will fall back to the device.")
    if not place_api_url:
        logger.warning("PLACE_API_URL is not set; place details will come from the fallback dataset.")
    if (device_lat is None) != (device_lng is None):
        logger.warning("Only one of DEVICE_LAT/DEVICE_LNG is set; device location is disabled.")
        device_lat = device_lng = None

    return Settings(
        google_api_key=google_api_key,
        place_api_url=place_api_url,
        locale=locale,
        timezone=timezone,
        geolocation_timeout_ms=geolocation_timeout_ms,
        geolocation_max_age_ms=geolocation_max_age_ms,
        fallback_places_path=fallback_places_path,
        device_lat=device_lat,
        device_lng=device_lng,
        server_port=server_port,
    )
