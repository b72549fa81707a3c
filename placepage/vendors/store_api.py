"""Client utilities for the store (place data) API."""

import logging
from typing import Any, Dict

import requests

from placepage.errors import PlaceServiceError

logger = logging.getLogger(__name__)
_SESSION = requests.Session()


def get_store_details(store_id: int, base_url: str) -> Dict[str, Any]:
    """Return the store payload with ``name``, ``rating``, ``formattedAddress``,
    ``lat``/``lng``, ``photos`` and ``reviews``.

    Both a bare object and a ``{"data": {...}}`` envelope are accepted.
    """
    if not base_url:
        raise PlaceServiceError("PLACE_API_URL is not configured")

    url = f"{base_url.rstrip('/')}/stores/{store_id}"
    try:
        response = _SESSION.get(url, timeout=10)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        raise PlaceServiceError(f"store details request failed: {exc}") from exc

    if not isinstance(payload, dict):
        raise PlaceServiceError("store details payload is not an object")
    if payload.get("error"):
        logger.error("get_store_details failed: id=%s, error=%s", store_id, payload.get("error"))
        raise PlaceServiceError(str(payload.get("error")))

    details = payload.get("data", payload)
    if not isinstance(details, dict):
        raise PlaceServiceError("store details payload has no object body")
    return details
