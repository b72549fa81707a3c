"""HTTP entrypoint that serves place detail views as JSON."""

from __future__ import annotations

import asyncio
import logging
import os
from functools import lru_cache
from typing import Any, Optional

from flask import Flask, jsonify, request

from placepage.core.config import get_settings
from placepage.etl.fallback import FallbackTable, load_fallback_places
from placepage.jobs.show_place import parse_external_coordinate
from placepage.models import Coordinate
from placepage.page import PlaceDetailPage, validate_place_id

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)


@lru_cache(maxsize=1)
def get_fallback_places() -> FallbackTable:
    return load_fallback_places(get_settings().fallback_places_path)


def build_page() -> PlaceDetailPage:
    return PlaceDetailPage.from_settings(get_settings(), fallback=get_fallback_places())


class InvalidQuery(ValueError):
    pass


def _external_coordinate_from_args() -> Optional[Coordinate]:
    lat_raw = request.args.get("lat")
    lng_raw = request.args.get("lng")
    if lat_raw is None and lng_raw is None:
        return None
    if lat_raw is None or lng_raw is None:
        raise InvalidQuery("lat and lng must be provided together")
    try:
        return parse_external_coordinate(lat_raw, lng_raw)
    except ValueError as exc:
        raise InvalidQuery(f"invalid lat/lng: {exc}") from exc


def _load(place_id: str):
    validate_place_id(place_id)
    external = _external_coordinate_from_args()
    page = build_page()
    asyncio.run(page.load(place_id, external))
    return page


# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "place_api_configured": bool(settings.place_api_url),
                "locale": settings.locale,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.get("/places/<place_id>")
def place_detail(place_id: str) -> Any:
    try:
        page = _load(place_id)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    view = page.state.to_dict()
    view["stars"] = page.stars()
    return jsonify({"data": view}), 200


@app.get("/places/<place_id>/review-draft")
def review_draft(place_id: str) -> Any:
    try:
        page = _load(place_id)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify({"data": page.review_draft()}), 200


def main() -> None:
    port = int(os.getenv("PORT") or get_settings().server_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
