"""CLI job that loads one place detail page and prints its view state."""

import argparse
import asyncio
import dataclasses
import json
import logging
import math
from typing import Any, Dict, Optional

from placepage.core.config import ConfigError, get_settings
from placepage.models import Coordinate
from placepage.page import PlaceDetailPage

logger = logging.getLogger(__name__)


def parse_external_coordinate(lat: Optional[float], lng: Optional[float]) -> Optional[Coordinate]:
    if lat is None and lng is None:
        return None
    if lat is None or lng is None:
        raise ValueError("lat and lng must be provided together")
    lat, lng = float(lat), float(lng)
    if not (math.isfinite(lat) and math.isfinite(lng) and -90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValueError(f"lat/lng out of range: {lat}, {lng}")
    return Coordinate(lat=lat, lng=lng)


def run_show_place(
    *,
    place_id: str,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    locale: Optional[str] = None,
) -> Dict[str, Any]:
    settings = get_settings()
    if locale:
        settings = dataclasses.replace(settings, locale=locale)

    external = parse_external_coordinate(lat, lng)
    page = PlaceDetailPage.from_settings(settings)

    logger.info("Loading place id=%s external_location=%s", place_id, external)
    state = asyncio.run(page.load(place_id, external))
    logger.info(
        "Loaded place id=%s name=%r google_reviews=%d distance=%r",
        place_id,
        state.place.name,
        len(state.google_reviews),
        state.place.distance,
    )

    view = state.to_dict()
    view["stars"] = page.stars()
    view["reviewDraft"] = page.review_draft()
    return view


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Show a place detail page as JSON")
    parser.add_argument("place_id", help="Store identifier, e.g. 12")
    parser.add_argument("--lat", type=float, help="Viewer latitude (skips location lookup)")
    parser.add_argument("--lng", type=float, help="Viewer longitude (skips location lookup)")
    parser.add_argument("--locale", help="Locale for review labels and dates, e.g. ko-KR")
    return parser


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args()

    try:
        view = run_show_place(place_id=args.place_id, lat=args.lat, lng=args.lng, locale=args.locale)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    except ValueError as exc:
        parser.error(str(exc))

    print(json.dumps(view, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
