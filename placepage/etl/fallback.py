"""Loader for the bundled static place dataset used when the store API fails."""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from placepage.etl.transform import safe_rating
from placepage.models import FallbackSourced

logger = logging.getLogger(__name__)

BUNDLED_PLACES_PATH = Path(__file__).resolve().parents[1].joinpath("data", "places.json")

FallbackTable = Mapping[str, FallbackSourced]


def to_fallback_entry(raw: Dict[str, Any]) -> FallbackSourced:
    return FallbackSourced(
        name=str(raw.get("name") or ""),
        rating=safe_rating(raw.get("rating")),
        address=str(raw.get("address") or ""),
        images=tuple(raw.get("images") or ()),
        industry=str(raw.get("industry") or ""),
        distance=str(raw.get("distance") or ""),
        bookmark=bool(raw.get("bookmark", False)),
    )


def build_fallback_table(entries: Iterable[Dict[str, Any]]) -> FallbackTable:
    table: Dict[str, FallbackSourced] = {}
    for raw in entries:
        place_id = raw.get("id")
        if place_id is None:
            logger.debug("Skipping fallback entry without id: %s", raw)
            continue
        table[str(place_id)] = to_fallback_entry(raw)
    return MappingProxyType(table)


def load_fallback_places(path: Optional[Union[str, Path]] = None) -> FallbackTable:
    """Read the fallback dataset into a read-only mapping keyed by string id."""
    source = Path(path) if path else BUNDLED_PLACES_PATH
    with source.open("r", encoding="utf-8") as fh:
        entries = json.load(fh)
    table = build_fallback_table(entries)
    logger.info("Loaded %d fallback places from %s", len(table), source)
    return table
