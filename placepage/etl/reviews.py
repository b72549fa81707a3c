"""Utilities for transforming raw store API reviews into display records."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from placepage.core.config import ConfigError
from placepage.models import ReviewRecord

logger = logging.getLogger(__name__)

DateFormatter = Callable[[datetime], str]

# Mirrors Date.prototype.toLocaleDateString for the locales the app ships with.
_DATE_FORMATS: Dict[str, DateFormatter] = {
    "ko-KR": lambda d: f"{d.year}. {d.month}. {d.day}.",
    "en-US": lambda d: f"{d.month}/{d.day}/{d.year}",
    "en-GB": lambda d: f"{d.day:02d}/{d.month:02d}/{d.year}",
}
_LABELS: Dict[str, Tuple[str, str]] = {
    "ko-KR": ("익명", "날짜 없음"),
    "en-US": ("Anonymous", "No date"),
    "en-GB": ("Anonymous", "No date"),
}
DEFAULT_LOCALE = "ko-KR"


def _match_locale(locale: str) -> str:
    if locale in _DATE_FORMATS:
        return locale
    language = (locale or "").split("-")[0].lower()
    for known in _DATE_FORMATS:
        if known.split("-")[0] == language:
            return known
    logger.warning("Unsupported locale %s; using %s", locale, DEFAULT_LOCALE)
    return DEFAULT_LOCALE


@dataclass(frozen=True)
class ReviewLabels:
    anonymous: str
    no_date: str
    format_date: DateFormatter
    tz: tzinfo

    @classmethod
    def for_locale(cls, locale: str = DEFAULT_LOCALE, timezone: str = "Asia/Seoul") -> "ReviewLabels":
        matched = _match_locale(locale)
        try:
            tz = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigError(f"Unknown time zone {timezone!r}") from exc
        anonymous, no_date = _LABELS[matched]
        return cls(anonymous=anonymous, no_date=no_date, format_date=_DATE_FORMATS[matched], tz=tz)


def format_review_date(value: Any, labels: ReviewLabels) -> str:
    """Render epoch seconds as a localized date, or the "no date" label."""
    if not value or isinstance(value, bool):
        return labels.no_date
    try:
        seconds = float(value)
        if not math.isfinite(seconds):
            return labels.no_date
        return labels.format_date(datetime.fromtimestamp(seconds, tz=labels.tz))
    except (TypeError, ValueError, OverflowError, OSError) as exc:
        logger.debug("Unable to convert review time %r: %s", value, exc)
        return labels.no_date


def _safe_rating(value: Any) -> float:
    if isinstance(value, bool):
        return 0
    try:
        rating = float(value) if value is not None else 0
    except (TypeError, ValueError):
        return 0
    return rating if math.isfinite(rating) else 0


def _photo_urls(photos: Any) -> Tuple[str, ...]:
    if not isinstance(photos, list):
        return ()
    return tuple(photo["url"] for photo in photos if isinstance(photo, dict) and photo.get("url"))


def normalize_review(raw: Any, labels: ReviewLabels) -> ReviewRecord:
    if not isinstance(raw, dict):
        raw = {}
    return ReviewRecord(
        id=str(raw.get("id") or ""),
        nick=str(raw.get("authorName") or labels.anonymous),
        rating=_safe_rating(raw.get("rating")),
        review_text=str(raw.get("text") or ""),
        created_at=format_review_date(raw.get("time"), labels),
        images=_photo_urls(raw.get("photos")),
    )


def normalize_reviews(raw_reviews: Optional[Iterable[Any]], labels: ReviewLabels) -> List[ReviewRecord]:
    return [normalize_review(raw, labels) for raw in raw_reviews or []]
