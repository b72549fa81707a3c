"""Core data models shared by the place detail pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True, slots=True)
class Coordinate:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True, slots=True)
class PlaceRecord:
    """Display shape of a place, regardless of which source produced it.

    ``distance`` is a pre-formatted string and stays empty when unknown; a
    computed ``"0m"`` is a real value.
    """

    name: str = ""
    rating: float = 0
    address: str = ""
    industry: str = ""
    distance: str = ""
    images: Tuple[str, ...] = ()
    coordinate: Optional[Coordinate] = None


@dataclass(frozen=True, slots=True)
class RemoteSourced:
    """Fields taken from a successful store API response."""

    name: str
    rating: float
    address: str
    images: Tuple[str, ...]
    coordinate: Optional[Coordinate]
    raw_reviews: Tuple[Dict[str, Any], ...] = ()


@dataclass(frozen=True, slots=True)
class FallbackSourced:
    """Fields taken from a bundled static dataset entry."""

    name: str
    rating: float
    address: str
    images: Tuple[str, ...]
    industry: str
    distance: str
    bookmark: bool


PlaceSource = Union[RemoteSourced, FallbackSourced, None]


def resolve_place_record(source: PlaceSource, distance: str = "") -> PlaceRecord:
    """Collapse a tagged source into the common PlaceRecord.

    ``distance`` only applies to remote records; fallback entries carry their own.
    """
    if isinstance(source, RemoteSourced):
        return PlaceRecord(
            name=source.name,
            rating=source.rating,
            address=source.address,
            images=source.images,
            coordinate=source.coordinate,
            distance=distance,
        )
    if isinstance(source, FallbackSourced):
        return PlaceRecord(
            name=source.name,
            rating=source.rating,
            address=source.address,
            images=source.images,
            industry=source.industry,
            distance=source.distance,
        )
    return PlaceRecord()


@dataclass(frozen=True, slots=True)
class ReviewRecord:
    id: str
    nick: str
    rating: float
    review_text: str
    created_at: str
    images: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "nick": self.nick,
            "rating": self.rating,
            "reviewText": self.review_text,
            "createdAt": self.created_at,
            "images": list(self.images),
        }


@dataclass(slots=True)
class ViewState:
    """Mutable state of one place detail page instance."""

    place: PlaceRecord = field(default_factory=PlaceRecord)
    user_reviews: List[ReviewRecord] = field(default_factory=list)
    google_reviews: List[ReviewRecord] = field(default_factory=list)
    coordinate: Optional[Coordinate] = None
    # Local only; seeded from fallback entries and flipped by the view.
    bookmark: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.place.name,
            "isBookmark": self.bookmark,
            "rating": self.place.rating,
            "distance": self.place.distance,
            "industry": self.place.industry,
            "address": self.place.address,
            "images": list(self.place.images),
            "userReviews": [review.to_dict() for review in self.user_reviews],
            "googleReviews": [review.to_dict() for review in self.google_reviews],
            "userLocation": self.coordinate.to_dict() if self.coordinate else None,
        }
