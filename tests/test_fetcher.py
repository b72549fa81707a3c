import asyncio

import pytest

from placepage.core import fetcher as fetcher_module
from placepage.core.geo import format_distance, haversine_meters
from placepage.errors import PlaceServiceError
from placepage.etl.fallback import build_fallback_table
from placepage.models import Coordinate, FallbackSourced, PlaceRecord

STORE_DETAILS = {
    "name": "Acme Coffee",
    "rating": 4.4,
    "formattedAddress": "12 Main St",
    "lat": 37.5563,
    "lng": 126.9236,
    "photos": [{"url": "https://img.example.com/1.jpg"}],
    "reviews": [{"id": "r1", "authorName": "Kim", "rating": 5, "text": "good", "time": 1700000000}],
}

FALLBACK = build_fallback_table(
    [
        {
            "id": "3",
            "name": "책방 숲",
            "bookmark": True,
            "rating": 4.8,
            "distance": "800m",
            "industry": "서점",
            "address": "서울 서대문구 연세로 7",
            "images": [],
        }
    ]
)


def _failing_client(store_id):
    raise PlaceServiceError("503")


def test_fetch_remote_without_viewer_location_leaves_distance_blank():
    calls = []

    def client(store_id):
        calls.append(store_id)
        return STORE_DETAILS

    fetcher = fetcher_module.PlaceDetailFetcher(client, FALLBACK)
    load = asyncio.run(fetcher.fetch("12"))

    assert calls == [12]
    assert load.is_remote
    assert load.record.name == "Acme Coffee"
    assert load.record.address == "12 Main St"
    assert load.record.images == ("https://img.example.com/1.jpg",)
    assert load.record.distance == ""
    assert load.record.industry == ""
    assert load.raw_reviews[0]["id"] == "r1"


def test_fetch_remote_attaches_formatted_distance():
    viewer = Coordinate(lat=37.5665, lng=126.9780)
    fetcher = fetcher_module.PlaceDetailFetcher(lambda store_id: STORE_DETAILS, FALLBACK)

    load = asyncio.run(fetcher.fetch("12", viewer))

    expected = format_distance(haversine_meters(viewer.lat, viewer.lng, 37.5563, 126.9236))
    assert load.record.distance == expected
    assert load.record.distance.endswith("km")


def test_fetch_remote_at_same_point_reports_zero_distance():
    here = Coordinate(lat=37.5563, lng=126.9236)
    fetcher = fetcher_module.PlaceDetailFetcher(lambda store_id: STORE_DETAILS, FALLBACK)
    assert asyncio.run(fetcher.fetch("12", here)).record.distance == "0m"


def test_fetch_remote_without_place_coordinate_leaves_distance_blank():
    details = {key: value for key, value in STORE_DETAILS.items() if key != "lat"}
    fetcher = fetcher_module.PlaceDetailFetcher(lambda store_id: details, FALLBACK)
    load = asyncio.run(fetcher.fetch("12", Coordinate(lat=37.0, lng=127.0)))
    assert load.record.distance == ""


def test_fetch_falls_back_to_static_entry(caplog):
    fetcher = fetcher_module.PlaceDetailFetcher(_failing_client, FALLBACK)

    with caplog.at_level("ERROR"):
        load = asyncio.run(fetcher.fetch("3", Coordinate(lat=37.0, lng=127.0)))

    assert isinstance(load.source, FallbackSourced)
    assert not load.is_remote
    assert load.record.industry == "서점"
    assert load.record.distance == "800m"
    assert load.source.bookmark is True
    assert load.record.coordinate is None
    assert load.raw_reviews == ()
    assert "Store details lookup failed for id=3" in " ".join(caplog.messages)


def test_fetch_unknown_everywhere_returns_defaults():
    fetcher = fetcher_module.PlaceDetailFetcher(_failing_client, FALLBACK)
    load = asyncio.run(fetcher.fetch("404"))
    assert load.record == PlaceRecord()
    assert load.source is None
    assert load.raw_reviews == ()


def test_fetch_rejects_non_numeric_id():
    fetcher = fetcher_module.PlaceDetailFetcher(lambda store_id: STORE_DETAILS, FALLBACK)
    with pytest.raises(ValueError):
        asyncio.run(fetcher.fetch("abc"))


def test_from_settings_uses_store_api(monkeypatch):
    captured = {}

    def fake_get_store_details(store_id, base_url):
        captured.update(store_id=store_id, base_url=base_url)
        return STORE_DETAILS

    class DummySettings:
        place_api_url = "https://api.example.com"

    monkeypatch.setattr(fetcher_module.store_api, "get_store_details", fake_get_store_details)
    fetcher = fetcher_module.PlaceDetailFetcher.from_settings(DummySettings(), FALLBACK)

    asyncio.run(fetcher.fetch("5"))

    assert captured == {"store_id": 5, "base_url": "https://api.example.com"}


@pytest.mark.parametrize(
    "lat, lng",
    [("nan", 127.0), (37.5, "inf"), (float("-inf"), 127.0), (91.0, 127.0), (37.5, -180.5)],
)
def test_fetch_ignores_unusable_place_coordinate(lat, lng):
    details = dict(STORE_DETAILS, lat=lat, lng=lng)
    fetcher = fetcher_module.PlaceDetailFetcher(lambda store_id: details, FALLBACK)

    load = asyncio.run(fetcher.fetch("12", Coordinate(lat=37.0, lng=127.0)))

    assert load.is_remote
    assert load.record.coordinate is None
    assert load.record.distance == ""


@pytest.mark.parametrize("rating", ["NaN", float("inf"), -2, "-0.5", "five", None])
def test_fetch_clamps_remote_rating(rating):
    details = dict(STORE_DETAILS, rating=rating)
    fetcher = fetcher_module.PlaceDetailFetcher(lambda store_id: details, FALLBACK)
    assert asyncio.run(fetcher.fetch("12")).record.rating == 0


@pytest.mark.parametrize("place_id", ["1_000", "+1", " 1", "-1", "１２", "", "1.0"])
def test_parse_store_id_accepts_only_ascii_digits(place_id):
    with pytest.raises(ValueError):
        fetcher_module.parse_store_id(place_id)


def test_parse_store_id_keeps_leading_zeros_for_lookup():
    assert fetcher_module.parse_store_id("007") == 7
    fetcher = fetcher_module.PlaceDetailFetcher(_failing_client, FALLBACK)
    assert asyncio.run(fetcher.fetch("003")).record == PlaceRecord()
