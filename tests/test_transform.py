import json
from types import MappingProxyType

import pytest

from placepage.core import geo
from placepage.etl import fallback, transform
from placepage.models import Coordinate, FallbackSourced, PlaceRecord, RemoteSourced, resolve_place_record


def test_to_remote_source_maps_fields():
    details = {
        "name": "Acme",
        "rating": 4.3,
        "formattedAddress": "1 Main St",
        "lat": 37.5,
        "lng": 127.0,
        "photos": [{"url": "p1.jpg"}, {"url": "p2.jpg"}],
        "reviews": [{"id": "r1"}],
    }

    source = transform.to_remote_source(details)

    assert source.name == "Acme"
    assert source.rating == 4.3
    assert source.address == "1 Main St"
    assert source.images == ("p1.jpg", "p2.jpg")
    assert source.coordinate == Coordinate(lat=37.5, lng=127.0)
    assert source.raw_reviews == ({"id": "r1"},)


def test_to_remote_source_defaults_missing_fields(caplog):
    with caplog.at_level("WARNING"):
        source = transform.to_remote_source({"reviews": "nope", "lat": 37.5})
    assert source.name == ""
    assert source.rating == 0
    assert source.images == ()
    assert source.coordinate is None
    assert source.raw_reviews == ()
    assert "non-list reviews" in " ".join(caplog.messages)


def test_parse_coordinate_accepts_zero():
    assert transform.parse_coordinate({"lat": 0, "lng": 0}) == Coordinate(lat=0.0, lng=0.0)
    assert transform.parse_coordinate({"lat": "x", "lng": 1}) is None


def test_resolve_place_record_variants():
    remote = RemoteSourced(name="R", rating=4.0, address="A", images=("i",), coordinate=Coordinate(1, 2))
    local = FallbackSourced(
        name="F", rating=3.0, address="B", images=(), industry="카페", distance="350m", bookmark=True
    )

    remote_record = resolve_place_record(remote, distance="1.0km")
    local_record = resolve_place_record(local, distance="ignored")

    assert remote_record.industry == "" and remote_record.distance == "1.0km"
    assert local_record.industry == "카페" and local_record.distance == "350m"
    assert local_record.coordinate is None
    assert resolve_place_record(None) == PlaceRecord()


def test_load_bundled_fallback_places():
    table = fallback.load_fallback_places()

    assert isinstance(table, MappingProxyType)
    entry = table["1"]
    assert entry.name == "온기 베이커리"
    assert entry.bookmark is True
    assert entry.distance == "350m"
    with pytest.raises(TypeError):
        table["99"] = entry


def test_load_fallback_places_from_path(tmp_path):
    path = tmp_path / "places.json"
    path.write_text(
        json.dumps([{"id": 7, "name": "Seven", "rating": 5}, {"name": "no id"}]),
        encoding="utf-8",
    )

    table = fallback.load_fallback_places(path)

    assert list(table) == ["7"]
    assert table["7"].industry == ""
    assert table["7"].images == ()


def test_haversine_and_format_distance():
    assert geo.haversine_meters(37.5, 127.0, 37.5, 127.0) == 0
    one_degree = geo.haversine_meters(0, 0, 1, 0)
    assert one_degree == pytest.approx(111195, rel=1e-3)
    assert geo.format_distance(0) == "0m"
    assert geo.format_distance(349.6) == "350m"
    assert geo.format_distance(999.7) == "1.0km"
    assert geo.format_distance(1234) == "1.2km"


@pytest.mark.parametrize(
    "value, expected",
    [(4.5, 4.5), ("3", 3.0), (0, 0), (-1, 0), ("nan", 0), (float("inf"), 0), (True, 0), (None, 0)],
)
def test_safe_rating(value, expected):
    assert transform.safe_rating(value) == expected


def test_fallback_entry_rating_is_clamped():
    table = fallback.build_fallback_table([{"id": "1", "rating": float("nan")}, {"id": "2", "rating": -3}])
    assert table["1"].rating == 0
    assert table["2"].rating == 0


def test_parse_coordinate_rejects_non_finite_and_out_of_range(caplog):
    assert transform.parse_coordinate({"lat": "nan", "lng": 127}) is None
    assert transform.parse_coordinate({"lat": 37, "lng": float("inf")}) is None
    with caplog.at_level("WARNING"):
        assert transform.parse_coordinate({"lat": 90.5, "lng": 0}) is None
    assert "out-of-range coordinate" in " ".join(caplog.messages)
    assert transform.parse_coordinate({"lat": -90, "lng": 180}) == Coordinate(lat=-90.0, lng=180.0)
