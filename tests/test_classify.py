import pytest

from libs.geo.classify import InputKind, classify, parse_url_host
from libs.geo.extract import extract_coords, looks_like_coordinate_pair, match_coordinate_pair
from libs.geo.types import Coordinate


@pytest.mark.parametrize("url,expected", [
    ("https://maps.google.com/@28.70406,77.102493,15z", (28.70406, 77.102493)),
    ("https://www.google.com/maps/place/Panipat/@29.3909,76.9635,13z/data=x", (29.3909, 76.9635)),
    ("https://maps.google.com/maps?q=29.39+76.96", (29.39, 76.96)),
    ("https://maps.google.com/?ll=12.5,-70.25&z=10", (12.5, -70.25)),
    ("https://staticmap.example/?size=1&center=-33.86,151.2", (-33.86, 151.2)),
    ("https://maps.example/dir/28.6,77.2", (28.6, 77.2)),
    ("https://maps.example/x?data=10.5,20.5", (10.5, 20.5)),
])
def test_extract_url_forms(url, expected):
    assert extract_coords(url) == Coordinate(*expected)


def test_extract_rejects_out_of_range():
    assert extract_coords("https://x.example/@95.0,200.0") is None


def test_extract_skips_bad_pair_and_continues():
    # Edge: first "@" pair out of range, a later valid query pair still wins
    url = "https://maps.example/@95.0,200.0?ll=28.5,77.1"
    assert extract_coords(url) == Coordinate(28.5, 77.1)


def test_extract_from_page_body():
    body = '<html><meta content="https://maps.google.com/maps?center=29.39,76.96&amp;zoom=15"></html>'
    assert extract_coords(body) == Coordinate(29.39, 76.96)
    assert extract_coords("<html>nothing here</html>") is None
    assert extract_coords("") is None


def test_coordinate_pair_matching():
    assert match_coordinate_pair(" 28.70406 , 77.102493 ") == Coordinate(28.70406, 77.102493)
    assert match_coordinate_pair("28.7，77.1") == Coordinate(28.7, 77.1)
    assert match_coordinate_pair("95,200") is None
    assert looks_like_coordinate_pair("95,200")
    assert match_coordinate_pair("28.7;77.1") is None


def test_classify_coordinates():
    c = classify("28.704060,77.102493")
    assert c.kind is InputKind.COORDINATES
    assert c.coordinate == Coordinate(28.70406, 77.102493)
    assert not c.kind.needs_network


def test_classify_url_with_coords():
    c = classify("https://maps.google.com/@28.70406,77.102493,15z")
    assert c.kind is InputKind.URL_WITH_COORDS
    assert c.coordinate == Coordinate(28.70406, 77.102493)


def test_classify_short_links():
    for url in ("https://maps.app.goo.gl/AbCdEf123", "https://goo.gl/maps/xyz", "https://www.google.com/maps/place/Some+Shop"):
        c = classify(url)
        assert c.kind is InputKind.URL_NEEDS_EXPANSION, url
        assert c.coordinate is None
        assert c.kind.needs_network


def test_classify_free_text_and_other_urls():
    assert classify("Model Town, Panipat").kind is InputKind.FREE_TEXT
    assert classify("https://example.com/listing/12").kind is InputKind.FREE_TEXT
    # Edge: out-of-range pair falls through to a place search
    assert classify("95,200").kind is InputKind.FREE_TEXT


def test_classify_invalid():
    assert classify("").kind is InputKind.INVALID
    assert classify("   ").kind is InputKind.INVALID
    assert classify(None).kind is InputKind.INVALID


def test_classify_custom_hosts():
    c = classify("https://osm.org/go/abc", map_link_hosts=("osm.org",))
    assert c.kind is InputKind.URL_NEEDS_EXPANSION


def test_parse_url_host():
    assert parse_url_host("https://Maps.App.Goo.gl/x") == "maps.app.goo.gl"
    assert parse_url_host("not a url") is None
    assert parse_url_host("mailto:someone") is None
    assert parse_url_host("http://[::1") is None
