import pytest

from vapeur.api import response_parser
from vapeur.api.response_parser import (
    ASSET_CDN,
    clean_text,
    format_release_date,
    parse_game_details,
    players_from_categories,
    rating_from_reviews,
    select_video_url,
)


def _portal_details() -> dict:
    return {
        "type": "game",
        "name": "Portal&trade;",
        "steam_appid": 400,
        "short_description": "A <b>puzzle</b> game &amp; more.",
        "developers": ["Valve"],
        "publishers": ["Valve"],
        "genres": [{"id": "1", "description": "Action"}, {"id": "25", "description": "Puzzle"}],
        "categories": [{"id": 2, "description": "Single-player"}],
        "release_date": {"coming_soon": False, "date": "10 Oct, 2007"},
        "screenshots": [
            {"id": 0, "path_thumbnail": "https://cdn.example/ss_0.600x338.jpg",
             "path_full": "https://cdn.example/ss_0.1920x1080.jpg"},
            {"id": 1, "path_full": "https://cdn.example/ss_1.1920x1080.jpg"},
        ],
        "movies": [
            {"id": 2028, "name": "Trailer", "mp4": {"480": "https://cdn.example/movie480.mp4",
                                                    "max": "https://cdn.example/movie_max.mp4"}},
        ],
    }


@pytest.mark.unit
def test_parse_game_details_maps_store_fields():
    info, metadata = parse_game_details("./Portal.bat", 400, _portal_details(), {"review_score": 9})

    assert info.path == "./Portal.bat"
    assert info.name == "Portal™"
    assert info.desc == "A puzzle game & more."
    assert info.rating == 1.0
    assert info.releasedate == "20071010T000000"
    assert info.developer == "Valve"
    assert info.genre == "Action, Puzzle"
    assert info.players == "1"

    assert metadata.steamid == 400
    assert metadata.marquee == f"{ASSET_CDN}/400/logo_2x.png"
    assert metadata.cover == f"{ASSET_CDN}/400/library_600x900_2x.jpg"
    assert metadata.screenshot == "https://cdn.example/ss_0.1920x1080.jpg"
    assert metadata.video == "https://cdn.example/movie480.mp4"
    assert metadata.sources == {}


@pytest.mark.unit
def test_parse_game_details_tolerates_sparse_payload():
    info, metadata = parse_game_details("./x.bat", 7, {"name": "X"})

    assert info.name == "X"
    assert info.rating == 0.0
    assert info.releasedate == ""
    assert info.genre == ""
    assert metadata.screenshot == ""
    assert metadata.video == ""


@pytest.mark.unit
@pytest.mark.parametrize("release,expected", [
    ({"coming_soon": False, "date": "Nov 16, 2004"}, "20041116T000000"),
    ({"coming_soon": False, "date": "16 Nov, 2004"}, "20041116T000000"),
    ({"coming_soon": False, "date": "2004"}, "20040101T000000"),
    ({"coming_soon": True, "date": "Q4 2026"}, ""),
    ({"coming_soon": False, "date": "To be announced"}, ""),
    (None, ""),
])
def test_format_release_date(release, expected):
    assert format_release_date(release) == expected


@pytest.mark.unit
@pytest.mark.parametrize("summary,expected", [
    ({"review_score": 9}, 1.0),
    ({"review_score": 6}, 0.67),
    ({"review_score": 0}, 0.0),
    ({"review_score": "bad"}, 0.0),
    ({}, 0.0),
    (None, 0.0),
])
def test_rating_from_reviews(summary, expected):
    assert rating_from_reviews(summary) == expected


@pytest.mark.unit
def test_players_from_categories():
    assert players_from_categories([{"id": 2}, {"id": 1}]) == "1+"
    assert players_from_categories([{"id": 2}]) == "1"
    assert players_from_categories(None) == "1"


@pytest.mark.unit
def test_select_video_url_falls_back_to_movie_id():
    assert select_video_url([{"id": 256}]) == f"{response_parser.VIDEO_CDN}/256/movie480.mp4"
    assert select_video_url([]) == ""


@pytest.mark.unit
def test_clean_text():
    assert clean_text("<p>Hello&nbsp;<i>world</i></p>") == "Hello\xa0world"
    assert clean_text(None) == ""
