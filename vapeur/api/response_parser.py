"""
Steam store response mapping.

Converts appdetails and review summary payloads into catalog records.
"""

import html
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from vapeur.gamelist.records import GameInfoRecord, SteamMetadataRecord

logger = logging.getLogger(__name__)

ASSET_CDN = "https://shared.fastly.steamstatic.com/store_item_assets/steam/apps"
VIDEO_CDN = "https://video.fastly.steamstatic.com/store_trailers"

# Store category id for "Multi-player"
MULTIPLAYER_CATEGORY_ID = 1

# Steam review_score runs from 0 (no reviews) to 9 (overwhelmingly positive)
MAX_REVIEW_SCORE = 9

RELEASE_DATE_FORMATS = (
    "%b %d, %Y",   # Nov 16, 2004
    "%d %b, %Y",   # 16 Nov, 2004
    "%B %d, %Y",   # November 16, 2004
    "%d %B, %Y",   # 16 November, 2004
    "%Y-%m-%d",
    "%b %Y",
    "%B %Y",
    "%Y",
)

_TAG_PATTERN = re.compile(r"<[^>]+>")


def clean_text(text: Optional[str]) -> str:
    """Strip HTML tags and decode entities."""
    if not text:
        return ""
    return html.unescape(_TAG_PATTERN.sub("", text)).strip()


def format_release_date(release_date: Optional[Dict[str, Any]]) -> str:
    """
    Format a store release date to ES-DE format (YYYYMMDDTHHMMSS).

    Args:
        release_date: ``release_date`` object ({"coming_soon": bool, "date": str})

    Returns:
        Formatted date, or '' for unreleased games and unparseable dates
    """
    if not release_date or release_date.get("coming_soon"):
        return ""

    date_str = (release_date.get("date") or "").strip()
    for fmt in RELEASE_DATE_FORMATS:
        try:
            parsed = datetime.strptime(date_str, fmt)
        except ValueError:
            continue
        return parsed.strftime("%Y%m%dT000000")

    if date_str:
        logger.debug(f"Unrecognized release date format: {date_str!r}")
    return ""


def rating_from_reviews(summary: Optional[Dict[str, Any]]) -> float:
    """
    Convert a review summary to an ES-DE rating (0.0-1.0).

    Returns:
        0.0 when no score is available
    """
    if not summary:
        return 0.0
    try:
        score = float(summary.get("review_score", 0))
    except (TypeError, ValueError):
        return 0.0
    score = min(max(score, 0.0), MAX_REVIEW_SCORE)
    return round(score / MAX_REVIEW_SCORE, 2)


def players_from_categories(categories: Optional[List[Dict[str, Any]]]) -> str:
    """'1+' for multiplayer games, '1' otherwise."""
    for category in categories or []:
        if category.get("id") == MULTIPLAYER_CATEGORY_ID:
            return "1+"
    return "1"


def _join(values: Optional[List[str]]) -> str:
    return ", ".join(v for v in values or [] if v)


def select_video_url(movies: Optional[List[Dict[str, Any]]]) -> str:
    """URL of the first trailer at 480p, '' if the game has none."""
    if not movies:
        return ""
    movie = movies[0]
    mp4 = movie.get("mp4") or {}
    if mp4.get("480"):
        return mp4["480"]
    if movie.get("id") is not None:
        return f"{VIDEO_CDN}/{movie['id']}/movie480.mp4"
    return ""


def select_screenshot_url(screenshots: Optional[List[Dict[str, Any]]]) -> str:
    """Full-size URL of the first screenshot, '' if none."""
    if not screenshots:
        return ""
    return screenshots[0].get("path_full") or ""


def parse_game_details(
    game_path: str,
    app_id: int,
    details: Dict[str, Any],
    reviews: Optional[Dict[str, Any]] = None
) -> Tuple[GameInfoRecord, SteamMetadataRecord]:
    """
    Build records from store payloads.

    Asset fields of the metadata record hold remote URLs; they become local
    paths when the record is saved.

    Args:
        game_path: Game path the records belong to
        app_id: Steam app id
        details: appdetails ``data`` object
        reviews: Review ``query_summary`` object (optional)

    Returns:
        Tuple of (GameInfoRecord, SteamMetadataRecord)
    """
    genres = [g.get("description", "") for g in details.get("genres") or []]

    info = GameInfoRecord(
        path=game_path,
        name=clean_text(details.get("name")),
        desc=clean_text(details.get("short_description")),
        rating=rating_from_reviews(reviews),
        releasedate=format_release_date(details.get("release_date")),
        developer=_join(details.get("developers")),
        publisher=_join(details.get("publishers")),
        genre=_join(genres),
        players=players_from_categories(details.get("categories")),
    )

    metadata = SteamMetadataRecord(
        path=game_path,
        steamid=app_id,
        marquee=f"{ASSET_CDN}/{app_id}/logo_2x.png",
        screenshot=select_screenshot_url(details.get("screenshots")),
        video=select_video_url(details.get("movies")),
        cover=f"{ASSET_CDN}/{app_id}/library_600x900_2x.jpg",
    )

    return info, metadata
