"""
Catalog record data structures.

Defines the per-game records kept in the two stores and the merge rule used
when new values are written over existing ones.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Dict, TypeVar, Union

# Steam metadata fields that reference downloadable assets
ASSET_FIELDS = ("marquee", "screenshot", "video", "cover")


@dataclass
class GameInfoRecord:
    """
    General game information, one per game in gameList.xml.

    Field names match the ES-DE gamelist element names.
    """
    path: str  # Relative path to the game file (e.g., "./game.bat")
    name: str = ""
    desc: str = ""
    rating: float = 0.0  # 0.0-1.0
    releasedate: str = ""  # YYYYMMDDTHHMMSS format
    developer: str = ""
    publisher: str = ""
    genre: str = ""
    players: str = ""  # Free-form, e.g. "1-4"


@dataclass
class SteamMetadataRecord:
    """
    Steam-specific metadata, one per game in steamids.xml.

    Asset fields hold either a remote URL waiting to be downloaded or the
    local path of the downloaded copy. ``sources`` remembers which remote
    URL each local copy came from.
    """
    path: str
    steamid: int = 0
    marquee: str = ""
    screenshot: str = ""
    video: str = ""
    cover: str = ""
    sources: Dict[str, str] = field(default_factory=dict)

    def asset_values(self) -> Dict[str, str]:
        """Current value of every asset field."""
        return {name: getattr(self, name) for name in ASSET_FIELDS}


@dataclass
class CatalogEntry:
    """A local game file joined with its records from both stores."""
    info: GameInfoRecord
    metadata: SteamMetadataRecord

    @property
    def path(self) -> str:
        return self.info.path


Record = TypeVar("Record", GameInfoRecord, SteamMetadataRecord)


def default_game_info(game_path: str) -> GameInfoRecord:
    """Create an empty info record for a game seen for the first time."""
    return GameInfoRecord(path=game_path)


def default_steam_metadata(game_path: str) -> SteamMetadataRecord:
    """Create an empty Steam metadata record for a game seen for the first time."""
    return SteamMetadataRecord(path=game_path)


def is_default_value(value: Union[str, int, float, dict, None]) -> bool:
    """True for values that carry no information ('', 0, 0.0, {}, None)."""
    if value is None:
        return True
    if isinstance(value, (str, dict)):
        return len(value) == 0
    return value == 0


def merge_record(existing: Record, incoming: Record) -> Record:
    """
    Merge an incoming record over an existing one.

    For every field except ``path`` the incoming value wins when it is not a
    default value; otherwise the existing value is kept. ``sources`` is merged
    key by key with the same rule.

    Args:
        existing: Record currently stored
        incoming: Record carrying new values

    Returns:
        New merged record (inputs are not modified)
    """
    if type(existing) is not type(incoming):
        raise TypeError(
            f"Cannot merge {type(incoming).__name__} into {type(existing).__name__}"
        )

    changes = {}
    for f in fields(existing):
        if f.name == "path":
            continue

        old_value = getattr(existing, f.name)
        new_value = getattr(incoming, f.name)

        if f.name == "sources":
            merged_sources = dict(old_value)
            for key, url in new_value.items():
                if not is_default_value(url):
                    merged_sources[key] = url
            changes[f.name] = merged_sources
        elif not is_default_value(new_value):
            changes[f.name] = new_value
        else:
            changes[f.name] = old_value

    return replace(existing, **changes)
