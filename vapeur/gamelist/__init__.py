"""
Gamelist store package for vapeur.

Reads and writes the ES-DE gameList.xml and the companion steamids.xml.
"""

from .records import (
    GameInfoRecord,
    SteamMetadataRecord,
    CatalogEntry,
    merge_record,
)
from .xml_codec import StoreReadFailure, StoreWriteFailure
from .game_info_store import GameInfoStore
from .steam_metadata_store import SteamMetadataStore

__all__ = [
    'GameInfoRecord',
    'SteamMetadataRecord',
    'CatalogEntry',
    'merge_record',
    'StoreReadFailure',
    'StoreWriteFailure',
    'GameInfoStore',
    'SteamMetadataStore',
]
