"""
Catalog reconciler.

Joins the game files of an ES-DE folder with their records from both
stores, and commits edited entries back to the stores.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from vapeur.api.response_parser import parse_game_details
from vapeur.config.layout import FolderLayout
from vapeur.gamelist.game_info_store import GameInfoStore, lookup_game_info
from vapeur.gamelist.records import CatalogEntry, merge_record
from vapeur.gamelist.steam_metadata_store import SteamMetadataStore, lookup_steam_metadata
from vapeur.gamelist.xml_codec import StoreWriteFailure
from vapeur.media.materializer import AssetDownloadFailed, AssetMaterializer

logger = logging.getLogger(__name__)

# Shortcut and launcher files ES-DE starts Steam games with
GAME_FILE_EXTENSIONS = {'.bat', '.lnk', '.url'}


class CatalogCommitError(Exception):
    """Raised when one or both stores could not be committed."""

    def __init__(self, failures: Dict[str, Exception]):
        self.failures = failures
        details = "; ".join(f"{store}: {error}" for store, error in failures.items())
        super().__init__(f"Catalog commit incomplete ({details})")


def scan_game_files(layout: FolderLayout) -> List[str]:
    """
    List game paths (``./<filename>``) in the folder's ROM directory.

    Order follows directory enumeration and is not guaranteed.
    """
    roms_path = layout.roms_path
    if not roms_path.is_dir():
        logger.info(f"ROM directory not found: {roms_path}")
        return []

    game_paths = []
    for entry in roms_path.iterdir():
        if entry.name.startswith('.') or not entry.is_file():
            continue
        if entry.suffix.lower() in GAME_FILE_EXTENSIONS:
            game_paths.append(f"./{entry.name}")

    logger.debug(f"Found {len(game_paths)} game files in {roms_path}")
    return game_paths


def list_catalog(layout: FolderLayout) -> List[CatalogEntry]:
    """
    Build one catalog entry per game file.

    Both stores are loaded once; games without records get default ones.

    Args:
        layout: Folder layout

    Returns:
        List of CatalogEntry objects
    """
    if layout.commit_marker.exists():
        logger.warning(
            f"A previous commit did not complete ({layout.commit_marker}); "
            f"gameList.xml and steamids.xml may be out of step"
        )

    game_paths = scan_game_files(layout)
    game_infos = GameInfoStore(layout).load()
    steam_metadata = SteamMetadataStore(layout).load()

    entries = []
    for game_path in game_paths:
        entries.append(CatalogEntry(
            info=lookup_game_info(game_infos, game_path),
            metadata=lookup_steam_metadata(steam_metadata, game_path),
        ))
    return entries


async def commit_catalog(
    layout: FolderLayout,
    entries: Iterable[CatalogEntry],
    materializer: AssetMaterializer
) -> None:
    """
    Write entries to both stores.

    The two saves are independent: the Steam metadata save runs even when
    the game info save failed. A pending-commit marker is kept in the
    gamelists directory until both stores have been written.

    Args:
        layout: Folder layout
        entries: Entries to commit
        materializer: Downloads changed assets

    Raises:
        StoreWriteFailure: If the commit marker cannot be written (nothing is touched)
        CatalogCommitError: If either store failed
    """
    entries = list(entries)
    for entry in entries:
        if entry.info.path != entry.metadata.path:
            raise ValueError(
                f"Entry records disagree on path: {entry.info.path} != {entry.metadata.path}"
            )

    _write_marker(layout.commit_marker, entries)

    failures: Dict[str, Exception] = {}

    try:
        GameInfoStore(layout).save([entry.info for entry in entries])
    except StoreWriteFailure as e:
        logger.error(f"Game info commit failed: {e}")
        failures[layout.gamelist_file.name] = e

    try:
        await SteamMetadataStore(layout, materializer).save([entry.metadata for entry in entries])
    except (StoreWriteFailure, AssetDownloadFailed) as e:
        logger.error(f"Steam metadata commit failed: {e}")
        failures[layout.steamids_file.name] = e

    if failures:
        raise CatalogCommitError(failures)

    try:
        layout.commit_marker.unlink()
    except FileNotFoundError:
        pass

    logger.info(f"Committed {len(entries)} catalog entries to {layout.root}")


def apply_remote_details(
    entry: CatalogEntry,
    app_id: int,
    details: Dict[str, Any],
    reviews: Optional[Dict[str, Any]] = None
) -> CatalogEntry:
    """
    Apply store data to an entry.

    Values the store does not provide keep their current value. Asset
    fields receive remote URLs, downloaded on the next commit if changed.

    Returns:
        New CatalogEntry (the input is not modified)
    """
    info, metadata = parse_game_details(entry.path, app_id, details, reviews)
    return CatalogEntry(
        info=merge_record(entry.info, info),
        metadata=merge_record(entry.metadata, metadata),
    )


def _write_marker(marker: Path, entries: List[CatalogEntry]) -> None:
    lines = [datetime.now().isoformat(timespec='seconds')]
    lines.extend(entry.path for entry in entries)
    try:
        marker.parent.mkdir(parents=True, exist_ok=True)
        marker.write_text("\n".join(lines) + "\n", encoding='utf-8')
    except OSError as e:
        raise StoreWriteFailure(str(marker), str(e))
