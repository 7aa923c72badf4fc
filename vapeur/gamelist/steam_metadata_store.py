"""
Steam metadata store (steamids.xml).

Typed read, merge and write access to the Steam metadata document. Saving a
record downloads every asset whose value changed since the last save, and
only records whose downloads all completed are written.
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from lxml import etree

from vapeur.config.layout import FolderLayout
from vapeur.media.asset_types import kind_for_field
from vapeur.media.materializer import AssetDownloadFailed, AssetMaterializer, StagedAsset, is_remote_url
from .records import ASSET_FIELDS, SteamMetadataRecord, default_steam_metadata, merge_record
from .xml_codec import (
    RECORD_TAG,
    as_list,
    clean_xml_text,
    find_records,
    index_records,
    get_text,
    parse_int,
    read_document,
    set_text,
    write_document,
)

logger = logging.getLogger(__name__)

SOURCE_ATTRIBUTE = "source"


def parse_steam_metadata(game_elem: etree._Element) -> Optional[SteamMetadataRecord]:
    """
    Parse a single <game> element.

    Args:
        game_elem: <game> XML element

    Returns:
        SteamMetadataRecord, or None if the element has no path
    """
    path = get_text(game_elem, "path")
    if not path:
        return None

    record = SteamMetadataRecord(
        path=path,
        steamid=parse_int(get_text(game_elem, "steamid")),
    )
    for name in ASSET_FIELDS:
        setattr(record, name, get_text(game_elem, name))
        child = game_elem.find(name)
        source = child.get(SOURCE_ATTRIBUTE) if child is not None else None
        if source:
            record.sources[name] = source

    return record


def apply_steam_metadata(game_elem: etree._Element, record: SteamMetadataRecord) -> None:
    """Write every field of a record into a <game> element."""
    set_text(game_elem, "path", record.path)
    set_text(game_elem, "steamid", str(record.steamid))

    for name in ASSET_FIELDS:
        child = set_text(game_elem, name, getattr(record, name))
        source = record.sources.get(name)
        if source:
            child.set(SOURCE_ATTRIBUTE, clean_xml_text(source))
        elif SOURCE_ATTRIBUTE in child.attrib:
            del child.attrib[SOURCE_ATTRIBUTE]


def lookup_steam_metadata(records: Iterable[SteamMetadataRecord], game_path: str) -> SteamMetadataRecord:
    """Return the record for ``game_path``, or a fresh default record."""
    for record in records:
        if record.path == game_path:
            return record
    return default_steam_metadata(game_path)


def is_unchanged(existing: SteamMetadataRecord, field_name: str, value: str) -> bool:
    """
    Check whether an incoming asset value matches what is already stored.

    A value is unchanged when it equals the stored local reference or the
    remote URL that reference was downloaded from.
    """
    return value == getattr(existing, field_name) or value == existing.sources.get(field_name)


def _downloaded_path(existing: Optional[SteamMetadataRecord], field_name: str) -> Optional[str]:
    """Local path of a previously downloaded asset, None for local-only references."""
    if existing is None or not existing.sources.get(field_name):
        return None
    return getattr(existing, field_name) or None


class SteamMetadataStore:
    """
    Reads and writes steamids.xml for one ES-DE folder.

    Like the game info store, every save starts from a fresh read.
    """

    def __init__(self, layout: FolderLayout, materializer: Optional[AssetMaterializer] = None):
        """
        Initialize store.

        Args:
            layout: Folder layout locating steamids.xml
            materializer: Downloads changed assets on save (not needed for reads)
        """
        self.layout = layout
        self.materializer = materializer

    @property
    def file_path(self):
        return self.layout.steamids_file

    def load(self) -> List[SteamMetadataRecord]:
        """
        Load all records.

        Never raises: an unreadable document is logged and loads as empty.
        """
        try:
            root = read_document(self.file_path)
            records = []
            for game_elem in find_records(root):
                record = parse_steam_metadata(game_elem)
                if record is None:
                    logger.debug(f"Skipping <game> without path in {self.file_path}")
                    continue
                records.append(record)
            return records
        except Exception as e:
            logger.error(f"Error reading {self.file_path}: {e}")
            return []

    async def save(self, records: Union[SteamMetadataRecord, Iterable[SteamMetadataRecord]]) -> None:
        """
        Upsert records into steamids.xml, downloading changed assets first.

        A record whose download fails is left as it was on disk; the other
        records are still written before the failure is raised.

        Args:
            records: One record or a sequence of records

        Raises:
            AssetDownloadFailed: First download failure, after saving the rest
            StoreWriteFailure: If the document cannot be written
        """
        incoming = as_list(records) if isinstance(records, SteamMetadataRecord) else list(records)
        root = read_document(self.file_path)
        index = index_records(root)

        failures: List[AssetDownloadFailed] = []
        written = 0
        for record in incoming:
            game_elem = index.get(record.path)
            existing = parse_steam_metadata(game_elem) if game_elem is not None else None

            try:
                resolved, local_only = await self._materialize_changes(existing, record)
            except AssetDownloadFailed as e:
                logger.error(f"Not saving metadata for {record.path}: {e}")
                failures.append(e)
                continue

            if existing is None:
                merged = resolved
                game_elem = etree.SubElement(root, RECORD_TAG)
                index[record.path] = game_elem
            else:
                merged = merge_record(existing, resolved)

            for name in local_only:
                merged.sources.pop(name, None)

            apply_steam_metadata(game_elem, merged)
            written += 1

        if written or not failures:
            write_document(self.file_path, root)
            logger.info(f"Saved {self.file_path.name}: {written} record(s), {len(failures)} failed")

        if failures:
            raise failures[0]

    async def _materialize_changes(
        self,
        existing: Optional[SteamMetadataRecord],
        incoming: SteamMetadataRecord
    ) -> Tuple[SteamMetadataRecord, Set[str]]:
        """
        Download every changed asset of a record, in field order.

        Downloads are staged first and only moved into place once all of
        them succeeded, so a failed record leaves its media files as they were.

        Returns:
            Record with downloaded fields replaced by local paths, and the
            names of fields set to a local reference without a download
        """
        values: Dict[str, str] = {}
        sources = dict(incoming.sources)
        local_only: Set[str] = set()
        staged: List[Tuple[str, StagedAsset]] = []

        promoted = False
        try:
            for name in ASSET_FIELDS:
                value = getattr(incoming, name)
                if not value:
                    continue

                if existing is not None and is_unchanged(existing, name, value):
                    values[name] = getattr(existing, name)
                    continue

                if not is_remote_url(value):
                    local_only.add(name)
                    sources.pop(name, None)
                    continue

                if self.materializer is None:
                    raise RuntimeError("Saving changed assets requires a materializer")

                asset = await self.materializer.stage(kind_for_field(name), value, incoming.path)
                staged.append((name, asset))
                sources[name] = value

            for name, asset in staged:
                values[name] = str(self.materializer.promote(asset, _downloaded_path(existing, name)))
            promoted = True
        finally:
            if not promoted:
                for _, asset in staged:
                    self.materializer.discard(asset)

        return replace(incoming, sources=sources, **values), local_only
