"""
Game info store (gameList.xml).

Typed read, merge and write access to the ES-DE general game information
document. Elements the store does not manage (favorite, image, playcount,
...) are preserved untouched.
"""

import logging
from dataclasses import fields
from typing import Iterable, List, Optional, Union

from lxml import etree

from vapeur.config.layout import FolderLayout
from .records import GameInfoRecord, default_game_info, merge_record
from .xml_codec import (
    RECORD_TAG,
    as_list,
    find_records,
    index_records,
    format_float,
    get_text,
    parse_float,
    read_document,
    set_text,
    write_document,
)

logger = logging.getLogger(__name__)

# Elements written by this store, in document order
INFO_FIELDS = tuple(f.name for f in fields(GameInfoRecord))


def parse_game_info(game_elem: etree._Element) -> Optional[GameInfoRecord]:
    """
    Parse a single <game> element.

    Args:
        game_elem: <game> XML element

    Returns:
        GameInfoRecord, or None if the element has no path
    """
    path = get_text(game_elem, "path")
    if not path:
        return None

    return GameInfoRecord(
        path=path,
        name=get_text(game_elem, "name"),
        desc=get_text(game_elem, "desc"),
        rating=parse_float(get_text(game_elem, "rating")),
        releasedate=get_text(game_elem, "releasedate"),
        developer=get_text(game_elem, "developer"),
        publisher=get_text(game_elem, "publisher"),
        genre=get_text(game_elem, "genre"),
        players=get_text(game_elem, "players"),
    )


def apply_game_info(game_elem: etree._Element, record: GameInfoRecord) -> None:
    """Write every managed field of a record into a <game> element."""
    for name in INFO_FIELDS:
        value = getattr(record, name)
        if name == "rating":
            value = format_float(value)
        set_text(game_elem, name, value)


def lookup_game_info(records: Iterable[GameInfoRecord], game_path: str) -> GameInfoRecord:
    """Return the record for ``game_path``, or a fresh default record."""
    for record in records:
        if record.path == game_path:
            return record
    return default_game_info(game_path)


class GameInfoStore:
    """
    Reads and writes gameList.xml for one ES-DE folder.

    No document state is cached between calls; every save re-reads the file
    so edits made by the frontend in the meantime are not lost.
    """

    def __init__(self, layout: FolderLayout):
        self.layout = layout

    @property
    def file_path(self):
        return self.layout.gamelist_file

    def load(self) -> List[GameInfoRecord]:
        """
        Load all records.

        Never raises: an unreadable document is logged and loads as empty.
        """
        try:
            root = read_document(self.file_path)
            records = []
            for game_elem in find_records(root):
                record = parse_game_info(game_elem)
                if record is None:
                    logger.debug(f"Skipping <game> without path in {self.file_path}")
                    continue
                records.append(record)
            return records
        except Exception as e:
            logger.error(f"Error reading {self.file_path}: {e}")
            return []

    def save(self, records: Union[GameInfoRecord, Iterable[GameInfoRecord]]) -> None:
        """
        Upsert records into gameList.xml.

        Existing records are merged field by field; new ones are appended.

        Args:
            records: One record or a sequence of records

        Raises:
            StoreWriteFailure: If the document cannot be written
        """
        incoming = as_list(records) if isinstance(records, GameInfoRecord) else list(records)
        root = read_document(self.file_path)
        index = index_records(root)

        added = 0
        updated = 0
        for record in incoming:
            game_elem = index.get(record.path)
            if game_elem is not None:
                existing = parse_game_info(game_elem)
                apply_game_info(game_elem, merge_record(existing, record))
                updated += 1
            else:
                game_elem = etree.SubElement(root, RECORD_TAG)
                apply_game_info(game_elem, record)
                index[record.path] = game_elem
                added += 1

        write_document(self.file_path, root)
        logger.info(f"Saved {self.file_path.name}: {updated} updated, {added} added")
