"""
XML document codec for the catalog stores.

Reads and writes the flat ``<gameList><game>...</game></gameList>`` documents
used by both gameList.xml and steamids.xml. Reads fail softly (a missing or
malformed document is an empty store); writes never truncate the previous
file before the new content is complete.
"""

import logging
import math
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from lxml import etree

logger = logging.getLogger(__name__)

ROOT_TAG = "gameList"
RECORD_TAG = "game"

_INT_PATTERN = re.compile(r"[+-]?\d+")

# Characters XML 1.0 cannot hold (control characters, surrogates, U+FFFE/U+FFFF)
_INVALID_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


class StoreReadFailure(Exception):
    """Raised when a store document cannot be read or parsed."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Could not read {source}: {reason}")


class StoreWriteFailure(Exception):
    """Raised when a store document cannot be written."""

    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"Could not write {target}: {reason}")


def _make_parser() -> etree.XMLParser:
    # Blank text is dropped so pretty printing is stable across round trips
    return etree.XMLParser(remove_blank_text=True, resolve_entities=False)


def new_document(root_tag: str = ROOT_TAG) -> etree._Element:
    """Create an empty store document."""
    return etree.Element(root_tag)


def decode_document(data: Union[bytes, str], root_tag: str = ROOT_TAG, source: str = "<memory>") -> etree._Element:
    """
    Parse document bytes strictly.

    Args:
        data: Raw XML content
        root_tag: Expected root element name
        source: Label used in error messages

    Returns:
        Root element of the document

    Raises:
        StoreReadFailure: If the content is empty, malformed, or has the wrong root
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    if not data.strip():
        raise StoreReadFailure(source, "document is empty")

    try:
        root = etree.fromstring(data, _make_parser())
    except etree.XMLSyntaxError as e:
        raise StoreReadFailure(source, str(e))

    if root.tag != root_tag:
        raise StoreReadFailure(source, f"unexpected root element <{root.tag}>")

    return root


def parse_document(data: Union[bytes, str], root_tag: str = ROOT_TAG, source: str = "<memory>") -> etree._Element:
    """
    Parse document bytes, returning an empty document on any failure.

    "No file yet" and "broken file" are treated identically by callers.
    """
    try:
        return decode_document(data, root_tag, source)
    except StoreReadFailure as e:
        logger.warning(f"{e}; treating as empty store")
        return new_document(root_tag)


def read_document(path: Path, root_tag: str = ROOT_TAG) -> etree._Element:
    """
    Read a store document from disk, failing softly.

    Args:
        path: Document path
        root_tag: Expected root element name

    Returns:
        Parsed root element, or an empty document if the file is missing or unreadable
    """
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        logger.debug(f"Store not found, starting empty: {path}")
        return new_document(root_tag)
    except OSError as e:
        logger.warning(f"{StoreReadFailure(str(path), str(e))}; treating as empty store")
        return new_document(root_tag)

    return parse_document(data, root_tag, source=str(path))


def serialize_document(root: etree._Element) -> bytes:
    """Serialize a document to pretty-printed UTF-8 bytes."""
    return etree.tostring(
        root,
        encoding="utf-8",
        xml_declaration=True,
        pretty_print=True,
    )


def write_document(path: Path, root: etree._Element) -> None:
    """
    Write a store document atomically.

    The payload is fully built and written to a temporary sibling before it
    replaces the target, so a failed write leaves the old document intact.

    Raises:
        StoreWriteFailure: If the document cannot be written
    """
    payload = serialize_document(root)
    temp_path = path.with_name(path.name + ".tmp")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(temp_path, "wb") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except OSError as e:
        if temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                logger.debug(f"Could not remove temp file {temp_path}")
        raise StoreWriteFailure(str(path), str(e))

    logger.debug(f"Wrote {len(payload)} bytes to {path}")


def as_list(node: Any) -> List[Any]:
    """
    Normalize an absent, single, or repeated value into a list.

    Returns:
        [] for None, the items of a list or tuple, otherwise [node]
    """
    if node is None:
        return []
    if isinstance(node, (list, tuple)):
        return list(node)
    return [node]


def find_records(root: Optional[etree._Element], tag: str = RECORD_TAG) -> List[etree._Element]:
    """Return all repeating record elements of a document (possibly none)."""
    if root is None:
        return []
    return as_list(root.findall(tag))


def get_text(element: etree._Element, tag: str) -> str:
    """Get text content of a child element, '' when absent."""
    child = element.find(tag)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def clean_xml_text(text: str) -> str:
    """Drop characters that cannot appear in an XML document."""
    return _INVALID_XML_CHARS.sub("", text)


def set_text(element: etree._Element, tag: str, text: str) -> etree._Element:
    """
    Set text of a child element, updating it in place or appending it.

    Characters XML cannot hold are dropped.
    """
    child = element.find(tag)
    if child is None:
        child = etree.SubElement(element, tag)
    child.text = clean_xml_text(text)
    return child


def parse_float(text: Optional[str]) -> float:
    """Parse a float, coercing empty, invalid, NaN and infinite values to 0."""
    if not text:
        return 0.0
    try:
        value = float(text)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def parse_int(text: Optional[str]) -> int:
    """
    Parse an integer from the whole string.

    Trailing garbage is rejected rather than truncated: "12abc" is 0.
    """
    if not text:
        return 0
    text = text.strip()
    if not _INT_PATTERN.fullmatch(text):
        return 0
    return int(text)


def format_float(value: float) -> str:
    """Format a float without trailing zeros (0.9 instead of 0.900000)."""
    return f"{value:.6f}".rstrip("0").rstrip(".")


def index_records(root: etree._Element, key_tag: str = "path", tag: str = RECORD_TAG) -> Dict[str, etree._Element]:
    """
    Map each record's key to its element.

    The first occurrence wins when a key is duplicated.
    """
    index: Dict[str, etree._Element] = {}
    for element in find_records(root, tag):
        key = get_text(element, key_tag)
        if key and key not in index:
            index[key] = element
    return index
