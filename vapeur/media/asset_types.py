"""
Asset kind definitions for vapeur.

Maps Steam metadata asset fields to ES-DE media directory names.
"""

from enum import Enum
from typing import Dict


class AssetKind(Enum):
    """
    Asset kinds downloaded into the ES-DE media tree.

    Values are the singular names used as steamids.xml element names.
    """
    MARQUEE = 'marquee'        # Logo shown above the game list
    SCREENSHOT = 'screenshot'  # In-game screenshot
    VIDEO = 'video'            # Trailer
    COVER = 'cover'            # Library capsule / box art
    MIXIMAGE = 'miximage'      # Composite image (not tied to a metadata field)


# Maps asset kinds to ES-DE directory names
ASSET_DIRECTORY_MAP: Dict[AssetKind, str] = {
    AssetKind.MARQUEE: 'marquees',
    AssetKind.SCREENSHOT: 'screenshots',
    AssetKind.VIDEO: 'videos',
    AssetKind.COVER: 'covers',
    AssetKind.MIXIMAGE: 'miximages',
}

IMAGE_KINDS = frozenset({
    AssetKind.MARQUEE,
    AssetKind.SCREENSHOT,
    AssetKind.COVER,
    AssetKind.MIXIMAGE,
})


def get_directory_for_asset(kind: AssetKind) -> str:
    """
    Get the ES-DE directory name for an asset kind.

    Args:
        kind: Asset kind

    Returns:
        ES-DE directory name (e.g., 'covers', 'videos')
    """
    return ASSET_DIRECTORY_MAP[kind]


def kind_for_field(field_name: str) -> AssetKind:
    """
    Get the asset kind stored in a Steam metadata field.

    Raises:
        ValueError: If the field does not hold an asset
    """
    try:
        kind = AssetKind(field_name)
    except ValueError:
        raise ValueError(f"Not an asset field: {field_name}")
    if kind is AssetKind.MIXIMAGE:
        raise ValueError(f"Not an asset field: {field_name}")
    return kind
