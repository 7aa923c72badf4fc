"""
Media package for vapeur.

Downloads Steam store assets into the ES-DE downloaded_media tree.
"""

from .asset_types import AssetKind, ASSET_DIRECTORY_MAP, get_directory_for_asset
from .materializer import AssetMaterializer, AssetDownloadFailed

__all__ = [
    "AssetKind",
    "ASSET_DIRECTORY_MAP",
    "get_directory_for_asset",
    "AssetMaterializer",
    "AssetDownloadFailed",
]
