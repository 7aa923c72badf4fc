"""
Catalog service.

The operation surface used by the CLI (or any UI shell). Every operation
runs behind one asyncio lock, so no two catalog reads or writes ever
interleave on the XML files.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import httpx

from vapeur.api.client import SearchResult, SteamStoreClient
from vapeur.config.folders import FolderRegistry
from vapeur.config.layout import FolderLayout
from vapeur.config.loader import get_config_value
from vapeur.gamelist.records import CatalogEntry
from vapeur.media.materializer import AssetMaterializer
from .reconciler import apply_remote_details, commit_catalog, list_catalog

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Serialized access to folders, catalogs and the Steam store.

    Example:
        async with httpx.AsyncClient() as http:
            service = CatalogService(config, http, FolderRegistry(path))
            entries = await service.list_catalog('/home/user/ES-DE')
    """

    def __init__(
        self,
        config: Dict[str, Any],
        http_client: httpx.AsyncClient,
        registry: FolderRegistry,
        store_client: Optional[SteamStoreClient] = None
    ):
        """
        Initialize service.

        Args:
            config: Configuration dictionary
            http_client: Shared httpx.AsyncClient
            registry: Folder registry
            store_client: Steam store client (created from config if omitted)
        """
        self.config = config
        self.http_client = http_client
        self.registry = registry
        self.store_client = store_client or SteamStoreClient(config, http_client)
        self._lock = asyncio.Lock()

    def layout_for(self, folder: str) -> FolderLayout:
        return FolderLayout.from_config(folder, self.config)

    def materializer_for(self, layout: FolderLayout) -> AssetMaterializer:
        return AssetMaterializer(
            client=self.http_client,
            layout=layout,
            timeout=get_config_value(self.config, 'media.download_timeout', 120),
            max_retries=get_config_value(self.config, 'media.max_retries', 3),
            retry_backoff=get_config_value(self.config, 'media.retry_backoff_seconds', 1),
            chunk_size=get_config_value(self.config, 'media.chunk_size', 65536),
            validation_mode=get_config_value(self.config, 'media.validation_mode', 'disabled'),
        )

    async def list_folders(self) -> List[str]:
        async with self._lock:
            return self.registry.list_folders()

    async def add_folder(self, chooser: Callable[[], Optional[str]]) -> str:
        """
        Ask ``chooser`` for a folder and register it.

        Raises:
            NoSelectionMade: If the chooser returned nothing
        """
        async with self._lock:
            return self.registry.add_folder(chooser())

    async def list_catalog(self, folder: str) -> List[CatalogEntry]:
        async with self._lock:
            return list_catalog(self.layout_for(folder))

    async def commit_catalog(self, folder: str, entries: Union[CatalogEntry, Iterable[CatalogEntry]]) -> None:
        """
        Commit entries to both stores of ``folder``.

        Raises:
            CatalogCommitError: If either store failed
        """
        if isinstance(entries, CatalogEntry):
            entries = [entries]
        async with self._lock:
            layout = self.layout_for(folder)
            await commit_catalog(layout, entries, self.materializer_for(layout))

    async def search_remote(self, name: str) -> List[SearchResult]:
        async with self._lock:
            return await self.store_client.search(name)

    async def get_remote_details(self, app_id: int) -> Dict[str, Any]:
        """
        Store details merged with the review summary.

        Returns:
            appdetails data with a ``reviews_summary`` key added
        """
        async with self._lock:
            return await self._fetch_details(app_id)

    async def update_game(self, folder: str, game_path: str, app_id: int) -> CatalogEntry:
        """
        Run a full update cycle for one game.

        Fetches store data for ``app_id``, applies it to the game's entry,
        commits (downloading changed assets) and returns the stored entry.

        Raises:
            KeyError: If ``game_path`` is not a game file of the folder
            InvalidRemoteIdentifier: If the store does not know ``app_id``
            CatalogCommitError: If either store failed
        """
        async with self._lock:
            layout = self.layout_for(folder)
            entries = {entry.path: entry for entry in list_catalog(layout)}
            if game_path not in entries:
                raise KeyError(f"No game file {game_path} in {layout.roms_path}")

            details = await self._fetch_details(app_id)
            updated = apply_remote_details(
                entries[game_path], app_id, details, details.get('reviews_summary')
            )
            logger.info(f"Updating {game_path} from Steam app {app_id} ({updated.info.name})")

            await commit_catalog(layout, [updated], self.materializer_for(layout))

            refreshed = {entry.path: entry for entry in list_catalog(layout)}
            return refreshed[game_path]

    async def _fetch_details(self, app_id: int) -> Dict[str, Any]:
        details = await self.store_client.get_details(app_id)
        reviews = await self.store_client.get_review_summary(app_id)
        return {**details, 'reviews_summary': reviews}
