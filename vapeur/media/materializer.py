"""
Asset materializer.

Streams remote assets into the ES-DE media tree and reports the local path
of the downloaded copy. Downloads are staged in temp files so a caller can
download several assets and only move them into place once all succeeded.
"""

import asyncio
import logging
import mimetypes
import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional, Union
from urllib.parse import urlparse

import httpx
from PIL import Image

from vapeur.config.layout import FolderLayout
from .asset_types import AssetKind, IMAGE_KINDS, get_directory_for_asset

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class AssetDownloadFailed(Exception):
    """Raised when an asset cannot be downloaded or stored."""

    def __init__(self, kind: AssetKind, url: str, reason: str, game_path: Optional[str] = None):
        self.kind = kind
        self.url = url
        self.reason = reason
        self.game_path = game_path
        label = f"{kind.value} for {game_path}" if game_path else kind.value
        super().__init__(f"Failed to download {label} from {url}: {reason}")


@dataclass(frozen=True)
class StagedAsset:
    """A completed download waiting in its temp file."""
    kind: AssetKind
    url: str
    game_path: str
    temp_path: Path
    target: Path


def is_remote_url(value: str) -> bool:
    """True when ``value`` is an http(s) URL rather than a local path."""
    parsed = urlparse(value)
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def url_suffix(url: str) -> str:
    """Extension of the URL path component (e.g. '.jpg'), '' if none."""
    return PurePosixPath(urlparse(url).path).suffix


class AssetMaterializer:
    """
    Downloads assets for catalog entries.

    Features:
    - Streamed download (videos are never held in memory)
    - Overall deadline per download attempt, on top of httpx's read timeout
    - Retry with exponential backoff on transport errors, timeouts and 429/5xx
    - Temp files removed on every failure path
    - Optional image validation with Pillow
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        layout: FolderLayout,
        timeout: float = 60.0,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
        chunk_size: int = 65536,
        validation_mode: str = 'disabled'
    ):
        """
        Initialize materializer.

        Args:
            client: httpx.AsyncClient for HTTP requests
            layout: Folder layout locating the media directory
            timeout: Deadline per download attempt in seconds
            max_retries: Maximum number of attempts per asset
            retry_backoff: Initial delay between attempts in seconds
            chunk_size: Streaming chunk size in bytes
            validation_mode: Image validation mode (disabled, normal)
        """
        self.client = client
        self.layout = layout
        self.download_timeout = timeout
        self.timeout = httpx.Timeout(timeout, connect=10.0)
        self.max_retries = max(1, max_retries)
        self.retry_backoff = retry_backoff
        self.chunk_size = chunk_size
        self.validation_mode = validation_mode

    def get_asset_path(self, kind: AssetKind, game_path: str, suffix: str) -> Path:
        """
        Get the destination of an asset.

        Example:
            >>> materializer.get_asset_path(AssetKind.COVER, './game.bat', '.jpg')
            Path('<root>/ES-DE/downloaded_media/steam/covers/game.jpg')
        """
        basename = PurePosixPath(game_path).stem
        directory = self.layout.media_path / get_directory_for_asset(kind)
        return directory / f"{basename}{suffix}"

    async def materialize(self, kind: AssetKind, url: str, game_path: str) -> Path:
        """
        Download ``url`` as the ``kind`` asset of ``game_path``.

        Calling twice downloads twice; the second copy overwrites the first.

        Args:
            kind: Asset kind (selects the media subdirectory)
            url: Remote asset URL
            game_path: Game path whose basename names the file

        Returns:
            Path of the downloaded file

        Raises:
            AssetDownloadFailed: On network error, timeout, non-2xx response,
                                 write or validation error
        """
        staged = await self.stage(kind, url, game_path)
        return self.promote(staged)

    async def stage(self, kind: AssetKind, url: str, game_path: str) -> StagedAsset:
        """
        Download ``url`` into a temp file next to its final location.

        The target is not touched; call promote() or discard() afterwards.

        Raises:
            AssetDownloadFailed: On network error, timeout, non-2xx response,
                                 write or validation error
        """
        delay = self.retry_backoff

        for attempt in range(1, self.max_retries + 1):
            try:
                return await asyncio.wait_for(
                    self._download(kind, url, game_path),
                    self.download_timeout
                )
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status not in RETRYABLE_STATUS_CODES or attempt == self.max_retries:
                    raise AssetDownloadFailed(kind, url, f"HTTP {status}", game_path) from e
                reason = f"HTTP {status}"
            except httpx.TransportError as e:
                if attempt == self.max_retries:
                    raise AssetDownloadFailed(kind, url, f"{type(e).__name__}: {e}", game_path) from e
                reason = type(e).__name__
            except asyncio.TimeoutError as e:
                if attempt == self.max_retries:
                    raise AssetDownloadFailed(
                        kind, url, f"timed out after {self.download_timeout:g}s", game_path
                    ) from e
                reason = "timeout"
            except OSError as e:
                raise AssetDownloadFailed(kind, url, f"write error: {e}", game_path) from e

            logger.warning(
                f"Download of {kind.value} for {game_path} failed ({reason}), "
                f"retrying in {delay:.1f}s (attempt {attempt}/{self.max_retries})"
            )
            await asyncio.sleep(delay)
            delay *= 2

        raise AssetDownloadFailed(kind, url, "max retries exceeded", game_path)

    def promote(self, staged: StagedAsset, previous: Optional[Union[str, Path]] = None) -> Path:
        """
        Move a staged download over its target.

        Args:
            staged: Result of stage()
            previous: Local path the asset had before; removed when it is a
                      different file inside the media directory

        Returns:
            Path of the downloaded file

        Raises:
            AssetDownloadFailed: If the file cannot be moved into place
        """
        try:
            os.replace(staged.temp_path, staged.target)
        except OSError as e:
            self._discard(staged.temp_path)
            raise AssetDownloadFailed(
                staged.kind, staged.url, f"write error: {e}", staged.game_path
            ) from e

        if previous:
            self._remove_previous(Path(previous), staged.target)

        logger.info(f"Downloaded {staged.kind.value} for {staged.game_path}: {staged.target}")
        return staged.target

    def discard(self, staged: StagedAsset) -> None:
        """Drop a staged download without touching its target."""
        self._discard(staged.temp_path)

    async def _download(self, kind: AssetKind, url: str, game_path: str) -> StagedAsset:
        """Stream one attempt into a temp file."""
        async with self.client.stream('GET', url, timeout=self.timeout) as response:
            response.raise_for_status()

            suffix = url_suffix(url) or self._suffix_from_content_type(response)
            target = self.get_asset_path(kind, game_path, suffix)
            target.parent.mkdir(parents=True, exist_ok=True)
            temp_path = target.with_name(target.name + '.tmp')

            completed = False
            try:
                with open(temp_path, 'wb') as f:
                    async for chunk in response.aiter_bytes(self.chunk_size):
                        f.write(chunk)

                if kind in IMAGE_KINDS and self.validation_mode != 'disabled':
                    error = self._validate_image(temp_path)
                    if error:
                        raise AssetDownloadFailed(kind, url, error, game_path)

                completed = True
            finally:
                if not completed:
                    self._discard(temp_path)

        return StagedAsset(kind=kind, url=url, game_path=game_path, temp_path=temp_path, target=target)

    def _remove_previous(self, previous: Path, target: Path) -> None:
        """Delete an asset file replaced by a download with another name."""
        if previous == target:
            return
        media_root = self.layout.media_path.resolve()
        if not previous.resolve().is_relative_to(media_root):
            logger.debug(f"Keeping {previous}: outside {media_root}")
            return
        logger.debug(f"Removing replaced asset {previous}")
        self._discard(previous)

    @staticmethod
    def _suffix_from_content_type(response: httpx.Response) -> str:
        content_type = response.headers.get('Content-Type', '').split(';')[0].strip()
        if not content_type:
            return ''
        return mimetypes.guess_extension(content_type) or ''

    @staticmethod
    def _validate_image(path: Path) -> Optional[str]:
        """Return an error message if ``path`` is not a readable image."""
        try:
            with Image.open(path) as img:
                img.verify()
        except Exception as e:
            return f"Invalid image: {e}"
        return None

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove {path}: {e}")
