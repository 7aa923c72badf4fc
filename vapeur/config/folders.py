"""
Registry of configured ES-DE folders.

Persists the list of ES-DE root folders the user has added.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

import yaml

from .loader import ConfigError

logger = logging.getLogger(__name__)


class NoSelectionMade(Exception):
    """Raised when adding a folder and no folder was chosen."""

    def __init__(self):
        super().__init__("No folder selected")


class FolderRegistry:
    """
    YAML-backed list of ES-DE root folders.

    File format:
        folders:
          - /home/user/ES-DE
    """

    def __init__(self, registry_path: Union[str, Path]):
        self.registry_path = Path(registry_path).expanduser()

    def list_folders(self) -> List[str]:
        """
        Return the configured folders in the order they were added.

        Raises:
            ConfigError: If the registry file exists but cannot be parsed
        """
        if not self.registry_path.exists():
            return []

        try:
            with open(self.registry_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in folder registry: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to read folder registry: {e}")

        folders = data.get('folders', []) if isinstance(data, dict) else []
        if not isinstance(folders, list):
            raise ConfigError("Folder registry 'folders' must be a list")
        return [str(f) for f in folders]

    def add_folder(self, selection: Optional[Union[str, Path]]) -> str:
        """
        Add a folder to the registry.

        Adding a folder that is already registered is a no-op.

        Args:
            selection: Chosen folder, or None/'' when the user cancelled

        Returns:
            The absolute folder path

        Raises:
            NoSelectionMade: If no folder was chosen
            ConfigError: If the registry cannot be written
        """
        if not selection:
            raise NoSelectionMade()

        folder = str(Path(selection).expanduser().resolve())
        folders = self.list_folders()

        if folder not in folders:
            folders.append(folder)
            self._write(folders)
            logger.info(f"Added ES-DE folder: {folder}")
        else:
            logger.debug(f"Folder already registered: {folder}")

        return folder

    def _write(self, folders: List[str]) -> None:
        temp_path = self.registry_path.with_name(self.registry_path.name + '.tmp')
        try:
            self.registry_path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump({'folders': folders}, f, default_flow_style=False)
            os.replace(temp_path, self.registry_path)
        except OSError as e:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.debug(f"Could not remove {temp_path}: {cleanup_error}")
            raise ConfigError(f"Failed to write folder registry: {e}")
