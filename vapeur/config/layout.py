"""
ES-DE folder layout.

Resolves where the stores, game files and downloaded media live under a
configured ES-DE root folder.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

GAMELIST_FILENAME = "gameList.xml"
STEAMIDS_FILENAME = "steamids.xml"
COMMIT_MARKER_FILENAME = ".vapeur-commit-pending"

DEFAULT_ROMS_DIR = "ROMs/steam"
DEFAULT_GAMELISTS_DIR = "ES-DE/gamelists/steam"
DEFAULT_MEDIA_DIR = "ES-DE/downloaded_media/steam"


@dataclass(frozen=True)
class FolderLayout:
    """
    Paths for one ES-DE root folder.

    Directory structure:
        <root>/<roms_dir>/*.bat|*.lnk|*.url
        <root>/<gamelists_dir>/gameList.xml
        <root>/<gamelists_dir>/steamids.xml
        <root>/<media_dir>/<asset dir>/<basename>.<ext>
    """
    root: Path
    roms_dir: str = DEFAULT_ROMS_DIR
    gamelists_dir: str = DEFAULT_GAMELISTS_DIR
    media_dir: str = DEFAULT_MEDIA_DIR

    @classmethod
    def from_config(cls, root: Union[str, Path], config: Dict[str, Any]) -> "FolderLayout":
        """
        Build a layout for ``root`` using the ``paths`` config section.

        Args:
            root: ES-DE root folder
            config: Configuration dictionary

        Returns:
            FolderLayout instance
        """
        paths = config.get("paths", {})
        return cls(
            root=Path(root).expanduser(),
            roms_dir=paths.get("roms", DEFAULT_ROMS_DIR),
            gamelists_dir=paths.get("gamelists", DEFAULT_GAMELISTS_DIR),
            media_dir=paths.get("media", DEFAULT_MEDIA_DIR),
        )

    @property
    def roms_path(self) -> Path:
        return self.root / self.roms_dir

    @property
    def gamelists_path(self) -> Path:
        return self.root / self.gamelists_dir

    @property
    def gamelist_file(self) -> Path:
        return self.gamelists_path / GAMELIST_FILENAME

    @property
    def steamids_file(self) -> Path:
        return self.gamelists_path / STEAMIDS_FILENAME

    @property
    def commit_marker(self) -> Path:
        return self.gamelists_path / COMMIT_MARKER_FILENAME

    @property
    def media_path(self) -> Path:
        return self.root / self.media_dir
