"""
Shared pytest fixtures and utilities for the vapeur test suite.
"""

from pathlib import Path
from typing import Dict, Any, Callable, List, Optional

import pytest
import yaml

from vapeur.config.layout import FolderLayout
from vapeur.config.loader import DEFAULT_CONFIG, merge_dicts
from vapeur.media.asset_types import AssetKind
from vapeur.media.materializer import AssetDownloadFailed, AssetMaterializer, StagedAsset, url_suffix


@pytest.fixture
def esde_root(tmp_path: Path) -> Path:
    """
    Empty ES-DE root folder with the Steam ROM directory created.
    """
    root = tmp_path / "ES-DE"
    (root / "ROMs" / "steam").mkdir(parents=True)
    return root


@pytest.fixture
def layout(esde_root: Path) -> FolderLayout:
    return FolderLayout(root=esde_root)


@pytest.fixture
def add_game_files(layout: FolderLayout) -> Callable[..., List[str]]:
    """
    Create game files in the ROM directory.

    Usage:
        paths = add_game_files("Portal.bat", "Celeste.url")
    """

    def _builder(*names: str) -> List[str]:
        for name in names:
            (layout.roms_path / name).write_text("@echo off\n")
        return [f"./{name}" for name in names]

    return _builder


@pytest.fixture
def test_config(tmp_path: Path) -> Dict[str, Any]:
    """
    Default configuration with fast retries and a temp folder registry.
    """
    return merge_dicts(DEFAULT_CONFIG, {
        "paths": {"folders_file": str(tmp_path / "folders.yaml")},
        "api": {"max_retries": 1, "retry_backoff_seconds": 0},
        "media": {"max_retries": 1, "retry_backoff_seconds": 0},
        "logging": {"console": False},
    })


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[[Dict[str, Any]], Path]:
    """
    Create a config.yaml in a temp directory.

    Usage:
        path = make_config({"api": {"language": "french"}})
    """

    def _builder(overrides: Optional[Dict[str, Any]] = None) -> Path:
        base = {
            "paths": {"folders_file": str(tmp_path / "folders.yaml")},
            "logging": {"console": False},
        }
        if overrides:
            base = merge_dicts(base, overrides)

        cfg_path = tmp_path / "config.yaml"
        cfg_path.write_text(yaml.safe_dump(base))
        return cfg_path

    return _builder


class FakeMaterializer(AssetMaterializer):
    """
    Materializer that writes the URL as file content instead of downloading.

    Records one call per download. URLs listed in ``failing`` raise
    AssetDownloadFailed.
    """

    def __init__(self, layout: FolderLayout, failing=()):
        super().__init__(client=None, layout=layout, max_retries=1, retry_backoff=0)
        self.failing = set(failing)
        self.calls = []

    async def _download(self, kind: AssetKind, url: str, game_path: str) -> StagedAsset:
        self.calls.append((kind, url, game_path))
        if url in self.failing:
            raise AssetDownloadFailed(kind, url, "HTTP 404", game_path)

        target = self.get_asset_path(kind, game_path, url_suffix(url))
        target.parent.mkdir(parents=True, exist_ok=True)
        temp_path = target.with_name(target.name + ".tmp")
        temp_path.write_bytes(url.encode())
        return StagedAsset(kind=kind, url=url, game_path=game_path, temp_path=temp_path, target=target)


@pytest.fixture
def fake_materializer(layout: FolderLayout) -> FakeMaterializer:
    return FakeMaterializer(layout)


@pytest.fixture
def make_materializer(layout: FolderLayout) -> Callable[..., FakeMaterializer]:
    """
    Build a FakeMaterializer with failing URLs.

    Usage:
        materializer = make_materializer(failing={"https://cdn/bad.jpg"})
    """

    def _builder(failing=()) -> FakeMaterializer:
        return FakeMaterializer(layout, failing=failing)

    return _builder
