import pytest

from vapeur.media.asset_types import (
    ASSET_DIRECTORY_MAP,
    AssetKind,
    get_directory_for_asset,
    kind_for_field,
)
from vapeur.gamelist.records import ASSET_FIELDS


@pytest.mark.unit
def test_every_kind_has_a_directory():
    assert set(ASSET_DIRECTORY_MAP) == set(AssetKind)
    assert get_directory_for_asset(AssetKind.COVER) == "covers"
    assert get_directory_for_asset(AssetKind.VIDEO) == "videos"
    assert get_directory_for_asset(AssetKind.MIXIMAGE) == "miximages"


@pytest.mark.unit
def test_kind_for_field_covers_asset_fields():
    assert [kind_for_field(name) for name in ASSET_FIELDS] == [
        AssetKind.MARQUEE, AssetKind.SCREENSHOT, AssetKind.VIDEO, AssetKind.COVER,
    ]


@pytest.mark.unit
@pytest.mark.parametrize("name", ["steamid", "path", "miximage"])
def test_kind_for_field_rejects_other_fields(name):
    with pytest.raises(ValueError):
        kind_for_field(name)
