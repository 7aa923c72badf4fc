import asyncio

import pytest

from vapeur.api.client import SearchResult
from vapeur.api.error_handler import InvalidRemoteIdentifier
from vapeur.config.folders import FolderRegistry, NoSelectionMade
from vapeur.workflow.service import CatalogService


class StubStoreClient:
    """Store client that records the order operations enter and leave."""

    def __init__(self):
        self.events = []

    async def search(self, term):
        self.events.append(("enter", term))
        await asyncio.sleep(0.01)
        self.events.append(("leave", term))
        return [SearchResult(400, term)]

    async def get_details(self, app_id, language=None):
        if app_id != 400:
            raise InvalidRemoteIdentifier(app_id)
        return {"name": "Portal", "developers": ["Valve"], "release_date": {"date": "10 Oct, 2007"}}

    async def get_review_summary(self, app_id):
        return {"review_score": 9, "review_score_desc": "Overwhelmingly Positive"}


@pytest.fixture
def service(test_config):
    registry = FolderRegistry(test_config["paths"]["folders_file"])
    return CatalogService(test_config, http_client=None, registry=registry, store_client=StubStoreClient())


@pytest.mark.unit
def test_materializer_for_uses_media_settings(test_config, layout):
    test_config["media"]["download_timeout"] = 15
    service = CatalogService(test_config, http_client=None, registry=None, store_client=StubStoreClient())

    materializer = service.materializer_for(layout)

    assert materializer.download_timeout == 15
    assert materializer.max_retries == 1
    assert materializer.layout is layout


@pytest.mark.unit
@pytest.mark.asyncio
async def test_operations_do_not_interleave(service):
    await asyncio.gather(service.search_remote("portal"), service.search_remote("celeste"))

    events = service.store_client.events
    assert [kind for kind, _ in events] == ["enter", "leave", "enter", "leave"]
    assert events[0][1] == events[1][1]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_add_and_list_folders(service, esde_root):
    folder = await service.add_folder(lambda: str(esde_root))

    assert await service.list_folders() == [folder]

    with pytest.raises(NoSelectionMade):
        await service.add_folder(lambda: None)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_remote_details_includes_review_summary(service):
    details = await service.get_remote_details(400)

    assert details["name"] == "Portal"
    assert details["reviews_summary"]["review_score"] == 9


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_game_unknown_path(service, esde_root, add_game_files):
    add_game_files("Portal.bat")

    with pytest.raises(KeyError):
        await service.update_game(str(esde_root), "./Missing.bat", 400)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_game_invalid_app_id_changes_nothing(service, esde_root, layout, add_game_files):
    add_game_files("Portal.bat")

    with pytest.raises(InvalidRemoteIdentifier):
        await service.update_game(str(esde_root), "./Portal.bat", 1)

    assert not layout.gamelist_file.exists()
    assert not layout.steamids_file.exists()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_commit_catalog_accepts_single_entry(service, esde_root, add_game_files):
    add_game_files("Portal.bat")
    entry = (await service.list_catalog(str(esde_root)))[0]
    entry.info.name = "Portal"

    await service.commit_catalog(str(esde_root), entry)

    assert (await service.list_catalog(str(esde_root)))[0].info.name == "Portal"
