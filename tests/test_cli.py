import pytest
import respx

import vapeur.cli as cli
from vapeur.config.loader import ConfigError

SEARCH_URL = "https://store.steampowered.com/api/storesearch/"
DETAILS_URL = "https://store.steampowered.com/api/appdetails"


@pytest.fixture
def config_path(make_config):
    return str(make_config({"api": {"max_retries": 1, "retry_backoff_seconds": 0}}))


@pytest.mark.unit
def test_create_parser_update_arguments():
    parser = cli.create_parser()
    args = parser.parse_args(["update", "/games/ES-DE", "./Portal.bat", "400"])

    assert args.command == "update"
    assert args.folder == "/games/ES-DE"
    assert args.game_path == "./Portal.bat"
    assert args.app_id == 400


@pytest.mark.unit
def test_create_parser_requires_command():
    with pytest.raises(SystemExit):
        cli.create_parser().parse_args([])


@pytest.mark.unit
def test_main_handles_config_error(monkeypatch):
    def broken_config(path=None):
        raise ConfigError("bad config")

    monkeypatch.setattr(cli, "load_config", broken_config)

    assert cli.main(["folders"]) == 1


@pytest.mark.unit
def test_main_rejects_invalid_config(make_config, capsys):
    path = make_config({"media": {"validation_mode": "paranoid"}})

    assert cli.main(["--config", str(path), "folders"]) == 1
    assert "media.validation_mode" in capsys.readouterr().err


@pytest.mark.integration
def test_add_folder_and_list_folders(config_path, esde_root, capsys):
    assert cli.main(["--config", config_path, "folders"]) == 0
    assert "No folders registered" in capsys.readouterr().out

    assert cli.main(["--config", config_path, "add-folder", str(esde_root)]) == 0
    capsys.readouterr()

    assert cli.main(["--config", config_path, "folders"]) == 0
    assert str(esde_root.resolve()) in capsys.readouterr().out


@pytest.mark.integration
def test_add_folder_without_path_fails(config_path, capsys):
    assert cli.main(["--config", config_path, "add-folder"]) == 1
    assert "No folder selected" in capsys.readouterr().err


@pytest.mark.integration
def test_add_folder_unwritable_registry_fails(make_config, tmp_path, esde_root, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    path = make_config({"paths": {"folders_file": str(blocker / "folders.yaml")}})

    assert cli.main(["--config", str(path), "add-folder", str(esde_root)]) == 1
    assert "Failed to write folder registry" in capsys.readouterr().err


@pytest.mark.integration
def test_list_prints_games(config_path, esde_root, add_game_files, capsys):
    add_game_files("Portal.bat")

    assert cli.main(["--config", config_path, "list", str(esde_root)]) == 0
    assert "./Portal.bat" in capsys.readouterr().out


@pytest.mark.integration
def test_search_prints_results(config_path, capsys):
    with respx.mock(assert_all_called=True) as mock:
        mock.get(SEARCH_URL).respond(200, json={"items": [{"id": 400, "name": "Portal"}]})

        assert cli.main(["--config", config_path, "search", "portal"]) == 0

    out = capsys.readouterr().out
    assert "400" in out
    assert "Portal" in out


@pytest.mark.integration
def test_search_without_results_fails(config_path, capsys):
    with respx.mock(assert_all_called=True) as mock:
        mock.get(SEARCH_URL).respond(200, json={"items": []})

        assert cli.main(["--config", config_path, "search", "zzzz"]) == 1

    assert "No results found" in capsys.readouterr().err


@pytest.mark.integration
def test_update_unknown_game_fails(config_path, esde_root, capsys):
    assert cli.main(["--config", config_path, "update", str(esde_root), "./Missing.bat", "400"]) == 1
    assert "./Missing.bat" in capsys.readouterr().err


@pytest.mark.integration
def test_details_invalid_app_id_fails(config_path, capsys):
    with respx.mock(assert_all_called=True) as mock:
        mock.get(DETAILS_URL).respond(200, json={"1": {"success": False}})

        assert cli.main(["--config", config_path, "details", "1"]) == 1

    assert "app id 1" in capsys.readouterr().err
