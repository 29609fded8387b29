from pathlib import Path

import pytest
import yaml

from recruitcord.configuration.app_configuration import AppConfig
from recruitcord.configuration.storage_settings import JSON_BACKEND, SQLITE_BACKEND


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "app_config.yml"


def write_config(path: Path, payload) -> None:
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")


def test_app_config_reload_parses_yaml(config_path: Path) -> None:
    write_config(config_path, {
        "storage": {"backend": "sqlite", "database_path": "db/bot.db"},
        "blacklist_allowed_roles": [111, "222"],
        "recruit_manager_roles": "333,444",
        "blacklist_channel_id": 555,
        "recruit_approval_channel_id": "666",
        "ranking": {"limit": 5},
    })

    config = AppConfig(config_path, environ={})

    assert config.blacklist_allowed_roles == ["111", "222"]
    assert config.recruit_manager_roles == ["333", "444"]
    assert config.blacklist_channel_id == "555"
    assert config.recruit_approval_channel_id == "666"
    assert config.welcome_channel_id is None
    assert config.ranking_limit == 5
    assert config.storage.backend == SQLITE_BACKEND
    assert config.storage.database_path == Path("db/bot.db")


def test_app_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    config = AppConfig(tmp_path / "does_not_exist.yml", environ={})

    assert config.data == {}
    assert config.blacklist_allowed_roles == []
    assert config.recruit_manager_roles == []
    assert config.blacklist_channel_id is None
    assert config.ranking_limit == 10
    assert config.storage.backend == JSON_BACKEND
    assert config.storage.data_dir == Path("./data")


def test_app_config_non_mapping_document(config_path: Path) -> None:
    config_path.write_text("- just\n- a list\n", encoding="utf-8")
    assert AppConfig(config_path, environ={}).data == {}


def test_environment_overrides_yaml(config_path: Path) -> None:
    write_config(config_path, {"recruit_manager_roles": ["1"], "welcome_channel_id": "2"})
    environ = {
        "RECRUIT_MANAGER_ROLES": " 10, 20 ,",
        "WELCOME_CHANNEL_ID": "30",
        "BLACKLIST_ALLOWED_ROLES": "   ",
    }

    config = AppConfig(config_path, environ=environ)

    assert config.recruit_manager_roles == ["10", "20"]
    assert config.welcome_channel_id == "30"
    # blank variables do not override
    assert config.blacklist_allowed_roles == []


def test_database_url_forces_sqlite(config_path: Path) -> None:
    write_config(config_path, {"storage": {"backend": "json"}})
    config = AppConfig(config_path, environ={"DATABASE_URL": "sqlite:///data/live.db"})

    assert config.storage.backend == SQLITE_BACKEND
    assert config.storage.database_path == Path("data/live.db")


def test_invalid_ranking_limit_falls_back(config_path: Path) -> None:
    write_config(config_path, {"ranking": {"limit": "lots"}})
    assert AppConfig(config_path, environ={}).ranking_limit == 10

    write_config(config_path, {"ranking": {"limit": 0}})
    assert AppConfig(config_path, environ={}).ranking_limit == 1


def test_reload_picks_up_changes(config_path: Path) -> None:
    write_config(config_path, {"welcome_channel_id": "1"})
    config = AppConfig(config_path, environ={})
    write_config(config_path, {"welcome_channel_id": "2"})

    assert config.welcome_channel_id == "1"
    config.reload()
    assert config.welcome_channel_id == "2"
