"""Tests for storage settings and backend selection."""

from pathlib import Path

import pytest

from recruitcord.configuration.storage_settings import StorageSettings, database_path_from_url
from recruitcord.storage.factory import create_record_store
from recruitcord.storage.json_store import JsonRecordStore
from recruitcord.storage.sqlite_store import SqliteRecordStore


@pytest.mark.parametrize(
    "url, expected",
    [
        ("sqlite:///data/app.db", Path("data/app.db")),
        ("sqlite:////srv/bot/app.db", Path("/srv/bot/app.db")),
        ("./local.db", Path("./local.db")),
        ("  /abs/path.db  ", Path("/abs/path.db")),
    ],
)
def test_database_path_from_url(url, expected):
    assert database_path_from_url(url) == expected


def test_database_url_with_other_scheme_is_rejected():
    with pytest.raises(ValueError):
        database_path_from_url("postgres://user@host/db")


def test_default_backend_is_json():
    settings = StorageSettings()
    assert settings.backend == "json"
    assert settings.database_url is None


def test_backend_name_is_case_insensitive():
    assert StorageSettings({"backend": " SQLite "}).backend == "sqlite"


def test_unknown_backend_is_rejected():
    with pytest.raises(ValueError):
        StorageSettings({"backend": "mongo"}).backend


def test_blank_database_url_is_ignored():
    assert StorageSettings({"backend": "json"}, database_url="  ").backend == "json"


def test_factory_builds_json_store(tmp_path):
    store = create_record_store(StorageSettings({"data_dir": str(tmp_path)}))
    assert isinstance(store, JsonRecordStore)
    assert store.data_dir == tmp_path


def test_factory_builds_sqlite_store_from_url(tmp_path):
    db_file = tmp_path / "bot.db"
    store = create_record_store(StorageSettings({"backend": "json"}, database_url=f"sqlite:///{db_file}"))
    assert isinstance(store, SqliteRecordStore)
    assert store.supports_batch_writes is True


def test_factory_builds_sqlite_store_from_yaml(tmp_path):
    settings = StorageSettings({"backend": "sqlite", "database_path": str(tmp_path / "x.db")})
    store = create_record_store(settings)
    assert isinstance(store, SqliteRecordStore)
    assert Path(store.db_path) == tmp_path / "x.db"
