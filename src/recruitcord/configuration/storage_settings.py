from __future__ import annotations

from pathlib import Path
from typing import Any, Dict
from urllib.parse import urlparse

JSON_BACKEND = "json"
SQLITE_BACKEND = "sqlite"
BACKENDS = (JSON_BACKEND, SQLITE_BACKEND)

DEFAULT_DATA_DIR = Path("./data")
DEFAULT_DATABASE_PATH = DEFAULT_DATA_DIR / "recruitcord.db"


def database_path_from_url(url: str) -> Path:
    """Turn a ``DATABASE_URL`` value into an SQLite file path.

    Accepts ``sqlite:///relative.db``, ``sqlite:////absolute.db`` and bare
    filesystem paths. Any other scheme raises ValueError.
    """
    url = url.strip()
    if "://" not in url:
        return Path(url)

    parsed = urlparse(url)
    if parsed.scheme != SQLITE_BACKEND:
        raise ValueError(f"Unsupported DATABASE_URL scheme {parsed.scheme!r}; only sqlite is available")

    # sqlite:///data/app.db -> path "/data/app.db" -> relative "data/app.db"
    # sqlite:////srv/app.db -> path "//srv/app.db" -> absolute "/srv/app.db"
    path = parsed.path
    if path.startswith("//"):
        return Path(path[1:])
    return Path(path.lstrip("/"))


class StorageSettings:
    """Typed accessors for the ``storage`` section of the configuration.

    A non-empty ``database_url`` (normally the ``DATABASE_URL`` environment
    variable) always selects the relational backend, whatever the YAML says.
    """

    def __init__(self, data: Dict[str, Any] | None = None, database_url: str | None = None) -> None:
        self.data: Dict[str, Any] = data or {}
        self.database_url = (database_url or "").strip() or None

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    @property
    def backend(self) -> str:
        if self.database_url:
            return SQLITE_BACKEND
        value = str(self.data.get("backend") or JSON_BACKEND).strip().lower()
        if value not in BACKENDS:
            raise ValueError(f"Unknown storage backend {value!r}; expected one of {', '.join(BACKENDS)}")
        return value

    @property
    def data_dir(self) -> Path:
        value = self.data.get("data_dir")
        return Path(value) if value else DEFAULT_DATA_DIR

    @property
    def database_path(self) -> Path:
        if self.database_url:
            return database_path_from_url(self.database_url)
        value = self.data.get("database_path")
        return Path(value) if value else DEFAULT_DATABASE_PATH
