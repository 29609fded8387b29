from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict, List, Mapping
import yaml

from recruitcord.configuration.storage_settings import StorageSettings
from recruitcord.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_RANKING_LIMIT = 10


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The mapping loaded from ``./config/app_config.yml`` is cached in memory.
    Role and channel settings can be overridden through environment variables
    named after the key in upper case (``RECRUIT_MANAGER_ROLES`` overrides
    ``recruit_manager_roles``); list values are comma separated there.
    """

    def __init__(self, config_path: Path, environ: Mapping[str, str] | None = None) -> None:
        self.config_path = config_path
        self._environ = environ if environ is not None else os.environ
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                # Acquire a shared lock for reading
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}
        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    def _env(self, key: str) -> str | None:
        value = self._environ.get(key.upper())
        return value.strip() if value and value.strip() else None

    def _id_list(self, key: str) -> List[str]:
        env_value = self._env(key)
        if env_value is not None:
            raw: Any = env_value.split(",")
        else:
            raw = self._data.get(key) or []
            if isinstance(raw, (str, int)):
                raw = str(raw).split(",")
        return [str(item).strip() for item in raw if str(item).strip()]

    def _id(self, key: str) -> str | None:
        env_value = self._env(key)
        if env_value is not None:
            return env_value
        value = self._data.get(key)
        if value is None:
            return None
        return str(value).strip() or None

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Re-read the YAML file and return the new mapping (``{}`` on error)."""
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """The cached configuration mapping. Callers should not mutate it."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def storage(self) -> StorageSettings:
        """Storage settings; ``DATABASE_URL`` in the environment wins over YAML."""
        section = self._data.get("storage", {})
        if not isinstance(section, dict):
            section = {}
        return StorageSettings(section, database_url=self._environ.get("DATABASE_URL"))

    @property
    def blacklist_allowed_roles(self) -> List[str]:
        """Role ids allowed to manage the blacklist and ranking adjustments."""
        return self._id_list("blacklist_allowed_roles")

    @property
    def recruit_manager_roles(self) -> List[str]:
        """Role ids allowed to approve, reject and deliver kits."""
        return self._id_list("recruit_manager_roles")

    @property
    def blacklist_channel_id(self) -> str | None:
        return self._id("blacklist_channel_id")

    @property
    def recruit_approval_channel_id(self) -> str | None:
        return self._id("recruit_approval_channel_id")

    @property
    def welcome_channel_id(self) -> str | None:
        return self._id("welcome_channel_id")

    @property
    def ranking_limit(self) -> int:
        """Top-N cutoff of the leaderboard. Default is 10."""
        section = self._data.get("ranking", {})
        if isinstance(section, dict):
            try:
                return max(int(section.get("limit", DEFAULT_RANKING_LIMIT)), 1)
            except (TypeError, ValueError):
                logger.warning("[APP CONFIGURATION] Invalid ranking.limit %r; using default", section.get("limit"))
        return DEFAULT_RANKING_LIMIT


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
