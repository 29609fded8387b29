"""
Backend selection.

This is the only place that knows which backends exist; everything else
talks to the :class:`RecordStore` it returns.
"""

from __future__ import annotations

from recruitcord.configuration.storage_settings import JSON_BACKEND, SQLITE_BACKEND, StorageSettings
from recruitcord.storage.id_generator import IdGenerator
from recruitcord.storage.json_store import JsonRecordStore
from recruitcord.storage.record_store import RecordStore
from recruitcord.storage.sqlite_store import SqliteRecordStore
from recruitcord.util.logger import get_logger

logger = get_logger("store_factory")


def create_record_store(settings: StorageSettings, ids: IdGenerator | None = None) -> RecordStore:
    """Build the record store described by ``settings``.

    Raises:
        ValueError: If the configured backend or database URL is not supported.
    """
    backend = settings.backend
    if backend == SQLITE_BACKEND:
        logger.info("[STORE FACTORY] Using SQLite backend at %s", settings.database_path)
        return SqliteRecordStore(settings.database_path, ids=ids)
    if backend == JSON_BACKEND:
        logger.info("[STORE FACTORY] Using JSON file backend in %s", settings.data_dir)
        return JsonRecordStore(settings.data_dir, ids=ids)
    raise ValueError(f"Unknown storage backend {backend!r}")
