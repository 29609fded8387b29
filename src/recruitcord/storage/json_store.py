"""
File backend: one JSON array per entity kind.

Each kind lives in ``<data_dir>/<schema.file_name>`` as an ordered list of
objects. Every mutation re-reads the whole file, changes it in memory and
rewrites it through a temporary file followed by ``os.replace`` so readers
never see a half-written document.

An absent, empty or unparsable file reads as an empty collection. Before a
mutation overwrites an unparsable file, the file is moved aside to
``<name>.corrupt-<timestamp>`` so its contents are not silently lost.

Within one process, mutations of a kind are serialised by an asyncio lock,
which also makes conditional updates atomic. Nothing coordinates separate
processes writing the same directory.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from recruitcord.datatypes.errors import DuplicateRecordError, StorageUnavailableError
from recruitcord.storage.id_generator import IdGenerator
from recruitcord.storage.record_store import MAX_ID_ATTEMPTS, OrderBy, Record, RecordStore
from recruitcord.storage.schema import ColumnType, RecordSchema
from recruitcord.util.logger import get_logger
from recruitcord.util.time_utils import utcnow

logger = get_logger("json_store")


class JsonRecordStore(RecordStore):
    """Record store backed by one JSON document per kind."""

    backend_name = "json"
    supports_batch_writes = False

    def __init__(
        self,
        data_dir: Path,
        schemas: Mapping[str, RecordSchema] | None = None,
        ids: IdGenerator | None = None,
    ) -> None:
        super().__init__(schemas, ids)
        self.data_dir = Path(data_dir)
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, kind: str) -> asyncio.Lock:
        if kind not in self._locks:
            self._locks[kind] = asyncio.Lock()
        return self._locks[kind]

    def path_for(self, kind: str) -> Path:
        return self.data_dir / self.schema(kind).file_name

    async def initialize(self) -> None:
        try:
            await asyncio.to_thread(self.data_dir.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("[JSON STORE] Cannot create data directory %s: %s", self.data_dir, exc)
            raise StorageUnavailableError() from exc
        logger.info("[JSON STORE] Using data directory %s", self.data_dir)

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    def _read_all(self, kind: str, for_write: bool = False) -> List[Record]:
        path = self.path_for(kind)
        try:
            if not path.exists():
                return []
            raw = path.read_text(encoding="utf-8")
            if not raw.strip():
                return []
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, found {type(data).__name__}")
            return [item for item in data if isinstance(item, dict)]
        except (OSError, ValueError) as exc:
            # json.JSONDecodeError is a ValueError
            logger.warning("[JSON STORE] Could not read %s, treating it as empty: %s", path, exc)
            if for_write:
                self._move_aside(path)
            return []

    def _move_aside(self, path: Path) -> None:
        if not path.exists():
            return
        backup = path.with_name(f"{path.name}.corrupt-{utcnow().strftime('%Y%m%d%H%M%S')}")
        try:
            os.replace(path, backup)
            logger.warning("[JSON STORE] Moved unreadable %s to %s", path, backup)
        except OSError as exc:
            logger.error("[JSON STORE] Could not move unreadable %s aside: %s", path, exc)

    def _write_all(self, kind: str, records: List[Record]) -> None:
        path = self.path_for(kind)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(records, handle, indent=2, ensure_ascii=False)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
                raise
        except OSError as exc:
            logger.error("[JSON STORE] Failed to write %s: %s", path, exc)
            raise StorageUnavailableError() from exc

    # ------------------------------------------------------------------
    # Matching helpers
    # ------------------------------------------------------------------

    def _normalise(self, schema: RecordSchema, field: str, value: Any) -> Any:
        return schema.column(field).to_storage(value)

    def _matches(self, schema: RecordSchema, record: Mapping[str, Any], filters: Mapping[str, Any] | None) -> bool:
        if not filters:
            return True
        return all(
            self._normalise(schema, field, record.get(field)) == self._normalise(schema, field, value)
            for field, value in filters.items()
        )

    def _decode(self, schema: RecordSchema, record: Mapping[str, Any]) -> Record:
        return {
            column.name: column.from_storage(column.to_storage(record.get(column.name, column.default)))
            for column in schema.columns
        }

    def _encode(self, schema: RecordSchema, record: Mapping[str, Any]) -> Record:
        encoded: Record = {}
        for column in schema.columns:
            value = record.get(column.name, column.default)
            if value is not None and column.type is ColumnType.BOOLEAN:
                value = bool(value)
            elif value is not None:
                value = column.to_storage(value)
            encoded[column.name] = value
        return encoded

    # ------------------------------------------------------------------
    # Point operations
    # ------------------------------------------------------------------

    async def insert(self, kind: str, record: Mapping[str, Any]) -> Record:
        schema = self.schema(kind)
        async with self._lock_for(kind):
            records = await asyncio.to_thread(self._read_all, kind, True)
            existing_ids = {str(item.get("id")) for item in records}

            full, generated = self._prepare_insert(kind, record)
            attempts = 1
            while full["id"] in existing_ids:
                if not generated:
                    raise DuplicateRecordError(kind, full["id"])
                if attempts >= MAX_ID_ATTEMPTS:
                    raise StorageUnavailableError("Could not allocate a unique record id.")
                full["id"] = self.generate_id()
                attempts += 1

            records.append(self._encode(schema, full))
            await asyncio.to_thread(self._write_all, kind, records)

        logger.debug("[JSON STORE] Inserted %s %s", kind, full["id"])
        return self._decode(schema, full)

    async def get_by_id(self, kind: str, record_id: str) -> Optional[Record]:
        schema = self.schema(kind)
        records = await asyncio.to_thread(self._read_all, kind)
        for item in records:
            if str(item.get("id")) == str(record_id):
                return self._decode(schema, item)
        return None

    async def update_by_id(
        self,
        kind: str,
        record_id: str,
        patch: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> Optional[Record]:
        schema = self.schema(kind)
        self._check_patch(kind, patch, expected)
        async with self._lock_for(kind):
            records = await asyncio.to_thread(self._read_all, kind, True)
            for index, item in enumerate(records):
                if str(item.get("id")) != str(record_id):
                    continue
                if not self._matches(schema, item, expected):
                    return None
                updated = dict(item)
                updated.update(patch)
                records[index] = self._encode(schema, updated)
                await asyncio.to_thread(self._write_all, kind, records)
                return self._decode(schema, records[index])
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def query_filtered(
        self,
        kind: str,
        filters: Mapping[str, Any] | None = None,
        order_by: OrderBy = (),
        limit: int | None = None,
    ) -> List[Record]:
        schema = self.schema(kind)
        schema.check_fields((filters or {}).keys())
        schema.check_fields(field for field, _ in order_by)

        records = await asyncio.to_thread(self._read_all, kind)
        matched = [self._decode(schema, item) for item in records if self._matches(schema, item, filters)]

        # Stable sorts applied from the last key to the first
        for field, descending in reversed(list(order_by)):
            matched.sort(key=lambda item: _sort_key(item.get(field)), reverse=descending)

        if limit is not None:
            matched = matched[: max(limit, 0)]
        return matched

    async def count_grouped(
        self,
        kind: str,
        group_by: str,
        filters: Mapping[str, Any] | None = None,
    ) -> Dict[str, int]:
        schema = self.schema(kind)
        schema.check_fields([group_by, *(filters or {}).keys()])
        records = await asyncio.to_thread(self._read_all, kind)
        counts: Counter = Counter(
            str(item.get(group_by)) for item in records if self._matches(schema, item, filters)
        )
        return dict(counts)


def _sort_key(value: Any) -> Tuple[int, Any]:
    # None sorts before any value
    if value is None:
        return (0, "")
    if isinstance(value, bool):
        return (1, int(value))
    return (1, value)
