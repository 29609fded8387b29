"""
Relational backend: one SQLite table per entity kind, via aiosqlite.

Tables are created on first use and missing columns are added to existing
tables, so a database written by an older release keeps working. Point
operations are primary-key lookups; ``count_grouped`` is a ``GROUP BY``.
Conditional updates put the expected values in the ``WHERE`` clause, so the
check and the write are one statement.

Column and table names are never taken from callers: every name is checked
against the :class:`RecordSchema` before it is put into SQL.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import aiosqlite

from recruitcord.datatypes.errors import DuplicateRecordError, StorageUnavailableError
from recruitcord.storage.db_connection import ConnectionManager
from recruitcord.storage.id_generator import IdGenerator
from recruitcord.storage.record_store import MAX_ID_ATTEMPTS, OrderBy, Record, RecordStore
from recruitcord.storage.schema import RecordSchema
from recruitcord.util.logger import get_logger

logger = get_logger("sqlite_store")


class SqliteRecordStore(RecordStore):
    """Record store backed by an SQLite database file."""

    backend_name = "sqlite"
    supports_batch_writes = True

    def __init__(
        self,
        db_path: Path | str,
        schemas: Mapping[str, RecordSchema] | None = None,
        ids: IdGenerator | None = None,
    ) -> None:
        super().__init__(schemas, ids)
        self.db_path = db_path
        self._db = ConnectionManager()
        self._initialized = False
        self._init_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Open the connection and create or migrate every table."""
        async with self._init_lock:
            if self.is_ready:
                return
            try:
                await self._db.open(self.db_path)
                async with self._db.transaction() as conn:
                    for schema in self.schemas.values():
                        await self._create_table(conn, schema)
            except (aiosqlite.Error, OSError) as exc:
                logger.error("[SQLITE STORE] Initialization failed for %s: %s", self.db_path, exc)
                await self._db.close()
                raise StorageUnavailableError() from exc
            self._initialized = True
            logger.info("[SQLITE STORE] Database ready at %s", self.db_path)

    async def close(self) -> None:
        await self._db.close()
        self._initialized = False

    async def _create_table(self, conn: aiosqlite.Connection, schema: RecordSchema) -> None:
        column_sql = []
        for column in schema.columns:
            definition = f"{column.name} {column.type.sql_type}"
            if column.name == "id":
                definition += " PRIMARY KEY"
            elif not column.nullable:
                definition += " NOT NULL"
            if column.default is not None:
                definition += f" DEFAULT {_sql_literal(column.to_storage(column.default))}"
            column_sql.append(definition)

        await conn.execute(
            f"CREATE TABLE IF NOT EXISTS {schema.table} (\n    " + ",\n    ".join(column_sql) + "\n)"
        )

        # Migration: add columns introduced after the table was created
        async with conn.execute(f"PRAGMA table_info({schema.table})") as cursor:
            existing = {row[1] for row in await cursor.fetchall()}
        for column in schema.columns:
            if column.name in existing:
                continue
            definition = f"{column.name} {column.type.sql_type}"
            if column.default is not None:
                definition += f" NOT NULL DEFAULT {_sql_literal(column.to_storage(column.default))}"
            await conn.execute(f"ALTER TABLE {schema.table} ADD COLUMN {definition}")
            logger.info("[SQLITE STORE] Added column %s to %s", column.name, schema.table)

        for index_columns in schema.indexes:
            index_name = f"idx_{schema.table}_{'_'.join(index_columns)}"
            await conn.execute(
                f"CREATE INDEX IF NOT EXISTS {index_name} ON {schema.table} ({', '.join(index_columns)})"
            )

    @property
    def is_ready(self) -> bool:
        return self._initialized and self._db.is_open

    async def _ready_for_read(self) -> bool:
        if self.is_ready:
            return True
        try:
            await self.initialize()
            return True
        except StorageUnavailableError:
            return False

    async def _ready_for_write(self) -> None:
        if not self.is_ready:
            await self.initialize()

    # ------------------------------------------------------------------
    # Row conversion
    # ------------------------------------------------------------------

    @staticmethod
    def _decode(schema: RecordSchema, row: Mapping[str, Any]) -> Record:
        return {column.name: column.from_storage(row[column.name]) for column in schema.columns}

    @staticmethod
    def _encode(schema: RecordSchema, record: Mapping[str, Any]) -> List[Any]:
        return [schema.column(name).to_storage(record[name]) for name in record]

    @staticmethod
    def _where(schema: RecordSchema, conditions: Mapping[str, Any] | None) -> Tuple[str, List[Any]]:
        if not conditions:
            return "", []
        schema.check_fields(conditions.keys())
        clauses = [f"{name} IS ?" for name in conditions]
        params = [schema.column(name).to_storage(value) for name, value in conditions.items()]
        return " AND ".join(clauses), params

    # ------------------------------------------------------------------
    # Point operations
    # ------------------------------------------------------------------

    async def insert(self, kind: str, record: Mapping[str, Any]) -> Record:
        schema = self.schema(kind)
        full, generated = self._prepare_insert(kind, record)
        await self._ready_for_write()

        names = list(full.keys())
        sql = (
            f"INSERT INTO {schema.table} ({', '.join(names)}) "
            f"VALUES ({', '.join('?' for _ in names)})"
        )
        for _ in range(MAX_ID_ATTEMPTS):
            try:
                async with self._db.transaction() as conn:
                    await conn.execute(sql, self._encode(schema, full))
            except aiosqlite.IntegrityError as exc:
                if not generated:
                    raise DuplicateRecordError(kind, full["id"]) from exc
                logger.warning("[SQLITE STORE] Generated id %s collided, retrying", full["id"])
                full["id"] = self.generate_id()
                continue
            except aiosqlite.Error as exc:
                logger.error("[SQLITE STORE] Insert into %s failed: %s", schema.table, exc)
                raise StorageUnavailableError() from exc

            logger.debug("[SQLITE STORE] Inserted %s %s", kind, full["id"])
            return self._decode(schema, {name: schema.column(name).to_storage(value) for name, value in full.items()})

        raise StorageUnavailableError("Could not allocate a unique record id.")

    async def get_by_id(self, kind: str, record_id: str) -> Optional[Record]:
        schema = self.schema(kind)
        if not await self._ready_for_read():
            return None
        try:
            async with self._db.read() as conn:
                async with conn.execute(
                    f"SELECT * FROM {schema.table} WHERE id = ?", (str(record_id),)
                ) as cursor:
                    row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            logger.warning("[SQLITE STORE] Lookup of %s %s failed: %s", kind, record_id, exc)
            return None
        return self._decode(schema, row) if row is not None else None

    async def update_by_id(
        self,
        kind: str,
        record_id: str,
        patch: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> Optional[Record]:
        schema = self.schema(kind)
        self._check_patch(kind, patch, expected)
        await self._ready_for_write()

        condition_sql, condition_params = self._where(schema, expected)
        where_sql = "id = ?" + (f" AND {condition_sql}" if condition_sql else "")
        params = [str(record_id), *condition_params]

        select_sql, select_params = where_sql, params
        try:
            async with self._db.transaction() as conn:
                if patch:
                    set_sql = ", ".join(f"{name} = ?" for name in patch)
                    cursor = await conn.execute(
                        f"UPDATE {schema.table} SET {set_sql} WHERE {where_sql}",
                        [*self._encode(schema, patch), *params],
                    )
                    if cursor.rowcount == 0:
                        return None
                    # the expected values may have just been overwritten
                    select_sql, select_params = "id = ?", [str(record_id)]
                async with conn.execute(
                    f"SELECT * FROM {schema.table} WHERE {select_sql}", select_params
                ) as cursor:
                    row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            logger.error("[SQLITE STORE] Update of %s %s failed: %s", kind, record_id, exc)
            raise StorageUnavailableError() from exc

        return self._decode(schema, row) if row is not None else None

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
        where_sql, params = self._where(schema, filters)
        schema.check_fields(field for field, _ in order_by)

        sql = f"SELECT * FROM {schema.table}"
        if where_sql:
            sql += f" WHERE {where_sql}"
        if order_by:
            sql += " ORDER BY " + ", ".join(f"{field} {'DESC' if desc else 'ASC'}" for field, desc in order_by)
        if limit is not None:
            sql += " LIMIT ?"
            params.append(max(limit, 0))

        if not await self._ready_for_read():
            return []
        try:
            async with self._db.read() as conn:
                async with conn.execute(sql, params) as cursor:
                    rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            logger.warning("[SQLITE STORE] Query on %s failed: %s", schema.table, exc)
            return []
        return [self._decode(schema, row) for row in rows]

    async def count_grouped(
        self,
        kind: str,
        group_by: str,
        filters: Mapping[str, Any] | None = None,
    ) -> Dict[str, int]:
        schema = self.schema(kind)
        schema.check_fields([group_by])
        where_sql, params = self._where(schema, filters)

        sql = f"SELECT {group_by}, COUNT(*) AS total FROM {schema.table}"
        if where_sql:
            sql += f" WHERE {where_sql}"
        sql += f" GROUP BY {group_by}"

        if not await self._ready_for_read():
            return {}
        try:
            async with self._db.read() as conn:
                async with conn.execute(sql, params) as cursor:
                    rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            logger.warning("[SQLITE STORE] Grouped count on %s failed: %s", schema.table, exc)
            return {}
        return {str(row[0]): int(row[1]) for row in rows}

    # ------------------------------------------------------------------
    # Batch writes
    # ------------------------------------------------------------------

    async def insert_many(self, kind: str, records: Iterable[Mapping[str, Any]]) -> List[Record]:
        schema = self.schema(kind)
        prepared = [self._prepare_insert(kind, record)[0] for record in records]
        if not prepared:
            return []
        await self._ready_for_write()

        names = list(schema.column_names)
        sql = (
            f"INSERT INTO {schema.table} ({', '.join(names)}) "
            f"VALUES ({', '.join('?' for _ in names)})"
        )
        try:
            async with self._db.transaction() as conn:
                await conn.executemany(sql, [self._encode(schema, full) for full in prepared])
        except aiosqlite.IntegrityError as exc:
            raise DuplicateRecordError(kind, ", ".join(full["id"] for full in prepared)) from exc
        except aiosqlite.Error as exc:
            logger.error("[SQLITE STORE] Batch insert into %s failed: %s", schema.table, exc)
            raise StorageUnavailableError() from exc

        return [
            self._decode(schema, {name: schema.column(name).to_storage(value) for name, value in full.items()})
            for full in prepared
        ]

    async def update_many(
        self,
        kind: str,
        record_ids: Sequence[str],
        patch: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> int:
        schema = self.schema(kind)
        self._check_patch(kind, patch, expected)
        if not record_ids or not patch:
            return 0
        await self._ready_for_write()

        condition_sql, condition_params = self._where(schema, expected)
        placeholders = ", ".join("?" for _ in record_ids)
        sql = (
            f"UPDATE {schema.table} SET {', '.join(f'{name} = ?' for name in patch)} "
            f"WHERE id IN ({placeholders})"
        )
        if condition_sql:
            sql += f" AND {condition_sql}"

        try:
            async with self._db.transaction() as conn:
                cursor = await conn.execute(
                    sql,
                    [*self._encode(schema, patch), *(str(rid) for rid in record_ids), *condition_params],
                )
                changed = cursor.rowcount
        except aiosqlite.Error as exc:
            logger.error("[SQLITE STORE] Batch update of %s failed: %s", schema.table, exc)
            raise StorageUnavailableError() from exc
        return changed


def _sql_literal(value: Any) -> str:
    if isinstance(value, (int, float)):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"
