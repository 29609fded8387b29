"""Tests specific to the SQLite backend."""

import aiosqlite
import pytest

from recruitcord.datatypes.blacklist_datatypes import BLACKLIST_KIND
from recruitcord.datatypes.errors import DuplicateRecordError, StorageUnavailableError
from recruitcord.datatypes.recruit_datatypes import RECRUIT_KIND
from recruitcord.storage.sqlite_store import SqliteRecordStore

from test_record_store import blacklist_record, recruit_record


@pytest.mark.asyncio
async def test_tables_and_indexes_are_created(sqlite_store):
    async with aiosqlite.connect(str(sqlite_store.db_path)) as db:
        async with db.execute("SELECT name FROM sqlite_master WHERE type='table'") as cursor:
            tables = {row[0] for row in await cursor.fetchall()}
        async with db.execute("SELECT name FROM sqlite_master WHERE type='index'") as cursor:
            indexes = {row[0] for row in await cursor.fetchall()}
    assert {"blacklists", "recruits"} <= tables
    assert "idx_blacklists_passport_id_removed" in indexes
    assert "idx_recruits_status_recruiter_id" in indexes


@pytest.mark.asyncio
async def test_initialize_is_idempotent(sqlite_store):
    stored = await sqlite_store.insert(BLACKLIST_KIND, blacklist_record())
    await sqlite_store.initialize()
    assert await sqlite_store.get_by_id(BLACKLIST_KIND, stored["id"]) is not None


@pytest.mark.asyncio
async def test_missing_columns_are_added_to_old_tables(tmp_path):
    db_path = tmp_path / "old.db"
    async with aiosqlite.connect(str(db_path)) as db:
        await db.execute(
            "CREATE TABLE recruits (id TEXT PRIMARY KEY, recruiter_id TEXT NOT NULL, candidate_id TEXT NOT NULL, "
            "candidate_name TEXT NOT NULL, status TEXT NOT NULL, created_at TEXT NOT NULL)"
        )
        await db.execute(
            "INSERT INTO recruits VALUES ('old1', 'R1', 'C1', 'Old timer', 'approved', '2023-01-01T00:00:00+00:00')"
        )
        await db.commit()

    store = SqliteRecordStore(db_path)
    await store.initialize()
    try:
        record = await store.get_by_id(RECRUIT_KIND, "old1")
        assert record["status"] == "approved"
        assert record["kit_delivered"] is False
        assert record["phone"] == ""
        assert record["first_race"] is None
        assert await store.count_grouped(RECRUIT_KIND, "recruiter_id", {"status": "approved"}) == {"R1": 1}
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_unreachable_database(tmp_path):
    # a directory cannot be opened as a database file
    bad_path = tmp_path / "not-a-db"
    bad_path.mkdir()
    store = SqliteRecordStore(bad_path)

    with pytest.raises(StorageUnavailableError):
        await store.initialize()

    assert await store.get_by_id(RECRUIT_KIND, "x") is None
    assert await store.query_filtered(RECRUIT_KIND) == []
    assert await store.count_grouped(RECRUIT_KIND, "recruiter_id") == {}
    with pytest.raises(StorageUnavailableError):
        await store.insert(RECRUIT_KIND, recruit_record())


@pytest.mark.asyncio
async def test_insert_many_is_atomic(sqlite_store):
    await sqlite_store.insert(RECRUIT_KIND, recruit_record(id="taken"))
    batch = [recruit_record(id="fresh"), recruit_record(id="taken")]

    with pytest.raises(DuplicateRecordError):
        await sqlite_store.insert_many(RECRUIT_KIND, batch)
    assert await sqlite_store.get_by_id(RECRUIT_KIND, "fresh") is None


@pytest.mark.asyncio
async def test_insert_many_generates_ids(sqlite_store):
    inserted = await sqlite_store.insert_many(RECRUIT_KIND, [recruit_record() for _ in range(3)])
    assert len({record["id"] for record in inserted}) == 3
    assert await sqlite_store.count_grouped(RECRUIT_KIND, "recruiter_id") == {"R1": 3}


@pytest.mark.asyncio
async def test_update_many_respects_expected(sqlite_store):
    approved = await sqlite_store.insert(RECRUIT_KIND, recruit_record(status="approved"))
    pending = await sqlite_store.insert(RECRUIT_KIND, recruit_record(status="pending"))

    changed = await sqlite_store.update_many(
        RECRUIT_KIND,
        [approved["id"], pending["id"], "unknown"],
        {"status": "rejected"},
        expected={"status": "approved"},
    )

    assert changed == 1
    assert (await sqlite_store.get_by_id(RECRUIT_KIND, approved["id"]))["status"] == "rejected"
    assert (await sqlite_store.get_by_id(RECRUIT_KIND, pending["id"]))["status"] == "pending"


@pytest.mark.asyncio
async def test_update_many_with_nothing_to_do(sqlite_store):
    assert await sqlite_store.update_many(RECRUIT_KIND, [], {"status": "rejected"}) == 0


@pytest.mark.asyncio
async def test_in_memory_database():
    store = SqliteRecordStore(":memory:")
    await store.initialize()
    try:
        stored = await store.insert(BLACKLIST_KIND, blacklist_record())
        assert (await store.get_by_id(BLACKLIST_KIND, stored["id"]))["passport_id"] == "12345"
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_close_then_reopen_on_next_use(sqlite_store):
    stored = await sqlite_store.insert(BLACKLIST_KIND, blacklist_record())
    assert sqlite_store.is_ready

    await sqlite_store.close()
    assert not sqlite_store.is_ready

    assert await sqlite_store.get_by_id(BLACKLIST_KIND, stored["id"]) == stored
    assert sqlite_store.is_ready
