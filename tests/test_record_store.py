"""Contract tests run against both record store backends."""

from datetime import datetime, timezone

import pytest

from recruitcord.datatypes.blacklist_datatypes import BLACKLIST_KIND
from recruitcord.datatypes.errors import DuplicateRecordError
from recruitcord.datatypes.recruit_datatypes import RECRUIT_KIND


def blacklist_record(**overrides):
    record = {
        "passport_id": "12345",
        "display_name": "John Doe",
        "reason": "Scam",
        "author_id": "100",
        "origin_guild_id": "1",
        "origin_channel_id": "2",
        "origin_message_id": "3",
        "created_at": "2024-05-01T12:00:00.000000+00:00",
    }
    record.update(overrides)
    return record


def recruit_record(**overrides):
    record = {
        "recruiter_id": "R1",
        "candidate_id": "C1",
        "candidate_name": "Candidate",
        "created_at": "2024-05-01T12:00:00.000000+00:00",
    }
    record.update(overrides)
    return record


class TestInsertAndGet:

    @pytest.mark.asyncio
    async def test_insert_generates_id_and_fills_defaults(self, store):
        stored = await store.insert(BLACKLIST_KIND, blacklist_record())
        assert stored["id"]
        assert stored["removed"] is False
        assert stored["removed_by"] is None

        fetched = await store.get_by_id(BLACKLIST_KIND, stored["id"])
        assert fetched == stored

    @pytest.mark.asyncio
    async def test_recruit_defaults(self, store):
        stored = await store.insert(RECRUIT_KIND, recruit_record())
        assert stored["status"] == "pending"
        assert stored["phone"] == ""
        assert stored["kit_delivered"] is False
        assert stored["blacklist_flag"] is False

    @pytest.mark.asyncio
    async def test_unknown_id_returns_none(self, store):
        assert await store.get_by_id(BLACKLIST_KIND, "missing") is None

    @pytest.mark.asyncio
    async def test_supplied_id_is_kept(self, store):
        stored = await store.insert(RECRUIT_KIND, recruit_record(id="fixed-id"))
        assert stored["id"] == "fixed-id"
        assert (await store.get_by_id(RECRUIT_KIND, "fixed-id"))["candidate_id"] == "C1"

    @pytest.mark.asyncio
    async def test_duplicate_supplied_id_raises(self, store):
        await store.insert(RECRUIT_KIND, recruit_record(id="dup"))
        with pytest.raises(DuplicateRecordError):
            await store.insert(RECRUIT_KIND, recruit_record(id="dup", candidate_id="C2"))
        assert (await store.get_by_id(RECRUIT_KIND, "dup"))["candidate_id"] == "C1"

    @pytest.mark.asyncio
    async def test_unknown_field_is_rejected(self, store):
        with pytest.raises(KeyError):
            await store.insert(BLACKLIST_KIND, blacklist_record(colour="red"))

    @pytest.mark.asyncio
    async def test_missing_required_field_is_rejected(self, store):
        record = blacklist_record()
        del record["reason"]
        with pytest.raises(ValueError):
            await store.insert(BLACKLIST_KIND, record)

    @pytest.mark.asyncio
    async def test_kinds_are_separate(self, store):
        stored = await store.insert(BLACKLIST_KIND, blacklist_record())
        assert await store.get_by_id(RECRUIT_KIND, stored["id"]) is None


class TestUpdate:

    @pytest.mark.asyncio
    async def test_update_returns_new_record(self, store):
        stored = await store.insert(BLACKLIST_KIND, blacklist_record())
        updated = await store.update_by_id(
            BLACKLIST_KIND, stored["id"], {"removed": True, "removed_by": "200"}
        )
        assert updated["removed"] is True
        assert updated["removed_by"] == "200"
        assert updated["reason"] == "Scam"
        assert await store.get_by_id(BLACKLIST_KIND, stored["id"]) == updated

    @pytest.mark.asyncio
    async def test_update_unknown_id_returns_none(self, store):
        assert await store.update_by_id(BLACKLIST_KIND, "missing", {"removed": True}) is None

    @pytest.mark.asyncio
    async def test_conditional_update_applies_when_expected_holds(self, store):
        stored = await store.insert(RECRUIT_KIND, recruit_record())
        updated = await store.update_by_id(
            RECRUIT_KIND, stored["id"], {"status": "approved"}, expected={"status": "pending"}
        )
        assert updated["status"] == "approved"

    @pytest.mark.asyncio
    async def test_conditional_update_mismatch_writes_nothing(self, store):
        stored = await store.insert(RECRUIT_KIND, recruit_record(status="approved"))
        result = await store.update_by_id(
            RECRUIT_KIND,
            stored["id"],
            {"status": "rejected", "rejected_by": "9"},
            expected={"status": "pending"},
        )
        assert result is None
        current = await store.get_by_id(RECRUIT_KIND, stored["id"])
        assert current["status"] == "approved"
        assert current["rejected_by"] is None

    @pytest.mark.asyncio
    async def test_conditional_update_on_boolean_field(self, store):
        stored = await store.insert(BLACKLIST_KIND, blacklist_record())
        first = await store.update_by_id(BLACKLIST_KIND, stored["id"], {"removed": True}, expected={"removed": False})
        second = await store.update_by_id(BLACKLIST_KIND, stored["id"], {"removed": True}, expected={"removed": False})
        assert first is not None
        assert second is None

    @pytest.mark.asyncio
    async def test_id_cannot_be_patched(self, store):
        stored = await store.insert(BLACKLIST_KIND, blacklist_record())
        with pytest.raises(KeyError):
            await store.update_by_id(BLACKLIST_KIND, stored["id"], {"id": "other"})


class TestQueries:

    @pytest.mark.asyncio
    async def test_filter_order_and_limit(self, store):
        for index, passport in enumerate(["A", "B", "A", "A"]):
            await store.insert(
                BLACKLIST_KIND,
                blacklist_record(passport_id=passport, created_at=f"2024-05-0{index + 1}T00:00:00.000000+00:00"),
            )

        newest_first = await store.query_filtered(
            BLACKLIST_KIND,
            filters={"passport_id": "A"},
            order_by=(("created_at", True),),
        )
        assert [record["created_at"][:10] for record in newest_first] == ["2024-05-04", "2024-05-03", "2024-05-01"]

        limited = await store.query_filtered(
            BLACKLIST_KIND, filters={"passport_id": "A"}, order_by=(("created_at", False),), limit=2
        )
        assert [record["created_at"][:10] for record in limited] == ["2024-05-01", "2024-05-03"]

    @pytest.mark.asyncio
    async def test_zero_limit_returns_nothing(self, store):
        await store.insert(BLACKLIST_KIND, blacklist_record())
        assert await store.query_filtered(BLACKLIST_KIND, limit=0) == []

    @pytest.mark.asyncio
    async def test_boolean_filter(self, store):
        active = await store.insert(BLACKLIST_KIND, blacklist_record())
        await store.insert(BLACKLIST_KIND, blacklist_record(removed=True))
        records = await store.query_filtered(BLACKLIST_KIND, filters={"removed": False})
        assert [record["id"] for record in records] == [active["id"]]

    @pytest.mark.asyncio
    async def test_empty_collection(self, store):
        assert await store.query_filtered(RECRUIT_KIND) == []
        assert await store.count_grouped(RECRUIT_KIND, "recruiter_id") == {}

    @pytest.mark.asyncio
    async def test_count_grouped(self, store):
        for recruiter, status in [("A", "approved"), ("A", "approved"), ("B", "approved"), ("A", "pending")]:
            await store.insert(RECRUIT_KIND, recruit_record(recruiter_id=recruiter, status=status))

        counts = await store.count_grouped(RECRUIT_KIND, "recruiter_id", filters={"status": "approved"})
        assert counts == {"A": 2, "B": 1}

    @pytest.mark.asyncio
    async def test_unknown_filter_field_is_rejected(self, store):
        with pytest.raises(KeyError):
            await store.query_filtered(BLACKLIST_KIND, filters={"nope": 1})


class TestTimestamps:

    @pytest.mark.asyncio
    async def test_datetime_values_are_stored_as_iso_8601(self, store):
        created = datetime(2024, 5, 1, 12, 0, 5, tzinfo=timezone.utc)
        stored = await store.insert(RECRUIT_KIND, recruit_record(created_at=created))

        assert stored["created_at"] == "2024-05-01T12:00:05.000000+00:00"
        assert (await store.get_by_id(RECRUIT_KIND, stored["id"]))["created_at"] == stored["created_at"]

        updated = await store.update_by_id(
            RECRUIT_KIND, stored["id"], {"approved_at": datetime(2024, 5, 2, 8, 30)}
        )
        assert updated["approved_at"] == "2024-05-02T08:30:00.000000+00:00"

    @pytest.mark.asyncio
    async def test_mixed_inputs_sort_chronologically(self, store):
        late = datetime(2024, 5, 1, 13, tzinfo=timezone.utc)
        await store.insert(RECRUIT_KIND, recruit_record(id="late", created_at=late))
        await store.insert(RECRUIT_KIND, recruit_record(id="early", created_at="2024-05-01T12:00:00.000000+00:00"))

        records = await store.query_filtered(RECRUIT_KIND, order_by=(("created_at", False),))
        assert [record["id"] for record in records] == ["early", "late"]
