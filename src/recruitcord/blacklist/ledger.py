"""
Blacklist ledger: lifecycle of blacklist entries.

Entries are appended and soft-removed, never deleted. Removal is a single
conditional update on ``removed = false``, so the removal triple is written
exactly once even when two moderators submit the removal form at the same
time; the loser gets an :class:`InvalidTransitionError`.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from recruitcord.datatypes.blacklist_datatypes import BLACKLIST_KIND, BlacklistEntry, OriginRefs
from recruitcord.datatypes.errors import InvalidTransitionError
from recruitcord.storage.record_store import RecordStore
from recruitcord.util.logger import get_logger
from recruitcord.util.time_utils import format_timestamp, utcnow

logger = get_logger("blacklist_ledger")


def normalise_passport(passport_id: str) -> str:
    """Passport ids are compared exactly, minus surrounding whitespace."""
    return str(passport_id).strip()


class BlacklistLedger:
    """Create, remove and look up blacklist entries through a record store."""

    def __init__(self, store: RecordStore, clock: Callable = utcnow) -> None:
        self._store = store
        self._clock = clock

    async def add_entry(
        self,
        passport_id: str,
        display_name: str,
        reason: str,
        author_id: str,
        origin: OriginRefs,
    ) -> BlacklistEntry:
        """Register a flagged individual and return the stored entry."""
        entry = BlacklistEntry(
            id="",
            passport_id=normalise_passport(passport_id),
            display_name=display_name.strip(),
            reason=reason.strip(),
            author_id=str(author_id),
            origin_guild_id=str(origin.guild_id),
            origin_channel_id=str(origin.channel_id),
            origin_message_id=str(origin.message_id),
            created_at=self._clock(),
        )
        stored = BlacklistEntry.from_record(await self._store.insert(BLACKLIST_KIND, entry.to_record()))
        logger.info(
            "[BLACKLIST LEDGER] Entry %s registered for passport %s by %s",
            stored.id, stored.passport_id, stored.author_id,
        )
        return stored

    async def mark_removed(self, entry_id: str, removed_by: str, reason: str) -> Optional[BlacklistEntry]:
        """Soft-remove an entry.

        Returns:
            The updated entry, or None when ``entry_id`` is unknown.

        Raises:
            InvalidTransitionError: The entry was already removed.
        """
        patch = {
            "removed": True,
            "removed_by": str(removed_by),
            "removed_at": format_timestamp(self._clock()),
            "remove_reason": reason.strip(),
        }
        record = await self._store.update_by_id(BLACKLIST_KIND, entry_id, patch, expected={"removed": False})
        if record is not None:
            entry = BlacklistEntry.from_record(record)
            logger.info("[BLACKLIST LEDGER] Entry %s removed by %s", entry.id, entry.removed_by)
            return entry

        current = await self.get_by_id(entry_id)
        if current is None:
            return None
        logger.warning("[BLACKLIST LEDGER] Entry %s already removed; ignoring removal by %s", entry_id, removed_by)
        raise InvalidTransitionError(
            entry_id,
            "removed",
            "This blacklist entry has already been removed.",
            record=current,
        )

    async def get_by_id(self, entry_id: str) -> Optional[BlacklistEntry]:
        record = await self._store.get_by_id(BLACKLIST_KIND, entry_id)
        return BlacklistEntry.from_record(record) if record is not None else None

    async def get_active_by_passport(self, passport_id: str) -> Optional[BlacklistEntry]:
        """Return the most recent non-removed entry for a passport, if any.

        Several active entries for one passport resolve to the newest
        ``created_at``, then the greatest id.
        """
        records = await self._store.query_filtered(
            BLACKLIST_KIND,
            filters={"passport_id": normalise_passport(passport_id), "removed": False},
            order_by=(("created_at", True), ("id", True)),
            limit=1,
        )
        return BlacklistEntry.from_record(records[0]) if records else None

    async def list_entries(self, include_removed: bool = False) -> List[BlacklistEntry]:
        """All entries, most recent first."""
        filters = None if include_removed else {"removed": False}
        records = await self._store.query_filtered(
            BLACKLIST_KIND,
            filters=filters,
            order_by=(("created_at", True), ("id", True)),
        )
        return [BlacklistEntry.from_record(record) for record in records]
