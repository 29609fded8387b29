"""
Blacklist entry data structure.

An entry is created once by an authorised member and soft-removed at most
once; the removal triple (``removed_by``, ``removed_at``, ``remove_reason``)
is written in a single update and never cleared.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from recruitcord.util.time_utils import format_timestamp, parse_timestamp

BLACKLIST_KIND = "blacklist"


@dataclass(slots=True)
class BlacklistEntry:
    """A flagged individual, keyed by an in-game passport identifier.

    Attributes:
        id: Opaque unique id assigned at creation
        passport_id: In-game passport identifier used for lookups
        display_name: In-game name recorded by the author
        reason: Why the individual was flagged
        author_id: Discord id of the member who registered the entry
        origin_guild_id / origin_channel_id / origin_message_id: Where the
            public blacklist notice was posted
        created_at: Creation time (UTC)
        removed: Soft-delete flag, never reverts once True
    """
    id: str
    passport_id: str
    display_name: str
    reason: str
    author_id: str
    origin_guild_id: str
    origin_channel_id: str
    origin_message_id: str
    created_at: datetime
    removed: bool = False
    removed_by: Optional[str] = None
    removed_at: Optional[datetime] = None
    remove_reason: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return not self.removed

    def to_record(self) -> Dict[str, Any]:
        """Return the flat mapping handed to a record store."""
        record = asdict(self)
        record["created_at"] = format_timestamp(self.created_at)
        record["removed_at"] = format_timestamp(self.removed_at)
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "BlacklistEntry":
        """Build an entry from a record store mapping."""
        return cls(
            id=str(record["id"]),
            passport_id=str(record["passport_id"]),
            display_name=str(record["display_name"]),
            reason=str(record["reason"]),
            author_id=str(record["author_id"]),
            origin_guild_id=str(record["origin_guild_id"]),
            origin_channel_id=str(record["origin_channel_id"]),
            origin_message_id=str(record["origin_message_id"]),
            created_at=parse_timestamp(record["created_at"]),
            removed=bool(record.get("removed", False)),
            removed_by=record.get("removed_by"),
            removed_at=parse_timestamp(record.get("removed_at")),
            remove_reason=record.get("remove_reason"),
        )


@dataclass(slots=True, frozen=True)
class OriginRefs:
    """Where the public blacklist notice for an entry was posted."""
    guild_id: str
    channel_id: str
    message_id: str
