"""
Descriptions of the persisted entity kinds.

Both backends are driven by these descriptions: the JSON backend uses them to
fill defaults and validate field names, the SQLite backend to create tables,
add missing columns, and convert values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Tuple

from recruitcord.datatypes.blacklist_datatypes import BLACKLIST_KIND
from recruitcord.datatypes.recruit_datatypes import RECRUIT_KIND
from recruitcord.util.time_utils import format_timestamp


class ColumnType(Enum):
    TEXT = "text"
    BOOLEAN = "boolean"
    # ISO-8601 strings; lexical order matches chronological order for UTC values
    TIMESTAMP = "timestamp"

    @property
    def sql_type(self) -> str:
        return "INTEGER" if self is ColumnType.BOOLEAN else "TEXT"


@dataclass(frozen=True, slots=True)
class Column:
    name: str
    type: ColumnType = ColumnType.TEXT
    nullable: bool = True
    default: Any = None

    def to_storage(self, value: Any) -> Any:
        if value is None:
            return None
        if self.type is ColumnType.BOOLEAN:
            return 1 if value else 0
        if self.type is ColumnType.TIMESTAMP and isinstance(value, datetime):
            return format_timestamp(value)
        return str(value)

    def from_storage(self, value: Any) -> Any:
        if value is None:
            return None
        if self.type is ColumnType.BOOLEAN:
            return bool(value)
        return value


@dataclass(frozen=True)
class RecordSchema:
    """One entity kind: its table, its JSON file and its columns (``id`` first)."""
    kind: str
    table: str
    file_name: str
    columns: Tuple[Column, ...]
    indexes: Tuple[Tuple[str, ...], ...] = field(default_factory=tuple)

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    def column(self, name: str) -> Column:
        for column in self.columns:
            if column.name == name:
                return column
        raise KeyError(f"{self.kind} has no field {name!r}")

    def check_fields(self, names) -> None:
        """Raise KeyError for any name that is not a column of this kind."""
        unknown = [name for name in names if name not in self.column_names]
        if unknown:
            raise KeyError(f"{self.kind} has no field(s) {', '.join(sorted(unknown))}")

    def complete(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a full record in column order, defaults filled in.

        Raises ValueError when a non-nullable column other than ``id`` is
        still missing once defaults are applied.
        """
        self.check_fields(record.keys())
        full = {column.name: record.get(column.name, column.default) for column in self.columns}
        missing = [
            column.name for column in self.columns
            if column.name != "id" and not column.nullable and full[column.name] is None
        ]
        if missing:
            raise ValueError(f"{self.kind} record is missing {', '.join(missing)}")
        return full


BLACKLIST_SCHEMA = RecordSchema(
    kind=BLACKLIST_KIND,
    table="blacklists",
    file_name="blacklist-data.json",
    columns=(
        Column("id", nullable=False),
        Column("passport_id", nullable=False),
        Column("display_name", nullable=False),
        Column("reason", nullable=False),
        Column("author_id", nullable=False),
        Column("origin_guild_id", nullable=False),
        Column("origin_channel_id", nullable=False),
        Column("origin_message_id", nullable=False),
        Column("created_at", ColumnType.TIMESTAMP, nullable=False),
        Column("removed", ColumnType.BOOLEAN, nullable=False, default=False),
        Column("removed_by"),
        Column("removed_at", ColumnType.TIMESTAMP),
        Column("remove_reason"),
    ),
    indexes=(("passport_id", "removed"),),
)

RECRUIT_SCHEMA = RecordSchema(
    kind=RECRUIT_KIND,
    table="recruits",
    file_name="recruits-data.json",
    columns=(
        Column("id", nullable=False),
        Column("recruiter_id", nullable=False),
        Column("candidate_id", nullable=False),
        Column("candidate_name", nullable=False),
        Column("phone", nullable=False, default=""),
        Column("passport", nullable=False, default=""),
        Column("status", nullable=False, default="pending"),
        Column("created_at", ColumnType.TIMESTAMP, nullable=False),
        Column("approved_by"),
        Column("approved_at", ColumnType.TIMESTAMP),
        Column("rejected_by"),
        Column("rejected_at", ColumnType.TIMESTAMP),
        Column("reject_reason"),
        Column("blacklist_flag", ColumnType.BOOLEAN, nullable=False, default=False),
        Column("blacklist_reason"),
        Column("approval_channel_id"),
        Column("approval_message_id"),
        Column("first_race"),
        Column("first_farm"),
        Column("first_dismantle"),
        Column("kit_delivered", ColumnType.BOOLEAN, nullable=False, default=False),
        Column("kit_delivered_by"),
        Column("kit_delivered_at", ColumnType.TIMESTAMP),
    ),
    indexes=(("status", "recruiter_id"), ("recruiter_id", "candidate_id")),
)

SCHEMAS: Dict[str, RecordSchema] = {
    BLACKLIST_SCHEMA.kind: BLACKLIST_SCHEMA,
    RECRUIT_SCHEMA.kind: RECRUIT_SCHEMA,
}
