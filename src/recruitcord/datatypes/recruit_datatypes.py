"""
Recruitment data structures.

This module defines the RecruitStatus state enum, the persisted
RecruitRequest record, and the plain result values the pipeline and the
ranking aggregator hand back to the Discord layer.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from recruitcord.util.time_utils import format_timestamp, parse_timestamp

RECRUIT_KIND = "recruit"

# candidate_id of synthetic records inserted by manual ranking adjustments
MANUAL_ADJUSTMENT_CANDIDATE = "manual_adjustment"
MANUAL_ADJUSTMENT_NAME = "Manual adjustment"
MANUAL_ADJUSTMENT_REASON = "manual ranking adjustment"


class RecruitStatus(Enum):
    """Lifecycle states of a recruit request. Only PENDING is non-terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self is not RecruitStatus.PENDING


@dataclass(slots=True, frozen=True)
class BlacklistSnapshot:
    """Blacklist status of a passport, captured once at intake."""
    flagged: bool = False
    reason: Optional[str] = None

    @classmethod
    def clear(cls) -> "BlacklistSnapshot":
        return cls(False, None)


@dataclass(slots=True)
class RecruitRequest:
    """A candidate's intake request, sponsored by a recruiter.

    Attributes:
        id: Opaque unique id, also embedded in the approval post's button ids
        recruiter_id: Discord id of the sponsoring member
        candidate_id: Discord id of the candidate (``manual_adjustment`` for
            synthetic ranking records)
        candidate_name / phone / passport: In-game details from the intake form
        status: Current lifecycle state
        blacklist_flag / blacklist_reason: Snapshot taken at creation, never
            re-evaluated
        approval_channel_id / approval_message_id: Where the approval post lives
        first_race / first_farm / first_dismantle: Onboarding answers captured
            at approval time
        kit_delivered: Set once, only after approval
    """
    id: str
    recruiter_id: str
    candidate_id: str
    candidate_name: str
    phone: str
    passport: str
    status: RecruitStatus
    created_at: datetime
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    reject_reason: Optional[str] = None
    blacklist_flag: bool = False
    blacklist_reason: Optional[str] = None
    approval_channel_id: Optional[str] = None
    approval_message_id: Optional[str] = None
    first_race: Optional[str] = None
    first_farm: Optional[str] = None
    first_dismantle: Optional[str] = None
    kit_delivered: bool = False
    kit_delivered_by: Optional[str] = None
    kit_delivered_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status is RecruitStatus.PENDING

    @property
    def is_manual_adjustment(self) -> bool:
        return self.candidate_id == MANUAL_ADJUSTMENT_CANDIDATE

    def to_record(self) -> Dict[str, Any]:
        """Return the flat mapping handed to a record store."""
        record = asdict(self)
        record["status"] = self.status.value
        for key in ("created_at", "approved_at", "rejected_at", "kit_delivered_at"):
            record[key] = format_timestamp(record[key])
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "RecruitRequest":
        """Build a request from a record store mapping."""
        return cls(
            id=str(record["id"]),
            recruiter_id=str(record["recruiter_id"]),
            candidate_id=str(record["candidate_id"]),
            candidate_name=str(record["candidate_name"]),
            phone=str(record.get("phone") or ""),
            passport=str(record.get("passport") or ""),
            status=RecruitStatus(record["status"]),
            created_at=parse_timestamp(record["created_at"]),
            approved_by=record.get("approved_by"),
            approved_at=parse_timestamp(record.get("approved_at")),
            rejected_by=record.get("rejected_by"),
            rejected_at=parse_timestamp(record.get("rejected_at")),
            reject_reason=record.get("reject_reason"),
            blacklist_flag=bool(record.get("blacklist_flag", False)),
            blacklist_reason=record.get("blacklist_reason"),
            approval_channel_id=record.get("approval_channel_id"),
            approval_message_id=record.get("approval_message_id"),
            first_race=record.get("first_race"),
            first_farm=record.get("first_farm"),
            first_dismantle=record.get("first_dismantle"),
            kit_delivered=bool(record.get("kit_delivered", False)),
            kit_delivered_by=record.get("kit_delivered_by"),
            kit_delivered_at=parse_timestamp(record.get("kit_delivered_at")),
        )


@dataclass(slots=True, frozen=True)
class RankingEntry:
    """One leaderboard row. Derived on every query, never persisted."""
    recruiter_id: str
    total: int


@dataclass(slots=True, frozen=True)
class AdjustmentResult:
    """Outcome of a manual ranking adjustment.

    Attributes:
        success: Whether any record was inserted or reversed
        message: Short human readable summary for the caller
        applied: Number of records inserted (positive) or reversed (negative)
    """
    success: bool
    message: str
    applied: int = 0
