"""
Recruit pipeline: lifecycle of recruit requests.

State machine::

    pending ──approve──▶ approved ──mark_kit_delivered──▶ (kit_delivered)
       │
       └────reject─────▶ rejected

Every transition is one conditional update whose ``expected`` values encode
the source state. When the update matches nothing, the record is re-read
to tell "unknown id" (``None``) from "wrong state"
(:class:`InvalidTransitionError`). Two managers pressing "approve" at the
same time therefore produce one approval and one explicit refusal.

Manual ranking adjustments are the one sanctioned way out of ``approved``:
reversing points moves records to ``rejected`` in a single batch update.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional

from recruitcord.datatypes.errors import InvalidTransitionError, UnsupportedOperationError
from recruitcord.datatypes.recruit_datatypes import (
    MANUAL_ADJUSTMENT_CANDIDATE,
    MANUAL_ADJUSTMENT_NAME,
    MANUAL_ADJUSTMENT_REASON,
    RECRUIT_KIND,
    AdjustmentResult,
    BlacklistSnapshot,
    RecruitRequest,
    RecruitStatus,
)
from recruitcord.storage.record_store import RecordStore
from recruitcord.util.logger import get_logger
from recruitcord.util.time_utils import format_timestamp, utcnow

logger = get_logger("recruit_pipeline")

PENDING = {"status": RecruitStatus.PENDING.value}


class RecruitPipeline:
    """Create recruit requests and move them through their lifecycle."""

    def __init__(self, store: RecordStore, clock: Callable = utcnow) -> None:
        self._store = store
        self._clock = clock

    def generate_id(self) -> str:
        """Reserve an id before the request exists (it goes into button ids)."""
        return self._store.generate_id()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create(
        self,
        recruiter_id: str,
        candidate_id: str,
        candidate_name: str,
        phone: str,
        passport: str,
        blacklist: BlacklistSnapshot,
        request_id: str | None = None,
        approval_channel_id: str | None = None,
        approval_message_id: str | None = None,
    ) -> RecruitRequest:
        """Store a new pending request.

        ``blacklist`` is stored as given; the caller looks the passport up in
        the blacklist ledger beforehand.
        """
        return await self.save(
            self.draft(
                recruiter_id,
                candidate_id,
                candidate_name,
                phone,
                passport,
                blacklist,
                request_id=request_id,
                approval_channel_id=approval_channel_id,
                approval_message_id=approval_message_id,
            )
        )

    def draft(
        self,
        recruiter_id: str,
        candidate_id: str,
        candidate_name: str,
        phone: str,
        passport: str,
        blacklist: BlacklistSnapshot,
        request_id: str | None = None,
        approval_channel_id: str | None = None,
        approval_message_id: str | None = None,
    ) -> RecruitRequest:
        """Build a pending request with its final id without storing it."""
        return RecruitRequest(
            id=request_id or self.generate_id(),
            recruiter_id=str(recruiter_id),
            candidate_id=str(candidate_id),
            candidate_name=candidate_name.strip(),
            phone=phone.strip(),
            passport=passport.strip(),
            status=RecruitStatus.PENDING,
            created_at=self._clock(),
            blacklist_flag=bool(blacklist.flagged),
            blacklist_reason=blacklist.reason if blacklist.flagged else None,
            approval_channel_id=str(approval_channel_id) if approval_channel_id else None,
            approval_message_id=str(approval_message_id) if approval_message_id else None,
        )

    async def save(self, request: RecruitRequest) -> RecruitRequest:
        """Insert a drafted request; a reused id raises DuplicateRecordError."""
        stored = RecruitRequest.from_record(await self._store.insert(RECRUIT_KIND, request.to_record()))
        logger.info(
            "[RECRUIT PIPELINE] Request %s created for candidate %s (recruiter %s, blacklisted=%s)",
            stored.id, stored.candidate_id, stored.recruiter_id, stored.blacklist_flag,
        )
        return stored

    async def attach_approval_message(
        self, request_id: str, channel_id: str, message_id: str
    ) -> Optional[RecruitRequest]:
        """Record where the approval post for a request lives."""
        record = await self._store.update_by_id(
            RECRUIT_KIND,
            request_id,
            {"approval_channel_id": str(channel_id), "approval_message_id": str(message_id)},
        )
        return RecruitRequest.from_record(record) if record is not None else None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def approve(
        self,
        request_id: str,
        approved_by: str,
        first_race: str | None = None,
        first_farm: str | None = None,
        first_dismantle: str | None = None,
    ) -> Optional[RecruitRequest]:
        """Move a pending request to approved.

        Returns None for an unknown id; raises InvalidTransitionError when
        the request is no longer pending.
        """
        patch = {
            "status": RecruitStatus.APPROVED.value,
            "approved_by": str(approved_by),
            "approved_at": format_timestamp(self._clock()),
            "first_race": first_race,
            "first_farm": first_farm,
            "first_dismantle": first_dismantle,
        }
        request = await self._transition(request_id, patch, PENDING, "approve")
        if request is not None:
            logger.info("[RECRUIT PIPELINE] Request %s approved by %s", request.id, approved_by)
        return request

    async def reject(self, request_id: str, rejected_by: str, reason: str | None) -> Optional[RecruitRequest]:
        """Move a pending request to rejected. Same contract as approve()."""
        patch = {
            "status": RecruitStatus.REJECTED.value,
            "rejected_by": str(rejected_by),
            "rejected_at": format_timestamp(self._clock()),
            "reject_reason": reason.strip() if reason else None,
        }
        request = await self._transition(request_id, patch, PENDING, "reject")
        if request is not None:
            logger.info("[RECRUIT PIPELINE] Request %s rejected by %s", request.id, rejected_by)
        return request

    async def mark_kit_delivered(self, request_id: str, delivered_by: str) -> Optional[RecruitRequest]:
        """Record the one-time starter kit delivery of an approved request."""
        patch = {
            "kit_delivered": True,
            "kit_delivered_by": str(delivered_by),
            "kit_delivered_at": format_timestamp(self._clock()),
        }
        expected = {"status": RecruitStatus.APPROVED.value, "kit_delivered": False}
        request = await self._transition(request_id, patch, expected, "deliver kit")
        if request is not None:
            logger.info("[RECRUIT PIPELINE] Kit for request %s delivered by %s", request.id, delivered_by)
        return request

    async def _transition(
        self,
        request_id: str,
        patch: Mapping[str, Any],
        expected: Mapping[str, Any],
        action: str,
    ) -> Optional[RecruitRequest]:
        record = await self._store.update_by_id(RECRUIT_KIND, request_id, patch, expected=expected)
        if record is not None:
            return RecruitRequest.from_record(record)

        current = await self.get_by_id(request_id)
        if current is None:
            return None

        logger.warning(
            "[RECRUIT PIPELINE] Refused to %s request %s in state %s (kit_delivered=%s)",
            action, request_id, current.status, current.kit_delivered,
        )
        raise InvalidTransitionError(request_id, _describe_state(current), _refusal_message(current, action), record=current)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_by_id(self, request_id: str) -> Optional[RecruitRequest]:
        record = await self._store.get_by_id(RECRUIT_KIND, request_id)
        return RecruitRequest.from_record(record) if record is not None else None

    # ------------------------------------------------------------------
    # Manual ranking adjustment
    # ------------------------------------------------------------------

    async def adjust_ranking_points(self, recruiter_id: str, delta: int, adjusted_by: str) -> AdjustmentResult:
        """Add or reverse approved-recruit records for a recruiter.

        ``delta > 0`` inserts that many synthetic approved records.
        ``delta < 0`` moves up to ``|delta|`` approved records to rejected,
        oldest synthetic records first, then the oldest genuine ones.
        Needs a backend with batch writes; otherwise ``success`` is False.
        """
        recruiter_id = str(recruiter_id)
        if delta == 0:
            return AdjustmentResult(False, "The amount must be different from zero.")
        if not self._store.supports_batch_writes:
            logger.warning(
                "[RECRUIT PIPELINE] Ranking adjustment refused: %s backend has no batch writes",
                self._store.backend_name,
            )
            return AdjustmentResult(
                False,
                "Manual ranking adjustments need the database backend (set DATABASE_URL).",
            )

        try:
            if delta > 0:
                return await self._add_points(recruiter_id, delta, str(adjusted_by))
            return await self._remove_points(recruiter_id, -delta, str(adjusted_by))
        except UnsupportedOperationError as exc:
            return AdjustmentResult(False, exc.user_message)

    async def _add_points(self, recruiter_id: str, amount: int, adjusted_by: str) -> AdjustmentResult:
        now = self._clock()
        records = [
            RecruitRequest(
                id="",
                recruiter_id=recruiter_id,
                candidate_id=MANUAL_ADJUSTMENT_CANDIDATE,
                candidate_name=MANUAL_ADJUSTMENT_NAME,
                phone="",
                passport="",
                status=RecruitStatus.APPROVED,
                created_at=now,
                approved_by=adjusted_by,
                approved_at=now,
            ).to_record()
            for _ in range(amount)
        ]
        inserted = await self._store.insert_many(RECRUIT_KIND, records)
        logger.info(
            "[RECRUIT PIPELINE] %s added %d ranking point(s) to recruiter %s",
            adjusted_by, len(inserted), recruiter_id,
        )
        return AdjustmentResult(True, f"Added {len(inserted)} point(s) to the recruitment ranking.", len(inserted))

    async def _remove_points(self, recruiter_id: str, amount: int, adjusted_by: str) -> AdjustmentResult:
        oldest_first = (("created_at", False), ("id", False))
        synthetic = await self._store.query_filtered(
            RECRUIT_KIND,
            filters={
                "recruiter_id": recruiter_id,
                "status": RecruitStatus.APPROVED.value,
                "candidate_id": MANUAL_ADJUSTMENT_CANDIDATE,
            },
            order_by=oldest_first,
            limit=amount,
        )
        chosen: List[Dict[str, Any]] = list(synthetic)

        if len(chosen) < amount:
            approved = await self._store.query_filtered(
                RECRUIT_KIND,
                filters={"recruiter_id": recruiter_id, "status": RecruitStatus.APPROVED.value},
                order_by=oldest_first,
            )
            genuine = [record for record in approved if record["candidate_id"] != MANUAL_ADJUSTMENT_CANDIDATE]
            chosen.extend(genuine[: amount - len(chosen)])

        if not chosen:
            return AdjustmentResult(False, "This recruiter has no approved recruits to remove.")

        patch = {
            "status": RecruitStatus.REJECTED.value,
            "rejected_by": adjusted_by,
            "rejected_at": format_timestamp(self._clock()),
            "reject_reason": MANUAL_ADJUSTMENT_REASON,
        }
        changed = await self._store.update_many(
            RECRUIT_KIND,
            [record["id"] for record in chosen],
            patch,
            expected={"status": RecruitStatus.APPROVED.value},
        )
        if changed == 0:
            return AdjustmentResult(False, "This recruiter has no approved recruits to remove.")

        logger.info(
            "[RECRUIT PIPELINE] %s removed %d ranking point(s) from recruiter %s (requested %d)",
            adjusted_by, changed, recruiter_id, amount,
        )
        message = f"Removed {changed} point(s) from the recruitment ranking."
        if changed < amount:
            message += f" Only {changed} of the requested {amount} were available."
        return AdjustmentResult(True, message, -changed)


def _describe_state(request: RecruitRequest) -> str:
    if request.status is RecruitStatus.APPROVED and request.kit_delivered:
        return "approved, kit delivered"
    return request.status.value


def _refusal_message(request: RecruitRequest, action: str) -> str:
    if action == "deliver kit":
        if request.status is not RecruitStatus.APPROVED:
            return "Only approved recruit requests can have their starter kit delivered."
        return "The starter kit has already been marked as delivered."
    if request.status is RecruitStatus.APPROVED:
        return "This recruit request has already been approved."
    if request.status is RecruitStatus.REJECTED:
        return "This recruit request has already been rejected."
    return "This recruit request cannot be changed right now."
