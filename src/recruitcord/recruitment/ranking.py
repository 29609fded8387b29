"""
Ranking aggregator: the recruiter leaderboard.

The leaderboard is recomputed from the full record set on every call: count
approved requests (manual adjustment records included) per recruiter, sort,
cut. Equal totals are ordered by recruiter id so the output is deterministic
whatever order the backend returns groups in.
"""

from __future__ import annotations

from typing import List

from recruitcord.datatypes.recruit_datatypes import RECRUIT_KIND, RankingEntry, RecruitStatus
from recruitcord.storage.record_store import RecordStore


class RankingAggregator:
    """Derive recruiter standings from the recruit records."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def top_recruiters(self, limit: int = 10) -> List[RankingEntry]:
        """Return at most ``limit`` recruiters, highest total first."""
        if limit <= 0:
            return []
        counts = await self._store.count_grouped(
            RECRUIT_KIND,
            group_by="recruiter_id",
            filters={"status": RecruitStatus.APPROVED.value},
        )
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [RankingEntry(recruiter_id=recruiter_id, total=total) for recruiter_id, total in ranked[:limit]]

    async def total_for(self, recruiter_id: str) -> int:
        """Approved-recruit total of a single recruiter."""
        counts = await self._store.count_grouped(
            RECRUIT_KIND,
            group_by="recruiter_id",
            filters={"status": RecruitStatus.APPROVED.value, "recruiter_id": str(recruiter_id)},
        )
        return counts.get(str(recruiter_id), 0)
