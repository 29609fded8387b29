"""
Embed builders for blacklist notices, recruit approval posts and the ranking.

Formatting stays plain; every builder takes core datatypes and returns a
ready-to-send :class:`discord.Embed`.
"""

from __future__ import annotations

from typing import Sequence

import discord

from recruitcord.datatypes.blacklist_datatypes import BlacklistEntry
from recruitcord.datatypes.recruit_datatypes import RankingEntry, RecruitRequest, RecruitStatus
from recruitcord.util.time_utils import format_display_date, utcnow

STATUS_COLORS = {
    RecruitStatus.PENDING: discord.Color.blue(),
    RecruitStatus.APPROVED: discord.Color.green(),
    RecruitStatus.REJECTED: discord.Color.red(),
}

STATUS_LABELS = {
    RecruitStatus.PENDING: "⏳ Pending review",
    RecruitStatus.APPROVED: "✅ Approved",
    RecruitStatus.REJECTED: "❌ Rejected",
}

RANK_MEDALS = ("🥇", "🥈", "🥉")


def _mention(user_id: str | None) -> str:
    return f"<@{user_id}>" if user_id else "unknown"


# ----------------------------------------------------------------------
# Blacklist
# ----------------------------------------------------------------------

def build_blacklist_notice(
    passport_id: str,
    display_name: str,
    reason: str,
    author_id: str,
    date_text: str | None = None,
) -> discord.Embed:
    """Public notice posted when someone is blacklisted."""
    embed = discord.Embed(title="🚫 Blacklist", color=discord.Color.dark_red(), timestamp=utcnow())
    embed.add_field(name="Name", value=display_name, inline=True)
    embed.add_field(name="Passport", value=passport_id, inline=True)
    embed.add_field(name="Date", value=date_text or format_display_date(utcnow()), inline=True)
    embed.add_field(name="Reason", value=reason, inline=False)
    embed.add_field(name="Registered by", value=_mention(author_id), inline=False)
    return embed


def build_blacklist_removed_notice(entry: BlacklistEntry) -> discord.Embed:
    """The same notice once the entry has been removed."""
    embed = discord.Embed(title="✅ Blacklist removed", color=discord.Color.dark_grey(), timestamp=utcnow())
    embed.add_field(name="Name", value=entry.display_name, inline=True)
    embed.add_field(name="Passport", value=entry.passport_id, inline=True)
    embed.add_field(name="Original reason", value=entry.reason, inline=False)
    embed.add_field(name="Removed by", value=_mention(entry.removed_by), inline=True)
    embed.add_field(name="Removal reason", value=entry.remove_reason or "-", inline=False)
    return embed


def build_blacklist_lookup(entry: BlacklistEntry) -> discord.Embed:
    """Private answer to a passport lookup that found an active entry."""
    embed = discord.Embed(title="🚫 Passport is blacklisted", color=discord.Color.dark_red())
    embed.add_field(name="Name", value=entry.display_name, inline=True)
    embed.add_field(name="Passport", value=entry.passport_id, inline=True)
    embed.add_field(name="Since", value=format_display_date(entry.created_at), inline=True)
    embed.add_field(name="Reason", value=entry.reason, inline=False)
    embed.add_field(name="Registered by", value=_mention(entry.author_id), inline=False)
    return embed


# ----------------------------------------------------------------------
# Recruitment
# ----------------------------------------------------------------------

def build_recruit_panel() -> discord.Embed:
    return discord.Embed(
        title="📋 Recruitment",
        description="Press the button below, pick the member who recruited you and fill in your details.",
        color=discord.Color.blurple(),
    )


def build_recruit_request_embed(request: RecruitRequest) -> discord.Embed:
    """Approval post for a recruit request, rendered for its current state."""
    embed = discord.Embed(
        title=f"Recruit request: {request.candidate_name}",
        color=STATUS_COLORS[request.status],
        timestamp=request.created_at,
    )
    embed.add_field(name="Candidate", value=_mention(request.candidate_id), inline=True)
    embed.add_field(name="Recruiter", value=_mention(request.recruiter_id), inline=True)
    embed.add_field(name="Status", value=STATUS_LABELS[request.status], inline=True)
    embed.add_field(name="Phone", value=request.phone or "-", inline=True)
    embed.add_field(name="Passport", value=request.passport or "-", inline=True)

    if request.blacklist_flag:
        embed.add_field(
            name="⚠️ Blacklisted",
            value=request.blacklist_reason or "No reason recorded",
            inline=False,
        )

    if request.status is RecruitStatus.APPROVED:
        embed.add_field(name="Approved by", value=_mention(request.approved_by), inline=True)
        onboarding = [
            ("First race", request.first_race),
            ("First farm", request.first_farm),
            ("First dismantle", request.first_dismantle),
        ]
        for label, value in onboarding:
            if value:
                embed.add_field(name=label, value=value, inline=True)
        kit = f"Delivered by {_mention(request.kit_delivered_by)}" if request.kit_delivered else "Not delivered"
        embed.add_field(name="Starter kit", value=kit, inline=False)
    elif request.status is RecruitStatus.REJECTED:
        embed.add_field(name="Rejected by", value=_mention(request.rejected_by), inline=True)
        embed.add_field(name="Reason", value=request.reject_reason or "-", inline=False)

    embed.set_footer(text=f"Request {request.id}")
    return embed


def build_ranking_embed(entries: Sequence[RankingEntry]) -> discord.Embed:
    embed = discord.Embed(title="🏆 Recruitment ranking", color=discord.Color.gold(), timestamp=utcnow())
    if not entries:
        embed.description = "No approved recruits yet."
        return embed

    lines = []
    for position, entry in enumerate(entries, start=1):
        marker = RANK_MEDALS[position - 1] if position <= len(RANK_MEDALS) else f"{position}."
        lines.append(f"{marker} {_mention(entry.recruiter_id)}: **{entry.total}**")
    embed.description = "\n".join(lines)
    return embed
