from datetime import datetime, timezone

import discord
import pytest

from recruitcord.datatypes.blacklist_datatypes import BlacklistEntry
from recruitcord.datatypes.recruit_datatypes import RankingEntry, RecruitRequest, RecruitStatus
from recruitcord.ui import embeds
from recruitcord.ui.recruit_ui import APPROVE_PREFIX, KIT_PREFIX, REJECT_PREFIX, build_request_view

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_request(**overrides):
    values = dict(
        id="req1",
        recruiter_id="10",
        candidate_id="20",
        candidate_name="Jane",
        phone="555",
        passport="777",
        status=RecruitStatus.PENDING,
        created_at=NOW,
    )
    values.update(overrides)
    return RecruitRequest(**values)


def field_names(embed: discord.Embed):
    return [field.name for field in embed.fields]


def test_request_embed_shows_blacklist_warning():
    embed = embeds.build_recruit_request_embed(make_request(blacklist_flag=True, blacklist_reason="Scam"))
    assert "⚠️ Blacklisted" in field_names(embed)
    assert embed.footer.text == "Request req1"


def test_approved_request_embed_lists_onboarding():
    request = make_request(status=RecruitStatus.APPROVED, approved_by="30", first_race="Race A")
    names = field_names(embed := embeds.build_recruit_request_embed(request))
    assert "First race" in names
    assert "First farm" not in names
    assert embed.color == discord.Color.green()


@pytest.mark.asyncio
async def test_request_view_follows_state():
    pending = build_request_view(make_request())
    assert [item.custom_id for item in pending.children] == [f"{APPROVE_PREFIX}:req1", f"{REJECT_PREFIX}:req1"]

    approved = build_request_view(make_request(status=RecruitStatus.APPROVED))
    assert [item.custom_id for item in approved.children] == [f"{KIT_PREFIX}:req1"]

    assert build_request_view(make_request(status=RecruitStatus.APPROVED, kit_delivered=True)) is None
    assert build_request_view(make_request(status=RecruitStatus.REJECTED)) is None


def test_ranking_embed():
    assert embeds.build_ranking_embed([]).description == "No approved recruits yet."
    embed = embeds.build_ranking_embed([RankingEntry("1", 3), RankingEntry("2", 1)])
    assert embed.description.splitlines() == ["🥇 <@1>: **3**", "🥈 <@2>: **1**"]


def test_blacklist_removed_notice():
    entry = BlacklistEntry(
        id="e1", passport_id="777", display_name="Jane", reason="Scam", author_id="1",
        origin_guild_id="1", origin_channel_id="2", origin_message_id="3", created_at=NOW,
        removed=True, removed_by="9", removed_at=NOW, remove_reason="Appeal",
    )
    embed = embeds.build_blacklist_removed_notice(entry)
    assert "Removal reason" in field_names(embed)
    assert embed.fields[-1].value == "Appeal"
