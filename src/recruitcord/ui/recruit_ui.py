"""
Interactive UI components for the recruitment flow.

Flow: panel button → ephemeral recruiter picker (user select) → intake
modal → approval post with approve/reject buttons → kit button once
approved. Buttons on long-lived posts use fixed or id-carrying custom ids
and are routed by the recruitment cog's ``on_interaction`` listener; the
short-lived picker and the modals use ordinary callbacks.
"""

from __future__ import annotations

from typing import Awaitable, Callable

import discord

from recruitcord.datatypes.recruit_datatypes import RecruitRequest, RecruitStatus
from recruitcord.util.logger import get_logger

logger = get_logger("recruit_ui")

OPEN_REQUEST_ID = "open_recruit_request"
APPROVE_PREFIX = "approve_recruit"
REJECT_PREFIX = "reject_recruit"
KIT_PREFIX = "kit_delivered"

IntakeHandler = Callable[[discord.Interaction, str, str, str, str], Awaitable[None]]
ApproveHandler = Callable[[discord.Interaction, str, str | None, str | None, str | None], Awaitable[None]]
RejectHandler = Callable[[discord.Interaction, str, str], Awaitable[None]]


class RecruitPanelView(discord.ui.View):
    """Persistent panel with the button that starts a recruit request."""

    def __init__(self):
        super().__init__(timeout=None)
        self.add_item(
            discord.ui.Button(
                label="Request recruitment",
                emoji="📝",
                style=discord.ButtonStyle.primary,
                custom_id=OPEN_REQUEST_ID,
            )
        )


def build_request_view(request: RecruitRequest) -> discord.ui.View | None:
    """Buttons matching the request's state, or None once nothing is left to do."""
    view = discord.ui.View(timeout=None)
    if request.status is RecruitStatus.PENDING:
        view.add_item(
            discord.ui.Button(
                label="Approve",
                emoji="✅",
                style=discord.ButtonStyle.success,
                custom_id=f"{APPROVE_PREFIX}:{request.id}",
            )
        )
        view.add_item(
            discord.ui.Button(
                label="Reject",
                emoji="❌",
                style=discord.ButtonStyle.danger,
                custom_id=f"{REJECT_PREFIX}:{request.id}",
            )
        )
        return view
    if request.status is RecruitStatus.APPROVED and not request.kit_delivered:
        view.add_item(
            discord.ui.Button(
                label="Starter kit delivered",
                emoji="🎁",
                style=discord.ButtonStyle.secondary,
                custom_id=f"{KIT_PREFIX}:{request.id}",
            )
        )
        return view
    return None


class RecruiterPickerView(discord.ui.View):
    """Ephemeral user select; the chosen member is the sponsoring recruiter."""

    def __init__(self, on_submit: IntakeHandler):
        super().__init__(timeout=300)
        self._on_submit = on_submit
        self.picker = discord.ui.Select(
            select_type=discord.ComponentType.user_select,
            placeholder="Who recruited you?",
            min_values=1,
            max_values=1,
        )
        self.picker.callback = self.on_pick
        self.add_item(self.picker)

    async def on_pick(self, interaction: discord.Interaction):
        if not self.picker.values:
            await interaction.response.send_message("Pick the member who recruited you.", ephemeral=True)
            return
        recruiter = self.picker.values[0]
        if interaction.user is not None and recruiter.id == interaction.user.id:
            await interaction.response.send_message("You cannot pick yourself as your recruiter.", ephemeral=True)
            return
        if getattr(recruiter, "bot", False):
            await interaction.response.send_message("Bots cannot recruit members.", ephemeral=True)
            return
        await interaction.response.send_modal(RecruitIntakeModal(str(recruiter.id), self._on_submit))


class RecruitIntakeModal(discord.ui.Modal):
    """Candidate details: in-game name, phone and passport."""

    def __init__(self, recruiter_id: str, on_submit: IntakeHandler):
        super().__init__(title="Recruitment request")
        self.recruiter_id = recruiter_id
        self._on_submit = on_submit
        self.candidate_name = discord.ui.InputText(label="In-game name", max_length=64)
        self.phone = discord.ui.InputText(label="Phone", max_length=32)
        self.passport = discord.ui.InputText(label="Passport", max_length=32)
        for item in (self.candidate_name, self.phone, self.passport):
            self.add_item(item)

    async def callback(self, interaction: discord.Interaction):
        await self._on_submit(
            interaction,
            self.recruiter_id,
            self.candidate_name.value or "",
            self.phone.value or "",
            self.passport.value or "",
        )


class ApproveRecruitModal(discord.ui.Modal):
    """Onboarding answers captured when a manager approves a request."""

    def __init__(self, request_id: str, on_submit: ApproveHandler):
        super().__init__(title="Approve recruit")
        self.request_id = request_id
        self._on_submit = on_submit
        self.first_race = discord.ui.InputText(label="First race", required=False, max_length=200)
        self.first_farm = discord.ui.InputText(label="First farm", required=False, max_length=200)
        self.first_dismantle = discord.ui.InputText(label="First dismantle", required=False, max_length=200)
        for item in (self.first_race, self.first_farm, self.first_dismantle):
            self.add_item(item)

    async def callback(self, interaction: discord.Interaction):
        await self._on_submit(
            interaction,
            self.request_id,
            self.first_race.value or None,
            self.first_farm.value or None,
            self.first_dismantle.value or None,
        )


class RejectRecruitModal(discord.ui.Modal):
    def __init__(self, request_id: str, on_submit: RejectHandler):
        super().__init__(title="Reject recruit")
        self.request_id = request_id
        self._on_submit = on_submit
        self.reason = discord.ui.InputText(
            label="Reason",
            style=discord.InputTextStyle.long,
            max_length=500,
        )
        self.add_item(self.reason)

    async def callback(self, interaction: discord.Interaction):
        await self._on_submit(interaction, self.request_id, self.reason.value or "")
