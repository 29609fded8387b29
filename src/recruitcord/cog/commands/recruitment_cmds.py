"""
Recruitment cog: intake panel, approval posts and starter kit tracking.

Slash commands:
- /recruit_panel: Post the panel candidates use to request recruitment

Components routed through ``on_interaction`` by custom id:
- ``open_recruit_request``: recruiter picker, then the intake modal
- ``approve_recruit:<id>`` / ``reject_recruit:<id>``: manager decision modals
- ``kit_delivered:<id>``: one-time starter kit confirmation

Approval posts are edited in place through the channel and message ids
stored on each request.
"""

from dataclasses import replace

import discord
from discord.ext import commands

from recruitcord.bot.bot_helper import (
    fetch_message,
    fetch_text_channel,
    handle_error,
    interaction_custom_id,
    run_guarded,
    safe_reply,
    split_custom_id,
)
from recruitcord.bot.permissions import can_manage_recruits
from recruitcord.bot.services import BotServices
from recruitcord.datatypes.recruit_datatypes import BlacklistSnapshot, RecruitRequest
from recruitcord.ui.embeds import build_recruit_panel, build_recruit_request_embed
from recruitcord.ui.recruit_ui import (
    APPROVE_PREFIX,
    KIT_PREFIX,
    OPEN_REQUEST_ID,
    REJECT_PREFIX,
    ApproveRecruitModal,
    RecruiterPickerView,
    RecruitPanelView,
    RejectRecruitModal,
    build_request_view,
)
from recruitcord.util.logger import get_logger

logger = get_logger("recruitment_commands")

NO_PERMISSION = "You don't have permission to manage recruit requests."
NOT_FOUND = "This recruit request no longer exists."
APPROVALS_UNAVAILABLE = "Recruitment approvals are not set up yet. Please contact staff."


class RecruitmentCog(commands.Cog):
    """Recruit intake and the manager side of the recruit lifecycle."""

    def __init__(self, discord_bot_instance, services: BotServices):
        self.discord_bot_instance = discord_bot_instance
        self.services = services
        logger.info("[RECRUITMENT CMDS] Recruitment cog loaded")

    async def cog_command_error(self, ctx: discord.ApplicationContext, error: Exception):
        await handle_error(ctx, error)

    @commands.slash_command(name="recruit_panel", description="Post the recruitment request panel in this channel.")
    async def recruit_panel(self, ctx: discord.ApplicationContext):
        if not ctx.guild_id:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return
        if not can_manage_recruits(ctx.user, self.services.config):
            await ctx.respond(NO_PERMISSION, ephemeral=True)
            return

        await ctx.channel.send(embed=build_recruit_panel(), view=RecruitPanelView())
        await ctx.respond("Recruitment panel posted.", ephemeral=True)

    # ------------------------------------------------------------------
    # Component routing
    # ------------------------------------------------------------------

    @commands.Cog.listener("on_interaction")
    async def on_component(self, interaction: discord.Interaction):
        if interaction.type is not discord.InteractionType.component:
            return
        prefix, request_id = split_custom_id(interaction_custom_id(interaction))

        if prefix == OPEN_REQUEST_ID:
            await run_guarded(interaction, self.open_request(interaction), "recruit intake")
        elif prefix == APPROVE_PREFIX and request_id:
            await run_guarded(interaction, self.open_decision(interaction, request_id, approve=True), "recruit approval")
        elif prefix == REJECT_PREFIX and request_id:
            await run_guarded(interaction, self.open_decision(interaction, request_id, approve=False), "recruit rejection")
        elif prefix == KIT_PREFIX and request_id:
            await run_guarded(interaction, self.deliver_kit(interaction, request_id), "kit delivery")

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    async def open_request(self, interaction: discord.Interaction) -> None:
        await interaction.response.send_message(
            "Select the member who recruited you.",
            view=RecruiterPickerView(self.submit_intake),
            ephemeral=True,
        )

    async def submit_intake(
        self,
        interaction: discord.Interaction,
        recruiter_id: str,
        candidate_name: str,
        phone: str,
        passport: str,
    ) -> None:
        await run_guarded(
            interaction,
            self._create_request(interaction, recruiter_id, candidate_name, phone, passport),
            "recruit intake",
        )

    async def _create_request(
        self,
        interaction: discord.Interaction,
        recruiter_id: str,
        candidate_name: str,
        phone: str,
        passport: str,
    ) -> None:
        await interaction.response.defer(ephemeral=True)

        channel = await fetch_text_channel(
            self.discord_bot_instance, self.services.config.recruit_approval_channel_id
        )
        if channel is None:
            logger.warning("[RECRUITMENT CMDS] No usable approval channel configured; refusing intake")
            await safe_reply(interaction, APPROVALS_UNAVAILABLE)
            return

        active = await self.services.blacklist.get_active_by_passport(passport)
        snapshot = BlacklistSnapshot(True, active.reason) if active else BlacklistSnapshot.clear()

        draft = self.services.pipeline.draft(
            recruiter_id=recruiter_id,
            candidate_id=str(interaction.user.id),
            candidate_name=candidate_name,
            phone=phone,
            passport=passport,
            blacklist=snapshot,
        )
        post = await channel.send(embed=build_recruit_request_embed(draft), view=build_request_view(draft))

        try:
            await self.services.pipeline.save(
                replace(draft, approval_channel_id=str(post.channel.id), approval_message_id=str(post.id))
            )
        except Exception:
            # Buttons on the post would point at a request that does not exist
            await post.delete()
            raise

        await safe_reply(interaction, "Your recruitment request was sent for review.")

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def _load_for_manager(self, interaction: discord.Interaction, request_id: str) -> RecruitRequest | None:
        if not can_manage_recruits(interaction.user, self.services.config):
            await safe_reply(interaction, NO_PERMISSION)
            return None
        request = await self.services.pipeline.get_by_id(request_id)
        if request is None:
            await safe_reply(interaction, NOT_FOUND)
        return request

    async def open_decision(self, interaction: discord.Interaction, request_id: str, approve: bool) -> None:
        request = await self._load_for_manager(interaction, request_id)
        if request is None:
            return
        if request.status.is_terminal:
            await safe_reply(interaction, f"This recruit request is already {request.status}.")
            return

        if approve:
            await interaction.response.send_modal(ApproveRecruitModal(request_id, self.submit_approval))
        else:
            await interaction.response.send_modal(RejectRecruitModal(request_id, self.submit_rejection))

    async def submit_approval(
        self,
        interaction: discord.Interaction,
        request_id: str,
        first_race: str | None,
        first_farm: str | None,
        first_dismantle: str | None,
    ) -> None:
        await run_guarded(
            interaction,
            self._approve(interaction, request_id, first_race, first_farm, first_dismantle),
            "recruit approval",
        )

    async def _approve(
        self,
        interaction: discord.Interaction,
        request_id: str,
        first_race: str | None,
        first_farm: str | None,
        first_dismantle: str | None,
    ) -> None:
        await interaction.response.defer(ephemeral=True)
        request = await self.services.pipeline.approve(
            request_id, str(interaction.user.id), first_race, first_farm, first_dismantle
        )
        if request is None:
            await safe_reply(interaction, NOT_FOUND)
            return

        await self.refresh_post(request)
        await self.send_welcome(request)
        await safe_reply(interaction, f"{request.candidate_name} approved.")

    async def submit_rejection(self, interaction: discord.Interaction, request_id: str, reason: str) -> None:
        await run_guarded(interaction, self._reject(interaction, request_id, reason), "recruit rejection")

    async def _reject(self, interaction: discord.Interaction, request_id: str, reason: str) -> None:
        await interaction.response.defer(ephemeral=True)
        request = await self.services.pipeline.reject(request_id, str(interaction.user.id), reason)
        if request is None:
            await safe_reply(interaction, NOT_FOUND)
            return

        await self.refresh_post(request)
        await safe_reply(interaction, f"{request.candidate_name} rejected.")

    async def deliver_kit(self, interaction: discord.Interaction, request_id: str) -> None:
        if await self._load_for_manager(interaction, request_id) is None:
            return
        await interaction.response.defer(ephemeral=True)

        request = await self.services.pipeline.mark_kit_delivered(request_id, str(interaction.user.id))
        if request is None:
            await safe_reply(interaction, NOT_FOUND)
            return

        await self.refresh_post(request)
        await safe_reply(interaction, "Starter kit marked as delivered.")

    # ------------------------------------------------------------------
    # Post maintenance
    # ------------------------------------------------------------------

    async def refresh_post(self, request: RecruitRequest) -> None:
        """Re-render the approval post of a request for its current state."""
        post = await fetch_message(
            self.discord_bot_instance, request.approval_channel_id, request.approval_message_id
        )
        if post is None:
            logger.warning("[RECRUITMENT CMDS] Approval post of request %s is gone; not updating it", request.id)
            return
        await post.edit(embed=build_recruit_request_embed(request), view=build_request_view(request))

    async def send_welcome(self, request: RecruitRequest) -> None:
        channel = await fetch_text_channel(self.discord_bot_instance, self.services.config.welcome_channel_id)
        if channel is None:
            return
        try:
            await channel.send(f"Welcome <@{request.candidate_id}>! Recruited by <@{request.recruiter_id}>.")
        except discord.HTTPException as exc:
            logger.warning("[RECRUITMENT CMDS] Could not send welcome for request %s: %s", request.id, exc)


def setup(discord_bot_instance, services: BotServices):
    discord_bot_instance.add_cog(RecruitmentCog(discord_bot_instance, services))
