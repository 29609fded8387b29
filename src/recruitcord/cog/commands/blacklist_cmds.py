"""
Blacklist cog: register, look up and remove blacklist entries.

Slash commands:
- /blacklist_add: Post a public notice and record the entry
- /blacklist_check: Private lookup of the active entry for a passport

The "Remove blacklist" button on each notice is routed through
``on_interaction`` by its ``remove_blacklist:<id>`` custom id.
All commands require one of the configured ``blacklist_allowed_roles``.
"""

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
from recruitcord.bot.permissions import can_manage_blacklist
from recruitcord.bot.services import BotServices
from recruitcord.datatypes.blacklist_datatypes import OriginRefs
from recruitcord.ui.blacklist_ui import REMOVE_BLACKLIST_PREFIX, BlacklistNoticeView, RemoveBlacklistModal
from recruitcord.ui.embeds import (
    build_blacklist_lookup,
    build_blacklist_notice,
    build_blacklist_removed_notice,
)
from recruitcord.util.logger import get_logger

logger = get_logger("blacklist_commands")

NO_PERMISSION = "You don't have permission to manage the blacklist."


class BlacklistCog(commands.Cog):
    """Blacklist registration, lookup and removal."""

    def __init__(self, discord_bot_instance, services: BotServices):
        self.discord_bot_instance = discord_bot_instance
        self.services = services
        logger.info("[BLACKLIST CMDS] Blacklist cog loaded")

    async def _check_permissions(self, ctx: discord.ApplicationContext) -> bool:
        if not ctx.guild_id:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return False
        if not can_manage_blacklist(ctx.user, self.services.config):
            await ctx.respond(NO_PERMISSION, ephemeral=True)
            return False
        return True

    async def cog_command_error(self, ctx: discord.ApplicationContext, error: Exception):
        await handle_error(ctx, error)

    @commands.slash_command(name="blacklist_add", description="Add someone to the blacklist.")
    async def blacklist_add(
        self,
        ctx: discord.ApplicationContext,
        passport: discord.Option(str, "In-game passport id"),
        name: discord.Option(str, "In-game name"),
        reason: discord.Option(str, "Why this person is blacklisted"),
        date: discord.Option(str, "Date shown on the notice (defaults to now)", required=False, default=None),
    ):
        if not await self._check_permissions(ctx):
            return
        await ctx.defer(ephemeral=True)

        channel = await fetch_text_channel(self.discord_bot_instance, self.services.config.blacklist_channel_id)
        if channel is None:
            channel = ctx.channel

        notice = build_blacklist_notice(passport.strip(), name.strip(), reason.strip(), str(ctx.user.id), date)
        message = await channel.send(embed=notice)

        try:
            entry = await self.services.blacklist.add_entry(
                passport_id=passport,
                display_name=name,
                reason=reason,
                author_id=str(ctx.user.id),
                origin=OriginRefs(str(ctx.guild_id), str(message.channel.id), str(message.id)),
            )
        except Exception:
            # The notice must not stay up without a backing entry
            await message.delete()
            raise

        await message.edit(view=BlacklistNoticeView(entry.id))
        await ctx.send_followup(f"Passport `{entry.passport_id}` added to the blacklist.", ephemeral=True)

    @commands.slash_command(name="blacklist_check", description="Check whether a passport is blacklisted.")
    async def blacklist_check(
        self,
        ctx: discord.ApplicationContext,
        passport: discord.Option(str, "In-game passport id"),
    ):
        if not await self._check_permissions(ctx):
            return

        entry = await self.services.blacklist.get_active_by_passport(passport)
        if entry is None:
            await ctx.respond(f"Passport `{passport.strip()}` is not blacklisted.", ephemeral=True)
            return
        await ctx.respond(embed=build_blacklist_lookup(entry), ephemeral=True)

    @commands.Cog.listener("on_interaction")
    async def on_component(self, interaction: discord.Interaction):
        if interaction.type is not discord.InteractionType.component:
            return
        prefix, entry_id = split_custom_id(interaction_custom_id(interaction))
        if prefix != REMOVE_BLACKLIST_PREFIX or not entry_id:
            return
        await run_guarded(interaction, self.open_removal_form(interaction, entry_id), "blacklist removal")

    async def open_removal_form(self, interaction: discord.Interaction, entry_id: str) -> None:
        """Pre-check the entry, then ask for the removal reason."""
        if not can_manage_blacklist(interaction.user, self.services.config):
            await safe_reply(interaction, NO_PERMISSION)
            return

        entry = await self.services.blacklist.get_by_id(entry_id)
        if entry is None:
            await safe_reply(interaction, "This blacklist entry no longer exists.")
            return
        if entry.removed:
            await safe_reply(interaction, "This blacklist entry has already been removed.")
            return

        await interaction.response.send_modal(RemoveBlacklistModal(entry_id, self.submit_removal))

    async def submit_removal(self, interaction: discord.Interaction, entry_id: str, reason: str) -> None:
        await run_guarded(interaction, self._remove_entry(interaction, entry_id, reason), "blacklist removal")

    async def _remove_entry(self, interaction: discord.Interaction, entry_id: str, reason: str) -> None:
        await interaction.response.defer(ephemeral=True)

        entry = await self.services.blacklist.mark_removed(entry_id, str(interaction.user.id), reason)
        if entry is None:
            await safe_reply(interaction, "This blacklist entry no longer exists.")
            return

        notice = await fetch_message(self.discord_bot_instance, entry.origin_channel_id, entry.origin_message_id)
        if notice is not None:
            await notice.edit(embed=build_blacklist_removed_notice(entry), view=None)
        await safe_reply(interaction, f"Passport `{entry.passport_id}` removed from the blacklist.")


def setup(discord_bot_instance, services: BotServices):
    discord_bot_instance.add_cog(BlacklistCog(discord_bot_instance, services))
