"""
Ranking cog: the recruiter leaderboard and manual point adjustments.

Slash commands:
- /recruit_ranking: Show the top recruiters (anyone)
- /recruit_points_add, /recruit_points_remove: Adjust a recruiter's total
  (requires one of the ``blacklist_allowed_roles``)
"""

import discord
from discord.ext import commands

from recruitcord.bot.bot_helper import handle_error
from recruitcord.bot.permissions import can_manage_blacklist
from recruitcord.bot.services import BotServices
from recruitcord.ui.embeds import build_ranking_embed
from recruitcord.util.logger import get_logger

logger = get_logger("ranking_commands")

MAX_ADJUSTMENT = 100


class RankingCog(commands.Cog):
    """Leaderboard display and manual adjustments."""

    def __init__(self, discord_bot_instance, services: BotServices):
        self.discord_bot_instance = discord_bot_instance
        self.services = services
        logger.info("[RANKING CMDS] Ranking cog loaded")

    async def cog_command_error(self, ctx: discord.ApplicationContext, error: Exception):
        await handle_error(ctx, error)

    @commands.slash_command(name="recruit_ranking", description="Show the recruitment ranking.")
    async def recruit_ranking(self, ctx: discord.ApplicationContext):
        entries = await self.services.ranking.top_recruiters(self.services.config.ranking_limit)
        await ctx.respond(embed=build_ranking_embed(entries))

    @commands.slash_command(name="recruit_points_add", description="Add points to a recruiter's ranking.")
    async def recruit_points_add(
        self,
        ctx: discord.ApplicationContext,
        recruiter: discord.Option(discord.Member, "Recruiter to credit"),
        amount: discord.Option(int, "Points to add", min_value=1, max_value=MAX_ADJUSTMENT),
    ):
        await self._adjust(ctx, recruiter, amount)

    @commands.slash_command(name="recruit_points_remove", description="Remove points from a recruiter's ranking.")
    async def recruit_points_remove(
        self,
        ctx: discord.ApplicationContext,
        recruiter: discord.Option(discord.Member, "Recruiter to debit"),
        amount: discord.Option(int, "Points to remove", min_value=1, max_value=MAX_ADJUSTMENT),
    ):
        await self._adjust(ctx, recruiter, -amount)

    async def _adjust(self, ctx: discord.ApplicationContext, recruiter: discord.Member, delta: int) -> None:
        if not can_manage_blacklist(ctx.user, self.services.config):
            await ctx.respond("You don't have permission to adjust the ranking.", ephemeral=True)
            return
        if delta == 0 or abs(delta) > MAX_ADJUSTMENT:
            await ctx.respond(f"The amount must be between 1 and {MAX_ADJUSTMENT}.", ephemeral=True)
            return

        await ctx.defer(ephemeral=True)
        result = await self.services.pipeline.adjust_ranking_points(str(recruiter.id), delta, str(ctx.user.id))
        if not result.success:
            await ctx.send_followup(result.message, ephemeral=True)
            return

        total = await self.services.ranking.total_for(str(recruiter.id))
        await ctx.send_followup(f"{result.message} {recruiter.mention} now has {total} point(s).", ephemeral=True)


def setup(discord_bot_instance, services: BotServices):
    discord_bot_instance.add_cog(RankingCog(discord_bot_instance, services))
