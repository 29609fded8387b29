"""
Bot Helper Functions
===================

Small helpers shared by the cogs: replying to interactions whatever state
they are in, resolving channels, and splitting component custom ids.
"""

from __future__ import annotations

from typing import Awaitable, Optional, Tuple

import discord

from recruitcord.datatypes.errors import RecruitcordError
from recruitcord.util.logger import get_logger

logger = get_logger("bot_helper")

GENERIC_ERROR_MESSAGE = "An error occurred while processing this interaction. Check the bot logs."

# Discord error codes that mean the interaction can no longer be answered
UNKNOWN_INTERACTION = 10062
ALREADY_ACKNOWLEDGED = 40060


def split_custom_id(custom_id: str) -> Tuple[str, Optional[str]]:
    """Split ``"approve_recruit:abc"`` into ``("approve_recruit", "abc")``."""
    prefix, sep, value = custom_id.partition(":")
    return prefix, (value or None) if sep else None


def interaction_custom_id(interaction: discord.Interaction) -> str:
    data = interaction.data or {}
    return str(data.get("custom_id") or "")


async def safe_reply(interaction: discord.Interaction, content: str, ephemeral: bool = True) -> None:
    """Answer an interaction, falling back to a followup if it was already answered.

    Expired or already-acknowledged interactions are logged and ignored.
    """
    try:
        if interaction.response.is_done():
            await interaction.followup.send(content, ephemeral=ephemeral)
        else:
            await interaction.response.send_message(content, ephemeral=ephemeral)
    except discord.HTTPException as exc:
        if getattr(exc, "code", None) in (UNKNOWN_INTERACTION, ALREADY_ACKNOWLEDGED):
            logger.warning("[BOT HELPER] Interaction could not be answered (code %s)", exc.code)
            return
        raise


async def run_guarded(interaction: discord.Interaction, handler: Awaitable[None], action: str) -> None:
    """Await ``handler`` and turn any failure into an ephemeral reply.

    Expected failures (:class:`RecruitcordError`) are answered with their
    own message; anything else is logged with its traceback.
    """
    try:
        await handler
    except RecruitcordError as exc:
        logger.info("[BOT HELPER] %s refused: %s", action, exc.user_message)
        await safe_reply(interaction, exc.user_message)
    except Exception:
        logger.exception("[BOT HELPER] Unexpected error during %s", action)
        await safe_reply(interaction, GENERIC_ERROR_MESSAGE)


async def fetch_text_channel(bot: discord.Client, channel_id: str | None) -> Optional[discord.abc.Messageable]:
    """Resolve a configured channel id to a text channel, or None."""
    if not channel_id:
        return None
    try:
        channel = bot.get_channel(int(channel_id))
        if channel is None:
            channel = await bot.fetch_channel(int(channel_id))
    except (ValueError, discord.HTTPException) as exc:
        logger.warning("[BOT HELPER] Could not resolve channel %s: %s", channel_id, exc)
        return None
    if not isinstance(channel, discord.abc.Messageable):
        logger.warning("[BOT HELPER] Channel %s is not a text channel", channel_id)
        return None
    return channel


async def fetch_message(
    bot: discord.Client, channel_id: str | None, message_id: str | None
) -> Optional[discord.Message]:
    """Fetch a previously posted message, or None when it is gone."""
    if not message_id:
        return None
    channel = await fetch_text_channel(bot, channel_id)
    if channel is None:
        return None
    try:
        return await channel.fetch_message(int(message_id))
    except (ValueError, discord.HTTPException) as exc:
        logger.warning("[BOT HELPER] Could not fetch message %s in %s: %s", message_id, channel_id, exc)
        return None


async def handle_error(ctx: discord.ApplicationContext, error: Exception):
    """
    Handle errors raised by slash commands.

    Args:
        ctx (discord.ApplicationContext): The context of the command.
        error (Exception): The error that occurred, possibly wrapped by py-cord.
    """
    error = getattr(error, "original", error)
    if isinstance(error, RecruitcordError):
        logger.info("[BOT HELPER] Command refused: %s", error.user_message)
        message = error.user_message
    elif isinstance(error, discord.Forbidden):
        message = "I do not have permissions to perform this action."
    else:
        logger.error("[BOT HELPER] An unexpected error occurred: %s", error, exc_info=error)
        message = GENERIC_ERROR_MESSAGE

    if ctx.response.is_done():
        await ctx.followup.send(message, ephemeral=True)
    else:
        await ctx.respond(message, ephemeral=True)
