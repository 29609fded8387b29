"""
Views and modals for blacklist notices.

The remove button carries the entry id in its custom id
(``remove_blacklist:<id>``) and has no callback of its own: clicks are
routed by the blacklist cog's ``on_interaction`` listener, so notices posted
before a restart keep working.
"""

from __future__ import annotations

from typing import Awaitable, Callable

import discord

REMOVE_BLACKLIST_PREFIX = "remove_blacklist"

RemovalHandler = Callable[[discord.Interaction, str, str], Awaitable[None]]


def remove_blacklist_custom_id(entry_id: str) -> str:
    return f"{REMOVE_BLACKLIST_PREFIX}:{entry_id}"


class BlacklistNoticeView(discord.ui.View):
    """Persistent view holding the "Remove blacklist" button of one entry."""

    def __init__(self, entry_id: str):
        super().__init__(timeout=None)
        self.entry_id = entry_id
        self.add_item(
            discord.ui.Button(
                label="Remove blacklist",
                emoji="🗑️",
                style=discord.ButtonStyle.danger,
                custom_id=remove_blacklist_custom_id(entry_id),
            )
        )


class RemoveBlacklistModal(discord.ui.Modal):
    """Asks for the removal reason and hands it to ``on_submit``."""

    def __init__(self, entry_id: str, on_submit: RemovalHandler):
        super().__init__(title="Remove blacklist entry")
        self.entry_id = entry_id
        self._on_submit = on_submit
        self.reason = discord.ui.InputText(
            label="Removal reason",
            style=discord.InputTextStyle.long,
            max_length=500,
            required=True,
        )
        self.add_item(self.reason)

    async def callback(self, interaction: discord.Interaction):
        await self._on_submit(interaction, self.entry_id, self.reason.value or "")
