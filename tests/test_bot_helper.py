from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from recruitcord.bot import bot_helper
from recruitcord.datatypes.errors import InvalidTransitionError


def make_interaction(done=False, custom_id=None):
    return SimpleNamespace(
        data={"custom_id": custom_id} if custom_id is not None else None,
        response=SimpleNamespace(is_done=lambda: done, send_message=AsyncMock()),
        followup=SimpleNamespace(send=AsyncMock()),
    )


def test_split_custom_id():
    assert bot_helper.split_custom_id("approve_recruit:abc") == ("approve_recruit", "abc")
    assert bot_helper.split_custom_id("open_recruit_request") == ("open_recruit_request", None)
    assert bot_helper.split_custom_id("kit_delivered:") == ("kit_delivered", None)


def test_interaction_custom_id():
    assert bot_helper.interaction_custom_id(make_interaction(custom_id="x:1")) == "x:1"
    assert bot_helper.interaction_custom_id(make_interaction()) == ""


@pytest.mark.asyncio
async def test_safe_reply_uses_response_first():
    interaction = make_interaction(done=False)
    await bot_helper.safe_reply(interaction, "hi")
    interaction.response.send_message.assert_awaited_once_with("hi", ephemeral=True)
    interaction.followup.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_safe_reply_falls_back_to_followup():
    interaction = make_interaction(done=True)
    await bot_helper.safe_reply(interaction, "hi", ephemeral=False)
    interaction.followup.send.assert_awaited_once_with("hi", ephemeral=False)


@pytest.mark.asyncio
async def test_run_guarded_reports_expected_errors():
    interaction = make_interaction()

    async def handler():
        raise InvalidTransitionError("r1", "approved", "This recruit request has already been approved.")

    await bot_helper.run_guarded(interaction, handler(), "test")
    interaction.response.send_message.assert_awaited_once_with(
        "This recruit request has already been approved.", ephemeral=True
    )


@pytest.mark.asyncio
async def test_run_guarded_hides_unexpected_errors():
    interaction = make_interaction()

    async def handler():
        raise RuntimeError("boom")

    await bot_helper.run_guarded(interaction, handler(), "test")
    interaction.response.send_message.assert_awaited_once_with(bot_helper.GENERIC_ERROR_MESSAGE, ephemeral=True)


@pytest.mark.asyncio
async def test_handle_error_unwraps_command_errors():
    ctx = SimpleNamespace(
        response=SimpleNamespace(is_done=lambda: True),
        followup=SimpleNamespace(send=AsyncMock()),
        respond=AsyncMock(),
    )
    wrapped = SimpleNamespace(original=InvalidTransitionError("e1", "removed", "Already removed."))

    await bot_helper.handle_error(ctx, wrapped)

    ctx.followup.send.assert_awaited_once_with("Already removed.", ephemeral=True)


@pytest.mark.asyncio
async def test_fetch_text_channel_without_id():
    bot = SimpleNamespace(get_channel=lambda _id: None)
    assert await bot_helper.fetch_text_channel(bot, None) is None


@pytest.mark.asyncio
async def test_fetch_text_channel_rejects_non_numeric_id():
    bot = SimpleNamespace(get_channel=lambda _id: None, fetch_channel=AsyncMock())
    assert await bot_helper.fetch_text_channel(bot, "general") is None
    bot.fetch_channel.assert_not_awaited()
