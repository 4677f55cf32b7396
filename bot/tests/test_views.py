from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import discord
import pytest

from conftest import (
    build_service,
    make_bot,
    make_client,
    make_guild,
    make_interaction,
    make_member,
    make_message,
    make_text_channel,
)
from storage.models import TICKET_STATUS_CLAIMED
from utils.i18n import I18N
from views.ticket_controls import RenameTicketModal, TicketControlsView
from views.ticket_panel import OpenTicketView

GUILD_ID = 1
REQUESTER_ID = 100
STAFF_ID = 200
TICKET_CHANNEL_ID = 555


async def press(view: discord.ui.View, item: Any, interaction: Any) -> None:
    # discord.py routes callback exceptions to View.on_error.
    try:
        await item.callback(interaction)
    except Exception as exc:
        await view.on_error(interaction, exc, item)


def _setup(i18n: I18N):
    channel = make_text_channel(TICKET_CHANNEL_ID, [make_message("Requester", "help please")])
    guild = make_guild(GUILD_ID, channel)
    channel.guild = guild
    requester = make_member(REQUESTER_ID, "Requester")
    client = make_client(channels={TICKET_CHANNEL_ID: channel}, users={REQUESTER_ID: requester})
    service, storage = build_service(i18n, client)
    return make_bot(service, storage, i18n), storage, guild, channel, requester


def _error_text(interaction: Any) -> str:
    embed = interaction.response.send_message.await_args.kwargs["embed"]
    assert interaction.response.send_message.await_args.kwargs["ephemeral"] is True
    return embed.description


@pytest.mark.asyncio
async def test_open_button_posts_controls_and_acknowledges_privately(i18n: I18N) -> None:
    bot, storage, guild, channel, requester = _setup(i18n)
    await storage.configs.set_support_role(GUILD_ID, 777)
    view = OpenTicketView(bot)
    panel_channel = make_text_channel(10)
    interaction = make_interaction(guild, panel_channel, requester)

    await press(view, view.children[0], interaction)

    interaction.response.defer.assert_awaited_once_with(ephemeral=True, thinking=True)
    panel = channel.send.await_args.kwargs
    assert panel["content"] == f"<@{REQUESTER_ID}> <@&777>"
    assert isinstance(panel["view"], TicketControlsView)
    assert panel["embed"].title == "Ticket Opened"
    interaction.followup.send.assert_awaited_once_with(f"Ticket created: <#{TICKET_CHANNEL_ID}>", ephemeral=True)
    assert await storage.tickets.get_by_channel(TICKET_CHANNEL_ID) is not None
    panel_channel.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_open_button_outside_guild_is_rejected(i18n: I18N) -> None:
    bot, storage, _, _, requester = _setup(i18n)
    view = OpenTicketView(bot)
    interaction = make_interaction(None, None, requester)

    await press(view, view.children[0], interaction)

    assert _error_text(interaction) == "Tickets can only be opened inside a server."
    assert len(storage.tickets) == 0


@pytest.mark.asyncio
async def test_claim_button_announces_publicly(i18n: I18N) -> None:
    bot, storage, guild, channel, requester = _setup(i18n)
    await bot.ticket_service.open_ticket(guild, requester)
    view = TicketControlsView(bot)
    interaction = make_interaction(guild, channel, make_member(STAFF_ID, "alice"))

    await press(view, view.claim_button, interaction)

    interaction.response.send_message.assert_awaited_once_with(f"Ticket claimed by <@{STAFF_ID}>")
    ticket = await storage.tickets.get_by_channel(TICKET_CHANNEL_ID)
    assert ticket.status == TICKET_STATUS_CLAIMED
    assert ticket.claimed_by == STAFF_ID


@pytest.mark.asyncio
async def test_claim_button_on_foreign_channel_answers_privately(i18n: I18N) -> None:
    bot, storage, guild, _, _ = _setup(i18n)
    view = TicketControlsView(bot)
    interaction = make_interaction(guild, make_text_channel(999), make_member(STAFF_ID, "alice"))

    await press(view, view.claim_button, interaction)

    assert _error_text(interaction) == "No ticket is associated with this channel."
    assert len(storage.tickets) == 0


@pytest.mark.asyncio
async def test_close_button_acknowledges_publicly(i18n: I18N) -> None:
    bot, storage, guild, channel, requester = _setup(i18n)
    await bot.ticket_service.open_ticket(guild, requester)
    view = TicketControlsView(bot)
    interaction = make_interaction(guild, channel, make_member(STAFF_ID, "alice"))

    await press(view, view.close_button, interaction)
    await asyncio.gather(*list(bot.ticket_service._pending_deletions))

    interaction.response.defer.assert_awaited_once_with(thinking=True)
    interaction.followup.send.assert_awaited_once_with("Closing this channel in 0s...")
    assert len(storage.logs) == 1
    channel.delete.assert_awaited_once()


@pytest.mark.asyncio
async def test_close_button_pressed_twice_archives_once(i18n: I18N) -> None:
    bot, storage, guild, channel, requester = _setup(i18n)
    await bot.ticket_service.open_ticket(guild, requester)
    view = TicketControlsView(bot)
    first = make_interaction(guild, channel, make_member(STAFF_ID, "alice"))
    second = make_interaction(guild, channel, make_member(STAFF_ID, "alice"))

    await press(view, view.close_button, first)
    await press(view, view.close_button, second)
    await asyncio.gather(*list(bot.ticket_service._pending_deletions))

    second.followup.send.assert_awaited_once_with("This ticket is already closing.", ephemeral=True)
    assert len(storage.logs) == 1
    channel.delete.assert_awaited_once()


@pytest.mark.asyncio
async def test_rename_button_opens_modal_and_submit_renames(i18n: I18N) -> None:
    bot, _, guild, channel, _ = _setup(i18n)
    view = TicketControlsView(bot)
    interaction = make_interaction(guild, channel, make_member(STAFF_ID, "alice"))

    await press(view, view.rename_button, interaction)

    modal = interaction.response.send_modal.await_args.args[0]
    assert isinstance(modal, RenameTicketModal)

    submit = make_interaction(guild, channel, make_member(STAFF_ID, "alice"))
    modal.new_name = SimpleNamespace(value="Billing issue")
    await modal.on_submit(submit)

    channel.edit.assert_awaited_once_with(name="ticket-billing-issue")
    submit.response.send_message.assert_awaited_once_with("Channel renamed.", ephemeral=True)


@pytest.mark.asyncio
async def test_controls_outside_ticket_channel_are_rejected(i18n: I18N) -> None:
    bot, _, guild, _, _ = _setup(i18n)
    view = TicketControlsView(bot)
    interaction = make_interaction(guild, None, make_member(STAFF_ID, "alice"))

    await press(view, view.rename_button, interaction)

    assert _error_text(interaction) == "This action only works inside a ticket channel."
    interaction.response.send_modal.assert_not_awaited()


@pytest.mark.asyncio
async def test_unexpected_errors_become_private_replies(i18n: I18N, caplog: pytest.LogCaptureFixture) -> None:
    bot, _, guild, channel, _ = _setup(i18n)
    bot.ticket_service.claim_ticket = _explode
    view = TicketControlsView(bot)
    interaction = make_interaction(guild, channel, make_member(STAFF_ID, "alice"))

    await press(view, view.claim_button, interaction)

    assert _error_text(interaction) == "Action failed due to an unexpected error."
    assert any("Interaction failed" in record.getMessage() for record in caplog.records)


async def _explode(*_: Any, **__: Any) -> None:
    raise RuntimeError("storage exploded")
