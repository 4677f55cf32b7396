from __future__ import annotations

from typing import TYPE_CHECKING

import discord

from core.errors import TicketNotFoundError, ValidationError, handle_interaction_error
from utils.constants import (
    CLAIM_TICKET_ID,
    CLOSE_TICKET_ID,
    RENAME_FIELD_ID,
    RENAME_MODAL_ID,
    RENAME_TICKET_ID,
)

if TYPE_CHECKING:
    from core.bot import TicketBot


def _ticket_channel(bot: TicketBot, interaction: discord.Interaction) -> discord.TextChannel:
    if not interaction.guild or not isinstance(interaction.channel, discord.TextChannel):
        raise ValidationError(bot.i18n.t("ticket.not_ticket_channel"))
    return interaction.channel


class RenameTicketModal(discord.ui.Modal):
    def __init__(self, bot: TicketBot) -> None:
        super().__init__(title=bot.i18n.t("ticket.rename.title"), timeout=300, custom_id=RENAME_MODAL_ID)
        self.bot = bot
        self.new_name = discord.ui.TextInput(
            label=bot.i18n.t("ticket.rename.label"),
            custom_id=RENAME_FIELD_ID,
            required=True,
            min_length=1,
            max_length=90,
        )
        self.add_item(self.new_name)

    async def on_submit(self, interaction: discord.Interaction) -> None:
        channel = _ticket_channel(self.bot, interaction)
        await self.bot.ticket_service.rename_ticket(channel, str(self.new_name.value))
        await interaction.response.send_message(self.bot.i18n.t("ticket.renamed"), ephemeral=True)

    async def on_error(self, interaction: discord.Interaction, error: Exception) -> None:
        await handle_interaction_error(interaction, error, None)


class TicketControlsView(discord.ui.View):
    """Claim / close / rename panel posted into every ticket channel.

    Persistent: one instance is registered at startup so buttons keep working
    across restarts, which is why the view holds no per-ticket state.
    """

    def __init__(self, bot: TicketBot) -> None:
        super().__init__(timeout=None)
        self.bot = bot
        t = bot.i18n.t
        self.claim_button.label = t("ticket.button.claim")
        self.close_button.label = t("ticket.button.close")
        self.rename_button.label = t("ticket.button.rename")

    @discord.ui.button(
        label="Claim",
        style=discord.ButtonStyle.success,
        emoji="✅",
        custom_id=CLAIM_TICKET_ID,
    )
    async def claim_button(self, interaction: discord.Interaction, _: discord.ui.Button) -> None:
        channel = _ticket_channel(self.bot, interaction)
        await self.bot.ticket_service.ensure_staff(interaction.user)
        ticket = await self.bot.ticket_service.claim_ticket(channel.id, interaction.user.id)
        if ticket is None:
            raise TicketNotFoundError(self.bot.i18n.t("ticket.not_found"))
        await interaction.response.send_message(
            self.bot.i18n.t("ticket.claimed", user=interaction.user.mention)
        )

    @discord.ui.button(
        label="Close",
        style=discord.ButtonStyle.secondary,
        emoji="✖️",
        custom_id=CLOSE_TICKET_ID,
    )
    async def close_button(self, interaction: discord.Interaction, _: discord.ui.Button) -> None:
        channel = _ticket_channel(self.bot, interaction)
        await self.bot.ticket_service.ensure_staff(interaction.user)
        # Rendering the transcript may take longer than the initial response window.
        await interaction.response.defer(thinking=True)
        outcome = await self.bot.ticket_service.close_ticket(channel, interaction.user)
        if outcome.already_closed:
            await interaction.followup.send(self.bot.i18n.t("ticket.already_closed"), ephemeral=True)
            return
        seconds = self.bot.config.tickets.close_delay_seconds
        await interaction.followup.send(self.bot.i18n.t("ticket.closing", seconds=f"{seconds:g}"))

    @discord.ui.button(
        label="Rename",
        style=discord.ButtonStyle.secondary,
        emoji="✏️",
        custom_id=RENAME_TICKET_ID,
    )
    async def rename_button(self, interaction: discord.Interaction, _: discord.ui.Button) -> None:
        _ticket_channel(self.bot, interaction)
        await self.bot.ticket_service.ensure_staff(interaction.user)
        await interaction.response.send_modal(RenameTicketModal(self.bot))

    async def on_error(
        self, interaction: discord.Interaction, error: Exception, item: discord.ui.Item[discord.ui.View]
    ) -> None:
        await handle_interaction_error(interaction, error, item)
