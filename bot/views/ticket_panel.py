from __future__ import annotations

from typing import TYPE_CHECKING

import discord

from core.errors import ValidationError, handle_interaction_error
from utils.constants import OPEN_TICKET_ID
from utils.embeds import make_embed, panel_embed
from views.ticket_controls import TicketControlsView

if TYPE_CHECKING:
    from core.bot import TicketBot


def build_panel_embed(bot: TicketBot) -> discord.Embed:
    return panel_embed(bot.i18n.t("panel.title"), bot.i18n.t("panel.description"))


class OpenTicketButton(discord.ui.Button["OpenTicketView"]):
    def __init__(self, bot: TicketBot) -> None:
        super().__init__(
            label=bot.i18n.t("panel.button"),
            emoji="📩",
            style=discord.ButtonStyle.primary,
            custom_id=OPEN_TICKET_ID,
        )
        self.bot = bot

    async def callback(self, interaction: discord.Interaction) -> None:
        if not interaction.guild or not isinstance(interaction.user, discord.Member):
            raise ValidationError(self.bot.i18n.t("ticket.guild_only"))

        # Channel creation can outlast the initial response window.
        await interaction.response.defer(ephemeral=True, thinking=True)
        service = self.bot.ticket_service
        channel, _ = await service.open_ticket(interaction.guild, interaction.user)

        t = self.bot.i18n.t
        await channel.send(
            content=await service.panel_mentions(interaction.guild.id, interaction.user),
            embed=make_embed(t("ticket.opened.title"), t("ticket.opened.description")),
            view=TicketControlsView(self.bot),
        )
        await interaction.followup.send(t("ticket.created", channel=channel.mention), ephemeral=True)


class OpenTicketView(discord.ui.View):
    def __init__(self, bot: TicketBot) -> None:
        super().__init__(timeout=None)
        self.bot = bot
        self.add_item(OpenTicketButton(bot))

    async def on_error(
        self, interaction: discord.Interaction, error: Exception, item: discord.ui.Item[discord.ui.View]
    ) -> None:
        await handle_interaction_error(interaction, error, item)
