from __future__ import annotations

import logging

from discord.ext import commands

from core.bot import TicketBot
from views.ticket_controls import TicketControlsView
from views.ticket_panel import OpenTicketView

LOGGER = logging.getLogger(__name__)


class TicketsCog(commands.Cog):
    def __init__(self, bot: TicketBot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        # Buttons carry fixed custom ids, so one instance of each view serves every message.
        self.bot.add_view(OpenTicketView(self.bot))
        self.bot.add_view(TicketControlsView(self.bot))
        LOGGER.info("Registered persistent ticket views")


async def setup(bot: TicketBot) -> None:
    await bot.add_cog(TicketsCog(bot))
