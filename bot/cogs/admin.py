from __future__ import annotations

import logging

import discord
from discord.ext import commands

from core.bot import TicketBot
from core.errors import ValidationError
from utils.constants import parse_channel_reference, parse_role_reference
from utils.embeds import success_embed
from views.ticket_panel import OpenTicketView, build_panel_embed

LOGGER = logging.getLogger(__name__)


class AdminCog(commands.Cog):
    def __init__(self, bot: TicketBot) -> None:
        self.bot = bot

    async def cog_check(self, ctx: commands.Context[TicketBot]) -> bool:
        if ctx.guild is None:
            raise commands.NoPrivateMessage()
        if not isinstance(ctx.author, discord.Member) or not ctx.author.guild_permissions.administrator:
            raise commands.MissingPermissions(["administrator"])
        return True

    @commands.command(name="setup", help="Post the open-ticket panel in this channel.")
    async def setup_panel(self, ctx: commands.Context[TicketBot]) -> None:
        await ctx.channel.send(embed=build_panel_embed(self.bot), view=OpenTicketView(self.bot))
        await ctx.reply(embed=success_embed(self.bot.i18n.t("panel.sent")), mention_author=False)
        LOGGER.info("Ticket panel posted", extra={"guild_id": ctx.guild.id, "channel_id": ctx.channel.id})

    @commands.command(name="support", help="Set the role that can see every new ticket.")
    async def set_support_role(self, ctx: commands.Context[TicketBot], *, role: str = "") -> None:
        role_id = ctx.message.role_mentions[0].id if ctx.message.role_mentions else parse_role_reference(role)
        if role_id is None:
            raise ValidationError(self.bot.i18n.t("admin.support_invalid"))
        await self.bot.storage.configs.set_support_role(ctx.guild.id, role_id)
        await ctx.reply(embed=success_embed(self.bot.i18n.t("admin.support_set")), mention_author=False)
        LOGGER.info("Support role set to %s", role_id, extra={"guild_id": ctx.guild.id})

    @commands.command(name="logs", help="Set the channel that receives closed-ticket summaries.")
    async def set_log_channel(self, ctx: commands.Context[TicketBot], *, channel: str = "") -> None:
        channel_id = (
            ctx.message.channel_mentions[0].id if ctx.message.channel_mentions else parse_channel_reference(channel)
        )
        if channel_id is None:
            raise ValidationError(self.bot.i18n.t("admin.logs_invalid"))
        await self.bot.storage.configs.set_log_channel(ctx.guild.id, channel_id)
        await ctx.reply(embed=success_embed(self.bot.i18n.t("admin.logs_set")), mention_author=False)
        LOGGER.info("Log channel set to %s", channel_id, extra={"guild_id": ctx.guild.id})


async def setup(bot: TicketBot) -> None:
    await bot.add_cog(AdminCog(bot))
