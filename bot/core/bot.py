from __future__ import annotations

import logging
from pathlib import Path

import discord
from discord.ext import commands

from core.config import AppConfig
from core.errors import handle_prefix_command_error
from core.extensions import load_extensions
from services.ticket_service import TicketService, TicketServiceDeps
from services.transcript_service import TranscriptService
from storage.base import Storage
from utils.i18n import I18N

LOGGER = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).resolve().parent.parent / "config" / "locales"


def build_i18n(config: AppConfig) -> I18N:
    return I18N(LOCALES_DIR, config.i18n.default_locale, config.i18n.supported_locales)


class TicketBot(commands.Bot):
    def __init__(self, config: AppConfig, storage: Storage, i18n: I18N | None = None) -> None:
        intents = discord.Intents.default()
        intents.guilds = True
        intents.members = True
        intents.messages = True
        intents.message_content = True

        super().__init__(
            command_prefix=config.discord.prefix,
            intents=intents,
            allowed_mentions=discord.AllowedMentions(
                everyone=config.discord.allowed_mentions_everyone,
                roles=True,
                users=True,
                replied_user=False,
            ),
            help_command=None,
        )
        self.config = config
        self.storage = storage
        self.i18n = i18n or build_i18n(config)
        self.transcript_service = TranscriptService(self, config.transcripts, self.i18n)
        self.ticket_service = TicketService(
            config,
            self,
            TicketServiceDeps(
                configs=storage.configs,
                tickets=storage.tickets,
                logs=storage.logs,
                transcripts=self.transcript_service,
                i18n=self.i18n,
            ),
        )

    async def setup_hook(self) -> None:
        await load_extensions(self, self.config.enabled_extensions)

    async def on_ready(self) -> None:
        LOGGER.info(
            "Bot ready as %s (%s) in %s guilds",
            self.user,
            self.user.id if self.user else "n/a",
            len(self.guilds),
        )
        activity_type = self.config.discord.activity_type.lower()
        if activity_type == "playing":
            activity = discord.Game(name=self.config.discord.status_text)
        elif activity_type == "listening":
            activity = discord.Activity(
                type=discord.ActivityType.listening, name=self.config.discord.status_text
            )
        else:
            activity = discord.Activity(
                type=discord.ActivityType.watching, name=self.config.discord.status_text
            )
        await self.change_presence(status=discord.Status.online, activity=activity)

    async def on_command_error(self, ctx: commands.Context[commands.Bot], error: commands.CommandError) -> None:
        if ctx.command and ctx.command.has_error_handler():
            return
        await handle_prefix_command_error(ctx, error)
