from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from core.config import AppConfig, HttpConfig, TicketConfig
from services.ticket_service import TicketService, TicketServiceDeps
from services.transcript_service import TranscriptService
from storage.base import Storage, build_storage
from utils.i18n import I18N

LOCALES_DIR = Path(__file__).resolve().parents[1] / "config" / "locales"
BASE_TIME = datetime(2024, 1, 2, 15, 4, 5, tzinfo=UTC)


@pytest.fixture
def i18n() -> I18N:
    return I18N(LOCALES_DIR, "en-US")


def http_error(cls: type[discord.HTTPException], status: int, text: str) -> discord.HTTPException:
    return cls(SimpleNamespace(status=status, reason=text), text)


def make_message(
    author: str,
    content: str,
    *,
    bot: bool = False,
    embeds: list[Any] | None = None,
    minute: int = 0,
) -> SimpleNamespace:
    return SimpleNamespace(
        author=SimpleNamespace(name=author, bot=bot),
        content=content,
        embeds=embeds or [],
        created_at=BASE_TIME + timedelta(minutes=minute),
    )


async def _aiter(items: Iterable[Any]):
    for item in items:
        yield item


def make_text_channel(channel_id: int, messages: list[Any] | None = None, guild: Any = None) -> MagicMock:
    """Text channel mock whose history() yields ``messages`` newest first, like Discord."""
    history = list(messages or [])
    channel = MagicMock(spec=discord.TextChannel)
    channel.id = channel_id
    channel.guild = guild
    channel.mention = f"<#{channel_id}>"
    channel.history = MagicMock(side_effect=lambda limit=None: _aiter(list(reversed(history))[:limit]))
    channel.send = AsyncMock()
    channel.edit = AsyncMock()
    channel.delete = AsyncMock()
    return channel


def make_client(channels: dict[int, Any] | None = None, users: dict[int, Any] | None = None) -> MagicMock:
    channels = channels if channels is not None else {}
    users = users if users is not None else {}
    client = MagicMock()
    client.get_channel = MagicMock(side_effect=lambda cid: channels.get(cid))
    client.fetch_channel = AsyncMock(side_effect=http_error(discord.NotFound, 404, "Unknown Channel"))
    client.get_user = MagicMock(side_effect=lambda uid: users.get(uid))
    client.fetch_user = AsyncMock(side_effect=http_error(discord.NotFound, 404, "Unknown User"))
    return client


def make_user(user_id: int, name: str) -> MagicMock:
    user = MagicMock()
    user.id = user_id
    user.name = name
    user.mention = f"<@{user_id}>"
    user.send = AsyncMock()
    return user


def make_guild(guild_id: int, created_channel: Any, roles: dict[int, Any] | None = None) -> MagicMock:
    roles = roles if roles is not None else {}
    guild = MagicMock()
    guild.id = guild_id
    guild.default_role = object()
    guild.me = object()
    guild.get_role = MagicMock(side_effect=lambda rid: roles.get(rid))
    guild.get_channel = MagicMock(return_value=None)
    guild.create_text_channel = AsyncMock(return_value=created_channel)
    return guild


def build_service(
    i18n: I18N,
    client: Any,
    *,
    public_url: str = "",
    require_staff: bool = False,
) -> tuple[TicketService, Storage]:
    config = AppConfig(
        http=HttpConfig(public_url=public_url),
        tickets=TicketConfig(close_delay_seconds=0, require_staff=require_staff),
    )
    storage = build_storage(config.storage)
    transcripts = TranscriptService(client, config.transcripts, i18n)
    service = TicketService(
        config,
        client,
        TicketServiceDeps(
            configs=storage.configs,
            tickets=storage.tickets,
            logs=storage.logs,
            transcripts=transcripts,
            i18n=i18n,
        ),
    )
    return service, storage


def make_member(user_id: int, name: str, *, administrator: bool = False) -> MagicMock:
    member = MagicMock(spec=discord.Member)
    member.id = user_id
    member.name = name
    member.mention = f"<@{user_id}>"
    member.roles = []
    member.guild_permissions = SimpleNamespace(administrator=administrator, manage_channels=administrator)
    member.send = AsyncMock()
    return member


def make_interaction(guild: Any, channel: Any, user: Any) -> MagicMock:
    interaction = MagicMock()
    interaction.id = 4242
    interaction.guild = guild
    interaction.channel = channel
    interaction.user = user
    interaction.response.is_done = MagicMock(return_value=False)
    interaction.response.send_message = AsyncMock()
    interaction.response.defer = AsyncMock()
    interaction.response.send_modal = AsyncMock()
    interaction.followup.send = AsyncMock()
    return interaction


def make_bot(service: TicketService, storage: Storage, i18n: I18N) -> SimpleNamespace:
    """Just enough of ``TicketBot`` for views and cogs."""
    return SimpleNamespace(config=service.config, storage=storage, i18n=i18n, ticket_service=service)
