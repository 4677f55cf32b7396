from __future__ import annotations

import html
import logging
from collections.abc import Iterable

import discord

from core.config import TranscriptConfig
from utils.i18n import I18N
from utils.time import format_local, resolve_timezone

LOGGER = logging.getLogger(__name__)

_STYLE = (
    "body{background-color:#313338;color:#dbdee1;font-family:sans-serif;padding:20px;}"
    ".message{margin-bottom:15px;border-bottom:1px solid #404249;padding-bottom:10px;}"
    ".author{font-weight:bold;color:#ffffff;}"
    ".timestamp{font-size:0.8em;color:#949ba4;margin-left:10px;}"
    ".content{margin-top:5px;white-space:pre-wrap;}"
)


class TranscriptService:
    """Renders the recent history of a channel into a standalone HTML page.

    ``render`` never raises. Callers always get text back: either the document
    or one of two fixed placeholders (``empty_placeholder`` when the channel
    cannot be resolved or is not text-capable, ``failed_placeholder`` for any
    other error).
    """

    def __init__(self, client: discord.Client, config: TranscriptConfig, i18n: I18N) -> None:
        self.client = client
        self.config = config
        self.i18n = i18n
        self.tz = resolve_timezone(config.timezone)

    @property
    def empty_placeholder(self) -> str:
        return self.i18n.t("transcript.empty")

    @property
    def failed_placeholder(self) -> str:
        return self.i18n.t("transcript.failed")

    async def render(self, channel_id: int) -> str:
        try:
            channel = await self._resolve_channel(channel_id)
            if channel is None:
                return self.empty_placeholder
            messages: list[discord.Message] = []
            async for message in channel.history(limit=self.config.message_limit):
                messages.append(message)
            # history() yields newest first.
            messages.reverse()
            return self.build_html(messages)
        except Exception:
            LOGGER.exception("Transcript generation failed", extra={"channel_id": channel_id})
            return self.failed_placeholder

    async def _resolve_channel(self, channel_id: int) -> discord.abc.Messageable | None:
        channel = self.client.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.client.fetch_channel(channel_id)
            except (discord.NotFound, discord.Forbidden, discord.InvalidData):
                LOGGER.info("Transcript channel unavailable", extra={"channel_id": channel_id})
                return None
        if not isinstance(channel, discord.abc.Messageable):
            return None
        return channel

    @staticmethod
    def include_message(message: discord.Message) -> bool:
        return not (message.author.bot and not message.embeds)

    def build_html(self, messages: Iterable[discord.Message]) -> str:
        fmt = self.i18n.t("transcript.timestamp_format")
        rows: list[str] = []
        for msg in messages:
            if not self.include_message(msg):
                continue
            rows.append(
                "<div class=\"message\">"
                f"<span class=\"author\">{html.escape(msg.author.name)}</span>"
                f"<span class=\"timestamp\">{html.escape(format_local(msg.created_at, self.tz, fmt))}</span>"
                f"<div class=\"content\">{html.escape(msg.content or '')}</div>"
                "</div>"
            )

        title = html.escape(self.i18n.t("transcript.title"))
        return (
            "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
            f"<title>{title}</title>"
            f"<style>{_STYLE}</style>"
            f"</head><body><h1>{title}</h1>"
            + "".join(rows)
            + "</body></html>"
        )
