from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path

import discord
import uvicorn

from core.api import create_api_app
from core.bot import TicketBot, build_i18n
from core.config import AppConfig, load_config
from core.logging import configure_logging
from storage.base import Storage, build_storage
from utils.i18n import I18N

LOGGER = logging.getLogger(__name__)


async def _run_bot(config: AppConfig, storage: Storage, i18n: I18N) -> None:
    bot = TicketBot(config=config, storage=storage, i18n=i18n)
    async with bot:
        try:
            await bot.start(config.discord.token)
        except discord.LoginFailure:
            LOGGER.error("Discord rejected the bot token; bot disabled, HTTP server keeps running")
        except Exception:
            LOGGER.exception("Bot stopped unexpectedly; HTTP server keeps running")


async def _run(config: AppConfig) -> None:
    storage = build_storage(config.storage)
    i18n = build_i18n(config)

    api_task: asyncio.Task[None] | None = None
    if config.http.enabled:
        server = uvicorn.Server(
            uvicorn.Config(
                app=create_api_app(storage.logs, i18n),
                host=config.http.host,
                port=config.http.port,
                log_level=config.logging.level.lower(),
                log_config=None,
            )
        )
        api_task = asyncio.create_task(server.serve())
        LOGGER.info("HTTP server listening on %s:%s", config.http.host, config.http.port)

    bot_task: asyncio.Task[None] | None = None
    if config.discord.has_usable_token:
        bot_task = asyncio.create_task(_run_bot(config, storage, i18n))
    else:
        LOGGER.error("DISCORD_TOKEN is missing or too short; bot disabled")

    try:
        if api_task:
            await api_task
        elif bot_task:
            await bot_task
    finally:
        if bot_task and not bot_task.done():
            bot_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await bot_task


def main() -> None:
    root = Path(__file__).resolve().parent
    config = load_config(root / "config" / "config.yaml")
    configure_logging(config.logging)
    asyncio.run(_run(config))


if __name__ == "__main__":
    main()
