from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Protocol

from core.config import StorageConfig
from storage.memory import MemoryConfigStore, MemoryLogStore, MemoryTicketStore
from storage.models import GuildConfig, Ticket, TicketLog


class ConfigRepository(Protocol):
    async def get(self, guild_id: int) -> GuildConfig | None: ...
    async def get_log_channel(self, guild_id: int) -> int | None: ...
    async def set_log_channel(self, guild_id: int, channel_id: int) -> None: ...
    async def get_support_role(self, guild_id: int) -> int | None: ...
    async def set_support_role(self, guild_id: int, role_id: int) -> None: ...


class TicketRepository(Protocol):
    async def create_ticket(self, origin_channel_id: int, user_id: int, username: str) -> Ticket: ...
    async def get(self, ticket_id: int) -> Ticket | None: ...
    async def get_by_channel(self, channel_id: int) -> Ticket | None: ...
    async def update_status(self, ticket_id: int, status: str, claimed_by: int | None = None) -> None: ...
    def lock(self, ticket_id: int) -> asyncio.Lock: ...


class LogRepository(Protocol):
    async def append(
        self,
        ticket_id: int,
        origin_channel_id: int,
        user_id: int,
        username: str,
        status: str,
        transcription: str,
    ) -> int: ...
    async def get(self, log_id: int) -> TicketLog | None: ...
    async def get_transcription(self, log_id: int) -> str | None: ...


@dataclass(slots=True)
class Storage:
    configs: ConfigRepository
    tickets: TicketRepository
    logs: LogRepository


def build_storage(config: StorageConfig) -> Storage:
    return Storage(
        configs=MemoryConfigStore(),
        tickets=MemoryTicketStore(max_closed=config.max_closed_tickets),
        logs=MemoryLogStore(max_entries=config.max_logs),
    )
