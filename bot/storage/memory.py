from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from dataclasses import replace

from storage.models import (
    TICKET_STATUS_CLOSED,
    TICKET_STATUS_OPEN,
    TICKET_STATUSES,
    GuildConfig,
    Ticket,
    TicketLog,
)

LOGGER = logging.getLogger(__name__)


class MemoryConfigStore:
    def __init__(self) -> None:
        self._configs: dict[int, GuildConfig] = {}

    async def get(self, guild_id: int) -> GuildConfig | None:
        config = self._configs.get(guild_id)
        return replace(config) if config else None

    async def get_log_channel(self, guild_id: int) -> int | None:
        config = self._configs.get(guild_id)
        return config.log_channel_id if config else None

    async def set_log_channel(self, guild_id: int, channel_id: int) -> None:
        self._ensure(guild_id).log_channel_id = channel_id

    async def get_support_role(self, guild_id: int) -> int | None:
        config = self._configs.get(guild_id)
        return config.support_role_id if config else None

    async def set_support_role(self, guild_id: int, role_id: int) -> None:
        self._ensure(guild_id).support_role_id = role_id

    def _ensure(self, guild_id: int) -> GuildConfig:
        config = self._configs.get(guild_id)
        if config is None:
            config = GuildConfig(guild_id=guild_id)
            self._configs[guild_id] = config
        return config


class MemoryTicketStore:
    """Tickets indexed by id and by origin channel.

    Both indexes hold the same ``Ticket`` object, so a status change made through
    one lookup is visible through the other.
    """

    def __init__(self, max_closed: int | None = None) -> None:
        self._by_id: dict[int, Ticket] = {}
        self._by_channel: dict[int, Ticket] = {}
        self._locks: dict[int, asyncio.Lock] = {}
        self._closed_order: OrderedDict[int, None] = OrderedDict()
        self._next_id = 1
        self.max_closed = max_closed

    async def create_ticket(self, origin_channel_id: int, user_id: int, username: str) -> Ticket:
        ticket = Ticket(
            id=self._next_id,
            origin_channel_id=origin_channel_id,
            user_id=user_id,
            username=username,
            status=TICKET_STATUS_OPEN,
        )
        self._next_id += 1
        self._by_id[ticket.id] = ticket
        self._by_channel[origin_channel_id] = ticket
        return ticket

    async def get(self, ticket_id: int) -> Ticket | None:
        return self._by_id.get(ticket_id)

    async def get_by_channel(self, channel_id: int) -> Ticket | None:
        return self._by_channel.get(channel_id)

    async def update_status(self, ticket_id: int, status: str, claimed_by: int | None = None) -> None:
        if status not in TICKET_STATUSES:
            raise ValueError(f"Unknown ticket status: {status}")
        ticket = self._by_id.get(ticket_id)
        if ticket is None:
            return
        ticket.status = status
        if claimed_by is not None:
            ticket.claimed_by = claimed_by
        if status == TICKET_STATUS_CLOSED:
            self._closed_order[ticket_id] = None
            self._enforce_retention()
        else:
            self._closed_order.pop(ticket_id, None)

    def lock(self, ticket_id: int) -> asyncio.Lock:
        lock = self._locks.get(ticket_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[ticket_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._by_id)

    def _enforce_retention(self) -> None:
        if self.max_closed is None:
            return
        while len(self._closed_order) > self.max_closed:
            ticket_id, _ = self._closed_order.popitem(last=False)
            ticket = self._by_id.pop(ticket_id, None)
            self._locks.pop(ticket_id, None)
            if ticket and self._by_channel.get(ticket.origin_channel_id) is ticket:
                del self._by_channel[ticket.origin_channel_id]
            LOGGER.debug("Evicted closed ticket %s", ticket_id)


class MemoryLogStore:
    def __init__(self, max_entries: int | None = None) -> None:
        self._logs: OrderedDict[int, TicketLog] = OrderedDict()
        self._next_id = 1
        self.max_entries = max_entries

    async def append(
        self,
        ticket_id: int,
        origin_channel_id: int,
        user_id: int,
        username: str,
        status: str,
        transcription: str,
    ) -> int:
        entry = TicketLog(
            id=self._next_id,
            ticket_id=ticket_id,
            origin_channel_id=origin_channel_id,
            user_id=user_id,
            username=username,
            status=status,
            transcription=transcription,
        )
        self._next_id += 1
        self._logs[entry.id] = entry
        if self.max_entries is not None:
            while len(self._logs) > self.max_entries:
                evicted, _ = self._logs.popitem(last=False)
                LOGGER.debug("Evicted ticket log %s", evicted)
        return entry.id

    async def get(self, log_id: int) -> TicketLog | None:
        return self._logs.get(log_id)

    async def get_transcription(self, log_id: int) -> str | None:
        entry = self._logs.get(log_id)
        return entry.transcription if entry else None

    def __len__(self) -> int:
        return len(self._logs)
