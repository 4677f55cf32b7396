from __future__ import annotations

from dataclasses import dataclass

TICKET_STATUS_OPEN = "open"
TICKET_STATUS_CLAIMED = "claimed"
TICKET_STATUS_CLOSED = "closed"

TICKET_STATUSES = (TICKET_STATUS_OPEN, TICKET_STATUS_CLAIMED, TICKET_STATUS_CLOSED)


@dataclass(slots=True)
class GuildConfig:
    guild_id: int
    log_channel_id: int | None = None
    support_role_id: int | None = None


@dataclass(slots=True)
class Ticket:
    id: int
    origin_channel_id: int
    user_id: int
    username: str
    status: str = TICKET_STATUS_OPEN
    claimed_by: int | None = None


@dataclass(frozen=True, slots=True)
class TicketLog:
    id: int
    ticket_id: int
    origin_channel_id: int
    user_id: int
    username: str
    status: str
    transcription: str
