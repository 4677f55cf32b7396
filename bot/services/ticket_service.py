from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

import discord

from core.config import AppConfig
from core.errors import PermissionDeniedError
from services.transcript_service import TranscriptService
from storage.base import ConfigRepository, LogRepository, TicketRepository
from storage.models import TICKET_STATUS_CLAIMED, TICKET_STATUS_CLOSED, Ticket
from utils.constants import CHANNEL_NAME_MAX
from utils.embeds import make_embed
from utils.i18n import I18N
from utils.results import CallResult, attempt

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class TicketServiceDeps:
    configs: ConfigRepository
    tickets: TicketRepository
    logs: LogRepository
    transcripts: TranscriptService
    i18n: I18N


@dataclass(slots=True)
class CloseOutcome:
    ticket: Ticket | None
    log_id: int | None = None
    notification: CallResult | None = None
    announcement: CallResult | None = None
    deletion: asyncio.Task[CallResult] | None = None
    already_closed: bool = False


class TicketService:
    def __init__(self, config: AppConfig, client: discord.Client, deps: TicketServiceDeps) -> None:
        self.config = config
        self.client = client
        self.deps = deps
        self._pending_deletions: set[asyncio.Task[CallResult]] = set()

    @staticmethod
    def sanitize_channel_fragment(name: str) -> str:
        name = name.strip().lower()
        name = re.sub(r"[^a-z0-9_-]+", "-", name)
        name = re.sub(r"-{2,}", "-", name).strip("-")
        return name or "user"

    def channel_name(self, fragment: str) -> str:
        return f"{self.config.tickets.channel_prefix}{self.sanitize_channel_fragment(fragment)}"[:CHANNEL_NAME_MAX]

    @staticmethod
    def build_overwrites(
        guild: discord.Guild,
        requester: discord.abc.Snowflake,
        support_role_id: int | None,
    ) -> dict[discord.abc.Snowflake, discord.PermissionOverwrite]:
        overwrites: dict[discord.abc.Snowflake, discord.PermissionOverwrite] = {
            guild.default_role: discord.PermissionOverwrite(view_channel=False),
            requester: discord.PermissionOverwrite(
                view_channel=True,
                send_messages=True,
                read_message_history=True,
            ),
            guild.me: discord.PermissionOverwrite(
                view_channel=True,
                send_messages=True,
                manage_channels=True,
            ),
        }
        if support_role_id is not None:
            # Stored ids are not validated; an unknown role surfaces as an API error here.
            role = guild.get_role(support_role_id) or discord.Object(id=support_role_id, type=discord.Role)
            overwrites[role] = discord.PermissionOverwrite(
                view_channel=True,
                send_messages=True,
                read_message_history=True,
            )
        return overwrites

    async def open_ticket(
        self, guild: discord.Guild, requester: discord.Member
    ) -> tuple[discord.TextChannel, Ticket]:
        support_role_id = await self.deps.configs.get_support_role(guild.id)
        channel = await guild.create_text_channel(
            name=self.channel_name(requester.name),
            overwrites=self.build_overwrites(guild, requester, support_role_id),
            reason=f"Ticket opened by {requester} ({requester.id})",
        )
        ticket = await self.deps.tickets.create_ticket(
            origin_channel_id=channel.id,
            user_id=requester.id,
            username=requester.name,
        )
        LOGGER.info(
            "Ticket %s opened by %s",
            ticket.id,
            requester.id,
            extra={"guild_id": guild.id, "channel_id": channel.id, "ticket_id": ticket.id},
        )
        return channel, ticket

    async def panel_mentions(self, guild_id: int, requester: discord.abc.User) -> str:
        support_role_id = await self.deps.configs.get_support_role(guild_id)
        if support_role_id is None:
            return requester.mention
        return f"{requester.mention} <@&{support_role_id}>"

    async def is_staff(self, member: discord.Member) -> bool:
        perms = member.guild_permissions
        if perms.administrator or perms.manage_channels:
            return True
        support_role_id = await self.deps.configs.get_support_role(member.guild.id)
        return support_role_id is not None and any(role.id == support_role_id for role in member.roles)

    async def ensure_staff(self, member: discord.abc.User) -> None:
        if not self.config.tickets.require_staff:
            return
        if not isinstance(member, discord.Member) or not await self.is_staff(member):
            raise PermissionDeniedError(self.deps.i18n.t("ticket.staff_only"))

    async def claim_ticket(self, channel_id: int, actor_id: int) -> Ticket | None:
        ticket = await self.deps.tickets.get_by_channel(channel_id)
        if ticket is None:
            LOGGER.info("Claim ignored, no ticket for channel", extra={"channel_id": channel_id})
            return None
        # Waits for an in-flight close; a claim after close still succeeds.
        # TODO: decide whether a claim landing after close (channel deletion pending) should be rejected.
        async with self.deps.tickets.lock(ticket.id):
            await self.deps.tickets.update_status(ticket.id, TICKET_STATUS_CLAIMED, claimed_by=actor_id)
        LOGGER.info(
            "Ticket %s claimed by %s",
            ticket.id,
            actor_id,
            extra={"channel_id": channel_id, "ticket_id": ticket.id},
        )
        return ticket

    async def close_ticket(self, channel: discord.abc.GuildChannel, actor: discord.abc.User) -> CloseOutcome:
        ticket = await self.deps.tickets.get_by_channel(channel.id)
        if ticket is None:
            LOGGER.info("Close without ticket record", extra={"channel_id": channel.id})
            return CloseOutcome(ticket=None, deletion=self.schedule_channel_deletion(channel))

        async with self.deps.tickets.lock(ticket.id):
            if ticket.status == TICKET_STATUS_CLOSED:
                LOGGER.info(
                    "Ticket %s already closed",
                    ticket.id,
                    extra={"channel_id": channel.id, "ticket_id": ticket.id},
                )
                return CloseOutcome(ticket=ticket, already_closed=True)
            transcription = await self.deps.transcripts.render(channel.id)
            await self.deps.tickets.update_status(ticket.id, TICKET_STATUS_CLOSED)
            log_id = await self.deps.logs.append(
                ticket_id=ticket.id,
                origin_channel_id=ticket.origin_channel_id,
                user_id=ticket.user_id,
                username=ticket.username,
                status=TICKET_STATUS_CLOSED,
                transcription=transcription,
            )
        LOGGER.info(
            "Ticket %s closed by %s",
            ticket.id,
            actor.id,
            extra={"channel_id": channel.id, "ticket_id": ticket.id, "log_id": log_id},
        )

        notification = await self.notify_requester(ticket, log_id)
        announcement = await self.announce_close(channel.guild, ticket, log_id, actor)
        return CloseOutcome(
            ticket=ticket,
            log_id=log_id,
            notification=notification,
            announcement=announcement,
            deletion=self.schedule_channel_deletion(channel),
        )

    def transcript_url(self, log_id: int) -> str | None:
        base = self.config.http.public_url.rstrip("/")
        if not base:
            return None
        return f"{base}/transcription/{log_id}"

    async def notify_requester(self, ticket: Ticket, log_id: int) -> CallResult:
        context = {"ticket_id": ticket.id, "user_id": ticket.user_id}
        user = self.client.get_user(ticket.user_id)
        if user is None:
            lookup = await attempt("notify_requester", self.client.fetch_user(ticket.user_id), **context)
            if not lookup.ok:
                return lookup
            user = lookup.value
        url = self.transcript_url(log_id)
        if url:
            content = self.deps.i18n.t("ticket.dm.closed_with_link", url=url)
        else:
            content = self.deps.i18n.t("ticket.dm.closed")
        return await attempt("notify_requester", user.send(content=content), **context)

    async def announce_close(
        self,
        guild: discord.Guild,
        ticket: Ticket,
        log_id: int,
        actor: discord.abc.User,
    ) -> CallResult | None:
        log_channel_id = await self.deps.configs.get_log_channel(guild.id)
        if log_channel_id is None:
            return None
        log_channel = guild.get_channel(log_channel_id)
        if not isinstance(log_channel, discord.abc.Messageable):
            LOGGER.warning(
                "Configured log channel is unavailable",
                extra={"guild_id": guild.id, "channel_id": log_channel_id},
            )
            return None

        t = self.deps.i18n.t
        embed = make_embed(title=t("log.closed.title", ticket_id=ticket.id), description=f"#{log_id}")
        embed.add_field(name=t("log.closed.requester"), value=f"<@{ticket.user_id}>", inline=True)
        embed.add_field(
            name=t("log.closed.claimed_by"),
            value=f"<@{ticket.claimed_by}>" if ticket.claimed_by else t("log.closed.nobody"),
            inline=True,
        )
        embed.add_field(name=t("log.closed.closed_by"), value=actor.mention, inline=True)
        url = self.transcript_url(log_id)
        if url:
            embed.add_field(name=t("log.closed.transcript"), value=url, inline=False)
        return await attempt(
            "announce_log_channel",
            log_channel.send(embed=embed),
            guild_id=guild.id,
            ticket_id=ticket.id,
        )

    def schedule_channel_deletion(self, channel: discord.abc.GuildChannel) -> asyncio.Task[CallResult]:
        # Not cancellable by later interactions; a claim arriving meanwhile does not stop it.
        task = asyncio.create_task(self._delete_after_delay(channel))
        self._pending_deletions.add(task)
        task.add_done_callback(self._pending_deletions.discard)
        return task

    async def _delete_after_delay(self, channel: discord.abc.GuildChannel) -> CallResult:
        await asyncio.sleep(self.config.tickets.close_delay_seconds)
        return await attempt(
            "delete_channel",
            channel.delete(reason="Ticket closed"),
            channel_id=channel.id,
        )

    async def rename_ticket(self, channel: discord.TextChannel, new_name: str) -> str:
        name = self.channel_name(new_name)
        await channel.edit(name=name)
        LOGGER.info("Ticket channel renamed to %s", name, extra={"channel_id": channel.id})
        return name
