from __future__ import annotations

import logging
from dataclasses import dataclass

import discord
from discord.ext import commands

from utils.embeds import error_embed

LOGGER = logging.getLogger(__name__)


class BotError(RuntimeError):
    user_message: str = "An unexpected error occurred."


@dataclass(slots=True)
class PermissionDeniedError(BotError):
    user_message: str = "You do not have permission to run this action."


@dataclass(slots=True)
class TicketNotFoundError(BotError):
    user_message: str = "No ticket is associated with this channel."


@dataclass(slots=True)
class ValidationError(BotError):
    user_message: str = "The provided input is not valid."


async def send_error_response(
    target: commands.Context[commands.Bot] | discord.Interaction[commands.Bot], message: str
) -> None:
    embed = error_embed(message)
    if isinstance(target, commands.Context):
        await target.reply(embed=embed, mention_author=False)
        return
    if target.response.is_done():
        await target.followup.send(embed=embed, ephemeral=True)
    else:
        await target.response.send_message(embed=embed, ephemeral=True)


def _humanize_command_error(error: Exception) -> str:
    original = getattr(error, "original", error)
    if isinstance(original, BotError):
        return original.user_message
    if isinstance(error, commands.NoPrivateMessage):
        return "This command only works inside a server."
    if isinstance(error, commands.MissingPermissions):
        return "You need the Administrator permission to run this command."
    if isinstance(error, commands.CheckFailure):
        return "You are not authorized for this command."
    if isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)):
        return "Command argument was invalid."
    return "An unexpected command error occurred."


async def handle_prefix_command_error(
    ctx: commands.Context[commands.Bot], error: commands.CommandError
) -> None:
    if isinstance(error, commands.CommandNotFound):
        return
    message = _humanize_command_error(error)
    if isinstance(error, (commands.CheckFailure, commands.UserInputError)) or isinstance(
        getattr(error, "original", None), BotError
    ):
        LOGGER.info(
            "Prefix command rejected. command=%s guild=%s user=%s reason=%s",
            getattr(ctx.command, "qualified_name", None),
            getattr(ctx.guild, "id", None),
            ctx.author.id,
            message,
        )
    else:
        LOGGER.exception(
            "Prefix command failed. command=%s guild=%s user=%s",
            getattr(ctx.command, "qualified_name", None),
            getattr(ctx.guild, "id", None),
            ctx.author.id,
            exc_info=error,
        )
    await send_error_response(ctx, message)


async def handle_interaction_error(
    interaction: discord.Interaction[commands.Bot], error: Exception, item: discord.ui.Item | None
) -> None:
    if isinstance(error, BotError):
        message = error.user_message
        LOGGER.info(
            "Interaction rejected. component=%s guild=%s user=%s reason=%s",
            getattr(item, "custom_id", None),
            getattr(interaction.guild, "id", None),
            interaction.user.id if interaction.user else None,
            message,
        )
    else:
        message = "Action failed due to an unexpected error."
        LOGGER.exception(
            "Interaction failed. component=%s guild=%s user=%s",
            getattr(item, "custom_id", None),
            getattr(interaction.guild, "id", None),
            interaction.user.id if interaction.user else None,
            exc_info=error,
        )
    try:
        await send_error_response(interaction, message)
    except discord.HTTPException:
        LOGGER.warning("Could not deliver error response for interaction %s", interaction.id)
