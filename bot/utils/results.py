from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any

import discord

LOGGER = logging.getLogger(__name__)

POLICY_LOG_AND_IGNORE = "log_and_ignore"
POLICY_PROPAGATE = "propagate"

# External calls whose failure must not abort the surrounding ticket transition.
# Anything not listed here propagates to the caller.
FAILURE_POLICY: dict[str, str] = {
    "notify_requester": POLICY_LOG_AND_IGNORE,
    "announce_log_channel": POLICY_LOG_AND_IGNORE,
    "delete_channel": POLICY_LOG_AND_IGNORE,
}


@dataclass(frozen=True, slots=True)
class CallResult:
    operation: str
    ok: bool
    error: str | None = None
    value: Any = None


async def attempt(operation: str, call: Awaitable[Any], **log_context: Any) -> CallResult:
    """Await ``call`` and report the outcome as a ``CallResult``.

    Only Discord HTTP failures are turned into a failed result, and only for
    operations whose policy allows it. Programming errors always propagate.
    """
    try:
        value = await call
    except discord.HTTPException as exc:
        if FAILURE_POLICY.get(operation, POLICY_PROPAGATE) != POLICY_LOG_AND_IGNORE:
            raise
        LOGGER.warning(
            "%s failed (status=%s): %s",
            operation,
            getattr(exc, "status", None),
            exc,
            extra=log_context,
        )
        return CallResult(operation=operation, ok=False, error=str(exc))
    return CallResult(operation=operation, ok=True, value=value)
