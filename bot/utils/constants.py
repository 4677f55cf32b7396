from __future__ import annotations

import re

OPEN_TICKET_ID = "open_ticket"
CLAIM_TICKET_ID = "claim_ticket"
CLOSE_TICKET_ID = "close_ticket_btn"
RENAME_TICKET_ID = "rename_ticket"
RENAME_MODAL_ID = "rename_ticket_modal"
RENAME_FIELD_ID = "new_name"

CHANNEL_NAME_MAX = 100

_ROLE_REF = re.compile(r"^(?:<@&(\d{15,21})>|(\d{15,21}))$")
_CHANNEL_REF = re.compile(r"^(?:<#(\d{15,21})>|(\d{15,21}))$")


def parse_role_reference(text: str) -> int | None:
    match = _ROLE_REF.match(text.strip())
    if not match:
        return None
    return int(match.group(1) or match.group(2))


def parse_channel_reference(text: str) -> int | None:
    match = _CHANNEL_REF.match(text.strip())
    if not match:
        return None
    return int(match.group(1) or match.group(2))
