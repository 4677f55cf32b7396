from __future__ import annotations

import json
import logging

from core.logging import JsonFormatter, TicketContextFilter


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord("services.ticket_service", logging.INFO, __file__, 1, "Ticket %s closed", (3,), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_context_filter_renders_ticket_fields() -> None:
    record = _record(ticket_id=3, channel_id=555)

    assert TicketContextFilter().filter(record) is True
    assert record.ticket_context == " [channel_id=555 ticket_id=3]"


def test_context_filter_is_blank_without_context() -> None:
    record = _record()
    TicketContextFilter().filter(record)
    assert record.ticket_context == ""


def test_json_formatter_includes_context() -> None:
    payload = json.loads(JsonFormatter().format(_record(ticket_id=3, log_id=9)))

    assert payload["message"] == "Ticket 3 closed"
    assert payload["ticket_id"] == 3
    assert payload["log_id"] == 9
    assert "guild_id" not in payload
