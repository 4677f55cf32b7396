from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, TypeVar

import yaml
from dotenv import load_dotenv

T = TypeVar("T")

MIN_TOKEN_LENGTH = 10
DEFAULT_EXTENSIONS = ("cogs.tickets", "cogs.admin")


class ConfigError(RuntimeError):
    pass


@dataclass(slots=True)
class DiscordConfig:
    token: str = ""
    prefix: str = "!"
    status_text: str = "Support tickets"
    activity_type: str = "watching"
    allowed_mentions_everyone: bool = False

    @property
    def has_usable_token(self) -> bool:
        return len(self.token) >= MIN_TOKEN_LENGTH


@dataclass(slots=True)
class HttpConfig:
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 5000
    public_url: str = ""


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    directory: str = "logs"
    file_name: str = "bot.log"
    max_bytes: int = 10_000_000
    backup_count: int = 10
    json_console: bool = False


@dataclass(slots=True)
class StorageConfig:
    # None keeps every record for the lifetime of the process.
    max_closed_tickets: int | None = None
    max_logs: int | None = None


@dataclass(slots=True)
class TicketConfig:
    channel_prefix: str = "ticket-"
    close_delay_seconds: float = 5.0
    require_staff: bool = False


@dataclass(slots=True)
class TranscriptConfig:
    message_limit: int = 100
    timezone: str = "UTC"


@dataclass(slots=True)
class I18NConfig:
    default_locale: str = "en-US"
    supported_locales: list[str] = field(default_factory=lambda: ["en-US", "pt-BR"])


@dataclass(slots=True)
class AppConfig:
    discord: DiscordConfig = field(default_factory=DiscordConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    tickets: TicketConfig = field(default_factory=TicketConfig)
    transcripts: TranscriptConfig = field(default_factory=TranscriptConfig)
    i18n: I18NConfig = field(default_factory=I18NConfig)
    enabled_extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))


def _get_env_str(key: str, fallback: str | None = None) -> str | None:
    value = os.getenv(key)
    if value is None:
        return fallback
    cleaned = value.strip()
    return cleaned if cleaned else fallback


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _coerce(value: Any, cast: Callable[[Any], T], default: T) -> T:
    if value is None:
        return default
    try:
        return cast(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: Any, default: int) -> int:
    return _coerce(value, int, default)


def _as_limit(value: Any) -> int | None:
    limit = _coerce(value, int, 0)
    return limit if limit > 0 else None


def _deep_get(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    node: Any = data
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")
    return raw


def load_config(config_path: Path) -> AppConfig:
    env_path = config_path.parent.parent / ".env"
    load_dotenv(env_path)
    raw = _load_yaml(config_path)

    # A missing token is not fatal here: the HTTP facade still runs without the bot.
    discord_token = _get_env_str("DISCORD_TOKEN", _deep_get(raw, "discord", "token")) or ""
    if "${" in discord_token:
        discord_token = ""

    discord_cfg = DiscordConfig(
        token=str(discord_token).strip(),
        prefix=str(_get_env_str("BOT_PREFIX", _deep_get(raw, "discord", "prefix", default="!"))),
        status_text=str(_deep_get(raw, "discord", "status_text", default="Support tickets")),
        activity_type=str(_deep_get(raw, "discord", "activity_type", default="watching")),
        allowed_mentions_everyone=_as_bool(
            _deep_get(raw, "discord", "allowed_mentions_everyone"), False
        ),
    )

    http_cfg = HttpConfig(
        enabled=_as_bool(_deep_get(raw, "http", "enabled"), True),
        host=str(_get_env_str("HTTP_HOST", _deep_get(raw, "http", "host", default="0.0.0.0"))),
        port=_as_int(
            _get_env_str("PORT", None),
            _as_int(_deep_get(raw, "http", "port"), 5000),
        ),
        public_url=str(_get_env_str("PUBLIC_URL", _deep_get(raw, "http", "public_url", default=""))),
    )

    logging_cfg = LoggingConfig(
        level=str(_get_env_str("LOG_LEVEL", _deep_get(raw, "logging", "level", default="INFO"))),
        directory=str(_deep_get(raw, "logging", "directory", default="logs")),
        file_name=str(_deep_get(raw, "logging", "file_name", default="bot.log")),
        max_bytes=_as_int(_deep_get(raw, "logging", "max_bytes"), 10_000_000),
        backup_count=_as_int(_deep_get(raw, "logging", "backup_count"), 10),
        json_console=_as_bool(_deep_get(raw, "logging", "json_console"), False),
    )

    storage_cfg = StorageConfig(
        max_closed_tickets=_as_limit(_deep_get(raw, "storage", "max_closed_tickets")),
        max_logs=_as_limit(_deep_get(raw, "storage", "max_logs")),
    )

    ticket_cfg = TicketConfig(
        channel_prefix=str(_deep_get(raw, "tickets", "channel_prefix", default="ticket-")),
        close_delay_seconds=max(0.0, _coerce(_deep_get(raw, "tickets", "close_delay_seconds"), float, 5.0)),
        require_staff=_as_bool(_deep_get(raw, "tickets", "require_staff"), False),
    )

    transcript_cfg = TranscriptConfig(
        message_limit=max(1, min(_as_int(_deep_get(raw, "transcripts", "message_limit"), 100), 100)),
        timezone=str(_deep_get(raw, "transcripts", "timezone", default="UTC")),
    )

    i18n_cfg = I18NConfig(
        default_locale=str(
            _get_env_str("DEFAULT_LOCALE", _deep_get(raw, "i18n", "default_locale", default="en-US"))
        ),
        supported_locales=list(_deep_get(raw, "i18n", "supported_locales", default=["en-US", "pt-BR"])),
    )

    extensions = _deep_get(raw, "enabled_extensions", default=DEFAULT_EXTENSIONS)
    enabled_extensions = [str(ext) for ext in extensions]

    return AppConfig(
        discord=discord_cfg,
        http=http_cfg,
        logging=logging_cfg,
        storage=storage_cfg,
        tickets=ticket_cfg,
        transcripts=transcript_cfg,
        i18n=i18n_cfg,
        enabled_extensions=enabled_extensions,
    )
