from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

LOGGER = logging.getLogger(__name__)


class I18N:
    """Flat key -> template catalogues, one ``<locale>.json`` file per locale.

    Lookups fall back from the requested locale to the default locale and
    finally to the key itself, so a missing translation never raises.
    """

    def __init__(self, base_dir: Path, default_locale: str, supported: Iterable[str] | None = None) -> None:
        self.base_dir = base_dir
        self.supported = tuple(supported or (default_locale,))
        if default_locale not in self.supported:
            LOGGER.warning("Default locale %s is not supported, using %s", default_locale, self.supported[0])
            default_locale = self.supported[0]
        self.default_locale = default_locale
        self._catalogues: dict[str, dict[str, str]] = {}

    def catalogue(self, locale: str) -> dict[str, str]:
        cached = self._catalogues.get(locale)
        if cached is not None:
            return cached
        path = self.base_dir / f"{locale}.json"
        entries: dict[str, str] = {}
        if path.exists():
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
            if isinstance(payload, dict):
                entries = {str(k): str(v) for k, v in payload.items()}
        else:
            LOGGER.warning("Locale catalogue not found: %s", path)
        self._catalogues[locale] = entries
        return entries

    def t(self, key: str, locale: str | None = None, **kwargs: object) -> str:
        template = key
        for candidate in (locale or self.default_locale, self.default_locale):
            found = self.catalogue(candidate).get(key)
            if found is not None:
                template = found
                break
        return template.format(**kwargs) if kwargs else template
