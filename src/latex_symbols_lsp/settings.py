"""Per-document settings cache.

Each open document URI maps to the last settings fetched for it. A fetch is
started at most once per URI at a time: concurrent callers await the same
in-flight task, and the entry is stored only once that task completes and
only if the URI was not evicted (or the whole cache cleared) meanwhile.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Awaitable, Callable

from pydantic import ValidationError

from latex_symbols_lsp.schema import DEFAULT_SETTINGS, Settings

logger = logging.getLogger(__name__)

SETTINGS_SECTION = "latexSymbolsLsp"

Fetcher = Callable[[str], Awaitable[object]]


def parse_settings(raw: object, default: Settings = DEFAULT_SETTINGS) -> Settings:
    if isinstance(raw, Settings):
        return raw
    if not isinstance(raw, Mapping):
        return default
    aliases = {name: field.alias or name for name, field in Settings.model_fields.items()}
    merged = default.model_dump(by_alias=True)
    for key, value in raw.items():
        if value is None:
            continue
        merged[aliases.get(key, key)] = value
    try:
        return Settings.model_validate(merged)
    except ValidationError as exc:
        logger.warning("invalid %s settings, using defaults: %s", SETTINGS_SECTION, exc)
        return default


class SettingsCache:
    def __init__(self, fetch: Fetcher, default: Settings = DEFAULT_SETTINGS):
        self._fetch = fetch
        self.default = default
        self._entries: dict[str, Settings] = {}
        self._pending: dict[str, asyncio.Task[Settings]] = {}

    def __contains__(self, uri: object) -> bool:
        return uri in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, uri: str) -> Settings | None:
        return self._entries.get(uri)

    async def settings_for(self, uri: str) -> Settings:
        cached = self._entries.get(uri)
        if cached is not None:
            return cached
        task = self._pending.get(uri)
        if task is None:
            task = asyncio.ensure_future(self._populate(uri))
            self._pending[uri] = task
        return await asyncio.shield(task)

    async def _populate(self, uri: str) -> Settings:
        current = asyncio.current_task()
        cacheable = True
        try:
            raw = await self._fetch(uri)
        except Exception:
            logger.warning("configuration fetch failed for %s", uri, exc_info=True)
            raw = None
            cacheable = False
        settings = parse_settings(raw, self.default)
        if self._pending.get(uri) is current:
            del self._pending[uri]
            if cacheable:
                self._entries[uri] = settings
        return settings

    def evict(self, uri: str) -> None:
        self._entries.pop(uri, None)
        self._pending.pop(uri, None)

    def clear(self) -> None:
        self._entries.clear()
        self._pending.clear()
