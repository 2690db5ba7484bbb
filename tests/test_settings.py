from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError

from latex_symbols_lsp.schema import DEFAULT_SETTINGS, Settings
from latex_symbols_lsp.settings import SettingsCache, parse_settings


class RecordingFetcher:
    def __init__(self, result: object = None, *, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls: list[str] = []
        self.gate: asyncio.Event | None = None

    async def __call__(self, uri: str) -> object:
        self.calls.append(uri)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


def test_settings_defaults_and_aliases() -> None:
    assert DEFAULT_SETTINGS.max_number_of_problems == 1000
    assert DEFAULT_SETTINGS.enable_auto_replacement is True
    settings = Settings.model_validate({"maxNumberOfProblems": 3, "enableAutoReplacement": False})
    assert settings.max_number_of_problems == 3
    assert settings.enable_auto_replacement is False
    assert Settings(max_number_of_problems=2).max_number_of_problems == 2
    with pytest.raises(ValidationError):
        Settings(maxNumberOfProblems=-1)


def test_parse_settings_merges_over_default() -> None:
    default = Settings(maxNumberOfProblems=5, enableAutoReplacement=False)
    assert parse_settings(None, default) is default
    assert parse_settings("nonsense", default) is default
    merged = parse_settings({"maxNumberOfProblems": 7}, default)
    assert merged == Settings(maxNumberOfProblems=7, enableAutoReplacement=False)
    by_name = parse_settings({"enable_auto_replacement": True, "maxNumberOfProblems": None}, default)
    assert by_name == Settings(maxNumberOfProblems=5, enableAutoReplacement=True)


def test_parse_settings_invalid_payload_falls_back() -> None:
    assert parse_settings({"maxNumberOfProblems": "many"}) == DEFAULT_SETTINGS
    assert parse_settings({"maxNumberOfProblems": -3}) == DEFAULT_SETTINGS


def test_cache_fetches_once_per_uri() -> None:
    fetch = RecordingFetcher({"maxNumberOfProblems": 2})
    cache = SettingsCache(fetch)

    async def _run() -> None:
        first = await cache.settings_for("file:///a.tex")
        second = await cache.settings_for("file:///a.tex")
        assert first is second
        assert first.max_number_of_problems == 2
        await cache.settings_for("file:///b.tex")

    asyncio.run(_run())
    assert fetch.calls == ["file:///a.tex", "file:///b.tex"]
    assert "file:///a.tex" in cache
    assert len(cache) == 2


def test_concurrent_requests_share_one_fetch() -> None:
    fetch = RecordingFetcher({"maxNumberOfProblems": 4})
    cache = SettingsCache(fetch)

    async def _run() -> list[Settings]:
        fetch.gate = asyncio.Event()
        waiters = [asyncio.ensure_future(cache.settings_for("file:///a.tex")) for _ in range(3)]
        await asyncio.sleep(0)
        assert cache.get("file:///a.tex") is None
        fetch.gate.set()
        return list(await asyncio.gather(*waiters))

    results = asyncio.run(_run())
    assert fetch.calls == ["file:///a.tex"]
    assert {r.max_number_of_problems for r in results} == {4}


def test_missing_configuration_caches_the_default() -> None:
    fetch = RecordingFetcher(None)
    default = Settings(maxNumberOfProblems=9)
    cache = SettingsCache(fetch, default)
    assert asyncio.run(cache.settings_for("file:///a.tex")) == default
    assert cache.get("file:///a.tex") == default


def test_failed_fetch_falls_back_without_caching() -> None:
    fetch = RecordingFetcher(error=RuntimeError("client went away"))
    cache = SettingsCache(fetch)

    async def _run() -> None:
        assert await cache.settings_for("file:///a.tex") == DEFAULT_SETTINGS
        assert await cache.settings_for("file:///a.tex") == DEFAULT_SETTINGS

    asyncio.run(_run())
    assert fetch.calls == ["file:///a.tex", "file:///a.tex"]
    assert "file:///a.tex" not in cache


def test_evict_and_clear_force_refetch() -> None:
    fetch = RecordingFetcher({"maxNumberOfProblems": 1})
    cache = SettingsCache(fetch)

    async def _run() -> None:
        await cache.settings_for("file:///a.tex")
        await cache.settings_for("file:///b.tex")
        cache.evict("file:///a.tex")
        assert "file:///a.tex" not in cache
        assert "file:///b.tex" in cache
        await cache.settings_for("file:///a.tex")
        cache.clear()
        assert len(cache) == 0
        await cache.settings_for("file:///b.tex")

    asyncio.run(_run())
    assert fetch.calls == ["file:///a.tex", "file:///b.tex", "file:///a.tex", "file:///b.tex"]


def test_fetch_finishing_after_clear_is_not_stored() -> None:
    fetch = RecordingFetcher({"maxNumberOfProblems": 1})
    cache = SettingsCache(fetch)

    async def _run() -> Settings:
        fetch.gate = asyncio.Event()
        waiter = asyncio.ensure_future(cache.settings_for("file:///a.tex"))
        await asyncio.sleep(0)
        cache.clear()
        fetch.gate.set()
        return await waiter

    result = asyncio.run(_run())
    assert result.max_number_of_problems == 1
    assert "file:///a.tex" not in cache
