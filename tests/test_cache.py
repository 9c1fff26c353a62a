from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from cache import TTLCache


@pytest.mark.asyncio
async def test_get_or_fetch_reuses_fresh_entry_and_refetches_after_expiry(cache, clock) -> None:
    fetch = AsyncMock(side_effect=["first", "second"])

    assert await cache.get_or_fetch("k", 1.0, fetch) == "first"
    clock.advance(0.999)
    assert await cache.get_or_fetch("k", 1.0, fetch) == "first"
    assert fetch.await_count == 1

    clock.advance(0.002)
    assert await cache.get_or_fetch("k", 1.0, fetch) == "second"
    assert fetch.await_count == 2


@pytest.mark.asyncio
async def test_entry_is_stale_exactly_at_ttl(cache, clock) -> None:
    fetch = AsyncMock(side_effect=[1, 2])

    await cache.get_or_fetch("k", 1.0, fetch)
    clock.advance(1.0)

    assert await cache.get_or_fetch("k", 1.0, fetch) == 2


@pytest.mark.asyncio
async def test_none_ttl_uses_default(clock) -> None:
    cache = TTLCache(default_ttl=10, clock=clock)
    fetch = AsyncMock(side_effect=["a", "b"])

    await cache.get_or_fetch("k", None, fetch)
    clock.advance(9)
    assert await cache.get_or_fetch("k", None, fetch) == "a"
    clock.advance(2)
    assert await cache.get_or_fetch("k", None, fetch) == "b"


@pytest.mark.asyncio
async def test_failed_refetch_propagates_and_keeps_previous_entry(cache, clock) -> None:
    await cache.get_or_fetch("k", 1.0, AsyncMock(return_value=["go"]))
    stored_at = cache.get_entry("k").stored_at
    clock.advance(5)

    failing = AsyncMock(side_effect=RuntimeError("store down"))
    with pytest.raises(RuntimeError, match="store down"):
        await cache.get_or_fetch("k", 1.0, failing)

    entry = cache.get_entry("k")
    assert entry.value == ["go"]
    assert entry.stored_at == stored_at

    # Strict freshness: the next call retries instead of serving the stale value.
    with pytest.raises(RuntimeError):
        await cache.get_or_fetch("k", 1.0, failing)
    assert failing.await_count == 2

    recovered = AsyncMock(return_value=["go", "rust"])
    assert await cache.get_or_fetch("k", 1.0, recovered) == ["go", "rust"]


@pytest.mark.asyncio
async def test_failed_first_fetch_stores_nothing(cache) -> None:
    with pytest.raises(ValueError):
        await cache.get_or_fetch("k", 1.0, AsyncMock(side_effect=ValueError("boom")))

    assert "k" not in cache
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_invalidate_forces_refetch(cache) -> None:
    fetch = AsyncMock(side_effect=["old", "new"])

    await cache.get_or_fetch("k", 60, fetch)
    cache.invalidate("k")
    cache.invalidate("missing")

    assert await cache.get_or_fetch("k", 60, fetch) == "new"


@pytest.mark.asyncio
async def test_clear_all_drops_every_key(cache) -> None:
    await cache.get_or_fetch("a", 60, AsyncMock(return_value=1))
    await cache.get_or_fetch("b", 60, AsyncMock(return_value=2))
    assert len(cache) == 2

    cache.clear_all()

    assert len(cache) == 0
    assert cache.get_entry("a") is None


@pytest.mark.asyncio
async def test_keys_are_independent(cache, clock) -> None:
    await cache.get_or_fetch("short", 1.0, AsyncMock(return_value="s"))
    await cache.get_or_fetch("long", 100.0, AsyncMock(return_value="l"))
    clock.advance(2)

    refetch_short = AsyncMock(return_value="s2")
    refetch_long = AsyncMock(return_value="l2")

    assert await cache.get_or_fetch("short", 1.0, refetch_short) == "s2"
    assert await cache.get_or_fetch("long", 100.0, refetch_long) == "l"
    refetch_long.assert_not_awaited()
