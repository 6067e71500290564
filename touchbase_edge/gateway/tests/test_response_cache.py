import pytest

from touchbase_edge.gateway.models import CacheEntry
from touchbase_edge.gateway.services.response_cache import InMemoryCacheStore

from .conftest import FakeClock


def _entry(body: bytes = b"[]") -> CacheEntry:
    return CacheEntry(
        status_code=200,
        headers=[("content-type", "application/json")],
        body=body,
        stored_at=0.0,
    )


@pytest.mark.asyncio
async def test_get_returns_stored_entry_within_window():
    clock = FakeClock()
    store = InMemoryCacheStore(ttl_seconds=60, timer=clock)
    await store.put("https://gw/rest/v1/a", _entry())

    clock.advance(59)

    cached = await store.get("https://gw/rest/v1/a")
    assert cached is not None
    assert cached.body == b"[]"


@pytest.mark.asyncio
async def test_entry_expires_after_window():
    clock = FakeClock()
    store = InMemoryCacheStore(ttl_seconds=60, timer=clock)
    await store.put("key", _entry())

    clock.advance(61)

    assert await store.get("key") is None


@pytest.mark.asyncio
async def test_later_write_replaces_whole_entry():
    store = InMemoryCacheStore(ttl_seconds=60)
    await store.put("key", _entry(b"old"))
    await store.put("key", _entry(b"new"))

    cached = await store.get("key")
    assert cached.body == b"new"
    assert len(store) == 1


@pytest.mark.asyncio
async def test_least_recently_used_entry_is_evicted():
    store = InMemoryCacheStore(ttl_seconds=60, max_size=2)
    await store.put("a", _entry())
    await store.put("b", _entry())
    await store.get("a")
    await store.put("c", _entry())

    assert await store.get("a") is not None
    assert await store.get("b") is None
    assert await store.get("c") is not None


@pytest.mark.asyncio
async def test_clear():
    store = InMemoryCacheStore()
    await store.put("key", _entry())

    store.clear()

    assert await store.get("key") is None


def test_entries_are_immutable():
    entry = _entry()
    with pytest.raises(Exception):
        entry.body = b"changed"
