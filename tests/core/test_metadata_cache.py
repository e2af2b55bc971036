"""Tests for the LRU/TTL metadata cache."""
import pytest

from core.metadata_cache import MetadataCache
from services.url_scraper import UrlMetadata


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def meta(title: str) -> UrlMetadata:
    return UrlMetadata(title=title, description="")


def test__get__miss_returns_none() -> None:
    cache = MetadataCache()
    assert cache.get("https://example.com") is None


def test__set_then_get__returns_stored_metadata() -> None:
    cache = MetadataCache()
    cache.set("https://example.com", meta("Example"))
    assert cache.get("https://example.com") == meta("Example")
    assert "https://example.com" in cache
    assert len(cache) == 1


def test__set__evicts_least_recently_used_when_full() -> None:
    cache = MetadataCache(max_size=2)
    cache.set("https://a.com", meta("A"))
    cache.set("https://b.com", meta("B"))
    # Touch A so B becomes least recently used
    assert cache.get("https://a.com") is not None

    cache.set("https://c.com", meta("C"))

    assert len(cache) == 2
    assert "https://b.com" not in cache
    assert cache.get("https://a.com") == meta("A")
    assert cache.get("https://c.com") == meta("C")


def test__set__overwrite_does_not_grow_cache() -> None:
    cache = MetadataCache(max_size=2)
    cache.set("https://a.com", meta("A"))
    cache.set("https://a.com", meta("A2"))
    assert len(cache) == 1
    assert cache.get("https://a.com") == meta("A2")


def test__get__expired_entry_is_dropped() -> None:
    clock = FakeClock()
    cache = MetadataCache(ttl_seconds=60, clock=clock)
    cache.set("https://a.com", meta("A"))

    clock.now = 59.0
    assert cache.get("https://a.com") == meta("A")

    clock.now = 60.0
    assert cache.get("https://a.com") is None
    assert "https://a.com" not in cache


def test__clear__removes_all_entries() -> None:
    cache = MetadataCache()
    cache.set("https://a.com", meta("A"))
    cache.clear()
    assert len(cache) == 0


def test__init__rejects_non_positive_size() -> None:
    with pytest.raises(ValueError, match="max_size"):
        MetadataCache(max_size=0)
