"""Bounded in-process cache for fetched URL metadata."""
import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from services.url_scraper import UrlMetadata

logger = logging.getLogger(__name__)


class MetadataCache:
    """
    Least-recently-used cache of URL metadata with a per-entry TTL.

    Holds at most `max_size` entries; inserting into a full cache evicts the
    least recently used one. Entries older than `ttl_seconds` are treated as
    misses and dropped on access.

    The clock is injectable so tests can control expiry deterministically.
    """

    def __init__(
        self,
        max_size: int = 1024,
        ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty cache."""
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, tuple[float, UrlMetadata]]" = OrderedDict()

    def get(self, url: str) -> "UrlMetadata | None":
        """Return cached metadata for `url`, or None on a miss or expired entry."""
        entry = self._entries.get(url)
        if entry is None:
            logger.debug("metadata_cache_miss url=%s", url)
            return None

        stored_at, metadata = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[url]
            logger.debug("metadata_cache_expired url=%s", url)
            return None

        self._entries.move_to_end(url)
        logger.debug("metadata_cache_hit url=%s", url)
        return metadata

    def set(self, url: str, metadata: "UrlMetadata") -> None:
        """Store metadata for `url`, evicting the least recently used entry if full."""
        if url in self._entries:
            self._entries.move_to_end(url)
        self._entries[url] = (self._clock(), metadata)
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("metadata_cache_evict url=%s", evicted)

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)
