"""Process-local query result cache.

Read results are keyed by a fingerprint of the exact SQL text and its ordered
parameters. Entries live for a fixed TTL (5 minutes by default) and can be
evicted early by table name when a write touches that table.

Backed by cachetools.TTLCache: every put first purges all expired entries,
walking an expiry-ordered list, so cleanup is amortized over writes and no
timer thread is needed. Lossy and best-effort — nothing is persisted.
"""

import hashlib
import json
import logging
import math
import re
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from cachetools import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0

Clock = Callable[[], float]


def _encode_param(value: Any) -> dict[str, str]:
    # tagged by type so a non-JSON value never collides with its own text
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"$bytes": bytes(value).hex()}
    return {f"${type(value).__name__}": str(value)}


def compute_fingerprint(sql: str, params: Sequence[Any] | None = None) -> str:
    """Deterministic key for a statement + its ordered parameters."""
    serialized = json.dumps(list(params or []), ensure_ascii=False, default=_encode_param)
    content = f"{sql}\x00{serialized}"
    return f"q:{hashlib.sha256(content.encode()).hexdigest()}"


@dataclass(frozen=True)
class CacheEntry:
    fingerprint: str
    sql: str
    payload: Any
    stored_at: float


class QueryCache:
    """TTL cache of read results with table-scoped invalidation.

    Safe to share between tasks and threads: every operation runs under a
    single lock and never performs I/O while holding it.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Clock = time.monotonic):
        self._clock = clock
        self._entries: TTLCache = TTLCache(maxsize=math.inf, ttl=ttl_seconds, timer=clock)
        self._lock = threading.Lock()
        self._epoch = 0
        self.hits = 0
        self.misses = 0

    @property
    def ttl(self) -> float:
        return self._entries.ttl

    @property
    def epoch(self) -> int:
        """Bumped by every invalidation or clear. Readers capture it before fetching."""
        with self._lock:
            return self._epoch

    def get(self, fingerprint: str) -> CacheEntry | None:
        """Return the live entry for ``fingerprint``; stale entries count as absent."""
        with self._lock:
            entry = self._entries.get(fingerprint)
            if entry is None:
                self.misses += 1
                return None
            self.hits += 1
            return entry

    def put(self, fingerprint: str, payload: Any, *, sql: str, epoch: int | None = None) -> CacheEntry | None:
        """Store ``payload`` (overwriting any previous entry) stamped with now.

        When ``epoch`` is given and an invalidation has happened since it was
        read, the payload may predate a write and is not stored.
        """
        entry = CacheEntry(
            fingerprint=fingerprint,
            sql=sql,
            payload=payload,
            stored_at=self._clock(),
        )
        with self._lock:
            if epoch is not None and epoch != self._epoch:
                logger.debug("Cache SET skipped | invalidated during fetch | key=%s", fingerprint[:20])
                return None
            self._entries[fingerprint] = entry
        return entry

    def invalidate_table(self, table: str) -> int:
        """Evict every entry whose SQL mentions ``table`` as a whole word."""
        pattern = re.compile(rf"\b{re.escape(table)}\b", re.IGNORECASE)
        evicted = 0
        with self._lock:
            self._epoch += 1
            self._entries.expire()
            for fingerprint in list(self._entries):
                entry = self._entries.get(fingerprint)
                if entry is not None and pattern.search(entry.sql):
                    self._entries.pop(fingerprint, None)
                    evicted += 1
        if evicted:
            logger.info("Cache invalidated | table=%s | evicted=%d", table, evicted)
        return evicted

    def clear(self) -> int:
        """Drop every entry. Returns how many live entries were dropped."""
        with self._lock:
            self._epoch += 1
            dropped = len(self._entries)
            self._entries.clear()
        logger.info("Cache cleared | dropped=%d", dropped)
        return dropped

    def purge_expired(self) -> int:
        """Evict entries past their TTL now instead of waiting for the next put."""
        with self._lock:
            return len(self._entries.expire())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict[str, Any]:
        with self._lock:
            size = len(self._entries)
        return {
            "entries": size,
            "hits": self.hits,
            "misses": self.misses,
            "ttl_seconds": self.ttl,
        }
