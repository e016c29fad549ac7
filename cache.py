from __future__ import annotations

"""Advisory cache for derived medical read-models.

Policy: the cache never fails a call. A backend error on ``get`` is a miss, on
``set``/``delete`` it is a no-op; both are logged (rate-limited). Every consumer
must recompute on a miss, so the cache can be disabled or broken without
changing any answer.

Player generations
------------------
Per-player read-models (compliance, load management) embed the player's
current generation token in their keys. Every write to that player's injuries,
wellness or availability bumps the token, so older entries are never read
again and simply age out.
"""

import copy
import logging
import threading
import uuid
from typing import Any, Dict, Optional, Protocol, Tuple

import clock
import config

logger = logging.getLogger(__name__)
_WARN_COUNTS: Dict[str, int] = {}


def _warn_limited(code: str, msg: str, *, limit: int = 5) -> None:
    n = _WARN_COUNTS.get(code, 0)
    if n < limit:
        logger.warning("%s %s", code, msg, exc_info=True)
    _WARN_COUNTS[code] = n + 1


def build_cache_key(namespace: str, *parts: Any) -> str:
    """Deterministic key: ``namespace:part1:part2``.

    ``None`` parts render as ``-`` so positional meaning is kept.
    """
    ns = str(namespace or "").strip()
    if not ns:
        raise ValueError("cache namespace is required")
    rendered = ["-" if p is None else str(p).strip() for p in parts]
    return ":".join([ns, *rendered])


class CacheBackend(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryTTLCache:
    """Process-local TTL cache. Expiry is evaluated against ``clock.now()``.

    Expired entries are dropped when read, and swept from the whole map on the
    first ``set`` after every ``sweep_interval_s`` seconds.
    """

    def __init__(self, *, sweep_interval_s: int = 60) -> None:
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self.sweep_interval_s = max(0, int(sweep_interval_s))
        self._next_sweep_at = 0.0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _sweep(self, now_ts: float) -> None:
        expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now_ts]
        for k in expired:
            del self._entries[k]
        self._next_sweep_at = now_ts + self.sweep_interval_s
        if expired:
            logger.debug("cache sweep removed=%d remaining=%d", len(expired), len(self._entries))

    def get(self, key: str) -> Any:
        now_ts = clock.now().timestamp()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= now_ts:
                del self._entries[key]
                return None
        return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        now_ts = clock.now().timestamp()
        expires_at = now_ts + max(0, int(ttl_seconds))
        with self._lock:
            if now_ts >= self._next_sweep_at:
                self._sweep(now_ts)
            self._entries[key] = (expires_at, copy.deepcopy(value))

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class Cache:
    """Failure-tolerant facade over a :class:`CacheBackend`."""

    def __init__(self, backend: Optional[CacheBackend] = None, *, enabled: bool = True) -> None:
        self.backend: CacheBackend = backend if backend is not None else MemoryTTLCache()
        self.enabled = bool(enabled)

    def get(self, key: str) -> Any:
        if not self.enabled:
            return None
        try:
            return self.backend.get(key)
        except Exception:
            _warn_limited("CACHE_GET_FAILED", f"key={key!r}")
            return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if not self.enabled:
            return
        try:
            self.backend.set(key, value, int(ttl_seconds))
        except Exception:
            _warn_limited("CACHE_SET_FAILED", f"key={key!r}")

    def delete(self, key: str) -> None:
        if not self.enabled:
            return
        try:
            self.backend.delete(key)
        except Exception:
            _warn_limited("CACHE_DELETE_FAILED", f"key={key!r}")


_CACHE = Cache(enabled=config.CACHE_ENABLED)


def get_cache() -> Cache:
    return _CACHE


def set_cache(cache: Cache) -> None:
    global _CACHE
    _CACHE = cache


# ---------------------------------------------------------------------------
# Player generations
# ---------------------------------------------------------------------------

PLAYER_GENERATION_NS = "medical_gen"
# Must outlive every per-player read-model TTL.
PLAYER_GENERATION_TTL_S: int = 86400
_INITIAL_GENERATION = "0"


def player_generation(player_id: Any) -> str:
    gen = get_cache().get(build_cache_key(PLAYER_GENERATION_NS, player_id))
    return _INITIAL_GENERATION if gen is None else str(gen)


def bump_player_generation(player_id: Any) -> None:
    """Retire every cached read-model derived from this player's medical data."""
    get_cache().set(
        build_cache_key(PLAYER_GENERATION_NS, player_id),
        uuid.uuid4().hex[:12],
        PLAYER_GENERATION_TTL_S,
    )
