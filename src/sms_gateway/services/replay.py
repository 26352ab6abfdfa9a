"""Replay protection for accepted command payloads."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Protocol

import redis

from sms_gateway.core.errors import ReplayError, ReplayStoreError
from sms_gateway.core.settings import settings

logger = logging.getLogger(__name__)


class ReplayStore(Protocol):
    """Records payloads seen within their validity window."""

    def check_and_insert(self, key: bytes, expires_at: int, now: int) -> None: ...


class ReplayGuard:
    """In-process replay cache keyed by the exact decoded payload.

    Entries live until their embedded expiry has passed. The cache is lost on
    restart, so replay protection does not survive one.
    """

    def __init__(self) -> None:
        self._entries: dict[bytes, int] = {}
        self._lock = Lock()

    def check_and_insert(self, key: bytes, expires_at: int, now: int) -> None:
        """Record `key` unless it is already present.

        Sweeping, lookup and insertion run under one lock, so of several
        concurrent calls with the same key exactly one succeeds.

        Raises:
            ReplayError: If `key` is still cached; the cache is left unchanged
        """
        with self._lock:
            self._sweep(now)
            if key in self._entries:
                raise ReplayError()
            self._entries[key] = expires_at

    def _sweep(self, now: int) -> None:
        expired = [key for key, expires_at in self._entries.items() if expires_at < now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Evicted %d expired replay entries", len(expired))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisReplayGuard:
    """Replay cache backed by Redis, shared across processes and restarts.

    A single `SET NX EXAT` performs lookup and insertion atomically; Redis
    expiry takes the place of the sweep.
    """

    def __init__(self, client: redis.Redis, prefix: str = "sms-gateway:replay:") -> None:
        self._client = client
        self._prefix = prefix.encode("utf-8")

    def check_and_insert(self, key: bytes, expires_at: int, now: int) -> None:
        """Record `key` in Redis unless it is already present.

        The entry stays until the second after `expires_at`, matching the
        in-process guard which keeps entries while `expires_at >= now`.

        Raises:
            ReplayError: If `key` is still stored
            ReplayStoreError: If Redis fails or refuses the write
        """
        try:
            stored = self._client.set(
                self._prefix + key,
                expires_at,
                nx=True,
                exat=max(expires_at, now) + 1,
            )
        except redis.RedisError as err:
            raise ReplayStoreError(f"replay cache write failed: {err}") from err
        if not stored:
            raise ReplayError()


_replay_guard: ReplayStore | None = None
_replay_guard_lock = Lock()


def get_replay_guard() -> ReplayStore:
    """Return the process-wide replay guard for the configured backend."""
    global _replay_guard
    with _replay_guard_lock:
        if _replay_guard is None:
            if settings.replay_backend == "redis":
                logger.info("Using Redis replay cache at %s", settings.redis_url)
                client = redis.from_url(settings.redis_url)  # type: ignore[no-untyped-call]
                _replay_guard = RedisReplayGuard(client, prefix=settings.redis_key_prefix)
            else:
                _replay_guard = ReplayGuard()
        return _replay_guard


def reset_replay_guard() -> None:
    """Forget the process-wide replay guard."""
    global _replay_guard
    with _replay_guard_lock:
        _replay_guard = None
