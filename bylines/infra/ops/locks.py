"""Verrous par clé (Redis ou en mémoire).

- LocalKeyedLock: un `threading.Lock` par clé, libéré du registre quand plus personne ne l'attend.
- RedisKeyedLock: `redis.Redis.lock` pour sérialiser entre plusieurs workers/processus.

Règle de clé recommandée:
    bylines:lock:{scope}:{id}

Utiliser `make_lock_key("user", user_id)` pour composer les clés de façon cohérente.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

import redis
import structlog

from bylines.infra.base import KeyedLock

log = structlog.get_logger(__name__)


def make_lock_key(scope: str, *parts: object) -> str:
    """Compose une clé de verrou stable `bylines:lock:{scope}:{parts}`."""
    safe_parts = [str(p).replace("\n", " ").replace("\r", " ") for p in parts]
    suffix = ":".join(safe_parts)
    return f"bylines:lock:{scope}:{suffix}" if suffix else f"bylines:lock:{scope}"


class LocalKeyedLock(KeyedLock):
    """Verrous en mémoire, valables pour un seul processus."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._waiters: dict[str, int] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._waiters[key] -= 1
                if not self._waiters[key]:
                    del self._waiters[key]
                    del self._locks[key]

    def active_keys(self) -> list[str]:
        """Clés actuellement détenues ou attendues (diagnostic)."""
        with self._guard:
            return sorted(self._locks)


class RedisKeyedLock(KeyedLock):
    """Verrous distribués adossés à Redis (expiration automatique après `timeout`)."""

    def __init__(
        self,
        client: redis.Redis,
        timeout: float = 10.0,
        blocking_timeout: float | None = None,
    ) -> None:
        """Construit le verrou; `blocking_timeout` None attend indéfiniment."""
        self.client = client
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout

    @classmethod
    def from_url(cls, url: str, timeout: float = 10.0) -> RedisKeyedLock:
        """Crée un client Redis à partir de l'URL fournie."""
        return cls(redis.Redis.from_url(url, decode_responses=True), timeout=timeout)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self.client.lock(key, timeout=self.timeout, blocking_timeout=self.blocking_timeout)
        if not lock.acquire():
            raise TimeoutError(f"could not acquire lock {key}")
        try:
            yield
        finally:
            try:
                lock.release()
            except redis.exceptions.LockError:
                # expiré pendant la section critique
                log.warning("lock_release_failed", key=key)
