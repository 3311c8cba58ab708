"""Tests des verrous par clé (local et Redis simulé)."""

import threading
import time
from unittest.mock import MagicMock

import pytest
import redis

from bylines.infra.ops.locks import LocalKeyedLock, RedisKeyedLock, make_lock_key


def test_make_lock_key() -> None:
    assert make_lock_key("user", 7) == "bylines:lock:user:7"
    assert make_lock_key("user", "a\nb", 2) == "bylines:lock:user:a b:2"
    assert make_lock_key("global") == "bylines:lock:global"


def test_local_lock_serializes_same_key() -> None:
    """Teste qu'une même clé n'est détenue que par un thread à la fois."""
    locks = LocalKeyedLock()
    inside = 0
    peak = 0
    guard = threading.Lock()

    def worker():
        nonlocal inside, peak
        with locks.hold("k"):
            with guard:
                inside += 1
                peak = max(peak, inside)
            time.sleep(0.01)
            with guard:
                inside -= 1

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert peak == 1
    assert locks.active_keys() == []


def test_local_lock_distinct_keys_do_not_block() -> None:
    """Teste que deux clés différentes sont indépendantes."""
    locks = LocalKeyedLock()
    with locks.hold("a"):
        acquired = threading.Event()

        def other():
            with locks.hold("b"):
                acquired.set()

        t = threading.Thread(target=other)
        t.start()
        assert acquired.wait(timeout=1)
        t.join()
        assert locks.active_keys() == ["a"]


def test_local_lock_released_on_error() -> None:
    locks = LocalKeyedLock()
    with pytest.raises(ValueError):
        with locks.hold("k"):
            raise ValueError("boom")
    assert locks.active_keys() == []


def test_redis_lock_acquire_and_release() -> None:
    """Teste l'usage de `client.lock` avec les délais configurés."""
    client = MagicMock()
    lock = client.lock.return_value
    lock.acquire.return_value = True

    with RedisKeyedLock(client, timeout=5.0, blocking_timeout=1.0).hold("bylines:lock:user:7"):
        lock.release.assert_not_called()

    client.lock.assert_called_once_with("bylines:lock:user:7", timeout=5.0, blocking_timeout=1.0)
    lock.release.assert_called_once()


def test_redis_lock_timeout() -> None:
    """Teste l'erreur quand le verrou n'a pas pu être acquis."""
    client = MagicMock()
    client.lock.return_value.acquire.return_value = False
    with pytest.raises(TimeoutError):
        with RedisKeyedLock(client).hold("k"):
            pass


def test_redis_lock_expired_release_is_logged_not_raised() -> None:
    """Teste qu'un verrou expiré pendant la section critique ne fait pas échouer l'appel."""
    client = MagicMock()
    lock = client.lock.return_value
    lock.acquire.return_value = True
    lock.release.side_effect = redis.exceptions.LockError("expired")
    with RedisKeyedLock(client).hold("k"):
        pass
    lock.release.assert_called_once()
