"""Shared/exclusive locks keyed by repository path.

Writers (metadata rewrite, file deletion) take `write_lock(key)`; readers take
`read_lock(key)`. Keys are `repository_id:path` strings, so different
repositories and different paths never contend.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class _ReadWriteLock:
    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()


class PathLockRegistry:
    """Hands out one read/write lock per key; unused locks are dropped."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, _ReadWriteLock] = {}
        self._users: dict[str, int] = {}

    def _checkout(self, key: str) -> _ReadWriteLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = _ReadWriteLock()
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: str) -> None:
        with self._guard:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def active_keys(self) -> set[str]:
        with self._guard:
            return set(self._locks)

    @contextmanager
    def read_lock(self, key: str) -> Iterator[None]:
        lock = self._checkout(key)
        lock.acquire_read()
        try:
            yield
        finally:
            lock.release_read()
            self._checkin(key)

    @contextmanager
    def write_lock(self, key: str) -> Iterator[None]:
        lock = self._checkout(key)
        lock.acquire_write()
        try:
            yield
        finally:
            lock.release_write()
            self._checkin(key)
