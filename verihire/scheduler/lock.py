"""In-process locks built on threading.Lock.

``acquire_resend_lock`` keeps resend sweeps from overlapping: a non-blocking
acquire, so a tick that finds a sweep running simply skips.

``KeyedLock`` serialises work per key (e.g. credential issuance per
candidate).  Cross-process exclusion is the store's job, not this one's.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

_resend_lock = threading.Lock()


def acquire_resend_lock() -> bool:
    """Try to acquire the resend-sweep lock. Returns False if already held."""
    return _resend_lock.acquire(blocking=False)


def release_resend_lock() -> None:
    """Release the resend-sweep lock. Safe to call when not held."""
    try:
        _resend_lock.release()
    except RuntimeError:
        pass  # Already released


def is_resend_running() -> bool:
    return _resend_lock.locked()


class KeyedLock:
    """One lock per key, dropped when the last holder leaves."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, tuple[threading.Lock, int]] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock, holders = self._locks.get(key, (threading.Lock(), 0))
            self._locks[key] = (lock, holders + 1)
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                _, holders = self._locks[key]
                if holders <= 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, holders - 1)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
