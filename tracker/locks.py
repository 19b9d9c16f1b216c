"""Per-channel serialization for load-mutate-save cycles."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class ChannelLocks:
    """Hands out one lock per channel ID so same-channel work runs one at a time."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, channel_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(channel_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[channel_id] = lock
            return lock

    @contextmanager
    def hold(self, channel_id: str) -> Iterator[None]:
        lock = self._lock_for(channel_id)
        with lock:
            yield


__all__ = ["ChannelLocks"]
