# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Attribute cache for bucketfs.

Holds at most one attribute snapshot per path, valid for a fixed TTL
measured from its capture time. A snapshot is handed out once and then
dropped: the cache only bridges the gap between a metadata pre-fetch
(a directory listing, a size check) and the single consumer that
follows it. It is not a read-through cache shared by independent
callers.
"""

import time
from threading import Lock
from typing import Callable, Dict, Optional

from .attributes import AttributeKind, BasicAttributes
from ..utils import logger

DEFAULT_TTL = 60  # seconds

class AttributeCache:
    """
    One-shot, TTL-bounded attribute snapshots keyed by path.

    Attributes:
        ttl (float): Validity window in seconds. 0 disables caching.
        clock (Callable[[], float]): Time source, time.time by default.
    """

    def __init__(self, ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self.clock = clock
        self._slots: Dict[str, BasicAttributes] = {}
        self._next_sweep = 0.0
        self._lock = Lock()

    def is_fresh(self, snapshot: Optional[BasicAttributes]) -> bool:
        """True iff the snapshot was captured less than ``ttl`` seconds ago."""
        if snapshot is None or self.ttl <= 0:
            return False
        return self.clock() - snapshot.captured_at < self.ttl

    def put(self, path: str, snapshot: BasicAttributes) -> BasicAttributes:
        """
        Store a snapshot for a path, replacing any previous one.

        The snapshot is stamped with the current time. Expired snapshots of
        other paths are dropped, at most once per TTL window.
        """
        now = self.clock()
        snapshot.captured_at = now
        if self.ttl > 0:
            with self._lock:
                if now >= self._next_sweep:
                    self._sweep(now)
                self._slots[path] = snapshot
        return snapshot

    def _sweep(self, now: float) -> None:
        expired = [path for path, snapshot in self._slots.items() if now - snapshot.captured_at >= self.ttl]
        for path in expired:
            del self._slots[path]
        if expired:
            logger.debug(f"Dropped {len(expired)} expired attribute snapshots")
        self._next_sweep = now + self.ttl

    def capture(self, path: str, fetch: Callable[[], BasicAttributes]) -> BasicAttributes:
        """
        Fetch fresh attributes, store and return them.

        Args:
            path (str): Path the snapshot belongs to.
            fetch (Callable): Performs the store round-trip. NotFound and
                TransportError propagate; the slot is left untouched.

        Returns:
            BasicAttributes: The new snapshot.
        """
        start_time = time.time()
        snapshot = fetch()
        logger.debug(f"Captured attributes for {path} in {time.time() - start_time:.4f} seconds")
        return self.put(path, snapshot)

    def consume(self, path: str, kind: AttributeKind = AttributeKind.BASIC) -> Optional[BasicAttributes]:
        """
        Take the stored snapshot for a path if it is fresh and of a suitable kind.

        A fresh snapshot that matches is removed from the cache and
        returned. A stale snapshot is discarded. A fresh snapshot of the
        wrong kind (basic, when posix is requested) is left in place.

        Returns:
            BasicAttributes or None: The snapshot, or None on a miss.
        """
        with self._lock:
            snapshot = self._slots.get(path)
            if snapshot is None:
                return None
            if not self.is_fresh(snapshot):
                logger.debug(f"Attribute snapshot for {path} expired")
                del self._slots[path]
                return None
            if not snapshot.satisfies(kind):
                return None
            del self._slots[path]
            return snapshot

    def read(self, path: str, kind: AttributeKind, fetch: Callable[[], BasicAttributes]) -> BasicAttributes:
        """
        Return attributes for a path, from the cache when possible.

        A fresh, suitable snapshot is consumed without a network call;
        otherwise a new one is captured, stored and returned.
        """
        snapshot = self.consume(path, kind)
        if snapshot is not None:
            logger.debug(f"Attribute cache HIT for {path} ({kind.value})")
            return snapshot
        logger.debug(f"Attribute cache MISS for {path} ({kind.value})")
        return self.capture(path, fetch)

    def peek(self, path: str) -> Optional[BasicAttributes]:
        """Return the stored snapshot without consuming it."""
        with self._lock:
            return self._slots.get(path)

    def invalidate(self, path: str) -> None:
        """Drop the snapshot of a path, if any."""
        with self._lock:
            self._slots.pop(path, None)

    def clear(self) -> None:
        with self._lock:
            self._slots.clear()

    def __len__(self):
        """Number of snapshots that are still fresh."""
        with self._lock:
            self._sweep(self.clock())
            return len(self._slots)
