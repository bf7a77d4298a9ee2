"""Per-location critical sections.

Every mutation of a location (check-in, transition, completion, table change)
and every recompute of its estimates runs while holding that location's lock.
Locations share no mutable state, so different locations never contend.

The locks are re-entrant: a transition holding the lock may call the estimate
engine, which acquires it again.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator

logger = logging.getLogger(__name__)


class LocationLockRegistry:
    """Lazily created re-entrant lock per location id."""

    # Waits longer than this are logged; they usually mean a slow storage call.
    SLOW_ACQUIRE_SECONDS = 1.0

    def __init__(self):
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    def get(self, location_id: str) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(location_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[location_id] = lock
            return lock

    @contextmanager
    def hold(self, location_id: str) -> Iterator[None]:
        """Hold the critical section for ``location_id``."""
        lock = self.get(location_id)
        started = time.monotonic()
        lock.acquire()
        waited = time.monotonic() - started
        if waited > self.SLOW_ACQUIRE_SECONDS:
            logger.warning(f"Waited {waited:.2f}s for location lock {location_id}")
        try:
            yield
        finally:
            lock.release()


# Global registry shared by all services in the process
location_locks = LocationLockRegistry()
