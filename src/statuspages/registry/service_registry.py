"""
In-process Service Registry

This module provides:
- SharedLock: a shared/exclusive lock (many readers or one writer)
- ServiceRegistry: the name -> service, service -> name and insertion-ordered
  views of every service shown on the status pages, kept consistent under
  a single SharedLock
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from ..service import Service

logger = logging.getLogger(__name__)

DEFAULT_NAME = "NoName"


# ---------------------------------------------------------------------------
# Shared/exclusive lock
# ---------------------------------------------------------------------------

class SharedLock:
    """Readers share the lock, writers hold it alone.

    Waiting writers block new readers, so a steady stream of index page
    requests cannot starve add/remove calls.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_shared(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_shared(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_exclusive(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_exclusive(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def shared(self) -> Iterator[None]:
        self.acquire_shared()
        try:
            yield
        finally:
            self.release_shared()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        self.acquire_exclusive()
        try:
            yield
        finally:
            self.release_exclusive()


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class ServiceRegistry:
    """Thread-safe registry of status page services.

    Services are keyed by identity, not equality: two distinct objects that
    compare equal are still two entries.
    """

    def __init__(self, lock: Optional[SharedLock] = None):
        self._lock = lock or SharedLock()
        self._services: Dict[str, Service] = {}
        self._names: Dict[int, str] = {}  # id(service) -> name
        self._ordered: List[Service] = []

    @property
    def lock(self) -> SharedLock:
        return self._lock

    def add(self, name: str, service: Service) -> str:
        """Register *service* and return the name it was given.

        If another service already owns *name*, the smallest free integer
        suffix starting at 2 is appended. Registering the same service twice
        returns the existing name.
        """
        with self._lock.exclusive():
            previous = self._names.get(id(service))
            if previous is not None:
                return previous
            return self._add_locked(name, service)

    def _add_locked(self, name: str, service: Service) -> str:
        if not name:
            name = DEFAULT_NAME
        suffixed = name
        i = 2
        while suffixed in self._services:
            suffixed = f"{name}{i}"
            i += 1
        self._services[suffixed] = service
        self._names[id(service)] = suffixed
        self._ordered.append(service)
        logger.debug("Registered status page service %r", suffixed)
        return suffixed

    def remove(self, service: Service) -> bool:
        """Unregister *service*. Returns False if it was not registered."""
        with self._lock.exclusive():
            name = self._names.pop(id(service), None)
            if name is None:
                return False
            del self._services[name]
            self._ordered = [s for s in self._ordered if s is not service]
        logger.debug("Removed status page service %r", name)
        return True

    def lookup(self, name: str) -> Optional[Service]:
        with self._lock.shared():
            return self._services.get(name)

    def name_of(self, service: Service) -> Optional[str]:
        with self._lock.shared():
            return self._names.get(id(service))

    def ordered_services(self) -> List[Tuple[str, Service]]:
        """Snapshot of ``(name, service)`` pairs in registration order."""
        with self._lock.shared():
            return [(self._names[id(s)], s) for s in self._ordered]

    def __len__(self) -> int:
        with self._lock.shared():
            return len(self._ordered)

    def __contains__(self, service: object) -> bool:
        with self._lock.shared():
            return id(service) in self._names
