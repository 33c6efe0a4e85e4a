"""Bounded in-memory webhook event log."""

from __future__ import annotations

import threading
from collections import Counter

from hookwatch.utils.logging import get_logger
from hookwatch.webhooks.models import Event

log = get_logger(__name__)

DEFAULT_CAPACITY = 200


class EventStore:
    """Newest-first event log that evicts the oldest entries past ``capacity``.

    Every read and write holds a single lock; reads hand back copies so
    callers never observe a concurrent ``add`` or ``clear``.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._events: list[Event] = []
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def add(self, event: Event) -> None:
        with self._lock:
            self._insert(event)

    def add_unique(self, event: Event) -> Event | None:
        """Add ``event`` unless its delivery id is already stored.

        Returns the previously stored event on a duplicate, else None.
        Events without a delivery id are always added.
        """
        with self._lock:
            if event.delivery_id:
                existing = self._find_delivery(event.delivery_id)
                if existing is not None:
                    return existing
            self._insert(event)
            return None

    def list(self) -> list[Event]:
        with self._lock:
            return list(self._events)

    def filter_by_type(self, event_type: str) -> list[Event]:
        with self._lock:
            return [e for e in self._events if e.type == event_type]

    def filter_by_repository(self, repository: str) -> list[Event]:
        with self._lock:
            return [e for e in self._events if e.repository == repository]

    def recent(self, limit: int = 50) -> list[Event]:
        with self._lock:
            return self._events[: max(limit, 0)]

    def find_by_delivery(self, delivery_id: str) -> Event | None:
        if not delivery_id:
            return None
        with self._lock:
            return self._find_delivery(delivery_id)

    def clear(self) -> int:
        """Remove every event. Returns the number removed."""
        with self._lock:
            removed = len(self._events)
            self._events = []
        return removed

    def count(self) -> int:
        with self._lock:
            return len(self._events)

    def stats(self) -> dict[str, int]:
        """Event counts keyed by type."""
        with self._lock:
            return dict(Counter(e.type for e in self._events))

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _insert(self, event: Event) -> None:
        self._events.insert(0, event)
        if len(self._events) > self._capacity:
            evicted = len(self._events) - self._capacity
            del self._events[self._capacity:]
            log.debug("events_evicted", count=evicted, capacity=self._capacity)

    def _find_delivery(self, delivery_id: str) -> Event | None:
        for event in self._events:
            if event.delivery_id == delivery_id:
                return event
        return None
