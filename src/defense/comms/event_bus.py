# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""EventBus -- fan-out of spawn and wave events to subscriber queues.

Each subscriber gets its own queue.Queue and receives every message as a
``{"type": str, "data": dict}`` dict.  Publishing never blocks.
"""

from __future__ import annotations

import queue
import threading


class EventBus:
    """Thread-safe publish/subscribe over unbounded queues."""

    def __init__(self) -> None:
        self._subscribers: list[queue.Queue] = []
        self._lock = threading.Lock()

    def subscribe(self) -> queue.Queue:
        """Register a new subscriber and return its queue."""
        q: queue.Queue = queue.Queue()
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            if q in self._subscribers:
                self._subscribers.remove(q)

    def publish(self, event_type: str, data: dict | None = None) -> None:
        """Deliver *event_type* with *data* to every subscriber."""
        msg = {"type": event_type, "data": data if data is not None else {}}
        with self._lock:
            for q in self._subscribers:
                q.put(msg)
