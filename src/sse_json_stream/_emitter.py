"""
Minimal synchronous publish/subscribe emitter used to fan stream lifecycle events out to listeners.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

Listener = Callable[..., Any]


class EventEmitter:
    """
    Registry of listeners keyed by event name.

    - Registering the same listener twice for one event delivers it once.
    - Removing a listener that is not registered is a no-op.
    - ``emit`` runs every listener even when one of them raises; the first
      exception is re-raised once all listeners ran, later ones are logged.
    """

    __slots__ = ("_events",)

    def __init__(self) -> None:
        # dict keys keep registration order and reject duplicates.
        self._events: dict[str, dict[Listener, None]] = {}

    def on(self, type: str, listener: Listener) -> None:
        self._events.setdefault(type, {})[listener] = None

    def off(self, type: str, listener: Listener) -> None:
        existing = self._events.get(type)
        if not existing:
            return

        existing.pop(listener, None)
        if not existing:
            del self._events[type]

    def emit(self, type: str, *args: Any) -> None:
        existing = self._events.get(type)
        if not existing:
            return

        first_error: BaseException | None = None
        # Snapshot: listeners may add or remove themselves while being called.
        for listener in list(existing):
            try:
                listener(*args)
            except Exception as e:
                if first_error is None:
                    first_error = e
                else:
                    logging.exception("Listener for %r failed after an earlier failure", type)

        if first_error is not None:
            raise first_error

    def clear(self) -> None:
        self._events.clear()

    def listener_count(self, type: str) -> int:
        return len(self._events.get(type, ()))
