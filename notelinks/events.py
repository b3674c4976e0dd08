"""
Event System
=============

Typed publish/subscribe used to notify observers of extraction results and
navigation requests, independent of any UI object graph.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Dict, Hashable, List, Optional

from .data.models import Connections
from .utils.logging import get_logger

LOGGER = get_logger(__name__)

Scheduler = Callable[[Callable[[], None]], Any]


class EventType(Enum):
    """Available event types."""
    CONNECTIONS_UPDATED = auto()
    NAVIGATE_TO_NOTE = auto()


@dataclass(slots=True)
class ConnectionsUpdate:
    note_id: Optional[str]
    connections: Connections


@dataclass(slots=True)
class Event:
    """An event and its payload."""
    event_type: EventType
    data: Any = None


def call_soon_scheduler(callback: Callable[[], None]) -> bool:
    """Run *callback* on the next turn of the running asyncio loop, if there is one."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return False
    loop.call_soon(callback)
    return True


class EventDispatcher:
    """Manages event registration, immediate dispatch and deferred delivery."""

    def __init__(self, scheduler: Optional[Scheduler] = None):
        self._listeners: Dict[EventType, List[Callable[[Event], None]]] = {}
        self._pending: Dict[Hashable, Event] = {}
        self._scheduler = scheduler or call_soon_scheduler
        self._flush_scheduled = False

    def add_listener(self, event_type: EventType, listener: Callable[[Event], None]) -> None:
        """
        Add a listener for a specific event type.

        Args:
            event_type: Type of event to listen for
            listener: Callback invoked with the :class:`Event`
        """
        self._listeners.setdefault(event_type, []).append(listener)

    def remove_listener(self, event_type: EventType, listener: Callable[[Event], None]) -> None:
        listeners = self._listeners.get(event_type)
        if not listeners or listener not in listeners:
            return
        listeners.remove(listener)
        if not listeners:
            del self._listeners[event_type]

    def dispatch(self, event: Event) -> None:
        """
        Dispatch an event to all registered listeners now.

        A failing listener is logged and does not stop the others.
        """
        for listener in list(self._listeners.get(event.event_type, [])):
            try:
                listener(event)
            except Exception:
                LOGGER.exception("Error in %s listener", event.event_type.name)

    def dispatch_later(self, event: Event, key: Optional[Hashable] = None) -> None:
        """
        Queue *event* for delivery after the current unit of work.

        Events queued under the same *key* coalesce: only the latest one is
        delivered. Without a key every event is delivered.
        """
        pending_key = key if key is not None else (event.event_type, id(event))
        self._pending.pop(pending_key, None)
        self._pending[pending_key] = event
        if not self._flush_scheduled:
            # A scheduler returns False when it cannot defer; the host then calls process_pending.
            self._flush_scheduled = self._scheduler(self.process_pending) is not False

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def process_pending(self) -> int:
        """Deliver every queued event in queue order and return how many were sent."""
        self._flush_scheduled = False
        pending = list(self._pending.values())
        self._pending.clear()
        for event in pending:
            self.dispatch(event)
        return len(pending)

    def dispatch_connections_updated(self, note_id: Optional[str], connections: Connections) -> None:
        """Queue a connections update for *note_id*, superseding any undelivered one."""
        self.dispatch_later(
            Event(EventType.CONNECTIONS_UPDATED, ConnectionsUpdate(note_id, connections)),
            key=(EventType.CONNECTIONS_UPDATED, note_id),
        )

    def dispatch_navigate_to_note(self, note_id: str) -> None:
        self.dispatch(Event(EventType.NAVIGATE_TO_NOTE, note_id))
