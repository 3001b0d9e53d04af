"""
Append-only event log.

Committed events are kept in order, queryable by block range, and pushed to
subscribers. Entries are never mutated or removed.
"""
from typing import Callable, Dict, List, Optional, Union
import json
import logging

from ..protocol.types.common import EventType
from ..protocol.types.events import Event
from ..storage.db import StorageDB

logger = logging.getLogger(__name__)


class EventLog:
    """
    Ordered log of committed events.

    Args:
        db: Optional sqlite mirror; when given, previously persisted events
            are loaded so the log resumes where it stopped.
    """

    def __init__(self, db: Optional[StorageDB] = None):
        self.db = db
        self._events: List[Event] = []
        self.listeners: Dict[Optional[EventType], List[Callable[[Event], None]]] = {}

        if self.db is not None:
            for raw in self.db.get_events():
                self._events.append(Event.model_validate(json.loads(raw)))
            if self._events:
                logger.info(f"Loaded {len(self._events)} events from storage")

    def __len__(self) -> int:
        return len(self._events)

    @property
    def next_index(self) -> int:
        return len(self._events)

    @property
    def last_block(self) -> int:
        return self._events[-1].block if self._events else 0

    def subscribe(self, callback: Callable[[Event], None], event_type: Optional[EventType] = None) -> None:
        """
        Subscribe to committed events.

        Args:
            callback: Called with each committed event
            event_type: Only deliver this type, or every event when None
        """
        self.listeners.setdefault(event_type, []).append(callback)
        logger.debug(f"Subscribed to event: {event_type.value if event_type else '*'}")

    def append(self, events: List[Event]) -> None:
        """Appends a batch of events committed by one operation."""
        if not events:
            return

        for offset, ev in enumerate(events):
            expected = len(self._events) + offset
            if ev.log_index != expected:
                raise ValueError(f"Event log index {ev.log_index} out of order (expected {expected})")

        if self.db is not None:
            self.db.append_events([
                (ev.log_index, ev.block, ev.address, ev.event.value, json.dumps(ev.model_dump(mode="json")))
                for ev in events
            ])
        self._events.extend(events)

        for ev in events:
            self._notify(ev)

    def _notify(self, ev: Event) -> None:
        callbacks = self.listeners.get(ev.event, []) + self.listeners.get(None, [])
        for callback in callbacks:
            try:
                callback(ev)
            except Exception as e:
                logger.error(f"Error in event callback for {ev.event.value}: {e}", exc_info=True)

    def get_past_events(self,
                        event: Union[EventType, str, None] = None,
                        address: Optional[str] = None,
                        from_block: int = 0,
                        to_block: Optional[int] = None) -> List[Event]:
        """
        Range query over the log.

        Args:
            event: Event type or name to filter on (all events when None)
            address: Emitting contract to filter on
            from_block: First block, inclusive
            to_block: Last block, inclusive; None means latest
        """
        event_type = EventType(event) if event is not None else None
        return [
            ev for ev in self._events
            if ev.block >= from_block
            and (to_block is None or ev.block <= to_block)
            and (event_type is None or ev.event == event_type)
            and (address is None or ev.address == address)
        ]
