"""Append-only event log shared by the router and the staking ledger."""

from __future__ import annotations

import logging
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Type

from ..core.events import Event

logger = logging.getLogger(__name__)


Subscriber = Callable[[Event], None]


class EventLog:
    """
    Committed events in publication order.

    Subscribers are called synchronously, after the publishing operation has
    released its re-entrancy lock.
    """

    def __init__(self) -> None:
        self._events: List[Event] = []
        self._subscribers: List[Subscriber] = []

    def publish(self, events: Sequence[Event]) -> None:
        """
        Append *events* and notify every subscriber of each one.

        The whole batch is appended before any subscriber runs. A raising
        subscriber does not stop delivery; the first error is re-raised once
        every callback has run.
        """
        batch = tuple(events)
        self._events.extend(batch)
        first_error: Optional[Exception] = None
        for event in batch:
            for callback in list(self._subscribers):
                try:
                    callback(event)
                except Exception as exc:
                    if first_error is None:
                        first_error = exc
                    else:
                        logger.error(f"Subscriber failed on {event.name}", exc_info=True)
        if first_error is not None:
            raise first_error

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback*; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def query(self, event_type: Optional[Type[Event]] = None) -> Tuple[Event, ...]:
        if event_type is None:
            return tuple(self._events)
        return tuple(e for e in self._events if isinstance(e, event_type))

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(tuple(self._events))
