"""Pool events and the append-only log an indexer reads them from."""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple, Type, Union

from simple_dex.core.ledger import Address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiquidityAdded:
    provider: Address
    amount_a: int
    amount_b: int
    shares_minted: int
    timestamp: int


@dataclass(frozen=True)
class LiquidityRemoved:
    provider: Address
    amount_a: int
    amount_b: int
    shares_burned: int
    timestamp: int


@dataclass(frozen=True)
class Swap:
    user: Address
    token_in: Address
    token_out: Address
    amount_in: int
    amount_out: int
    fee: int          # In token_in units
    timestamp: int


@dataclass(frozen=True)
class DailyStatsUpdated:
    """Cumulative totals of one UTC day, emitted whenever they change."""
    day: int
    volume_a: int
    volume_b: int
    fees: int
    transactions: int


PoolEvent = Union[LiquidityAdded, LiquidityRemoved, Swap, DailyStatsUpdated]
Subscriber = Callable[[PoolEvent], None]


class EventLog:
    """Ordered, append-only record of pool events.

    Entries are frozen and are never modified or removed. Readers either
    iterate the whole log or poll with a cursor via `events(start=...)`.

    Subscribers see every event once, in log order. Delivery is done by
    whichever thread calls `dispatch()` first; if another thread is
    already delivering, the call returns at once and that thread drains
    the new entries too. A callback may therefore run on a thread other
    than the one that recorded its event, and events a callback causes
    on the same log are delivered after it returns. A callback that
    raises is logged without affecting the log or other subscribers.
    """

    def __init__(self) -> None:
        self._entries: List[PoolEvent] = []
        self._subscribers: List[Subscriber] = []
        self._delivered = 0
        self._lock = threading.Lock()
        self._dispatching = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PoolEvent]:
        return iter(self.events())

    def record(self, events: List[PoolEvent]) -> int:
        """Append events without notifying subscribers; returns the new length."""
        with self._lock:
            self._entries.extend(events)
            return len(self._entries)

    def append(self, event: PoolEvent) -> int:
        """Append an event, notify subscribers and return its position in the log."""
        index = self.record([event]) - 1
        self.dispatch()
        return index

    def extend(self, events: List[PoolEvent]) -> None:
        self.record(events)
        self.dispatch()

    def _next_undelivered(self) -> Optional[Tuple[PoolEvent, List[Subscriber]]]:
        with self._lock:
            if self._delivered >= len(self._entries):
                return None
            event = self._entries[self._delivered]
            self._delivered += 1
            return event, list(self._subscribers)

    def _pending_delivery(self) -> bool:
        with self._lock:
            return self._delivered < len(self._entries)

    def dispatch(self) -> None:
        """Deliver recorded events that subscribers have not seen yet."""
        while self._pending_delivery():
            if not self._dispatching.acquire(blocking=False):
                return
            try:
                while True:
                    item = self._next_undelivered()
                    if item is None:
                        break
                    event, subscribers = item
                    # The event is already committed; a failing reader must not undo it.
                    for callback in subscribers:
                        try:
                            callback(event)
                        except Exception:
                            logger.exception(
                                "Event subscriber %r failed on %s", callback, type(event).__name__
                            )
            finally:
                self._dispatching.release()

    def events(
        self,
        kind: Optional[Type[PoolEvent]] = None,
        start: int = 0,
    ) -> List[PoolEvent]:
        """Return entries from position `start` on, optionally of one type.

        Args:
            kind: Event class to filter on (e.g. Swap), or None for all
            start: Log position to read from, for cursor-style polling

        Returns:
            List of events in emission order
        """
        if start < 0:
            raise ValueError(f"start must be >= 0, got {start}")
        with self._lock:
            entries = self._entries[start:]
        if kind is None:
            return entries
        return [e for e in entries if isinstance(e, kind)]

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for new events; returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe
