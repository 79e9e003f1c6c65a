"""
In-memory event ledger for one reconciliation run.

Events are keyed by name; the map keeps insertion order so that sorting by
date is stable with respect to the order events were loaded or created.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from quibble_engine.models import ConsistencyError, Event, clamp_tickets

logger = logging.getLogger(__name__)


class EventLedger:
    """
    Working set of events, mutated under transaction semantics.

    Usage:
        ledger = EventLedger(events)
        ledger.sell("Concert", 3)
        for event in ledger.sorted_by_date():
            ...
    """

    def __init__(self, events: Iterable[Event] = ()) -> None:
        self._events: Dict[str, Event] = {}
        for event in events:
            self.upsert_create(event.name, event.date, event.ticket_count)

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, name: object) -> bool:
        return name in self._events

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events.values()))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def find(self, name: str) -> Optional[Event]:
        return self._events.get(name)

    def _require(self, name: str, action: str) -> Event:
        event = self._events.get(name)
        if event is None:
            raise ConsistencyError(f"Cannot {action} unknown event {name!r}")
        return event

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def upsert_create(self, name: str, date: str, count: int) -> Event:
        """Insert an event without checking for an existing one.

        Lookups by name always resolve to the first event with that name, so
        a same-named create leaves the existing event untouched and the
        existing event is returned.
        """
        existing = self._events.get(name)
        if existing is not None:
            logger.warning(
                "Create for existing event %r ignored (date %s tickets %d); "
                "keeping date %s tickets %d",
                name, date, count, existing.date, existing.ticket_count,
            )
            return existing
        event = Event(name=name, date=date, ticket_count=clamp_tickets(count))
        self._events[name] = event
        return event

    def sell(self, name: str, count: int) -> Event:
        """Remove tickets, saturating at MIN_TICKETS."""
        event = self._require(name, "sell tickets for")
        event.ticket_count = clamp_tickets(event.ticket_count - count)
        return event

    def add(self, name: str, count: int) -> Event:
        """Add (or return) tickets, saturating at MAX_TICKETS."""
        event = self._require(name, "add tickets to")
        event.ticket_count = clamp_tickets(event.ticket_count + count)
        return event

    def delete(self, name: str) -> Event:
        self._require(name, "delete")
        return self._events.pop(name)

    def prune_before(self, current_date: str) -> List[Event]:
        """Drop every event dated strictly before current_date."""
        cutoff = int(current_date)
        pruned = [e for e in self._events.values() if e.date_value < cutoff]
        for event in pruned:
            del self._events[event.name]
        return pruned

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------
    def sorted_by_date(self) -> List[Event]:
        # sorted() is stable: equal dates keep insertion order
        return sorted(self._events.values(), key=lambda e: e.date_value)
