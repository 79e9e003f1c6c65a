"""
Data models for the Quibble reconciliation engine.

Ticket counts are plain integers in [MIN_TICKETS, MAX_TICKETS]; dates are
6-digit YYMMDD strings compared numerically, never as calendar dates.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
MIN_TICKETS: int = 0
MAX_TICKETS: int = 99999
MAX_EVENT_NAME: int = 20
DATE_WIDTH: int = 6
TICKET_WIDTH: int = 5
CODE_WIDTH: int = 2

MASTER_EVENTS_FILE = "master-events"
MERGED_TRANSACTIONS_FILE = "merged-transactions"
CURRENT_EVENTS_FILE = "current-events"

SNAPSHOT_END_NAME = "END"
EMPTY_DATE = "000000"


# ---------------------------------------------------------------------------
# Transaction codes (integers, as written in the transaction log)
# ---------------------------------------------------------------------------
CODE_LOGOUT = 0
CODE_SELL   = 1
CODE_RETURN = 2
CODE_CREATE = 3
CODE_ADD    = 4
CODE_DELETE = 5

TRANSACTION_NAMES: Dict[int, str] = {
    CODE_LOGOUT: "logout",
    CODE_SELL:   "sell",
    CODE_RETURN: "return",
    CODE_CREATE: "create",
    CODE_ADD:    "add",
    CODE_DELETE: "delete",
}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class ReconciliationError(Exception):
    """Base class for every fatal reconciliation-run error."""


class RecordFormatError(ReconciliationError, ValueError):
    """A line does not match its fixed-width record layout."""


class ConsistencyError(ReconciliationError, KeyError):
    """A transaction targets an event that is not in the ledger."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class MissingInputError(ReconciliationError, FileNotFoundError):
    """A required input file is absent."""


class ReconciliationIOError(ReconciliationError, OSError):
    """Reading or writing one of the run's files failed."""


def clamp_tickets(value: int) -> int:
    """Saturate a ticket count into [MIN_TICKETS, MAX_TICKETS]."""
    return max(MIN_TICKETS, min(MAX_TICKETS, value))


# ---------------------------------------------------------------------------
# Event (one ticketed occasion)
# ---------------------------------------------------------------------------
@dataclass(eq=False, slots=True)
class Event:
    """An event as held in the ledger.

    Two events are equal when their names are equal; date and ticket count
    take no part in identity.
    """

    name:         str
    date:         str          # YYMMDD
    ticket_count: int

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    @property
    def date_value(self) -> int:
        return int(self.date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "date": self.date,
            "ticket_count": self.ticket_count,
        }


# ---------------------------------------------------------------------------
# Transaction (one line of the merged transaction log)
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Transaction:
    """An immutable intent to mutate the ledger."""

    code:         int
    event_name:   str
    event_date:   str = EMPTY_DATE
    ticket_count: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.code, int) or self.code not in TRANSACTION_NAMES:
            raise ValueError(f"Invalid transaction code: {self.code!r}")
        if not isinstance(self.ticket_count, int):
            raise TypeError(
                f"ticket_count must be int, got {type(self.ticket_count).__name__}"
            )

    @property
    def action(self) -> str:
        return TRANSACTION_NAMES[self.code]

    @staticmethod
    def from_event(code: int, event: Event, tickets: Optional[int] = None) -> "Transaction":
        """Snapshot the event's current values into a new transaction.

        tickets is the quantity sold, returned or added; when omitted the
        event's own ticket count is used, which is what a create records.
        """
        return Transaction(
            code=code,
            event_name=event.name,
            event_date=event.date,
            ticket_count=event.ticket_count if tickets is None else tickets,
        )

    @staticmethod
    def logout() -> "Transaction":
        return Transaction(code=CODE_LOGOUT, event_name="")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "action": self.action,
            "event_name": self.event_name,
            "event_date": self.event_date,
            "ticket_count": self.ticket_count,
        }


# ---------------------------------------------------------------------------
# AppliedTransaction (engine output per transaction, never persisted)
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class AppliedTransaction:
    """What applying one transaction did to the ledger."""

    line_no:        int
    code:           int
    action:         str
    event_name:     str
    tickets_before: int | None
    tickets_after:  int | None
    clamped:        bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line_no": self.line_no,
            "code": self.code,
            "action": self.action,
            "event_name": self.event_name,
            "tickets_before": self.tickets_before,
            "tickets_after": self.tickets_after,
            "clamped": self.clamped,
        }


# ---------------------------------------------------------------------------
# RunSummary (result of one reconciliation run)
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class RunSummary:
    current_date:         str
    events_loaded:        int
    events_pruned:        int
    transactions_applied: int
    events_written:       int
    output_hash:          str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_date": self.current_date,
            "events_loaded": self.events_loaded,
            "events_pruned": self.events_pruned,
            "transactions_applied": self.transactions_applied,
            "events_written": self.events_written,
            "output_hash": self.output_hash,
        }
