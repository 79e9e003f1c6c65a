"""
Fixed-width record codec for the Quibble files.

Three line layouts (0-indexed, inclusive columns):

  master-events        DDDDDD TTTTT NAME...............
                       0-5 date, 7-11 tickets, 13+ name (padded to 20)
  current-events       NAME................ TTTTT
                       0-19 name, 21-25 tickets; last line is "END" / 00000
  merged-transactions  CC NAME................ DDDDDD TTTTT
                       0-1 code, 3-22 name, 24-29 date, 31+ tickets (>= 5 digits)

Decoding is strict: a line either matches its layout completely or raises
RecordFormatError.  Encoders assume their input was validated upstream.
"""
from __future__ import annotations

import re
from typing import Tuple

from quibble_engine.models import (
    CODE_LOGOUT,
    CODE_WIDTH,
    DATE_WIDTH,
    MAX_EVENT_NAME,
    SNAPSHOT_END_NAME,
    TICKET_WIDTH,
    Event,
    RecordFormatError,
    Transaction,
)

_MASTER_RE = re.compile(r"(\d{6}) (\d{5}) (.{1,20})", re.ASCII)
_SNAPSHOT_RE = re.compile(r"(.{20}) (\d{5})", re.ASCII)
_TRANSACTION_RE = re.compile(r"(\d{2}) (.{20}) (\d{6}) (\d{5,})", re.ASCII)


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def _pad_name(name: str) -> str:
    return f"{name:<{MAX_EVENT_NAME}}"


def _zero_pad(value: int | str, width: int) -> str:
    return str(value).rjust(width, "0")


# ---------------------------------------------------------------------------
# master-events
# ---------------------------------------------------------------------------
def encode_master_line(event: Event) -> str:
    return (
        f"{_zero_pad(event.date, DATE_WIDTH)} "
        f"{_zero_pad(event.ticket_count, TICKET_WIDTH)} "
        f"{_pad_name(event.name)}"
    )


def decode_master_line(line: str) -> Event:
    text = _strip_eol(line)
    m = _MASTER_RE.fullmatch(text)
    if m is None:
        raise RecordFormatError(f"Malformed master record: {text!r}")
    name = m.group(3).rstrip()
    if not name:
        raise RecordFormatError(f"Master record has an empty event name: {text!r}")
    return Event(name=name, date=m.group(1), ticket_count=int(m.group(2)))


# ---------------------------------------------------------------------------
# current-events
# ---------------------------------------------------------------------------
def encode_snapshot_line(event: Event) -> str:
    return f"{_pad_name(event.name)} {_zero_pad(event.ticket_count, TICKET_WIDTH)}"


def encode_snapshot_end() -> str:
    return f"{_pad_name(SNAPSHOT_END_NAME)} {_zero_pad(0, TICKET_WIDTH)}"


def decode_snapshot_line(line: str) -> Tuple[str, int]:
    """Return (name, ticket_count); the END sentinel decodes like any other line."""
    text = _strip_eol(line)
    m = _SNAPSHOT_RE.fullmatch(text)
    if m is None:
        raise RecordFormatError(f"Malformed snapshot record: {text!r}")
    name = m.group(1).rstrip()
    if not name:
        raise RecordFormatError(f"Snapshot record has an empty event name: {text!r}")
    return name, int(m.group(2))


# ---------------------------------------------------------------------------
# merged-transactions
# ---------------------------------------------------------------------------
def encode_transaction_line(txn: Transaction) -> str:
    return (
        f"{_zero_pad(txn.code, CODE_WIDTH)} "
        f"{_pad_name(txn.event_name)} "
        f"{_zero_pad(txn.event_date, DATE_WIDTH)} "
        f"{_zero_pad(txn.ticket_count, TICKET_WIDTH)}"
    )


def decode_transaction_line(line: str) -> Transaction:
    text = _strip_eol(line)
    m = _TRANSACTION_RE.fullmatch(text)
    if m is None:
        raise RecordFormatError(f"Malformed transaction record: {text!r}")
    code = int(m.group(1))
    name = m.group(2).rstrip()
    if not name and code != CODE_LOGOUT:
        raise RecordFormatError(f"Transaction record has an empty event name: {text!r}")
    try:
        return Transaction(
            code=code,
            event_name=name,
            event_date=m.group(3),
            ticket_count=int(m.group(4)),
        )
    except ValueError as exc:
        raise RecordFormatError(f"{exc} in transaction record: {text!r}") from exc
