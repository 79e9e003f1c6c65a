"""
File handling for the Quibble reconciliation engine.

Reads the durable master record and the merged transaction log, writes the
master record and the point-of-sale snapshot, and hashes the emitted output.
Both outputs are rewritten in full on every run.  The output hash is SHA-256
over the exact bytes of master-events followed by current-events.
"""
from __future__ import annotations

import hashlib
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple

from quibble_engine.codec import (
    decode_master_line,
    decode_snapshot_line,
    decode_transaction_line,
    encode_master_line,
    encode_snapshot_end,
    encode_snapshot_line,
)
from quibble_engine.ledger import EventLedger
from quibble_engine.models import (
    SNAPSHOT_END_NAME,
    Event,
    MissingInputError,
    ReconciliationIOError,
    RecordFormatError,
    Transaction,
)

logger = logging.getLogger(__name__)


def today() -> str:
    """Return the current local date as YYMMDD."""
    return datetime.now().strftime("%y%m%d")


def _content_lines(path: Path) -> Iterator[Tuple[int, str]]:
    """Yield (line_no, line) for every non-empty line of a UTF-8 text file.

    Lines are decoded one at a time so that bad bytes are reported against
    the line that holds them.
    """
    with open(path, "rb") as f:
        for line_no, raw in enumerate(f, 1):
            try:
                line = raw.decode("utf-8").rstrip("\r\n")
            except UnicodeDecodeError as exc:
                raise RecordFormatError(f"{path}:{line_no}: not valid UTF-8: {exc}") from exc
            if not line:
                continue
            yield line_no, line


def build_ledger(
    lines: Iterable[Tuple[int, str]],
    current_date: str,
    source: str = "<master>",
) -> Tuple[EventLedger, int]:
    """
    Decode numbered master lines into a fresh ledger.

    Events dated before current_date are dropped as they are read.
    Returns (ledger, number_of_pruned_events).
    """
    cutoff = int(current_date)
    ledger = EventLedger()
    pruned = 0
    for line_no, line in lines:
        try:
            event = decode_master_line(line)
        except RecordFormatError as exc:
            raise RecordFormatError(f"{source}:{line_no}: {exc}") from exc
        if event.date_value < cutoff:
            pruned += 1
            logger.debug("Pruned expired event %r (date %s)", event.name, event.date)
            continue
        ledger.upsert_create(event.name, event.date, event.ticket_count)
    return ledger, pruned


def load_master(path: str | Path, current_date: str) -> Tuple[EventLedger, int]:
    """
    Load the master record into a fresh ledger, pruning past events.

    A missing file is a first run and yields an empty ledger.
    Returns (ledger, number_of_pruned_events).
    """
    p = Path(path)
    try:
        ledger, pruned = build_ledger(_content_lines(p), current_date, str(p))
    except FileNotFoundError:
        logger.info("No master record at %s; starting with an empty ledger", p)
        return EventLedger(), 0
    except OSError as exc:
        raise ReconciliationIOError(f"Unable to read master record {p}: {exc}") from exc

    logger.info("Loaded %d events from %s (%d expired)", len(ledger), p, pruned)
    return ledger, pruned


def read_transactions(path: str | Path) -> Iterator[Tuple[int, Transaction]]:
    """Return (line_no, transaction) pairs from the merged log in file order.

    A missing log raises MissingInputError here, before any iteration.
    """
    p = Path(path)
    if not p.exists():
        raise MissingInputError(f"Merged transaction log not found: {p}")
    return _iter_transactions(p)


def _iter_transactions(p: Path) -> Iterator[Tuple[int, Transaction]]:
    try:
        for line_no, line in _content_lines(p):
            try:
                txn = decode_transaction_line(line)
            except RecordFormatError as exc:
                raise RecordFormatError(f"{p}:{line_no}: {exc}") from exc
            yield line_no, txn
    except OSError as exc:
        raise ReconciliationIOError(f"Unable to read transaction log {p}: {exc}") from exc


def master_text(events: Iterable[Event]) -> str:
    return "".join(encode_master_line(e) + "\n" for e in events)


def snapshot_text(events: Iterable[Event]) -> str:
    body = "".join(encode_snapshot_line(e) + "\n" for e in events)
    return body + encode_snapshot_end() + "\n"


def compute_output_hash(events: List[Event]) -> str:
    """SHA-256 of the master record followed by the snapshot, as written."""
    canonical = master_text(events) + snapshot_text(events)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _write_text(path: Path, text: str, what: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
    except OSError as exc:
        raise ReconciliationIOError(f"Unable to write {what} {path}: {exc}") from exc


def save_master(events: List[Event], path: str | Path) -> None:
    """Overwrite the master record, one line per event in the given order."""
    p = Path(path)
    _write_text(p, master_text(events), "master record")
    logger.info("Master record saved → %s (%d events)", p, len(events))


def save_snapshot(events: List[Event], path: str | Path) -> None:
    """Overwrite the point-of-sale snapshot; always ends with the END line."""
    p = Path(path)
    _write_text(p, snapshot_text(events), "snapshot")
    logger.info("Snapshot saved → %s (%d events + END)", p, len(events))


def load_snapshot(path: str | Path) -> List[Tuple[str, int]]:
    """
    Read a current-events snapshot as the front end does.

    Returns (name, ticket_count) pairs up to, not including, the END line.
    A snapshot without its END line is treated as truncated.
    """
    p = Path(path)
    entries: List[Tuple[str, int]] = []
    try:
        for line_no, line in _content_lines(p):
            try:
                name, tickets = decode_snapshot_line(line)
            except RecordFormatError as exc:
                raise RecordFormatError(f"{p}:{line_no}: {exc}") from exc
            if name == SNAPSHOT_END_NAME:
                return entries
            entries.append((name, tickets))
    except FileNotFoundError as exc:
        raise MissingInputError(f"Snapshot not found: {p}") from exc
    except OSError as exc:
        raise ReconciliationIOError(f"Unable to read snapshot {p}: {exc}") from exc
    raise RecordFormatError(f"{p}: snapshot has no {SNAPSHOT_END_NAME} line")


def read_expected_hash(path: str | Path) -> str:
    p = Path(path)
    try:
        with open(p, "r", encoding="utf-8") as f:
            return f.read().strip()
    except OSError as exc:
        raise ReconciliationIOError(f"Unable to read hash file {p}: {exc}") from exc
