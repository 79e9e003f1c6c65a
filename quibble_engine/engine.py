"""
The Quibble reconciliation engine — the back end.

A run has four phases, always in this order:
  1. Load   — read master-events, dropping events already in the past.
  2. Apply  — replay merged-transactions against the ledger in file order.
  3. Sort   — order surviving events by date (stable).
  4. Emit   — rewrite master-events and current-events.

Ticket arithmetic saturates at [0, 99999] instead of failing, so that
overlapping sales from several terminals never abort a run.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from quibble_engine.ledger import EventLedger
from quibble_engine.models import (
    CODE_CREATE,
    CODE_DELETE,
    CODE_LOGOUT,
    CODE_SELL,
    CURRENT_EVENTS_FILE,
    MASTER_EVENTS_FILE,
    MERGED_TRANSACTIONS_FILE,
    AppliedTransaction,
    RunSummary,
    Transaction,
)
from quibble_engine.state import (
    compute_output_hash,
    load_master,
    read_expected_hash,
    read_transactions,
    save_master,
    save_snapshot,
    today,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
class ReconciliationEngine:
    """
    Applies transactions to a ledger.

    Usage:
        engine = ReconciliationEngine(ledger)
        for line_no, txn in read_transactions(path):
            engine.apply(txn, line_no)
        events = engine.ledger.sorted_by_date()
    """

    def __init__(self, ledger: EventLedger) -> None:
        self.ledger: EventLedger = ledger
        self._applied_count: int = 0

    @property
    def applied_count(self) -> int:
        return self._applied_count

    def apply(self, txn: Transaction, line_no: int = 0) -> AppliedTransaction:
        """Apply one transaction; raises ConsistencyError for unknown events."""
        self._applied_count += 1
        code = txn.code
        name = txn.event_name

        if code == CODE_LOGOUT:
            logger.debug("Line %d: logout", line_no)
            return AppliedTransaction(
                line_no=line_no, code=code, action=txn.action,
                event_name=name, tickets_before=None, tickets_after=None,
            )

        if code == CODE_CREATE:
            existing = self.ledger.find(name)
            before = existing.ticket_count if existing is not None else None
            event = self.ledger.upsert_create(name, txn.event_date, txn.ticket_count)
            # an ignored duplicate create reports the untouched existing event
            clamped = existing is None and event.ticket_count != txn.ticket_count
            logger.debug(
                "Line %d: create %r date=%s tickets=%d",
                line_no, name, event.date, event.ticket_count,
            )
            return AppliedTransaction(
                line_no=line_no, code=code, action=txn.action, event_name=name,
                tickets_before=before, tickets_after=event.ticket_count,
                clamped=clamped,
            )

        if code == CODE_DELETE:
            event = self.ledger.delete(name)
            logger.debug("Line %d: delete %r", line_no, name)
            return AppliedTransaction(
                line_no=line_no, code=code, action=txn.action, event_name=name,
                tickets_before=event.ticket_count, tickets_after=None,
            )

        # sell / return / add
        found = self.ledger.find(name)
        before = found.ticket_count if found is not None else 0
        if code == CODE_SELL:
            requested = before - txn.ticket_count
            event = self.ledger.sell(name, txn.ticket_count)
        else:  # CODE_RETURN, CODE_ADD
            requested = before + txn.ticket_count
            event = self.ledger.add(name, txn.ticket_count)

        clamped = event.ticket_count != requested
        if clamped:
            logger.warning(
                "Line %d: %s %r by %d clamped to %d (would be %d)",
                line_no, txn.action, name, txn.ticket_count,
                event.ticket_count, requested,
            )
        else:
            logger.debug(
                "Line %d: %s %r tickets %d→%d",
                line_no, txn.action, name, before, event.ticket_count,
            )
        return AppliedTransaction(
            line_no=line_no, code=code, action=txn.action, event_name=name,
            tickets_before=before, tickets_after=event.ticket_count,
            clamped=clamped,
        )


# ---------------------------------------------------------------------------
# High-level runners
# ---------------------------------------------------------------------------
def reconcile_files(
    master_in: str | Path,
    transactions_in: str | Path,
    master_out: str | Path,
    snapshot_out: str | Path,
    current_date: str,
) -> RunSummary:
    """Run Load → Apply → Sort → Emit over explicit paths."""
    # ---- Load ----
    ledger, pruned = load_master(master_in, current_date)
    loaded = len(ledger)
    engine = ReconciliationEngine(ledger)

    # ---- Apply ----
    logger.info("Applying transactions from %s", transactions_in)
    clamps = 0
    for line_no, txn in read_transactions(transactions_in):
        if engine.apply(txn, line_no).clamped:
            clamps += 1
    logger.info(
        "Applied %d transactions (%d clamped)", engine.applied_count, clamps,
    )

    # ---- Sort ----
    events = engine.ledger.sorted_by_date()

    # ---- Emit ----
    save_master(events, master_out)
    save_snapshot(events, snapshot_out)

    return RunSummary(
        current_date=current_date,
        events_loaded=loaded,
        events_pruned=pruned,
        transactions_applied=engine.applied_count,
        events_written=len(events),
        output_hash=compute_output_hash(events),
    )


def run_reconciliation(
    workdir: str | Path = ".",
    current_date: Optional[str] = None,
) -> RunSummary:
    """
    Reconcile the fixed files in workdir:
    master-events + merged-transactions → master-events + current-events.
    """
    base = Path(workdir)
    date = current_date or today()
    logger.info("Reconciliation run in %s for date %s", base, date)
    summary = reconcile_files(
        base / MASTER_EVENTS_FILE,
        base / MERGED_TRANSACTIONS_FILE,
        base / MASTER_EVENTS_FILE,
        base / CURRENT_EVENTS_FILE,
        date,
    )
    logger.info("Run complete: %d events written (hash=%s)",
                summary.events_written, summary.output_hash)
    return summary


def replay_reconciliation(
    master_path: str | Path,
    transactions_path: str | Path,
    out_dir: str | Path,
    verify_hash_path: str | Path,
    current_date: str,
) -> bool:
    """
    Re-run a reconciliation from a saved prior master and the same merged log,
    writing into out_dir, and compare the output hash with the recorded one.
    Returns True if the hashes match.
    """
    out = Path(out_dir)
    logger.info("Replay mode: %s + %s → %s", master_path, transactions_path, out)
    summary = reconcile_files(
        master_path,
        transactions_path,
        out / MASTER_EVENTS_FILE,
        out / CURRENT_EVENTS_FILE,
        current_date,
    )

    expected_hash = read_expected_hash(verify_hash_path)
    match = summary.output_hash == expected_hash
    if match:
        logger.info("Replay PASSED: hash=%s", summary.output_hash)
    else:
        logger.error(
            "Replay FAILED: expected=%s actual=%s", expected_hash, summary.output_hash
        )
    return match


def apply_all(ledger: EventLedger, transactions: List[Transaction]) -> List[AppliedTransaction]:
    """Apply an in-memory list of transactions, numbering them from 1."""
    engine = ReconciliationEngine(ledger)
    return [engine.apply(txn, i) for i, txn in enumerate(transactions, 1)]
