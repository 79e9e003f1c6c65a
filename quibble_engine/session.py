"""
Point-of-sale session logs — the producer side of merged-transactions.

A terminal records one Transaction per accepted command and writes the list
out when the user logs out.  Transactions copy the event's values at the
moment they are recorded, so later changes to the event do not leak into
the log.  Logs from all sessions are concatenated, in the order given, into
the merged transaction log.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from quibble_engine.codec import encode_transaction_line
from quibble_engine.models import CODE_LOGOUT, Event, Transaction

logger = logging.getLogger(__name__)


def session_log_name(date: str, session_number: int) -> str:
    return f"transaction-{date}-{session_number}"


class SessionLog:
    """Transactions collected during one login session."""

    def __init__(self) -> None:
        self.transactions: List[Transaction] = []

    def __len__(self) -> int:
        return len(self.transactions)

    def record(self, code: int, event: Event, tickets: Optional[int] = None) -> Transaction:
        """Append a copy of the event's values; tickets is the quantity moved."""
        if code == CODE_LOGOUT:
            return self.logout()
        txn = Transaction.from_event(code, event, tickets)
        self.transactions.append(txn)
        return txn

    def logout(self) -> Transaction:
        txn = Transaction.logout()
        self.transactions.append(txn)
        return txn

    def lines(self) -> List[str]:
        return [encode_transaction_line(t) for t in self.transactions]

    def write(self, path: str | Path) -> None:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        with open(p, "w", encoding="utf-8", newline="\n") as f:
            for line in self.lines():
                f.write(line + "\n")
        logger.info("Session log saved → %s (%d transactions)", p, len(self))


def merge_logs(paths: Iterable[str | Path], out_path: str | Path) -> int:
    """Concatenate session logs into one merged log. Returns the line count."""
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(out, "w", encoding="utf-8", newline="\n") as dst:
        for path in paths:
            with open(path, "r", encoding="utf-8") as src:
                for line in src:
                    line = line.rstrip("\r\n")
                    if not line:
                        continue
                    dst.write(line + "\n")
                    count += 1
    logger.info("Merged %d transactions → %s", count, out)
    return count
