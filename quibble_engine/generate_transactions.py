"""
Synthetic data generator for the Quibble reconciliation engine.

Writes a master-events file and a merged-transactions file built from
simulated point-of-sale sessions that demonstrate:
  - Pruning (a few master events already in the past)
  - Sales, returns and admin adds against known events
  - Creates of new events and deletes of existing ones
  - One logout per session, sessions merged in order
"""
from __future__ import annotations

import random
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List

from quibble_engine.models import (
    CODE_ADD,
    CODE_CREATE,
    CODE_DELETE,
    CODE_RETURN,
    CODE_SELL,
    MASTER_EVENTS_FILE,
    MAX_EVENT_NAME,
    MAX_TICKETS,
    MERGED_TRANSACTIONS_FILE,
    Event,
)
from quibble_engine.session import SessionLog, merge_logs, session_log_name
from quibble_engine.state import save_master

ADJECTIVES = ["Grand", "Midnight", "Summer", "Jazz", "Rock", "Opera", "Comedy", "Indie"]
NOUNS = ["Gala", "Concert", "Festival", "Night", "Show", "Revue", "Matinee", "Tour"]

SALES_LIMIT = 8     # per-transaction limit for the sales account


def _shift(current_date: str, days: int) -> str:
    d = datetime.strptime(current_date, "%y%m%d") + timedelta(days=days)
    return d.strftime("%y%m%d")


def _name_pool(rng: random.Random) -> List[str]:
    names = [f"{a} {n}"[:MAX_EVENT_NAME] for a in ADJECTIVES for n in NOUNS]
    rng.shuffle(names)
    return names


def generate_transactions(
    workdir: str,
    sessions: int = 20,
    seed: int = 42,
    current_date: str = "160101",
    initial_events: int = 10,
    expired_events: int = 3,
) -> Path:
    """Generate master-events and merged-transactions in workdir.

    Returns the path of the merged transaction log.
    """
    rng = random.Random(seed)
    base = Path(workdir)
    pool = _name_pool(rng)

    # Phase 1: master record — live events plus a few already expired
    live: Dict[str, Event] = {}
    master: List[Event] = []
    for _ in range(initial_events):
        name = pool.pop()
        event = Event(name, _shift(current_date, rng.randint(0, 365)), rng.randint(20, 2000))
        live[name] = event
        master.append(event)
    for _ in range(expired_events):
        master.append(Event(pool.pop(), _shift(current_date, -rng.randint(1, 60)), rng.randint(0, 500)))
    save_master(master, base / MASTER_EVENTS_FILE)

    # Phase 2: sessions against the front end's view of the snapshot
    log_paths: List[Path] = []
    for session_number in range(1, sessions + 1):
        log = SessionLog()
        for _ in range(rng.randint(3, 12)):
            command = rng.choice([CODE_SELL, CODE_SELL, CODE_SELL, CODE_RETURN,
                                  CODE_ADD, CODE_CREATE, CODE_DELETE])
            if command == CODE_CREATE:
                if not pool:
                    continue
                name = pool.pop()
                event = Event(name, _shift(current_date, rng.randint(1, 365)), rng.randint(10, 5000))
                live[name] = event
                log.record(CODE_CREATE, event)
                continue

            if not live:
                continue
            event = live[rng.choice(sorted(live))]

            if command == CODE_SELL:
                if event.ticket_count == 0:
                    continue
                qty = rng.randint(1, min(SALES_LIMIT, event.ticket_count))
                event.ticket_count -= qty
                log.record(CODE_SELL, event, qty)
            elif command == CODE_RETURN:
                qty = rng.randint(1, SALES_LIMIT)
                if event.ticket_count + qty > MAX_TICKETS:
                    continue
                event.ticket_count += qty
                log.record(CODE_RETURN, event, qty)
            elif command == CODE_ADD:
                qty = rng.randint(1, 500)
                if event.ticket_count + qty > MAX_TICKETS:
                    continue
                event.ticket_count += qty
                log.record(CODE_ADD, event, qty)
            elif command == CODE_DELETE:
                # deletes are rare; a deleted name is never reused
                if rng.random() < 0.5:
                    continue
                del live[event.name]
                log.record(CODE_DELETE, event, 0)
        log.logout()

        path = base / "sessions" / session_log_name(current_date, session_number)
        log.write(path)
        log_paths.append(path)

    # Phase 3: merge, session order preserved
    merged = base / MERGED_TRANSACTIONS_FILE
    merge_logs(log_paths, merged)
    return merged


if __name__ == "__main__":
    generate_transactions(".", 20, 42)
    print(f"Generated {MASTER_EVENTS_FILE} and {MERGED_TRANSACTIONS_FILE}")
