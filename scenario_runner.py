"""
Interactive Scenario Runner for the Quibble reconciliation engine.

A web-based UI that lets testers build a master record and a transaction
sequence, run it through the engine, and check the resulting ledger
without writing code. Select a scenario, tweak values, hit Run.

Usage:
    python scenario_runner.py
    # Open http://localhost:5050
"""
from __future__ import annotations

import traceback
from typing import Any, Dict, List

from flask import Flask, jsonify, render_template, request

from quibble_engine.codec import (
    decode_transaction_line,
    encode_snapshot_end,
    encode_snapshot_line,
)
from quibble_engine.engine import ReconciliationEngine
from quibble_engine.ledger import EventLedger
from quibble_engine.models import (
    CODE_ADD,
    CODE_DELETE,
    CODE_SELL,
    MAX_TICKETS,
    MIN_TICKETS,
    ReconciliationError,
    Transaction,
)
from quibble_engine.state import build_ledger, compute_output_hash

app = Flask(__name__)

# -----------------------------------------------------------------------
# Scenario definitions
# -----------------------------------------------------------------------
SCENARIOS: List[Dict[str, Any]] = [
    {
        "id": "sell",
        "name": "Sell Tickets",
        "description": "Sell tickets for an existing event and check the remaining count.",
        "fields": [
            {"name": "initial_tickets", "label": "Initial Tickets", "type": "number", "default": 10},
            {"name": "sell", "label": "Tickets Sold", "type": "number", "default": 3},
            {"name": "expected_tickets", "label": "Expected Remaining", "type": "number", "default": 7},
        ],
    },
    {
        "id": "clamp",
        "name": "Clamp",
        "description": f"Sales below {MIN_TICKETS} and adds above {MAX_TICKETS} saturate instead of failing.",
        "fields": [
            {"name": "initial_tickets", "label": "Initial Tickets", "type": "number", "default": 99998},
            {"name": "action", "label": "Action", "type": "select", "default": "add",
             "options": ["add", "sell"]},
            {"name": "tickets", "label": "Tickets", "type": "number", "default": 5},
            {"name": "expected_tickets", "label": "Expected Result", "type": "number", "default": 99999},
        ],
    },
    {
        "id": "prune",
        "name": "Prune Expired Events",
        "description": "Events dated before the run date are dropped at load time.",
        "fields": [
            {"name": "event_date", "label": "Event Date (YYMMDD)", "type": "text", "default": "160101"},
            {"name": "current_date", "label": "Run Date (YYMMDD)", "type": "text", "default": "160201"},
            {"name": "expect_pruned", "label": "Expect Pruned?", "type": "select", "default": "yes",
             "options": ["yes", "no"]},
        ],
    },
    {
        "id": "delete",
        "name": "Delete Event",
        "description": "A delete transaction removes the event from the ledger and both outputs.",
        "fields": [
            {"name": "event_name", "label": "Event Name", "type": "text", "default": "Concert"},
        ],
    },
    {
        "id": "custom_transactions",
        "name": "Custom Transaction Log",
        "description": "Paste master lines and transaction lines, run them, and inspect the ledger.",
        "fields": [],  # Handled by the custom builder UI
    },
]


# -----------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------
def _ledger_with(name: str, date: str, tickets: int) -> EventLedger:
    ledger = EventLedger()
    ledger.upsert_create(name, date, tickets)
    return ledger


def _outputs(ledger: EventLedger) -> Dict[str, Any]:
    events = ledger.sorted_by_date()
    snapshot = [encode_snapshot_line(e) for e in events] + [encode_snapshot_end()]
    return {
        "events": [e.to_dict() for e in events],
        "snapshot": snapshot,
        "output_hash": compute_output_hash(events),
    }


# -----------------------------------------------------------------------
# Scenario runners
# -----------------------------------------------------------------------
def _run_sell(params: Dict) -> Dict[str, Any]:
    initial = int(params["initial_tickets"])
    sold = int(params["sell"])
    expected = int(params["expected_tickets"])

    ledger = _ledger_with("Concert", "160101", initial)
    applied = ReconciliationEngine(ledger).apply(
        Transaction(CODE_SELL, "Concert", "160101", sold), 1,
    )
    actual = ledger.find("Concert").ticket_count
    return {
        "passed": actual == expected,
        "actual_tickets": actual,
        "expected_tickets": expected,
        "applied": applied.to_dict(),
        **_outputs(ledger),
        "explanation": f"{initial} - {sold} → {actual}",
    }


def _run_clamp(params: Dict) -> Dict[str, Any]:
    initial = int(params["initial_tickets"])
    action = params["action"]
    tickets = int(params["tickets"])
    expected = int(params["expected_tickets"])

    code = CODE_ADD if action == "add" else CODE_SELL
    ledger = _ledger_with("Concert", "160101", initial)
    applied = ReconciliationEngine(ledger).apply(
        Transaction(code, "Concert", "160101", tickets), 1,
    )
    actual = ledger.find("Concert").ticket_count
    return {
        "passed": actual == expected,
        "actual_tickets": actual,
        "expected_tickets": expected,
        "clamped": applied.clamped,
        "applied": applied.to_dict(),
        "explanation": (
            f"{action} {tickets} on {initial} → {actual} "
            f"({'clamped' if applied.clamped else 'within range'})"
        ),
    }


def _run_prune(params: Dict) -> Dict[str, Any]:
    event_date = params["event_date"]
    current_date = params["current_date"]
    expect_pruned = params["expect_pruned"] == "yes"

    ledger = _ledger_with("Concert", event_date, 10)
    pruned = ledger.prune_before(current_date)
    was_pruned = bool(pruned)
    return {
        "passed": was_pruned == expect_pruned,
        "was_pruned": was_pruned,
        "expected_pruned": expect_pruned,
        **_outputs(ledger),
        "explanation": f"Event date {event_date} vs run date {current_date}",
    }


def _run_delete(params: Dict) -> Dict[str, Any]:
    name = params["event_name"]

    ledger = _ledger_with(name, "160101", 10)
    ledger.upsert_create("Other Show", "160102", 5)
    ReconciliationEngine(ledger).apply(Transaction(CODE_DELETE, name), 1)
    outputs = _outputs(ledger)
    still_listed = any(line.startswith(f"{name:<20} ") for line in outputs["snapshot"])
    return {
        "passed": ledger.find(name) is None and not still_listed,
        **outputs,
        "explanation": f"Deleted {name!r}; {len(ledger)} event(s) remain",
    }


def _run_custom_transactions(params: Dict) -> Dict[str, Any]:
    master_lines = [l for l in params.get("master", []) if l.strip()]
    txn_lines = [l for l in params.get("transactions", []) if l.strip()]
    current_date = params.get("current_date", "000000")

    ledger = EventLedger()
    pruned = 0
    applied: List[Dict[str, Any]] = []
    error_msg = None
    try:
        ledger, pruned = build_ledger(enumerate(master_lines, 1), current_date)
        engine = ReconciliationEngine(ledger)
        for i, line in enumerate(txn_lines, 1):
            applied.append(engine.apply(decode_transaction_line(line), i).to_dict())
    except (ReconciliationError, ValueError) as exc:
        error_msg = str(exc)

    return {
        "passed": error_msg is None,
        "error": error_msg,
        "pruned": pruned,
        "applied": applied,
        **_outputs(ledger),
    }


RUNNERS = {
    "sell": _run_sell,
    "clamp": _run_clamp,
    "prune": _run_prune,
    "delete": _run_delete,
    "custom_transactions": _run_custom_transactions,
}


# -----------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------
@app.route("/")
def index():
    return render_template("index.html")


@app.route("/api/scenarios")
def get_scenarios():
    return jsonify(SCENARIOS)


@app.route("/api/run-test", methods=["POST"])
def run_test():
    data = request.get_json()
    scenario_id = data.get("scenario")
    params = data.get("params", {})

    runner = RUNNERS.get(scenario_id)
    if not runner:
        return jsonify({"error": f"Unknown scenario: {scenario_id}"}), 400

    try:
        result = runner(params)
        return jsonify(result)
    except Exception as exc:
        return jsonify({
            "passed": False,
            "error": str(exc),
            "traceback": traceback.format_exc(),
        }), 200


# -----------------------------------------------------------------------
# Main
# -----------------------------------------------------------------------
if __name__ == "__main__":
    print("\n  Quibble Scenario Runner → http://localhost:5050\n")
    app.run(host="127.0.0.1", port=5050, debug=True)
