"""Quick API verification for the scenario runner."""
import sys

import requests

base = "http://127.0.0.1:5050"

tests = [
    ("Scenarios loaded", "GET", "/api/scenarios", None, lambda r: len(r.json()) == 5),
    ("Sell 3 of 10", "POST", "/api/run-test", {
        "scenario": "sell",
        "params": {"initial_tickets": 10, "sell": 3, "expected_tickets": 7},
    }, lambda r: r.json()["passed"]),
    ("Overflow clamp (99998 + 5)", "POST", "/api/run-test", {
        "scenario": "clamp",
        "params": {"initial_tickets": 99998, "action": "add", "tickets": 5,
                   "expected_tickets": 99999},
    }, lambda r: r.json()["passed"] and r.json()["clamped"]),
    ("Underflow clamp (2 - 5)", "POST", "/api/run-test", {
        "scenario": "clamp",
        "params": {"initial_tickets": 2, "action": "sell", "tickets": 5,
                   "expected_tickets": 0},
    }, lambda r: r.json()["passed"] and r.json()["clamped"]),
    ("Prune 160101 on 160201", "POST", "/api/run-test", {
        "scenario": "prune",
        "params": {"event_date": "160101", "current_date": "160201", "expect_pruned": "yes"},
    }, lambda r: r.json()["passed"]),
    ("Keep 160201 on 160201", "POST", "/api/run-test", {
        "scenario": "prune",
        "params": {"event_date": "160201", "current_date": "160201", "expect_pruned": "no"},
    }, lambda r: r.json()["passed"]),
    ("Delete", "POST", "/api/run-test", {
        "scenario": "delete",
        "params": {"event_name": "Concert"},
    }, lambda r: r.json()["passed"]),
    ("Custom transactions", "POST", "/api/run-test", {
        "scenario": "custom_transactions",
        "params": {
            "current_date": "160101",
            "master": ["160101 00010 Concert             "],
            "transactions": [
                "01 Concert              160101 00003",
                "00                      000000 00000",
            ],
        },
    }, lambda r: r.json()["passed"] and r.json()["events"][0]["ticket_count"] == 7),
    ("Custom transactions (unknown event)", "POST", "/api/run-test", {
        "scenario": "custom_transactions",
        "params": {"current_date": "160101", "master": [],
                   "transactions": ["01 Ghost                160101 00003"]},
    }, lambda r: not r.json()["passed"] and "Ghost" in r.json()["error"]),
    ("Frontend HTML", "GET", "/", None,
     lambda r: "Quibble Scenario Runner" in r.text),
]

print("=" * 60)
ok = 0
for name, method, path, body, check in tests:
    try:
        if method == "GET":
            r = requests.get(base + path)
        else:
            r = requests.post(base + path, json=body)
        passed = check(r)
        status = "PASS" if passed else "FAIL"
        detail = ""
        if not passed and method == "POST":
            detail = f" | {r.text[:120]}"
    except Exception as exc:
        status = "ERR"
        detail = f" | {exc}"
        passed = False
    print(f"  [{status}] {name}{detail}")
    if passed:
        ok += 1

print(f"\n  {ok}/{len(tests)} passed")
print("=" * 60)
if ok != len(tests):
    sys.exit(1)
