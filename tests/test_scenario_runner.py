"""
Tests for the interactive scenario runner's JSON API.
"""
import pytest

from scenario_runner import RUNNERS, SCENARIOS, app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def _run(client, scenario, params):
    resp = client.post("/api/run-test", json={"scenario": scenario, "params": params})
    assert resp.status_code == 200
    return resp.get_json()


class TestScenarioRunner:
    def test_every_scenario_has_a_runner(self):
        assert {s["id"] for s in SCENARIOS} == set(RUNNERS)

    def test_index_page(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert b"Quibble Scenario Runner" in resp.data

    def test_list_scenarios(self, client):
        data = client.get("/api/scenarios").get_json()
        assert [s["id"] for s in data] == [s["id"] for s in SCENARIOS]

    def test_unknown_scenario(self, client):
        resp = client.post("/api/run-test", json={"scenario": "nope", "params": {}})
        assert resp.status_code == 400

    def test_sell(self, client):
        data = _run(client, "sell", {"initial_tickets": 10, "sell": 3, "expected_tickets": 7})
        assert data["passed"]
        assert data["actual_tickets"] == 7
        assert data["snapshot"][-1].startswith("END")

    @pytest.mark.parametrize("initial,action,qty,expected", [
        (99998, "add", 5, 99999),
        (2, "sell", 5, 0),
    ])
    def test_clamp(self, client, initial, action, qty, expected):
        data = _run(client, "clamp", {
            "initial_tickets": initial, "action": action, "tickets": qty,
            "expected_tickets": expected,
        })
        assert data["passed"]
        assert data["clamped"]

    def test_prune(self, client):
        data = _run(client, "prune", {
            "event_date": "160101", "current_date": "160201", "expect_pruned": "yes",
        })
        assert data["passed"]
        assert data["events"] == []

    def test_delete(self, client):
        data = _run(client, "delete", {"event_name": "Concert"})
        assert data["passed"]
        assert [e["name"] for e in data["events"]] == ["Other Show"]

    def test_custom_transactions(self, client):
        data = _run(client, "custom_transactions", {
            "current_date": "160101",
            "master": [f"160101 00010 {'Concert':<20}"],
            "transactions": [
                f"01 {'Concert':<20} 160101 00003",
                f"00 {'':<20} 000000 00000",
            ],
        })
        assert data["passed"]
        assert data["events"] == [{"name": "Concert", "date": "160101", "ticket_count": 7}]
        assert len(data["output_hash"]) == 64

    def test_custom_transactions_prunes_while_loading(self, client):
        data = _run(client, "custom_transactions", {
            "current_date": "160201",
            "master": [f"160101 00010 {'Old Show':<20}", f"160301 00005 {'Opera':<20}"],
            "transactions": [f"04 {'Opera':<20} 160301 00002"],
        })
        assert data["passed"]
        assert data["pruned"] == 1
        assert data["events"] == [{"name": "Opera", "date": "160301", "ticket_count": 7}]

    def test_custom_transactions_unknown_event(self, client):
        data = _run(client, "custom_transactions", {
            "current_date": "160101",
            "master": [],
            "transactions": [f"01 {'Ghost':<20} 160101 00003"],
        })
        assert not data["passed"]
        assert "Ghost" in data["error"]

    def test_custom_transactions_bad_line(self, client):
        data = _run(client, "custom_transactions", {
            "current_date": "160101", "master": ["garbage"], "transactions": [],
        })
        assert not data["passed"]
        assert "Malformed" in data["error"]
