"""Integration tests for API endpoints"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from conftest import OWNER, advance_days

Q = {"owner_id": OWNER}


@pytest.fixture
def slot(client: TestClient):
    response = client.post("/v1/slots/1/start", params=Q)
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def alice(client: TestClient, slot):
    response = client.post("/v1/slots/1/clients", params=Q, json={"name": "Alice"})
    assert response.status_code == 201
    return response.json()


def money(value) -> Decimal:
    return Decimal(str(value))


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient, slot):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "banksim_game_days_advanced_total" in response.text
    assert "http_request_duration_seconds" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    generated = client.get("/health")
    assert generated.headers["X-Request-ID"]


def test_start_slot_returns_opening_state(slot):
    assert money(slot["liquid_cash"]) == Decimal("100000.00")
    assert slot["game_day"] == 0.0
    assert slot["next_dividend_day"] == 11


def test_reading_a_slot_advances_its_clock(client: TestClient, clock, slot):
    advance_days(clock, 1)

    response = client.get("/v1/slots/1", params=Q)

    assert response.status_code == 200
    assert money(response.json()["liquid_cash"]) == Decimal("102500.00")
    assert response.json()["game_day"] == pytest.approx(1.0)


def test_unstarted_slot_is_404(client: TestClient):
    response = client.get("/v1/slots/2", params=Q)
    assert response.status_code == 404


def test_owner_id_required(client: TestClient):
    response = client.get("/v1/slots/1")
    assert response.status_code == 422


def test_list_slots_defaults_to_three(client: TestClient, alice):
    response = client.get("/v1/slots", params=Q)

    assert response.status_code == 200
    body = response.json()
    assert [s["slot_id"] for s in body] == [1, 2, 3]
    assert body[0]["client_count"] == 1
    assert body[1]["has_data"] is False


def test_create_client_without_name_is_400(client: TestClient, slot):
    response = client.post("/v1/slots/1/clients", params=Q, json={})
    assert response.status_code == 400
    assert "name" in response.json()["detail"]


def test_deposit_and_withdraw_limits(client: TestClient, alice):
    base = f"/v1/slots/1/clients/{alice['id']}"

    deposit = client.post(f"{base}/deposit", params=Q, json={"amount": "1000.00"})
    assert deposit.status_code == 200
    assert deposit.json()["type"] == "DEPOSIT"

    too_much = client.post(f"{base}/withdraw", params=Q, json={"amount": "5000.00"})
    assert too_much.status_code == 422
    assert too_much.json()["detail"] == "Insufficient funds."

    over_limit = client.post(f"{base}/withdraw", params=Q, json={"amount": "600.00"})
    assert over_limit.status_code == 422
    assert over_limit.json()["detail"] == "Exceeds daily limit. You can withdraw $500.00 more today."

    balance = client.get(base, params=Q).json()["checking_balance"]
    assert money(balance) == Decimal("1000.00")


def test_unknown_client_is_404(client: TestClient, slot):
    response = client.get("/v1/slots/1/clients/999", params=Q)
    assert response.status_code == 404


def test_invest_and_divest(client: TestClient, slot):
    invested = client.post("/v1/slots/1/investments/invest", params=Q, json={"amount": "10000.00"})
    assert invested.status_code == 200
    assert money(invested.json()["invested_amount"]) == Decimal("10000.00")

    divested = client.post("/v1/slots/1/investments/divest", params=Q, json={"amount": "10000.00"})
    assert money(divested.json()["invested_amount"]) == Decimal("0.00")

    overdrawn = client.post("/v1/slots/1/investments/divest", params=Q, json={"amount": "1.00"})
    assert overdrawn.status_code == 422

    summary = client.get("/v1/slots/1/investments", params=Q).json()
    assert sorted(e["type"] for e in summary["events"]) == ["DIVEST", "INVEST"]


def test_spending_twice_same_day(client: TestClient, alice):
    client.post(
        "/v1/spending-categories",
        json={"name": "Groceries", "min_pct_income": "0.10", "max_pct_income": "0.20", "variability": "0.1"},
    )
    job = client.post(
        "/v1/jobs", json={"title": "Engineer", "employer": "Acme", "annual_salary": "120000.00"}
    ).json()
    base = f"/v1/slots/1/clients/{alice['id']}"
    client.post(f"{base}/jobs", params=Q, json={"job_id": job["id"]})
    client.post(f"{base}/deposit", params=Q, json={"amount": "5000.00"})

    first = client.post(f"{base}/spending", params=Q, json={})
    second = client.post(f"{base}/spending", params=Q, json={})

    assert first.status_code == 200
    assert len(first.json()) > 0
    assert {tx["type"] for tx in first.json()} == {"SPENDING"}
    assert second.json() == []


def test_loan_lifecycle(client: TestClient, alice):
    created = client.post(
        f"/v1/slots/1/clients/{alice['id']}/loans", params=Q, json={"amount": "3600.00", "term_years": 3}
    )
    assert created.status_code == 201
    loan_id = created.json()["id"]

    approved = client.post(f"/v1/slots/1/loans/{loan_id}/decision", params=Q, json={"status": "APPROVED"})
    assert approved.status_code == 200
    assert money(approved.json()["monthly_payment"]) == Decimal("100.00")

    again = client.post(f"/v1/slots/1/loans/{loan_id}/decision", params=Q, json={"status": "REJECTED"})
    assert again.status_code == 400

    loans = client.get("/v1/slots/1/loans", params=Q).json()
    assert [loan["status"] for loan in loans] == ["APPROVED"]


def test_tick_runs_every_scheduler(client: TestClient, clock, alice):
    rental = client.post("/v1/rentals", json={"name": "Studio", "monthly_rent": "800.00"}).json()
    job = client.post(
        "/v1/jobs", json={"title": "Engineer", "employer": "Acme", "annual_salary": "120000.00"}
    ).json()
    base = f"/v1/slots/1/clients/{alice['id']}"
    client.post(f"{base}/jobs", params=Q, json={"job_id": job["id"]})
    living = client.put(f"{base}/living/rental", params=Q, json={"rental_id": rental["id"]})
    assert living.json()["next_rent_day"] == 1

    advance_days(clock, 2)
    tick = client.post("/v1/slots/1/tick", params=Q)

    assert tick.status_code == 200
    body = tick.json()
    assert body["payroll_payments"] == 2
    assert body["rent_charges"] == 2
    assert body["clients"] == [alice["id"]]

    after = client.get(base, params=Q).json()
    # two paychecks of 10000 minus two rents of 800
    assert money(after["checking_balance"]) == Decimal("18400.00")


def test_mortgage_reconcile_endpoint(client: TestClient, alice):
    prop = client.post("/v1/slots/1/properties", params=Q, json={"name": "Flat", "price": "108000.00"}).json()
    created = client.post(
        f"/v1/slots/1/clients/{alice['id']}/mortgages",
        params=Q,
        json={"property_id": prop["id"], "down_payment": "0.00", "term_years": 10},
    ).json()
    accepted = client.post(f"/v1/slots/1/mortgages/{created['id']}/decision", params=Q, json={"status": "ACCEPTED"})
    assert accepted.status_code == 200

    response = client.post("/v1/slots/1/mortgages/reconcile", params=Q)

    assert response.status_code == 200
    assert [m["status"] for m in response.json()] == ["ACCEPTED"]
    assert money(response.json()[0]["total_paid"]) == Decimal("0.00")


def test_bankruptcy_endpoints(client: TestClient, alice):
    filed = client.post(f"/v1/slots/1/clients/{alice['id']}/bankruptcy", params=Q, json={"notes": "debts"})
    assert filed.status_code == 201

    decided = client.post(
        f"/v1/slots/1/bankruptcy/{filed.json()['id']}/decision", params=Q, json={"status": "APPROVED"}
    )
    assert decided.status_code == 200
    assert decided.json()["discharge_at"] == 2520.0

    sweep = client.post("/v1/slots/1/bankruptcy/sweep", params=Q)
    assert sweep.json()["posted"] == 0


def test_cashflow_endpoint(client: TestClient, alice):
    base = f"/v1/slots/1/clients/{alice['id']}"
    client.post(f"{base}/deposit", params=Q, json={"amount": "400.00"})

    response = client.get(f"{base}/cashflow", params={**Q, "year": 1, "month": 1})
    assert response.status_code == 200
    assert money(response.json()["income"]) == Decimal("400.00")

    bad = client.get(f"{base}/cashflow", params={**Q, "year": 1, "month": 13})
    assert bad.status_code == 400
