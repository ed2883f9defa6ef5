"""
E2E tests for household staff personas running through a fund year.

These tests drive the HTTP API against a SQLite database, with every
request building its engine from persisted records.

Personas:
- driver: full-time staff, borrows up to the 40,000 limit
- housekeeper: household staff, capped at 19,000
- new guard: blocked until three months of membership
- part-timer: borrowing capped at own savings, 6-month terms only
- leaver: suspended and cashed out with interest
"""

import pytest
from fastapi.testclient import TestClient


def _enroll(client: TestClient, name: str, role: str) -> str:
    response = client.post("/v1/members", json={"name": name, "role": role})
    assert response.status_code == 201
    return response.json()["member_id"]


def _contribute(client: TestClient, member_id: str, amount: float) -> None:
    response = client.post(
        "/v1/payments",
        json={"member_id": member_id, "amount": amount, "payment_type": "contribution"},
    )
    assert response.status_code == 201


@pytest.fixture
def staff(client: TestClient) -> dict:
    """Enroll one member per persona and seed the fund with 150,000 in savings"""
    members = {
        "driver": _enroll(client, "Kamau Driver", "Driver"),
        "housekeeper": _enroll(client, "Akinyi Housekeeper", "Housekeeper"),
        "guard": _enroll(client, "Mutua Guard", "Guard"),
        "part_timer": _enroll(client, "Chebet Gardener", "Part-time"),
        "leaver": _enroll(client, "Odhiambo Assistant", "Assistant"),
    }
    for persona, amount in [
        ("driver", 60000),
        ("housekeeper", 40000),
        ("guard", 10000),
        ("part_timer", 8000),
        ("leaver", 32000),
    ]:
        _contribute(client, members[persona], amount)
    return members


@pytest.mark.integration
def test_driver_borrows_full_limit_and_repays(client: TestClient, staff: dict):
    """
    driver: no outstanding loans
    Expected: full 40,000 available, loan settles after four payments
    """
    driver = staff["driver"]
    assert client.get(f"/v1/members/{driver}/loan-capacity").json()["max_borrowable"] == 40000

    loan = client.post(f"/v1/members/{driver}/loans", json={"amount": 40000, "repayment_months": 4}).json()
    assert client.get(f"/v1/members/{driver}/loan-capacity").json()["max_borrowable"] == 0

    for _ in range(4):
        response = client.post(
            "/v1/payments",
            json={"member_id": driver, "amount": 10000, "payment_type": "loan_repayment", "loan_id": loan["loan_id"]},
        )
        assert response.status_code == 201

    schedule = client.get(f"/v1/loans/{loan['loan_id']}/schedule").json()
    assert schedule["remaining_payments"] == 0
    assert schedule["completion_pct"] == 100
    assert schedule["next_due_date"] is None
    assert client.get(f"/v1/members/{driver}/loan-capacity").json()["max_borrowable"] == 40000


@pytest.mark.integration
def test_housekeeper_capped_at_household_limit(client: TestClient, staff: dict):
    """
    housekeeper: 40,000 saved
    Expected: limit stays at 19,000 regardless of savings
    """
    capacity = client.get(f"/v1/members/{staff['housekeeper']}/loan-capacity").json()
    assert capacity["limit"] == 19000

    response = client.post(
        f"/v1/members/{staff['housekeeper']}/loans", json={"amount": 19500, "repayment_months": 3}
    )
    assert response.status_code == 422


@pytest.mark.integration
def test_new_guard_must_wait(client: TestClient, staff: dict):
    """
    guard: joined today
    Expected: not eligible, any request rejected with the tenure rule
    """
    capacity = client.get(f"/v1/members/{staff['guard']}/loan-capacity").json()
    assert capacity["eligible"] is False
    assert capacity["max_borrowable"] == 0

    response = client.post(f"/v1/members/{staff['guard']}/loans", json={"amount": 1000, "repayment_months": 6})
    assert response.status_code == 422
    assert "3 months" in response.json()["detail"]


@pytest.mark.integration
def test_part_timer_borrows_own_savings(client: TestClient, staff: dict):
    """
    part_timer: 8,000 saved
    Expected: limit equals savings, 6-month term required
    """
    part_timer = staff["part_timer"]
    assert client.get(f"/v1/members/{part_timer}/loan-capacity").json()["limit"] == 8000

    short_term = client.post(f"/v1/members/{part_timer}/loans", json={"amount": 6000, "repayment_months": 3})
    assert short_term.status_code == 422

    response = client.post(f"/v1/members/{part_timer}/loans", json={"amount": 6000, "repayment_months": 6})
    assert response.status_code == 201
    assert response.json()["monthly_payment"] == 1000


@pytest.mark.integration
def test_leaver_cashes_out_and_fund_reflects_it(client: TestClient, staff: dict):
    """
    leaver: 32,000 saved, no loans
    Expected: suspended, then paid 36,160 and marked inactive
    """
    leaver = staff["leaver"]
    before = client.get("/v1/fund/summary").json()
    assert before["fund_balance"] == 150000

    client.post(f"/v1/members/{leaver}/suspend")
    response = client.post(f"/v1/members/{leaver}/cash-out", json={})
    assert response.status_code == 200
    assert response.json()["cash_out_amount"] == pytest.approx(36160)

    after = client.get("/v1/fund/summary").json()
    assert after["total_withdrawn"] == pytest.approx(36160)
    assert after["fund_balance"] == pytest.approx(150000 - 36160)
    assert after["active_members"] == 4
    assert after["total_members"] == 5


@pytest.mark.integration
def test_year_end_interest_and_utilization_warning(client: TestClient, staff: dict):
    """
    Whole fund: heavy borrowing pushes utilization past 60%
    Expected: warning flags raised, interest accrues on the reduced balance
    """
    client.post(f"/v1/members/{staff['driver']}/loans", json={"amount": 40000, "repayment_months": 4})
    response = client.post(
        f"/v1/members/{staff['housekeeper']}/loans", json={"amount": 19000, "repayment_months": 3}
    )
    assert response.status_code == 201
    assert any("utilization" in warning for warning in response.json()["warnings"])

    state = client.get("/v1/fund/state").json()
    assert state["balance"] == 91000
    assert state["utilization"] == pytest.approx(59000 / 91000)
    assert state["warn_utilization"] is True

    interest = client.post("/v1/fund/interest").json()
    assert interest["interest_amount"] == pytest.approx(91000 * 0.13)
