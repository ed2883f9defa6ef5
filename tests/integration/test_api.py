"""Integration tests for API endpoints"""

import uuid
import pytest
from fastapi.testclient import TestClient
from fund_ledger.api.dependencies import get_engine
from fund_ledger.domain.exceptions import RepositoryFailure
from datetime import datetime, timezone
from fund_ledger.domain.models import FundSettings, Loan, RecordKind, TransactionType
from fund_ledger.domain.repository import InMemoryRecordRepository
from fund_ledger.engine import FundEngine
from fund_ledger.infrastructure.database.repositories import SqlAlchemyRecordRepository


class UnavailableRepository(InMemoryRecordRepository):
    def sum(self, kind, field_name, filters=None):
        raise RepositoryFailure("database is locked")


def _enroll(client: TestClient, name: str = "Wanjiku Kamau", role: str = "Driver") -> str:
    response = client.post("/v1/members", json={"name": name, "role": role})
    assert response.status_code == 201
    return response.json()["member_id"]


def _contribute(client: TestClient, member_id: str, amount: float) -> None:
    response = client.post(
        "/v1/payments",
        json={"member_id": member_id, "amount": amount, "payment_type": "contribution", "payment_method": "mpesa"},
    )
    assert response.status_code == 201


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.get("/v1/fund/state")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "fund_balance" in response.text
    assert "http_request_duration_seconds" in response.text


def test_request_id_is_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"

    generated = client.get("/health").headers["X-Request-ID"]
    assert uuid.UUID(generated)


def test_empty_fund_state(client: TestClient):
    response = client.get("/v1/fund/state")

    assert response.status_code == 200
    data = response.json()
    assert data["balance"] == 0
    assert data["utilization"] == 0
    assert data["warn_minimum_balance"] is True
    assert data["warn_utilization"] is False


def test_enroll_member(client: TestClient):
    response = client.post(
        "/v1/members",
        json={"name": "Achieng", "role": "Housekeeper", "email": "achieng@example.com"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["role"] == "Housekeeper"
    assert data["status"] == "active"


def test_enroll_rejects_unknown_role(client: TestClient):
    response = client.post("/v1/members", json={"name": "Achieng", "role": "Chef"})
    assert response.status_code == 422


def test_enroll_rejects_invalid_email(client: TestClient):
    response = client.post("/v1/members", json={"name": "Achieng", "role": "Driver", "email": "nope"})

    assert response.status_code == 422
    assert "email" in response.json()["detail"]


def test_loan_lifecycle(client: TestClient, db):
    """Contribute, borrow, inspect the schedule, repay"""
    member_id = _enroll(client)
    _contribute(client, member_id, 50000)

    capacity = client.get(f"/v1/members/{member_id}/loan-capacity").json()
    assert capacity == {"member_id": member_id, "limit": 40000, "eligible": True, "max_borrowable": 40000}

    response = client.post(f"/v1/members/{member_id}/loans", json={"amount": 10000, "repayment_months": 4})
    assert response.status_code == 201
    loan = response.json()
    assert loan["monthly_payment"] == 2500
    assert loan["status"] == "active"
    assert loan["warnings"] == ["This loan will reduce fund balance below minimum threshold of KSH 50,000"]

    state = client.get("/v1/fund/state").json()
    assert state["balance"] == 40000
    assert state["utilization"] == pytest.approx(0.25)

    schedule = client.get(f"/v1/loans/{loan['loan_id']}/schedule").json()
    assert schedule["remaining_payments"] == 4
    assert schedule["overdue"] is False
    assert schedule["completion_pct"] == 0

    response = client.post(
        "/v1/payments",
        json={"member_id": member_id, "amount": 2500, "payment_type": "loan_repayment", "loan_id": loan["loan_id"]},
    )
    assert response.status_code == 201
    assert response.json()["loan_repayment_amount"] == 2500

    schedule = client.get(f"/v1/loans/{loan['loan_id']}/schedule").json()
    assert schedule["remaining_payments"] == 3
    assert schedule["completion_pct"] == pytest.approx(25)

    capacity = client.get(f"/v1/members/{member_id}/loan-capacity").json()
    assert capacity["max_borrowable"] == 32500

    [disbursement] = SqlAlchemyRecordRepository(db).find(
        RecordKind.TRANSACTION, {"type": TransactionType.LOAN_DISBURSEMENT}
    )
    display = client.get(f"/v1/transactions/{disbursement.id}/display").json()
    assert display["signed_display_amount"] == "-KSH 10,000"
    assert display["is_credit"] is False


def test_loan_over_limit_rejected(client: TestClient):
    member_id = _enroll(client, role="Part-time")
    _contribute(client, member_id, 3000)

    response = client.post(f"/v1/members/{member_id}/loans", json={"amount": 5000, "repayment_months": 6})

    assert response.status_code == 422
    assert "KSH 3,000" in response.json()["detail"]


def test_loan_with_wrong_repayment_period(client: TestClient):
    member_id = _enroll(client)
    _contribute(client, member_id, 10000)

    response = client.post(f"/v1/members/{member_id}/loans", json={"amount": 5000, "repayment_months": 6})

    assert response.status_code == 422
    assert response.json()["detail"] == "Repayment period must be 3 or 4 months"


def test_mixed_payment(client: TestClient):
    member_id = _enroll(client)
    _contribute(client, member_id, 20000)
    loan = client.post(f"/v1/members/{member_id}/loans", json={"amount": 6000, "repayment_months": 3}).json()

    payload = {"member_id": member_id, "amount": 3000, "payment_type": "mixed", "loan_id": loan["loan_id"]}
    unsplit = client.post("/v1/payments", json=payload)
    assert unsplit.status_code == 422

    response = client.post("/v1/payments", json={**payload, "loan_portion": 2000})
    assert response.status_code == 201
    data = response.json()
    assert data["loan_repayment_amount"] == 2000
    assert data["contribution_amount"] == 1000


def test_repayment_without_loan(client: TestClient):
    member_id = _enroll(client)

    response = client.post(
        "/v1/payments", json={"member_id": member_id, "amount": 1000, "payment_type": "loan_repayment"}
    )

    assert response.status_code == 422


def test_cash_out_flow(client: TestClient):
    member_id = _enroll(client)
    _contribute(client, member_id, 10000)

    refused = client.post(f"/v1/members/{member_id}/cash-out", json={})
    assert refused.status_code == 422

    suspended = client.post(f"/v1/members/{member_id}/suspend")
    assert suspended.json()["status"] == "suspended"

    response = client.post(f"/v1/members/{member_id}/cash-out", json={})
    assert response.status_code == 200
    data = response.json()
    assert data["cash_out_amount"] == pytest.approx(11300)
    assert data["status"] == "inactive"

    assert client.post(f"/v1/members/{member_id}/reactivate").status_code == 422


def test_interest_endpoint(client: TestClient):
    member_id = _enroll(client)
    _contribute(client, member_id, 100000)

    first = client.post("/v1/fund/interest")
    assert first.status_code == 200
    assert first.json()["interest_amount"] == pytest.approx(13000)
    assert first.json()["fund_balance"] == pytest.approx(113000)
    assert first.json()["warnings"] == []

    second = client.post("/v1/fund/interest")
    assert second.status_code == 200
    assert len(second.json()["warnings"]) == 1

    summary = client.get("/v1/fund/summary").json()
    assert summary["total_interest_applied"] == pytest.approx(13000 + 113000 * 0.13)
    assert summary["total_members"] == 1
    assert summary["total_capital"] == 100000
    assert summary["projected_annual_interest"] == pytest.approx(summary["fund_balance"] * 0.13)


def test_interest_rejected_on_empty_fund(client: TestClient):
    response = client.post("/v1/fund/interest")
    assert response.status_code == 422


def test_unknown_member_returns_404(client: TestClient):
    response = client.get(f"/v1/members/{uuid.uuid4()}/loan-capacity")
    assert response.status_code == 404


def test_unknown_transaction_returns_404(client: TestClient):
    response = client.get(f"/v1/transactions/{uuid.uuid4()}/display")
    assert response.status_code == 404


def test_invalid_id_returns_400(client: TestClient):
    response = client.get("/v1/loans/not-a-uuid/schedule")

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid loan ID format"


def test_repository_failure_returns_503(client: TestClient):
    client.app.dependency_overrides[get_engine] = lambda: FundEngine(UnavailableRepository(), FundSettings())

    response = client.get("/v1/fund/state")

    assert response.status_code == 503
    assert response.json()["detail"] == "Fund records unavailable"


def test_delete_member(client: TestClient):
    member_id = _enroll(client)
    _contribute(client, member_id, 5000)

    response = client.delete(f"/v1/members/{member_id}")

    assert response.status_code == 204
    assert client.get(f"/v1/members/{member_id}/loan-capacity").status_code == 404
    assert client.get("/v1/fund/summary").json()["total_members"] == 0


def test_delete_member_with_active_loan_conflicts(client: TestClient):
    member_id = _enroll(client)
    _contribute(client, member_id, 20000)
    client.post(f"/v1/members/{member_id}/loans", json={"amount": 6000, "repayment_months": 3})

    response = client.delete(f"/v1/members/{member_id}")

    assert response.status_code == 409
    assert client.get(f"/v1/members/{member_id}/loan-capacity").status_code == 200


def test_overdue_loans(client: TestClient, db):
    member_id = _enroll(client)
    repository = SqlAlchemyRecordRepository(db)
    overdue = repository.add(
        Loan(
            member_id=uuid.UUID(member_id),
            amount=6000,
            balance=4000,
            monthly_payment=2000,
            repayment_months=3,
            issue_date=datetime(2024, 1, 10, tzinfo=timezone.utc),
            due_date=datetime(2024, 4, 10, tzinfo=timezone.utc),
        )
    )
    repository.save()
    client.post(f"/v1/members/{member_id}/loans", json={"amount": 1000, "repayment_months": 3})

    response = client.get("/v1/loans/overdue")

    assert response.status_code == 200
    [entry] = response.json()
    assert entry["loan_id"] == str(overdue.id)
    assert entry["balance"] == 4000
    assert entry["days_overdue"] > 365


def test_recalculate_loan_balance(client: TestClient, db):
    member_id = _enroll(client)
    _contribute(client, member_id, 20000)
    loan_id = client.post(f"/v1/members/{member_id}/loans", json={"amount": 6000, "repayment_months": 3}).json()["loan_id"]
    client.post(
        "/v1/payments",
        json={"member_id": member_id, "amount": 2000, "payment_type": "loan_repayment", "loan_id": loan_id},
    )
    repository = SqlAlchemyRecordRepository(db)
    repository.get(RecordKind.LOAN, uuid.UUID(loan_id)).balance = 6000
    repository.save()

    response = client.post(f"/v1/loans/{loan_id}/recalculate")

    assert response.status_code == 200
    assert response.json() == {"loan_id": loan_id, "amount": 6000, "balance": 4000, "status": "active"}
