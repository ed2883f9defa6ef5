"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timezone
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fund_ledger.api.main import create_app
from fund_ledger.infrastructure.database.models import Base
from fund_ledger.infrastructure.database.session import get_db
from fund_ledger.domain.models import FundSettings, Loan, LoanStatus, Member, MemberRole, MemberStatus
from fund_ledger.domain.repository import InMemoryRecordRepository
from fund_ledger.engine import FundEngine


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

AS_OF = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def as_of() -> datetime:
    """Fixed evaluation time so tenure and due-date checks are deterministic"""
    return AS_OF


@pytest.fixture
def fund_settings() -> FundSettings:
    return FundSettings(
        annual_interest_rate=0.05,
        minimum_fund_balance=50_000,
        utilization_warning_threshold=0.60,
    )


@pytest.fixture
def repository() -> InMemoryRecordRepository:
    return InMemoryRecordRepository()


@pytest.fixture
def fund_engine(repository: InMemoryRecordRepository, fund_settings: FundSettings) -> FundEngine:
    return FundEngine(repository, fund_settings)


@pytest.fixture
def make_member(repository: InMemoryRecordRepository) -> Callable[..., Member]:
    """Factory adding a member to the in-memory repository"""

    def _make(
        role: MemberRole = MemberRole.DRIVER,
        total_contributions: float = 0.0,
        join_date: datetime | None = datetime(2024, 1, 1, tzinfo=timezone.utc),
        status: MemberStatus = MemberStatus.ACTIVE,
        cash_out_amount: float = 0.0,
        name: str = "Test Member",
    ) -> Member:
        return repository.add(
            Member(
                name=name,
                role=role,
                status=status,
                total_contributions=total_contributions,
                join_date=join_date,
                cash_out_amount=cash_out_amount,
            )
        )

    return _make


@pytest.fixture
def make_loan(repository: InMemoryRecordRepository) -> Callable[..., Loan]:
    """Factory adding a loan to the in-memory repository"""

    def _make(
        member: Member,
        amount: float,
        balance: float | None = None,
        repayment_months: int = 12,
        status: LoanStatus = LoanStatus.ACTIVE,
        issue_date: datetime | None = datetime(2025, 1, 15, tzinfo=timezone.utc),
    ) -> Loan:
        return repository.add(
            Loan(
                member_id=member.id,
                amount=amount,
                balance=amount if balance is None else balance,
                monthly_payment=amount / repayment_months,
                repayment_months=repayment_months,
                issue_date=issue_date,
                status=status,
            )
        )

    return _make
