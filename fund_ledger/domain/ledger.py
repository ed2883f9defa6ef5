"""Ledger aggregation - fund-wide balance, utilization, warnings, and interest"""

import dataclasses
import threading
import uuid
from collections import defaultdict
from datetime import datetime
from typing import List, Optional

from fund_ledger.config import settings as app_settings
from fund_ledger.domain.exceptions import RepositoryFailure
from fund_ledger.domain.models import (
    FundSettings,
    FundState,
    FundSummary,
    Loan,
    LoanStatus,
    MemberStatus,
    MonthlyContributions,
    RecordKind,
)
from fund_ledger.domain.repository import RecordRepository
from fund_ledger.domain.scheduling import is_overdue
from fund_ledger.utils.date_utils import utcnow


def default_fund_settings() -> dict:
    """Field values for a FundSettings record created on first use"""
    return {
        "annual_interest_rate": app_settings.default_annual_interest_rate,
        "minimum_fund_balance": app_settings.default_minimum_fund_balance,
        "utilization_warning_threshold": app_settings.default_utilization_warning_threshold,
        "bob_initial_investment": app_settings.default_bob_initial_investment,
        "bob_remaining_investment": app_settings.default_bob_initial_investment,
    }


def fetch_or_create_fund_settings(repository: RecordRepository) -> FundSettings:
    return repository.fetch_or_create_singleton(RecordKind.FUND_SETTINGS, default_fund_settings())


class LedgerAggregator:
    """
    Computes fund-wide financial state on demand.

    Nothing is cached: every figure re-queries the repository, and
    repository failures propagate instead of reading as zero.

    Writes to FundSettings happen under a re-entrant lock that balance
    reads also take, so a reader never observes a half-applied interest
    update. The lock only serializes callers sharing this aggregator;
    cross-process writers must be serialized by the repository.

    FundSettings is reloaded from the repository on every balance read,
    so aggregators built by other sessions see each other's commits.
    """

    def __init__(
        self,
        repository: RecordRepository,
        fund_settings: FundSettings,
        lock: Optional[threading.RLock] = None,
    ):
        self.repository = repository
        self.fund_settings = fund_settings
        self.lock = lock or threading.RLock()

    def total_contributions(self) -> float:
        return self.repository.sum(RecordKind.MEMBER, "total_contributions")

    def total_active_loans(self) -> float:
        return self.repository.sum(RecordKind.LOAN, "balance", {"status": LoanStatus.ACTIVE})

    def total_withdrawn(self) -> float:
        return self.repository.sum(RecordKind.MEMBER, "cash_out_amount")

    def refresh_settings(self) -> FundSettings:
        """Reload FundSettings so writes committed by other sessions are seen"""
        with self.lock:
            return self.repository.refresh(self.fund_settings)

    def settings_snapshot(self) -> FundSettings:
        return dataclasses.replace(self.fund_settings)

    def restore_settings(self, snapshot: FundSettings) -> None:
        """Put back field values captured by settings_snapshot()"""
        for f in dataclasses.fields(snapshot):
            setattr(self.fund_settings, f.name, getattr(snapshot, f.name))

    def fund_balance(self) -> float:
        """
        Net position: contributions + Bob's remaining investment + interest
        applied - active loan balances - member cash-outs.
        """
        with self.lock:
            self.refresh_settings()
            return (
                self.total_contributions()
                + self.fund_settings.bob_remaining_investment
                + self.fund_settings.total_interest_applied
                - self.total_active_loans()
                - self.total_withdrawn()
            )

    def total_capital(self) -> float:
        """Money put into the fund: Bob's initial investment plus all contributions"""
        with self.lock:
            self.refresh_settings()
            return self.fund_settings.bob_initial_investment + self.total_contributions()

    def projected_annual_interest(self) -> float:
        """Interest the next accrual would add, without applying it"""
        with self.lock:
            return self.fund_balance() * self.fund_settings.annual_interest_rate

    def utilization_percentage(self) -> float:
        """Fraction of the fund balance lent out; 0 when the balance is not positive"""
        with self.lock:
            balance = self.fund_balance()
            if balance <= 0:
                return 0.0
            return self.total_active_loans() / balance

    def utilization_after_loan(self, loan_amount: float) -> float:
        """Utilization if a new loan of loan_amount were disbursed now"""
        with self.lock:
            balance = self.fund_balance() - loan_amount
            if balance <= 0:
                return 0.0
            return (self.total_active_loans() + loan_amount) / balance

    def should_warn_utilization(self) -> bool:
        return self.utilization_percentage() >= self.fund_settings.utilization_warning_threshold

    def should_warn_minimum_balance(self) -> bool:
        return self.fund_balance() < self.fund_settings.minimum_fund_balance

    def fund_state(self) -> FundState:
        with self.lock:
            balance = self.fund_balance()
            utilization = self.utilization_percentage()
            return FundState(
                balance=balance,
                utilization=utilization,
                warn_minimum_balance=balance < self.fund_settings.minimum_fund_balance,
                warn_utilization=utilization >= self.fund_settings.utilization_warning_threshold,
            )

    def overdue_loans(self, as_of: Optional[datetime] = None) -> List[Loan]:
        """Active loans past their due date, oldest due first"""
        loans = self.repository.find(RecordKind.LOAN, {"status": LoanStatus.ACTIVE})
        return sorted((loan for loan in loans if is_overdue(loan, as_of)), key=lambda loan: loan.due_date)

    def accrue_interest(self) -> float:
        """
        Add one period of interest to FundSettings without committing.

        The caller owns the lock and the save; a failed save must be undone
        with restore_settings().
        """
        with self.lock:
            interest_amount = self.fund_balance() * self.fund_settings.annual_interest_rate
            now = utcnow()
            self.fund_settings.total_interest_applied += interest_amount
            self.fund_settings.last_interest_applied_date = now
            self.fund_settings.updated_at = now
            return interest_amount

    def apply_annual_interest(self) -> float:
        """
        Accrue one period of interest on the current fund balance and commit.

        The caller must invoke this at most once per accrual period; the
        aggregator does not track periods itself.

        Returns:
            The interest amount added to total_interest_applied
        """
        with self.lock:
            self.refresh_settings()
            snapshot = self.settings_snapshot()
            interest_amount = self.accrue_interest()
            try:
                self.repository.save()
            except RepositoryFailure:
                self.restore_settings(snapshot)
                raise
            return interest_amount

    def fund_summary(self) -> FundSummary:
        with self.lock:
            return FundSummary(
                total_contributions=self.total_contributions(),
                bob_initial_investment=self.fund_settings.bob_initial_investment,
                bob_remaining_investment=self.fund_settings.bob_remaining_investment,
                total_interest_applied=self.fund_settings.total_interest_applied,
                total_active_loans=self.total_active_loans(),
                total_withdrawn=self.total_withdrawn(),
                fund_balance=self.fund_balance(),
                utilization=self.utilization_percentage(),
                active_members=self.repository.count(RecordKind.MEMBER, {"status": MemberStatus.ACTIVE}),
                total_members=self.repository.count(RecordKind.MEMBER),
                active_loans_count=self.repository.count(RecordKind.LOAN, {"status": LoanStatus.ACTIVE}),
                total_capital=self.total_capital(),
                projected_annual_interest=self.projected_annual_interest(),
            )

    def member_monthly_contributions(self, member_id: uuid.UUID) -> MonthlyContributions:
        """Contribution amounts grouped by "YYYY-MM", in month order"""
        totals: MonthlyContributions = defaultdict(float)
        for payment in self.repository.find(RecordKind.PAYMENT, {"member_id": member_id}):
            if payment.contribution_amount > 0:
                totals[payment.payment_date.strftime("%Y-%m")] += payment.contribution_amount
        return dict(sorted(totals.items()))
