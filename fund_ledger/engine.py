"""Fund ledger engine - public surface for UI, reporting, and automation callers"""

import logging
import threading
import uuid
from datetime import datetime
from typing import List, Optional

from fund_ledger.domain.classifier import classify_transaction
from fund_ledger.domain.eligibility import MemberEligibilityEvaluator
from fund_ledger.domain.ledger import LedgerAggregator, fetch_or_create_fund_settings
from fund_ledger.domain.models import (
    FundSettings,
    FundState,
    FundSummary,
    Loan,
    LoanCapacity,
    LoanSchedule,
    Payment,
    PaymentMethod,
    PaymentType,
    RecordKind,
    Transaction,
    TransactionDisplay,
)
from fund_ledger.domain.operations import FundOperations
from fund_ledger.domain.repository import RecordRepository
from fund_ledger.domain.scheduling import loan_schedule
from fund_ledger.infrastructure.observability.logging import (
    log_interest_applied,
    log_loan_disbursed,
    log_member_deleted,
    log_payment_recorded,
)
from fund_ledger.infrastructure.observability.metrics import (
    interest_applications_counter,
    loans_disbursed_counter,
    payments_recorded_counter,
    record_fund_state,
)


class FundEngine:
    """
    Entry point wiring the aggregator, evaluator, and operations over one repository.

    fund_settings is passed in explicitly; when omitted it is loaded with
    fetch-or-create once, at construction.
    """

    def __init__(
        self,
        repository: RecordRepository,
        fund_settings: Optional[FundSettings] = None,
        lock: Optional[threading.RLock] = None,
    ):
        self.repository = repository
        self.fund_settings = fund_settings or fetch_or_create_fund_settings(repository)
        self.ledger = LedgerAggregator(repository, self.fund_settings, lock)
        self.evaluator = MemberEligibilityEvaluator(repository)
        self.operations = FundOperations(self.ledger, self.evaluator)

    def get_fund_state(self) -> FundState:
        state = self.ledger.fund_state()
        record_fund_state(state.balance, state.utilization)
        if state.warn_minimum_balance:
            logging.warning("Fund balance below minimum", extra={"fund_balance": state.balance})
        if state.warn_utilization:
            logging.warning("Fund utilization above threshold", extra={"utilization": state.utilization})
        return state

    def get_fund_summary(self) -> FundSummary:
        return self.ledger.fund_summary()

    def get_member_loan_capacity(self, member_id: uuid.UUID, as_of: Optional[datetime] = None) -> LoanCapacity:
        member = self.evaluator.get_member(member_id)
        return self.evaluator.loan_capacity(member, as_of)

    def get_loan_schedule(self, loan_id: uuid.UUID, as_of: Optional[datetime] = None) -> LoanSchedule:
        loan = self.repository.get(RecordKind.LOAN, loan_id)
        return loan_schedule(loan, as_of)

    def get_overdue_loans(self, as_of: Optional[datetime] = None) -> List[Loan]:
        return self.ledger.overdue_loans(as_of)

    def delete_member(self, member_id: uuid.UUID) -> None:
        self.operations.delete_member(member_id)
        log_member_deleted(str(member_id))

    def recalculate_loan_balance(self, loan_id: uuid.UUID) -> Loan:
        loan = self.operations.recalculate_loan_balance(loan_id)
        logging.info(
            "Loan balance recalculated",
            extra={"loan_id": str(loan.id), "balance": loan.balance, "status": loan.status.value},
        )
        return loan

    def classify_transaction(self, transaction: Transaction) -> TransactionDisplay:
        return classify_transaction(transaction)

    def apply_annual_interest(self) -> Transaction:
        transaction = self.operations.apply_annual_interest()
        interest_applications_counter.inc()
        log_interest_applied(transaction.amount, transaction.balance, self.fund_settings.annual_interest_rate)
        return transaction

    def disburse_loan(
        self,
        member_id: uuid.UUID,
        amount: float,
        repayment_months: int,
        issue_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Loan:
        loan = self.operations.disburse_loan(member_id, amount, repayment_months, issue_date, notes)
        loans_disbursed_counter.inc()
        log_loan_disbursed(str(member_id), str(loan.id), amount, repayment_months)
        return loan

    def record_payment(
        self,
        member_id: uuid.UUID,
        amount: float,
        payment_type: PaymentType,
        loan_id: Optional[uuid.UUID] = None,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        payment_date: Optional[datetime] = None,
        loan_portion: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> Payment:
        payment = self.operations.record_payment(
            member_id,
            amount,
            payment_type,
            loan_id=loan_id,
            payment_method=payment_method,
            payment_date=payment_date,
            loan_portion=loan_portion,
            notes=notes,
        )
        payments_recorded_counter.labels(payment_type=payment_type.value).inc()
        log_payment_recorded(
            str(member_id),
            str(payment.id),
            payment_type.value,
            payment.loan_repayment_amount,
            payment.contribution_amount,
        )
        return payment
