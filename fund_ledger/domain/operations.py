"""Mutating fund operations - enrollment, loans, payments, cash-outs, and interest"""

import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from fund_ledger.config import settings as app_settings
from fund_ledger.domain.allocation import allocate_payment
from fund_ledger.domain.classifier import format_currency
from fund_ledger.domain.eligibility import (
    MemberEligibilityEvaluator,
    calculate_cash_out_amount,
    is_eligible_for_loan,
)
from fund_ledger.domain.exceptions import (
    CannotCashOutActiveMemberError,
    InvalidState,
    LoanAmountExceedsLimitError,
    MemberHasActiveLoansError,
    MemberNotEligibleError,
    RepositoryFailure,
)
from fund_ledger.domain.ledger import LedgerAggregator
from fund_ledger.domain.models import (
    FundSettings,
    Loan,
    LoanStatus,
    Member,
    MemberRole,
    MemberStatus,
    Payment,
    PaymentMethod,
    PaymentType,
    RecordKind,
    Transaction,
    TransactionType,
)
from fund_ledger.domain.rules import validate_new_member
from fund_ledger.domain.scheduling import calculate_monthly_payment, due_date_for
from fund_ledger.utils.date_utils import utcnow
from fund_ledger.utils.money_utils import outstanding


class FundOperations:
    """
    Fund-affecting operations that mutate records.

    Every operation runs under the ledger lock and commits with a single
    save(). Operations that move money append immutable Transaction
    entries whose balance is the fund balance after the change.
    """

    def __init__(self, ledger: LedgerAggregator, evaluator: MemberEligibilityEvaluator):
        self.ledger = ledger
        self.evaluator = evaluator
        self.repository = ledger.repository

    def _record_transaction(
        self,
        transaction_type: TransactionType,
        amount: float,
        member_id: Optional[uuid.UUID] = None,
        description: Optional[str] = None,
    ) -> Transaction:
        transaction = Transaction(
            type=transaction_type,
            amount=abs(amount),
            balance=self.ledger.fund_balance(),
            member_id=member_id,
            description=description,
        )
        return self.repository.add(transaction)

    # Members

    def enroll_member(
        self,
        name: str,
        role: MemberRole,
        email: Optional[str] = None,
        phone_number: Optional[str] = None,
        join_date: Optional[datetime] = None,
    ) -> Member:
        validation = validate_new_member(name, email, phone_number)
        if not validation.is_valid:
            raise InvalidState("; ".join(validation.errors))

        with self.ledger.lock:
            member = self.repository.add(
                Member(
                    name=name.strip(),
                    role=role,
                    email=email or None,
                    phone_number=phone_number or None,
                    join_date=join_date or utcnow(),
                )
            )
            self.repository.save()
            return member

    def suspend_member(self, member_id: uuid.UUID) -> Member:
        with self.ledger.lock:
            member = self.evaluator.get_member(member_id)
            if member.status != MemberStatus.ACTIVE:
                raise InvalidState(f"Only active members can be suspended, member is {member.status.value}")
            member.status = MemberStatus.SUSPENDED
            member.updated_at = utcnow()
            self.repository.save()
            return member

    def reactivate_member(self, member_id: uuid.UUID) -> Member:
        with self.ledger.lock:
            member = self.evaluator.get_member(member_id)
            if member.status != MemberStatus.SUSPENDED:
                raise InvalidState(f"Only suspended members can be reactivated, member is {member.status.value}")
            member.status = MemberStatus.ACTIVE
            member.updated_at = utcnow()
            self.repository.save()
            return member

    def delete_member(self, member_id: uuid.UUID) -> None:
        """
        Remove a member together with their loans and payments.

        Ledger transactions are kept but detached from the member.

        Raises:
            NotFound: member does not exist
            MemberHasActiveLoansError: member still owes on an active loan
        """
        with self.ledger.lock:
            member = self.evaluator.get_member(member_id)
            if not self.evaluator.can_delete_member(member):
                raise MemberHasActiveLoansError(f"Member {member.id} has active loans and cannot be deleted")

            for payment in self.repository.find(RecordKind.PAYMENT, {"member_id": member.id}):
                self.repository.delete(payment)
            for loan in self.repository.find(RecordKind.LOAN, {"member_id": member.id}):
                self.repository.delete(loan)
            for transaction in self.repository.find(RecordKind.TRANSACTION, {"member_id": member.id}):
                transaction.member_id = None
            self.repository.delete(member)
            self.repository.save()

    # Loans

    def disburse_loan(
        self,
        member_id: uuid.UUID,
        amount: float,
        repayment_months: int,
        issue_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Loan:
        """
        Issue a new loan against the member's remaining borrowing capacity.

        Raises:
            NotFound: member does not exist
            InvalidState: non-positive amount or repayment period
            MemberNotEligibleError: member is inactive or a guard under 3 months
            LoanAmountExceedsLimitError: amount above maximum_loan_amount
        """
        if amount <= 0:
            raise InvalidState("Loan amount must be greater than zero")
        issue_date = issue_date or utcnow()

        with self.ledger.lock:
            member = self.evaluator.get_member(member_id)
            if not is_eligible_for_loan(member, issue_date):
                raise MemberNotEligibleError(f"Member {member.id} is not eligible for a loan")

            max_amount = self.evaluator.maximum_loan_amount(member, issue_date)
            if amount > max_amount:
                raise LoanAmountExceedsLimitError(
                    f"Loan amount {format_currency(amount)} exceeds the member's limit of {format_currency(max_amount)}"
                )

            loan = self.repository.add(
                Loan(
                    member_id=member.id,
                    amount=amount,
                    balance=amount,
                    monthly_payment=calculate_monthly_payment(amount, repayment_months),
                    repayment_months=repayment_months,
                    issue_date=issue_date,
                    due_date=due_date_for(issue_date, repayment_months),
                    notes=notes,
                )
            )
            self._record_transaction(
                TransactionType.LOAN_DISBURSEMENT,
                amount,
                member.id,
                f"Loan disbursement of {format_currency(amount)}",
            )
            self.repository.save()
            return loan

    def _complete(self, loan: Loan) -> None:
        now = utcnow()
        loan.status = LoanStatus.COMPLETED
        loan.completed_date = now
        loan.balance = 0.0
        loan.updated_at = now

    def complete_loan(self, loan_id: uuid.UUID) -> Loan:
        """Settle an active loan in full; completed and defaulted loans are terminal"""
        with self.ledger.lock:
            loan = self.repository.get(RecordKind.LOAN, loan_id)
            if loan.status != LoanStatus.ACTIVE:
                raise InvalidState(f"Loan {loan.id} is {loan.status.value} and cannot be completed")
            self._complete(loan)
            self.repository.save()
            return loan

    def recalculate_loan_balance(self, loan_id: uuid.UUID) -> Loan:
        """
        Rebuild a loan's balance from the repayments recorded against it.

        The balance is the loan amount less every payment's loan portion,
        floored at 0 with sub-cent residue cleared. An active loan that comes
        out at 0 is completed.
        """
        with self.ledger.lock:
            loan = self.repository.get(RecordKind.LOAN, loan_id)
            paid = self.repository.sum(RecordKind.PAYMENT, "loan_repayment_amount", {"loan_id": loan.id})
            loan.balance = outstanding(loan.amount - paid)
            loan.updated_at = utcnow()
            if loan.balance == 0 and loan.status == LoanStatus.ACTIVE:
                self._complete(loan)
            self.repository.save()
            return loan

    # Payments

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
        """
        Record a payment and apply its loan and contribution effects.

        The loan portion reduces the loan balance, floored at 0; a loan
        reaching 0, or left with less than half a cent, is completed. The
        contribution portion is added to the member's total contributions.

        Raises:
            NotFound: member or loan does not exist
            InvalidState: non-positive amount, unresolved mixed split,
                loan portion without an active loan of this member
        """
        if amount <= 0:
            raise InvalidState("Payment amount must be greater than zero")

        with self.ledger.lock:
            member = self.evaluator.get_member(member_id)
            loan = self.repository.get(RecordKind.LOAN, loan_id) if loan_id is not None else None

            payment = Payment(
                member_id=member.id,
                amount=amount,
                type=payment_type,
                payment_method=payment_method,
                payment_date=payment_date or utcnow(),
                loan_id=loan.id if loan else None,
                notes=notes,
            )
            allocation = allocate_payment(payment, loan_portion)

            if allocation.loan_repayment > 0:
                if loan is None or loan.status != LoanStatus.ACTIVE:
                    raise InvalidState("No active loan selected for repayment")
                if loan.member_id != member.id:
                    raise InvalidState(f"Loan {loan.id} does not belong to member {member.id}")

            payment.loan_repayment_amount = allocation.loan_repayment
            payment.contribution_amount = allocation.contribution
            now = utcnow()

            if allocation.loan_repayment > 0:
                loan.balance = outstanding(loan.balance - allocation.loan_repayment)
                loan.updated_at = now
                if loan.balance == 0:
                    self._complete(loan)
                self._record_transaction(
                    TransactionType.LOAN_REPAYMENT,
                    allocation.loan_repayment,
                    member.id,
                    f"Loan payment: {format_currency(allocation.loan_repayment)}",
                )

            if allocation.contribution > 0:
                member.total_contributions += allocation.contribution
                member.updated_at = now
                self._record_transaction(
                    TransactionType.CONTRIBUTION,
                    allocation.contribution,
                    member.id,
                    "Monthly contribution",
                )

            self.repository.add(payment)
            self.repository.save()
            return payment

    # Cash-out

    def cash_out_member(self, member_id: uuid.UUID, amount: Optional[float] = None) -> Member:
        """
        Pay a departing member out and mark them inactive.

        Defaults to contributions plus the configured cash-out interest rate.
        """
        with self.ledger.lock:
            member = self.evaluator.get_member(member_id)
            if member.status == MemberStatus.ACTIVE:
                raise CannotCashOutActiveMemberError(f"Member {member.id} is active and cannot cash out")
            if self.evaluator.has_active_loans(member):
                raise MemberHasActiveLoansError(f"Member {member.id} has active loans")

            if amount is None:
                amount = calculate_cash_out_amount(member, app_settings.cash_out_interest_rate)
            if amount < 0:
                raise InvalidState("Cash-out amount must be non-negative")

            now = utcnow()
            member.cash_out_amount = amount
            member.cash_out_date = now
            member.status = MemberStatus.INACTIVE
            member.updated_at = now

            self._record_transaction(TransactionType.CASH_OUT, amount, member.id, "Member cash out")
            self.repository.save()
            return member

    # External capital and interest

    @contextmanager
    def _settings_change(self) -> Iterator[FundSettings]:
        """Reload FundSettings for editing; a failed commit puts the old values back"""
        self.ledger.refresh_settings()
        snapshot = self.ledger.settings_snapshot()
        try:
            yield self.ledger.fund_settings
        except RepositoryFailure:
            self.ledger.restore_settings(snapshot)
            raise

    def record_bob_investment(self, amount: float) -> Transaction:
        if amount <= 0:
            raise InvalidState("Investment amount must be greater than zero")
        with self.ledger.lock, self._settings_change() as fund_settings:
            fund_settings.bob_remaining_investment += amount
            fund_settings.updated_at = utcnow()
            transaction = self._record_transaction(
                TransactionType.BOB_INVESTMENT, amount, description=f"Investment of {format_currency(amount)}"
            )
            self.repository.save()
            return transaction

    def record_bob_withdrawal(self, amount: float) -> Transaction:
        with self.ledger.lock, self._settings_change() as fund_settings:
            if amount <= 0 or amount > fund_settings.bob_remaining_investment:
                raise InvalidState(
                    f"Withdrawal must be between 0 and the remaining investment "
                    f"{format_currency(fund_settings.bob_remaining_investment)}"
                )
            fund_settings.bob_remaining_investment -= amount
            fund_settings.updated_at = utcnow()
            transaction = self._record_transaction(
                TransactionType.BOB_WITHDRAWAL, amount, description=f"Withdrawal of {format_currency(amount)}"
            )
            self.repository.save()
            return transaction

    def apply_annual_interest(self) -> Transaction:
        """
        Accrue interest on the fund balance and record it in the ledger.

        The FundSettings update and the INTEREST_APPLIED transaction are
        committed together; if that commit fails neither is kept.
        """
        with self.ledger.lock, self._settings_change() as fund_settings:
            interest_amount = self.ledger.accrue_interest()
            transaction = self._record_transaction(
                TransactionType.INTEREST_APPLIED,
                interest_amount,
                description=f"Annual interest applied at {fund_settings.annual_interest_rate * 100:.0f}%",
            )
            self.repository.save()
            return transaction
