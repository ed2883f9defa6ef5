"""Loan scheduling - time-based loan state derived from amortization parameters"""

from datetime import datetime
from typing import List, Optional

from fund_ledger.domain.exceptions import InvalidState
from fund_ledger.domain.models import Loan, LoanSchedule, LoanStatus, RepaymentScheduleEntry
from fund_ledger.utils.date_utils import add_months, utcnow
from fund_ledger.utils.money_utils import installments_needed, whole_installments


def calculate_monthly_payment(amount: float, repayment_months: int) -> float:
    """Equal monthly principal installments, no interest"""
    if repayment_months <= 0:
        raise InvalidState(f"Repayment period must be positive, got {repayment_months} months")
    return amount / repayment_months


def due_date_for(issue_date: datetime, repayment_months: int) -> datetime:
    return add_months(issue_date, repayment_months)


def is_overdue(loan: Loan, as_of: Optional[datetime] = None) -> bool:
    if loan.status != LoanStatus.ACTIVE or loan.due_date is None:
        return False
    return (as_of or utcnow()) > loan.due_date


def remaining_payments(loan: Loan) -> int:
    if loan.monthly_payment <= 0:
        return 0
    return installments_needed(loan.balance, loan.monthly_payment)


def next_payment_due(loan: Loan) -> Optional[datetime]:
    """
    Due date of the next unpaid installment.

    Only defined for active loans with an issue date; the count of fully
    paid months is floored, so a partial payment does not advance it.

    Raises:
        InvalidState: active loan with a non-positive monthly payment
    """
    if loan.status != LoanStatus.ACTIVE or loan.issue_date is None:
        return None
    if loan.monthly_payment <= 0:
        raise InvalidState(f"Loan {loan.id} has no positive monthly payment")

    paid_months = whole_installments(loan.amount - loan.balance, loan.monthly_payment)
    return add_months(loan.issue_date, paid_months + 1)


def completion_percentage(loan: Loan) -> float:
    if loan.amount <= 0:
        return 0.0
    return ((loan.amount - loan.balance) / loan.amount) * 100


def loan_schedule(loan: Loan, as_of: Optional[datetime] = None) -> LoanSchedule:
    return LoanSchedule(
        overdue=is_overdue(loan, as_of),
        remaining_payments=remaining_payments(loan),
        next_due_date=next_payment_due(loan),
        completion_pct=completion_percentage(loan),
    )


def generate_repayment_schedule(
    amount: float,
    repayment_months: int,
    start_date: Optional[datetime] = None,
) -> List[RepaymentScheduleEntry]:
    """
    Month-by-month repayment plan for a new loan.

    The first installment falls one month after start_date. The final
    principal payment is whatever balance remains, so the schedule always
    ends at exactly zero.

    Example:
        12,000 over 12 months -> 12 x 1,000, remaining 11,000 ... 0
    """
    if amount <= 0:
        return []

    start_date = start_date or utcnow()
    monthly_payment = calculate_monthly_payment(amount, repayment_months)

    schedule = []
    remaining = amount
    for month in range(1, repayment_months + 1):
        # Last installment absorbs the drift
        principal = remaining if month == repayment_months else min(monthly_payment, remaining)
        remaining -= principal

        schedule.append(
            RepaymentScheduleEntry(
                payment_number=month,
                due_date=add_months(start_date, month),
                total_payment=monthly_payment,
                principal_payment=principal,
                remaining_balance=remaining,
            )
        )

    return schedule
