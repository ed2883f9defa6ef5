"""Member eligibility engine - per-member borrowing capacity"""

import uuid
from datetime import datetime
from typing import Optional

from fund_ledger.domain.models import (
    LoanCapacity,
    LoanStatus,
    Member,
    MemberRole,
    MemberStatus,
    RecordKind,
)
from fund_ledger.domain.repository import RecordRepository
from fund_ledger.utils.date_utils import months_between, utcnow

FULL_TIME_LOAN_LIMIT = 40_000.0
HOUSEHOLD_LOAN_LIMIT = 19_000.0
SAVINGS_CAPPED_LOAN_LIMIT = 12_000.0

GUARD_MINIMUM_TENURE_MONTHS = 3
DEFAULT_CASH_OUT_INTEREST_RATE = 0.13


def loan_limit(member: Member) -> float:
    """
    Role-based loan ceiling.

    - Driver, Assistant: 40,000
    - Housekeeper, Grounds Keeper: 19,000
    - Guard, Part-time: own contributions, capped at 12,000
    """
    if member.role in (MemberRole.DRIVER, MemberRole.ASSISTANT):
        return FULL_TIME_LOAN_LIMIT
    if member.role in (MemberRole.HOUSEKEEPER, MemberRole.GROUNDS_KEEPER):
        return HOUSEHOLD_LOAN_LIMIT
    return min(member.total_contributions, SAVINGS_CAPPED_LOAN_LIMIT)


def months_as_member(member: Member, as_of: Optional[datetime] = None) -> int:
    if member.join_date is None:
        return 0
    return months_between(member.join_date, as_of or utcnow())


def is_eligible_for_loan(member: Member, as_of: Optional[datetime] = None) -> bool:
    """Active members only; guards additionally need 3 whole months of tenure"""
    if member.status != MemberStatus.ACTIVE:
        return False
    if member.role == MemberRole.SECURITY_GUARD and months_as_member(member, as_of) < GUARD_MINIMUM_TENURE_MONTHS:
        return False
    return True


def maximum_loan_amount(
    member: Member,
    active_loan_balance: float,
    as_of: Optional[datetime] = None,
) -> float:
    """Remaining headroom under the loan limit, floored at 0"""
    if not is_eligible_for_loan(member, as_of):
        return 0.0
    return max(0.0, loan_limit(member) - active_loan_balance)


def calculate_cash_out_amount(member: Member, interest_rate: float = DEFAULT_CASH_OUT_INTEREST_RATE) -> float:
    """Exit payout: contributions plus a flat interest rate"""
    return member.total_contributions * (1 + interest_rate)


def interest_to_date(
    member: Member,
    interest_rate: float = DEFAULT_CASH_OUT_INTEREST_RATE,
    as_of: Optional[datetime] = None,
) -> float:
    """Simple interest on contributions over whole months of tenure"""
    if member.join_date is None:
        return 0.0
    years = months_as_member(member, as_of) / 12.0
    return member.total_contributions * interest_rate * years


class MemberEligibilityEvaluator:
    """Borrowing capacity for members, reading loan balances from the repository"""

    def __init__(self, repository: RecordRepository):
        self.repository = repository

    def get_member(self, member_id: uuid.UUID) -> Member:
        return self.repository.get(RecordKind.MEMBER, member_id)

    def total_active_loan_balance(self, member: Member) -> float:
        return self.repository.sum(
            RecordKind.LOAN,
            "balance",
            {"member_id": member.id, "status": LoanStatus.ACTIVE},
        )

    def has_active_loans(self, member: Member) -> bool:
        return self.repository.count(RecordKind.LOAN, {"member_id": member.id, "status": LoanStatus.ACTIVE}) > 0

    def can_delete_member(self, member: Member) -> bool:
        """Members with active loans must settle them before removal"""
        return not self.has_active_loans(member)

    def available_contributions(self, member: Member) -> float:
        # May go negative when loans exceed savings; callers decide what that means
        return member.total_contributions - self.total_active_loan_balance(member)

    def maximum_loan_amount(self, member: Member, as_of: Optional[datetime] = None) -> float:
        if not is_eligible_for_loan(member, as_of):
            return 0.0
        return maximum_loan_amount(member, self.total_active_loan_balance(member), as_of)

    def loan_capacity(self, member: Member, as_of: Optional[datetime] = None) -> LoanCapacity:
        return LoanCapacity(
            limit=loan_limit(member),
            eligible=is_eligible_for_loan(member, as_of),
            max_borrowable=self.maximum_loan_amount(member, as_of),
        )
