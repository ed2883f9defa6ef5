"""Business rule validation - errors block an operation, warnings are advisory"""

import re
from datetime import datetime
from typing import Optional

from fund_ledger.config import settings as app_settings
from fund_ledger.domain.classifier import format_currency
from fund_ledger.domain.eligibility import (
    GUARD_MINIMUM_TENURE_MONTHS,
    MemberEligibilityEvaluator,
    is_eligible_for_loan,
    months_as_member,
)
from fund_ledger.domain.ledger import LedgerAggregator
from fund_ledger.domain.models import (
    Loan,
    LoanStatus,
    Member,
    MemberRole,
    MemberStatus,
    PaymentType,
    ValidationResult,
)
from fund_ledger.utils.date_utils import days_between, utcnow

EMAIL_PATTERN = re.compile(r"^[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,64}$")
PHONE_PATTERN = re.compile(r"^[+]?[0-9]{10,15}$")

SAVINGS_CAPPED_REPAYMENT_MONTHS = (6,)
STANDARD_REPAYMENT_MONTHS = (3, 4)


def allowed_repayment_months(role: MemberRole) -> tuple:
    if role in (MemberRole.SECURITY_GUARD, MemberRole.PART_TIME):
        return SAVINGS_CAPPED_REPAYMENT_MONTHS
    return STANDARD_REPAYMENT_MONTHS


def validate_new_member(
    name: str,
    email: Optional[str] = None,
    phone_number: Optional[str] = None,
) -> ValidationResult:
    result = ValidationResult()

    if not name or not name.strip():
        result.errors.append("Member name is required")
    elif len(name.strip()) < 2:
        result.errors.append("Member name must be at least 2 characters")

    if email and not EMAIL_PATTERN.match(email):
        result.errors.append("Invalid email format")

    if phone_number:
        cleaned = phone_number.replace(" ", "").replace("-", "")
        if not PHONE_PATTERN.match(cleaned):
            result.warnings.append("Phone number format may be invalid")

    return result


def validate_loan_request(
    member: Member,
    amount: float,
    repayment_months: int,
    evaluator: MemberEligibilityEvaluator,
    ledger: Optional[LedgerAggregator] = None,
    as_of: Optional[datetime] = None,
) -> ValidationResult:
    """
    Check a prospective loan against eligibility, limits, and repayment terms.

    Fund-level effects (utilization threshold, minimum balance) are only
    warnings: the fund may still choose to lend.
    """
    result = ValidationResult()

    if not is_eligible_for_loan(member, as_of):
        if member.status != MemberStatus.ACTIVE:
            result.errors.append("Member must be active to receive a loan")
        elif member.role == MemberRole.SECURITY_GUARD and months_as_member(member, as_of) < GUARD_MINIMUM_TENURE_MONTHS:
            result.errors.append(
                f"Guards must have {GUARD_MINIMUM_TENURE_MONTHS} months of contributions before taking a loan"
            )

    if amount <= 0:
        result.errors.append("Loan amount must be greater than zero")
    else:
        max_amount = evaluator.maximum_loan_amount(member, as_of)
        if amount > max_amount:
            result.errors.append(f"Loan amount exceeds maximum allowed: {format_currency(max_amount)}")

    allowed = allowed_repayment_months(member.role)
    if repayment_months not in allowed:
        if allowed == SAVINGS_CAPPED_REPAYMENT_MONTHS:
            result.errors.append("Guards and part-time staff must use 6-month repayment period")
        else:
            result.errors.append("Repayment period must be 3 or 4 months")

    if ledger is not None and amount > 0:
        threshold = ledger.fund_settings.utilization_warning_threshold
        if ledger.utilization_after_loan(amount) >= threshold:
            result.warnings.append(f"This loan will push fund utilization above {threshold * 100:.0f}%")

        minimum = ledger.fund_settings.minimum_fund_balance
        if ledger.fund_balance() - amount < minimum:
            result.warnings.append(
                f"This loan will reduce fund balance below minimum threshold of {format_currency(minimum)}"
            )

    return result


def validate_payment(
    member: Member,
    amount: float,
    payment_type: PaymentType,
    loan: Optional[Loan] = None,
) -> ValidationResult:
    result = ValidationResult()

    if amount <= 0:
        result.errors.append("Payment amount must be greater than zero")

    if loan is not None:
        if loan.status != LoanStatus.ACTIVE:
            result.errors.append("Cannot make payment on inactive loan")
        if amount > loan.balance:
            result.warnings.append("Payment exceeds remaining loan balance")
    elif payment_type in (PaymentType.LOAN_REPAYMENT, PaymentType.MIXED):
        result.errors.append("No active loan selected for repayment")

    if member.status == MemberStatus.SUSPENDED:
        result.warnings.append("Member is suspended - payment will be accepted but status should be reviewed")

    return result


def validate_cash_out(member: Member, evaluator: MemberEligibilityEvaluator) -> ValidationResult:
    result = ValidationResult()

    if member.status == MemberStatus.ACTIVE:
        result.errors.append("Active members cannot cash out. Member must be suspended or inactive first.")

    if evaluator.has_active_loans(member):
        result.errors.append("Member has active loans that must be settled before cashing out")

    if member.total_contributions <= 0:
        result.errors.append("Member has no contributions to cash out")

    if member.cash_out_amount > 0:
        result.warnings.append(f"Member has already cashed out {format_currency(member.cash_out_amount)}")

    return result


def validate_interest_application(ledger: LedgerAggregator, as_of: Optional[datetime] = None) -> ValidationResult:
    result = ValidationResult()

    last_applied = ledger.fund_settings.last_interest_applied_date
    if last_applied is not None:
        days_since = days_between(last_applied, as_of or utcnow())
        if days_since < app_settings.interest_period_days:
            result.warnings.append(
                f"Interest was last applied {days_since} days ago. "
                f"Annual interest is typically applied after {app_settings.interest_period_days} days."
            )

    if ledger.fund_balance() <= 0:
        result.errors.append("Cannot apply interest to negative or zero fund balance")

    return result
