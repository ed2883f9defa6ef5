"""Payment allocation between loan repayment and contribution"""

from typing import Optional

from fund_ledger.domain.exceptions import InvalidState
from fund_ledger.domain.models import Payment, PaymentAllocation, PaymentType


def allocate_payment(payment: Payment, loan_portion: Optional[float] = None) -> PaymentAllocation:
    """
    Split a payment's amount according to its declared type.

    - loan_repayment: the entire amount repays the loan
    - contribution: the entire amount is a contribution
    - mixed: the caller decides the split and must pass loan_portion;
      the remainder is the contribution

    Raises:
        InvalidState: negative amount, mixed payment without a loan_portion,
            or a loan_portion outside [0, amount]
    """
    if payment.amount < 0:
        raise InvalidState(f"Payment amount must be non-negative, got {payment.amount}")

    if payment.type == PaymentType.LOAN_REPAYMENT:
        return PaymentAllocation(loan_repayment=payment.amount, contribution=0.0)

    if payment.type == PaymentType.CONTRIBUTION:
        return PaymentAllocation(loan_repayment=0.0, contribution=payment.amount)

    if loan_portion is None:
        raise InvalidState("Mixed payments require an explicit loan portion")
    if not 0 <= loan_portion <= payment.amount:
        raise InvalidState(
            f"Loan portion {loan_portion} must be between 0 and the payment amount {payment.amount}"
        )
    return PaymentAllocation(loan_repayment=loan_portion, contribution=payment.amount - loan_portion)
