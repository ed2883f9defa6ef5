"""Unit tests for payment allocation"""

import uuid
import pytest
from fund_ledger.domain.allocation import allocate_payment
from fund_ledger.domain.exceptions import InvalidState
from fund_ledger.domain.models import Payment, PaymentType


def _payment(amount: float, payment_type: PaymentType) -> Payment:
    return Payment(member_id=uuid.uuid4(), amount=amount, type=payment_type)


def test_loan_repayment_goes_entirely_to_loan():
    allocation = allocate_payment(_payment(2500, PaymentType.LOAN_REPAYMENT))

    assert allocation.loan_repayment == 2500
    assert allocation.contribution == 0


def test_contribution_goes_entirely_to_contribution():
    allocation = allocate_payment(_payment(2000, PaymentType.CONTRIBUTION))

    assert allocation.loan_repayment == 0
    assert allocation.contribution == 2000


def test_mixed_payment_requires_explicit_split():
    with pytest.raises(InvalidState, match="explicit loan portion"):
        allocate_payment(_payment(3000, PaymentType.MIXED))


def test_mixed_payment_uses_caller_split():
    allocation = allocate_payment(_payment(3000, PaymentType.MIXED), loan_portion=1000)

    assert allocation.loan_repayment == 1000
    assert allocation.contribution == 2000


@pytest.mark.parametrize("loan_portion", [-1, 3000.01])
def test_mixed_payment_rejects_portion_outside_amount(loan_portion):
    with pytest.raises(InvalidState):
        allocate_payment(_payment(3000, PaymentType.MIXED), loan_portion=loan_portion)


def test_loan_portion_ignored_for_declared_types():
    """Only mixed payments consult the caller's split"""
    allocation = allocate_payment(_payment(3000, PaymentType.CONTRIBUTION), loan_portion=1000)
    assert allocation.contribution == 3000


def test_negative_amount_rejected():
    with pytest.raises(InvalidState):
        allocate_payment(_payment(-5, PaymentType.CONTRIBUTION))
