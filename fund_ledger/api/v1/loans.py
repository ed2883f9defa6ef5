"""Loan and payment endpoints"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from fund_ledger.api.dependencies import get_engine, parse_id
from fund_ledger.api.v1.schemas import (
    LoanBalanceResponse,
    LoanScheduleResponse,
    OverdueLoanResponse,
    PaymentRequest,
    PaymentResponse,
)
from fund_ledger.domain.models import RecordKind
from fund_ledger.domain.rules import validate_payment
from fund_ledger.engine import FundEngine
from fund_ledger.utils.date_utils import days_between, utcnow

router = APIRouter()


@router.get("/loans/{loan_id}/schedule", response_model=LoanScheduleResponse)
def get_loan_schedule(loan_id: str, engine: FundEngine = Depends(get_engine)):
    """Overdue flag, remaining installments, next due date, and completion"""
    schedule = engine.get_loan_schedule(parse_id(loan_id, "loan"))
    return LoanScheduleResponse(
        loan_id=loan_id,
        overdue=schedule.overdue,
        remaining_payments=schedule.remaining_payments,
        next_due_date=schedule.next_due_date,
        completion_pct=schedule.completion_pct,
    )


@router.get("/loans/overdue", response_model=List[OverdueLoanResponse])
def list_overdue_loans(engine: FundEngine = Depends(get_engine)):
    """Active loans past their due date, oldest due first"""
    now = utcnow()
    return [
        OverdueLoanResponse(
            loan_id=str(loan.id),
            member_id=str(loan.member_id),
            balance=loan.balance,
            due_date=loan.due_date,
            days_overdue=days_between(loan.due_date, now),
        )
        for loan in engine.get_overdue_loans(now)
    ]


@router.post("/loans/{loan_id}/recalculate", response_model=LoanBalanceResponse)
def recalculate_loan_balance(loan_id: str, engine: FundEngine = Depends(get_engine)):
    """Rebuild the balance from recorded repayments, completing the loan at 0"""
    loan = engine.recalculate_loan_balance(parse_id(loan_id, "loan"))
    return LoanBalanceResponse(
        loan_id=loan_id,
        amount=loan.amount,
        balance=loan.balance,
        status=loan.status.value,
    )

@router.post("/payments", response_model=PaymentResponse, status_code=201)
def record_payment(request_body: PaymentRequest, engine: FundEngine = Depends(get_engine)):
    """
    Record a contribution, loan repayment, or mixed payment.

    Mixed payments must state loan_portion; the remainder is a contribution.
    """
    member = engine.evaluator.get_member(parse_id(request_body.member_id, "member"))
    loan = None
    if request_body.loan_id is not None:
        loan = engine.repository.get(RecordKind.LOAN, parse_id(request_body.loan_id, "loan"))

    validation = validate_payment(member, request_body.amount, request_body.payment_type, loan)
    if not validation.is_valid:
        raise HTTPException(status_code=422, detail="; ".join(validation.errors))

    payment = engine.record_payment(
        member.id,
        request_body.amount,
        request_body.payment_type,
        loan_id=loan.id if loan else None,
        payment_method=request_body.payment_method,
        loan_portion=request_body.loan_portion,
        notes=request_body.notes,
    )
    return PaymentResponse(
        payment_id=str(payment.id),
        member_id=request_body.member_id,
        loan_id=str(payment.loan_id) if payment.loan_id else None,
        amount=payment.amount,
        loan_repayment_amount=payment.loan_repayment_amount,
        contribution_amount=payment.contribution_amount,
        warnings=validation.warnings,
    )
