"""Member endpoints - enrollment, status changes, loan capacity, disbursement, and cash-out"""

from fastapi import APIRouter, Depends, HTTPException, Response

from fund_ledger.api.dependencies import get_engine, parse_id
from fund_ledger.api.v1.schemas import (
    CashOutRequest,
    CashOutResponse,
    EnrollmentRequest,
    LoanCapacityResponse,
    LoanRequest,
    LoanResponse,
    MemberResponse,
)
from fund_ledger.domain.models import Member
from fund_ledger.domain.rules import validate_cash_out, validate_loan_request
from fund_ledger.engine import FundEngine

router = APIRouter()


def _member_response(member: Member) -> MemberResponse:
    return MemberResponse(
        member_id=str(member.id),
        name=member.name,
        role=member.role.value,
        status=member.status.value,
    )


@router.post("/members", response_model=MemberResponse, status_code=201)
def enroll_member(request_body: EnrollmentRequest, engine: FundEngine = Depends(get_engine)):
    member = engine.operations.enroll_member(
        request_body.name,
        request_body.role,
        email=request_body.email,
        phone_number=request_body.phone_number,
    )
    return _member_response(member)


@router.post("/members/{member_id}/suspend", response_model=MemberResponse)
def suspend_member(member_id: str, engine: FundEngine = Depends(get_engine)):
    """Suspend an active member; suspended members cannot borrow but may cash out"""
    return _member_response(engine.operations.suspend_member(parse_id(member_id, "member")))


@router.post("/members/{member_id}/reactivate", response_model=MemberResponse)
def reactivate_member(member_id: str, engine: FundEngine = Depends(get_engine)):
    return _member_response(engine.operations.reactivate_member(parse_id(member_id, "member")))


@router.delete("/members/{member_id}", status_code=204)
def delete_member(member_id: str, engine: FundEngine = Depends(get_engine)):
    """Remove a member without active loans, along with their loans and payments"""
    engine.delete_member(parse_id(member_id, "member"))
    return Response(status_code=204)

@router.get("/members/{member_id}/loan-capacity", response_model=LoanCapacityResponse)
def get_loan_capacity(member_id: str, engine: FundEngine = Depends(get_engine)):
    """Role-based limit, eligibility, and remaining borrowable amount"""
    capacity = engine.get_member_loan_capacity(parse_id(member_id, "member"))
    return LoanCapacityResponse(
        member_id=member_id,
        limit=capacity.limit,
        eligible=capacity.eligible,
        max_borrowable=capacity.max_borrowable,
    )


@router.post("/members/{member_id}/loans", response_model=LoanResponse, status_code=201)
def disburse_loan(member_id: str, request_body: LoanRequest, engine: FundEngine = Depends(get_engine)):
    """
    Disburse a loan after business-rule validation.

    Validation errors (eligibility, limit, repayment period) reject the
    request; fund-level warnings are returned alongside the loan.
    """
    member = engine.evaluator.get_member(parse_id(member_id, "member"))
    validation = validate_loan_request(
        member,
        request_body.amount,
        request_body.repayment_months,
        engine.evaluator,
        engine.ledger,
    )
    if not validation.is_valid:
        raise HTTPException(status_code=422, detail="; ".join(validation.errors))

    loan = engine.disburse_loan(member.id, request_body.amount, request_body.repayment_months, notes=request_body.notes)
    return LoanResponse(
        loan_id=str(loan.id),
        member_id=member_id,
        amount=loan.amount,
        balance=loan.balance,
        monthly_payment=loan.monthly_payment,
        repayment_months=loan.repayment_months,
        issue_date=loan.issue_date,
        due_date=loan.due_date,
        status=loan.status.value,
        warnings=validation.warnings,
    )


@router.post("/members/{member_id}/cash-out", response_model=CashOutResponse)
def cash_out(member_id: str, request_body: CashOutRequest, engine: FundEngine = Depends(get_engine)):
    member = engine.evaluator.get_member(parse_id(member_id, "member"))
    validation = validate_cash_out(member, engine.evaluator)
    if not validation.is_valid:
        raise HTTPException(status_code=422, detail="; ".join(validation.errors))

    member = engine.operations.cash_out_member(member.id, request_body.amount)
    return CashOutResponse(
        member_id=member_id,
        cash_out_amount=member.cash_out_amount,
        status=member.status.value,
        warnings=validation.warnings,
    )
