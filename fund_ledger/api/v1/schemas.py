"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from fund_ledger.domain.models import MemberRole, PaymentMethod, PaymentType


class FundStateResponse(BaseModel):
    """Response for GET /v1/fund/state"""

    balance: float
    utilization: float
    warn_minimum_balance: bool
    warn_utilization: bool


class FundSummaryResponse(BaseModel):
    """Response for GET /v1/fund/summary"""

    total_contributions: float
    bob_initial_investment: float
    bob_remaining_investment: float
    total_interest_applied: float
    total_active_loans: float
    total_withdrawn: float
    fund_balance: float
    utilization: float
    active_members: int
    total_members: int
    active_loans_count: int
    total_capital: float
    projected_annual_interest: float


class InterestResponse(BaseModel):
    """Response for POST /v1/fund/interest"""

    transaction_id: str
    interest_amount: float
    fund_balance: float
    warnings: List[str] = []


class LoanCapacityResponse(BaseModel):
    """Response for GET /v1/members/{member_id}/loan-capacity"""

    member_id: str
    limit: float
    eligible: bool
    max_borrowable: float


class LoanRequest(BaseModel):
    """Request body for POST /v1/members/{member_id}/loans"""

    amount: float = Field(..., gt=0, description="Principal to disburse")
    repayment_months: int = Field(..., gt=0, description="Repayment period in months")
    notes: Optional[str] = None


class LoanResponse(BaseModel):
    """Disbursed loan"""

    loan_id: str
    member_id: str
    amount: float
    balance: float
    monthly_payment: float
    repayment_months: int
    issue_date: datetime
    due_date: datetime
    status: str
    warnings: List[str] = []


class CashOutRequest(BaseModel):
    """Request body for POST /v1/members/{member_id}/cash-out"""

    amount: Optional[float] = Field(None, ge=0, description="Payout; defaults to contributions plus interest")


class CashOutResponse(BaseModel):
    member_id: str
    cash_out_amount: float
    status: str
    warnings: List[str] = []


class LoanScheduleResponse(BaseModel):
    """Response for GET /v1/loans/{loan_id}/schedule"""

    loan_id: str
    overdue: bool
    remaining_payments: int
    next_due_date: Optional[datetime] = None
    completion_pct: float


class OverdueLoanResponse(BaseModel):
    """Entry in GET /v1/loans/overdue"""

    loan_id: str
    member_id: str
    balance: float
    due_date: datetime
    days_overdue: int


class LoanBalanceResponse(BaseModel):
    """Response for POST /v1/loans/{loan_id}/recalculate"""

    loan_id: str
    amount: float
    balance: float
    status: str


class PaymentRequest(BaseModel):
    """Request body for POST /v1/payments"""

    member_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    payment_type: PaymentType
    payment_method: PaymentMethod = PaymentMethod.CASH
    loan_id: Optional[str] = None
    loan_portion: Optional[float] = Field(None, ge=0, description="Required for mixed payments")
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    payment_id: str
    member_id: str
    loan_id: Optional[str] = None
    amount: float
    loan_repayment_amount: float
    contribution_amount: float
    warnings: List[str] = []


class TransactionDisplayResponse(BaseModel):
    """Response for GET /v1/transactions/{transaction_id}/display"""

    transaction_id: str
    type: str
    signed_display_amount: str
    is_credit: bool


class EnrollmentRequest(BaseModel):
    """Request body for POST /v1/members"""

    name: str = Field(..., min_length=1)
    role: MemberRole
    email: Optional[str] = None
    phone_number: Optional[str] = None


class MemberResponse(BaseModel):
    """Member state after enrollment or a status change"""

    member_id: str
    name: str
    role: str
    status: str
