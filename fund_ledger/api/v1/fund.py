"""Fund-wide endpoints - state, summary, and annual interest"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from fund_ledger.api.dependencies import get_engine, get_request_id
from fund_ledger.api.v1.schemas import FundStateResponse, FundSummaryResponse, InterestResponse
from fund_ledger.domain.rules import validate_interest_application
from fund_ledger.engine import FundEngine

router = APIRouter()


@router.get("/fund/state", response_model=FundStateResponse)
def get_fund_state(engine: FundEngine = Depends(get_engine)):
    """Current balance, utilization, and warning flags"""
    state = engine.get_fund_state()
    return FundStateResponse(
        balance=state.balance,
        utilization=state.utilization,
        warn_minimum_balance=state.warn_minimum_balance,
        warn_utilization=state.warn_utilization,
    )


@router.get("/fund/summary", response_model=FundSummaryResponse)
def get_fund_summary(engine: FundEngine = Depends(get_engine)):
    summary = engine.get_fund_summary()
    return FundSummaryResponse(**vars(summary))


@router.post("/fund/interest", response_model=InterestResponse)
def apply_interest(request: Request, engine: FundEngine = Depends(get_engine)):
    """
    Apply one period of annual interest to the fund balance.

    Rejected when the fund balance is not positive. Applying twice within
    the accrual period is allowed but reported as a warning.
    """
    validation = validate_interest_application(engine.ledger)
    if not validation.is_valid:
        raise HTTPException(status_code=422, detail="; ".join(validation.errors))

    transaction = engine.apply_annual_interest()
    logging.info(
        "Interest endpoint completed",
        extra={"request_id": get_request_id(request), "interest_amount": transaction.amount},
    )
    return InterestResponse(
        transaction_id=str(transaction.id),
        interest_amount=transaction.amount,
        fund_balance=transaction.balance,
        warnings=validation.warnings,
    )
