"""Global exception handlers mapping domain errors to HTTP responses"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fund_ledger.api.dependencies import get_request_id
from fund_ledger.domain.exceptions import (
    CannotCashOutActiveMemberError,
    DomainException,
    InvalidState,
    LoanAmountExceedsLimitError,
    MemberHasActiveLoansError,
    MemberNotEligibleError,
    NotFound,
    RepositoryFailure,
)

STATUS_BY_EXCEPTION = (
    (NotFound, 404),
    (InvalidState, 422),
    (MemberNotEligibleError, 409),
    (LoanAmountExceedsLimitError, 409),
    (MemberHasActiveLoansError, 409),
    (CannotCashOutActiveMemberError, 409),
    (RepositoryFailure, 503),
)


def status_for(exc: DomainException) -> int:
    for exception_type, status_code in STATUS_BY_EXCEPTION:
        if isinstance(exc, exception_type):
            return status_code
    return 500


def register_error_handlers(app: FastAPI) -> None:
    """Register domain error handlers on the FastAPI app"""

    @app.exception_handler(DomainException)
    async def domain_error_handler(request: Request, exc: DomainException):
        status_code = status_for(exc)
        request_id = get_request_id(request)
        if status_code >= 500:
            logging.error(f"Domain error: {exc}", extra={"request_id": request_id, "path": request.url.path})
            detail = "Fund records unavailable" if isinstance(exc, RepositoryFailure) else "Internal server error"
        else:
            logging.warning(f"Rejected request: {exc}", extra={"request_id": request_id, "path": request.url.path})
            detail = str(exc)
        return JSONResponse(status_code=status_code, content={"detail": detail})
