"""Dependency injection for FastAPI endpoints"""

import threading
import uuid
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from fund_ledger.engine import FundEngine
from fund_ledger.infrastructure.database.repositories import SqlAlchemyRecordRepository
from fund_ledger.infrastructure.database.session import get_db

# Single-writer discipline for FundSettings within this process
_fund_lock = threading.RLock()


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_engine(db: Session = Depends(get_db)) -> FundEngine:
    """Provide a fund engine bound to the request's database session"""
    return FundEngine(SqlAlchemyRecordRepository(db), lock=_fund_lock)


def parse_id(value: str, label: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label} ID format")
