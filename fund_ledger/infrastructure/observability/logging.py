"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from fund_ledger.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_interest_applied(interest_amount: float, fund_balance: float, annual_interest_rate: float) -> None:
    logging.info(
        "Annual interest applied",
        extra={
            "step": "interest_applied",
            "interest_amount": interest_amount,
            "fund_balance": fund_balance,
            "annual_interest_rate": annual_interest_rate,
        },
    )


def log_loan_disbursed(member_id: str, loan_id: str, amount: float, repayment_months: int) -> None:
    logging.info(
        "Loan disbursed",
        extra={
            "step": "loan_disbursed",
            "member_id": member_id,
            "loan_id": loan_id,
            "amount": amount,
            "repayment_months": repayment_months,
        },
    )


def log_payment_recorded(
    member_id: str,
    payment_id: str,
    payment_type: str,
    loan_repayment: float,
    contribution: float,
) -> None:
    logging.info(
        "Payment recorded",
        extra={
            "step": "payment_recorded",
            "member_id": member_id,
            "payment_id": payment_id,
            "payment_type": payment_type,
            "loan_repayment": loan_repayment,
            "contribution": contribution,
        },
    )


def log_member_deleted(member_id: str) -> None:
    logging.info("Member deleted", extra={"step": "member_deleted", "member_id": member_id})
