"""SQLAlchemy ORM models for fund records"""

import uuid
from datetime import timezone
from sqlalchemy import Column, String, Float, DateTime, Integer, ForeignKey, Text, Uuid, Enum as SAEnum
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

from fund_ledger.domain.models import (
    LoanStatus,
    MemberRole,
    MemberStatus,
    PaymentMethod,
    PaymentType,
    TransactionType,
)

Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes, also on backends that store them naive (SQLite)"""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


def enum_column(enum_type, **kwargs) -> Column:
    """Store enum values (not names) as validated strings"""
    return Column(
        SAEnum(
            enum_type,
            values_callable=lambda e: [m.value for m in e],
            native_enum=False,
            validate_strings=True,
            length=32,
        ),
        **kwargs,
    )


class FundSettingsRecord(Base):
    """Fund-wide singleton configuration"""

    __tablename__ = "fund_settings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    annual_interest_rate = Column(Float, nullable=False)
    minimum_fund_balance = Column(Float, nullable=False)
    utilization_warning_threshold = Column(Float, nullable=False)
    bob_initial_investment = Column(Float, nullable=False, default=0)
    bob_remaining_investment = Column(Float, nullable=False, default=0)
    total_interest_applied = Column(Float, nullable=False, default=0)
    last_interest_applied_date = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)


class MemberRecord(Base):
    """Fund participant"""

    __tablename__ = "member"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    role = enum_column(MemberRole, nullable=False)
    status = enum_column(MemberStatus, nullable=False, index=True)
    total_contributions = Column(Float, nullable=False, default=0)
    join_date = Column(UTCDateTime, nullable=True)
    cash_out_amount = Column(Float, nullable=False, default=0)
    cash_out_date = Column(UTCDateTime, nullable=True)
    email = Column(String(254), nullable=True)
    phone_number = Column(String(32), nullable=True)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)


class LoanRecord(Base):
    """Loan owned by one member"""

    __tablename__ = "loan"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    member_id = Column(Uuid, ForeignKey("member.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    balance = Column(Float, nullable=False)
    monthly_payment = Column(Float, nullable=False)
    repayment_months = Column(Integer, nullable=False)
    issue_date = Column(UTCDateTime, nullable=True)
    due_date = Column(UTCDateTime, nullable=True)
    status = enum_column(LoanStatus, nullable=False, index=True)
    completed_date = Column(UTCDateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)


class TransactionRecord(Base):
    """Immutable ledger entry"""

    __tablename__ = "fund_transaction"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    member_id = Column(Uuid, ForeignKey("member.id"), nullable=True, index=True)
    type = enum_column(TransactionType, nullable=False)
    amount = Column(Float, nullable=False)
    balance = Column(Float, nullable=False)
    transaction_date = Column(UTCDateTime, nullable=False, index=True)
    description = Column(Text, nullable=True)


class PaymentRecord(Base):
    """Recorded payment event"""

    __tablename__ = "payment"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    member_id = Column(Uuid, ForeignKey("member.id"), nullable=False, index=True)
    loan_id = Column(Uuid, ForeignKey("loan.id"), nullable=True, index=True)
    amount = Column(Float, nullable=False)
    type = enum_column(PaymentType, nullable=False)
    payment_method = enum_column(PaymentMethod, nullable=False)
    payment_date = Column(UTCDateTime, nullable=False)
    loan_repayment_amount = Column(Float, nullable=False, default=0)
    contribution_amount = Column(Float, nullable=False, default=0)
    notes = Column(Text, nullable=True)
