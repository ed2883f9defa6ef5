"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from fund_ledger.utils.date_utils import utcnow


class RecordKind(str, Enum):
    """Entity kinds served by the record repository"""

    FUND_SETTINGS = "fund_settings"
    MEMBER = "member"
    LOAN = "loan"
    TRANSACTION = "transaction"
    PAYMENT = "payment"


class MemberRole(str, Enum):
    DRIVER = "Driver"
    ASSISTANT = "Assistant"
    HOUSEKEEPER = "Housekeeper"
    GROUNDS_KEEPER = "Grounds Keeper"
    SECURITY_GUARD = "Guard"
    PART_TIME = "Part-time"

    @property
    def display_name(self) -> str:
        return self.value


class MemberStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    INACTIVE = "inactive"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class LoanStatus(str, Enum):
    """Loan lifecycle; completed and defaulted are terminal"""

    ACTIVE = "active"
    COMPLETED = "completed"
    DEFAULTED = "defaulted"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class TransactionType(str, Enum):
    CONTRIBUTION = "contribution"
    LOAN_DISBURSEMENT = "loan_disbursement"
    LOAN_REPAYMENT = "loan_repayment"
    INTEREST_APPLIED = "interest_applied"
    CASH_OUT = "cash_out"
    BOB_INVESTMENT = "bob_investment"
    BOB_WITHDRAWAL = "bob_withdrawal"

    @property
    def display_name(self) -> str:
        return _TRANSACTION_TYPE_NAMES[self]


_TRANSACTION_TYPE_NAMES = {
    TransactionType.CONTRIBUTION: "Contribution",
    TransactionType.LOAN_DISBURSEMENT: "Loan Disbursement",
    TransactionType.LOAN_REPAYMENT: "Loan Repayment",
    TransactionType.INTEREST_APPLIED: "Interest Applied",
    TransactionType.CASH_OUT: "Cash Out",
    TransactionType.BOB_INVESTMENT: "Bob's Investment",
    TransactionType.BOB_WITHDRAWAL: "Bob's Withdrawal",
}


class PaymentType(str, Enum):
    CONTRIBUTION = "contribution"
    LOAN_REPAYMENT = "loan_repayment"
    MIXED = "mixed"


class PaymentMethod(str, Enum):
    CASH = "cash"
    MPESA = "mpesa"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"


@dataclass
class FundSettings:
    """Fund-wide configuration and accumulated interest state"""

    annual_interest_rate: float = 0.13
    minimum_fund_balance: float = 50_000.0
    utilization_warning_threshold: float = 0.60
    bob_initial_investment: float = 0.0
    bob_remaining_investment: float = 0.0
    total_interest_applied: float = 0.0
    last_interest_applied_date: Optional[datetime] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Member:
    """A fund participant"""

    name: str
    role: MemberRole
    status: MemberStatus = MemberStatus.ACTIVE
    total_contributions: float = 0.0
    join_date: Optional[datetime] = None
    cash_out_amount: float = 0.0
    cash_out_date: Optional[datetime] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Loan:
    """A borrowing instance owned by one member; 0 <= balance <= amount"""

    member_id: uuid.UUID
    amount: float
    balance: float
    monthly_payment: float
    repayment_months: int
    issue_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    status: LoanStatus = LoanStatus.ACTIVE
    completed_date: Optional[datetime] = None
    notes: Optional[str] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Transaction:
    """Immutable ledger entry; amount is non-negative, sign comes from type"""

    type: TransactionType
    amount: float
    balance: float
    transaction_date: datetime = field(default_factory=utcnow)
    member_id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class Payment:
    """Recorded real-world payment, funding a loan and/or a contribution"""

    member_id: uuid.UUID
    amount: float
    type: PaymentType
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_date: datetime = field(default_factory=utcnow)
    loan_id: Optional[uuid.UUID] = None
    loan_repayment_amount: float = 0.0
    contribution_amount: float = 0.0
    notes: Optional[str] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class PaymentAllocation:
    """Split of a payment amount between loan repayment and contribution"""

    loan_repayment: float
    contribution: float


@dataclass
class FundState:
    balance: float
    utilization: float
    warn_minimum_balance: bool
    warn_utilization: bool


@dataclass
class FundSummary:
    """Fund-wide totals and population counts"""

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


@dataclass
class LoanCapacity:
    limit: float
    eligible: bool
    max_borrowable: float


@dataclass
class LoanSchedule:
    overdue: bool
    remaining_payments: int
    next_due_date: Optional[datetime]
    completion_pct: float


@dataclass
class RepaymentScheduleEntry:
    """Single month in a loan repayment schedule"""

    payment_number: int
    due_date: datetime
    total_payment: float
    principal_payment: float
    remaining_balance: float


@dataclass
class TransactionDisplay:
    signed_display_amount: str
    is_credit: bool


@dataclass
class ValidationResult:
    """Outcome of a business-rule check: errors block, warnings inform"""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)


MonthlyContributions = Dict[str, float]
