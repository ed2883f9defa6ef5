"""Prometheus metrics for fund health, lending activity, and repository failures"""

from prometheus_client import Counter, Histogram, Gauge

# Fund health, refreshed whenever fund state is computed
fund_balance_gauge = Gauge(
    "fund_balance",
    "Net fund balance after loans and withdrawals",
)

fund_utilization_gauge = Gauge(
    "fund_utilization_ratio",
    "Active loan balances as a fraction of the fund balance",
)

# Lending activity
interest_applications_counter = Counter(
    "fund_interest_applications_total",
    "Annual interest applications",
)

loans_disbursed_counter = Counter(
    "fund_loans_disbursed_total",
    "Loans disbursed to members",
)

payments_recorded_counter = Counter(
    "fund_payments_recorded_total",
    "Payments recorded",
    ["payment_type"],  # contribution | loan_repayment | mixed
)

# Repository health
repository_failures_counter = Counter(
    "fund_repository_failures_total",
    "Failed repository operations",
    ["operation"],  # sum | find | save | fetch_or_create
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_fund_state(balance: float, utilization: float) -> None:
    fund_balance_gauge.set(balance)
    fund_utilization_gauge.set(utilization)
