"""Transaction classification - credit/debit sign and display form per ledger entry type"""

from fund_ledger.config import settings
from fund_ledger.domain.models import Transaction, TransactionDisplay, TransactionType

# Fixed mapping; never derived from the stored amount
CREDIT_TYPES = frozenset({
    TransactionType.CONTRIBUTION,
    TransactionType.INTEREST_APPLIED,
    TransactionType.BOB_INVESTMENT,
})


def is_credit(transaction_type: TransactionType) -> bool:
    """Contributions, interest, and Bob's investments add to the fund"""
    return transaction_type in CREDIT_TYPES


def format_currency(amount: float, symbol: str | None = None) -> str:
    """Whole-unit currency with thousands separators, e.g. "KSH 12,000" """
    symbol = symbol or settings.currency_symbol
    return f"{symbol} {amount:,.0f}"


def display_amount(transaction: Transaction) -> str:
    """Signed, currency-formatted magnitude: "+KSH 1,000" or "-KSH 1,000" """
    prefix = "+" if is_credit(transaction.type) else "-"
    return prefix + format_currency(abs(transaction.amount))


def display_balance(transaction: Transaction) -> str:
    return format_currency(transaction.balance)


def classify_transaction(transaction: Transaction) -> TransactionDisplay:
    return TransactionDisplay(
        signed_display_amount=display_amount(transaction),
        is_credit=is_credit(transaction.type),
    )
