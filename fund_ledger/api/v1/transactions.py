"""GET /v1/transactions/{transaction_id}/display - signed display form of a ledger entry"""

from fastapi import APIRouter, Depends

from fund_ledger.api.dependencies import get_engine, parse_id
from fund_ledger.api.v1.schemas import TransactionDisplayResponse
from fund_ledger.domain.models import RecordKind
from fund_ledger.engine import FundEngine

router = APIRouter()


@router.get("/transactions/{transaction_id}/display", response_model=TransactionDisplayResponse)
def get_transaction_display(transaction_id: str, engine: FundEngine = Depends(get_engine)):
    transaction = engine.repository.get(RecordKind.TRANSACTION, parse_id(transaction_id, "transaction"))
    display = engine.classify_transaction(transaction)
    return TransactionDisplayResponse(
        transaction_id=transaction_id,
        type=transaction.type.value,
        signed_display_amount=display.signed_display_amount,
        is_credit=display.is_credit,
    )
