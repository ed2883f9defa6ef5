"""Money tolerance utilities"""

import math

# Amounts closer than half a cent are the same amount
HALF_CENT = 0.005


def outstanding(amount: float) -> float:
    """Remaining balance floored at 0, with sub-cent float residue cleared"""
    return 0.0 if amount < HALF_CENT else amount


def whole_installments(amount: float, installment: float) -> int:
    """Installments fully covered by amount, tolerating sub-cent shortfall"""
    return math.floor((amount + HALF_CENT) / installment)


def installments_needed(amount: float, installment: float) -> int:
    """Installments needed to pay off amount, ignoring sub-cent excess"""
    if amount <= HALF_CENT:
        return 0
    return math.ceil((amount - HALF_CENT) / installment)
