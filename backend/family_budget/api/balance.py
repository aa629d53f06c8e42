import math

from fastapi import APIRouter, Depends

from ..schemas import BalanceResponse
from ..store import RecordStore
from .deps import get_store, require_role

router = APIRouter(dependencies=[Depends(require_role)])


def to_roubles(kopecks: float) -> int:
    """Round half up to whole roubles."""
    return math.floor(kopecks / 100 + 0.5)


@router.get("", response_model=BalanceResponse)
def get_balance(store: RecordStore = Depends(get_store)):
    """Current 50/50 balance between the participants."""
    balance = store.aggregate_balance()
    return BalanceResponse(
        egor_balance=to_roubles(balance.egor_delta),
        syoma_balance=to_roubles(balance.syoma_delta),
        total_spent=to_roubles(balance.total_spent),
        payments_count=balance.payments_count,
    )
