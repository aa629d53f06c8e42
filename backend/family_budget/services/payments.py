from decimal import Decimal

from ..logging import get_logger
from ..store import ItemRecord, PaymentRecord, RecordStore
from .receipt_payload import to_minor_units

logger = get_logger(__name__)

SPLIT_MISMATCH_MESSAGE = "Сумма платежей не соответствует общей сумме"


class PaymentValidationError(ValueError):
    """Payment data that must be rejected before anything is written."""


def create_manual_payment(
    store: RecordStore,
    total: int,
    paid_egor: int,
    paid_syoma: int,
    description: str | None,
    items: list[dict],
    created_by: str,
) -> PaymentRecord:
    """
    Record a manually entered payment and its items.

    The two shares must add up to the total.
    """
    if paid_egor + paid_syoma != total:
        raise PaymentValidationError(SPLIT_MISMATCH_MESSAGE)

    payment = store.insert_payment(
        total=total,
        paid_egor=paid_egor,
        paid_syoma=paid_syoma,
        description=description or None,
        created_by=created_by,
    )
    for item in items:
        store.insert_item(
            payment_id=payment.id,
            name=item["name"],
            qty=item["qty"],
            price=item["price"],
            category_id=item.get("category_id"),
        )

    logger.info(f"{created_by} recorded payment {payment.id} with {len(items)} items")
    return payment


def add_item(
    store: RecordStore,
    payment_id: int,
    name: str,
    qty: float,
    price: Decimal,
) -> ItemRecord | None:
    """Add an item to a payment; price comes in roubles."""
    return store.insert_item(
        payment_id=payment_id,
        name=name,
        qty=int(qty),
        price=to_minor_units(price),
    )
