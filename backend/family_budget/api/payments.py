from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from ..logging import get_logger
from ..schemas import (
    AddItemRequest,
    ClassifyResponse,
    ItemAddedResponse,
    ItemUpdate,
    PaymentCreate,
    PaymentCreatedResponse,
    PaymentResponse,
    PaymentUpdate,
    SuccessResponse,
)
from ..services import IngestionWorkflow, PaymentValidationError, add_item, create_manual_payment
from ..store import RecordStore
from .deps import get_store, get_workflow, require_role

logger = get_logger(__name__)

router = APIRouter()


@router.post("/payment", response_model=PaymentCreatedResponse)
def create_payment(
    payment: PaymentCreate,
    role: str = Depends(require_role),
    store: RecordStore = Depends(get_store),
):
    """Record a manually entered payment."""
    try:
        created = create_manual_payment(
            store,
            total=payment.total,
            paid_egor=payment.paid_egor,
            paid_syoma=payment.paid_syoma,
            description=payment.description,
            items=[item.model_dump() for item in payment.items or []],
            created_by=role,
        )
    except PaymentValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PaymentCreatedResponse(id=created.id)


@router.get("/payments", response_model=list[PaymentResponse])
def list_payments(
    role: str = Depends(require_role),
    store: RecordStore = Depends(get_store),
):
    """Get all payments with their items, newest first."""
    return [
        PaymentResponse(
            **entry.payment.to_dict(),
            items=[asdict(item) for item in entry.items],
        )
        for entry in store.list_payments_with_items()
    ]


@router.patch("/payment/{payment_id}", response_model=SuccessResponse)
def update_payment(
    payment_id: int,
    payment: PaymentUpdate,
    role: str = Depends(require_role),
    store: RecordStore = Depends(get_store),
):
    """Replace a payment's amounts and description."""
    updated = store.update_payment_totals(
        payment_id,
        total=payment.total,
        paid_egor=payment.paid_egor,
        paid_syoma=payment.paid_syoma,
        description=payment.description,
    )
    if updated is None:
        logger.info(f"Payment {payment_id} not found, nothing updated")
    return SuccessResponse()


@router.delete("/payment/{payment_id}", response_model=SuccessResponse)
def delete_payment(
    payment_id: int,
    role: str = Depends(require_role),
    store: RecordStore = Depends(get_store),
):
    """Delete a payment together with its items."""
    store.delete_payment(payment_id)
    return SuccessResponse()


@router.patch("/item/{item_id}", response_model=SuccessResponse)
def update_item(
    item_id: int,
    item: ItemUpdate,
    role: str = Depends(require_role),
    store: RecordStore = Depends(get_store),
):
    """Edit an item; omitted fields keep their values."""
    store.update_item(
        item_id,
        name=item.name,
        qty=item.qty,
        price=item.price,
        category_id=item.category_id,
    )
    return SuccessResponse()


@router.post("/payment/{payment_id}/add-item", response_model=ItemAddedResponse)
def add_payment_item(
    payment_id: int,
    item: AddItemRequest,
    role: str = Depends(require_role),
    store: RecordStore = Depends(get_store),
):
    """Add an item to an existing payment. Price in roubles."""
    created = add_item(store, payment_id, name=item.name, qty=item.qty, price=item.price)
    if created is None:
        raise HTTPException(status_code=400, detail="Платеж не найден")
    return ItemAddedResponse(
        id=created.id,
        message=f'Товар "{created.name}" добавлен к платежу',
    )


@router.post("/payment/{payment_id}/classify", response_model=ClassifyResponse)
def classify_payment(
    payment_id: int,
    role: str = Depends(require_role),
    workflow: IngestionWorkflow = Depends(get_workflow),
):
    """Run AI classification over all items of a payment."""
    outcome = workflow.classify_payment(payment_id)

    if outcome.attempted_count == 0:
        return ClassifyResponse(success=True, message="Нет товаров для классификации")
    if outcome.updated_count == 0:
        return ClassifyResponse(
            success=False,
            message="AI классификация не удалась. Установите категории товаров вручную.",
        )
    return ClassifyResponse(
        success=True,
        updated_count=outcome.updated_count,
        message=f"AI классификация завершена. Обновлено {outcome.updated_count} товаров.",
    )
