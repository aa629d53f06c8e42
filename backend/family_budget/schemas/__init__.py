from .auth import LoginRequest, LoginResponse, MeResponse, SuccessResponse
from .category import CategorySave, CategorySaveResponse, CategoryResponse
from .payment import (
    ItemInput,
    PaymentCreate,
    PaymentUpdate,
    ItemUpdate,
    AddItemRequest,
    PaymentCreatedResponse,
    ItemAddedResponse,
    ItemResponse,
    PaymentResponse,
)
from .receipt import QrRequest, ClassifyRequest, IngestionResponse, ScanResponse, ClassifyResponse
from .balance import BalanceResponse

__all__ = [
    "LoginRequest",
    "LoginResponse",
    "MeResponse",
    "SuccessResponse",
    "CategorySave",
    "CategorySaveResponse",
    "CategoryResponse",
    "ItemInput",
    "PaymentCreate",
    "PaymentUpdate",
    "ItemUpdate",
    "AddItemRequest",
    "PaymentCreatedResponse",
    "ItemAddedResponse",
    "ItemResponse",
    "PaymentResponse",
    "QrRequest",
    "ClassifyRequest",
    "IngestionResponse",
    "ScanResponse",
    "ClassifyResponse",
    "BalanceResponse",
]
