from fastapi import APIRouter

from .auth import router as auth_router
from .payments import router as payments_router
from .receipts import router as receipts_router
from .categories import router as categories_router
from .balance import router as balance_router

api_router = APIRouter()

api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(payments_router, tags=["payments"])
api_router.include_router(receipts_router, tags=["receipts"])
api_router.include_router(categories_router, prefix="/categories", tags=["categories"])
api_router.include_router(balance_router, prefix="/balance", tags=["balance"])
