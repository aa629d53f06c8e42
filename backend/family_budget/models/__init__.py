from .base import Base
from .category import Category
from .payment import Payment
from .item import Item

__all__ = [
    "Base",
    "Category",
    "Payment",
    "Item",
]
