from sqlalchemy import String, Integer, Float, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Item(Base):
    """A line of a payment. Deleted together with its payment."""

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    payment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    qty: Mapped[float] = mapped_column(Float, nullable=False, default=1)
    price: Mapped[int] = mapped_column(Integer, nullable=False)

    # Weak reference, no foreign key: categories can be deleted under items
    category_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[str] = mapped_column(String(40), nullable=False)

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, payment_id={self.payment_id}, name='{self.name}')>"
