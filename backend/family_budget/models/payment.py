from sqlalchemy import String, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Payment(Base):
    """
    A shared expense split between the two participants.

    Amounts are stored as integer kopecks to avoid floating point issues.
    """

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ts: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    total: Mapped[int] = mapped_column(Integer, nullable=False)
    paid_egor: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    paid_syoma: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Raw receipt QR string, used to reject duplicate scans
    raw_qr: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    fns_payload: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[str] = mapped_column(String(20), nullable=False)

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, total={self.total})>"
