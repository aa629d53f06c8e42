from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Category(Base):
    """
    Spending category for payment items.
    Items reference categories by id only; deleting a category leaves them dangling.
    """

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), nullable=False, default="")
    color: Mapped[str] = mapped_column(String(7), nullable=False)

    # Monthly limit in kopecks, 0 = unset
    monthly_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # ISO-8601 string, same as the JSON files
    created_at: Mapped[str] = mapped_column(String(40), nullable=False)

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"
