from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    def to_record(self) -> dict:
        """Column values as a plain dict, keyed like the JSON files."""
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}
