import threading
from collections.abc import Callable
from dataclasses import replace
from typing import Generic, TypeVar

from ..logging import get_logger
from .backends import RecordBackend
from .records import Record, is_record_id

logger = get_logger(__name__)

R = TypeVar("R", bound=Record)


class Table(Generic[R]):
    """
    In-memory collection of one record type, mirrored to a backend.

    Ids come from a counter seeded with max(id) + 1 at load time. All
    mutations of a table hold its lock. Records handed out are copies.
    """

    def __init__(
        self,
        name: str,
        record_cls: type[R],
        backend: RecordBackend,
        immutable_fields: tuple[str, ...] = (),
    ):
        self.name = name
        self.record_cls = record_cls
        self.backend = backend
        self.immutable_fields = ("id",) + immutable_fields
        self.lock = threading.RLock()
        self._records: list[R] = []
        self._next_id = 1

    def load(self) -> None:
        """Read the table. Malformed rows and repeated ids are skipped with a warning."""
        with self.lock:
            rows = self.backend.load_all(self.name)
            records: list[R] = []
            seen: set[int] = set()
            for row in rows:
                try:
                    record = self.record_cls.from_dict(row)
                except (TypeError, ValueError) as e:
                    logger.warning(f"Skipping malformed {self.name} row {row!r}: {e}")
                    continue
                if record.id in seen:
                    logger.warning(f"Skipping {self.name} row with repeated id {record.id}")
                    continue
                seen.add(record.id)
                records.append(record)

            if len(records) < len(rows):
                self.backend.reset(self.name, [r.to_dict() for r in records])
            self._records = records
            # Ids of skipped rows are never issued again
            self._next_id = max(
                (row["id"] for row in rows if is_record_id(row.get("id"))), default=0
            ) + 1

    def __len__(self) -> int:
        return len(self._records)

    def create(self, **values) -> R:
        """Insert a new record with the next id."""
        with self.lock:
            record = self.record_cls(id=self._next_id, **values)
            self._next_id += 1
            self._records.append(record)
            self.backend.append(self.name, record.to_dict())
            return replace(record)

    def get(self, record_id: int) -> R | None:
        with self.lock:
            record = self._find(record_id)
            return replace(record) if record else None

    def update(self, record_id: int, values: dict) -> R | None:
        """Apply field changes. A missing id is a no-op returning None."""
        with self.lock:
            record = self._find(record_id)
            if record is None:
                return None
            for field, value in values.items():
                if field in self.immutable_fields:
                    raise ValueError(f"{self.name}.{field} cannot be changed")
                setattr(record, field, value)
            self.backend.replace(self.name, record.to_dict())
            return replace(record)

    def delete(self, record_id: int) -> bool:
        return bool(self.delete_where(lambda r: r.id == record_id))

    def delete_where(self, predicate: Callable[[R], bool]) -> list[int]:
        """Remove every matching record; returns the removed ids."""
        with self.lock:
            removed = [r.id for r in self._records if predicate(r)]
            if removed:
                self._records = [r for r in self._records if not predicate(r)]
                self.backend.delete(self.name, removed)
            return removed

    def find_all(self, predicate: Callable[[R], bool] | None = None) -> list[R]:
        """Matching records in insertion order."""
        with self.lock:
            return [replace(r) for r in self._records if predicate is None or predicate(r)]

    def find_one(self, predicate: Callable[[R], bool]) -> R | None:
        with self.lock:
            for record in self._records:
                if predicate(record):
                    return replace(record)
            return None

    def _find(self, record_id: int) -> R | None:
        for record in self._records:
            if record.id == record_id:
                return record
        return None
