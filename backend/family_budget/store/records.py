"""
Plain record types held by the store.

Field names match the keys of the persisted JSON arrays, so files stay
hand-editable and both backends share one shape.
"""

from dataclasses import dataclass, asdict, fields
from datetime import datetime, timezone

PARTICIPANTS = ("egor", "syoma")


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> datetime:
    """Parse a stored timestamp; unreadable values sort as the oldest."""
    if not value:
        return datetime.min.replace(tzinfo=timezone.utc)
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_record_id(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class Record:
    """Shared dict conversion for record dataclasses."""

    @classmethod
    def from_dict(cls, data: dict):
        """Build a record, ignoring unknown keys. Missing required keys raise TypeError."""
        if not is_record_id(data.get("id")):
            raise ValueError(f"id must be an integer, got {data.get('id')!r}")
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CategoryRecord(Record):
    id: int
    name: str
    description: str = ""
    color: str = "#6b7280"
    monthly_limit: int = 0
    created_at: str = ""

    def __post_init__(self):
        if self.description is None:
            self.description = ""


@dataclass
class PaymentRecord(Record):
    id: int
    total: int
    paid_egor: int
    paid_syoma: int
    created_by: str
    ts: str = ""
    description: str | None = None
    raw_qr: str | None = None
    fns_payload: str | None = None

    def paid_by(self, role: str) -> int:
        return self.paid_egor if role == "egor" else self.paid_syoma


@dataclass
class ItemRecord(Record):
    id: int
    payment_id: int
    name: str
    price: int
    qty: float = 1
    category_id: int | None = None
    created_at: str = ""

    def __post_init__(self):
        # SQLite hands back REAL columns as floats
        if isinstance(self.qty, float) and self.qty.is_integer():
            self.qty = int(self.qty)


@dataclass
class ResolvedItem:
    """An item with its category looked up; dangling references become None."""
    id: int
    name: str
    qty: float
    price: int
    category_id: int | None = None
    category_name: str | None = None
    category_color: str | None = None


@dataclass
class PaymentWithItems:
    payment: PaymentRecord
    items: list[ResolvedItem]


@dataclass
class BalanceSummary:
    """50/50 balance: positive delta means the participant overpaid."""
    egor_delta: float
    syoma_delta: float
    total_spent: int
    payments_count: int
