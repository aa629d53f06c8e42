"""
Parsing of fiscal receipt QR payloads.

A receipt QR code carries a query string such as
``t=20250630T1736&s=1234.50&fn=7380440800123456&i=12345&fp=1234567890&n=1``.
Parsing is permissive: each field is optional and nothing here raises.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from urllib.parse import parse_qs

RECEIPT_TIME_FORMATS = ("%Y%m%dT%H%M%S", "%Y%m%dT%H%M")
DISPLAY_TIME_FORMAT = "%d.%m.%Y %H:%M"
DEFAULT_LOOKUP_TIME = "20250101T0000"
# Largest amount an INTEGER column holds, in kopecks
MAX_MINOR_UNITS = 2**63 - 1

_DISPLAY_DATE_RE = re.compile(r"(\d{2})\.(\d{2})\.(\d{4}) (\d{2}):(\d{2})")


@dataclass
class ReceiptPayload:
    """Fields of a receipt QR code. Any of them may be missing."""
    date: str | None = None
    total: Decimal | None = None
    fn: str | None = None
    i: str | None = None
    fp: str | None = None
    timestamp_raw: str | None = None

    @property
    def has_total(self) -> bool:
        return bool(self.total)

    @property
    def has_fiscal_fields(self) -> bool:
        """True when the receipt can be looked up at the fiscal service."""
        return bool(self.fn and self.i and self.fp and self.total)


def format_receipt_time(value: str) -> str:
    """Turn ``20250630T1736`` into ``30.06.2025 17:36``; unknown formats pass through."""
    for fmt in RECEIPT_TIME_FORMATS:
        try:
            return datetime.strptime(value, fmt).strftime(DISPLAY_TIME_FORMAT)
        except ValueError:
            continue
    return value


def parse_amount(value: str | None) -> Decimal | None:
    """Amount in major units, or None if it is unreadable or does not fit in kopecks."""
    if not value:
        return None
    try:
        amount = Decimal(value.strip().replace(",", "."))
        if not amount.is_finite():
            return None
        minor = (amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    if abs(minor) > MAX_MINOR_UNITS:
        return None
    return amount


def format_amount(amount: Decimal) -> str:
    """Render an amount without trailing zeros: 1234.50 -> '1234.5', 100.00 -> '100'."""
    return format(amount.normalize(), "f")


def to_minor_units(amount: Decimal | None) -> int:
    """Major currency units to kopecks, rounding half up. None counts as zero."""
    if amount is None:
        return 0
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_receipt_qr(raw: str) -> ReceiptPayload:
    """Parse a receipt QR string into its fields."""
    query = re.sub(r"^[^?]*\?", "", raw or "", count=1)
    params = {key: values[0] for key, values in parse_qs(query.strip()).items() if values}

    payload = ReceiptPayload()

    t = params.get("t")
    if t:
        payload.timestamp_raw = t
        payload.date = format_receipt_time(t)

    payload.total = parse_amount(params.get("s"))
    payload.fn = params.get("fn") or None
    payload.i = params.get("i") or None
    payload.fp = params.get("fp") or None
    return payload


def lookup_time(payload: ReceiptPayload) -> str:
    """Receipt time in the compact form the fiscal service expects."""
    if payload.date:
        match = _DISPLAY_DATE_RE.fullmatch(payload.date)
        if match:
            day, month, year, hour, minute = match.groups()
            return f"{year}{month}{day}T{hour}{minute}"
    return DEFAULT_LOOKUP_TIME


def fiscal_query(payload: ReceiptPayload) -> str:
    """Rebuild the ``qrraw`` string sent to the fiscal lookup service."""
    amount = format_amount(payload.total) if payload.total is not None else ""
    return (
        f"t={lookup_time(payload)}&s={amount}"
        f"&fn={payload.fn}&i={payload.i}&fp={payload.fp}&n=1"
    )
