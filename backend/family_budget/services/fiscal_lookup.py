"""
Client for the fiscal receipt lookup service (proverkacheka.com).

Exchanges the fiscal fields of a receipt QR code for its line items. One
attempt per call; every failure is logged and reported as "no items".
"""

from dataclasses import dataclass
from typing import Any

import httpx

from ..logging import get_logger
from .receipt_payload import ReceiptPayload, fiscal_query

logger = get_logger(__name__)

USER_AGENT = "mini-budget-app/1.0"
SUCCESS_CODE = 1


@dataclass
class ReceiptLine:
    """A receipt line; amounts in kopecks."""
    name: str
    quantity: float
    sum: int
    price: int


def parse_lookup_response(data: Any) -> list[ReceiptLine] | None:
    """Extract receipt lines from a lookup response body, or None if it has none."""
    if not isinstance(data, dict) or data.get("code") != SUCCESS_CODE:
        return None
    body = data.get("data")
    receipt = body.get("json") if isinstance(body, dict) else None
    items = receipt.get("items") if isinstance(receipt, dict) else None
    if not isinstance(items, list):
        return None

    lines = []
    for item in items:
        if not isinstance(item, dict):
            continue
        lines.append(ReceiptLine(
            name=item.get("name") or "Неизвестный товар",
            quantity=item.get("quantity") or 1,
            sum=int(item.get("sum") or 0),
            price=int(item.get("price") or 0),
        ))
    return lines


class FiscalLookupClient:
    def __init__(
        self,
        token: str | None,
        url: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.token = token
        self.url = url
        self.timeout = timeout
        self.transport = transport

    def fetch_items(self, payload: ReceiptPayload) -> list[ReceiptLine] | None:
        """Look up a receipt's line items. Returns None when nothing could be fetched."""
        if not self.token:
            logger.warning("FNS_API_TOKEN is not set, skipping receipt lookup")
            return None

        qrraw = fiscal_query(payload)
        logger.info(f"Requesting receipt lines for fn={payload.fn} i={payload.i}")

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    self.url,
                    data={"token": self.token, "qrraw": qrraw},
                    headers={"User-Agent": USER_AGENT},
                )
        except httpx.HTTPError as e:
            logger.error(f"Receipt lookup unavailable: {e}")
            return None

        if not response.is_success:
            logger.error(f"Receipt lookup error: {response.status_code} {response.text[:500]}")
            return None

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Receipt lookup returned malformed JSON: {e}")
            return None

        try:
            lines = parse_lookup_response(data)
        except (TypeError, ValueError) as e:
            logger.error(f"Receipt lookup returned unexpected item data: {e}")
            return None

        if lines is None:
            code = data.get("code") if isinstance(data, dict) else None
            logger.warning(f"Receipt not found by lookup service (code={code})")
            return None

        logger.info(f"Receipt lookup returned {len(lines)} lines")
        return lines
