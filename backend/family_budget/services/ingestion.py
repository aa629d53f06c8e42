"""
Receipt ingestion workflow.

decode -> parse -> dedupe -> create payment -> fetch items -> persist items
-> auto-classify. The dedupe check is the only point that stops the run
before anything is written; every later step is committed on its own and a
failing lookup or classification leaves the payment in place.
"""

from dataclasses import dataclass

from ..logging import get_logger
from ..store import ItemRecord, RecordStore
from .classifier import CategoryHint, ClassifiableItem, ItemClassifier
from .fiscal_lookup import FiscalLookupClient, ReceiptLine
from .qr_decoder import DecodeResult, QrDecoder
from .receipt_payload import (
    ReceiptPayload,
    fiscal_query,
    format_amount,
    parse_receipt_qr,
    to_minor_units,
)

logger = get_logger(__name__)

DUPLICATE_MESSAGE = "Платеж с таким QR кодом уже создан"
NO_TOTAL_DESCRIPTION = "Чек из QR кода (требует редактирования сумм)"


@dataclass
class IngestionResult:
    success: bool
    payment_id: int | None = None
    message: str | None = None
    error: str | None = None
    duplicate: bool = False
    items_count: int = 0
    classified_count: int = 0
    decode: DecodeResult | None = None


@dataclass
class ClassificationOutcome:
    attempted_count: int
    updated_count: int


def describe_receipt(payload: ReceiptPayload) -> str:
    if not payload.has_total:
        return NO_TOTAL_DESCRIPTION
    return f"Чек от {payload.date or 'неизвестной даты'} на {format_amount(payload.total)}₽"


def summary_message(total: int) -> str:
    if total > 0:
        return f"Чек на {total / 100:.2f}₽ сохранен. Отредактируйте кто сколько заплатил."
    return "QR код сохранен. Отредактируйте платеж с правильными суммами."


class IngestionWorkflow:
    def __init__(
        self,
        store: RecordStore,
        lookup: FiscalLookupClient,
        classifier: ItemClassifier,
        decoder: QrDecoder | None = None,
    ):
        self.store = store
        self.lookup = lookup
        self.classifier = classifier
        self.decoder = decoder or QrDecoder()

    def ingest_image(self, image: bytes, role: str, filename: str = "") -> IngestionResult:
        """Decode a receipt photo and ingest the QR payload found in it."""
        decoded = self.decoder.decode_bytes(image, filename)
        if not decoded.success:
            return IngestionResult(success=False, error=decoded.error, decode=decoded)

        result = self.ingest_qr(decoded.data, role)
        result.decode = decoded
        return result

    def ingest_qr(self, raw_qr: str, role: str) -> IngestionResult:
        """Record a payment for a receipt QR string scanned by ``role``."""
        payload = parse_receipt_qr(raw_qr)
        logger.info(
            f"Ingesting receipt QR: date={payload.date} total={payload.total} "
            f"fiscal={'yes' if payload.has_fiscal_fields else 'no'}"
        )

        total = to_minor_units(payload.total) if payload.has_total else 0
        if not payload.has_total:
            logger.warning("Receipt QR has no total, payment needs manual amounts")

        # The scanner is assumed to have paid everything until edited
        payment, created = self.store.insert_payment_for_qr(
            raw_qr=raw_qr,
            total=total,
            paid_egor=total if role == "egor" else 0,
            paid_syoma=total if role == "syoma" else 0,
            description=describe_receipt(payload),
            created_by=role,
            fns_payload=fiscal_query(payload) if payload.has_fiscal_fields else None,
        )
        if not created:
            logger.info(f"Receipt already recorded as payment {payment.id}")
            return IngestionResult(
                success=False,
                payment_id=payment.id,
                error=DUPLICATE_MESSAGE,
                duplicate=True,
            )
        logger.info(f"Created payment {payment.id}, {role} paid {total / 100:.2f}")

        items: list[ItemRecord] = []
        classified = 0
        if payload.has_fiscal_fields:
            lines = self._fetch_lines(payload)
            if lines:
                items = self._persist_lines(payment.id, lines)
            else:
                logger.warning(f"No receipt lines for payment {payment.id}; saved without items")
            if items:
                classified = self._auto_classify(items)
        else:
            logger.info("Not enough fiscal data for a lookup; saved without items")

        return IngestionResult(
            success=True,
            payment_id=payment.id,
            message=summary_message(total),
            items_count=len(items),
            classified_count=classified,
        )

    def classify_payment(
        self, payment_id: int, only_uncategorized: bool = False
    ) -> ClassificationOutcome:
        """Classify a payment's items on demand."""
        if only_uncategorized:
            items = self.store.list_uncategorized_items(payment_id)
        else:
            items = self.store.list_items_for_payment(payment_id)
        if not items:
            return ClassificationOutcome(attempted_count=0, updated_count=0)

        updated = self._apply_classification(items)
        return ClassificationOutcome(attempted_count=len(items), updated_count=updated)

    def _fetch_lines(self, payload: ReceiptPayload) -> list[ReceiptLine] | None:
        try:
            return self.lookup.fetch_items(payload)
        except Exception:
            logger.exception("Receipt lookup failed")
            return None

    def _persist_lines(self, payment_id: int, lines: list[ReceiptLine]) -> list[ItemRecord]:
        items = []
        for line in lines:
            item = self.store.insert_item(
                payment_id=payment_id,
                name=line.name,
                qty=line.quantity,
                price=line.sum,
            )
            if item is not None:
                items.append(item)
        logger.info(f"Added {len(items)} receipt lines to payment {payment_id}")
        return items

    def _auto_classify(self, items: list[ItemRecord]) -> int:
        try:
            return self._apply_classification(items)
        except Exception:
            logger.exception("Automatic classification failed, items left uncategorized")
            return 0

    def _apply_classification(self, items: list[ItemRecord]) -> int:
        categories = self.store.list_categories()
        if not categories:
            logger.warning("No categories to classify items into")
            return 0

        mapping = self.classifier.classify(
            [ClassifiableItem(id=i.id, name=i.name, qty=i.qty, price=i.price) for i in items],
            [CategoryHint(id=c.id, name=c.name, description=c.description) for c in categories],
        )
        updated = 0
        for item_id, category_id in mapping.items():
            if self.store.set_item_category(item_id, category_id) is not None:
                updated += 1
        logger.info(f"Assigned categories to {updated} of {len(items)} items")
        return updated
