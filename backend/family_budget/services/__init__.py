from .receipt_payload import ReceiptPayload, parse_receipt_qr, fiscal_query, to_minor_units
from .qr_decoder import QrDecoder, DecodeResult, DecodeStage, DEFAULT_STAGES
from .fiscal_lookup import FiscalLookupClient, ReceiptLine
from .classifier import ItemClassifier, ClassifiableItem, CategoryHint, resolve_classification
from .ingestion import IngestionWorkflow, IngestionResult, ClassificationOutcome
from .payments import PaymentValidationError, create_manual_payment, add_item

__all__ = [
    "ReceiptPayload",
    "parse_receipt_qr",
    "fiscal_query",
    "to_minor_units",
    "QrDecoder",
    "DecodeResult",
    "DecodeStage",
    "DEFAULT_STAGES",
    "FiscalLookupClient",
    "ReceiptLine",
    "ItemClassifier",
    "ClassifiableItem",
    "CategoryHint",
    "resolve_classification",
    "IngestionWorkflow",
    "IngestionResult",
    "ClassificationOutcome",
    "PaymentValidationError",
    "create_manual_payment",
    "add_item",
]
