from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from ..logging import get_logger
from ..schemas import ClassifyRequest, IngestionResponse, QrRequest, ScanResponse
from ..services import IngestionResult, IngestionWorkflow, QrDecoder
from .deps import MAX_UPLOAD_BYTES, get_decoder, get_workflow, require_role

logger = get_logger(__name__)

router = APIRouter()


def read_image(image: UploadFile | None) -> bytes:
    """Validate an uploaded receipt photo and return its bytes."""
    if image is None:
        raise HTTPException(status_code=400, detail="Файл изображения не загружен")
    if not (image.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Только изображения разрешены!")

    data = image.file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail="Файл слишком большой (максимум 10 МБ)")
    if not data:
        raise HTTPException(status_code=400, detail="Файл изображения пуст")
    return data


def ingestion_response(result: IngestionResult) -> IngestionResponse:
    return IngestionResponse(
        success=result.success,
        id=result.payment_id if result.success else None,
        message=result.message,
        error=result.error,
        items_count=result.items_count,
        classified_count=result.classified_count,
    )


@router.post("/qr", response_model=IngestionResponse, response_model_exclude_none=True)
def ingest_qr(
    body: QrRequest,
    role: str = Depends(require_role),
    workflow: IngestionWorkflow = Depends(get_workflow),
):
    """Record a payment from the text of a receipt QR code."""
    return ingestion_response(workflow.ingest_qr(body.qr, role))


@router.post("/qr/scan", response_model=IngestionResponse, response_model_exclude_none=True)
def ingest_qr_image(
    image: UploadFile | None = File(None),
    role: str = Depends(require_role),
    workflow: IngestionWorkflow = Depends(get_workflow),
):
    """Decode a receipt photo and record the payment in one step."""
    data = read_image(image)
    result = workflow.ingest_image(data, role, filename=image.filename or "")
    response = ingestion_response(result)
    if result.decode is not None and not result.decode.success:
        return JSONResponse(
            status_code=400,
            content=response.model_dump(by_alias=True, exclude_none=True),
        )
    return response


@router.post("/scan-qr", response_model=ScanResponse, response_model_exclude_none=True)
def scan_qr(
    image: UploadFile | None = File(None),
    role: str = Depends(require_role),
    decoder: QrDecoder = Depends(get_decoder),
):
    """Decode the QR code on a receipt photo without recording anything."""
    data = read_image(image)
    result = decoder.decode_bytes(data, image.filename or "")
    response = ScanResponse(
        success=result.success,
        data=result.data,
        method=result.method,
        method_name=result.method_name,
        error=result.error,
    )
    if not result.success:
        return JSONResponse(
            status_code=400,
            content=response.model_dump(by_alias=True, exclude_none=True),
        )
    return response


@router.post("/ai/classify")
def classify_uncategorized(
    body: ClassifyRequest,
    role: str = Depends(require_role),
    workflow: IngestionWorkflow = Depends(get_workflow),
):
    """Classify the items of a payment that have no category yet."""
    outcome = workflow.classify_payment(body.payment_id, only_uncategorized=True)
    if outcome.attempted_count == 0:
        return {"success": True, "classified": 0, "message": "Нет товаров для классификации"}
    return {
        "success": True,
        "classified": outcome.updated_count,
        "message": f"Классифицировано {outcome.updated_count} товаров",
    }
