from pydantic import BaseModel, Field


class QrRequest(BaseModel):
    """Raw text of a receipt QR code."""
    qr: str = Field(min_length=1)


class ClassifyRequest(BaseModel):
    payment_id: int = Field(alias="paymentId")

    class Config:
        populate_by_name = True


class IngestionResponse(BaseModel):
    success: bool
    id: int | None = None
    message: str | None = None
    error: str | None = None
    items_count: int = Field(default=0, serialization_alias="itemsCount")
    classified_count: int = Field(default=0, serialization_alias="classifiedCount")


class ScanResponse(BaseModel):
    success: bool
    data: str | None = None
    method: int | None = None
    method_name: str | None = Field(default=None, serialization_alias="methodName")
    error: str | None = None


class ClassifyResponse(BaseModel):
    success: bool
    updated_count: int = Field(default=0, serialization_alias="updatedCount")
    message: str
