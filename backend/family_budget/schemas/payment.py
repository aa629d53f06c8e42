from decimal import Decimal

from pydantic import BaseModel, Field


class ItemInput(BaseModel):
    """Item of a manually entered payment. Price in kopecks."""
    name: str = Field(min_length=1)
    qty: float = Field(default=1, gt=0)
    price: int = Field(gt=0)
    category_id: int | None = Field(default=None, alias="categoryId")

    class Config:
        populate_by_name = True


class PaymentCreate(BaseModel):
    """Manual payment; the two shares must add up to the total."""
    total: int = Field(gt=0)
    paid_egor: int = Field(default=0, alias="paidEgor", ge=0)
    paid_syoma: int = Field(default=0, alias="paidSyoma", ge=0)
    description: str | None = None
    items: list[ItemInput] | None = None

    class Config:
        populate_by_name = True


class PaymentUpdate(BaseModel):
    """Replacement amounts and description for a payment."""
    total: int = Field(ge=0)
    paid_egor: int = Field(alias="paidEgor", ge=0)
    paid_syoma: int = Field(alias="paidSyoma", ge=0)
    description: str | None = None

    class Config:
        populate_by_name = True


class ItemUpdate(BaseModel):
    """Fields for updating an item (all optional, omitted fields are kept)."""
    name: str | None = Field(default=None, min_length=1)
    qty: float | None = Field(default=None, gt=0)
    price: int | None = Field(default=None, gt=0)
    category_id: int | None = Field(default=None, alias="categoryId", gt=0)

    class Config:
        populate_by_name = True


class AddItemRequest(BaseModel):
    """Ad-hoc item; price in roubles."""
    name: str = Field(min_length=1)
    qty: float = Field(ge=1)
    price: Decimal = Field(gt=0)


class PaymentCreatedResponse(BaseModel):
    success: bool = True
    id: int


class ItemAddedResponse(BaseModel):
    success: bool = True
    id: int
    message: str


class ItemResponse(BaseModel):
    id: int
    name: str
    qty: int | float
    price: int
    category_id: int | None = Field(default=None, serialization_alias="categoryId")
    category_name: str | None = Field(default=None, serialization_alias="categoryName")
    category_color: str | None = Field(default=None, serialization_alias="categoryColor")

    class Config:
        from_attributes = True


class PaymentResponse(BaseModel):
    """Payment with its items; amounts in kopecks."""
    id: int
    ts: str
    total: int
    paid_egor: int
    paid_syoma: int
    description: str | None = None
    raw_qr: str | None = None
    fns_payload: str | None = None
    created_by: str
    items: list[ItemResponse] = []
