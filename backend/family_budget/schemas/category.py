from pydantic import BaseModel, Field


class CategorySave(BaseModel):
    """Create a category, or update it when an id is given."""
    id: int | None = None
    name: str = Field(min_length=1)
    description: str | None = ""
    color: str = Field(pattern=r"^#[0-9a-fA-F]{6}$")
    monthly_limit: int = Field(alias="monthlyLimit", ge=0)

    class Config:
        populate_by_name = True


class CategorySaveResponse(BaseModel):
    success: bool = True
    id: int


class CategoryResponse(BaseModel):
    """Category as stored. monthly_limit is in kopecks."""
    id: int
    name: str
    description: str
    color: str
    monthly_limit: int
    created_at: str

    class Config:
        from_attributes = True
