from fastapi import APIRouter, Depends

from ..logging import get_logger
from ..schemas import CategorySave, CategorySaveResponse, CategoryResponse, SuccessResponse
from ..store import RecordStore
from .deps import get_store, require_role

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_role)])


@router.get("", response_model=list[CategoryResponse])
def list_categories(store: RecordStore = Depends(get_store)):
    """Get all categories ordered by name."""
    return store.list_categories()


@router.post("", response_model=CategorySaveResponse)
def save_category(category: CategorySave, store: RecordStore = Depends(get_store)):
    """Create a category, or update the one with the given id."""
    if category.id:
        # Unknown ids are ignored
        store.update_category(
            category.id,
            name=category.name,
            description=category.description,
            color=category.color,
            monthly_limit=category.monthly_limit,
        )
        return CategorySaveResponse(id=category.id)

    created = store.insert_category(
        name=category.name,
        description=category.description,
        color=category.color,
        monthly_limit=category.monthly_limit,
    )
    logger.info(f"Created category {created.id} '{created.name}'")
    return CategorySaveResponse(id=created.id)


@router.delete("/{category_id}", response_model=SuccessResponse)
def delete_category(category_id: int, store: RecordStore = Depends(get_store)):
    """Delete a category. Items that used it become uncategorized."""
    store.delete_category(category_id)
    return SuccessResponse()
