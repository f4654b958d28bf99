# controllers/categories.py
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..dependencies import get_db
from ..schemas import budget as schemas
from ..services import categories as service

router = APIRouter()


@router.get("/{budget_id}/categories", response_model=List[schemas.Category], summary="List all categories")
def read_categories(
    budget_id: str,
    kind: Optional[schemas.EntryKind] = None,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return service.list_categories(db, budget_id, current_user, kind=kind)


@router.post("/{budget_id}/categories", response_model=schemas.Category, summary="Create a new category")
def create_category(
    budget_id: str,
    category: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return service.create_category(db, budget_id, current_user, category)


@router.get("/{budget_id}/categories/{category_id}", response_model=schemas.Category, summary="Get a category")
def read_category(
    budget_id: str,
    category_id: str,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return service.get_category(db, budget_id, current_user, category_id)


@router.put("/{budget_id}/categories/{category_id}", response_model=schemas.Category, summary="Update a category")
def update_category(
    budget_id: str,
    category_id: str,
    data: schemas.CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """Update name, kind, visibility, color or icon."""
    return service.update_category(db, budget_id, current_user, category_id, data)


@router.delete("/{budget_id}/categories/{category_id}", response_model=schemas.Message, summary="Delete a category")
def delete_category(
    budget_id: str,
    category_id: str,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """Delete a category that has no active entries."""
    service.delete_category(db, budget_id, current_user, category_id)
    return {"message": "Category deleted successfully"}
