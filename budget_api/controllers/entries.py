# controllers/entries.py
from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..dependencies import get_db
from ..schemas import budget as schemas
from ..services import entries as service

router = APIRouter()


def entry_filters(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    kind: Optional[schemas.EntryKind] = None,
    category_id: Optional[str] = None,
    member_id: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Literal["date", "amount", "description"] = "date",
    sort_order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    per_page: int = Query(30, ge=1),
) -> schemas.EntryFilter:
    return schemas.EntryFilter(
        date_from=date_from,
        date_to=date_to,
        kind=kind,
        category_id=category_id,
        member_id=member_id,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        per_page=per_page,
    )


@router.get("/{budget_id}/entries", response_model=List[schemas.Entry], summary="List entries")
def list_entries(
    budget_id: str,
    filters: schemas.EntryFilter = Depends(entry_filters),
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """Filter by date range, kind, category, member or text; sort and paginate."""
    return service.list_entries(db, budget_id, current_user, filters)


@router.post("/{budget_id}/entries", response_model=schemas.Entry, summary="Create an entry")
def create_entry(
    budget_id: str,
    entry: schemas.EntryCreate,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return service.create_entry(db, budget_id, current_user, entry)


@router.put("/{budget_id}/entries/{entry_id}", response_model=schemas.Entry, summary="Update an entry")
def update_entry(
    budget_id: str,
    entry_id: str,
    data: schemas.EntryUpdate,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return service.update_entry(db, budget_id, current_user, entry_id, data)


@router.delete("/{budget_id}/entries/{entry_id}", response_model=schemas.Message, summary="Delete an entry")
def delete_entry(
    budget_id: str,
    entry_id: str,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """Soft delete; the entry is purged by the daily cleanup."""
    service.delete_entry(db, budget_id, current_user, entry_id)
    return {"message": "Entry deleted successfully"}
