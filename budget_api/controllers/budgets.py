# controllers/budgets.py
"""Budget CRUD, balance and monthly summary endpoints."""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..dependencies import get_db
from ..schemas import budget as schemas
from ..services import budgets as service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=schemas.Budget, summary="Create a new budget")
def create_budget(
    budget_data: schemas.BudgetCreate,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """Create a new budget and add the creator as Owner."""
    return service.create_budget(db, current_user, budget_data)


@router.get("", response_model=List[schemas.BudgetWithRole], summary="List my budgets")
def list_my_budgets(
    q: Optional[str] = Query(None, description="Search in name and description"),
    include_archived: bool = False,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """List all budgets where the user is a member."""
    return service.list_budgets(db, current_user, query=q, include_archived=include_archived)


@router.get("/{budget_id}", response_model=schemas.Budget, summary="Get a budget")
def get_budget(
    budget_id: str,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return service.get_budget(db, budget_id, current_user)


@router.put("/{budget_id}", response_model=schemas.Budget, summary="Update budget")
def update_budget(
    budget_id: str,
    update_data: schemas.BudgetUpdate,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """Update a budget. Only owners can update."""
    return service.update_budget(db, budget_id, current_user, update_data)


@router.delete("/{budget_id}", response_model=schemas.Message, summary="Delete budget")
def delete_budget(
    budget_id: str,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """Delete a budget. Only owners can delete. Cascades to all related data."""
    name = service.delete_budget(db, budget_id, current_user)
    return {"message": f"Budget '{name}' deleted successfully"}


@router.get("/{budget_id}/balance", response_model=schemas.BudgetBalance, summary="Get budget balance")
def get_balance(
    budget_id: str,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return service.get_balance(db, budget_id, current_user)


@router.get(
    "/{budget_id}/summary/monthly",
    response_model=List[schemas.MonthlySummaryRow],
    summary="Get monthly income/expense summary",
)
def get_monthly_summary(
    budget_id: str,
    date_from: date = Query(..., alias="from"),
    date_to: date = Query(..., alias="to"),
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """Income, expense and net per calendar month between `from` and `to`."""
    logger.debug(f"Fetching monthly summary for budget {budget_id} ({date_from}..{date_to})")
    return service.monthly_summary(db, budget_id, current_user, date_from, date_to)
