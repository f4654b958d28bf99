# controllers/transfers.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..dependencies import get_db
from ..schemas import budget as schemas
from ..services import transfers as service

router = APIRouter()


@router.post("/transfers", response_model=schemas.TransferResult, summary="Transfer money between budgets")
def create_transfer(
    transfer: schemas.TransferCreate,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """Record an expense in the source budget and a matching income in the destination.

    Requires Contributor (or higher) on both budgets, which must share a currency.
    """
    return service.create_transfer(db, current_user, transfer)


@router.get("/budgets/{budget_id}/transfers", response_model=List[schemas.Transfer], summary="List transfers of a budget")
def list_transfers(
    budget_id: str,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return service.list_transfers(db, budget_id, current_user)
