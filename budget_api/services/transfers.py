# services/transfers.py
"""Money transfers between two budgets.

A transfer is one `BudgetTransfer` row plus two entries tagged with its id:
an expense in the source budget and an income of the same amount in the
destination. All three rows are written in a single commit.
"""

import logging
from typing import List

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..errors import BadRequest, DatabaseError
from ..models.role import Role
from ..schemas import budget as schemas
from . import authz
from .budgets import load_budget

logger = logging.getLogger(__name__)


def _check_category(db: Session, budget_id: str, category_id: str, side: str) -> None:
    exists = db.query(models.Category.id).filter(
        models.Category.id == category_id,
        models.Category.budget_id == budget_id,
    ).first()
    if not exists:
        raise BadRequest(f"The {side} category does not belong to the {side} budget")


def create_transfer(db: Session, user_id: str, data: schemas.TransferCreate) -> schemas.TransferResult:
    """Move `amount_minor` from one budget to another.

    The caller needs Contributor on both budgets, and both budgets must use
    the same currency. Every check runs before the first write; on a storage
    failure the whole unit of work is rolled back and nothing persists.
    """
    if data.from_budget_id == data.to_budget_id:
        raise BadRequest("Cannot transfer to the same budget")
    if data.amount_minor <= 0:
        raise BadRequest("Transfer amount must be positive")

    authz.ensure_role(db, data.from_budget_id, user_id, Role.CONTRIBUTOR)
    authz.ensure_role(db, data.to_budget_id, user_id, Role.CONTRIBUTOR)

    from_budget = load_budget(db, data.from_budget_id)
    to_budget = load_budget(db, data.to_budget_id)

    if from_budget.currency_code != to_budget.currency_code:
        raise BadRequest(f"Currency mismatch: {from_budget.currency_code} vs {to_budget.currency_code}")
    currency = from_budget.currency_code
    if data.currency_code is not None and data.currency_code != currency:
        raise BadRequest(f"Currency mismatch: {data.currency_code} vs {currency}")

    _check_category(db, from_budget.id, data.from_category_id, "source")
    _check_category(db, to_budget.id, data.to_category_id, "destination")

    from_budget_name = from_budget.name
    to_budget_name = to_budget.name

    transfer_id = models.new_id()
    from_entry_id = models.new_id()
    to_entry_id = models.new_id()

    transfer = models.BudgetTransfer(
        id=transfer_id,
        from_budget_id=from_budget.id,
        to_budget_id=to_budget.id,
        amount_minor=data.amount_minor,
        currency_code=currency,
        transfer_date=data.transfer_date,
        note=data.note,
        created_by=user_id,
    )
    outgoing = models.Entry(
        id=from_entry_id,
        budget_id=from_budget.id,
        category_id=data.from_category_id,
        kind="expense",
        amount_minor=data.amount_minor,
        currency_code=currency,
        entry_date=data.transfer_date,
        description=data.note if data.note is not None else f"Transfer to {to_budget_name}",
        created_by=user_id,
        transfer_id=transfer_id,
    )
    incoming = models.Entry(
        id=to_entry_id,
        budget_id=to_budget.id,
        category_id=data.to_category_id,
        kind="income",
        amount_minor=data.amount_minor,
        currency_code=currency,
        entry_date=data.transfer_date,
        description=f"Transfer from {from_budget_name}",
        created_by=user_id,
        transfer_id=transfer_id,
    )

    try:
        db.add(transfer)
        # Entries reference the transfer row
        db.flush()
        db.add_all([outgoing, incoming])
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Transfer {from_budget.id} -> {to_budget.id} by {user_id} rolled back")
        raise DatabaseError("Transfer failed; no changes were saved")

    db.refresh(transfer)
    logger.info(
        f"Transfer {transfer_id}: {data.amount_minor} {currency} "
        f"from {from_budget_name} to {to_budget_name} by {user_id}"
    )
    return schemas.TransferResult(
        transfer=schemas.Transfer.model_validate(transfer),
        from_entry_id=from_entry_id,
        to_entry_id=to_entry_id,
        from_budget_name=from_budget_name,
        to_budget_name=to_budget_name,
    )


def list_transfers(db: Session, budget_id: str, user_id: str) -> List[models.BudgetTransfer]:
    """Transfers in or out of the budget, newest first."""
    authz.ensure_role(db, budget_id, user_id, Role.VIEWER)
    return db.query(models.BudgetTransfer).filter(or_(
        models.BudgetTransfer.from_budget_id == budget_id,
        models.BudgetTransfer.to_budget_id == budget_id,
    )).order_by(
        models.BudgetTransfer.transfer_date.desc(),
        models.BudgetTransfer.created_at.desc(),
    ).all()
