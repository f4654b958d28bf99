# services/budgets.py
"""Budget lifecycle, balance and monthly summary."""

import logging
from collections import OrderedDict
from datetime import date
from typing import List, Optional

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from .. import models
from ..errors import BadRequest, NotFound
from ..models.role import Role
from ..schemas import budget as schemas
from . import authz

logger = logging.getLogger(__name__)


def load_budget(db: Session, budget_id: str) -> models.Budget:
    """Fetch a budget row without any access check."""
    budget = db.query(models.Budget).filter(models.Budget.id == budget_id).first()
    if not budget:
        raise NotFound("Budget not found")
    return budget


def create_budget(db: Session, user_id: str, data: schemas.BudgetCreate) -> models.Budget:
    """Create a new budget and add the creator as its Owner."""
    # 1. Create Budget
    budget = models.Budget(
        name=data.name,
        owner_id=user_id,
        currency_code=data.currency_code or "USD",
        budget_type=data.budget_type or "standard",
        description=data.description,
    )
    db.add(budget)
    db.flush()  # Generate ID

    # 2. Add Creator as Owner
    db.add(models.BudgetMember(
        budget_id=budget.id,
        user_id=user_id,
        role=Role.OWNER.value,
    ))

    db.commit()
    db.refresh(budget)
    logger.info(f"Budget {budget.id} ({budget.name}) created by {user_id}")
    return budget


def list_budgets(
    db: Session,
    user_id: str,
    query: Optional[str] = None,
    include_archived: bool = False,
) -> List[schemas.BudgetWithRole]:
    """List all budgets where the user is a member, newest first, with the user's role."""
    q = db.query(models.Budget, models.BudgetMember.role).join(
        models.BudgetMember, models.BudgetMember.budget_id == models.Budget.id
    ).filter(models.BudgetMember.user_id == user_id)

    if not include_archived:
        q = q.filter(models.Budget.archived.is_(False))
    if query:
        pattern = f"%{query.lower()}%"
        q = q.filter(or_(
            func.lower(models.Budget.name).like(pattern),
            func.lower(models.Budget.description).like(pattern),
        ))

    rows = q.order_by(models.Budget.created_at.desc()).all()
    result = []
    for budget, role in rows:
        parsed = Role.parse(role)
        if parsed is None:
            continue
        base = schemas.Budget.model_validate(budget).model_dump()
        result.append(schemas.BudgetWithRole(**base, user_role=parsed))
    return result


def get_budget(db: Session, budget_id: str, user_id: str) -> models.Budget:
    authz.ensure_role(db, budget_id, user_id, Role.VIEWER)
    return load_budget(db, budget_id)


def update_budget(db: Session, budget_id: str, user_id: str, data: schemas.BudgetUpdate) -> models.Budget:
    """Partial update; owner only."""
    authz.ensure_owner(db, budget_id, user_id)
    budget = load_budget(db, budget_id)

    if data.name is not None:
        budget.name = data.name
    if data.description is not None:
        budget.description = data.description
    if data.currency_code is not None:
        budget.currency_code = data.currency_code
    if data.budget_type is not None:
        budget.budget_type = data.budget_type
    if data.archived is not None:
        budget.archived = data.archived
    budget.updated_at = models.utc_now()

    db.commit()
    db.refresh(budget)
    logger.info(f"Budget {budget_id} updated by {user_id}")
    return budget


def delete_budget(db: Session, budget_id: str, user_id: str) -> str:
    """Delete a budget and everything it owns. Returns the deleted budget's name.

    Members, categories, entries, comments, attachments, notifications and
    transfers go with it through ON DELETE CASCADE. Entries on the other side
    of a transfer stay, with their transfer link cleared.
    """
    authz.ensure_owner(db, budget_id, user_id)
    budget = load_budget(db, budget_id)
    name = budget.name

    db.query(models.Budget).filter(models.Budget.id == budget_id).delete(synchronize_session=False)
    db.commit()
    logger.info(f"Budget {budget_id} ({name}) deleted by {user_id}")
    return name


def _totals_query(db: Session):
    income = func.coalesce(func.sum(case(
        (models.Entry.kind == "income", models.Entry.amount_minor), else_=0
    )), 0)
    expense = func.coalesce(func.sum(case(
        (models.Entry.kind == "expense", models.Entry.amount_minor), else_=0
    )), 0)
    return db.query(income, expense)


def get_balance(db: Session, budget_id: str, user_id: str) -> schemas.BudgetBalance:
    authz.ensure_role(db, budget_id, user_id, Role.VIEWER)
    income, expense = _totals_query(db).filter(
        models.Entry.budget_id == budget_id,
        models.Entry.deleted_at.is_(None),
    ).one()
    return schemas.BudgetBalance(
        budget_id=budget_id,
        income_minor=int(income),
        expense_minor=int(expense),
        balance_minor=int(income) - int(expense),
    )


def monthly_summary(
    db: Session,
    budget_id: str,
    user_id: str,
    date_from: date,
    date_to: date,
) -> List[schemas.MonthlySummaryRow]:
    """Income, expense and net per calendar month between two dates (inclusive)."""
    authz.ensure_role(db, budget_id, user_id, Role.VIEWER)
    if date_from > date_to:
        raise BadRequest("'from' must not be after 'to'")

    rows = db.query(models.Entry.entry_date, models.Entry.kind, models.Entry.amount_minor).filter(
        models.Entry.budget_id == budget_id,
        models.Entry.deleted_at.is_(None),
        models.Entry.entry_date >= date_from,
        models.Entry.entry_date <= date_to,
    ).order_by(models.Entry.entry_date).all()

    months = OrderedDict()
    for entry_date, kind, amount in rows:
        month_start = entry_date.replace(day=1)
        totals = months.setdefault(month_start, {"income": 0, "expense": 0})
        totals[kind] += amount

    return [
        schemas.MonthlySummaryRow(
            month_start=month_start,
            income_minor=totals["income"],
            expense_minor=totals["expense"],
            net_minor=totals["income"] - totals["expense"],
        )
        for month_start, totals in months.items()
    ]
