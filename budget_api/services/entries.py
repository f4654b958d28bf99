# services/entries.py
"""Income/expense entries: filtered listing, create, update and soft delete."""

import logging
from typing import List

from sqlalchemy import or_
from sqlalchemy.orm import Session

from .. import models
from ..errors import BadRequest, NotFound
from ..models.role import Role
from ..schemas import budget as schemas
from . import authz
from .budgets import load_budget

logger = logging.getLogger(__name__)

MAX_PER_PAGE = 100

SORT_COLUMNS = {
    "date": models.Entry.entry_date,
    "amount": models.Entry.amount_minor,
    "description": models.Entry.description,
}


def _to_schema(entry: models.Entry, user: models.User = None) -> schemas.Entry:
    result = schemas.Entry.model_validate(entry)
    if user is not None:
        result.member_name = user.name
        result.member_email = user.email
    return result


def load_active_entry(db: Session, budget_id: str, entry_id: str) -> models.Entry:
    """Fetch a non-deleted entry of the budget or raise NotFound."""
    entry = db.query(models.Entry).filter(
        models.Entry.id == entry_id,
        models.Entry.budget_id == budget_id,
        models.Entry.deleted_at.is_(None),
    ).first()
    if not entry:
        raise NotFound("Entry not found")
    return entry


def _check_category(db: Session, budget_id: str, category_id: str, kind: str) -> None:
    category = db.query(models.Category).filter(
        models.Category.id == category_id,
        models.Category.budget_id == budget_id,
    ).first()
    if not category:
        raise BadRequest("Category not found in this budget")
    if category.kind != kind:
        raise BadRequest(f"Category kind '{category.kind}' does not match entry kind '{kind}'")


def list_entries(
    db: Session,
    budget_id: str,
    user_id: str,
    filters: schemas.EntryFilter,
) -> List[schemas.Entry]:
    authz.ensure_role(db, budget_id, user_id, Role.VIEWER)
    logger.debug(f"Fetching entries for budget {budget_id} ({filters})")

    query = db.query(models.Entry, models.User).outerjoin(
        models.User, models.User.id == models.Entry.created_by
    ).filter(
        models.Entry.budget_id == budget_id,
        models.Entry.deleted_at.is_(None),
    )

    if filters.date_from:
        query = query.filter(models.Entry.entry_date >= filters.date_from)
    if filters.date_to:
        query = query.filter(models.Entry.entry_date <= filters.date_to)
    if filters.kind:
        query = query.filter(models.Entry.kind == filters.kind)
    if filters.category_id:
        query = query.filter(models.Entry.category_id == filters.category_id)
    if filters.member_id:
        query = query.filter(models.Entry.created_by == filters.member_id)
    if filters.search:
        pattern = f"%{filters.search}%"
        query = query.filter(or_(
            models.Entry.description.ilike(pattern),
            models.Entry.counterparty.ilike(pattern),
        ))

    column = SORT_COLUMNS[filters.sort_by]
    if filters.sort_order == "asc":
        query = query.order_by(column.asc(), models.Entry.created_at.asc())
    else:
        query = query.order_by(column.desc(), models.Entry.created_at.desc())

    per_page = min(filters.per_page, MAX_PER_PAGE)
    rows = query.offset((filters.page - 1) * per_page).limit(per_page).all()
    return [_to_schema(entry, user) for entry, user in rows]


def create_entry(db: Session, budget_id: str, user_id: str, data: schemas.EntryCreate) -> schemas.Entry:
    """Record an entry. Currency defaults to the budget's."""
    authz.ensure_role(db, budget_id, user_id, Role.CONTRIBUTOR)
    budget = load_budget(db, budget_id)
    _check_category(db, budget_id, data.category_id, data.kind)

    entry = models.Entry(
        budget_id=budget_id,
        category_id=data.category_id,
        kind=data.kind,
        amount_minor=data.amount_minor,
        currency_code=data.currency_code or budget.currency_code,
        entry_date=data.entry_date,
        description=data.description,
        counterparty=data.counterparty,
        created_by=user_id,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info(f"Entry {entry.id} ({entry.kind} {entry.amount_minor}) created in budget {budget_id}")
    return _to_schema(entry, db.query(models.User).filter(models.User.id == user_id).first())


def update_entry(
    db: Session,
    budget_id: str,
    user_id: str,
    entry_id: str,
    data: schemas.EntryUpdate,
) -> schemas.Entry:
    authz.ensure_role(db, budget_id, user_id, Role.CONTRIBUTOR)
    entry = load_active_entry(db, budget_id, entry_id)

    if entry.transfer_id and (
        (data.amount_minor is not None and data.amount_minor != entry.amount_minor)
        or (data.kind is not None and data.kind != entry.kind)
    ):
        raise BadRequest("Transfer entries cannot change amount or kind; delete the transfer and create a new one")

    kind = data.kind if data.kind is not None else entry.kind
    category_id = data.category_id if data.category_id is not None else entry.category_id
    if data.kind is not None or data.category_id is not None:
        if category_id is None:
            raise BadRequest("Entry has no category")
        _check_category(db, budget_id, category_id, kind)

    entry.kind = kind
    entry.category_id = category_id
    if data.amount_minor is not None:
        entry.amount_minor = data.amount_minor
    if data.entry_date is not None:
        entry.entry_date = data.entry_date
    if data.description is not None:
        entry.description = data.description
    if data.counterparty is not None:
        entry.counterparty = data.counterparty
    entry.updated_by = user_id
    entry.updated_at = models.utc_now()

    db.commit()
    db.refresh(entry)
    logger.info(f"Entry {entry_id} updated by {user_id}")
    return _to_schema(entry, db.query(models.User).filter(models.User.id == entry.created_by).first())


def delete_entry(db: Session, budget_id: str, user_id: str, entry_id: str) -> None:
    """Soft delete: the row stays until the cleanup job removes it.

    An entry created by a transfer is deleted together with its counterpart
    in the other budget, which also needs Contributor there.
    """
    authz.ensure_role(db, budget_id, user_id, Role.CONTRIBUTOR)
    entry = load_active_entry(db, budget_id, entry_id)

    doomed = [entry]
    if entry.transfer_id:
        paired = db.query(models.Entry).filter(
            models.Entry.transfer_id == entry.transfer_id,
            models.Entry.id != entry.id,
            models.Entry.deleted_at.is_(None),
        ).all()
        for other in paired:
            authz.ensure_role(db, other.budget_id, user_id, Role.CONTRIBUTOR)
        doomed.extend(paired)

    now = models.utc_now()
    for row in doomed:
        row.deleted_at = now
        row.updated_at = now
        row.updated_by = user_id

    db.commit()
    logger.info(f"Entry {entry_id} soft-deleted by {user_id}")
