# services/categories.py
"""Category CRUD with the active-entry guard on delete and kind change."""

import logging
import re
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models
from ..errors import BadRequest, NotFound
from ..models.role import Role
from ..schemas import budget as schemas
from . import authz

logger = logging.getLogger(__name__)

# e.g. #FF5733 or #f57
_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def _check_color(color: Optional[str]) -> None:
    if color is not None and not _HEX_COLOR.match(color):
        raise BadRequest("Invalid color format. Use hex format like #FF5733")


def load_category(db: Session, budget_id: str, category_id: str) -> models.Category:
    category = db.query(models.Category).filter(
        models.Category.id == category_id,
        models.Category.budget_id == budget_id,
    ).first()
    if not category:
        raise NotFound("Category not found")
    return category


def count_active_entries(db: Session, category_id: str) -> int:
    return db.query(func.count(models.Entry.id)).filter(
        models.Entry.category_id == category_id,
        models.Entry.deleted_at.is_(None),
    ).scalar()


def list_categories(db: Session, budget_id: str, user_id: str, kind: Optional[str] = None) -> List[models.Category]:
    authz.ensure_role(db, budget_id, user_id, Role.VIEWER)
    logger.debug(f"Fetching categories for budget {budget_id} (kind={kind})")

    query = db.query(models.Category).filter(models.Category.budget_id == budget_id)
    if kind:
        query = query.filter(models.Category.kind == kind)
    return query.order_by(models.Category.name.asc()).all()


def get_category(db: Session, budget_id: str, user_id: str, category_id: str) -> models.Category:
    authz.ensure_role(db, budget_id, user_id, Role.VIEWER)
    return load_category(db, budget_id, category_id)


def create_category(db: Session, budget_id: str, user_id: str, data: schemas.CategoryCreate) -> models.Category:
    authz.ensure_role(db, budget_id, user_id, Role.CONTRIBUTOR)
    _check_color(data.color)

    category = models.Category(budget_id=budget_id, **data.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info(f"Creating category: {category.name} in budget {budget_id}")
    return category


def update_category(
    db: Session,
    budget_id: str,
    user_id: str,
    category_id: str,
    data: schemas.CategoryUpdate,
) -> models.Category:
    """Update a category. Changing its kind is refused while active entries use it."""
    authz.ensure_role(db, budget_id, user_id, Role.CONTRIBUTOR)
    _check_color(data.color)
    category = load_category(db, budget_id, category_id)

    if data.kind is not None and data.kind != category.kind:
        entry_count = count_active_entries(db, category_id)
        if entry_count > 0:
            raise BadRequest(
                f"Cannot change category type. It has {entry_count} active entries. "
                "Please delete or move the entries first."
            )
        category.kind = data.kind

    if data.name is not None:
        category.name = data.name
    if data.is_hidden is not None:
        category.is_hidden = data.is_hidden
    if data.color is not None:
        category.color = data.color
    if data.icon is not None:
        category.icon = data.icon

    db.commit()
    db.refresh(category)
    logger.info(f"Updating category {category_id}")
    return category


def delete_category(db: Session, budget_id: str, user_id: str, category_id: str) -> None:
    """Delete a category that no active entry references."""
    authz.ensure_role(db, budget_id, user_id, Role.CONTRIBUTOR)
    load_category(db, budget_id, category_id)

    entry_count = count_active_entries(db, category_id)
    if entry_count > 0:
        raise BadRequest(f"Cannot delete category. It is used by {entry_count} active entries.")

    db.query(models.Category).filter(
        models.Category.id == category_id,
        models.Category.budget_id == budget_id,
    ).delete(synchronize_session=False)
    db.commit()
    logger.info(f"Deleting category: {category_id}")
