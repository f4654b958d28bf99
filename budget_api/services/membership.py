# services/membership.py
"""Membership store: the (budget, user) -> role mapping behind every access check.

Functions here only read and write rows; they never commit. The calling
service owns the unit of work.
"""

import logging
from typing import List, Optional

from sqlalchemy import case, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from .. import models
from ..errors import NotFound
from ..models.role import Role

logger = logging.getLogger(__name__)

# Display order: owner first, viewer last, anything unexpected at the end
ROLE_ORDER = case(
    {role.value: 3 - role.rank for role in Role},
    value=models.BudgetMember.role,
    else_=4,
)


def get_role(db: Session, budget_id: str, user_id: str) -> Optional[Role]:
    """Return the user's role in the budget, or None when not a member.

    A stored value that is not one of the four role tokens counts as absent.
    """
    stored = db.execute(
        select(models.BudgetMember.role).where(
            models.BudgetMember.budget_id == budget_id,
            models.BudgetMember.user_id == user_id,
        )
    ).scalar_one_or_none()
    if stored is None:
        return None
    role = Role.parse(stored)
    if role is None:
        logger.warning(f"Ignoring unknown role {stored!r} for user {user_id} in budget {budget_id}")
    return role


def get_member(db: Session, budget_id: str, user_id: str) -> Optional[models.BudgetMember]:
    return db.query(models.BudgetMember).filter(
        models.BudgetMember.budget_id == budget_id,
        models.BudgetMember.user_id == user_id,
    ).first()


def upsert(db: Session, budget_id: str, user_id: str, role: Role) -> models.BudgetMember:
    """Insert the membership or replace its role in a single statement."""
    insert = sqlite.insert if db.get_bind().dialect.name == "sqlite" else postgresql.insert
    stmt = insert(models.BudgetMember).values(
        budget_id=budget_id,
        user_id=user_id,
        role=role.value,
        created_at=models.utc_now(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["budget_id", "user_id"],
        set_={"role": stmt.excluded.role},
    )
    db.execute(stmt)

    member = get_member(db, budget_id, user_id)
    # The ORM identity map may hold the pre-upsert row
    db.refresh(member)
    return member


def list_members(db: Session, budget_id: str) -> List[models.BudgetMember]:
    """Memberships ordered Owner -> Manager -> Contributor -> Viewer, then by user id."""
    return db.query(models.BudgetMember).filter(
        models.BudgetMember.budget_id == budget_id
    ).order_by(ROLE_ORDER, models.BudgetMember.user_id).all()


def delete(db: Session, budget_id: str, user_id: str) -> None:
    """Remove the membership; raises NotFound when the pair does not exist."""
    deleted = db.query(models.BudgetMember).filter(
        models.BudgetMember.budget_id == budget_id,
        models.BudgetMember.user_id == user_id,
    ).delete(synchronize_session=False)
    if deleted == 0:
        raise NotFound("Member not found")


def owner_user_ids(db: Session, budget_id: str) -> List[str]:
    """User ids holding the Owner role, with the rows locked where supported."""
    return list(db.execute(
        select(models.BudgetMember.user_id).where(
            models.BudgetMember.budget_id == budget_id,
            models.BudgetMember.role == Role.OWNER.value,
        ).with_for_update()
    ).scalars())
