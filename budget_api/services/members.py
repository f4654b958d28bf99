# services/members.py
"""Budget member management (list, invite by email, change role, remove)."""

import logging
from typing import List

from sqlalchemy.orm import Session

from .. import models
from ..errors import BadRequest, NotFound
from ..models.role import Role
from ..schemas import budget as schemas
from . import authz, membership, users

logger = logging.getLogger(__name__)


def _parse_role(value: str) -> Role:
    role = Role.parse(value)
    if role is None:
        raise BadRequest(f"invalid role: {value!r}")
    return role


def _ensure_other_owner_remains(db: Session, budget_id: str, member_user_id: str) -> None:
    owners = membership.owner_user_ids(db, budget_id)
    if owners == [member_user_id]:
        raise BadRequest("A budget must keep at least one owner")


def _with_user(member: models.BudgetMember, profile) -> schemas.BudgetMemberWithUser:
    return schemas.BudgetMemberWithUser(
        budget_id=member.budget_id,
        user_id=member.user_id,
        role=member.role,
        created_at=member.created_at,
        user_name=profile.name if profile else None,
        user_email=profile.email if profile else None,
    )


def list_members(db: Session, budget_id: str, user_id: str) -> List[schemas.BudgetMemberWithUser]:
    """Any member (viewer or above) can see the member list."""
    authz.ensure_role(db, budget_id, user_id, Role.VIEWER)
    members = membership.list_members(db, budget_id)
    profiles = users.get_profiles(db, (m.user_id for m in members))
    return [_with_user(m, profiles.get(m.user_id)) for m in members]


def invite_member(db: Session, budget_id: str, user_id: str, data: schemas.MemberInvite) -> models.BudgetMember:
    """Add a registered user by email, or replace the role of an existing member."""
    authz.ensure_owner(db, budget_id, user_id)
    role = _parse_role(data.role)

    member_user_id = users.get_id_by_email(db, data.email)
    if member_user_id is None:
        raise BadRequest("User not found with this email")

    current = membership.get_role(db, budget_id, member_user_id)
    if current is Role.OWNER and role is not Role.OWNER:
        _ensure_other_owner_remains(db, budget_id, member_user_id)

    member = membership.upsert(db, budget_id, member_user_id, role)
    db.commit()
    logger.info(f"User {member_user_id} added to budget {budget_id} as {role.value}")
    return member


def change_role(db: Session, budget_id: str, user_id: str, member_user_id: str, role_value: str) -> models.BudgetMember:
    authz.ensure_owner(db, budget_id, user_id)
    role = _parse_role(role_value)

    current = membership.get_role(db, budget_id, member_user_id)
    if current is None:
        raise NotFound("Member not found")
    if current is Role.OWNER and role is not Role.OWNER:
        _ensure_other_owner_remains(db, budget_id, member_user_id)

    member = membership.upsert(db, budget_id, member_user_id, role)
    db.commit()
    logger.info(f"User {member_user_id} in budget {budget_id} changed from {current.value} to {role.value}")
    return member


def remove_member(db: Session, budget_id: str, user_id: str, member_user_id: str) -> None:
    authz.ensure_owner(db, budget_id, user_id)

    if membership.get_role(db, budget_id, member_user_id) is Role.OWNER:
        _ensure_other_owner_remains(db, budget_id, member_user_id)

    membership.delete(db, budget_id, member_user_id)
    db.commit()
    logger.info(f"User {member_user_id} removed from budget {budget_id}")
