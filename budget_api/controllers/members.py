# controllers/members.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..dependencies import get_db
from ..schemas import budget as schemas
from ..services import members as service

router = APIRouter()


@router.get("/{budget_id}/members", response_model=List[schemas.BudgetMemberWithUser], summary="List budget members")
def list_members(
    budget_id: str,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return service.list_members(db, budget_id, current_user)


@router.post("/{budget_id}/members", response_model=schemas.BudgetMember, summary="Invite a member by email")
def invite_member(
    budget_id: str,
    invite: schemas.MemberInvite,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """Add a registered user to the budget, or change the role they already hold (owner only)."""
    return service.invite_member(db, budget_id, current_user, invite)


@router.put("/{budget_id}/members/{user_id}", response_model=schemas.BudgetMember, summary="Change a member's role")
def change_member_role(
    budget_id: str,
    user_id: str,
    data: schemas.MemberRoleUpdate,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return service.change_role(db, budget_id, current_user, user_id, data.role)


@router.delete("/{budget_id}/members/{user_id}", response_model=schemas.Message, summary="Remove member")
def remove_member(
    budget_id: str,
    user_id: str,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """Remove a member from the budget (owner only)."""
    service.remove_member(db, budget_id, current_user, user_id)
    return {"message": "Member removed successfully"}
