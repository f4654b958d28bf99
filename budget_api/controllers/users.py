# controllers/users.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_user, get_user_email
from ..dependencies import get_db
from ..schemas import user as schemas
from ..services import users as service

router = APIRouter()


@router.get("/me", response_model=schemas.User, summary="Get my profile")
def get_my_profile(
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return service.get_profile(db, current_user)


@router.put("/me", response_model=schemas.User, summary="Create or update my profile")
def sync_my_profile(
    data: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user),
    email: str = Depends(get_user_email)
):
    """Store the email from the token (and an optional display name) so others can invite me."""
    return service.sync_profile(db, current_user, email, data)
