# services/users.py
"""Local user directory, synced from identity-provider token claims."""

import logging
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from .. import models
from ..errors import BadRequest, NotFound
from ..schemas import user as schemas

logger = logging.getLogger(__name__)


def get_profile(db: Session, user_id: str) -> models.User:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise NotFound("Profile not found")
    return user


def sync_profile(db: Session, user_id: str, email: Optional[str], data: schemas.ProfileUpdate) -> models.User:
    """Create or refresh the caller's profile from the token email and the given name."""
    if not email:
        raise BadRequest("Token does not carry an email address")

    user = db.query(models.User).filter(models.User.id == user_id).first()
    if user is None:
        user = models.User(id=user_id, email=email.lower(), name=data.name)
        db.add(user)
        logger.info(f"Created profile for user {user_id}")
    else:
        user.email = email.lower()
        if data.name is not None:
            user.name = data.name

    db.commit()
    db.refresh(user)
    return user


def get_id_by_email(db: Session, email: str) -> Optional[str]:
    user = db.query(models.User.id).filter(models.User.email == email.lower()).first()
    return user.id if user else None


def get_profiles(db: Session, user_ids: Iterable[str]) -> Dict[str, models.User]:
    """Map user id -> profile for the given ids; users without a profile are omitted."""
    ids = set(user_ids)
    if not ids:
        return {}
    return {u.id: u for u in db.query(models.User).filter(models.User.id.in_(ids)).all()}
