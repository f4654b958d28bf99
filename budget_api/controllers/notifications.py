# controllers/notifications.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..dependencies import get_db
from ..schemas import budget as budget_schemas
from ..schemas import notification as schemas
from ..services import notifications as service

router = APIRouter()


@router.get("", response_model=List[schemas.Notification], summary="List my notifications")
def list_notifications(
    limit: int = Query(service.DEFAULT_LIMIT, ge=1),
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """Newest first; at most 100 per request."""
    return service.list_notifications(db, current_user, limit=limit, unread_only=unread_only)


@router.get("/unread-count", response_model=schemas.UnreadCount, summary="Count unread notifications")
def unread_count(
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return {"count": service.unread_count(db, current_user)}


@router.post("/mark-read", response_model=budget_schemas.Message, summary="Mark notifications as read")
def mark_read(
    data: schemas.MarkRead,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    updated = service.mark_read(db, current_user, data.notification_ids)
    return {"message": f"{updated} notifications marked as read"}


@router.post("/mark-all-read", response_model=budget_schemas.Message, summary="Mark all notifications as read")
def mark_all_read(
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    updated = service.mark_all_read(db, current_user)
    return {"message": f"{updated} notifications marked as read"}
