# services/notifications.py
"""In-app notifications. Every query is scoped to the calling user."""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 100


def create_notification(
    db: Session,
    user_id: str,
    budget_id: str,
    notification_type: str,
    title: str,
    message: str,
    link_url: Optional[str] = None,
    related_id: Optional[str] = None,
) -> models.Notification:
    """Queue a notification in the current unit of work; the caller commits."""
    notification = models.Notification(
        user_id=user_id,
        budget_id=budget_id,
        notification_type=notification_type,
        title=title,
        message=message,
        link_url=link_url,
        related_id=related_id,
    )
    db.add(notification)
    return notification


def list_notifications(
    db: Session,
    user_id: str,
    limit: Optional[int] = None,
    unread_only: bool = False,
) -> List[models.Notification]:
    limit = min(limit or DEFAULT_LIMIT, MAX_LIMIT)
    query = db.query(models.Notification).filter(models.Notification.user_id == user_id)
    if unread_only:
        query = query.filter(models.Notification.is_read.is_(False))
    return query.order_by(models.Notification.created_at.desc()).limit(limit).all()


def unread_count(db: Session, user_id: str) -> int:
    return db.query(func.count(models.Notification.id)).filter(
        models.Notification.user_id == user_id,
        models.Notification.is_read.is_(False),
    ).scalar()


def mark_read(db: Session, user_id: str, notification_ids: List[str]) -> int:
    """Mark the given notifications read. Ids belonging to other users are ignored."""
    if not notification_ids:
        return 0
    updated = db.query(models.Notification).filter(
        models.Notification.user_id == user_id,
        models.Notification.id.in_(notification_ids),
        models.Notification.is_read.is_(False),
    ).update({"is_read": True, "read_at": models.utc_now()}, synchronize_session=False)
    db.commit()
    logger.debug(f"Marked {updated} notifications read for {user_id}")
    return updated


def mark_all_read(db: Session, user_id: str) -> int:
    updated = db.query(models.Notification).filter(
        models.Notification.user_id == user_id,
        models.Notification.is_read.is_(False),
    ).update({"is_read": True, "read_at": models.utc_now()}, synchronize_session=False)
    db.commit()
    logger.debug(f"Marked all ({updated}) notifications read for {user_id}")
    return updated
