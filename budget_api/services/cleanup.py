# services/cleanup.py
"""Scheduled purge of soft-deleted entries and old read notifications."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, aliased

from .. import models
from ..config import Settings
from ..errors import AppError
from ..storage import S3Storage

logger = logging.getLogger(__name__)


@dataclass
class CleanupStats:
    entries_deleted: int
    notifications_deleted: int
    files_deleted: int
    entry_cutoff: datetime
    notification_cutoff: datetime

    def __str__(self) -> str:
        return (
            f"Cleanup completed: {self.entries_deleted} entries, "
            f"{self.notifications_deleted} notifications, {self.files_deleted} files deleted "
            f"(entry cutoff: {self.entry_cutoff:%Y-%m-%d %H:%M:%S})"
        )


def cleanup_soft_deleted(db: Session, days: int) -> Tuple[int, List[str]]:
    """Hard-delete entries soft-deleted more than `days` ago.

    Comments, mentions and attachment rows go with them through ON DELETE
    CASCADE. A transfer entry waits until its paired entry has expired too;
    the pair and the transfer row are then removed in the same commit.
    Returns the number of entries removed and the URLs of the attachment
    files they held.
    """
    cutoff = models.utc_now() - timedelta(days=days)
    # Transfers that still have an entry inside the retention window
    sibling = aliased(models.Entry)
    retained_transfers = db.query(sibling.transfer_id).filter(
        sibling.transfer_id.isnot(None),
        or_(sibling.deleted_at.is_(None), sibling.deleted_at >= cutoff),
    )
    expired = db.query(models.Entry.id, models.Entry.transfer_id).filter(
        models.Entry.deleted_at.isnot(None),
        models.Entry.deleted_at < cutoff,
        or_(
            models.Entry.transfer_id.is_(None),
            models.Entry.transfer_id.notin_(retained_transfers.scalar_subquery()),
        ),
    ).all()
    if not expired:
        return 0, []

    entry_ids = [entry_id for entry_id, _ in expired]
    transfer_ids = {transfer_id for _, transfer_id in expired if transfer_id}

    file_urls = [url for (url,) in db.query(models.EntryAttachment.file_url).filter(
        models.EntryAttachment.entry_id.in_(entry_ids)
    ).all()]

    deleted = db.query(models.Entry).filter(
        models.Entry.id.in_(entry_ids)
    ).delete(synchronize_session=False)
    if transfer_ids:
        db.query(models.BudgetTransfer).filter(
            models.BudgetTransfer.id.in_(transfer_ids)
        ).delete(synchronize_session=False)
    db.commit()
    logger.debug(f"Purged {deleted} entries and {len(transfer_ids)} transfers soft-deleted before {cutoff}")
    return deleted, file_urls


def cleanup_old_notifications(db: Session, days: int) -> int:
    """Delete notifications that were read more than `days` ago."""
    cutoff = models.utc_now() - timedelta(days=days)
    deleted = db.query(models.Notification).filter(
        models.Notification.is_read.is_(True),
        models.Notification.read_at < cutoff,
    ).delete(synchronize_session=False)
    db.commit()
    return deleted


def run_daily_cleanup(db: Session, settings: Settings, storage: Optional[S3Storage] = None) -> CleanupStats:
    now = models.utc_now()
    entries_deleted, file_urls = cleanup_soft_deleted(db, settings.cleanup_entry_days)
    notifications_deleted = cleanup_old_notifications(db, settings.cleanup_notification_days)

    files_deleted = 0
    if storage is not None:
        for url in file_urls:
            try:
                storage.delete_attachment(url)
                files_deleted += 1
            except AppError as e:
                # Rows are already gone; keep purging the remaining files
                logger.warning(f"Could not delete attachment file {url}: {e.message}")

    stats = CleanupStats(
        entries_deleted=entries_deleted,
        notifications_deleted=notifications_deleted,
        files_deleted=files_deleted,
        entry_cutoff=now - timedelta(days=settings.cleanup_entry_days),
        notification_cutoff=now - timedelta(days=settings.cleanup_notification_days),
    )
    logger.info(str(stats))
    return stats
