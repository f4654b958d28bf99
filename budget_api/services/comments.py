# services/comments.py
"""Entry comments with @mentions, and the file attachments posted with them."""

import base64
import binascii
import logging
import mimetypes
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..errors import BadRequest, DatabaseError, NotFound
from ..models.role import Role
from ..schemas import comment as schemas
from ..storage import S3Storage
from . import authz, membership, notifications, users
from .entries import load_active_entry

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100

# mime type -> stored file extension
ALLOWED_MIME_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "application/pdf": "pdf",
}


# ============= COMMENTS =============

def _unique(ids: List[str]) -> List[str]:
    return list(dict.fromkeys(ids))


def _validate_mentions(db: Session, budget_id: str, user_ids: List[str]) -> None:
    for mentioned in user_ids:
        if membership.get_role(db, budget_id, mentioned) is None:
            raise BadRequest("Mentioned user is not a budget member")


def _add_mentions(db: Session, comment_id: str, user_ids: List[str]) -> None:
    for mentioned in user_ids:
        db.add(models.CommentMention(comment_id=comment_id, mentioned_user_id=mentioned))


def _refresh_comment_count(db: Session, entry: models.Entry) -> None:
    db.flush()
    entry.comment_count = db.query(func.count(models.EntryComment.id)).filter(
        models.EntryComment.entry_id == entry.id,
        models.EntryComment.deleted_at.is_(None),
    ).scalar()


def _refresh_attachment_count(db: Session, entry_id: str) -> None:
    db.flush()
    count = db.query(func.count(models.EntryAttachment.id)).filter(
        models.EntryAttachment.entry_id == entry_id,
        models.EntryAttachment.deleted_at.is_(None),
    ).scalar()
    db.query(models.Entry).filter(models.Entry.id == entry_id).update(
        {"attachment_count": count}, synchronize_session=False
    )


def _notify_mentions(
    db: Session,
    budget_id: str,
    entry: models.Entry,
    comment: models.EntryComment,
    author_id: str,
    mentioned_ids: List[str],
) -> None:
    targets = [m for m in mentioned_ids if m != author_id]
    if not targets:
        return

    author = users.get_profiles(db, [author_id]).get(author_id)
    author_name = author.name if author and author.name else "Someone"
    entry_desc = entry.description or "an entry"
    text = comment.comment_text
    preview = f"{text[:PREVIEW_LENGTH]}..." if len(text) > PREVIEW_LENGTH else text

    for mentioned in targets:
        notifications.create_notification(
            db,
            user_id=mentioned,
            budget_id=budget_id,
            notification_type="comment_mention",
            title=f"{author_name} mentioned you in a comment",
            message=f'On "{entry_desc}": {preview}',
            link_url=f"/budgets/{budget_id}/entries?entry={entry.id}",
            related_id=comment.id,
        )


def _details(db: Session, comments: List[models.EntryComment]) -> List[schemas.CommentWithDetails]:
    """Attach author profile, mentions and linked attachments to each comment."""
    if not comments:
        return []
    comment_ids = [c.id for c in comments]

    mentions: Dict[str, List[str]] = {}
    for mention in db.query(models.CommentMention).filter(
        models.CommentMention.comment_id.in_(comment_ids)
    ).order_by(models.CommentMention.created_at).all():
        mentions.setdefault(mention.comment_id, []).append(mention.mentioned_user_id)

    attachments: Dict[str, List[models.EntryAttachment]] = {}
    for attachment in db.query(models.EntryAttachment).filter(
        models.EntryAttachment.comment_id.in_(comment_ids),
        models.EntryAttachment.deleted_at.is_(None),
    ).order_by(models.EntryAttachment.created_at).all():
        attachments.setdefault(attachment.comment_id, []).append(attachment)

    user_ids = {c.user_id for c in comments}
    for ids in mentions.values():
        user_ids.update(ids)
    profiles = users.get_profiles(db, user_ids)

    result = []
    for comment in comments:
        author = profiles.get(comment.user_id)
        result.append(schemas.CommentWithDetails(
            id=comment.id,
            entry_id=comment.entry_id,
            user_id=comment.user_id,
            user_name=author.name if author else None,
            user_email=author.email if author else None,
            comment_text=comment.comment_text,
            mentions=[
                schemas.MentionedUser(
                    user_id=uid,
                    user_name=profiles[uid].name if uid in profiles else None,
                    user_email=profiles[uid].email if uid in profiles else None,
                )
                for uid in mentions.get(comment.id, [])
            ],
            attachments=[
                schemas.CommentAttachment.model_validate(a) for a in attachments.get(comment.id, [])
            ],
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        ))
    return result


def _load_own_comment(db: Session, entry_id: str, comment_id: str, user_id: str) -> models.EntryComment:
    comment = db.query(models.EntryComment).filter(
        models.EntryComment.id == comment_id,
        models.EntryComment.entry_id == entry_id,
        models.EntryComment.user_id == user_id,
        models.EntryComment.deleted_at.is_(None),
    ).first()
    if not comment:
        raise NotFound("Comment not found")
    return comment


def list_comments(db: Session, budget_id: str, user_id: str, entry_id: str) -> List[schemas.CommentWithDetails]:
    authz.ensure_role(db, budget_id, user_id, Role.VIEWER)
    load_active_entry(db, budget_id, entry_id)

    comments = db.query(models.EntryComment).filter(
        models.EntryComment.entry_id == entry_id,
        models.EntryComment.deleted_at.is_(None),
    ).order_by(models.EntryComment.created_at.asc()).all()
    return _details(db, comments)


def create_comment(
    db: Session,
    budget_id: str,
    user_id: str,
    entry_id: str,
    data: schemas.CommentCreate,
) -> schemas.CommentWithDetails:
    """Post a comment, link pre-uploaded attachments and notify mentioned members."""
    authz.ensure_role(db, budget_id, user_id, Role.CONTRIBUTOR)
    entry = load_active_entry(db, budget_id, entry_id)

    mention_ids = _unique(data.mention_user_ids)
    _validate_mentions(db, budget_id, mention_ids)

    comment = models.EntryComment(id=models.new_id(), entry_id=entry_id, user_id=user_id,
                                  comment_text=data.comment_text)
    db.add(comment)
    # Mentions and attachments reference the comment row
    db.flush()
    _add_mentions(db, comment.id, mention_ids)

    if data.attachment_ids:
        # Only the author's own unlinked uploads on this entry can be attached
        db.query(models.EntryAttachment).filter(
            models.EntryAttachment.id.in_(data.attachment_ids),
            models.EntryAttachment.entry_id == entry_id,
            models.EntryAttachment.user_id == user_id,
            models.EntryAttachment.comment_id.is_(None),
            models.EntryAttachment.deleted_at.is_(None),
        ).update({"comment_id": comment.id}, synchronize_session=False)

    _notify_mentions(db, budget_id, entry, comment, user_id, mention_ids)
    _refresh_comment_count(db, entry)

    db.commit()
    db.refresh(comment)
    logger.info(f"Comment {comment.id} added to entry {entry_id} by {user_id}")
    return _details(db, [comment])[0]


def update_comment(
    db: Session,
    budget_id: str,
    user_id: str,
    entry_id: str,
    comment_id: str,
    data: schemas.CommentUpdate,
) -> schemas.CommentWithDetails:
    """Edit the text (and optionally replace the mentions) of the caller's own comment."""
    authz.ensure_role(db, budget_id, user_id, Role.CONTRIBUTOR)
    load_active_entry(db, budget_id, entry_id)
    comment = _load_own_comment(db, entry_id, comment_id, user_id)

    comment.comment_text = data.comment_text
    comment.updated_at = models.utc_now()

    if data.mention_user_ids is not None:
        mention_ids = _unique(data.mention_user_ids)
        _validate_mentions(db, budget_id, mention_ids)
        db.query(models.CommentMention).filter(
            models.CommentMention.comment_id == comment_id
        ).delete(synchronize_session=False)
        _add_mentions(db, comment_id, mention_ids)

    db.commit()
    db.refresh(comment)
    logger.info(f"Comment {comment_id} updated by {user_id}")
    return _details(db, [comment])[0]


def delete_comment(db: Session, budget_id: str, user_id: str, entry_id: str, comment_id: str) -> None:
    authz.ensure_role(db, budget_id, user_id, Role.CONTRIBUTOR)
    entry = load_active_entry(db, budget_id, entry_id)
    comment = _load_own_comment(db, entry_id, comment_id, user_id)

    comment.deleted_at = models.utc_now()
    _refresh_comment_count(db, entry)

    db.commit()
    logger.info(f"Comment {comment_id} deleted by {user_id}")


# ============= ATTACHMENTS =============

def _decode(file_data: str) -> bytes:
    # Accept data URLs as sent by browsers ("data:image/png;base64,....")
    if file_data.startswith("data:") and "," in file_data:
        file_data = file_data.split(",", 1)[1]
    try:
        return base64.b64decode(file_data, validate=True)
    except (binascii.Error, ValueError):
        raise BadRequest("Invalid base64 file data")


def _mime_type(file_name: str) -> str:
    mime_type, _ = mimetypes.guess_type(file_name)
    if mime_type not in ALLOWED_MIME_TYPES:
        raise BadRequest(
            f"Unsupported file type for {file_name!r}. Allowed: images (JPEG, PNG, GIF, WebP) and PDF"
        )
    return mime_type


def upload_attachment(
    db: Session,
    storage: S3Storage,
    budget_id: str,
    user_id: str,
    entry_id: str,
    data: schemas.AttachmentUpload,
    max_bytes: int,
) -> models.EntryAttachment:
    """Store an uploaded file and record it, not yet linked to a comment."""
    authz.ensure_role(db, budget_id, user_id, Role.CONTRIBUTOR)
    load_active_entry(db, budget_id, entry_id)

    mime_type = _mime_type(data.file_name)
    content = _decode(data.file_data)
    if not content:
        raise BadRequest("File is empty")
    if len(content) > max_bytes:
        raise BadRequest(f"File size exceeds the {max_bytes} byte limit")

    attachment_id = models.new_id()
    file_url = storage.upload_attachment(
        entry_id, attachment_id, content, mime_type, ALLOWED_MIME_TYPES[mime_type]
    )

    attachment = models.EntryAttachment(
        id=attachment_id,
        entry_id=entry_id,
        user_id=user_id,
        file_url=file_url,
        file_name=data.file_name,
        file_size=len(content),
        mime_type=mime_type,
    )
    try:
        db.add(attachment)
        _refresh_attachment_count(db, entry_id)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Recording attachment {attachment_id} failed; removing stored object")
        storage.delete_attachment(file_url)
        raise DatabaseError("Attachment could not be saved")

    db.refresh(attachment)
    logger.info(f"Attachment {attachment_id} ({len(content)} bytes) uploaded to entry {entry_id} by {user_id}")
    return attachment


def list_attachments(db: Session, budget_id: str, user_id: str, entry_id: str) -> List[models.EntryAttachment]:
    authz.ensure_role(db, budget_id, user_id, Role.VIEWER)
    load_active_entry(db, budget_id, entry_id)
    return db.query(models.EntryAttachment).filter(
        models.EntryAttachment.entry_id == entry_id,
        models.EntryAttachment.deleted_at.is_(None),
    ).order_by(models.EntryAttachment.created_at.desc()).all()


def delete_attachment(
    db: Session,
    storage: S3Storage,
    budget_id: str,
    user_id: str,
    entry_id: str,
    attachment_id: str,
) -> None:
    """Soft delete the caller's own attachment, then remove the stored object."""
    authz.ensure_role(db, budget_id, user_id, Role.CONTRIBUTOR)
    load_active_entry(db, budget_id, entry_id)

    attachment = db.query(models.EntryAttachment).filter(
        models.EntryAttachment.id == attachment_id,
        models.EntryAttachment.entry_id == entry_id,
        models.EntryAttachment.user_id == user_id,
        models.EntryAttachment.deleted_at.is_(None),
    ).first()
    if not attachment:
        raise NotFound("Attachment not found")

    attachment.deleted_at = models.utc_now()
    _refresh_attachment_count(db, entry_id)
    db.commit()

    storage.delete_attachment(attachment.file_url)
    logger.info(f"Attachment {attachment_id} deleted by {user_id}")
