# controllers/comments.py
"""Entry comments and attachments."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..config import Settings
from ..dependencies import get_db, get_settings, get_storage
from ..schemas import budget as budget_schemas
from ..schemas import comment as schemas
from ..services import comments as service
from ..storage import S3Storage

router = APIRouter()


@router.get(
    "/{budget_id}/entries/{entry_id}/comments",
    response_model=List[schemas.CommentWithDetails],
    summary="List comments on an entry",
)
def list_comments(
    budget_id: str,
    entry_id: str,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return service.list_comments(db, budget_id, current_user, entry_id)


@router.post(
    "/{budget_id}/entries/{entry_id}/comments",
    response_model=schemas.CommentWithDetails,
    summary="Comment on an entry",
)
def create_comment(
    budget_id: str,
    entry_id: str,
    comment: schemas.CommentCreate,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """Post a comment; mentioned members get a notification."""
    return service.create_comment(db, budget_id, current_user, entry_id, comment)


@router.put(
    "/{budget_id}/entries/{entry_id}/comments/{comment_id}",
    response_model=schemas.CommentWithDetails,
    summary="Edit my comment",
)
def update_comment(
    budget_id: str,
    entry_id: str,
    comment_id: str,
    data: schemas.CommentUpdate,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return service.update_comment(db, budget_id, current_user, entry_id, comment_id, data)


@router.delete(
    "/{budget_id}/entries/{entry_id}/comments/{comment_id}",
    response_model=budget_schemas.Message,
    summary="Delete my comment",
)
def delete_comment(
    budget_id: str,
    entry_id: str,
    comment_id: str,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    service.delete_comment(db, budget_id, current_user, entry_id, comment_id)
    return {"message": "Comment deleted successfully"}


@router.get(
    "/{budget_id}/entries/{entry_id}/attachments",
    response_model=List[schemas.Attachment],
    summary="List attachments on an entry",
)
def list_attachments(
    budget_id: str,
    entry_id: str,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    return service.list_attachments(db, budget_id, current_user, entry_id)


@router.post(
    "/{budget_id}/entries/{entry_id}/attachments",
    response_model=schemas.Attachment,
    summary="Upload an attachment",
)
def upload_attachment(
    budget_id: str,
    entry_id: str,
    upload: schemas.AttachmentUpload,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user),
    storage: S3Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings)
):
    """Upload a base64-encoded image or PDF. Link it to a comment via `attachment_ids`."""
    return service.upload_attachment(
        db, storage, budget_id, current_user, entry_id, upload, settings.max_attachment_bytes
    )


@router.delete(
    "/{budget_id}/entries/{entry_id}/attachments/{attachment_id}",
    response_model=budget_schemas.Message,
    summary="Delete my attachment",
)
def delete_attachment(
    budget_id: str,
    entry_id: str,
    attachment_id: str,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user),
    storage: S3Storage = Depends(get_storage)
):
    service.delete_attachment(db, storage, budget_id, current_user, entry_id, attachment_id)
    return {"message": "Attachment deleted successfully"}
