from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class CommentCreate(BaseModel):
    comment_text: str = Field(..., min_length=1, max_length=5000)
    mention_user_ids: List[str] = []
    attachment_ids: List[str] = []  # Pre-uploaded attachment IDs


class CommentUpdate(BaseModel):
    comment_text: str = Field(..., min_length=1, max_length=5000)
    mention_user_ids: Optional[List[str]] = None


class MentionedUser(BaseModel):
    user_id: str
    user_name: Optional[str] = None
    user_email: Optional[str] = None


class CommentAttachment(BaseModel):
    id: str
    file_url: str
    file_name: str
    file_size: int
    mime_type: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CommentWithDetails(BaseModel):
    id: str
    entry_id: str
    user_id: str
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    comment_text: str
    mentions: List[MentionedUser] = []
    attachments: List[CommentAttachment] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AttachmentUpload(BaseModel):
    file_data: str = Field(..., min_length=1)  # base64 encoded file
    file_name: str = Field(..., min_length=1, max_length=255)


class Attachment(CommentAttachment):
    entry_id: str
    comment_id: Optional[str] = None
    user_id: str
