# models/comment.py
"""Comments, mentions and file attachments on entries."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from ..database import Base
from .budget import new_id, utc_now


class EntryComment(Base):
    __tablename__ = "entry_comments"

    id = Column(String(36), primary_key=True, default=new_id)
    entry_id = Column(String(36), ForeignKey("entries.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    comment_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now)
    deleted_at = Column(DateTime(timezone=True), nullable=True)


class CommentMention(Base):
    __tablename__ = "comment_mentions"
    __table_args__ = (
        UniqueConstraint("comment_id", "mentioned_user_id", name="uq_comment_mention"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    comment_id = Column(String(36), ForeignKey("entry_comments.id", ondelete="CASCADE"), nullable=False, index=True)
    mentioned_user_id = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class EntryAttachment(Base):
    """Uploaded file; created unlinked and attached to a comment when it is posted."""
    __tablename__ = "entry_attachments"

    id = Column(String(36), primary_key=True, default=new_id)
    entry_id = Column(String(36), ForeignKey("entries.id", ondelete="CASCADE"), nullable=False, index=True)
    comment_id = Column(String(36), ForeignKey("entry_comments.id", ondelete="SET NULL"), nullable=True, index=True)
    user_id = Column(String, nullable=False)
    file_url = Column(String, nullable=False)
    file_name = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
