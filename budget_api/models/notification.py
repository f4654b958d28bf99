# models/notification.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text

from ..database import Base
from .budget import new_id, utc_now


class Notification(Base):
    """In-app notification for a single user (e.g., a comment mention)."""
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String, nullable=False, index=True)
    budget_id = Column(String(36), ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False)
    notification_type = Column(String(32), nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    link_url = Column(String, nullable=True)
    related_id = Column(String(36), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    read_at = Column(DateTime(timezone=True), nullable=True)
