from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional


class Notification(BaseModel):
    id: str
    user_id: str
    budget_id: str
    notification_type: str
    title: str
    message: str
    link_url: Optional[str] = None
    related_id: Optional[str] = None
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MarkRead(BaseModel):
    notification_ids: List[str]


class UnreadCount(BaseModel):
    count: int
