from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)


class User(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
