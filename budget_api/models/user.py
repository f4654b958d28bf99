# models/user.py
from sqlalchemy import Column, DateTime, String

from ..database import Base
from .budget import utc_now


class User(Base):
    """Local profile of an identity-provider user (id is the JWT `sub`)."""
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True, index=True)  # Stored lower-case
    name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
