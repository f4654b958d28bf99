# models/budget.py
"""SQLAlchemy models for budgets, memberships, categories, entries and transfers."""

import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    BigInteger, Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey,
    Integer, String, Text, UniqueConstraint,
)
from ..database import Base


def utc_now():
    """Return current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class Budget(Base):
    """Named ledger with a currency; access is granted through BudgetMember rows."""
    __tablename__ = "budgets"

    id = Column(String(36), primary_key=True, default=new_id)
    owner_id = Column(String, nullable=False, index=True)  # Creator, informational only
    name = Column(String, nullable=False)
    currency_code = Column(String(3), nullable=False, default="USD")
    budget_type = Column(String(16), nullable=False, default="standard")
    description = Column(Text, nullable=True)
    archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class BudgetMember(Base):
    """Many-to-Many link between Users AND Budgets, carrying the user's role."""
    __tablename__ = "budget_members"
    __table_args__ = (
        UniqueConstraint("budget_id", "user_id", name="uq_budget_member"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    budget_id = Column(String(36), ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String, nullable=False, index=True)
    role = Column(String(16), nullable=False)  # owner, manager, contributor, viewer
    created_at = Column(DateTime(timezone=True), default=utc_now)


class Category(Base):
    """Income or expense category scoped to one budget (e.g., 'Groceries')."""
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    budget_id = Column(String(36), ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    kind = Column(String(8), nullable=False)  # income, expense
    is_hidden = Column(Boolean, nullable=False, default=False)
    color = Column(String(7), nullable=True)
    icon = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class BudgetTransfer(Base):
    """Audit record of money moved between two budgets; paired with two entries."""
    __tablename__ = "budget_transfers"
    __table_args__ = (
        CheckConstraint("amount_minor > 0", name="ck_transfer_amount_positive"),
        CheckConstraint("from_budget_id <> to_budget_id", name="ck_transfer_distinct_budgets"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    from_budget_id = Column(String(36), ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False, index=True)
    to_budget_id = Column(String(36), ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False, index=True)
    amount_minor = Column(BigInteger, nullable=False)
    currency_code = Column(String(3), nullable=False)
    transfer_date = Column(Date, nullable=False)
    note = Column(Text, nullable=True)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class Entry(Base):
    """Individual income/expense record. The sign lives in `kind`, never in the amount."""
    __tablename__ = "entries"
    __table_args__ = (
        CheckConstraint("amount_minor >= 0", name="ck_entry_amount_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    budget_id = Column(String(36), ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False, index=True)
    # Nullable only so deleting a category can detach its soft-deleted entries
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    kind = Column(String(8), nullable=False)
    amount_minor = Column(BigInteger, nullable=False)
    currency_code = Column(String(3), nullable=False)
    entry_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    counterparty = Column(String, nullable=True)
    transfer_id = Column(String(36), ForeignKey("budget_transfers.id", ondelete="SET NULL"), nullable=True, index=True)
    comment_count = Column(Integer, nullable=False, default=0)
    attachment_count = Column(Integer, nullable=False, default=0)
    created_by = Column(String, nullable=False)
    updated_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)  # Soft delete marker
