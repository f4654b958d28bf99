from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import date, datetime
from typing import Literal, Optional

from ..models.role import Role


BudgetType = Literal["standard", "saving", "debt", "invest", "sharing"]
EntryKind = Literal["income", "expense"]


def _normalize_currency(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    code = v.strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise ValueError('Currency code must be three letters (e.g. USD)')
    return code


# ============= BUDGETS =============

class BudgetBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class BudgetCreate(BudgetBase):
    currency_code: Optional[str] = None
    budget_type: Optional[BudgetType] = None

    @field_validator('currency_code')
    @classmethod
    def currency_code_format(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_currency(v)


class BudgetUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    currency_code: Optional[str] = None
    budget_type: Optional[BudgetType] = None
    archived: Optional[bool] = None

    @field_validator('currency_code')
    @classmethod
    def currency_code_format(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_currency(v)


class Budget(BudgetBase):
    id: str
    owner_id: str
    currency_code: str
    budget_type: str
    archived: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BudgetWithRole(Budget):
    user_role: Role


class BudgetBalance(BaseModel):
    budget_id: str
    income_minor: int
    expense_minor: int
    balance_minor: int


class MonthlySummaryRow(BaseModel):
    month_start: date
    income_minor: int
    expense_minor: int
    net_minor: int


# ============= MEMBERS =============

class MemberInvite(BaseModel):
    """Invite (or re-role) a registered user by email. Role is checked by the service."""
    email: EmailStr
    role: str = "viewer"


class MemberRoleUpdate(BaseModel):
    role: str


class BudgetMember(BaseModel):
    budget_id: str
    user_id: str
    role: Role
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BudgetMemberWithUser(BudgetMember):
    user_name: Optional[str] = None
    user_email: Optional[str] = None


# ============= CATEGORIES =============

class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    kind: EntryKind
    is_hidden: bool = False
    color: Optional[str] = None
    icon: Optional[str] = None


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    """Schema for updating an existing category."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    kind: Optional[EntryKind] = None
    is_hidden: Optional[bool] = None
    color: Optional[str] = None
    icon: Optional[str] = None


class Category(CategoryBase):
    id: str
    budget_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============= ENTRIES =============

class EntryBase(BaseModel):
    kind: EntryKind
    amount_minor: int
    entry_date: date
    description: Optional[str] = None
    counterparty: Optional[str] = None

    @field_validator('amount_minor')
    @classmethod
    def amount_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError('Amount must be non-negative')
        return v


class EntryCreate(EntryBase):
    category_id: str
    currency_code: Optional[str] = None

    @field_validator('currency_code')
    @classmethod
    def currency_code_format(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_currency(v)


class EntryUpdate(BaseModel):
    category_id: Optional[str] = None
    kind: Optional[EntryKind] = None
    amount_minor: Optional[int] = None
    entry_date: Optional[date] = None
    description: Optional[str] = None
    counterparty: Optional[str] = None

    @field_validator('amount_minor')
    @classmethod
    def amount_must_be_non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError('Amount must be non-negative')
        return v


class Entry(EntryBase):
    id: str
    budget_id: str
    category_id: Optional[str] = None
    currency_code: str
    transfer_id: Optional[str] = None
    comment_count: int = 0
    attachment_count: int = 0
    created_by: str
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    member_name: Optional[str] = None
    member_email: Optional[str] = None

    class Config:
        from_attributes = True


class EntryFilter(BaseModel):
    """List filters, sorting and pagination for entries."""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    kind: Optional[EntryKind] = None
    category_id: Optional[str] = None
    member_id: Optional[str] = None
    search: Optional[str] = None
    sort_by: Literal["date", "amount", "description"] = "date"
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = Field(1, ge=1)
    per_page: int = Field(30, ge=1)


# ============= TRANSFERS =============

class TransferCreate(BaseModel):
    from_budget_id: str
    to_budget_id: str
    amount_minor: int
    currency_code: Optional[str] = None
    transfer_date: date
    note: Optional[str] = None
    from_category_id: str
    to_category_id: str

    @field_validator('currency_code')
    @classmethod
    def currency_code_format(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_currency(v)


class Transfer(BaseModel):
    id: str
    from_budget_id: str
    to_budget_id: str
    amount_minor: int
    currency_code: str
    transfer_date: date
    note: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TransferResult(BaseModel):
    """Transfer plus what a client needs to render "Transferred X from A to B"."""
    transfer: Transfer
    from_entry_id: str
    to_entry_id: str
    from_budget_name: str
    to_budget_name: str


class Message(BaseModel):
    message: str
