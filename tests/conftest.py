"""
Pytest fixtures for the budget API test suite.

Provides:
- A fresh SQLite database file per test, created through `create_app`
- A database session and a FastAPI TestClient bound to the same database
- Builders for users, budgets, memberships, categories and entries
- JWTs signed with the test secret, and an in-memory fake S3 client
"""

from datetime import date
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from budget_api import models
from budget_api.config import Settings
from budget_api.main import create_app
from budget_api.models.role import Role
from budget_api.schemas import budget as budget_schemas
from budget_api.schemas import user as user_schemas
from budget_api.services import budgets, membership, users
from budget_api.storage import S3Storage

JWT_SECRET = "test-secret-for-hs256-signing"
PUBLIC_URL = "https://files.example.com"


class FakeS3Client:
    """Stands in for a boto3 S3 client; keeps objects in a dict."""

    def __init__(self):
        self.objects: Dict[str, dict] = {}
        self.deleted = []

    def put_object(self, Bucket, Key, Body, ContentType, ACL):
        self.objects[Key] = {"bucket": Bucket, "body": Body, "content_type": ContentType, "acl": ACL}
        return {}

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)
        self.deleted.append(Key)
        return {}


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'budget.db'}",
        jwt_secret=JWT_SECRET,
        max_attachment_bytes=1024,
        log_level="WARNING",
    )


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def storage(s3_client):
    return S3Storage(bucket="test-bucket", public_url=PUBLIC_URL, client=s3_client)


@pytest.fixture
def app(settings, storage):
    application = create_app(settings, storage=storage)
    yield application
    application.state.engine.dispose()


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(app):
    return TestClient(app)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_token(user_id: str, email: str = None, audience: str = "authenticated", secret: str = JWT_SECRET) -> str:
    claims = {"sub": user_id, "aud": audience}
    if email:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm="HS256")


def auth_headers(user_id: str, email: str = None) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, email)}"}


def make_user(db, user_id: str, name: str = None) -> models.User:
    return users.sync_profile(
        db, user_id, f"{user_id}@example.com", user_schemas.ProfileUpdate(name=name or user_id.title())
    )


def make_budget(db, owner_id: str, name: str = "Household", currency: str = "USD") -> models.Budget:
    return budgets.create_budget(
        db, owner_id, budget_schemas.BudgetCreate(name=name, currency_code=currency)
    )


def add_member(db, budget_id: str, user_id: str, role: Role) -> models.BudgetMember:
    member = membership.upsert(db, budget_id, user_id, role)
    db.commit()
    return member


def make_category(db, budget_id: str, kind: str = "expense", name: str = None) -> models.Category:
    category = models.Category(budget_id=budget_id, name=name or f"{kind.title()} category", kind=kind)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def make_entry(
    db,
    budget_id: str,
    category_id: str,
    user_id: str,
    kind: str = "expense",
    amount_minor: int = 1000,
    entry_date: date = date(2024, 3, 15),
    description: str = "Groceries",
) -> models.Entry:
    entry = models.Entry(
        budget_id=budget_id,
        category_id=category_id,
        kind=kind,
        amount_minor=amount_minor,
        currency_code="USD",
        entry_date=entry_date,
        description=description,
        created_by=user_id,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry
