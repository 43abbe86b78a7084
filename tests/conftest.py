"""
Pytest fixtures for the back office API.

Provides an in-memory SQLite database (fresh schema per test), record
factories, signed Supabase-style JWTs and a FastAPI test client.
"""

import os

# Settings are read at import time: configure before importing the app.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["SALES_ATOMIC_CHECKOUT"] = "false"
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["TWILIO_AUTH_TOKEN"] = ""
os.environ["TWILIO_PHONE_NUMBER"] = ""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel

from app.database import engine
from app.main import app
from app.models.product import Product, ProductVariant
from app.models.profile import Profile
from app.repositories.sale_repo import SaleRepository


@pytest.fixture(autouse=True)
def _schema():
    """Create all tables before each test, drop them after."""
    SQLModel.metadata.create_all(engine)
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_profile(session):
    """Factory: make_profile(role="staff", phone_number=None)."""

    def _make(role: str = "staff", phone_number: str | None = None) -> Profile:
        profile_id = uuid.uuid4()
        profile = Profile(
            id=profile_id,
            email=f"{role}-{profile_id.hex[:8]}@example.com",
            role=role,
            phone_number=phone_number,
        )
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile

    return _make


@pytest.fixture
def make_variant(session):
    """
    Factory: make_variant(stock=10, threshold=5, price="100.00", ...).

    Creates a product with a single variant.
    """
    counter = {"n": 0}

    def _make(
        stock: int = 10,
        threshold: int = 5,
        price: str = "100.00",
        product_name: str = "Solitaire Ring",
        variant_name: str | None = None,
        category: str = "ring",
    ) -> ProductVariant:
        counter["n"] += 1
        product = Product(name=product_name, category=category)
        session.add(product)
        session.flush()
        variant = ProductVariant(
            product_id=product.id,
            sku=f"TST-{counter['n']:04d}",
            variant_name=variant_name or f"Variant {counter['n']}",
            price=Decimal(price),
            stock_quantity=stock,
            low_stock_threshold=threshold,
        )
        session.add(variant)
        session.commit()
        session.refresh(variant)
        return variant

    return _make


@pytest.fixture
def admin(make_profile):
    return make_profile("admin", phone_number="+15550000001")


@pytest.fixture
def staff(make_profile):
    return make_profile("staff")


def make_token(profile_id: uuid.UUID, email: str, expires_in: int = 3600) -> str:
    claims = {
        "sub": str(profile_id),
        "email": email,
        "aud": "authenticated",
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(claims, os.environ["SUPABASE_JWT_SECRET"], algorithm="HS256")


def auth_headers(profile: Profile) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(profile.id, profile.email)}"}


def stock_of(session: Session, variant_id: uuid.UUID) -> int:
    """Current stock straight from the database."""
    session.expire_all()
    return session.get(ProductVariant, variant_id).stock_quantity


class FailingItemRepository(SaleRepository):
    """Fails to insert the Nth sale item."""

    def __init__(self, fail_on: int):
        self.fail_on = fail_on
        self.calls = 0

    def create_item(self, session, item):
        self.calls += 1
        if self.calls == self.fail_on:
            raise OperationalError("INSERT INTO sale_items", {}, Exception("connection lost"))
        return super().create_item(session, item)
