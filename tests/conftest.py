"""Shared pytest fixtures and factories."""

from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.db.models import (
    Base,
    Category,
    PricingProfile,
    Product,
    ProductPricingProfile,
    Segment,
    Subcategory,
    User,
)


@pytest.fixture
def engine():
    """In-memory SQLite shared across threads (TestClient runs sync endpoints in a pool)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    """Create in-memory SQLite database for testing."""
    session = Session(engine)
    try:
        yield session
    finally:
        session.close()


def make_user(db: Session, email: str = "owner@example.com") -> User:
    user = User(email=email, name=email.split("@")[0])
    db.add(user)
    db.commit()
    return user


def make_taxonomy(db: Session, user: User, name: str = "Wine") -> tuple[Category, Subcategory, Segment]:
    category = Category(user_id=user.id, name=name)
    db.add(category)
    db.flush()
    subcategory = Subcategory(user_id=user.id, category_id=category.id, name=f"{name} Red")
    db.add(subcategory)
    db.flush()
    segment = Segment(user_id=user.id, subcategory_id=subcategory.id, name=f"{name} Still")
    db.add(segment)
    db.commit()
    return category, subcategory, segment


def make_product(
    db: Session,
    user: User,
    title: str,
    price: str,
    sku: str | None = None,
    brand: str = "High Garden",
    taxonomy: tuple[Category, Subcategory, Segment] | None = None,
) -> Product:
    category, subcategory, segment = taxonomy or make_taxonomy(db, user, name=f"Cat {title}")
    product = Product(
        user_id=user.id,
        title=title,
        sku=sku or title.upper().replace(" ", "-"),
        brand=brand,
        category_id=category.id,
        subcategory_id=subcategory.id,
        segment_id=segment.id,
        global_wholesale_price=Decimal(price),
    )
    db.add(product)
    db.commit()
    return product


def make_profile(
    db: Session,
    user: User,
    *,
    based_on: str = "globalWholesalePrice",
    mode: str = "FIXED",
    increment: str = "INCREASE",
    status: str = "DRAFT",
    adjustments: dict[str, str] | None = None,
    name: str = "Profile",
) -> PricingProfile:
    """Insert a profile directly, bypassing validation."""
    profile = PricingProfile(
        user_id=user.id,
        name=name,
        description=f"{name} description",
        based_on=based_on,
        price_adjust_mode=mode,
        increment_mode=increment,
        status=status,
        items=[
            ProductPricingProfile(product_id=pid, adjustment=Decimal(adj))
            for pid, adj in (adjustments or {}).items()
        ],
    )
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def user(db: Session) -> User:
    return make_user(db)


@pytest.fixture
def taxonomy(db: Session, user: User):
    return make_taxonomy(db, user)
