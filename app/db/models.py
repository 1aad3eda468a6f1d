"""SQLAlchemy ORM models for the pricing profiles service.

This module defines the database schema for:
- Users (owners of every other row)
- Catalog taxonomy (Category -> Subcategory -> Segment) and Products
- Pricing profiles and their per-product adjustments

Money columns are Numeric(14, 4) and surface as Decimal. All timestamps are UTC.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

MONEY = Numeric(14, 4, asdecimal=True)


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Users
# =============================================================================


class User(Base):
    """Account that owns catalog data and pricing profiles."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    name: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


# =============================================================================
# Catalog
# =============================================================================


class Category(Base):
    """Top level of the catalog taxonomy."""

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255))

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_category_user_name"),)


class Subcategory(Base):
    """Second level of the catalog taxonomy."""

    __tablename__ = "subcategories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    category_id: Mapped[str] = mapped_column(
        ForeignKey("categories.id", ondelete="RESTRICT"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))

    __table_args__ = (
        UniqueConstraint("category_id", "name", name="uq_subcategory_category_name"),
    )


class Segment(Base):
    """Leaf of the catalog taxonomy."""

    __tablename__ = "segments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    subcategory_id: Mapped[str] = mapped_column(
        ForeignKey("subcategories.id", ondelete="RESTRICT"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))

    __table_args__ = (
        UniqueConstraint("subcategory_id", "name", name="uq_segment_subcategory_name"),
    )


class Product(Base):
    """Catalog product with its global wholesale (root) price."""

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    sku: Mapped[str] = mapped_column(String(100))
    brand: Mapped[str] = mapped_column(String(255), index=True)
    category_id: Mapped[str] = mapped_column(
        ForeignKey("categories.id", ondelete="RESTRICT"), index=True
    )
    subcategory_id: Mapped[str] = mapped_column(
        ForeignKey("subcategories.id", ondelete="RESTRICT"), index=True
    )
    segment_id: Mapped[str] = mapped_column(
        ForeignKey("segments.id", ondelete="RESTRICT"), index=True
    )
    global_wholesale_price: Mapped[Decimal] = mapped_column(MONEY)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    category: Mapped[Category] = relationship(lazy="joined")
    subcategory: Mapped[Subcategory] = relationship(lazy="joined")
    segment: Mapped[Segment] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "sku", name="uq_product_user_sku"),
        CheckConstraint("global_wholesale_price >= 0", name="ck_product_price_non_negative"),
    )


# =============================================================================
# Pricing profiles
# =============================================================================


class PricingProfile(Base):
    """User-defined pricing rule applied on top of a based-on price.

    based_on is either the root marker "globalWholesalePrice" or the id of another
    profile of the same user. It is deliberately not a foreign key: the chain may
    point at deleted or foreign profiles, which resolution treats as the root.
    """

    __tablename__ = "pricing_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text)
    based_on: Mapped[str] = mapped_column(String(64))
    price_adjust_mode: Mapped[str] = mapped_column(String(10))  # FIXED | DYNAMIC
    increment_mode: Mapped[str] = mapped_column(String(10))  # INCREASE | DECREASE
    status: Mapped[str] = mapped_column(String(10), default="DRAFT", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    items: Mapped[list[ProductPricingProfile]] = relationship(
        back_populates="pricing_profile",
        cascade="all, delete-orphan",
        order_by="ProductPricingProfile.updated_at.desc()",
    )

    __table_args__ = (
        CheckConstraint(
            "price_adjust_mode IN ('FIXED', 'DYNAMIC')", name="ck_profile_adjust_mode"
        ),
        CheckConstraint(
            "increment_mode IN ('INCREASE', 'DECREASE')", name="ck_profile_increment_mode"
        ),
        CheckConstraint(
            "status IN ('DRAFT', 'COMPLETED', 'ARCHIVED')", name="ck_profile_status"
        ),
        Index("idx_pricing_profiles_user_updated", "user_id", "updated_at"),
    )


class ProductPricingProfile(Base):
    """Selection of a product inside a pricing profile with its adjustment."""

    __tablename__ = "product_pricing_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    pricing_profile_id: Mapped[str] = mapped_column(
        ForeignKey("pricing_profiles.id", ondelete="CASCADE"), index=True
    )
    product_id: Mapped[str] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), index=True
    )
    adjustment: Mapped[Decimal] = mapped_column(MONEY)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    pricing_profile: Mapped[PricingProfile] = relationship(back_populates="items")
    product: Mapped[Product] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint("pricing_profile_id", "product_id", name="uq_profile_product"),
        CheckConstraint("adjustment >= 0", name="ck_item_adjustment_non_negative"),
    )
