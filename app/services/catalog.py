"""Catalog management service.

Handles:
- Taxonomy CRUD (category -> subcategory -> segment)
- Product CRUD and filtering for the profile product picker
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models import Category, Product, ProductPricingProfile, Segment, Subcategory
from app.domain.pricing.adjustments import to_decimal
from app.services.results import ActionOk, ActionResult, invalid, not_found

logger = logging.getLogger(__name__)

_TAXONOMY = {
    "category": Category,
    "subcategory": Subcategory,
    "segment": Segment,
}


# =============================================================================
# Taxonomy
# =============================================================================


def list_categories(db: Session, user_id: str) -> list[Category]:
    stmt = select(Category).where(Category.user_id == user_id).order_by(Category.name)
    return list(db.execute(stmt).scalars())


def list_subcategories(
    db: Session, user_id: str, category_id: str | None = None
) -> list[Subcategory]:
    stmt = select(Subcategory).where(Subcategory.user_id == user_id)
    if category_id:
        stmt = stmt.where(Subcategory.category_id == category_id)
    return list(db.execute(stmt.order_by(Subcategory.name)).scalars())


def list_segments(db: Session, user_id: str, subcategory_id: str | None = None) -> list[Segment]:
    stmt = select(Segment).where(Segment.user_id == user_id)
    if subcategory_id:
        stmt = stmt.where(Segment.subcategory_id == subcategory_id)
    return list(db.execute(stmt.order_by(Segment.name)).scalars())


def _owned(db: Session, model, user_id: str, row_id: str):
    stmt = select(model).where(model.id == row_id, model.user_id == user_id)
    return db.execute(stmt).scalar_one_or_none()


def _add(db: Session, row, field: str) -> ActionResult:
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return invalid("Name already exists", {field: ["Name already exists"]})
    db.refresh(row)
    return ActionOk(data=row, created=True)


def create_category(db: Session, user_id: str, name: str) -> ActionResult:
    """Create a category for the user."""
    return _add(db, Category(user_id=user_id, name=name), "name")


def create_subcategory(db: Session, user_id: str, category_id: str, name: str) -> ActionResult:
    """Create a subcategory under one of the user's categories."""
    if _owned(db, Category, user_id, category_id) is None:
        return invalid("Pick a category", {"categoryId": ["Pick a category"]})
    return _add(db, Subcategory(user_id=user_id, category_id=category_id, name=name), "name")


def create_segment(db: Session, user_id: str, subcategory_id: str, name: str) -> ActionResult:
    """Create a segment under one of the user's subcategories."""
    if _owned(db, Subcategory, user_id, subcategory_id) is None:
        return invalid("Pick a subcategory", {"subcategoryId": ["Pick a subcategory"]})
    return _add(db, Segment(user_id=user_id, subcategory_id=subcategory_id, name=name), "name")


def rename_taxonomy(db: Session, user_id: str, kind: str, row_id: str, name: str) -> ActionResult:
    """Rename a category, subcategory or segment owned by the user."""
    row = _owned(db, _TAXONOMY[kind], user_id, row_id)
    if row is None:
        return not_found()
    row.name = name
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return invalid("Name already exists", {"name": ["Name already exists"]})
    return ActionOk(data=row)


def delete_taxonomy(db: Session, user_id: str, kind: str, row_id: str) -> ActionResult:
    """Delete a taxonomy node; refused while children or products use it."""
    model = _TAXONOMY[kind]
    row = _owned(db, model, user_id, row_id)
    if row is None:
        return not_found()

    if kind == "category":
        in_use = [
            select(func.count()).select_from(Subcategory).where(Subcategory.category_id == row_id),
            select(func.count()).select_from(Product).where(Product.category_id == row_id),
        ]
    elif kind == "subcategory":
        in_use = [
            select(func.count()).select_from(Segment).where(Segment.subcategory_id == row_id),
            select(func.count()).select_from(Product).where(Product.subcategory_id == row_id),
        ]
    else:
        in_use = [select(func.count()).select_from(Product).where(Product.segment_id == row_id)]

    if any(db.execute(q).scalar() for q in in_use):
        return invalid(f"Cannot delete {kind}: it is still in use")

    db.delete(row)
    db.commit()
    return ActionOk()


# =============================================================================
# Products
# =============================================================================


def list_products(
    db: Session,
    user_id: str,
    *,
    category_id: str | None = None,
    subcategory_id: str | None = None,
    segment_id: str | None = None,
    brand: str | None = None,
    query: str | None = None,
) -> list[Product]:
    """List the user's products with picker filters.

    `query` is split on whitespace; every token must appear (case-insensitive)
    in the title, SKU or brand.
    """
    stmt = select(Product).where(Product.user_id == user_id)
    if category_id:
        stmt = stmt.where(Product.category_id == category_id)
    if subcategory_id:
        stmt = stmt.where(Product.subcategory_id == subcategory_id)
    if segment_id:
        stmt = stmt.where(Product.segment_id == segment_id)
    if brand:
        stmt = stmt.where(Product.brand == brand)

    tokens = (query or "").lower().split()
    if tokens:
        stmt = stmt.where(
            and_(
                *(
                    or_(
                        func.lower(Product.title).contains(t, autoescape=True),
                        func.lower(Product.sku).contains(t, autoescape=True),
                        func.lower(Product.brand).contains(t, autoescape=True),
                    )
                    for t in tokens
                )
            )
        )

    stmt = stmt.order_by(Product.updated_at.desc())
    return list(db.execute(stmt).scalars().unique())


def list_brands(db: Session, user_id: str) -> list[str]:
    stmt = select(Product.brand).where(Product.user_id == user_id).distinct().order_by(Product.brand)
    return [b for b in db.execute(stmt).scalars() if b]


def get_product(db: Session, user_id: str, product_id: str) -> Product | None:
    return _owned(db, Product, user_id, product_id)


def _check_taxonomy(db: Session, user_id: str, fields: Mapping[str, Any]) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    category = subcategory = segment = None

    if "category_id" in fields:
        category = _owned(db, Category, user_id, fields["category_id"])
        if category is None:
            errors["categoryId"] = ["Pick a category"]
    if "subcategory_id" in fields:
        subcategory = _owned(db, Subcategory, user_id, fields["subcategory_id"])
        if subcategory is None or (category and subcategory.category_id != category.id):
            errors["subcategoryId"] = ["Pick a subcategory"]
    if "segment_id" in fields:
        segment = _owned(db, Segment, user_id, fields["segment_id"])
        if segment is None or (subcategory and segment.subcategory_id != subcategory.id):
            errors["segmentId"] = ["Pick a segment"]

    return errors


def create_product(db: Session, user_id: str, fields: Mapping[str, Any]) -> ActionResult:
    """Create a product.

    Args:
        db: Database session
        user_id: Owner
        fields: title, sku, brand, category_id, subcategory_id, segment_id,
            global_wholesale_price

    """
    errors = _check_taxonomy(db, user_id, fields)
    if errors:
        return invalid("Please fix the highlighted fields.", errors)

    product = Product(
        user_id=user_id,
        title=fields["title"],
        sku=fields["sku"],
        brand=fields["brand"],
        category_id=fields["category_id"],
        subcategory_id=fields["subcategory_id"],
        segment_id=fields["segment_id"],
        global_wholesale_price=to_decimal(fields["global_wholesale_price"]),
    )
    result = _add(db, product, "sku")
    if result.ok:
        logger.info("product_created", extra={"product_id": product.id, "user_id": user_id})
    return result


def update_product(
    db: Session, user_id: str, product_id: str, changes: Mapping[str, Any]
) -> ActionResult:
    """Patch a product. Price changes flow into every later resolution."""
    if not changes:
        return invalid("Empty patch")

    product = get_product(db, user_id, product_id)
    if product is None:
        return not_found()

    if {"category_id", "subcategory_id", "segment_id"} & set(changes):
        placement = {
            "category_id": product.category_id,
            "subcategory_id": product.subcategory_id,
            "segment_id": product.segment_id,
            **changes,
        }
        errors = _check_taxonomy(db, user_id, placement)
        if errors:
            return invalid("Please fix the highlighted fields.", errors)

    for key, value in changes.items():
        if key == "global_wholesale_price":
            value = to_decimal(value)
        setattr(product, key, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return invalid("Could not update product", {"sku": ["SKU already exists"]})
    db.refresh(product)
    return ActionOk(data=product)


def delete_product(db: Session, user_id: str, product_id: str) -> ActionResult:
    """Delete a product and drop it from every pricing profile."""
    product = get_product(db, user_id, product_id)
    if product is None:
        return not_found()

    db.execute(
        delete(ProductPricingProfile)
        .where(ProductPricingProfile.product_id == product_id)
        .execution_options(synchronize_session=False)
    )
    db.delete(product)
    db.commit()
    logger.info("product_deleted", extra={"product_id": product_id, "user_id": user_id})
    return ActionOk()
