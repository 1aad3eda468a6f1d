"""Storage reads and writes consumed by the pricing engine.

Every lookup is scoped to the owning user; a row that belongs to someone else
is indistinguishable from a missing one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.db.models import PricingProfile, Product, ProductPricingProfile
from app.domain.pricing.adjustments import ProfileStatus, to_decimal

logger = logging.getLogger(__name__)


def get_product_base_prices(
    db: Session, user_id: str, product_ids: Iterable[str]
) -> dict[str, Decimal]:
    """Get global wholesale prices for the user's products.

    Args:
        db: Database session
        user_id: Owner
        product_ids: Products to fetch

    Returns:
        Dict product_id -> Decimal price (unknown or foreign ids omitted)

    """
    ids = set(product_ids)
    if not ids:
        return {}

    stmt = select(Product.id, Product.global_wholesale_price).where(
        Product.user_id == user_id, Product.id.in_(ids)
    )
    return {row.id: to_decimal(row.global_wholesale_price) for row in db.execute(stmt)}


def get_product_base_price(db: Session, user_id: str, product_id: str) -> Decimal | None:
    """Get one product's global wholesale price, or None if not found."""
    return get_product_base_prices(db, user_id, [product_id]).get(product_id)


def get_profile(db: Session, user_id: str, profile_id: str) -> PricingProfile | None:
    """Get a pricing profile owned by the user."""
    stmt = select(PricingProfile).where(
        PricingProfile.id == profile_id, PricingProfile.user_id == user_id
    )
    return db.execute(stmt).scalar_one_or_none()


def get_profile_item_adjustments(
    db: Session, profile_id: str, product_ids: Iterable[str]
) -> dict[str, Decimal]:
    """Get stored adjustments of a profile restricted to the given products.

    Only the requested products are read, never the profile's whole item table.
    """
    ids = set(product_ids)
    if not ids:
        return {}

    stmt = select(ProductPricingProfile.product_id, ProductPricingProfile.adjustment).where(
        ProductPricingProfile.pricing_profile_id == profile_id,
        ProductPricingProfile.product_id.in_(ids),
    )
    return {row.product_id: to_decimal(row.adjustment) for row in db.execute(stmt)}


def set_profile_status(
    db: Session,
    profile_id: str,
    user_id: str,
    expected_status: ProfileStatus,
    new_status: ProfileStatus,
) -> bool:
    """Conditionally move a profile between statuses.

    The UPDATE only matches while the row still has `expected_status`, so two
    concurrent publishes cannot both succeed.

    Returns:
        True if the row was updated (caller commits), False otherwise

    """
    stmt = (
        update(PricingProfile)
        .where(
            PricingProfile.id == profile_id,
            PricingProfile.user_id == user_id,
            PricingProfile.status == ProfileStatus(expected_status).value,
        )
        .values(status=ProfileStatus(new_status).value)
        .execution_options(synchronize_session="fetch")
    )
    result = db.execute(stmt)
    changed = result.rowcount == 1

    logger.debug(
        "profile_status_write",
        extra={
            "profile_id": profile_id,
            "expected": ProfileStatus(expected_status).value,
            "new": ProfileStatus(new_status).value,
            "changed": changed,
        },
    )
    return changed
