"""Pricing profile orchestration: preview, validation and lifecycle.

Handles:
- Price previews (ad-hoc form input and stored profiles)
- Negative-price validation, run at creation and again at publish
- Draft creation and the DRAFT -> COMPLETED publish transition
- Profile and profile item management
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.metrics import (
    pricing_completed_profile_edits_total,
    pricing_preview_products,
    pricing_previews_total,
    pricing_profile_create_total,
    pricing_profile_publish_total,
)
from app.db.models import PricingProfile, Product, ProductPricingProfile
from app.domain.pricing.adjustments import (
    ROOT_MARKER,
    IncrementMode,
    PriceAdjustMode,
    ProfileStatus,
    to_decimal,
)
from app.domain.pricing.resolver import PriceRow, compute_price_rows, find_negative
from app.services.catalog_store import get_product_base_prices, get_profile, set_profile_status
from app.services.pricing_chain import load_chain
from app.services.results import ActionError, ActionOk, ActionResult, invalid, not_found

logger = logging.getLogger(__name__)

# Profiles that may serve as a parent for a new profile
BASEABLE_STATUSES = (ProfileStatus.DRAFT.value, ProfileStatus.COMPLETED.value)


@dataclass
class ValidationOutcome:
    valid: bool
    offending_titles: list[str] = field(default_factory=list)


@dataclass
class PreviewLine:
    """One product of a stored profile preview."""

    item_id: str
    product_id: str
    title: str
    sku: str
    brand: str
    category: str | None
    base: Decimal
    adjustment: Decimal
    delta: Decimal
    new_price: Decimal


@dataclass
class ProfilePreview:
    profile: PricingProfile
    lines: list[PreviewLine]

    @property
    def has_negative(self) -> bool:
        return any(line.new_price < 0 for line in self.lines)

    @property
    def can_publish(self) -> bool:
        return self.profile.status == ProfileStatus.DRAFT.value and not self.has_negative


def _dedupe(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(ids))


# =============================================================================
# Preview
# =============================================================================


def compute_preview(
    db: Session,
    user_id: str,
    based_on: str,
    price_adjust_mode: PriceAdjustMode | str,
    increment_mode: IncrementMode | str,
    product_ids: Sequence[str],
    adjustments: Mapping[str, object] | None = None,
    kind: str = "adhoc",
) -> dict[str, PriceRow]:
    """Resolve base/delta/new price for each product under a profile definition.

    Every call reads fresh state: base prices and the ancestor chain are loaded
    from the database each time.

    Args:
        db: Database session
        user_id: Owner scope
        based_on: Root marker or parent profile id
        price_adjust_mode: FIXED or DYNAMIC
        increment_mode: INCREASE or DECREASE
        product_ids: Products to price (foreign or unknown ids are skipped)
        adjustments: Explicit adjustments by product id; missing means "0"
        kind: Metrics label

    Returns:
        Dict product_id -> PriceRow in request order

    """
    ids = _dedupe(product_ids)
    base_prices = get_product_base_prices(db, user_id, ids)
    max_depth = get_settings().pricing_chain_max_depth
    chain = load_chain(db, user_id, based_on, base_prices.keys(), max_depth=max_depth)

    rows = compute_price_rows(
        based_on,
        price_adjust_mode,
        increment_mode,
        base_prices,
        adjustments or {},
        chain,
        product_ids=ids,
        max_depth=max_depth,
    )

    pricing_previews_total.labels(kind=kind).inc()
    pricing_preview_products.observe(len(rows))
    return rows


def compute_profile_preview(db: Session, user_id: str, profile_id: str) -> ProfilePreview | None:
    """Preview a stored profile using its stored item adjustments.

    Returns:
        ProfilePreview, or None if the profile does not exist for this user

    """
    profile = get_profile(db, user_id, profile_id)
    if profile is None:
        return None

    items = list(profile.items)
    rows = compute_preview(
        db,
        user_id,
        profile.based_on,
        profile.price_adjust_mode,
        profile.increment_mode,
        [i.product_id for i in items],
        {i.product_id: i.adjustment for i in items},
        kind="stored",
    )

    lines = []
    for item in items:
        row = rows.get(item.product_id)
        if row is None:
            continue
        product = item.product
        lines.append(
            PreviewLine(
                item_id=item.id,
                product_id=product.id,
                title=product.title,
                sku=product.sku,
                brand=product.brand,
                category=product.category.name if product.category else None,
                base=row.base,
                adjustment=to_decimal(item.adjustment),
                delta=row.delta,
                new_price=row.new_price,
            )
        )

    return ProfilePreview(profile=profile, lines=lines)


# =============================================================================
# Validation
# =============================================================================


def _titles_for(db: Session, user_id: str, product_ids: Sequence[str]) -> list[str]:
    if not product_ids:
        return []
    stmt = select(Product.id, Product.title).where(
        Product.user_id == user_id, Product.id.in_(product_ids)
    )
    titles = {row.id: row.title for row in db.execute(stmt)}
    return [titles.get(pid, pid) for pid in product_ids]


def validate_no_negatives(
    db: Session,
    user_id: str,
    based_on: str,
    price_adjust_mode: PriceAdjustMode | str,
    increment_mode: IncrementMode | str,
    product_ids: Sequence[str],
    adjustments: Mapping[str, object] | None = None,
) -> ValidationOutcome:
    """Resolve every product and fail if any new price is negative."""
    rows = compute_preview(
        db,
        user_id,
        based_on,
        price_adjust_mode,
        increment_mode,
        product_ids,
        adjustments,
        kind="validation",
    )
    negative = find_negative(rows)
    if not negative:
        return ValidationOutcome(valid=True)
    return ValidationOutcome(valid=False, offending_titles=_titles_for(db, user_id, negative))


def validate_profile(db: Session, user_id: str, profile: PricingProfile) -> ValidationOutcome:
    """Re-validate a stored profile against current stored state."""
    items = list(profile.items)
    return validate_no_negatives(
        db,
        user_id,
        profile.based_on,
        profile.price_adjust_mode,
        profile.increment_mode,
        [i.product_id for i in items],
        {i.product_id: i.adjustment for i in items},
    )


def _negative_error(outcome: ValidationOutcome, action: str) -> ActionError:
    count = len(outcome.offending_titles)
    noun = "item" if count == 1 else "items"
    return ActionError(
        code="negative",
        message=(
            f"Cannot {action}: new price would be negative ({count} {noun}). "
            f"Adjust values and try again."
        ),
        offending_titles=outcome.offending_titles,
    )


def _check_based_on(
    db: Session, user_id: str, based_on: str, profile_id: str | None = None
) -> ActionError | None:
    if based_on == ROOT_MARKER:
        return None
    if profile_id is not None and based_on == profile_id:
        return invalid(
            "Please fix the highlighted fields.",
            {"basedOn": ["A profile cannot be based on itself"]},
        )
    parent = get_profile(db, user_id, based_on)
    if parent is None or parent.status not in BASEABLE_STATUSES:
        return invalid(
            "Please fix the highlighted fields.",
            {"basedOn": ["Unknown pricing profile"]},
        )
    return None


# =============================================================================
# Lifecycle
# =============================================================================


def create_draft_profile(
    db: Session,
    user_id: str,
    *,
    name: str,
    description: str,
    based_on: str,
    price_adjust_mode: PriceAdjustMode | str,
    increment_mode: IncrementMode | str,
    adjustments: Mapping[str, object],
) -> ActionResult:
    """Validate and persist a new DRAFT profile with its selected products.

    Nothing is written unless every selected product resolves to a
    non-negative price.

    Args:
        db: Database session
        user_id: Owner
        name: Profile name
        description: Profile description
        based_on: Root marker or parent profile id
        price_adjust_mode: FIXED or DYNAMIC
        increment_mode: INCREASE or DECREASE
        adjustments: Selected product id -> adjustment (ordered)

    Returns:
        ActionOk(data=PricingProfile, created=True) or ActionError

    """
    error = _check_based_on(db, user_id, based_on)
    if error is not None:
        pricing_profile_create_total.labels(outcome="invalid").inc()
        return error

    product_ids = _dedupe(adjustments)
    owned = get_product_base_prices(db, user_id, product_ids)
    unknown = [pid for pid in product_ids if pid not in owned]
    if unknown:
        pricing_profile_create_total.labels(outcome="invalid").inc()
        return invalid(
            "Please fix the highlighted fields.",
            {"productIds": [f"Unknown product: {pid}" for pid in unknown]},
        )

    outcome = validate_no_negatives(
        db, user_id, based_on, price_adjust_mode, increment_mode, product_ids, adjustments
    )
    if not outcome.valid:
        pricing_profile_create_total.labels(outcome="negative").inc()
        logger.info(
            "pricing_profile_create_rejected",
            extra={"user_id": user_id, "negative_count": len(outcome.offending_titles)},
        )
        return _negative_error(outcome, "create profile")

    profile = PricingProfile(
        user_id=user_id,
        name=name,
        description=description,
        based_on=based_on,
        price_adjust_mode=PriceAdjustMode(price_adjust_mode).value,
        increment_mode=IncrementMode(increment_mode).value,
        status=ProfileStatus.DRAFT.value,
        items=[
            ProductPricingProfile(product_id=pid, adjustment=to_decimal(adjustments[pid]))
            for pid in product_ids
        ],
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)

    pricing_profile_create_total.labels(outcome="created").inc()
    logger.info(
        "pricing_profile_created",
        extra={"user_id": user_id, "profile_id": profile.id, "items": len(product_ids)},
    )
    return ActionOk(data=profile, created=True)


def publish_profile(db: Session, user_id: str, profile_id: str) -> ActionResult:
    """Move a DRAFT profile to COMPLETED after re-validating its prices.

    Base prices or ancestor profiles may have changed since the draft was
    created, so validation runs again right before the status write.

    Returns:
        ActionOk(data=PricingProfile) or ActionError with code
        not_found | not_draft | negative | conflict

    """
    profile = get_profile(db, user_id, profile_id)
    if profile is None:
        pricing_profile_publish_total.labels(outcome="not_found").inc()
        return not_found("Cannot publish: profile not found.")

    if profile.status != ProfileStatus.DRAFT.value:
        pricing_profile_publish_total.labels(outcome="not_draft").inc()
        return ActionError(
            code="not_draft",
            message=f"Cannot publish: profile is {profile.status}, not DRAFT.",
        )

    outcome = validate_profile(db, user_id, profile)
    if not outcome.valid:
        pricing_profile_publish_total.labels(outcome="negative").inc()
        logger.info(
            "pricing_profile_publish_rejected",
            extra={"profile_id": profile_id, "negative_count": len(outcome.offending_titles)},
        )
        return _negative_error(outcome, "publish")

    if not set_profile_status(
        db, profile_id, user_id, ProfileStatus.DRAFT, ProfileStatus.COMPLETED
    ):
        db.rollback()
        pricing_profile_publish_total.labels(outcome="conflict").inc()
        logger.warning("pricing_profile_publish_conflict", extra={"profile_id": profile_id})
        return ActionError(
            code="conflict",
            message="Cannot publish: profile status changed concurrently. Reload and retry.",
        )

    db.commit()
    db.refresh(profile)

    pricing_profile_publish_total.labels(outcome="published").inc()
    logger.info("pricing_profile_published", extra={"profile_id": profile_id, "user_id": user_id})
    return ActionOk(data=profile)


# =============================================================================
# Profile management
# =============================================================================

_PRICING_FIELDS = ("based_on", "price_adjust_mode", "increment_mode")


def _note_completed_edit(profile: PricingProfile, target: str, **extra: object) -> None:
    """Record a pricing change on a published profile; such edits are not re-validated."""
    if profile.status != ProfileStatus.COMPLETED.value:
        return
    pricing_completed_profile_edits_total.labels(target=target).inc()
    logger.warning(
        "completed_pricing_profile_edited",
        extra={"profile_id": profile.id, "target": target, **extra},
    )


def list_profiles(
    db: Session, user_id: str, statuses: Iterable[ProfileStatus | str] | None = None
) -> list[PricingProfile]:
    """List the user's profiles, most recently updated first."""
    stmt = select(PricingProfile).where(PricingProfile.user_id == user_id)
    if statuses is not None:
        stmt = stmt.where(PricingProfile.status.in_([ProfileStatus(s).value for s in statuses]))
    stmt = stmt.order_by(PricingProfile.updated_at.desc())
    return list(db.execute(stmt).scalars().unique())


def update_profile(
    db: Session, user_id: str, profile_id: str, changes: Mapping[str, object]
) -> ActionResult:
    """Apply a partial update to a profile.

    Keys: name, description, based_on, price_adjust_mode, increment_mode, status.
    Completing a profile must go through publish_profile; any profile can be
    archived.
    """
    if not changes:
        return invalid("Empty patch")

    profile = get_profile(db, user_id, profile_id)
    if profile is None:
        return not_found()

    if "based_on" in changes and changes["based_on"] != profile.based_on:
        error = _check_based_on(db, user_id, str(changes["based_on"]), profile_id=profile.id)
        if error is not None:
            return error

    status = changes.get("status")
    if status is not None:
        status = ProfileStatus(status).value
        if status not in (profile.status, ProfileStatus.ARCHIVED.value):
            return invalid(
                f"Cannot change status from {profile.status} to {status}; use publish.",
                {"status": ["Only ARCHIVED can be set directly"]},
            )

    priced = sorted(k for k in _PRICING_FIELDS if k in changes)
    if priced:
        _note_completed_edit(profile, "profile", fields=priced)

    for key in ("name", "description", "based_on"):
        if key in changes:
            setattr(profile, key, changes[key])
    if "price_adjust_mode" in changes:
        profile.price_adjust_mode = PriceAdjustMode(changes["price_adjust_mode"]).value
    if "increment_mode" in changes:
        profile.increment_mode = IncrementMode(changes["increment_mode"]).value
    if status is not None:
        profile.status = status

    db.commit()
    db.refresh(profile)
    logger.info(
        "pricing_profile_updated",
        extra={"profile_id": profile_id, "fields": sorted(changes)},
    )
    return ActionOk(data=profile)


def delete_profile(db: Session, user_id: str, profile_id: str) -> ActionResult:
    """Delete a profile together with its items."""
    profile = get_profile(db, user_id, profile_id)
    if profile is None:
        return not_found()

    db.delete(profile)
    db.commit()
    logger.info("pricing_profile_deleted", extra={"profile_id": profile_id, "user_id": user_id})
    return ActionOk()


# =============================================================================
# Profile items
# =============================================================================


def list_items(db: Session, user_id: str, profile_id: str) -> list[ProductPricingProfile] | None:
    """List a profile's items, or None if the profile is not the user's."""
    profile = get_profile(db, user_id, profile_id)
    if profile is None:
        return None
    return list(profile.items)


def upsert_item(
    db: Session, user_id: str, profile_id: str, product_id: str, adjustment: object
) -> ActionResult:
    """Select a product in a profile or update its adjustment.

    Returns:
        ActionOk(data=item, created=<new row?>) or not_found

    """
    profile = get_profile(db, user_id, profile_id)
    if profile is None:
        return not_found()

    owns_product = db.execute(
        select(Product.id).where(Product.id == product_id, Product.user_id == user_id)
    ).first()
    if owns_product is None:
        return not_found("Product not found")

    item = db.execute(
        select(ProductPricingProfile).where(
            ProductPricingProfile.pricing_profile_id == profile_id,
            ProductPricingProfile.product_id == product_id,
        )
    ).scalar_one_or_none()

    _note_completed_edit(profile, "item", product_id=product_id)
    created = item is None
    if created:
        item = ProductPricingProfile(
            pricing_profile_id=profile_id,
            product_id=product_id,
            adjustment=to_decimal(adjustment),
        )
        db.add(item)
    else:
        item.adjustment = to_decimal(adjustment)

    db.commit()
    db.refresh(item)
    return ActionOk(data=item, created=created)


def _get_item(db: Session, profile_id: str, item_id: str) -> ProductPricingProfile | None:
    stmt = select(ProductPricingProfile).where(
        ProductPricingProfile.id == item_id,
        ProductPricingProfile.pricing_profile_id == profile_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def update_item(
    db: Session, user_id: str, profile_id: str, item_id: str, adjustment: object
) -> ActionResult:
    """Change the adjustment of an existing profile item."""
    profile = get_profile(db, user_id, profile_id)
    if profile is None:
        return not_found()

    item = _get_item(db, profile_id, item_id)
    if item is None:
        return not_found("Item not found")

    _note_completed_edit(profile, "item", item_id=item_id)
    item.adjustment = to_decimal(adjustment)
    db.commit()
    db.refresh(item)
    return ActionOk(data=item)


def delete_item(db: Session, user_id: str, profile_id: str, item_id: str) -> ActionResult:
    """Remove a product from a profile."""
    profile = get_profile(db, user_id, profile_id)
    if profile is None:
        return not_found()

    item = _get_item(db, profile_id, item_id)
    if item is None:
        return not_found("Item not found")

    _note_completed_edit(profile, "item", item_id=item_id)
    db.delete(item)
    db.commit()
    return ActionOk()
