"""Tests for pricing profile preview, validation and lifecycle."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.models import PricingProfile, ProductPricingProfile
from app.domain.pricing.adjustments import ROOT_MARKER
from app.services.pricing_profiles import (
    compute_preview,
    compute_profile_preview,
    create_draft_profile,
    delete_item,
    delete_profile,
    list_items,
    list_profiles,
    publish_profile,
    update_item,
    update_profile,
    upsert_item,
    validate_no_negatives,
)
from conftest import make_product, make_profile, make_user


def _count(db: Session, model) -> int:
    return db.execute(select(func.count()).select_from(model)).scalar()


def _create(db: Session, user, adjustments, **overrides):
    fields = {
        "name": "Summer",
        "description": "Summer list",
        "based_on": ROOT_MARKER,
        "price_adjust_mode": "FIXED",
        "increment_mode": "INCREASE",
        "adjustments": adjustments,
    }
    fields.update(overrides)
    return create_draft_profile(db, user.id, **fields)


# === Preview ===


def test_compute_preview_root(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "10.00")

    rows = compute_preview(db, user.id, ROOT_MARKER, "FIXED", "INCREASE", [p1.id], {p1.id: "2.50"})

    assert rows[p1.id].base == Decimal("10")
    assert rows[p1.id].delta == Decimal("2.50")
    assert rows[p1.id].new_price == Decimal("12.50")


def test_compute_preview_through_chain(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "50")
    p2 = make_product(db, user, "Merlot", "50")
    parent = make_profile(db, user, mode="DYNAMIC", adjustments={p1.id: "10"})

    rows = compute_preview(
        db, user.id, parent.id, "DYNAMIC", "DECREASE", [p1.id, p2.id], {p1.id: "10", p2.id: "10"}
    )

    assert rows[p1.id].base == Decimal("55")
    assert rows[p1.id].new_price == Decimal("49.50")
    # p2 is not selected in the parent: base stays the raw price
    assert rows[p2.id].base == Decimal("50")
    assert rows[p2.id].new_price == Decimal("45")


def test_compute_preview_ignores_foreign_products(db: Session, user):
    other = make_user(db, "other@example.com")
    foreign = make_product(db, other, "Foreign", "10")

    assert compute_preview(db, user.id, ROOT_MARKER, "FIXED", "INCREASE", [foreign.id]) == {}


def test_compute_preview_is_idempotent(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "33.3333")
    parent = make_profile(db, user, mode="DYNAMIC", adjustments={p1.id: "7"})
    args = (db, user.id, parent.id, "DYNAMIC", "INCREASE", [p1.id], {p1.id: "3"})

    assert compute_preview(*args) == compute_preview(*args)


def test_stored_preview_uses_current_base_price(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "10")
    profile = make_profile(db, user, adjustments={p1.id: "1"})

    first = compute_profile_preview(db, user.id, profile.id)
    p1.global_wholesale_price = Decimal("20")
    db.commit()
    second = compute_profile_preview(db, user.id, profile.id)

    assert first.lines[0].new_price == Decimal("11")
    assert second.lines[0].new_price == Decimal("21")
    assert second.lines[0].title == "Shiraz"
    assert second.can_publish is True


def test_stored_preview_flags_negative(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "1")
    profile = make_profile(db, user, increment="DECREASE", adjustments={p1.id: "2"})

    preview = compute_profile_preview(db, user.id, profile.id)

    assert preview.has_negative is True
    assert preview.can_publish is False


def test_stored_preview_not_found_for_other_user(db: Session, user):
    other = make_user(db, "other@example.com")
    profile = make_profile(db, other)

    assert compute_profile_preview(db, user.id, profile.id) is None


# === Validation ===


def test_validate_no_negatives_reports_titles(db: Session, user):
    p1 = make_product(db, user, "Cheap Rosé", "5")
    p2 = make_product(db, user, "Pricey Pinot", "50")

    outcome = validate_no_negatives(
        db, user.id, ROOT_MARKER, "FIXED", "DECREASE", [p1.id, p2.id], {p1.id: "6", p2.id: "6"}
    )

    assert outcome.valid is False
    assert outcome.offending_titles == ["Cheap Rosé"]


# === Create ===


def test_create_draft_profile(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "10")
    p2 = make_product(db, user, "Merlot", "20")

    result = _create(db, user, {p1.id: "2.5", p2.id: "0"})

    assert result.ok and result.created
    profile = result.data
    assert profile.status == "DRAFT"
    assert {i.product_id: i.adjustment for i in profile.items} == {
        p1.id: Decimal("2.5"),
        p2.id: Decimal("0"),
    }


def test_create_rejects_negative_without_persisting(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "5")

    result = _create(db, user, {p1.id: "6"}, increment_mode="DECREASE")

    assert not result.ok
    assert result.code == "negative"
    assert result.offending_titles == ["Shiraz"]
    assert "1 item" in result.message
    assert _count(db, PricingProfile) == 0
    assert _count(db, ProductPricingProfile) == 0


def test_create_rejects_unknown_products(db: Session, user):
    result = _create(db, user, {"not-a-product": "1"})

    assert result.code == "invalid"
    assert "productIds" in result.field_errors
    assert _count(db, PricingProfile) == 0


def test_create_rejects_unknown_parent(db: Session, user):
    result = _create(db, user, {}, based_on="missing-profile")

    assert result.code == "invalid"
    assert "basedOn" in result.field_errors


def test_create_rejects_archived_parent(db: Session, user):
    parent = make_profile(db, user, status="ARCHIVED")

    result = _create(db, user, {}, based_on=parent.id)

    assert result.code == "invalid"


def test_create_on_top_of_completed_parent(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "50")
    parent = make_profile(db, user, status="COMPLETED", mode="DYNAMIC", adjustments={p1.id: "10"})

    result = _create(
        db, user, {p1.id: "10"}, based_on=parent.id, price_adjust_mode="DYNAMIC",
        increment_mode="DECREASE",
    )

    assert result.ok
    preview = compute_profile_preview(db, user.id, result.data.id)
    assert preview.lines[0].new_price == Decimal("49.50")


# === Publish ===


def test_publish_draft(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "10")
    profile = make_profile(db, user, adjustments={p1.id: "1"})

    result = publish_profile(db, user.id, profile.id)

    assert result.ok
    assert result.data.status == "COMPLETED"


def test_publish_twice_is_not_draft(db: Session, user):
    profile = make_profile(db, user)
    assert publish_profile(db, user.id, profile.id).ok

    result = publish_profile(db, user.id, profile.id)

    assert result.code == "not_draft"
    assert "COMPLETED" in result.message


def test_publish_blocked_when_prices_went_negative(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "10")
    result = _create(db, user, {p1.id: "8"}, increment_mode="DECREASE")
    assert result.ok

    # Base price drops after the draft was created
    p1.global_wholesale_price = Decimal("5")
    db.commit()

    published = publish_profile(db, user.id, result.data.id)

    assert published.code == "negative"
    assert published.offending_titles == ["Shiraz"]
    db.expire_all()
    assert db.get(PricingProfile, result.data.id).status == "DRAFT"


def test_publish_blocked_by_ancestor_change(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "10")
    parent = make_profile(db, user, status="COMPLETED", adjustments={p1.id: "0"})
    child = make_profile(
        db, user, based_on=parent.id, increment="DECREASE", adjustments={p1.id: "8"}
    )

    # Parent now lowers the price below what the child can absorb
    parent.increment_mode = "DECREASE"
    parent.items[0].adjustment = Decimal("5")
    db.commit()

    assert publish_profile(db, user.id, child.id).code == "negative"


def test_publish_not_found_for_other_user(db: Session, user):
    other = make_user(db, "other@example.com")
    profile = make_profile(db, other)

    result = publish_profile(db, user.id, profile.id)

    assert result.code == "not_found"
    db.expire_all()
    assert db.get(PricingProfile, profile.id).status == "DRAFT"


def test_publish_conflict_when_status_changes_concurrently(db: Session, user):
    profile = make_profile(db, user)

    with patch("app.services.pricing_profiles.set_profile_status", return_value=False):
        result = publish_profile(db, user.id, profile.id)

    assert result.code == "conflict"
    db.expire_all()
    assert db.get(PricingProfile, profile.id).status == "DRAFT"


# === Management ===


def test_list_profiles_filters_by_status(db: Session, user):
    make_profile(db, user, name="Draft")
    make_profile(db, user, status="COMPLETED", name="Done")
    other = make_user(db, "other@example.com")
    make_profile(db, other, name="Foreign")

    assert {p.name for p in list_profiles(db, user.id)} == {"Draft", "Done"}
    assert [p.name for p in list_profiles(db, user.id, statuses=["COMPLETED"])] == ["Done"]


def test_update_profile_fields(db: Session, user):
    profile = make_profile(db, user)

    result = update_profile(db, user.id, profile.id, {"name": "Renamed", "increment_mode": "DECREASE"})

    assert result.ok
    assert result.data.name == "Renamed"
    assert result.data.increment_mode == "DECREASE"


def test_update_profile_rejects_self_reference(db: Session, user):
    profile = make_profile(db, user)

    result = update_profile(db, user.id, profile.id, {"based_on": profile.id})

    assert result.code == "invalid"
    assert "basedOn" in result.field_errors


def test_update_profile_status_only_to_archived(db: Session, user):
    profile = make_profile(db, user)

    assert update_profile(db, user.id, profile.id, {"status": "COMPLETED"}).code == "invalid"
    assert update_profile(db, user.id, profile.id, {"status": "ARCHIVED"}).data.status == "ARCHIVED"


def test_update_profile_empty_patch(db: Session, user):
    profile = make_profile(db, user)

    assert update_profile(db, user.id, profile.id, {}).code == "invalid"


def test_delete_profile_removes_items(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "10")
    profile = make_profile(db, user, adjustments={p1.id: "1"})

    assert delete_profile(db, user.id, profile.id).ok
    assert _count(db, PricingProfile) == 0
    assert _count(db, ProductPricingProfile) == 0
    assert delete_profile(db, user.id, profile.id).code == "not_found"


def test_item_upsert_update_delete(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "10")
    profile = make_profile(db, user)

    created = upsert_item(db, user.id, profile.id, p1.id, "1.5")
    again = upsert_item(db, user.id, profile.id, p1.id, "2")

    assert created.created is True
    assert again.created is False
    assert again.data.id == created.data.id
    assert again.data.adjustment == Decimal("2")

    updated = update_item(db, user.id, profile.id, created.data.id, "3.25")
    assert updated.data.adjustment == Decimal("3.25")
    assert [i.id for i in list_items(db, user.id, profile.id)] == [created.data.id]

    assert delete_item(db, user.id, profile.id, created.data.id).ok
    assert list_items(db, user.id, profile.id) == []
    assert delete_item(db, user.id, profile.id, created.data.id).message == "Item not found"


def test_item_upsert_rejects_foreign_product(db: Session, user):
    other = make_user(db, "other@example.com")
    foreign = make_product(db, other, "Foreign", "10")
    profile = make_profile(db, user)

    result = upsert_item(db, user.id, profile.id, foreign.id, "1")

    assert result.code == "not_found"
    assert result.message == "Product not found"
    assert list_items(db, other.id, profile.id) is None
