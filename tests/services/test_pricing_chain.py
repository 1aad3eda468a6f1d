"""Tests for the ancestor chain loader."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from app.domain.pricing.adjustments import ROOT_MARKER, PriceAdjustMode
from app.services.pricing_chain import load_chain
from conftest import make_product, make_profile, make_user


def test_root_marker_loads_nothing(db: Session, user):
    assert load_chain(db, user.id, ROOT_MARKER, ["p1"]) == {}


def test_loads_every_ancestor(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "50")
    a = make_profile(db, user, mode="DYNAMIC", adjustments={p1.id: "10"}, name="A")
    b = make_profile(db, user, based_on=a.id, adjustments={p1.id: "1"}, name="B")

    chain = load_chain(db, user.id, b.id, [p1.id])

    assert set(chain) == {a.id, b.id}
    assert chain[a.id].based_on == ROOT_MARKER
    assert chain[a.id].price_adjust_mode is PriceAdjustMode.DYNAMIC
    assert chain[a.id].adjustments_by_product_id == {p1.id: Decimal("10")}
    assert chain[b.id].based_on == a.id


def test_only_requested_products_are_loaded(db: Session, user):
    p1 = make_product(db, user, "Shiraz", "50")
    p2 = make_product(db, user, "Merlot", "40")
    a = make_profile(db, user, adjustments={p1.id: "1", p2.id: "2"})

    chain = load_chain(db, user.id, a.id, [p2.id])

    assert chain[a.id].adjustments_by_product_id == {p2.id: Decimal("2")}


def test_cycle_stops_loading(db: Session, user):
    a = make_profile(db, user, name="A")
    b = make_profile(db, user, based_on=a.id, name="B")
    a.based_on = b.id
    db.commit()

    chain = load_chain(db, user.id, a.id, [])

    assert set(chain) == {a.id, b.id}


def test_missing_and_foreign_profiles_stop_loading(db: Session, user):
    other = make_user(db, "someone@example.com")
    foreign = make_profile(db, other, name="Foreign")
    mine = make_profile(db, user, based_on=foreign.id, name="Mine")

    chain = load_chain(db, user.id, mine.id, [])

    assert set(chain) == {mine.id}
    assert load_chain(db, user.id, "does-not-exist", []) == {}


def test_depth_bound(db: Session, user):
    parent = ROOT_MARKER
    ids = []
    for i in range(15):
        profile = make_profile(db, user, based_on=parent, name=f"P{i}")
        ids.append(profile.id)
        parent = profile.id

    # Start from the deepest profile and walk towards the root
    chain = load_chain(db, user.id, ids[-1], [], max_depth=3)

    assert len(chain) == 4
    assert set(chain) == set(ids[-4:])


# === Storage helpers ===


def test_base_price_lookup_scoped_to_user(db: Session, user):
    from app.services.catalog_store import get_product_base_price, get_product_base_prices

    other = make_user(db, "other@example.com")
    mine = make_product(db, user, "Shiraz", "12.3456")
    theirs = make_product(db, other, "Merlot", "9")

    assert get_product_base_price(db, user.id, mine.id) == Decimal("12.3456")
    assert get_product_base_price(db, user.id, theirs.id) is None
    assert get_product_base_prices(db, user.id, []) == {}


def test_set_profile_status_is_conditional(db: Session, user):
    from app.domain.pricing.adjustments import ProfileStatus
    from app.services.catalog_store import set_profile_status

    profile = make_profile(db, user)

    assert set_profile_status(db, profile.id, user.id, ProfileStatus.DRAFT, ProfileStatus.COMPLETED)
    db.commit()
    assert not set_profile_status(
        db, profile.id, user.id, ProfileStatus.DRAFT, ProfileStatus.COMPLETED
    )
