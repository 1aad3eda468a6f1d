"""Tests for based-on chain resolution."""

from __future__ import annotations

from decimal import Decimal

from app.domain.pricing.adjustments import ROOT_MARKER, IncrementMode, PriceAdjustMode
from app.domain.pricing.resolver import (
    ProfileChainNode,
    compute_price_rows,
    find_negative,
    resolve_based_on_price,
)


def node(based_on, mode="FIXED", increment="INCREASE", **adjustments):
    return ProfileChainNode(
        based_on=based_on,
        price_adjust_mode=PriceAdjustMode(mode),
        increment_mode=IncrementMode(increment),
        adjustments_by_product_id={pid: Decimal(v) for pid, v in adjustments.items()},
    )


def test_root_marker_returns_raw_price():
    assert resolve_based_on_price(ROOT_MARKER, "p1", Decimal("50"), {}) == Decimal("50")


def test_two_level_chain():
    """50 +10% -> 55 in A; B based on A applies -10% -> 49.50."""
    chain = {"A": node(ROOT_MARKER, "DYNAMIC", "INCREASE", p1="10")}

    rows = compute_price_rows("A", "DYNAMIC", "DECREASE", {"p1": Decimal("50")}, {"p1": "10"}, chain)

    assert rows["p1"].base == Decimal("55")
    assert rows["p1"].delta == Decimal("5.5")
    assert rows["p1"].new_price == Decimal("49.50")


def test_unselected_ancestor_passes_price_through():
    """A selects p1 only; p2 keeps its raw 50 through A, then +3 -> 53.00."""
    chain = {"A": node(ROOT_MARKER, "FIXED", "INCREASE", p1="10")}

    rows = compute_price_rows("A", "FIXED", "INCREASE", {"p2": Decimal("50")}, {"p2": "3"}, chain)

    assert rows["p2"].base == Decimal("50")
    assert rows["p2"].new_price == Decimal("53.00")


def test_three_level_chain_mixed_modes():
    chain = {
        "A": node(ROOT_MARKER, "FIXED", "INCREASE", p1="10"),  # 100 -> 110
        "B": node("A", "DYNAMIC", "DECREASE", p1="50"),  # 110 -> 55
    }

    assert resolve_based_on_price("B", "p1", Decimal("100"), chain) == Decimal("55")


def test_cycle_terminates_and_falls_back_to_raw():
    chain = {
        "A": node("B", p1="1"),
        "B": node("A", p1="1"),
    }

    price = resolve_based_on_price("A", "p1", Decimal("10"), chain)

    # Each profile is entered at most once; the repeated entry yields raw 10
    assert price == Decimal("12")


def test_self_loop_terminates():
    chain = {"A": node("A", p1="5")}

    assert resolve_based_on_price("A", "p1", Decimal("10"), chain) == Decimal("15")


def test_missing_ancestor_resolves_to_raw():
    chain = {"A": node("deleted-profile", p1="2")}

    assert resolve_based_on_price("A", "p1", Decimal("10"), chain) == Decimal("12")
    assert resolve_based_on_price("unknown", "p1", Decimal("10"), chain) == Decimal("10")


def test_depth_bound_caps_resolution():
    # P0 -> P1 -> ... -> P14 -> root, each adds 1
    chain = {f"P{i}": node(f"P{i + 1}" if i < 14 else ROOT_MARKER, p1="1") for i in range(15)}

    unbounded = resolve_based_on_price("P0", "p1", Decimal("0"), chain, max_depth=100)
    bounded = resolve_based_on_price("P0", "p1", Decimal("0"), chain, max_depth=10)

    assert unbounded == Decimal("15")
    # Depths 0..10 apply; depth 11 falls back to raw
    assert bounded == Decimal("11")


def test_preview_missing_adjustment_defaults_to_zero():
    rows = compute_price_rows(ROOT_MARKER, "FIXED", "DECREASE", {"p1": Decimal("9.99")}, {}, {})

    assert rows["p1"].delta == 0
    assert rows["p1"].new_price == Decimal("9.99")


def test_rows_skip_unknown_products_and_keep_order():
    base = {"p1": Decimal("1"), "p2": Decimal("2"), "p3": Decimal("3")}

    rows = compute_price_rows(
        ROOT_MARKER, "FIXED", "INCREASE", base, {}, {}, product_ids=["p3", "ghost", "p1", "p3"]
    )

    assert list(rows) == ["p3", "p1"]


def test_result_independent_of_chain_insertion_order():
    a = node(ROOT_MARKER, "DYNAMIC", "INCREASE", p1="20")
    b = node("A", "FIXED", "DECREASE", p1="4")
    forward = {"A": a, "B": b}
    backward = {"B": b, "A": a}

    assert resolve_based_on_price("B", "p1", Decimal("10"), forward) == resolve_based_on_price(
        "B", "p1", Decimal("10"), backward
    )


def test_find_negative():
    rows = compute_price_rows(
        ROOT_MARKER,
        "FIXED",
        "DECREASE",
        {"p1": Decimal("5"), "p2": Decimal("20")},
        {"p1": "6", "p2": "6"},
        {},
    )

    assert find_negative(rows) == ["p1"]
