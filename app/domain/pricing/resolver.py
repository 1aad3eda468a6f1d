"""Based-on chain resolution for pricing profiles.

A profile's price for a product is its based-on price with the profile's own
adjustment applied. The based-on price is either the raw wholesale price (root
marker) or the resolved price of the parent profile, recursively.

Products a profile does not select pass through it unchanged. Cycles, chains
deeper than the bound and ancestors missing from the loaded chain resolve to the
raw base price instead of failing.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import NamedTuple

from app.domain.pricing.adjustments import (
    ROOT_MARKER,
    IncrementMode,
    PriceAdjustMode,
    apply_adjustment,
    to_decimal,
)

DEFAULT_MAX_DEPTH = 10


@dataclass(frozen=True)
class ProfileChainNode:
    """One ancestor profile as seen by the resolver."""

    based_on: str
    price_adjust_mode: PriceAdjustMode
    increment_mode: IncrementMode
    adjustments_by_product_id: Mapping[str, Decimal] = field(default_factory=dict)


class PriceRow(NamedTuple):
    base: Decimal
    delta: Decimal
    new_price: Decimal


ProfileChain = Mapping[str, ProfileChainNode]


def resolve_based_on_price(
    based_on: str,
    product_id: str,
    raw_base_price: Decimal,
    chain: ProfileChain,
    depth: int = 0,
    visited: frozenset[str] = frozenset(),
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Decimal:
    """Resolve the price a product has in profile `based_on`.

    Args:
        based_on: Root marker or profile id to resolve through
        product_id: Product being priced
        raw_base_price: Product's global wholesale price
        chain: Profiles loaded by the chain loader, keyed by id
        depth: Current recursion depth
        visited: Profiles already entered on this path
        max_depth: Depth bound; beyond it the raw price is used

    Returns:
        Resolved price (Decimal)

    """
    if based_on == ROOT_MARKER:
        return raw_base_price

    if depth > max_depth or based_on in visited:
        return raw_base_price

    node = chain.get(based_on)
    if node is None:
        return raw_base_price

    ancestor_price = resolve_based_on_price(
        node.based_on,
        product_id,
        raw_base_price,
        chain,
        depth=depth + 1,
        visited=visited | {based_on},
        max_depth=max_depth,
    )

    adjustment = node.adjustments_by_product_id.get(product_id)
    if adjustment is None:
        # Unselected: inherit the parent's price
        return ancestor_price

    return apply_adjustment(
        ancestor_price, adjustment, node.price_adjust_mode, node.increment_mode
    ).new_price


def compute_price_rows(
    based_on: str,
    mode: PriceAdjustMode | str,
    increment: IncrementMode | str,
    base_prices: Mapping[str, Decimal],
    adjustments: Mapping[str, object],
    chain: ProfileChain,
    product_ids: Iterable[str] | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> dict[str, PriceRow]:
    """Compute base/delta/new price for every product.

    Unlike ancestors, the profile being previewed always applies an adjustment:
    a product with no explicit value gets "0".

    Args:
        based_on: Root marker or parent profile id of the previewed profile
        mode: Previewed profile's adjust mode
        increment: Previewed profile's increment mode
        base_prices: Raw wholesale price per product id
        adjustments: Explicit adjustment per product id (strings or Decimals)
        chain: Loaded ancestor chain
        product_ids: Output order; defaults to base_prices order
        max_depth: Chain depth bound

    Returns:
        Dict product_id -> PriceRow, in product order

    """
    ids = list(base_prices) if product_ids is None else list(product_ids)
    rows: dict[str, PriceRow] = {}

    for product_id in ids:
        if product_id in rows or product_id not in base_prices:
            continue
        raw = to_decimal(base_prices[product_id])
        base = resolve_based_on_price(based_on, product_id, raw, chain, max_depth=max_depth)
        result = apply_adjustment(base, adjustments.get(product_id, "0"), mode, increment)
        rows[product_id] = PriceRow(base=base, delta=result.delta, new_price=result.new_price)

    return rows


def find_negative(rows: Mapping[str, PriceRow]) -> list[str]:
    """Return product ids whose resolved new price is below zero."""
    return [pid for pid, row in rows.items() if row.new_price < 0]
