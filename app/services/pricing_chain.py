"""Chain loader: fetch the ancestor profiles a resolution needs."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.orm import Session

from app.core.metrics import pricing_chain_truncated_total
from app.domain.pricing.adjustments import ROOT_MARKER, IncrementMode, PriceAdjustMode
from app.domain.pricing.resolver import DEFAULT_MAX_DEPTH, ProfileChainNode
from app.services.catalog_store import get_profile, get_profile_item_adjustments

logger = logging.getLogger(__name__)


def load_chain(
    db: Session,
    user_id: str,
    root_ref: str,
    product_ids: Iterable[str],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> dict[str, ProfileChainNode]:
    """Walk based-on pointers from `root_ref` and load each profile met.

    The walk stops at the root marker, at a profile that does not exist for this
    user, at a repeated profile (cycle) or after `max_depth` hops. Stopping early
    is not an error: unloaded ancestors resolve to the raw base price.

    Args:
        db: Database session
        user_id: Owner scope for every profile read
        root_ref: Root marker or profile id to start from
        product_ids: Products whose adjustments are needed
        max_depth: Maximum number of hops

    Returns:
        Dict profile_id -> ProfileChainNode

    """
    ids = set(product_ids)
    chain: dict[str, ProfileChainNode] = {}
    visited: set[str] = set()
    current = root_ref
    depth = 0

    while current != ROOT_MARKER:
        if depth > max_depth:
            _truncated("depth", root_ref, current, depth)
            break
        if current in visited:
            _truncated("cycle", root_ref, current, depth)
            break
        visited.add(current)

        profile = get_profile(db, user_id, current)
        if profile is None:
            _truncated("missing", root_ref, current, depth)
            break

        chain[profile.id] = ProfileChainNode(
            based_on=profile.based_on,
            price_adjust_mode=PriceAdjustMode(profile.price_adjust_mode),
            increment_mode=IncrementMode(profile.increment_mode),
            adjustments_by_product_id=get_profile_item_adjustments(db, profile.id, ids),
        )

        current = profile.based_on
        depth += 1

    return chain


def _truncated(reason: str, root_ref: str, at: str, depth: int) -> None:
    pricing_chain_truncated_total.labels(reason=reason).inc()
    logger.debug(
        "pricing_chain_truncated",
        extra={"reason": reason, "root_ref": root_ref, "at": at, "depth": depth},
    )
