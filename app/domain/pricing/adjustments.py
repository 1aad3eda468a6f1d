"""Pricing profile vocabulary and the adjustment formula."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, NamedTuple

ROOT_MARKER = "globalWholesalePrice"

# Wire format for base prices and adjustments: non-negative, up to 4 decimals
MONEY_PATTERN = r"^\d+(\.\d{1,4})?$"
MONEY_RE = re.compile(MONEY_PATTERN)

ZERO = Decimal("0")


class PriceAdjustMode(str, Enum):
    """How an adjustment value is interpreted."""

    FIXED = "FIXED"  # absolute amount
    DYNAMIC = "DYNAMIC"  # percentage of the based-on price


class IncrementMode(str, Enum):
    """Direction an adjustment moves the price."""

    INCREASE = "INCREASE"
    DECREASE = "DECREASE"


class ProfileStatus(str, Enum):
    """Lifecycle states of a pricing profile."""

    DRAFT = "DRAFT"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class AdjustmentResult(NamedTuple):
    delta: Decimal
    new_price: Decimal


def is_money_string(value: str) -> bool:
    """Check a string against the money wire format."""
    return bool(MONEY_RE.match(value))


def to_decimal(value: Any) -> Decimal:
    """Coerce a stored or submitted amount to Decimal.

    None, unparsable strings, NaN and infinities become 0 so they never leak
    into displayed or stored prices.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return ZERO
    if not d.is_finite():
        return ZERO
    return d


def apply_adjustment(
    base: Any,
    adjustment: Any,
    mode: PriceAdjustMode | str,
    increment: IncrementMode | str,
) -> AdjustmentResult:
    """Apply one profile adjustment to a based-on price.

    Formula:
        delta = base * adjustment / 100   (DYNAMIC)
        delta = adjustment                (FIXED)
        new_price = base - delta          (DECREASE)
        new_price = base + delta          (INCREASE)

    Args:
        base: Based-on price
        adjustment: Adjustment magnitude (amount or percent)
        mode: FIXED or DYNAMIC
        increment: INCREASE or DECREASE

    Returns:
        AdjustmentResult(delta, new_price)

    """
    base_d = to_decimal(base)
    adj_d = to_decimal(adjustment)

    if PriceAdjustMode(mode) is PriceAdjustMode.DYNAMIC:
        delta = base_d * (adj_d / Decimal(100))
    else:
        delta = adj_d

    if IncrementMode(increment) is IncrementMode.DECREASE:
        new_price = base_d - delta
    else:
        new_price = base_d + delta

    return AdjustmentResult(delta=delta, new_price=new_price)
