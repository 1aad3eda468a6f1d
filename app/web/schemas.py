"""Pydantic schemas for API requests.

Field names follow the camelCase wire format; `to_changes()` helpers return
snake_case dicts for the service layer.
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)

from app.domain.pricing.adjustments import (
    MONEY_PATTERN,
    IncrementMode,
    PriceAdjustMode,
    ProfileStatus,
)

MoneyStr = Annotated[str, StringConstraints(strip_whitespace=True, pattern=MONEY_PATTERN)]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
ProfileName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2)]

_SNAKE = {
    "basedOn": "based_on",
    "priceAdjustMode": "price_adjust_mode",
    "incrementMode": "increment_mode",
    "categoryId": "category_id",
    "subcategoryId": "subcategory_id",
    "segmentId": "segment_id",
    "globalWholesalePrice": "global_wholesale_price",
}


class _Patch(BaseModel):
    """Partial update; at least one field must be present."""

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _not_empty(self):
        if not self.model_fields_set:
            raise ValueError("Empty patch")
        nulls = sorted(f for f in self.model_fields_set if getattr(self, f) is None)
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self

    def to_changes(self) -> dict[str, Any]:
        data = self.model_dump(exclude_unset=True, exclude_none=True, mode="json")
        return {_SNAKE.get(k, k): v for k, v in data.items()}


def _canonical_product_keys(adjustments: dict[str, str]) -> dict[str, str]:
    """Key adjustments by canonical (lower-case, hyphenated) product UUID."""
    canonical = {}
    for key, value in adjustments.items():
        try:
            canonical[str(UUID(key))] = value
        except ValueError:
            raise ValueError(f"Adjustment key is not a product id: {key!r}") from None
    return canonical


# Pricing profile schemas
class ProfileItemIn(BaseModel):
    """Product selected in a profile with its adjustment."""

    productId: UUID
    adjustment: MoneyStr


class ProfileItemPatch(BaseModel):
    adjustment: MoneyStr


class PricingProfileCreate(BaseModel):
    """New DRAFT pricing profile.

    Products may be sent as `items` or as `productIds` plus an `adjustments`
    map (missing adjustments default to "0").
    """

    name: ProfileName
    description: NonEmptyStr
    basedOn: NonEmptyStr
    priceAdjustMode: PriceAdjustMode
    incrementMode: IncrementMode
    items: list[ProfileItemIn] = Field(default_factory=list)
    productIds: list[UUID] = Field(default_factory=list)
    adjustments: dict[str, MoneyStr] = Field(default_factory=dict)

    @field_validator("adjustments")
    @classmethod
    def _canonical_adjustments(cls, value: dict[str, str]) -> dict[str, str]:
        return _canonical_product_keys(value)

    def selected_adjustments(self) -> dict[str, str]:
        """Ordered product id -> adjustment for every selected product."""
        selected = {str(i.productId): i.adjustment for i in self.items}
        for pid in map(str, self.productIds):
            selected.setdefault(pid, self.adjustments.get(pid, "0"))
        return selected


class PricingProfileUpdate(_Patch):
    name: ProfileName | None = None
    description: NonEmptyStr | None = None
    basedOn: NonEmptyStr | None = None
    priceAdjustMode: PriceAdjustMode | None = None
    incrementMode: IncrementMode | None = None
    status: ProfileStatus | None = None


class PreviewRequest(BaseModel):
    """Ad-hoc preview of an unsaved profile definition."""

    basedOn: NonEmptyStr
    priceAdjustMode: PriceAdjustMode
    incrementMode: IncrementMode
    productIds: list[UUID] = Field(default_factory=list)
    adjustments: dict[str, MoneyStr] = Field(default_factory=dict)

    @field_validator("adjustments")
    @classmethod
    def _canonical_adjustments(cls, value: dict[str, str]) -> dict[str, str]:
        return _canonical_product_keys(value)


# Catalog schemas
class ProductCreate(BaseModel):
    title: NonEmptyStr
    sku: NonEmptyStr
    brand: NonEmptyStr
    categoryId: UUID
    subcategoryId: UUID
    segmentId: UUID
    globalWholesalePrice: MoneyStr

    def to_fields(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        return {_SNAKE.get(k, k): v for k, v in data.items()}


class ProductUpdate(_Patch):
    title: NonEmptyStr | None = None
    sku: NonEmptyStr | None = None
    brand: NonEmptyStr | None = None
    categoryId: UUID | None = None
    subcategoryId: UUID | None = None
    segmentId: UUID | None = None
    globalWholesalePrice: MoneyStr | None = None


class CategoryCreate(BaseModel):
    name: NonEmptyStr


class SubcategoryCreate(BaseModel):
    categoryId: UUID
    name: NonEmptyStr


class SegmentCreate(BaseModel):
    subcategoryId: UUID
    name: NonEmptyStr


class RenameRequest(BaseModel):
    name: NonEmptyStr
