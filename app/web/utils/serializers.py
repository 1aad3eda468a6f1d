"""JSON shapes for API responses."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from fastapi.responses import JSONResponse

from app.db.models import Category, PricingProfile, Product, ProductPricingProfile, Segment, Subcategory
from app.domain.pricing.resolver import PriceRow
from app.services.pricing_profiles import ProfilePreview
from app.services.results import ActionError

_QUANTUM = Decimal("0.0001")

ERROR_STATUS = {
    "invalid": 400,
    "negative": 400,
    "not_found": 404,
    "not_draft": 409,
    "conflict": 409,
}


def money(value: Decimal | None) -> str | None:
    """Render a Decimal as a plain string with at most 4 decimals."""
    if value is None:
        return None
    q = Decimal(value).quantize(_QUANTUM, rounding=ROUND_HALF_UP)
    text = format(q, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def error_response(error: ActionError) -> JSONResponse:
    body: dict[str, Any] = {"ok": False, "code": error.code, "message": error.message}
    if error.field_errors:
        body["fieldErrors"] = error.field_errors
    if error.offending_titles:
        body["offendingTitles"] = error.offending_titles
    return JSONResponse(status_code=ERROR_STATUS.get(error.code, 400), content=body)


def product_summary(p: Product) -> dict:
    return {
        "id": p.id,
        "title": p.title,
        "sku": p.sku,
        "brand": p.brand,
        "globalWholesalePrice": money(p.global_wholesale_price),
    }


def product_to_dict(p: Product) -> dict:
    return {
        **product_summary(p),
        "userId": p.user_id,
        "categoryId": p.category_id,
        "subcategoryId": p.subcategory_id,
        "segmentId": p.segment_id,
        "createdAt": _iso(p.created_at),
        "updatedAt": _iso(p.updated_at),
        "category": {"id": p.category.id, "name": p.category.name} if p.category else None,
        "subcategory": (
            {"id": p.subcategory.id, "name": p.subcategory.name} if p.subcategory else None
        ),
        "segment": {"id": p.segment.id, "name": p.segment.name} if p.segment else None,
    }


def taxonomy_to_dict(row: Category | Subcategory | Segment) -> dict:
    data = {"id": row.id, "name": row.name}
    if isinstance(row, Subcategory):
        data["categoryId"] = row.category_id
    elif isinstance(row, Segment):
        data["subcategoryId"] = row.subcategory_id
    return data


def item_to_dict(item: ProductPricingProfile, with_product: bool = False) -> dict:
    data = {
        "id": item.id,
        "pricingProfileId": item.pricing_profile_id,
        "productId": item.product_id,
        "adjustment": money(item.adjustment),
        "createdAt": _iso(item.created_at),
        "updatedAt": _iso(item.updated_at),
    }
    if with_product:
        data["product"] = product_summary(item.product)
    return data


def profile_to_dict(p: PricingProfile, with_items: bool = False) -> dict:
    data = {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "basedOn": p.based_on,
        "priceAdjustMode": p.price_adjust_mode,
        "incrementMode": p.increment_mode,
        "status": p.status,
        "userId": p.user_id,
        "createdAt": _iso(p.created_at),
        "updatedAt": _iso(p.updated_at),
    }
    if with_items:
        data["productPricingProfiles"] = [item_to_dict(i, with_product=True) for i in p.items]
    return data


def rows_to_dict(rows: Mapping[str, PriceRow]) -> dict:
    return {
        pid: {"base": money(r.base), "delta": money(r.delta), "newPrice": money(r.new_price)}
        for pid, r in rows.items()
    }


def preview_to_dict(preview: ProfilePreview) -> dict:
    return {
        "profile": profile_to_dict(preview.profile),
        "hasNegative": preview.has_negative,
        "canPublish": preview.can_publish,
        "rows": [
            {
                "id": line.item_id,
                "productId": line.product_id,
                "title": line.title,
                "sku": line.sku,
                "brand": line.brand,
                "category": line.category,
                "base": money(line.base),
                "adjustment": money(line.adjustment),
                "delta": money(line.delta),
                "newPrice": money(line.new_price),
            }
            for line in preview.lines
        ],
    }
