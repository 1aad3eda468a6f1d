"""Pricing profiles API.

Endpoints:
- GET /api/pricing-profiles - List profiles (optional status filter)
- POST /api/pricing-profiles - Create DRAFT profile with selected products
- POST /api/pricing-profiles/preview - Preview an unsaved profile definition
- GET /api/pricing-profiles/{id} - Profile with items
- PATCH /api/pricing-profiles/{id} - Partial update
- DELETE /api/pricing-profiles/{id} - Delete profile and items
- GET /api/pricing-profiles/{id}/preview - Preview stored profile
- POST /api/pricing-profiles/{id}/publish - DRAFT -> COMPLETED
- GET/POST /api/pricing-profiles/{id}/items - List / upsert items
- PATCH/DELETE /api/pricing-profiles/{id}/items/{item_id} - Edit / remove item
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from app.domain.pricing.adjustments import ProfileStatus
from app.services import pricing_profiles as svc
from app.services.catalog_store import get_profile as load_profile
from app.services.results import not_found
from app.web.deps import CurrentUser, DBSession
from app.web.schemas import (
    PreviewRequest,
    PricingProfileCreate,
    PricingProfileUpdate,
    ProfileItemIn,
    ProfileItemPatch,
)
from app.web.utils.serializers import (
    error_response,
    item_to_dict,
    preview_to_dict,
    profile_to_dict,
    rows_to_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pricing-profiles")


@router.get("")
def list_profiles(
    db: DBSession,
    user: CurrentUser,
    status_filter: list[ProfileStatus] | None = Query(None, alias="status"),
) -> dict[str, Any]:
    """List the user's profiles, most recently updated first."""
    profiles = svc.list_profiles(db, user.user_id, statuses=status_filter)
    return {"ok": True, "profiles": [profile_to_dict(p, with_items=True) for p in profiles]}


@router.post("")
def create_profile(body: PricingProfileCreate, db: DBSession, user: CurrentUser):
    """Create a DRAFT profile; rejected if any selected product would go negative."""
    result = svc.create_draft_profile(
        db,
        user.user_id,
        name=body.name,
        description=body.description,
        based_on=body.basedOn,
        price_adjust_mode=body.priceAdjustMode,
        increment_mode=body.incrementMode,
        adjustments=body.selected_adjustments(),
    )
    if not result.ok:
        return error_response(result)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={"ok": True, "profile": profile_to_dict(result.data, with_items=True)},
    )


# Declared before /{profile_id} routes so "preview" is not taken as an id
@router.post("/preview")
def preview(body: PreviewRequest, db: DBSession, user: CurrentUser) -> dict[str, Any]:
    """Compute base/delta/new price for an unsaved profile definition."""
    rows = svc.compute_preview(
        db,
        user.user_id,
        body.basedOn,
        body.priceAdjustMode,
        body.incrementMode,
        [str(pid) for pid in body.productIds],
        body.adjustments,
    )
    return {
        "ok": True,
        "hasNegative": any(r.new_price < 0 for r in rows.values()),
        "rows": rows_to_dict(rows),
    }


@router.get("/{profile_id}")
def get_profile(profile_id: str, db: DBSession, user: CurrentUser):
    profile = load_profile(db, user.user_id, profile_id)
    if profile is None:
        return error_response(not_found("Pricing profile not found"))
    return {"ok": True, "profile": profile_to_dict(profile, with_items=True)}


@router.patch("/{profile_id}")
def update_profile(
    profile_id: str, body: PricingProfileUpdate, db: DBSession, user: CurrentUser
):
    result = svc.update_profile(db, user.user_id, profile_id, body.to_changes())
    if not result.ok:
        return error_response(result)
    return {"ok": True, "profile": profile_to_dict(result.data)}


@router.delete("/{profile_id}")
def delete_profile(profile_id: str, db: DBSession, user: CurrentUser):
    result = svc.delete_profile(db, user.user_id, profile_id)
    if not result.ok:
        return error_response(result)
    return {"ok": True}


@router.get("/{profile_id}/preview")
def stored_preview(profile_id: str, db: DBSession, user: CurrentUser):
    """Preview a stored profile with current base prices and ancestors."""
    preview = svc.compute_profile_preview(db, user.user_id, profile_id)
    if preview is None:
        return error_response(not_found("Pricing profile not found"))
    return {"ok": True, **preview_to_dict(preview)}


@router.post("/{profile_id}/publish")
def publish(profile_id: str, db: DBSession, user: CurrentUser):
    """Publish a DRAFT profile after re-validating every price."""
    result = svc.publish_profile(db, user.user_id, profile_id)
    if not result.ok:
        return error_response(result)
    return {"ok": True, "profile": profile_to_dict(result.data)}


# === Items ===


@router.get("/{profile_id}/items")
def list_items(profile_id: str, db: DBSession, user: CurrentUser):
    items = svc.list_items(db, user.user_id, profile_id)
    if items is None:
        return error_response(not_found("Pricing profile not found"))
    return {"ok": True, "items": [item_to_dict(i, with_product=True) for i in items]}


@router.post("/{profile_id}/items")
def upsert_item(profile_id: str, body: ProfileItemIn, db: DBSession, user: CurrentUser):
    """Select a product in the profile, or update its adjustment if already selected."""
    result = svc.upsert_item(db, user.user_id, profile_id, str(body.productId), body.adjustment)
    if not result.ok:
        return error_response(result)
    code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return JSONResponse(status_code=code, content={"ok": True, "item": item_to_dict(result.data)})


@router.patch("/{profile_id}/items/{item_id}")
def update_item(
    profile_id: str, item_id: str, body: ProfileItemPatch, db: DBSession, user: CurrentUser
):
    result = svc.update_item(db, user.user_id, profile_id, item_id, body.adjustment)
    if not result.ok:
        return error_response(result)
    return {"ok": True, "item": item_to_dict(result.data)}


@router.delete("/{profile_id}/items/{item_id}")
def delete_item(profile_id: str, item_id: str, db: DBSession, user: CurrentUser):
    result = svc.delete_item(db, user.user_id, profile_id, item_id)
    if not result.ok:
        return error_response(result)
    return {"ok": True}
