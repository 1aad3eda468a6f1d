"""Catalog taxonomy API.

Endpoints:
- GET/POST /api/categories, PATCH/DELETE /api/categories/{id}
- GET/POST /api/subcategories (?categoryId=), PATCH/DELETE /api/subcategories/{id}
- GET/POST /api/segments (?subcategoryId=), PATCH/DELETE /api/segments/{id}
"""

from __future__ import annotations

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from app.services import catalog
from app.services.results import ActionResult
from app.web.deps import CurrentUser, DBSession
from app.web.schemas import CategoryCreate, RenameRequest, SegmentCreate, SubcategoryCreate
from app.web.utils.serializers import error_response, taxonomy_to_dict

router = APIRouter(prefix="/api")


def _created(result: ActionResult, key: str):
    if not result.ok:
        return error_response(result)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={"ok": True, key: taxonomy_to_dict(result.data)},
    )


def _renamed(result: ActionResult, key: str):
    if not result.ok:
        return error_response(result)
    return {"ok": True, key: taxonomy_to_dict(result.data)}


def _deleted(result: ActionResult):
    if not result.ok:
        return error_response(result)
    return {"ok": True}


# === Categories ===


@router.get("/categories")
def list_categories(db: DBSession, user: CurrentUser):
    rows = catalog.list_categories(db, user.user_id)
    return {"ok": True, "categories": [taxonomy_to_dict(r) for r in rows]}


@router.post("/categories")
def create_category(body: CategoryCreate, db: DBSession, user: CurrentUser):
    return _created(catalog.create_category(db, user.user_id, body.name), "category")


@router.patch("/categories/{row_id}")
def rename_category(row_id: str, body: RenameRequest, db: DBSession, user: CurrentUser):
    result = catalog.rename_taxonomy(db, user.user_id, "category", row_id, body.name)
    return _renamed(result, "category")


@router.delete("/categories/{row_id}")
def delete_category(row_id: str, db: DBSession, user: CurrentUser):
    return _deleted(catalog.delete_taxonomy(db, user.user_id, "category", row_id))


# === Subcategories ===


@router.get("/subcategories")
def list_subcategories(
    db: DBSession,
    user: CurrentUser,
    category_id: str | None = Query(None, alias="categoryId"),
):
    rows = catalog.list_subcategories(db, user.user_id, category_id)
    return {"ok": True, "subcategories": [taxonomy_to_dict(r) for r in rows]}


@router.post("/subcategories")
def create_subcategory(body: SubcategoryCreate, db: DBSession, user: CurrentUser):
    result = catalog.create_subcategory(db, user.user_id, str(body.categoryId), body.name)
    return _created(result, "subcategory")


@router.patch("/subcategories/{row_id}")
def rename_subcategory(row_id: str, body: RenameRequest, db: DBSession, user: CurrentUser):
    result = catalog.rename_taxonomy(db, user.user_id, "subcategory", row_id, body.name)
    return _renamed(result, "subcategory")


@router.delete("/subcategories/{row_id}")
def delete_subcategory(row_id: str, db: DBSession, user: CurrentUser):
    return _deleted(catalog.delete_taxonomy(db, user.user_id, "subcategory", row_id))


# === Segments ===


@router.get("/segments")
def list_segments(
    db: DBSession,
    user: CurrentUser,
    subcategory_id: str | None = Query(None, alias="subcategoryId"),
):
    rows = catalog.list_segments(db, user.user_id, subcategory_id)
    return {"ok": True, "segments": [taxonomy_to_dict(r) for r in rows]}


@router.post("/segments")
def create_segment(body: SegmentCreate, db: DBSession, user: CurrentUser):
    result = catalog.create_segment(db, user.user_id, str(body.subcategoryId), body.name)
    return _created(result, "segment")


@router.patch("/segments/{row_id}")
def rename_segment(row_id: str, body: RenameRequest, db: DBSession, user: CurrentUser):
    result = catalog.rename_taxonomy(db, user.user_id, "segment", row_id, body.name)
    return _renamed(result, "segment")


@router.delete("/segments/{row_id}")
def delete_segment(row_id: str, db: DBSession, user: CurrentUser):
    return _deleted(catalog.delete_taxonomy(db, user.user_id, "segment", row_id))
