"""Products API.

Endpoints:
- GET /api/products - List with picker filters (taxonomy, brand, search)
- GET /api/products/brands - Distinct brands
- POST /api/products - Create product
- GET/PATCH/DELETE /api/products/{id}
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from app.services import catalog
from app.services.results import not_found
from app.web.deps import CurrentUser, DBSession
from app.web.schemas import ProductCreate, ProductUpdate
from app.web.utils.serializers import error_response, product_to_dict

router = APIRouter(prefix="/api/products")


@router.get("")
def list_products(
    db: DBSession,
    user: CurrentUser,
    category_id: str | None = Query(None, alias="categoryId"),
    subcategory_id: str | None = Query(None, alias="subcategoryId"),
    segment_id: str | None = Query(None, alias="segmentId"),
    brand: str | None = None,
    q: str | None = None,
) -> dict[str, Any]:
    """List products; `q` matches every word against title, SKU and brand."""
    products = catalog.list_products(
        db,
        user.user_id,
        category_id=category_id,
        subcategory_id=subcategory_id,
        segment_id=segment_id,
        brand=brand,
        query=q,
    )
    return {"ok": True, "products": [product_to_dict(p) for p in products]}


@router.get("/brands")
def list_brands(db: DBSession, user: CurrentUser) -> dict[str, Any]:
    return {"ok": True, "brands": catalog.list_brands(db, user.user_id)}


@router.post("")
def create_product(body: ProductCreate, db: DBSession, user: CurrentUser):
    result = catalog.create_product(db, user.user_id, body.to_fields())
    if not result.ok:
        return error_response(result)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={"ok": True, "product": product_to_dict(result.data)},
    )


@router.get("/{product_id}")
def get_product(product_id: str, db: DBSession, user: CurrentUser):
    product = catalog.get_product(db, user.user_id, product_id)
    if product is None:
        return error_response(not_found("Product not found"))
    return {"ok": True, "product": product_to_dict(product)}


@router.patch("/{product_id}")
def update_product(product_id: str, body: ProductUpdate, db: DBSession, user: CurrentUser):
    """Patch a product; new base prices apply to every later preview and publish."""
    result = catalog.update_product(db, user.user_id, product_id, body.to_changes())
    if not result.ok:
        return error_response(result)
    return {"ok": True, "product": product_to_dict(result.data)}


@router.delete("/{product_id}")
def delete_product(product_id: str, db: DBSession, user: CurrentUser):
    result = catalog.delete_product(db, user.user_id, product_id)
    if not result.ok:
        return error_response(result)
    return {"ok": True}
