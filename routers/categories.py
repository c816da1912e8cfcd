# routers/categories.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from dependencies.auth import get_current_user, CurrentUser
from core.permission_helpers import requires_permission
from core.supabase_helpers import safe_delete, safe_insert, safe_select, safe_update
from core.logging_config import logger
from models.category import Category, CategoryCreate, CategoryUpdate, default_categories
from models.enums import CategoryStatus
from services.normalizers import normalize_categories


router = APIRouter(
    prefix="/categories",
    tags=["Categories"],
)


def _row(category: dict) -> dict:
    return {k: v for k, v in category.items() if v is not None}


def load_categories() -> List[Category]:
    """Every category, ordered; the built-in list when the table is empty."""
    rows = safe_select("categories", order_by="sort_order", desc=False)
    return normalize_categories(rows) if rows else default_categories()


# -----------------------------------------------------
# GET /categories
# -----------------------------------------------------
@router.get("", summary="List active categories")
def list_categories(current_user: CurrentUser = Depends(get_current_user)):
    rows = safe_select("categories", order_by="sort_order", desc=False)
    if not rows:
        rows = [c.model_dump(mode="json") for c in default_categories()]
    active = [r for r in rows if (r.get("status") or CategoryStatus.active.value) == CategoryStatus.active.value]
    return {"success": True, "data": active}


# -----------------------------------------------------
# GET /categories/{id}
# -----------------------------------------------------
@router.get("/{category_id}", summary="Get one category")
def get_category(category_id: str, current_user: CurrentUser = Depends(get_current_user)):
    row = safe_select("categories", {"id": category_id}, single=True)
    if not row:
        raise HTTPException(404, "Category not found")
    return {"success": True, "data": row}


# -----------------------------------------------------
# POST /categories
# -----------------------------------------------------
@router.post(
    "",
    summary="Create a category",
    dependencies=[Depends(requires_permission("categories:write"))],
)
def create_category(payload: CategoryCreate):
    if safe_select("categories", {"id": payload.name}, single=True):
        raise HTTPException(409, f"Category '{payload.name}' already exists")

    row = {
        **payload.model_dump(mode="json"),
        "id": payload.name,
        "status": CategoryStatus.active.value,
    }
    created = safe_insert("categories", _row(row), clean=False)
    logger.info(f"Category created: {payload.name}")
    return {"success": True, "data": created}


# -----------------------------------------------------
# PUT /categories/{id}
# -----------------------------------------------------
@router.put(
    "/{category_id}",
    summary="Update a category",
    dependencies=[Depends(requires_permission("categories:write"))],
)
def update_category(category_id: str, payload: CategoryUpdate):
    updates = payload.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(400, "No fields provided to update.")

    updated = safe_update("categories", {"id": category_id}, updates, clean=False)
    if not updated:
        raise HTTPException(404, "Category not found")
    return {"success": True, "data": updated}


# -----------------------------------------------------
# DELETE /categories/{id}
# Refused while requests are still filed under it.
# -----------------------------------------------------
@router.delete(
    "/{category_id}",
    summary="Delete a category",
    dependencies=[Depends(requires_permission("categories:write"))],
)
def delete_category(category_id: str):
    in_use = safe_select("requests", {"category": category_id})
    if in_use:
        raise HTTPException(
            400,
            f"Category '{category_id}' is used by {len(in_use)} request(s); deactivate it instead",
        )

    if not safe_delete("categories", {"id": category_id}):
        raise HTTPException(404, "Category not found")

    logger.info(f"Category deleted: {category_id}")
    return {"success": True, "data": {"id": category_id}}
