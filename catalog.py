import math
import re
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database

from database import get_db, serialize_doc, to_object_id
from errors import NotFound

router = APIRouter(tags=["catalog"])

NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]
# Keeps skip = (page - 1) * limit inside a BSON int64.
MAX_PAGE = 1_000_000


# ----------------------- Helpers -----------------------
def contains(text: str) -> dict:
    """Case-insensitive literal substring match."""
    return {"$regex": re.escape(text), "$options": "i"}


def find_category_by_name(db: Database, name: str) -> Optional[dict]:
    return db["category"].find_one({"name": contains(name)})


def with_categories(db: Database, products: List[dict]) -> List[dict]:
    """Serialize products, replacing ``category_id`` with ``category: {id, name}``."""
    ids = {p.get("category_id") for p in products if p.get("category_id") is not None}
    names = {c["_id"]: c.get("name") for c in db["category"].find({"_id": {"$in": list(ids)}})} if ids else {}
    out = []
    for p in products:
        cid = p.get("category_id")
        item = serialize_doc({k: v for k, v in p.items() if k != "category_id"})
        item["category"] = {"id": str(cid), "name": names[cid]} if cid in names else None
        out.append(item)
    return out


def paginate(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
        "current_page": page,
    }


# ----------------------- Products -----------------------
@router.get("/products")
def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(20, ge=1, le=100),
    db: Database = Depends(get_db),
):
    filt = {"is_active": True}
    if category:
        # Unknown category names fall through to the unfiltered listing.
        category_doc = find_category_by_name(db, category)
        if category_doc:
            filt["category_id"] = category_doc["_id"]
    if search:
        filt["$or"] = [{"name": contains(search)}, {"description": contains(search)}]

    cursor = db["product"].find(filt).sort(NEWEST_FIRST).skip((page - 1) * limit).limit(limit)
    products = with_categories(db, list(cursor))
    total = db["product"].count_documents(filt)
    return {"products": products, **paginate(total, page, limit)}


@router.get("/products/category/{category_name}")
def list_products_by_category(category_name: str, db: Database = Depends(get_db)):
    category_doc = find_category_by_name(db, category_name)
    if not category_doc:
        raise NotFound("Category not found")
    items = db["product"].find({"category_id": category_doc["_id"], "is_active": True}).sort(NEWEST_FIRST)
    return {"category": category_doc["name"], "products": with_categories(db, list(items))}


@router.get("/products/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    oid = to_object_id(product_id)
    item = db["product"].find_one({"_id": oid}) if oid else None
    if not item:
        raise NotFound("Product not found")
    return with_categories(db, [item])[0]


# ----------------------- Categories -----------------------
@router.get("/categories")
def list_categories(db: Database = Depends(get_db)):
    items = db["category"].find({}).sort("name", ASCENDING)
    return [serialize_doc(c) for c in items]


@router.get("/categories/{category_id}")
def get_category(category_id: str, db: Database = Depends(get_db)):
    oid = to_object_id(category_id)
    item = db["category"].find_one({"_id": oid}) if oid else None
    if not item:
        raise NotFound("Category not found")
    return serialize_doc(item)
