from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import require_admin
from catalog import MAX_PAGE, paginate, with_categories
from database import create_document, get_db, get_documents, now, serialize_doc, to_object_id
from errors import NotFound, ValidationFailed
from logging_setup import get_logger
from orders import populate_order
from schemas import ORDER_STATUSES, REVENUE_STATUSES, OrderStatus
from schemas import Category as CategorySchema
from schemas import Product as ProductSchema

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# ----------------------- Models -----------------------
class ProductCreateBody(ProductSchema):
    pass


class ProductUpdateBody(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, gt=0)
    stock: Optional[int] = Field(None, ge=0)
    image: Optional[str] = None
    category_id: Optional[str] = None
    is_active: Optional[bool] = None


class CategoryBody(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    description: str = ""


class CategoryUpdateBody(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None


class OrderStatusBody(BaseModel):
    status: str


# ----------------------- Helpers -----------------------
def require_category(db: Database, category_id: str):
    oid = to_object_id(category_id)
    if oid is None or not db["category"].find_one({"_id": oid}):
        raise ValidationFailed("Category not found")
    return oid


def ensure_unique_category_name(db: Database, name_key: str, exclude_id=None) -> None:
    filt = {"name_key": name_key}
    if exclude_id is not None:
        filt["_id"] = {"$ne": exclude_id}
    if db["category"].find_one(filt):
        raise ValidationFailed("Category already exists")


# ----------------------- Products -----------------------
@router.post("/product", status_code=status.HTTP_201_CREATED)
def create_product(body: ProductCreateBody, db: Database = Depends(get_db)):
    doc = body.model_dump()
    doc["category_id"] = require_category(db, body.category_id)
    product_id = create_document(db, "product", doc)
    logger.info("product_created", product_id=product_id)
    return with_categories(db, [db["product"].find_one({"_id": to_object_id(product_id)})])[0]


@router.put("/product/{product_id}")
def update_product(product_id: str, body: ProductUpdateBody, db: Database = Depends(get_db)):
    oid = to_object_id(product_id)
    if oid is None or not db["product"].find_one({"_id": oid}):
        raise NotFound("Product not found")
    update = body.model_dump(exclude_unset=True, exclude_none=True)
    if "category_id" in update:
        update["category_id"] = require_category(db, update["category_id"])
    update["updated_at"] = now()
    doc = db["product"].find_one_and_update({"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER)
    if not doc:
        raise NotFound("Product not found")
    return with_categories(db, [doc])[0]


@router.delete("/product/{product_id}")
def delete_product(product_id: str, db: Database = Depends(get_db)):
    oid = to_object_id(product_id)
    res = db["product"].delete_one({"_id": oid}) if oid else None
    if not res or res.deleted_count == 0:
        raise NotFound("Product not found")
    logger.info("product_deleted", product_id=product_id)
    return {"message": "Product deleted successfully"}


@router.get("/products")
def list_all_products(db: Database = Depends(get_db)):
    return with_categories(db, get_documents(db, "product"))


# ----------------------- Categories -----------------------
@router.post("/category", status_code=status.HTTP_201_CREATED)
def create_category(body: CategoryBody, db: Database = Depends(get_db)):
    name_key = body.name.lower()
    ensure_unique_category_name(db, name_key)
    category = CategorySchema(name=body.name, name_key=name_key, description=body.description)
    try:
        category_id = create_document(db, "category", category)
    except DuplicateKeyError:
        raise ValidationFailed("Category already exists")
    return serialize_doc(db["category"].find_one({"_id": to_object_id(category_id)}))


@router.put("/category/{category_id}")
def update_category(category_id: str, body: CategoryUpdateBody, db: Database = Depends(get_db)):
    oid = to_object_id(category_id)
    if oid is None or not db["category"].find_one({"_id": oid}):
        raise NotFound("Category not found")
    update = body.model_dump(exclude_unset=True, exclude_none=True)
    if "name" in update:
        update["name_key"] = update["name"].lower()
        ensure_unique_category_name(db, update["name_key"], exclude_id=oid)
    update["updated_at"] = now()
    try:
        doc = db["category"].find_one_and_update({"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER)
    except DuplicateKeyError:
        raise ValidationFailed("Category already exists")
    return serialize_doc(doc)


@router.delete("/category/{category_id}")
def delete_category(category_id: str, db: Database = Depends(get_db)):
    oid = to_object_id(category_id)
    if oid is None or not db["category"].find_one({"_id": oid}):
        raise NotFound("Category not found")
    if db["product"].count_documents({"category_id": oid}) > 0:
        raise ValidationFailed("Category has products")
    db["category"].delete_one({"_id": oid})
    return {"message": "Category deleted successfully"}


# ----------------------- Orders -----------------------
@router.get("/orders")
def list_orders(
    status: Optional[OrderStatus] = None,
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(50, ge=1, le=200),
    db: Database = Depends(get_db),
):
    filt = {}
    if status:
        filt["status"] = status
    cursor = (
        db["order"]
        .find(filt)
        .sort([("created_at", DESCENDING), ("_id", DESCENDING)])
        .skip((page - 1) * limit)
        .limit(limit)
    )
    orders = [populate_order(db, o, include_user=True) for o in cursor]
    total = db["order"].count_documents(filt)
    return {"orders": orders, **paginate(total, page, limit)}


@router.put("/order/{order_id}/status")
def update_order_status(order_id: str, body: OrderStatusBody, db: Database = Depends(get_db)):
    # Any status may follow any other; only membership in the enum is checked.
    if body.status not in ORDER_STATUSES:
        raise ValidationFailed("Invalid status")
    oid = to_object_id(order_id)
    order = (
        db["order"].find_one_and_update(
            {"_id": oid},
            {"$set": {"status": body.status, "updated_at": now()}},
            return_document=ReturnDocument.AFTER,
        )
        if oid
        else None
    )
    if not order:
        raise NotFound("Order not found")
    logger.info("order_status_updated", order_id=order_id, status=body.status)
    return populate_order(db, order, include_user=True)


# ----------------------- Stats -----------------------
@router.get("/stats")
def admin_stats(db: Database = Depends(get_db)):
    revenue = list(
        db["order"].aggregate(
            [
                {"$match": {"status": {"$in": list(REVENUE_STATUSES)}}},
                {"$group": {"_id": None, "total_revenue": {"$sum": "$total_amount"}}},
            ]
        )
    )
    return {
        "total_products": db["product"].count_documents({"is_active": True}),
        "total_orders": db["order"].count_documents({}),
        "total_users": db["user"].count_documents({"role": "user"}),
        "pending_orders": db["order"].count_documents({"status": "pending"}),
        "total_revenue": revenue[0]["total_revenue"] if revenue else 0,
    }
