from collections import OrderedDict
from typing import List

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import PyMongoError

import settings
from auth import get_current_user
from database import create_document, get_db, serialize_doc, to_object_id
from errors import Forbidden, NotFound, ValidationFailed
from logging_setup import get_logger
from schemas import Order as OrderSchema
from schemas import OrderItem, ShippingAddress

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


# ----------------------- Models -----------------------
class OrderLineBody(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)


class OrderCreateBody(BaseModel):
    items: List[OrderLineBody]
    shipping_address: ShippingAddress


# ----------------------- Helpers -----------------------
def consolidate_lines(items: List[OrderLineBody]) -> "OrderedDict[str, int]":
    """Sum quantities of repeated product ids, keeping first-seen order."""
    lines = OrderedDict()
    for item in items:
        lines[item.product_id] = lines.get(item.product_id, 0) + item.quantity
    return lines


def release_stock(db: Database, reserved) -> None:
    for oid, quantity in reserved:
        db["product"].update_one({"_id": oid}, {"$inc": {"stock": quantity}})


def reserve_stock(db: Database, lines) -> list:
    """Conditionally decrement stock line by line; undo on the first shortfall."""
    reserved = []
    for oid, product, quantity in lines:
        res = db["product"].update_one({"_id": oid, "stock": {"$gte": quantity}}, {"$inc": {"stock": -quantity}})
        if res.modified_count == 0:
            release_stock(db, reserved)
            raise ValidationFailed(f"Insufficient stock for {product['name']}")
        reserved.append((oid, quantity))
    return reserved


def populate_order(db: Database, order: dict, include_user: bool = False) -> dict:
    product_ids = [i.get("product_id") for i in order.get("items", [])]
    products = {p["_id"]: p for p in db["product"].find({"_id": {"$in": product_ids}})}
    out = serialize_doc(order)
    for raw, item in zip(order.get("items", []), out.get("items", [])):
        product = products.get(raw.get("product_id"))
        item["product"] = (
            {"id": str(product["_id"]), "name": product.get("name"), "image": product.get("image")}
            if product
            else None
        )
    if include_user:
        user = db["user"].find_one({"_id": order.get("user_id")})
        out["user"] = {"id": str(user["_id"]), "name": user.get("name"), "email": user.get("email")} if user else None
    return out


def place_order(db: Database, user: dict, body: OrderCreateBody) -> dict:
    if not body.items:
        raise ValidationFailed("Cart is empty")

    lines = []
    for product_id, quantity in consolidate_lines(body.items).items():
        oid = to_object_id(product_id)
        product = db["product"].find_one({"_id": oid}) if oid else None
        if not product:
            raise NotFound(f"Product not found: {product_id}")
        if not product.get("is_active", True):
            raise ValidationFailed(f"Product is not available: {product['name']}")
        if quantity > int(product.get("stock", 0)):
            raise ValidationFailed(f"Insufficient stock for {product['name']}")
        lines.append((oid, product, quantity))

    items = [
        OrderItem(product_id=str(oid), name=product["name"], price=float(product["price"]), quantity=quantity)
        for oid, product, quantity in lines
    ]
    total = round(sum(i.price * i.quantity for i in items), 2)
    order = OrderSchema(
        user_id=str(user["_id"]),
        items=items,
        shipping_address=body.shipping_address,
        total_amount=total,
    )

    doc = order.model_dump()
    doc["user_id"] = user["_id"]
    for item in doc["items"]:
        item["product_id"] = to_object_id(item["product_id"])

    reserved = reserve_stock(db, lines) if settings.RESERVE_STOCK else []
    try:
        order_id = create_document(db, "order", doc)
    except PyMongoError:
        release_stock(db, reserved)
        raise

    logger.info("order_placed", order_id=order_id, user_id=str(user["_id"]), total_amount=total, lines=len(items))
    return db["order"].find_one({"_id": to_object_id(order_id)})


# ----------------------- Routes -----------------------
@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(body: OrderCreateBody, user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    order = place_order(db, user, body)
    return populate_order(db, order)


@router.get("/my-orders")
def my_orders(user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    items = db["order"].find({"user_id": user["_id"]}).sort([("created_at", DESCENDING), ("_id", DESCENDING)])
    return [populate_order(db, o) for o in items]


@router.get("/{order_id}")
def get_order(order_id: str, user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    oid = to_object_id(order_id)
    order = db["order"].find_one({"_id": oid}) if oid else None
    if not order:
        raise NotFound("Order not found")
    if order.get("user_id") != user["_id"] and user.get("role") != "admin":
        raise Forbidden("Not allowed")
    return populate_order(db, order)
