"""
MongoDB access for the storefront.

One process-wide client; collections are named after the lowercase schema
name (``user``, ``category``, ``product``, ``order``, ``config``).
"""
from datetime import datetime, timezone
from typing import Any, Optional, Union

from bson.objectid import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

import settings

client = MongoClient(settings.DATABASE_URL)
db = client[settings.DATABASE_NAME]


def get_db() -> Database:
    """FastAPI dependency returning the configured database."""
    return db


def now() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def serialize_doc(doc):
    """Make a Mongo document JSON friendly: ``_id`` -> ``id``, ObjectIds and datetimes -> strings."""
    if doc is None:
        return doc
    if isinstance(doc, list):
        return [serialize_doc(d) for d in doc]
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, datetime):
        return doc.isoformat()
    if not isinstance(doc, dict):
        return doc
    out = {}
    for k, v in doc.items():
        if k == "_id":
            out["id"] = str(v) if isinstance(v, ObjectId) else v
        else:
            out[k] = serialize_doc(v)
    return out


def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    doc = dict(data)
    stamp = now()
    doc.setdefault("created_at", stamp)
    doc["updated_at"] = stamp
    res = db[collection_name].insert_one(doc)
    return str(res.inserted_id)


def get_documents(db: Database, collection_name: str, filter_dict: Optional[dict] = None):
    return list(db[collection_name].find(filter_dict or {}).sort([("created_at", DESCENDING), ("_id", DESCENDING)]))


def ensure_indexes(db: Database) -> None:
    db["user"].create_index([("email", ASCENDING)], unique=True)
    db["category"].create_index([("name_key", ASCENDING)], unique=True)
    db["config"].create_index([("key", ASCENDING)], unique=True)
    db["product"].create_index([("created_at", DESCENDING)])
    db["order"].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
