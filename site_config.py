"""Site-wide display settings, stored as a single ``config`` document."""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import require_admin
from database import get_db, now, serialize_doc
from errors import ValidationFailed
from logging_setup import get_logger
from schemas import Config as ConfigSchema

logger = get_logger(__name__)

router = APIRouter(prefix="/config", tags=["config"])

SITE_KEY = "site"
EDITABLE_FIELDS = ("site_name", "description", "contact_email", "contact_phone")


class SiteNameBody(BaseModel):
    site_name: Optional[str] = None


class ConfigUpdateBody(BaseModel):
    site_name: Optional[str] = None
    description: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None


def get_or_create_config(db: Database) -> dict:
    """Return the singleton config, inserting the defaults on first access.

    The unique index on ``key`` makes concurrent first reads converge on one
    document: the loser of the upsert race gets a duplicate key error and
    reads the winner's document.
    """
    stamp = now()
    defaults = ConfigSchema(key=SITE_KEY).model_dump()
    defaults.pop("key")
    defaults["created_at"] = stamp
    defaults["updated_at"] = stamp
    try:
        res = db["config"].update_one({"key": SITE_KEY}, {"$setOnInsert": defaults}, upsert=True)
    except DuplicateKeyError:
        res = None
    if res is not None and res.upserted_id is not None:
        logger.info("config_created", config_id=str(res.upserted_id))
    return db["config"].find_one({"key": SITE_KEY})


def update_config(db: Database, changes: dict) -> dict:
    get_or_create_config(db)
    changes = {**changes, "updated_at": now()}
    return db["config"].find_one_and_update(
        {"key": SITE_KEY},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )


@router.get("/site-name")
def get_site_name(db: Database = Depends(get_db)):
    return {"site_name": get_or_create_config(db)["site_name"]}


@router.put("/site-name", dependencies=[Depends(require_admin)])
def set_site_name(body: SiteNameBody, db: Database = Depends(get_db)):
    site_name = (body.site_name or "").strip()
    if not site_name:
        raise ValidationFailed("Site name is required")
    doc = update_config(db, {"site_name": site_name})
    return {"message": "Site name updated successfully", "site_name": doc["site_name"]}


@router.get("")
def get_config(db: Database = Depends(get_db)):
    return serialize_doc(get_or_create_config(db))


@router.put("", dependencies=[Depends(require_admin)])
def set_config(body: ConfigUpdateBody, db: Database = Depends(get_db)):
    changes = {}
    # Absent or blank fields keep their stored value.
    for field, value in body.model_dump(exclude_unset=True).items():
        if field in EDITABLE_FIELDS and value and value.strip():
            changes[field] = value.strip()
    doc = update_config(db, changes)
    logger.info("config_updated", fields=sorted(changes))
    return {"message": "Configuration updated successfully", "config": serialize_doc(doc)}
