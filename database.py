"""
MongoDB access

The MongoClient is owned by the application: it is opened on startup, kept on
``app.state`` and closed on shutdown. Routes receive the database through the
``get_db`` dependency so tests can swap in another one.
"""

import logging
from typing import Any, Optional

from bson import ObjectId
from fastapi import HTTPException, Request
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from config import Settings

logger = logging.getLogger(__name__)

# Collection names
USERS = "user"
CLOTHES = "clothes"
ORDERS = "order"
PAYMENTS = "payment"


def connect(settings: Settings) -> MongoClient:
    client = MongoClient(settings.DATABASE_URL, serverSelectionTimeoutMS=5000)
    try:
        client.admin.command("ping")
        logger.info("Pinged MongoDB deployment at startup, connection OK")
    except Exception as e:
        logger.warning("MongoDB ping failed at startup: %s", e)
    return client


def ensure_indexes(db: Database) -> None:
    db[USERS].create_index("email", unique=True)
    db[ORDERS].create_index([("product_id", ASCENDING), ("email", ASCENDING)], unique=True)
    db[PAYMENTS].create_index("email")


def get_db(request: Request) -> Database:
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db


# ------------------------- Helpers -------------------------

def parse_object_id(value: str) -> ObjectId:
    try:
        return ObjectId(value)
    except Exception:
        raise HTTPException(status_code=400, detail=f"Invalid id: {value}")


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    out = dict(doc)
    if "_id" in out:
        out["_id"] = str(out["_id"])
    return out


def serialize_docs(docs) -> list:
    return [serialize_doc(d) for d in docs]


def insert_result(res: InsertOneResult) -> dict[str, Any]:
    return {"acknowledged": res.acknowledged, "insertedId": str(res.inserted_id)}


def update_result(res: UpdateResult) -> dict[str, Any]:
    out = {
        "acknowledged": res.acknowledged,
        "matchedCount": res.matched_count,
        "modifiedCount": res.modified_count,
    }
    if res.upserted_id is not None:
        out["upsertedId"] = str(res.upserted_id)
    return out


def delete_result(res: DeleteResult) -> dict[str, Any]:
    return {"acknowledged": res.acknowledged, "deletedCount": res.deleted_count}
