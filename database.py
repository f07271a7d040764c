"""
Database helpers

Holds the MongoDB connection used by the API and a couple of small helpers
for inserting and reading documents. Collection names match the tables the
canteen frontend reads: food_items, inventory, orders, profiles,
contact_messages.
"""
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "canteen")

# MongoClient connects lazily, so importing this module never blocks on the server
client = MongoClient(DATABASE_URL, tz_aware=True)
db = client[DATABASE_NAME]


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def ensure_indexes(database=None) -> None:
    database = db if database is None else database
    database["profiles"].create_index([("email", ASCENDING)], unique=True)
    database["profiles"].create_index([("college_id", ASCENDING)], unique=True)
    database["inventory"].create_index([("food_item", ASCENDING)], unique=True)
    database["orders"].create_index([("order_number", ASCENDING)], unique=True)
    database["orders"].create_index([("user", ASCENDING), ("created_at", ASCENDING)])
    logger.info("Indexes ensured on %s", database.name)


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Any:
    """Insert a document, stamping created_at/updated_at. Returns the new _id."""
    if isinstance(data, BaseModel):
        data = data.model_dump()
    stamp = now_utc()
    payload = {**data, "created_at": stamp, "updated_at": stamp}
    return db[collection_name].insert_one(payload).inserted_id


def get_documents(collection_name: str, filter_dict: Optional[Dict] = None, limit: Optional[int] = None) -> List[Dict]:
    """Newest-first listing of a collection."""
    cursor = db[collection_name].find(filter_dict or {}).sort("created_at", -1)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
