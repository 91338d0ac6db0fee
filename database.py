"""
MongoDB access.

Each Pydantic model in schemas.py is stored in the collection named after
its lowercased class name.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

import settings
from log import get_logger

logger = get_logger("database")

CATEGORY = "category"
PROJECT = "project"
INQUIRY = "inquiry"
TESTIMONIAL = "testimonial"
TEAM_MEMBER = "teammember"
COMPANY_DETAILS = "companydetails"
BLOG_POST = "blogpost"

# Company details is a singleton stored under this fixed id.
COMPANY_DETAILS_ID = "company"


def connect() -> Optional[Database]:
    try:
        client = MongoClient(
            settings.DATABASE_URL,
            serverSelectionTimeoutMS=settings.DB_TIMEOUT_MS,
            connectTimeoutMS=settings.DB_TIMEOUT_MS,
            socketTimeoutMS=settings.DB_TIMEOUT_MS,
        )
        return client[settings.DATABASE_NAME]
    except PyMongoError as exc:
        logger.error("Could not create MongoDB client: %s", exc)
        return None


db = connect()


def now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_indexes(database: Database) -> None:
    database[CATEGORY].create_index([("slug", ASCENDING)], unique=True)
    database[PROJECT].create_index([("slug", ASCENDING)], unique=True)
    database[PROJECT].create_index([("category_id", ASCENDING)])
    database[BLOG_POST].create_index([("slug", ASCENDING)], unique=True)
    database[BLOG_POST].create_index([("status", ASCENDING)])
    database[INQUIRY].create_index([("status", ASCENDING), ("priority", ASCENDING)])
    database[TEAM_MEMBER].create_index([("is_public", ASCENDING), ("is_active", ASCENDING)])


def create_document(database: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    """Insert a document with timestamps and return it including its _id."""
    if isinstance(data, BaseModel):
        doc = data.model_dump()
    else:
        doc = dict(data)
    stamp = now()
    doc.setdefault("created_at", stamp)
    doc["updated_at"] = stamp
    result = database[collection_name].insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


def get_documents(database: Database, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None,
                  sort: Optional[List[tuple]] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
