"""
MongoDB access for the store.

The client is built once from DATABASE_URL / DATABASE_NAME. When either is
missing `db` stays None and the API reports the database as unavailable.
"""
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from dotenv import load_dotenv
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient

from errors import ServerError

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

_client = None
db = None

if DATABASE_URL and DATABASE_NAME:
    _client = MongoClient(DATABASE_URL)
    db = _client[DATABASE_NAME]


def get_db():
    """FastAPI dependency returning the active database handle."""
    if db is None:
        raise ServerError("Database not available. Check DATABASE_URL and DATABASE_NAME.")
    return db


def ensure_indexes(database) -> None:
    database["user"].create_index([("email", ASCENDING)], unique=True)
    database["cart"].create_index([("user_id", ASCENDING)], unique=True)
    database["wishlist"].create_index([("user_id", ASCENDING)], unique=True)
    database["order"].create_index([("order_id", ASCENDING)], unique=True)
    database["order"].create_index([("user_id", ASCENDING), ("order_date", ASCENDING)])
    database["address"].create_index([("user_id", ASCENDING)])


def create_document(collection_name: str, data: Union[BaseModel, dict], database=None) -> str:
    """Insert a document, stamping created_at/updated_at. Returns the new id as a string."""
    target = database if database is not None else db
    if target is None:
        raise ServerError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")

    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)

    now = datetime.now(timezone.utc)
    data_dict.setdefault("created_at", now)
    data_dict["updated_at"] = now

    result = target[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[Dict[str, Any]] = None,
                  limit: Optional[int] = None, database=None) -> List[dict]:
    target = database if database is not None else db
    if target is None:
        raise ServerError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")

    cursor = target[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def serialize_doc(doc):
    """Make a Mongo document JSON friendly: `_id` becomes `id`, ObjectIds and datetimes become strings."""
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
            out["id"] = serialize_doc(v)
        else:
            out[k] = serialize_doc(v)
    return out
