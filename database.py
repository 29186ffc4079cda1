"""
Database helpers

Holds the MongoDB connection and the small set of helpers every store uses.
The connection is opened lazily so the app can start (and report itself
unhealthy on /test) without a reachable server. Tests swap the database
with set_db().
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import CFG
from errors import NotFoundError, StoreUnavailableError

logger = structlog.get_logger(__name__)

db: Optional[Database] = None


def get_db() -> Database:
    """Connect on first use. The database is only handed out once its indexes exist."""
    global db
    if db is None:
        client = MongoClient(CFG.database_url, serverSelectionTimeoutMS=CFG.mongo_timeout_ms)
        database = client[CFG.database_name]
        try:
            ensure_indexes(database)
        except PyMongoError as exc:
            client.close()
            raise StoreUnavailableError(f"Could not prepare database {CFG.database_name}: {exc}") from exc
        db = database
        logger.info("database.connected", database=CFG.database_name)
    return db


def set_db(database: Optional[Database]) -> None:
    global db
    db = database


def ensure_indexes(database: Database) -> None:
    # one review per user per tour, enforced by the store itself
    database["review"].create_index([("tour", ASCENDING), ("user", ASCENDING)], unique=True)
    database["tour"].create_index([("name", ASCENDING)], unique=True)
    database["tour"].create_index([("price", ASCENDING), ("ratingsAverage", DESCENDING)])


def to_object_id(value: Any, what: str = "document") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise NotFoundError(f"No {what} found with id {value!r}")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _plain(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return serialize(value)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def serialize(doc: Optional[Dict]) -> Optional[Dict]:
    """Make a Mongo document JSON friendly (ObjectIds and datetimes as strings, _id as id)."""
    if doc is None:
        return None
    return {("id" if key == "_id" else key): _plain(value) for key, value in doc.items()}


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict] = None,
    limit: Optional[int] = None,
    database: Optional[Database] = None,
) -> List[Dict]:
    try:
        cursor = (database if database is not None else get_db())[collection_name].find(filter_dict or {})
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)
    except PyMongoError as exc:
        raise StoreUnavailableError(f"Could not read {collection_name}: {exc}") from exc
