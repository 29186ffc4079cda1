"""Review store over the "review" collection.

Filters are plain equality dicts over tour, user and _id. Id values may be
given as strings; they are converted to ObjectIds before querying.
"""

from typing import Dict, List, Optional

from pydantic import ValidationError as SchemaError
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import get_db, get_documents, to_object_id, utcnow
from errors import StoreUnavailableError, UniquenessError, ValidationError
from schemas import Review

ID_FIELDS = ("_id", "tour", "user")


def normalize_filter(filter_dict: Dict) -> Dict:
    out = {}
    for key, value in filter_dict.items():
        if key not in ID_FIELDS:
            raise ValidationError(f"Reviews can only be filtered by {', '.join(ID_FIELDS)}, not {key!r}")
        out[key] = to_object_id(value, "review" if key == "_id" else key)
    return out


class ReviewStore:
    collection_name = "review"

    def __init__(self, database: Optional[Database] = None):
        self._db = database

    @property
    def database(self) -> Database:
        return self._db if self._db is not None else get_db()

    @property
    def collection(self):
        return self.database[self.collection_name]

    def find(self, filter_dict: Dict, limit: Optional[int] = None) -> List[Dict]:
        return get_documents(self.collection_name, normalize_filter(filter_dict), limit, database=self._db)

    def find_one(self, filter_dict: Dict) -> Optional[Dict]:
        try:
            return self.collection.find_one(normalize_filter(filter_dict))
        except PyMongoError as exc:
            raise StoreUnavailableError(f"Could not read review: {exc}") from exc

    def find_populated(self, filter_dict: Dict, limit: Optional[int] = None) -> List[Dict]:
        """Reviews with the author's name and photo embedded in place of the user id."""
        docs = self.find(filter_dict, limit)
        user_ids = list({d["user"] for d in docs})
        try:
            users = {
                u["_id"]: {"id": u["_id"], "name": u.get("name"), "photo": u.get("photo")}
                for u in self.database["user"].find({"_id": {"$in": user_ids}}, {"name": 1, "photo": 1})
            }
        except PyMongoError as exc:
            raise StoreUnavailableError(f"Could not read users: {exc}") from exc
        for doc in docs:
            doc["user"] = users.get(doc["user"], {"id": doc["user"]})
        return docs

    def create(self, fields: Dict) -> Dict:
        try:
            review = Review(**fields)
        except SchemaError as exc:
            raise ValidationError.from_schema_error(exc) from exc
        doc = review.model_dump()
        doc["createdAt"] = doc.get("createdAt") or utcnow()
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as exc:
            raise UniquenessError("You have already reviewed this tour") from exc
        except PyMongoError as exc:
            raise StoreUnavailableError(f"Could not create review: {exc}") from exc
        doc["_id"] = result.inserted_id
        return doc

    def update_one(self, filter_dict: Dict, fields: Dict) -> Optional[Dict]:
        """Apply fields to the first matching review; returns the updated document."""
        if not fields:
            return self.find_one(filter_dict)
        try:
            return self.collection.find_one_and_update(
                normalize_filter(filter_dict),
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as exc:
            raise UniquenessError("You have already reviewed this tour") from exc
        except PyMongoError as exc:
            raise StoreUnavailableError(f"Could not update review: {exc}") from exc

    def delete_one(self, filter_dict: Dict) -> None:
        try:
            self.collection.delete_one(normalize_filter(filter_dict))
        except PyMongoError as exc:
            raise StoreUnavailableError(f"Could not delete review: {exc}") from exc
