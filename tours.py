"""Tour store: catalog documents plus the cached rating summary on each tour."""

from typing import Dict, List, Optional

import structlog
from pydantic import ValidationError as SchemaError
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import get_db, get_documents, to_object_id, utcnow
from errors import NotFoundError, StoreUnavailableError, UniquenessError, ValidationError
from schemas import Tour

logger = structlog.get_logger(__name__)


class TourStore:
    collection_name = "tour"

    def __init__(self, database: Optional[Database] = None):
        self._db = database

    @property
    def collection(self):
        return (self._db if self._db is not None else get_db())[self.collection_name]

    def create(self, fields: Dict) -> Dict:
        try:
            tour = Tour(**fields)
        except SchemaError as exc:
            raise ValidationError.from_schema_error(exc) from exc
        doc = tour.model_dump()
        doc["createdAt"] = utcnow()
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as exc:
            raise UniquenessError(f"A tour named {tour.name!r} already exists") from exc
        except PyMongoError as exc:
            raise StoreUnavailableError(f"Could not create tour: {exc}") from exc
        doc["_id"] = result.inserted_id
        logger.info("tour.created", tour_id=str(result.inserted_id), name=tour.name)
        return doc

    def get(self, tour_id) -> Dict:
        oid = to_object_id(tour_id, "tour")
        try:
            doc = self.collection.find_one({"_id": oid})
        except PyMongoError as exc:
            raise StoreUnavailableError(f"Could not read tour: {exc}") from exc
        if doc is None:
            raise NotFoundError(f"No tour found with id {tour_id}")
        return doc

    def list(self, include_secret: bool = False) -> List[Dict]:
        filter_dict = {} if include_secret else {"secretTour": {"$ne": True}}
        return get_documents(self.collection_name, filter_dict, database=self._db)

    def update_summary(self, tour_id, summary: Dict) -> None:
        """Overwrite ratingsQuantity and ratingsAverage in one $set."""
        oid = to_object_id(tour_id, "tour")
        fields = {
            "ratingsQuantity": int(summary["ratingsQuantity"]),
            "ratingsAverage": float(summary["ratingsAverage"]),
        }
        try:
            result = self.collection.update_one({"_id": oid}, {"$set": fields})
        except PyMongoError as exc:
            raise StoreUnavailableError(f"Could not update tour summary: {exc}") from exc
        if result.matched_count == 0:
            raise NotFoundError(f"No tour found with id {tour_id}")
