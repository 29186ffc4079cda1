"""Aggregation of a tour's reviews into its cached rating summary.

Every call is a full recompute over the tour's current reviews, so summaries
converge after concurrent writes without locking. Cost is linear in the
number of reviews per tour.
"""

from typing import Dict, Optional

import structlog
from pymongo.errors import PyMongoError

from database import to_object_id
from errors import StoreUnavailableError
from reviews import ReviewStore
from tours import TourStore

logger = structlog.get_logger(__name__)

# Product default for a tour without reviews. Not derived from anything.
DEFAULT_RATINGS_AVERAGE = 4.5


def aggregate_ratings(review_store: ReviewStore, tour_id) -> Dict:
    pipeline = [
        {"$match": {"tour": to_object_id(tour_id, "tour")}},
        {"$group": {"_id": "$tour", "nRating": {"$sum": 1}, "avgRating": {"$avg": "$rating"}}},
    ]
    try:
        stats = list(review_store.collection.aggregate(pipeline))
    except PyMongoError as exc:
        raise StoreUnavailableError(f"Could not aggregate ratings: {exc}") from exc

    if stats:
        return {"ratingsQuantity": stats[0]["nRating"], "ratingsAverage": stats[0]["avgRating"]}
    return {"ratingsQuantity": 0, "ratingsAverage": DEFAULT_RATINGS_AVERAGE}


def recompute_summary(
    tour_id,
    review_store: Optional[ReviewStore] = None,
    tour_store: Optional[TourStore] = None,
) -> None:
    review_store = review_store or ReviewStore()
    tour_store = tour_store or TourStore()

    summary = aggregate_ratings(review_store, tour_id)
    tour_store.update_summary(tour_id, summary)
    logger.info(
        "ratings.recomputed",
        tour_id=str(tour_id),
        ratings_quantity=summary["ratingsQuantity"],
        ratings_average=summary["ratingsAverage"],
    )
