import math
import os
from contextlib import asynccontextmanager
from typing import Dict

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import CFG, configure_logging
from database import get_db, serialize
from errors import NotFoundError, StoreUnavailableError, register_exception_handlers
from reviews import ReviewStore
from schemas import ReviewIn, ReviewUpdate, TourIn
from tours import TourStore
from triggers import ReviewTriggers, TriggerResult

configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        get_db()
    except StoreUnavailableError as exc:
        # retried on the next request that needs the database
        logger.error("database.unavailable_at_startup", error=exc.message)
    yield


app = FastAPI(title="Tours API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)


def present_tour(doc: Dict) -> Dict:
    out = serialize(doc)
    # stored value is the exact mean; clients see one decimal (4.666 -> 4.7)
    out["ratingsAverage"] = math.floor(out["ratingsAverage"] * 10 + 0.5) / 10
    return out


def present_result(result: TriggerResult, status: str = "success") -> Dict:
    body = {"status": status, "data": {"review": serialize(result.review)}}
    if result.warnings:
        body["warnings"] = result.warnings
    return body


@app.get("/")
def root():
    return {"status": "ok", "message": "Tours API running"}


@app.get("/tours")
def list_tours():
    tours = TourStore().list()
    return {"status": "success", "results": len(tours), "data": {"tours": [present_tour(t) for t in tours]}}


@app.post("/tours", status_code=201)
def create_tour(tour: TourIn):
    doc = TourStore().create(tour.model_dump())
    return {"status": "success", "data": {"tour": present_tour(doc)}}


@app.get("/tours/{tour_id}")
def get_tour(tour_id: str):
    doc = TourStore().get(tour_id)
    return {"status": "success", "data": {"tour": present_tour(doc)}}


# nested routes: POST/GET /tours/{tour_id}/reviews
@app.post("/tours/{tour_id}/reviews", status_code=201)
def add_review(tour_id: str, review: ReviewIn):
    TourStore().get(tour_id)
    fields = review.model_dump()
    fields["tour"] = tour_id
    return present_result(ReviewTriggers().create_review(fields))


@app.get("/tours/{tour_id}/reviews")
def list_reviews(tour_id: str, limit: int = 50):
    items = ReviewStore().find_populated({"tour": tour_id}, limit)
    return {"status": "success", "results": len(items), "data": {"reviews": [serialize(d) for d in items]}}


@app.delete("/tours/{tour_id}/reviews/{user_id}")
def delete_tour_review(tour_id: str, user_id: str):
    result = ReviewTriggers().delete_review({"tour": tour_id, "user": user_id})
    return present_result(result)


@app.patch("/reviews/{review_id}")
def update_review(review_id: str, changes: ReviewUpdate):
    result = ReviewTriggers().update_review({"_id": review_id}, changes.model_dump(exclude_none=True))
    if result.review is None:
        raise NotFoundError("No review found with that ID")
    return present_result(result)


@app.delete("/reviews/{review_id}")
def delete_review(review_id: str):
    result = ReviewTriggers().delete_review({"_id": review_id})
    if result.review is None:
        raise NotFoundError("No review found with that ID")
    return present_result(result)


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
    }
    try:
        get_db().command("ping")
        response["database"] = "✅ Connected"
    except Exception as exc:
        logger.warning("database.unreachable", error=str(exc))
    return response


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", CFG.port))
    uvicorn.run(app, host="0.0.0.0", port=port)
