import mongomock
import pytest
from fastapi.testclient import TestClient

from database import ensure_indexes, set_db
from reviews import ReviewStore
from tours import TourStore
from triggers import ReviewTriggers


@pytest.fixture()
def db():
    database = mongomock.MongoClient()["tours_test"]
    ensure_indexes(database)
    set_db(database)
    yield database
    set_db(None)


@pytest.fixture()
def review_store(db):
    return ReviewStore(db)


@pytest.fixture()
def tour_store(db):
    return TourStore(db)


@pytest.fixture()
def triggers(review_store, tour_store):
    return ReviewTriggers(review_store, tour_store)


def make_tour(tour_store, **overrides):
    fields = {
        "name": "The Forest Hiker",
        "duration": 5,
        "maxGroupSize": 25,
        "difficulty": "easy",
        "price": 397,
        "summary": "Breathtaking hike through the Canadian Banff National Park",
        "imageCover": "tour-1-cover.jpg",
    }
    fields.update(overrides)
    return tour_store.create(fields)


@pytest.fixture()
def tour(tour_store):
    return make_tour(tour_store)


@pytest.fixture()
def users(db):
    ids = []
    for name in ("Ana", "Ben", "Cleo"):
        result = db["user"].insert_one({"name": name, "email": f"{name.lower()}@example.com", "photo": f"{name}.jpg"})
        ids.append(result.inserted_id)
    return ids


@pytest.fixture()
def client(db):
    from main import app

    return TestClient(app)


def summary_of(tour_store, tour_id):
    doc = tour_store.get(tour_id)
    return doc["ratingsQuantity"], doc["ratingsAverage"]