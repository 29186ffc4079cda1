"""
Database Schemas

MongoDB collection schemas as Pydantic models. They validate every document
before it is written. Model name lowercased is the collection name:
- Tour -> "tour" collection
- Review -> "review" collection
- User -> "user" collection

Field names follow the stored documents (camelCase where the documents use it).
"""

from datetime import datetime
from typing import Any, List, Literal, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class Tour(BaseModel):
    """
    Catalogued tours. ratingsAverage/ratingsQuantity are a cache of the
    tour's reviews and are only written by the ratings module.
    Collection name: "tour"
    """
    name: str = Field(..., min_length=10, max_length=40, description="Unique tour name")
    duration: int = Field(..., gt=0, description="Length of the tour in days")
    maxGroupSize: int = Field(..., gt=0)
    difficulty: Literal["easy", "medium", "difficult"]
    ratingsAverage: float = Field(4.5, ge=1, le=5)
    ratingsQuantity: int = Field(0, ge=0)
    price: float = Field(..., ge=0)
    priceDiscount: Optional[float] = Field(None, ge=0)
    summary: str = Field(..., min_length=1)
    description: Optional[str] = None
    imageCover: str = Field(..., min_length=1)
    images: List[str] = Field(default_factory=list)
    startDates: List[datetime] = Field(default_factory=list)
    secretTour: bool = False

    @field_validator("name", "summary", "description")
    @classmethod
    def strip(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def discount_below_price(self):
        if self.priceDiscount is not None and self.priceDiscount >= self.price:
            raise ValueError(f"Discount price ({self.priceDiscount}) should be below the regular price")
        return self


class Review(BaseModel):
    """
    One review per (tour, user) pair.
    Collection name: "review"
    """
    review: str = Field(..., description="Review text")
    rating: float = Field(..., ge=1, le=5, strict=True, description="Rating from 1 to 5")
    createdAt: Optional[datetime] = None
    tour: Any = Field(..., description="ObjectId of the reviewed tour")
    user: Any = Field(..., description="ObjectId of the author")

    @field_validator("review")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Review can not be empty")
        return v

    @field_validator("tour", "user")
    @classmethod
    def object_id_ref(cls, v: Any, info: ValidationInfo) -> ObjectId:
        if v is None or v == "":
            raise ValueError(f"Review must belong to a {info.field_name}")
        if not ObjectId.is_valid(v):
            raise ValueError(f"{v!r} is not a valid {info.field_name} id")
        return ObjectId(v)


class User(BaseModel):
    """
    Collection name: "user"
    """
    name: str = Field(..., min_length=1)
    email: str
    photo: str = "default.jpg"
    role: Literal["user", "guide", "lead-guide", "admin"] = "user"


# --- Request bodies ---

class ReviewIn(BaseModel):
    review: str
    rating: float = Field(..., strict=True)
    user: str


class ReviewUpdate(BaseModel):
    """Only the text and the rating of a review can change."""
    model_config = ConfigDict(extra="forbid")

    review: Optional[str] = None
    rating: Optional[float] = Field(None, ge=1, le=5, strict=True)

    @field_validator("review")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Review can not be empty")
        return v


class TourIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    duration: int
    maxGroupSize: int
    difficulty: str
    price: float
    priceDiscount: Optional[float] = None
    summary: str
    description: Optional[str] = None
    imageCover: str
    images: List[str] = []
    startDates: List[datetime] = []
    secretTour: bool = False
