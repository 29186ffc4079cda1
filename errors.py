"""
Error taxonomy for the tour review service.

User-facing failures (bad review fields, duplicate review, unknown id) map to
4xx responses; a store that cannot be reached maps to 503.
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class TourReviewError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def status(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"


class ValidationError(TourReviewError):
    """Malformed review or tour fields."""

    status_code = 422

    @classmethod
    def from_schema_error(cls, exc) -> "ValidationError":
        err = exc.errors()[0]
        loc = ".".join(str(p) for p in err.get("loc", ()))
        return cls(f"{loc}: {err['msg']}" if loc else err["msg"])


class UniquenessError(TourReviewError):
    """Duplicate key, e.g. a second review by the same user on one tour."""

    status_code = 409


class NotFoundError(TourReviewError):
    status_code = 404


class StoreUnavailableError(TourReviewError):
    """Transient I/O failure talking to MongoDB."""

    status_code = 503


async def _handle_tour_review_error(request: Request, exc: TourReviewError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request.failed", path=request.url.path, error=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": exc.status, "message": exc.message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TourReviewError, _handle_tour_review_error)
