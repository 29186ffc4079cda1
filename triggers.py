"""Review mutations that keep the tour rating summary in step.

All writes to reviews go through these functions. Each one runs the
mutation first and recomputes the affected tour afterwards:

    create:          persist -> recompute(review.tour)
    update / delete: capture matching review -> mutate -> recompute(captured.tour)

The capture happens before the mutation because a filtered update or delete
may leave nothing that still matches the filter. A filter that matches no
review is a no-op and triggers no recompute.

Once the mutation has committed, a failing recompute is logged and reported
in TriggerResult.warnings; it never undoes or fails the review change. The
summary stays stale until the next successful recompute for that tour.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import structlog
from pydantic import ValidationError as SchemaError

from errors import NotFoundError, StoreUnavailableError, ValidationError
from ratings import recompute_summary
from reviews import ReviewStore
from schemas import ReviewUpdate
from tours import TourStore

logger = structlog.get_logger(__name__)


@dataclass
class TriggerResult:
    review: Optional[Dict] = None
    recomputed: bool = False
    warnings: List[str] = field(default_factory=list)


class ReviewTriggers:
    def __init__(self, review_store: Optional[ReviewStore] = None, tour_store: Optional[TourStore] = None):
        self.reviews = review_store or ReviewStore()
        self.tours = tour_store or TourStore()

    def _recompute_after(self, result: TriggerResult, tour_id, operation: str) -> TriggerResult:
        try:
            recompute_summary(tour_id, self.reviews, self.tours)
        except (StoreUnavailableError, NotFoundError) as exc:
            logger.warning(
                "ratings.recompute_failed",
                operation=operation,
                tour_id=str(tour_id),
                error=exc.message,
            )
            result.warnings.append(f"Rating summary for tour {tour_id} could not be refreshed: {exc.message}")
        else:
            result.recomputed = True
        return result

    def create_review(self, fields: Dict) -> TriggerResult:
        review = self.reviews.create(fields)
        logger.info("review.created", review_id=str(review["_id"]), tour_id=str(review["tour"]))
        return self._recompute_after(TriggerResult(review=review), review["tour"], "create")

    def update_review(self, filter_dict: Dict, fields: Dict) -> TriggerResult:
        try:
            changes = ReviewUpdate(**fields).model_dump(exclude_none=True)
        except SchemaError as exc:
            raise ValidationError.from_schema_error(exc) from exc

        captured = self.reviews.find_one(filter_dict)
        if captured is None:
            logger.debug("review.update_skipped", filter=str(filter_dict))
            return TriggerResult()

        updated = self.reviews.update_one({"_id": captured["_id"]}, changes)
        logger.info("review.updated", review_id=str(captured["_id"]), tour_id=str(captured["tour"]))
        return self._recompute_after(TriggerResult(review=updated), captured["tour"], "update")

    def delete_review(self, filter_dict: Dict) -> TriggerResult:
        captured = self.reviews.find_one(filter_dict)
        if captured is None:
            logger.debug("review.delete_skipped", filter=str(filter_dict))
            return TriggerResult()

        self.reviews.delete_one({"_id": captured["_id"]})
        logger.info("review.deleted", review_id=str(captured["_id"]), tour_id=str(captured["tour"]))
        return self._recompute_after(TriggerResult(review=captured), captured["tour"], "delete")
