"""
Use cases for reviews.

Every successful write (create, update, delete) is followed by an
explicit ``RatingAggregator.recompute`` for the affected tour, so the
tour's ``ratingsAverage`` / ``ratingsQuantity`` always reflect the stored
reviews.

Input:  partial review documents, optional pinned tour (nested routes)
Output: review documents
Side effects: updates the reviewed tour's rating aggregate.
Failure cases: NotFoundError for unknown reviews or tours;
    a second review of the same tour by the same author is rejected by
    the database uniqueness constraint.
"""

import logging
from typing import Any, Mapping, Optional

from tourbook.application.tours.resources import ResourceService
from tourbook.domain.tours.errors import NotFoundError
from tourbook.domain.tours.ports import ReviewRepository, TourRepository
from tourbook.domain.tours.query import EQUALS, FilterCondition, ParamValue, QueryOptions
from tourbook.domain.tours.rating_service import RatingAggregator

logger = logging.getLogger(__name__)


class ReviewService(ResourceService):
    """Review reads and rating-maintaining writes."""

    def __init__(
        self,
        repo: ReviewRepository,
        tour_repo: TourRepository,
        aggregator: RatingAggregator,
        max_limit: Optional[int] = None,
    ) -> None:
        super().__init__(repo, max_limit)
        self._tour_repo = tour_repo
        self._aggregator = aggregator

    def get_all(
        self,
        params: Mapping[str, ParamValue],
        base: Optional[QueryOptions] = None,
        tour_id: Optional[str] = None,
    ) -> list[dict]:
        """List reviews, restricted to one tour when ``tour_id`` is given."""
        if tour_id is not None:
            base = (base or QueryOptions()).where(
                FilterCondition("tour", EQUALS, tour_id)
            )
        return super().get_all(params, base)

    def create_one(
        self,
        values: dict[str, Any],
        tour_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> dict:
        """Create a review; ``tour`` and ``user`` default to the route and caller."""
        values = dict(values)
        if not values.get("tour"):
            values["tour"] = tour_id
        if not values.get("user"):
            values["user"] = user_id
        self._require_tour(values["tour"])

        review = super().create_one(values)
        self._aggregator.recompute(review["tour"])
        return review

    def update_one(self, doc_id: str, values: dict[str, Any]) -> dict:
        previous = self.get_one(doc_id)
        if values.get("tour"):
            self._require_tour(values["tour"])
        review = super().update_one(doc_id, values)
        self._aggregator.recompute(review["tour"])
        if review["tour"] != previous["tour"]:
            self._aggregator.recompute(previous["tour"])
        return review

    def delete_one(self, doc_id: str) -> None:
        review = self.get_one(doc_id)
        super().delete_one(doc_id)
        self._aggregator.recompute(review["tour"])

    def _require_tour(self, tour_id: Optional[str]) -> None:
        if not tour_id or self._tour_repo.get(tour_id) is None:
            raise NotFoundError("No tour found with that ID")
