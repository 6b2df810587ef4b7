"""
Aggregate rating maintenance.

Review writes call ``RatingAggregator.recompute`` explicitly after the
write succeeds. The aggregate is always recomputed from the stored
reviews, never adjusted incrementally.
"""

import logging

from tourbook.domain.tours.entities import RatingStats
from tourbook.domain.tours.ports import ReviewRepository, TourRepository

logger = logging.getLogger(__name__)


class RatingAggregator:
    """Recomputes a tour's ``ratingsAverage`` / ``ratingsQuantity``."""

    def __init__(
        self, review_repo: ReviewRepository, tour_repo: TourRepository
    ) -> None:
        self._review_repo = review_repo
        self._tour_repo = tour_repo

    def recompute(self, tour_id: str) -> RatingStats:
        stats = self._review_repo.rating_stats(tour_id)
        if stats.quantity == 0:
            stats = RatingStats.empty()
        else:
            stats = RatingStats(
                quantity=stats.quantity, average=round(stats.average, 1)
            )
        self._tour_repo.set_rating_stats(tour_id, stats)
        logger.info(
            "Recomputed ratings for tour=%s quantity=%d average=%.1f",
            tour_id,
            stats.quantity,
            stats.average,
        )
        return stats
