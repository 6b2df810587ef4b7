"""
Use cases for bookings.

Bookings are plain resources; the only extra read lists the tours an
account has booked.
"""

from typing import Optional

from tourbook.application.tours.resources import ResourceService
from tourbook.domain.tours.ports import BookingRepository, TourRepository


class BookingService(ResourceService):
    def __init__(
        self,
        repo: BookingRepository,
        tour_repo: TourRepository,
        max_limit: Optional[int] = None,
    ) -> None:
        super().__init__(repo, max_limit)
        self._bookings = repo
        self._tour_repo = tour_repo

    def booked_tours(self, user_id: str) -> list[dict]:
        """Tours the account has at least one booking for."""
        return self._tour_repo.find_by_ids(self._bookings.tour_ids_for_user(user_id))
