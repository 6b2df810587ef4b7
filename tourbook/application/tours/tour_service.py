"""
Use cases for tours.

Adds tour-specific rules on top of the generic resource operations:
slugs follow the name, a discount must stay below the price, and the
specialised reads (cheapest tours, difficulty statistics, monthly plan,
radius search and distance listing).

Failure cases: InvalidInputError for broken business rules or malformed
geo parameters; NotFoundError for unknown ids.
"""

import logging
from typing import Any, Mapping, Optional

from tourbook.application.tours.resources import ResourceService
from tourbook.domain.tours.errors import InvalidInputError, NotFoundError
from tourbook.domain.tours.geo import parse_latlng, parse_unit, tour_distances, tours_within
from tourbook.domain.tours.planning import monthly_plan, parse_year, slugify
from tourbook.domain.tours.ports import TourRepository
from tourbook.domain.tours.query import ParamValue

logger = logging.getLogger(__name__)

TOP_CHEAP_PARAMS = {
    "limit": "5",
    "sort": "-ratingsAverage,price",
    "fields": "name,price,ratingsAverage,summary,difficulty",
}

STATS_MIN_RATING = 4.5

DISCOUNT_MESSAGE = "Discount price ({discount}) should be below regular price"


def _check_discount(price: Any, discount: Any) -> None:
    if discount is None or price is None:
        return
    if discount >= price:
        raise InvalidInputError(DISCOUNT_MESSAGE.format(discount=discount))


class TourService(ResourceService):
    """Tour reads and writes."""

    def __init__(self, repo: TourRepository, max_limit: Optional[int] = None) -> None:
        super().__init__(repo, max_limit)
        self._tours = repo

    def create_one(self, values: dict[str, Any]) -> dict:
        _check_discount(values.get("price"), values.get("priceDiscount"))
        values = {**values, "slug": slugify(values["name"])}
        return super().create_one(values)

    def update_one(self, doc_id: str, values: dict[str, Any]) -> dict:
        if "price" in values or "priceDiscount" in values:
            current = self.get_one(doc_id)
            _check_discount(
                values.get("price", current.get("price")),
                values.get("priceDiscount", current.get("priceDiscount")),
            )
        if values.get("name"):
            values = {**values, "slug": slugify(values["name"])}
        return super().update_one(doc_id, values)

    def get_by_slug(self, slug: str) -> dict:
        tour = self._tours.get_by_slug(slug)
        if tour is None:
            raise NotFoundError("There is no tour with that name.")
        return tour

    def top_cheap(self, params: Mapping[str, ParamValue]) -> list[dict]:
        """Five best-rated, cheapest tours; the alias overrides the caller's params."""
        return self.get_all({**params, **TOP_CHEAP_PARAMS})

    def stats(self) -> list[dict]:
        return self._tours.difficulty_stats(STATS_MIN_RATING)

    def monthly_plan(self, year: str) -> list[dict]:
        plan = monthly_plan(self._tours.find_schedules(), parse_year(year))
        return [entry.to_document() for entry in plan]

    def within(self, distance: str, latlng: str, unit: str) -> list[dict]:
        """Tours whose start location lies within ``distance`` of ``latlng``."""
        center = parse_latlng(latlng)
        distance_unit = parse_unit(unit)
        try:
            radius = float(distance)
        except ValueError:
            raise InvalidInputError(f"Invalid distance: {distance}") from None
        located = tours_within(self._tours.find_located(), center, radius, distance_unit)
        if not located:
            return []
        return self._tours.find_by_ids([t["id"] for t in located])

    def distances(self, latlng: str, unit: str) -> list[dict]:
        center = parse_latlng(latlng)
        return tour_distances(self._tours.find_located(), center, parse_unit(unit))
