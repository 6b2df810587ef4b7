"""
Pure helpers for tour naming and scheduling statistics.
"""

import re
import unicodedata
from collections import defaultdict
from datetime import datetime
from typing import Iterable, Union

from tourbook.domain.tours.entities import MonthlyPlanEntry
from tourbook.domain.tours.errors import InvalidInputError

MAX_PLAN_MONTHS = 12

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """``"The Forest Hiker"`` -> ``"the-forest-hiker"``."""
    ascii_name = (
        unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    )
    return _NON_SLUG.sub("-", ascii_name.lower()).strip("-")


def _as_datetime(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def parse_year(value: str) -> int:
    try:
        year = int(value)
    except ValueError:
        raise InvalidInputError(f"Invalid year: {value}") from None
    if not 1 <= year <= 9999:
        raise InvalidInputError(f"Invalid year: {value}")
    return year


def monthly_plan(tours: Iterable[dict], year: int) -> list[MonthlyPlanEntry]:
    """Count tour starts per month of ``year``.

    Args:
        tours: Documents with ``name`` and ``startDates``.
        year: Calendar year to report on.

    Returns:
        Busiest months first (ties by month), at most twelve entries.
    """
    starts: dict[int, list[str]] = defaultdict(list)
    for tour in tours:
        for raw in tour.get("startDates") or []:
            start = _as_datetime(raw)
            if start.year == year:
                starts[start.month].append(tour["name"])

    entries = [
        MonthlyPlanEntry(month=month, num_tour_starts=len(names), tours=names)
        for month, names in starts.items()
    ]
    entries.sort(key=lambda e: (-e.num_tour_starts, e.month))
    return entries[:MAX_PLAN_MONTHS]
