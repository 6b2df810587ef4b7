"""
Adapter: Tour persistence.

Implements the TourRepository port on the ``tours`` table. Secret tours
are filtered out of every read, lookup and statistic. Guides live in the
``tour_guides`` association table and are populated on read.
"""

import logging
from typing import Any, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Connection

from tourbook.domain.tours.entities import RatingStats
from tourbook.domain.tours.ports import TourRepository
from tourbook.domain.tours.query import INTERNAL_VERSION_FIELD, QueryOptions
from tourbook.infrastructure.tours.document_store import (
    SqlDocumentRepository,
    as_utc,
    parse_id,
)
from tourbook.infrastructure.tours.tables import reviews, tour_guides, tours, users

logger = logging.getLogger(__name__)

GUIDE_FIELDS = ("name", "email", "role", "photo")


class TourRepositoryAdapter(SqlDocumentRepository, TourRepository):
    """SQLAlchemy adapter for tours."""

    table = tours
    virtual_fields = frozenset({"guides", "durationWeeks", "reviews"})

    def _base_conditions(self) -> list:
        return [tours.c.secret_tour.is_(False)]

    def _populate(self, conn: Connection, docs: list[dict]) -> list[dict]:
        if not docs:
            return docs
        ids = [d["id"] for d in docs]
        stmt = (
            select(tour_guides.c.tour_id, users.c.id, *(users.c[f] for f in GUIDE_FIELDS))
            .join(users, users.c.id == tour_guides.c.user_id)
            .where(tour_guides.c.tour_id.in_(ids), users.c.active.is_(True))
            .order_by(users.c.name)
        )
        guides: dict[str, list[dict]] = {tour_id: [] for tour_id in ids}
        for row in conn.execute(stmt).mappings():
            guides[row["tour_id"]].append(
                {"id": row["id"], **{f: row[f] for f in GUIDE_FIELDS}}
            )
        for doc in docs:
            doc["guides"] = guides[doc["id"]]
            doc["durationWeeks"] = doc["duration"] / 7
        return docs

    def _after_write(self, conn: Connection, doc_id: str, values: dict[str, Any]) -> None:
        if "guides" not in values:
            return
        conn.execute(delete(tour_guides).where(tour_guides.c.tour_id == doc_id))
        guide_ids = list(dict.fromkeys(parse_id(g, "guides") for g in values["guides"]))
        if guide_ids:
            conn.execute(
                insert(tour_guides),
                [{"tour_id": doc_id, "user_id": g} for g in guide_ids],
            )

    def _reviews_for(self, conn: Connection, tour_id: str) -> list[dict]:
        stmt = (
            select(
                reviews.c.id,
                reviews.c.review,
                reviews.c.rating,
                reviews.c.created_at,
                users.c.id.label("user_id"),
                users.c.name,
                users.c.photo,
            )
            .outerjoin(users, (users.c.id == reviews.c.user_id) & users.c.active.is_(True))
            .where(reviews.c.tour_id == tour_id)
            .order_by(reviews.c.created_at.desc())
        )
        return [
            {
                "id": row["id"],
                "review": row["review"],
                "rating": row["rating"],
                "createdAt": as_utc(row["created_at"]),
                "tour": tour_id,
                "user": (
                    {"id": row["user_id"], "name": row["name"], "photo": row["photo"]}
                    if row["user_id"] is not None
                    else None
                ),
            }
            for row in conn.execute(stmt).mappings()
        ]

    def get(self, doc_id: str) -> Optional[dict]:
        doc = super().get(doc_id)
        if doc is not None:
            with self._engine.connect() as conn:
                doc["reviews"] = self._reviews_for(conn, doc["id"])
        return doc

    def get_by_slug(self, slug: str) -> Optional[dict]:
        stmt = select(tours.c.id).where(tours.c.slug == slug, *self._base_conditions())
        with self._engine.connect() as conn:
            tour_id = conn.execute(stmt).scalar()
        if tour_id is None:
            return None
        return self.get(tour_id)

    def find_located(self) -> list[dict]:
        stmt = select(tours.c.id, tours.c.name, tours.c.start_location).where(
            tours.c.start_location.is_not(None), *self._base_conditions()
        )
        with self._engine.connect() as conn:
            return [
                {"id": r["id"], "name": r["name"], "startLocation": r["start_location"]}
                for r in conn.execute(stmt).mappings()
            ]

    def find_schedules(self) -> list[dict]:
        stmt = select(tours.c.name, tours.c.start_dates).where(*self._base_conditions())
        with self._engine.connect() as conn:
            return [
                {"name": r["name"], "startDates": r["start_dates"] or []}
                for r in conn.execute(stmt).mappings()
            ]

    def difficulty_stats(self, min_rating: float) -> list[dict]:
        avg_price = func.avg(tours.c.price)
        stmt = (
            select(
                tours.c.difficulty,
                func.count(tours.c.id).label("num_tours"),
                func.sum(tours.c.ratings_quantity).label("num_ratings"),
                func.avg(tours.c.ratings_average).label("avg_rating"),
                avg_price.label("avg_price"),
                func.min(tours.c.price).label("min_price"),
                func.max(tours.c.price).label("max_price"),
            )
            .where(tours.c.ratings_average >= min_rating, *self._base_conditions())
            .group_by(tours.c.difficulty)
            .order_by(avg_price)
        )
        with self._engine.connect() as conn:
            return [
                {
                    "difficulty": r["difficulty"],
                    "numTours": r["num_tours"],
                    "numRatings": r["num_ratings"] or 0,
                    "avgRating": float(r["avg_rating"]),
                    "avgPrice": float(r["avg_price"]),
                    "minPrice": r["min_price"],
                    "maxPrice": r["max_price"],
                }
                for r in conn.execute(stmt).mappings()
            ]

    def find_by_ids(self, tour_ids: list[str]) -> list[dict]:
        if not tour_ids:
            return []
        stmt = select(tours).where(tours.c.id.in_(tour_ids), *self._base_conditions())
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
            docs = self._populate(conn, [self._to_document(r) for r in rows])
        hidden = QueryOptions(exclude_fields=(INTERNAL_VERSION_FIELD,))
        return [self._project(doc, hidden) for doc in docs]

    def set_rating_stats(self, tour_id: str, stats: RatingStats) -> None:
        stmt = (
            update(tours)
            .where(tours.c.id == tour_id)
            .values(ratings_quantity=stats.quantity, ratings_average=stats.average)
        )
        with self._engine.begin() as conn:
            conn.execute(stmt)
