"""
Adapter: Review persistence.

Implements the ReviewRepository port. The ``(tour, user)`` pair is unique
at the database level; a second review by the same author surfaces as an
IntegrityError for the error responder to classify.
"""

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from tourbook.domain.tours.entities import RatingStats
from tourbook.domain.tours.ports import ReviewRepository
from tourbook.infrastructure.tours.document_store import SqlDocumentRepository, parse_id
from tourbook.infrastructure.tours.tables import reviews, users


class ReviewRepositoryAdapter(SqlDocumentRepository, ReviewRepository):
    """SQLAlchemy adapter for reviews; authors are populated on read."""

    table = reviews

    def _populate(self, conn: Connection, docs: list[dict]) -> list[dict]:
        self._populate_reference(
            conn, docs, "user", users, ("name", "photo"), users.c.active.is_(True)
        )
        return docs

    def rating_stats(self, tour_id: str) -> RatingStats:
        stmt = select(func.count(reviews.c.id), func.avg(reviews.c.rating)).where(
            reviews.c.tour_id == parse_id(tour_id, "tour")
        )
        with self._engine.connect() as conn:
            quantity, average = conn.execute(stmt).one()
        if not quantity:
            return RatingStats.empty()
        return RatingStats(quantity=quantity, average=float(average))
