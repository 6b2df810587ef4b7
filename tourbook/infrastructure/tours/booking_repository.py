"""
Adapter: Booking persistence.
"""

from sqlalchemy import select
from sqlalchemy.engine import Connection

from tourbook.domain.tours.ports import BookingRepository
from tourbook.infrastructure.tours.document_store import SqlDocumentRepository, parse_id
from tourbook.infrastructure.tours.tables import bookings, tours, users


class BookingRepositoryAdapter(SqlDocumentRepository, BookingRepository):
    """SQLAlchemy adapter for bookings; tour and user are populated on read."""

    table = bookings

    def _populate(self, conn: Connection, docs: list[dict]) -> list[dict]:
        self._populate_reference(conn, docs, "tour", tours, ("name",))
        self._populate_reference(
            conn, docs, "user", users, ("name", "email"), users.c.active.is_(True)
        )
        return docs

    def tour_ids_for_user(self, user_id: str) -> list[str]:
        stmt = (
            select(bookings.c.tour_id)
            .where(bookings.c.user_id == parse_id(user_id, "user"))
            .distinct()
        )
        with self._engine.connect() as conn:
            return list(conn.execute(stmt).scalars())
