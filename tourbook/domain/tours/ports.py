"""
Port interfaces (ABCs) for the tours bounded context.

Ports define the contracts that the domain requires from the outside world.
Infrastructure adapters implement these interfaces.
The domain layer never depends on concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from tourbook.domain.tours.entities import Account, RatingStats, TokenClaims
from tourbook.domain.tours.query import QueryOptions


class DocumentRepository(ABC):
    """Port for CRUD access to one collection of documents.

    Documents are dicts keyed by wire field names; ``id`` is always present.
    """

    @abstractmethod
    def find(self, options: QueryOptions) -> list[dict]:
        """Return documents matching a shaped query."""
        raise NotImplementedError

    @abstractmethod
    def get(self, doc_id: str) -> Optional[dict]:
        """Return one document by id, or None if not found."""
        raise NotImplementedError

    @abstractmethod
    def create(self, values: dict[str, Any]) -> dict:
        """Insert a document and return it."""
        raise NotImplementedError

    @abstractmethod
    def update(self, doc_id: str, values: dict[str, Any]) -> Optional[dict]:
        """Apply a partial update; return the new document or None."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, doc_id: str) -> bool:
        """Remove a document; return False if it did not exist."""
        raise NotImplementedError


class TourRepository(DocumentRepository):
    """Port for tours, hiding secret tours from every read."""

    @abstractmethod
    def get_by_slug(self, slug: str) -> Optional[dict]:
        """Return a tour with its guides and reviews populated."""
        raise NotImplementedError

    @abstractmethod
    def find_located(self) -> list[dict]:
        """Return ``id``, ``name`` and ``startLocation`` of every tour."""
        raise NotImplementedError

    @abstractmethod
    def find_schedules(self) -> list[dict]:
        """Return ``name`` and ``startDates`` of every tour."""
        raise NotImplementedError

    @abstractmethod
    def difficulty_stats(self, min_rating: float) -> list[dict]:
        """Aggregate counts, ratings and prices per difficulty."""
        raise NotImplementedError

    @abstractmethod
    def find_by_ids(self, tour_ids: list[str]) -> list[dict]:
        raise NotImplementedError

    @abstractmethod
    def set_rating_stats(self, tour_id: str, stats: RatingStats) -> None:
        """Store a recomputed rating aggregate on a tour."""
        raise NotImplementedError


class ReviewRepository(DocumentRepository):
    """Port for reviews."""

    @abstractmethod
    def rating_stats(self, tour_id: str) -> RatingStats:
        """Return count and mean rating of a tour's reviews."""
        raise NotImplementedError


class BookingRepository(DocumentRepository):
    """Port for bookings."""

    @abstractmethod
    def tour_ids_for_user(self, user_id: str) -> list[str]:
        raise NotImplementedError


class AccountRepository(DocumentRepository):
    """Port for accounts. Inactive accounts are invisible to every read."""

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[Account]:
        raise NotImplementedError

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[Account]:
        raise NotImplementedError

    @abstractmethod
    def get_by_reset_token(self, token_hash: str) -> Optional[Account]:
        raise NotImplementedError

    @abstractmethod
    def set_password(
        self, account_id: str, password_hash: str, changed_at: Optional[datetime]
    ) -> None:
        """Store a new credential and clear any pending reset token."""
        raise NotImplementedError

    @abstractmethod
    def set_reset_token(
        self,
        account_id: str,
        token_hash: Optional[str],
        expires: Optional[datetime],
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    def deactivate(self, account_id: str) -> bool:
        raise NotImplementedError


class PasswordHasher(ABC):
    """Port for one-way adaptive credential hashing."""

    @abstractmethod
    def hash(self, password: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def verify(self, password: str, password_hash: str) -> bool:
        raise NotImplementedError


class TokenService(ABC):
    """Port for issuing and verifying signed session tokens."""

    @abstractmethod
    def issue(self, subject: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def verify(self, token: str) -> TokenClaims:
        """Return verified claims.

        Signature and expiry failures propagate as the adapter's own
        errors; the error responder classifies them.
        """
        raise NotImplementedError


class Mailer(ABC):
    """Port for handing an email to a transport."""

    @abstractmethod
    def send(self, to: str, subject: str, html: str) -> None:
        raise NotImplementedError
