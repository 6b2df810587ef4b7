"""
Domain entities for the tours bounded context.

Collection reads travel as plain documents (dicts keyed by wire field
names) because projections make them partial. The entities below are the
shapes the domain reasons about directly.
They contain no framework imports and no IO operations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

DEFAULT_RATINGS_AVERAGE = 4.5


class Role(str, Enum):
    """Account role. Ordered from least to most privileged."""

    USER = "user"
    GUIDE = "guide"
    LEAD_GUIDE = "lead-guide"
    ADMIN = "admin"


class Difficulty(str, Enum):
    """Tour difficulty level."""

    EASY = "easy"
    MEDIUM = "medium"
    DIFFICULT = "difficult"


class DistanceUnit(str, Enum):
    MILES = "mi"
    KILOMETERS = "km"


@dataclass(frozen=True)
class Account:
    """An authenticated identity, including credential metadata.

    ``password_hash`` and the reset fields never leave the domain; they are
    not part of any serialized document.
    """

    id: str
    name: str
    email: str
    role: Role
    password_hash: str
    photo: str = "default.jpg"
    password_changed_at: Optional[datetime] = None
    password_reset_token: Optional[str] = None
    password_reset_expires: Optional[datetime] = None
    active: bool = True

    @property
    def first_name(self) -> str:
        return self.name.split(" ")[0]

    def changed_password_after(self, issued_at: int) -> bool:
        """Return True if the password changed after a token's ``iat``."""
        if self.password_changed_at is None:
            return False
        changed = self.password_changed_at
        if changed.tzinfo is None:
            changed = changed.replace(tzinfo=timezone.utc)
        return issued_at < changed.timestamp()

    def to_document(self) -> dict:
        """Public representation of the account."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "photo": self.photo,
            "role": self.role.value,
        }


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims of a session token."""

    subject: str
    issued_at: int


@dataclass(frozen=True)
class RatingStats:
    """Count and mean of a tour's reviews."""

    quantity: int
    average: float

    @classmethod
    def empty(cls) -> "RatingStats":
        return cls(quantity=0, average=DEFAULT_RATINGS_AVERAGE)


@dataclass(frozen=True)
class GeoPoint:
    """A WGS84 coordinate."""

    lat: float
    lng: float


@dataclass(frozen=True)
class MonthlyPlanEntry:
    """Number of tour starts in one calendar month."""

    month: int
    num_tour_starts: int
    tours: list[str] = field(default_factory=list)

    def to_document(self) -> dict:
        return {
            "month": self.month,
            "numTourStarts": self.num_tour_starts,
            "tours": list(self.tours),
        }
