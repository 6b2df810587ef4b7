"""
Pydantic schemas for tours API request validation.

Request bodies use camelCase field names on the wire (``maxGroupSize``,
``passwordConfirm``); handlers dump them back by alias so documents keep
the same names end to end.
No business logic belongs here.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from tourbook.domain.tours.entities import Difficulty

NAME_MIN_LEN = 10
NAME_MAX_LEN = 40
PASSWORD_MIN_LEN = 8
PASSWORDS_DIFFER = "Passwords are not equal!"


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, unknown fields rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    def to_values(self) -> dict:
        """Fields the caller actually sent, keyed by wire name."""
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")


def _round_rating(value: Optional[float]) -> Optional[float]:
    return round(value, 1) if value is not None else None


# ── Tours ────────────────────────────────────────────────────────────


class GeoPointSchema(CamelModel):
    """GeoJSON point. ``coordinates`` are ``[lng, lat]``."""

    type: Literal["Point"] = "Point"
    coordinates: list[float] = Field(..., min_length=2, max_length=2)
    address: Optional[str] = None
    description: Optional[str] = None
    day: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def default_type(cls, data):
        if isinstance(data, dict):
            return {"type": "Point", **data}
        return data

    @field_validator("coordinates")
    @classmethod
    def check_range(cls, value: list[float]) -> list[float]:
        lng, lat = value
        if not (-180 <= lng <= 180 and -90 <= lat <= 90):
            raise ValueError("Coordinates must be [lng, lat] within range")
        return value


class TourCreateRequest(CamelModel):
    """Request schema for creating a tour.

    ``slug`` is derived from ``name`` and cannot be sent.
    """

    name: str = Field(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    duration: int = Field(..., gt=0)
    max_group_size: int = Field(..., gt=0)
    difficulty: Difficulty
    ratings_average: float = Field(default=4.5, ge=1, le=5)
    ratings_quantity: int = Field(default=0, ge=0)
    price: float = Field(..., ge=0)
    price_discount: Optional[float] = Field(default=None, ge=0)
    summary: str = Field(..., min_length=1)
    description: Optional[str] = None
    image_cover: str = Field(..., min_length=1)
    images: list[str] = Field(default_factory=list)
    start_dates: list[datetime] = Field(default_factory=list)
    secret_tour: bool = False
    start_location: Optional[GeoPointSchema] = None
    locations: list[GeoPointSchema] = Field(default_factory=list)
    guides: list[str] = Field(default_factory=list)

    @field_validator("ratings_average")
    @classmethod
    def round_rating(cls, value: Optional[float]) -> Optional[float]:
        return _round_rating(value)

    @field_validator("name", "summary", "description")
    @classmethod
    def strip(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else None


class TourUpdateRequest(CamelModel):
    """Request schema for a partial tour update. Every field is optional."""

    name: Optional[str] = Field(default=None, min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    duration: Optional[int] = Field(default=None, gt=0)
    max_group_size: Optional[int] = Field(default=None, gt=0)
    difficulty: Optional[Difficulty] = None
    ratings_average: Optional[float] = Field(default=None, ge=1, le=5)
    ratings_quantity: Optional[int] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, ge=0)
    price_discount: Optional[float] = Field(default=None, ge=0)
    summary: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    image_cover: Optional[str] = Field(default=None, min_length=1)
    images: Optional[list[str]] = None
    start_dates: Optional[list[datetime]] = None
    secret_tour: Optional[bool] = None
    start_location: Optional[GeoPointSchema] = None
    locations: Optional[list[GeoPointSchema]] = None
    guides: Optional[list[str]] = None

    @field_validator("ratings_average")
    @classmethod
    def round_rating(cls, value: Optional[float]) -> Optional[float]:
        return _round_rating(value)


# ── Reviews ──────────────────────────────────────────────────────────


class ReviewCreateRequest(CamelModel):
    """Request schema for creating a review.

    ``tour`` and ``user`` may be omitted; they default to the route's tour
    and the caller.
    """

    review: str = Field(..., min_length=1)
    rating: float = Field(..., ge=1, le=5)
    tour: Optional[str] = None
    user: Optional[str] = None


class ReviewUpdateRequest(CamelModel):
    review: Optional[str] = Field(default=None, min_length=1)
    rating: Optional[float] = Field(default=None, ge=1, le=5)


# ── Bookings ─────────────────────────────────────────────────────────


class BookingCreateRequest(CamelModel):
    tour: str
    user: str
    price: float = Field(..., ge=0)
    paid: bool = True


class BookingUpdateRequest(CamelModel):
    tour: Optional[str] = None
    user: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    paid: Optional[bool] = None


# ── Users ────────────────────────────────────────────────────────────


class _PasswordPair(CamelModel):
    password: str = Field(..., min_length=PASSWORD_MIN_LEN)
    password_confirm: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError(PASSWORDS_DIFFER)
        return self


class SignupRequest(_PasswordPair):
    """Request schema for signup. A ``role`` in the body is ignored."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    email: EmailStr


class LoginRequest(CamelModel):
    """Missing fields are reported by the login use case, not the schema."""

    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(_PasswordPair):
    pass


class UpdatePasswordRequest(CamelModel):
    password_current: str
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN)
    password_confirm: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.password_confirm:
            raise ValueError(PASSWORDS_DIFFER)
        return self


class UpdateMeRequest(CamelModel):
    """Profile update. Only ``name`` and ``email`` are applied; other
    fields are dropped, password fields are refused by the use case."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(default=None, min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    password_confirm: Optional[str] = None


class UserUpdateRequest(CamelModel):
    """Admin update of an account. Credentials cannot be changed here."""

    name: Optional[str] = Field(default=None, min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    email: Optional[EmailStr] = None
    photo: Optional[str] = None
    role: Optional[Literal["user", "guide", "lead-guide", "admin"]] = None

    @field_validator("email")
    @classmethod
    def lowercase(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value is not None else None


class HealthResponse(CamelModel):
    status: str
    version: str
    database: str
