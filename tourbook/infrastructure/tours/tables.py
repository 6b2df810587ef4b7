"""
SQLAlchemy Core table definitions for the tours context.

Column keys are snake_case; documents expose them in camelCase
(``ratings_average`` -> ``ratingsAverage``) unless ``info["field"]``
names the wire field explicitly. Columns flagged ``info["hidden"]`` are
writable but never read back into a document.
"""

from datetime import datetime, timezone
from uuid import uuid4

from pydantic.alias_generators import to_camel
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()


def _new_id() -> str:
    return str(uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _id_column() -> Column:
    return Column("id", String(36), primary_key=True, default=_new_id)


def _created_at_column() -> Column:
    return Column("created_at", DateTime(timezone=True), nullable=False, default=_now)


def _version_column() -> Column:
    return Column("version", Integer, nullable=False, default=0)


def field_name(column: Column) -> str:
    """Wire field name of a column."""
    return column.info.get("field") or to_camel(column.key)


users = Table(
    "users",
    metadata,
    _id_column(),
    Column("name", String(40), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("photo", String(255), nullable=False, default="default.jpg"),
    Column("role", String(20), nullable=False, default="user"),
    Column("password_hash", String(255), nullable=False, info={"hidden": True}),
    Column("password_changed_at", DateTime(timezone=True), info={"hidden": True}),
    Column("password_reset_token", String(64), index=True, info={"hidden": True}),
    Column("password_reset_expires", DateTime(timezone=True), info={"hidden": True}),
    Column("active", Boolean, nullable=False, default=True, info={"hidden": True}),
    _created_at_column(),
    _version_column(),
)

tours = Table(
    "tours",
    metadata,
    _id_column(),
    Column("name", String(40), nullable=False, unique=True),
    Column("slug", String(60), nullable=False, index=True),
    Column("duration", Integer, nullable=False),
    Column("max_group_size", Integer, nullable=False),
    Column("difficulty", String(20), nullable=False),
    Column("ratings_average", Float, nullable=False, default=4.5),
    Column("ratings_quantity", Integer, nullable=False, default=0),
    Column("price", Float, nullable=False, index=True),
    Column("price_discount", Float),
    Column("summary", Text, nullable=False),
    Column("description", Text),
    Column("image_cover", String(255), nullable=False),
    Column("images", JSON, nullable=False, default=list),
    Column("start_dates", JSON, nullable=False, default=list),
    Column("secret_tour", Boolean, nullable=False, default=False),
    Column("start_location", JSON),
    Column("locations", JSON, nullable=False, default=list),
    _created_at_column(),
    _version_column(),
)

tour_guides = Table(
    "tour_guides",
    metadata,
    Column(
        "tour_id",
        String(36),
        ForeignKey("tours.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "user_id",
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

reviews = Table(
    "reviews",
    metadata,
    _id_column(),
    Column("review", Text, nullable=False),
    Column("rating", Float, nullable=False),
    Column(
        "tour_id",
        String(36),
        ForeignKey("tours.id", ondelete="CASCADE"),
        nullable=False,
        info={"field": "tour"},
    ),
    Column(
        "user_id",
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        info={"field": "user"},
    ),
    _created_at_column(),
    _version_column(),
    UniqueConstraint("tour_id", "user_id", name="uq_reviews_tour_user"),
)

bookings = Table(
    "bookings",
    metadata,
    _id_column(),
    Column(
        "tour_id",
        String(36),
        ForeignKey("tours.id", ondelete="CASCADE"),
        nullable=False,
        info={"field": "tour"},
    ),
    Column(
        "user_id",
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        info={"field": "user"},
    ),
    Column("price", Float, nullable=False),
    Column("paid", Boolean, nullable=False, default=True),
    _created_at_column(),
    _version_column(),
)
