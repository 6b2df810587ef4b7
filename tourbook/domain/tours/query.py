"""
Query shaping: translate query-string parameters into a collection read.

``QueryShaper`` is an immutable value. Each stage (filter, sort,
limit_fields, paginate) returns a new shaper whose ``options`` carry the
configured ``QueryOptions``; nothing touches storage. Stages are
independent and calling any of them twice yields the same options.

    options = (
        QueryShaper(params, base=QueryOptions(), max_limit=1000)
        .filter()
        .sort()
        .limit_fields()
        .paginate()
        .options
    )

Filter values stay as raw strings here. Casting them to column types is
the repository's job, since only storage knows the schema.
"""

import re
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Sequence, Union

from tourbook.domain.tours.errors import InvalidQueryError

ParamValue = Union[str, Sequence[str]]

RESERVED_PARAMS = frozenset({"page", "sort", "limit", "fields"})

# Query-string comparison suffix -> storage operator name
COMPARISON_OPERATORS = {"gte": "ge", "gt": "gt", "lte": "le", "lt": "lt"}
EQUALS = "eq"
IN = "in"

ID_FIELD = "id"
CREATED_AT_FIELD = "createdAt"
INTERNAL_VERSION_FIELD = "version"

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100

# Largest value a signed 64-bit SQL integer column or OFFSET can hold
SQL_INT_MAX = 2**63 - 1

_BRACKETED_KEY = re.compile(r"^(?P<field>\w+)\[(?P<op>\w+)\]$")


@dataclass(frozen=True)
class FilterCondition:
    """A single constraint: ``field <operator> value``."""

    field: str
    operator: str
    value: Any


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False

    @classmethod
    def parse(cls, token: str) -> "SortKey":
        """Parse ``price`` / ``-price`` into a sort key."""
        if token.startswith("-"):
            return cls(token[1:], descending=True)
        return cls(token)


DEFAULT_SORT = (SortKey(CREATED_AT_FIELD, descending=True), SortKey(ID_FIELD))


@dataclass(frozen=True)
class QueryOptions:
    """Fully configured, not yet executed, collection read.

    Attributes:
        filters: Constraints combined with AND.
        sort: Ordered sort keys.
        include_fields: Inclusion projection. Empty means "all fields".
        exclude_fields: Fields dropped from every document.
        offset: Number of documents to skip.
        limit: Maximum number of documents. None means unbounded.
    """

    filters: tuple[FilterCondition, ...] = ()
    sort: tuple[SortKey, ...] = ()
    include_fields: tuple[str, ...] = ()
    exclude_fields: tuple[str, ...] = ()
    offset: int = 0
    limit: Optional[int] = None

    def where(self, *conditions: FilterCondition) -> "QueryOptions":
        """Return a copy with extra constraints appended."""
        return replace(self, filters=self.filters + tuple(conditions))

    @property
    def filter_fields(self) -> set[str]:
        return {c.field for c in self.filters}


def _last(value: ParamValue) -> str:
    """Repeated parameters collapse to their last value."""
    if isinstance(value, str):
        return value
    return value[-1] if value else ""


def _split_csv(value: ParamValue) -> list[str]:
    return [part.strip() for part in _last(value).split(",") if part.strip()]


def _positive_int(value: Optional[ParamValue], default: int) -> int:
    if value is None:
        return default
    try:
        number = int(_last(value))
    except ValueError:
        return default
    return number if number > 0 else default


def parse_condition(key: str, value: ParamValue) -> FilterCondition:
    """Turn one query-string pair into a filter condition.

    ``price[gte]=500`` becomes ``FilterCondition("price", "ge", "500")``;
    a repeated plain parameter becomes an ``in`` condition.

    Raises:
        InvalidQueryError: If the bracketed operator is not supported.
    """
    match = _BRACKETED_KEY.match(key)
    if match:
        operator = COMPARISON_OPERATORS.get(match.group("op"))
        if operator is None:
            raise InvalidQueryError(
                f"Unsupported filter operator: {match.group('op')}"
            )
        return FilterCondition(match.group("field"), operator, _last(value))

    if isinstance(value, str):
        return FilterCondition(key, EQUALS, value)
    values = tuple(value)
    if len(values) == 1:
        return FilterCondition(key, EQUALS, values[0])
    return FilterCondition(key, IN, values)


@dataclass(frozen=True)
class QueryShaper:
    """Immutable filter/sort/project/paginate pipeline over query params.

    Attributes:
        params: Query-string parameters. Values are strings, or sequences
            of strings for repeated whitelisted parameters.
        base: Pre-configured read the stages build upon (e.g. a nested
            route that pins ``tour``).
        max_limit: Ceiling applied to the ``limit`` parameter.
    """

    params: Mapping[str, ParamValue]
    base: QueryOptions = field(default_factory=QueryOptions)
    max_limit: Optional[int] = None
    options: QueryOptions = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.options is None:
            object.__setattr__(self, "options", self.base)

    def _with(self, **changes: Any) -> "QueryShaper":
        return replace(self, options=replace(self.options, **changes))

    def filter(self) -> "QueryShaper":
        """Turn every non-reserved parameter into an AND-ed constraint."""
        conditions = tuple(
            parse_condition(key, value)
            for key, value in self.params.items()
            if key not in RESERVED_PARAMS
        )
        return self._with(filters=self.base.filters + conditions)

    def sort(self) -> "QueryShaper":
        """Order by ``sort=a,-b``; newest first (then id) by default."""
        tokens = _split_csv(self.params.get("sort", ""))
        if not tokens:
            return self._with(sort=self.base.sort or DEFAULT_SORT)
        return self._with(sort=tuple(SortKey.parse(t) for t in tokens))

    def limit_fields(self) -> "QueryShaper":
        """Project ``fields=a,b`` (plus id); hide the version field by default."""
        tokens = _split_csv(self.params.get("fields", ""))
        if not tokens:
            return self._with(
                include_fields=self.base.include_fields,
                exclude_fields=_merge(self.base.exclude_fields, INTERNAL_VERSION_FIELD),
            )

        excluded = [t[1:] for t in tokens if t.startswith("-")]
        if excluded and len(excluded) != len(tokens):
            raise InvalidQueryError("Cannot mix field inclusion and exclusion")
        if excluded:
            return self._with(
                include_fields=(),
                exclude_fields=_merge(self.base.exclude_fields, *excluded),
            )
        return self._with(
            include_fields=tuple(dict.fromkeys([ID_FIELD, *tokens])),
            exclude_fields=self.base.exclude_fields,
        )

    def paginate(self) -> "QueryShaper":
        """Translate ``page``/``limit`` into offset/limit."""
        page = _positive_int(self.params.get("page"), DEFAULT_PAGE)
        limit = _positive_int(self.params.get("limit"), DEFAULT_LIMIT)
        if self.max_limit is not None:
            limit = min(limit, self.max_limit)
        limit = min(limit, SQL_INT_MAX)
        offset = min((page - 1) * limit, SQL_INT_MAX)
        return self._with(offset=offset, limit=limit)


def _merge(existing: tuple[str, ...], *extra: str) -> tuple[str, ...]:
    return tuple(dict.fromkeys([*existing, *extra]))


def shape_query(
    params: Mapping[str, ParamValue],
    base: Optional[QueryOptions] = None,
    max_limit: Optional[int] = None,
) -> QueryOptions:
    """Run all four stages in their documented order."""
    return (
        QueryShaper(params, base=base or QueryOptions(), max_limit=max_limit)
        .filter()
        .sort()
        .limit_fields()
        .paginate()
        .options
    )
