"""
Tests for the tours domain layer.

Geo helpers, scheduling, rating aggregation and the auth chain are
exercised with plain objects and mocked ports. No database or network.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from tourbook.domain.tours.auth_service import (
    ACCOUNT_GONE,
    NOT_LOGGED_IN,
    AuthService,
    ensure_role,
)
from tourbook.domain.tours.entities import (
    Account,
    DistanceUnit,
    GeoPoint,
    RatingStats,
    Role,
    TokenClaims,
)
from tourbook.domain.tours.errors import (
    AuthenticationError,
    EmailDeliveryError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
)
from tourbook.domain.tours.geo import parse_latlng, parse_unit, tour_distances, tours_within
from tourbook.domain.tours.planning import monthly_plan, parse_year, slugify
from tourbook.domain.tours.rating_service import RatingAggregator


def _account(role: Role = Role.USER, changed_at=None) -> Account:
    return Account(
        id="5c8a1d5b-0190-4a1b-8f5c-1a2b3c4d5e6f",
        name="Laura Wilson",
        email="laura@tourbook.io",
        role=role,
        password_hash="hash",
        password_changed_at=changed_at,
    )


def _located(tour_id: str, lng: float, lat: float) -> dict:
    return {
        "id": tour_id,
        "name": f"Tour {tour_id}",
        "startLocation": {"type": "Point", "coordinates": [lng, lat]},
    }


# ══════════════════════════════════════════════════════════════════════
# Errors
# ══════════════════════════════════════════════════════════════════════


class TestAppError:
    def test_client_errors_are_fail(self) -> None:
        assert NotFoundError().status == "fail"
        assert NotFoundError().status_code == 404

    def test_server_errors_are_error(self) -> None:
        assert EmailDeliveryError().status == "error"


# ══════════════════════════════════════════════════════════════════════
# Geo
# ══════════════════════════════════════════════════════════════════════


class TestGeo:
    """Tests for radius search and distance listing."""

    def test_parse_latlng(self) -> None:
        assert parse_latlng("34.11,-118.11") == GeoPoint(lat=34.11, lng=-118.11)

    @pytest.mark.parametrize("value", ["34.11", "a,b", "1,2,3", "95,10", ""])
    def test_malformed_latlng_rejected(self, value: str) -> None:
        with pytest.raises(InvalidInputError, match="lat,lng"):
            parse_latlng(value)

    def test_unknown_unit_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            parse_unit("yd")

    def test_tours_within_radius(self) -> None:
        """One degree of longitude at the equator is about 69 miles."""
        tours = [_located("near", 1, 0), _located("far", 2, 0), {"id": "x", "name": "x"}]
        result = tours_within(tours, GeoPoint(lat=0, lng=0), 100, DistanceUnit.MILES)
        assert [t["id"] for t in result] == ["near"]

    def test_negative_distance_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            tours_within([], GeoPoint(0, 0), -1, DistanceUnit.KILOMETERS)

    def test_distances_sorted_and_converted(self) -> None:
        tours = [_located("far", 2, 0), _located("near", 1, 0)]
        center = GeoPoint(lat=0, lng=0)

        in_km = tour_distances(tours, center, DistanceUnit.KILOMETERS)
        in_mi = tour_distances(tours, center, DistanceUnit.MILES)

        assert [row["id"] for row in in_km] == ["near", "far"]
        assert in_km[0]["distance"] == pytest.approx(111.32, rel=1e-3)
        assert in_mi[0]["distance"] == pytest.approx(69.17, rel=1e-3)


# ══════════════════════════════════════════════════════════════════════
# Planning
# ══════════════════════════════════════════════════════════════════════


class TestPlanning:
    """Tests for slugs and the monthly plan."""

    def test_slugify(self) -> None:
        assert slugify("The Forest Hiker") == "the-forest-hiker"
        assert slugify("  Café & Crêpes Tour! ") == "cafe-crepes-tour"

    def test_parse_year(self) -> None:
        assert parse_year("2021") == 2021
        with pytest.raises(InvalidInputError):
            parse_year("twenty")

    def test_monthly_plan_counts_and_orders(self) -> None:
        tours = [
            {"name": "A", "startDates": ["2021-07-20T09:00:00Z", "2021-03-01T09:00:00Z"]},
            {"name": "B", "startDates": ["2021-07-05T09:00:00Z", "2022-07-05T09:00:00Z"]},
            {"name": "C", "startDates": [datetime(2021, 3, 9, tzinfo=timezone.utc)]},
            {"name": "D", "startDates": ["2021-10-10T09:00:00Z"]},
        ]
        plan = [entry.to_document() for entry in monthly_plan(tours, 2021)]
        assert plan == [
            {"month": 3, "numTourStarts": 2, "tours": ["A", "C"]},
            {"month": 7, "numTourStarts": 2, "tours": ["A", "B"]},
            {"month": 10, "numTourStarts": 1, "tours": ["D"]},
        ]

    def test_monthly_plan_empty_year(self) -> None:
        assert monthly_plan([{"name": "A", "startDates": []}], 2021) == []


# ══════════════════════════════════════════════════════════════════════
# Rating aggregation
# ══════════════════════════════════════════════════════════════════════


class TestRatingAggregator:
    """Tests for RatingAggregator.recompute with mocked repositories."""

    def test_recompute_rounds_and_stores(self) -> None:
        review_repo = MagicMock()
        review_repo.rating_stats.return_value = RatingStats(quantity=3, average=4.666)
        tour_repo = MagicMock()

        stats = RatingAggregator(review_repo, tour_repo).recompute("tour-1")

        assert stats == RatingStats(quantity=3, average=4.7)
        tour_repo.set_rating_stats.assert_called_once_with("tour-1", stats)

    def test_no_reviews_resets_to_defaults(self) -> None:
        review_repo = MagicMock()
        review_repo.rating_stats.return_value = RatingStats(quantity=0, average=0.0)
        tour_repo = MagicMock()

        stats = RatingAggregator(review_repo, tour_repo).recompute("tour-1")

        assert stats == RatingStats(quantity=0, average=4.5)
        tour_repo.set_rating_stats.assert_called_once_with("tour-1", stats)


# ══════════════════════════════════════════════════════════════════════
# Authentication chain
# ══════════════════════════════════════════════════════════════════════


class TestAuthService:
    """Tests for AuthService.authenticate and ensure_role."""

    def _service(self, account, issued_at: int) -> AuthService:
        account_repo = MagicMock()
        account_repo.get_account.return_value = account
        token_service = MagicMock()
        token_service.verify.return_value = TokenClaims(subject="id", issued_at=issued_at)
        return AuthService(account_repo, token_service)

    def test_missing_token(self) -> None:
        with pytest.raises(AuthenticationError, match=NOT_LOGGED_IN):
            self._service(_account(), 0).authenticate(None)

    def test_unknown_subject(self) -> None:
        with pytest.raises(AuthenticationError, match=ACCOUNT_GONE):
            self._service(None, 0).authenticate("token")

    def test_stale_token(self) -> None:
        """A password change after the token's iat invalidates it."""
        changed = datetime.now(timezone.utc)
        issued = int((changed - timedelta(hours=1)).timestamp())
        with pytest.raises(AuthenticationError, match="recently changed password"):
            self._service(_account(changed_at=changed), issued).authenticate("token")

    def test_fresh_token(self) -> None:
        changed = datetime.now(timezone.utc) - timedelta(hours=1)
        account = _account(changed_at=changed)
        issued = int(datetime.now(timezone.utc).timestamp())
        assert self._service(account, issued).authenticate("token") is account

    def test_naive_change_time_is_utc(self) -> None:
        changed = datetime(2021, 1, 1, 12, 0, 0)
        issued = int(datetime(2021, 1, 1, 11, 0, tzinfo=timezone.utc).timestamp())
        assert _account(changed_at=changed).changed_password_after(issued)

    def test_ensure_role(self) -> None:
        admin = _account(Role.ADMIN)
        assert ensure_role(admin, [Role.ADMIN, Role.LEAD_GUIDE]) is admin
        with pytest.raises(PermissionDeniedError, match="permission"):
            ensure_role(_account(Role.USER), [Role.ADMIN])


