"""
Dependency injection for the tours bounded context.

Provides FastAPI dependency functions that wire infrastructure
adapters into services via constructor injection. The engine, the
settings and the mailer are created once in ``create_app`` and read
back from ``app.state``.
These are the composition root for the tours context.
"""

from fastapi import Request
from sqlalchemy.engine import Engine

from tourbook.application.tours.account_service import AccountService
from tourbook.application.tours.booking_service import BookingService
from tourbook.application.tours.review_service import ReviewService
from tourbook.application.tours.tour_service import TourService
from tourbook.core.config import Settings
from tourbook.domain.tours.auth_service import AuthService
from tourbook.domain.tours.rating_service import RatingAggregator
from tourbook.infrastructure.tours.account_repository import AccountRepositoryAdapter
from tourbook.infrastructure.tours.booking_repository import BookingRepositoryAdapter
from tourbook.infrastructure.tours.review_repository import ReviewRepositoryAdapter
from tourbook.infrastructure.tours.security_adapters import (
    BcryptPasswordHasher,
    JwtTokenService,
)
from tourbook.infrastructure.tours.tour_repository import TourRepositoryAdapter


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _engine(request: Request) -> Engine:
    return request.app.state.engine


def _token_service(settings: Settings) -> JwtTokenService:
    return JwtTokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_in_days=settings.jwt_expires_in_days,
    )


def get_auth_service(request: Request) -> AuthService:
    """Build AuthService with its infrastructure dependencies."""
    return AuthService(
        account_repo=AccountRepositoryAdapter(_engine(request)),
        token_service=_token_service(get_settings(request)),
    )


def get_tour_service(request: Request) -> TourService:
    """Build TourService with its infrastructure dependencies."""
    return TourService(
        repo=TourRepositoryAdapter(_engine(request)),
        max_limit=get_settings(request).max_page_limit,
    )


def get_review_service(request: Request) -> ReviewService:
    """Build ReviewService; reviews and tours share one aggregator."""
    engine = _engine(request)
    review_repo = ReviewRepositoryAdapter(engine)
    tour_repo = TourRepositoryAdapter(engine)
    return ReviewService(
        repo=review_repo,
        tour_repo=tour_repo,
        aggregator=RatingAggregator(review_repo, tour_repo),
        max_limit=get_settings(request).max_page_limit,
    )


def get_booking_service(request: Request) -> BookingService:
    """Build BookingService with its infrastructure dependencies."""
    engine = _engine(request)
    return BookingService(
        repo=BookingRepositoryAdapter(engine),
        tour_repo=TourRepositoryAdapter(engine),
        max_limit=get_settings(request).max_page_limit,
    )


def get_account_service(request: Request) -> AccountService:
    """Build AccountService with its infrastructure dependencies."""
    settings = get_settings(request)
    return AccountService(
        repo=AccountRepositoryAdapter(_engine(request)),
        hasher=BcryptPasswordHasher(rounds=settings.bcrypt_rounds),
        token_service=_token_service(settings),
        mailer=request.app.state.mailer,
        reset_expires_minutes=settings.password_reset_expires_minutes,
        max_limit=settings.max_page_limit,
    )
