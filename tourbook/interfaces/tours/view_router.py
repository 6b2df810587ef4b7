"""
Server-rendered pages.

Pages are exempt from the API rate limit. Public pages resolve the
visitor with ``is_logged_in`` (never failing); account pages require
``protect`` and render the error page for anonymous visitors.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from pydantic import EmailStr

from tourbook.application.tours.account_service import AccountService
from tourbook.application.tours.booking_service import BookingService
from tourbook.application.tours.tour_service import TourService
from tourbook.domain.tours.entities import Account
from tourbook.interfaces.tours.auth import is_logged_in, protect
from tourbook.interfaces.tours.dependencies import (
    get_account_service,
    get_booking_service,
    get_tour_service,
)
from tourbook.interfaces.tours.schemas import NAME_MAX_LEN, NAME_MIN_LEN
from tourbook.shared.security.rate_limiting import exempt

router = APIRouter(tags=["views"], default_response_class=HTMLResponse)


def render(request: Request, name: str, user: Optional[Account], **context) -> HTMLResponse:
    return request.app.state.templates.TemplateResponse(
        request, name, {"user": user, **context}
    )


@router.get("/")
@exempt
def overview(
    request: Request,
    user: Optional[Account] = Depends(is_logged_in),
    service: TourService = Depends(get_tour_service),
) -> HTMLResponse:
    return render(request, "overview.html", user, title="All Tours", tours=service.get_all({}))


@router.get("/tour/{slug}")
@exempt
def tour_details(
    slug: str,
    request: Request,
    user: Optional[Account] = Depends(is_logged_in),
    service: TourService = Depends(get_tour_service),
) -> HTMLResponse:
    tour = service.get_by_slug(slug)
    return render(request, "tour.html", user, title=tour["name"], tour=tour)


@router.get("/login")
@exempt
def login_form(
    request: Request, user: Optional[Account] = Depends(is_logged_in)
) -> HTMLResponse:
    return render(request, "login.html", user, title="Log into your account")


@router.get("/signup")
@exempt
def signup_form(
    request: Request, user: Optional[Account] = Depends(is_logged_in)
) -> HTMLResponse:
    return render(request, "signup.html", user, title="Create your account")


@router.get("/me")
@exempt
def account_page(request: Request, user: Account = Depends(protect)) -> HTMLResponse:
    return render(request, "account.html", user, title="Your account")


@router.get("/my-tours")
@exempt
def my_tours(
    request: Request,
    user: Account = Depends(protect),
    service: BookingService = Depends(get_booking_service),
) -> HTMLResponse:
    tours = service.booked_tours(user.id)
    return render(request, "overview.html", user, title="My Tours", tours=tours)


@router.post("/submit-user-data")
@exempt
def submit_user_data(
    request: Request,
    name: str = Form(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN),
    email: EmailStr = Form(...),
    user: Account = Depends(protect),
    service: AccountService = Depends(get_account_service),
) -> HTMLResponse:
    """Form-based profile update; re-renders the account page."""
    service.update_me(user, {"name": name, "email": email})
    updated = service.get_one(user.id)
    return render(
        request,
        "account.html",
        user,
        title="Your account",
        profile=updated,
    )
