"""
FastAPI routers for reviews.

``router`` serves ``/reviews``; ``tour_reviews_router`` serves the nested
``/tours/{tour_id}/reviews`` listing and creation with the tour pinned.
Every route requires a logged-in caller.
"""

from fastapi import APIRouter, Depends, Response

from tourbook.application.tours.review_service import ReviewService
from tourbook.domain.tours.entities import Account, Role
from tourbook.domain.tours.query import ParamValue
from tourbook.interfaces.tours.auth import protect, restrict_to
from tourbook.interfaces.tours.dependencies import get_review_service
from tourbook.interfaces.tours.query_params import query_params
from tourbook.interfaces.tours.responses import envelope, listing
from tourbook.interfaces.tours.schemas import ReviewCreateRequest, ReviewUpdateRequest

router = APIRouter(prefix="/reviews", tags=["reviews"], dependencies=[Depends(protect)])
tour_reviews_router = APIRouter(
    prefix="/tours/{tour_id}/reviews", tags=["reviews"], dependencies=[Depends(protect)]
)

can_write_reviews = restrict_to(Role.USER)
can_edit_reviews = restrict_to(Role.USER, Role.ADMIN)


@router.get("", summary="List reviews")
def get_all_reviews(
    params: dict[str, ParamValue] = Depends(query_params),
    service: ReviewService = Depends(get_review_service),
) -> dict:
    return listing(service.get_all(params))


@router.post("", status_code=201, summary="Create a review")
def create_review(
    request: ReviewCreateRequest,
    account: Account = Depends(can_write_reviews),
    service: ReviewService = Depends(get_review_service),
) -> dict:
    """Create a review; the author defaults to the caller."""
    review = service.create_one(request.to_values(), user_id=account.id)
    return envelope(data=review)


@tour_reviews_router.get("", summary="List a tour's reviews")
def get_tour_reviews(
    tour_id: str,
    params: dict[str, ParamValue] = Depends(query_params),
    service: ReviewService = Depends(get_review_service),
) -> dict:
    return listing(service.get_all(params, tour_id=tour_id))


@tour_reviews_router.post("", status_code=201, summary="Review a tour")
def create_tour_review(
    tour_id: str,
    request: ReviewCreateRequest,
    account: Account = Depends(can_write_reviews),
    service: ReviewService = Depends(get_review_service),
) -> dict:
    review = service.create_one(request.to_values(), tour_id=tour_id, user_id=account.id)
    return envelope(data=review)


@router.get("/{review_id}", summary="Get a review")
def get_review(
    review_id: str, service: ReviewService = Depends(get_review_service)
) -> dict:
    return envelope(data=service.get_one(review_id))


@router.patch(
    "/{review_id}", summary="Update a review", dependencies=[Depends(can_edit_reviews)]
)
def update_review(
    review_id: str,
    request: ReviewUpdateRequest,
    service: ReviewService = Depends(get_review_service),
) -> dict:
    return envelope(data=service.update_one(review_id, request.to_values()))


@router.delete(
    "/{review_id}",
    status_code=204,
    response_class=Response,
    summary="Delete a review",
    dependencies=[Depends(can_edit_reviews)],
)
def delete_review(
    review_id: str, service: ReviewService = Depends(get_review_service)
) -> Response:
    service.delete_one(review_id)
    return Response(status_code=204)
