"""
FastAPI router for tours.

All routes delegate to TourService. No business logic here.
Input validation is handled by Pydantic schemas.
Error mapping is handled by the centralized error responder.
"""

from fastapi import APIRouter, Depends, Response

from tourbook.application.tours.tour_service import TourService
from tourbook.domain.tours.entities import Role
from tourbook.domain.tours.query import ParamValue
from tourbook.interfaces.tours.auth import restrict_to
from tourbook.interfaces.tours.dependencies import get_tour_service
from tourbook.interfaces.tours.query_params import query_params
from tourbook.interfaces.tours.responses import envelope, listing
from tourbook.interfaces.tours.schemas import TourCreateRequest, TourUpdateRequest

router = APIRouter(prefix="/tours", tags=["tours"])

can_edit_tours = restrict_to(Role.ADMIN, Role.LEAD_GUIDE)
can_plan_tours = restrict_to(Role.ADMIN, Role.LEAD_GUIDE, Role.GUIDE)


@router.get("", summary="List tours")
def get_all_tours(
    params: dict[str, ParamValue] = Depends(query_params),
    service: TourService = Depends(get_tour_service),
) -> dict:
    """Filter, sort, project and paginate tours from the query string."""
    return listing(service.get_all(params))


@router.post(
    "",
    status_code=201,
    summary="Create a tour",
    dependencies=[Depends(can_edit_tours)],
)
def create_tour(
    request: TourCreateRequest,
    service: TourService = Depends(get_tour_service),
) -> dict:
    return envelope(data=service.create_one(request.to_values()))


@router.get(
    "/top-5-cheap",
    summary="Top five cheap tours",
    description="Best rated first, then cheapest; five tours with summary fields.",
)
def top_cheap_tours(
    params: dict[str, ParamValue] = Depends(query_params),
    service: TourService = Depends(get_tour_service),
) -> dict:
    return listing(service.top_cheap(params))


@router.get(
    "/tour-stats",
    summary="Statistics per difficulty",
    description="Counts, ratings and prices of tours rated 4.5 or better.",
)
def tour_stats(service: TourService = Depends(get_tour_service)) -> dict:
    return envelope(stats=service.stats())


@router.get(
    "/monthly-plan/{year}",
    summary="Tour starts per month",
    dependencies=[Depends(can_plan_tours)],
)
def monthly_plan(year: str, service: TourService = Depends(get_tour_service)) -> dict:
    return envelope(plan=service.monthly_plan(year))


@router.get(
    "/tours-within/{distance}/center/{latlng}/unit/{unit}",
    summary="Tours within a radius",
)
def tours_within(
    distance: str,
    latlng: str,
    unit: str,
    service: TourService = Depends(get_tour_service),
) -> dict:
    """Tours starting within ``distance`` (``mi`` or ``km``) of ``lat,lng``."""
    return listing(service.within(distance, latlng, unit))


@router.get("/distances/{latlng}/unit/{unit}", summary="Distances to every tour")
def tour_distances(
    latlng: str, unit: str, service: TourService = Depends(get_tour_service)
) -> dict:
    return envelope(data=service.distances(latlng, unit))


@router.get("/{tour_id}", summary="Get a tour")
def get_tour(tour_id: str, service: TourService = Depends(get_tour_service)) -> dict:
    """One tour with its guides and reviews."""
    return envelope(data=service.get_one(tour_id))


@router.patch(
    "/{tour_id}", summary="Update a tour", dependencies=[Depends(can_edit_tours)]
)
def update_tour(
    tour_id: str,
    request: TourUpdateRequest,
    service: TourService = Depends(get_tour_service),
) -> dict:
    return envelope(data=service.update_one(tour_id, request.to_values()))


@router.delete(
    "/{tour_id}",
    status_code=204,
    response_class=Response,
    summary="Delete a tour",
    dependencies=[Depends(can_edit_tours)],
)
def delete_tour(
    tour_id: str, service: TourService = Depends(get_tour_service)
) -> Response:
    service.delete_one(tour_id)
    return Response(status_code=204)
