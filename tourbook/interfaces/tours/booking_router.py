"""
FastAPI router for bookings. Restricted to admins and lead guides.
"""

from fastapi import APIRouter, Depends, Response

from tourbook.application.tours.booking_service import BookingService
from tourbook.domain.tours.entities import Role
from tourbook.domain.tours.query import ParamValue
from tourbook.interfaces.tours.auth import restrict_to
from tourbook.interfaces.tours.dependencies import get_booking_service
from tourbook.interfaces.tours.query_params import query_params
from tourbook.interfaces.tours.responses import envelope, listing
from tourbook.interfaces.tours.schemas import BookingCreateRequest, BookingUpdateRequest

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
    dependencies=[Depends(restrict_to(Role.ADMIN, Role.LEAD_GUIDE))],
)


@router.get("", summary="List bookings")
def get_all_bookings(
    params: dict[str, ParamValue] = Depends(query_params),
    service: BookingService = Depends(get_booking_service),
) -> dict:
    return listing(service.get_all(params))


@router.post("", status_code=201, summary="Record a booking")
def create_booking(
    request: BookingCreateRequest,
    service: BookingService = Depends(get_booking_service),
) -> dict:
    return envelope(data=service.create_one(request.to_values()))


@router.get("/{booking_id}", summary="Get a booking")
def get_booking(
    booking_id: str, service: BookingService = Depends(get_booking_service)
) -> dict:
    return envelope(data=service.get_one(booking_id))


@router.patch("/{booking_id}", summary="Update a booking")
def update_booking(
    booking_id: str,
    request: BookingUpdateRequest,
    service: BookingService = Depends(get_booking_service),
) -> dict:
    return envelope(data=service.update_one(booking_id, request.to_values()))


@router.delete(
    "/{booking_id}", status_code=204, response_class=Response, summary="Delete a booking"
)
def delete_booking(
    booking_id: str, service: BookingService = Depends(get_booking_service)
) -> Response:
    service.delete_one(booking_id)
    return Response(status_code=204)
