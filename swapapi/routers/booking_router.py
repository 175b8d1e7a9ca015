"""
Booking API

Driver endpoints:
- POST /bookings: book a swap slot
- GET /bookings: own bookings
- GET /bookings/{id}: booking detail
- PUT /bookings/{id}/cancel: cancel before check-in

Staff endpoints (bookings at the staff member's own station):
- POST /staff/bookings/{id}/checkin (alias /confirm): driver arrived
- POST /staff/bookings/{id}/complete: record the battery swap and settle payment
- PUT /staff/bookings/{id}/cancel: cancel before check-in
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status

from swapapi.core.auth_middleware import require_driver, require_staff
from swapapi.deps import get_booking_service
from swapapi.schemas.booking import (
    BookingCancelRequest,
    BookingCompleteRequest,
    BookingCreate,
)
from swapapi.schemas.common import Actor, BaseResponse
from swapapi.services.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["bookings"])
staff_router = APIRouter(prefix="/staff/bookings", tags=["staff-bookings"])


@router.post("", response_model=BaseResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreate,
    actor: Actor = Depends(require_driver),
    service: BookingService = Depends(get_booking_service),
) -> Any:
    booking = service.create(
        actor,
        vehicle_id=payload.vehicle_id,
        station_id=payload.station_id,
        scheduled_at=payload.scheduled_at,
        notes=payload.notes,
        battery_model=payload.battery_model,
    )
    return BaseResponse(success=True, message="Booking created", data=booking)


@router.get("", response_model=BaseResponse)
def list_my_bookings(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(require_driver),
    service: BookingService = Depends(get_booking_service),
) -> Any:
    result = service.list_own(actor, status=status_filter, page=page, limit=limit)
    return BaseResponse(success=True, data=result)


@router.get("/{booking_id}", response_model=BaseResponse)
def get_booking(
    booking_id: int = Path(..., ge=1),
    actor: Actor = Depends(require_driver),
    service: BookingService = Depends(get_booking_service),
) -> Any:
    return BaseResponse(success=True, data=service.get(actor, booking_id))


@router.put("/{booking_id}/cancel", response_model=BaseResponse)
def cancel_my_booking(
    booking_id: int = Path(..., ge=1),
    payload: Optional[BookingCancelRequest] = Body(None),
    actor: Actor = Depends(require_driver),
    service: BookingService = Depends(get_booking_service),
) -> Any:
    booking = service.cancel(actor, booking_id, reason=payload.reason if payload else None)
    return BaseResponse(success=True, message="Booking cancelled", data=booking)


@staff_router.post("/{booking_id}/checkin", response_model=BaseResponse)
@staff_router.post("/{booking_id}/confirm", response_model=BaseResponse)
def check_in_booking(
    booking_id: int = Path(..., ge=1),
    actor: Actor = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
) -> Any:
    booking = service.check_in(actor, booking_id)
    return BaseResponse(success=True, message="Booking confirmed", data=booking)


@staff_router.post("/{booking_id}/complete", response_model=BaseResponse)
def complete_booking(
    payload: BookingCompleteRequest,
    booking_id: int = Path(..., ge=1),
    actor: Actor = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
) -> Any:
    """
    Record the swap for a confirmed booking.

    HTTP Status:
        200: swap recorded
        400: invalid input or insufficient wallet balance
        404: booking or battery not found
        409: booking not confirmed, battery unavailable or no entitlement left
    """
    completion = service.complete(
        actor,
        booking_id,
        old_battery_id=payload.old_battery_id,
        new_battery_id=payload.new_battery_id,
        amount=payload.amount,
        payment_method=payload.payment_method,
        notes=payload.notes,
    )
    return BaseResponse(success=True, message="Swap completed", data=completion)


@staff_router.put("/{booking_id}/cancel", response_model=BaseResponse)
def staff_cancel_booking(
    booking_id: int = Path(..., ge=1),
    payload: Optional[BookingCancelRequest] = Body(None),
    actor: Actor = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
) -> Any:
    booking = service.cancel(actor, booking_id, reason=payload.reason if payload else None)
    return BaseResponse(success=True, message="Booking cancelled", data=booking)
