"""
Staff schedule API

Staff endpoints:
- GET /staff/schedules: own shifts (upcoming unless a date range or include_past is given)
- PATCH /staff/schedules/{id}/status: mark own shift completed / absent / cancelled

Admin endpoints:
- GET /admin/staff-schedules: paginated search over all shifts
- POST /admin/staff-schedules: create a shift
- PUT /admin/staff-schedules/{id}: partial update
- PATCH /admin/staff-schedules/{id}/status: set any status
- DELETE /admin/staff-schedules/{id}: hard delete
"""

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from swapapi.core.auth_middleware import require_admin, require_staff
from swapapi.deps import get_staff_schedule_service
from swapapi.schemas.common import Actor, BaseResponse
from swapapi.schemas.staff_schedule import (
    StaffScheduleCreate,
    StaffScheduleStatusUpdate,
    StaffScheduleUpdate,
)
from swapapi.services.staff_schedule_service import StaffScheduleService

router = APIRouter(prefix="/staff/schedules", tags=["staff-schedules"])
admin_router = APIRouter(prefix="/admin/staff-schedules", tags=["admin-staff-schedules"])


@router.get("", response_model=BaseResponse)
def list_my_schedules(
    date_from: Optional[date] = Query(None, description="First shift date (UTC)"),
    date_to: Optional[date] = Query(None, description="Last shift date (UTC)"),
    status_filter: Optional[str] = Query(None, alias="status"),
    include_past: bool = Query(False),
    actor: Actor = Depends(require_staff),
    service: StaffScheduleService = Depends(get_staff_schedule_service),
) -> Any:
    schedules = service.list_own(
        actor,
        date_from=date_from,
        date_to=date_to,
        status=status_filter,
        include_past=include_past,
    )
    return BaseResponse(success=True, data={"schedules": schedules, "count": len(schedules)})


@router.patch("/{schedule_id}/status", response_model=BaseResponse)
def update_my_schedule_status(
    payload: StaffScheduleStatusUpdate,
    schedule_id: int = Path(..., ge=1),
    actor: Actor = Depends(require_staff),
    service: StaffScheduleService = Depends(get_staff_schedule_service),
) -> Any:
    schedule = service.update_status(actor, schedule_id, payload.status, payload.notes)
    return BaseResponse(success=True, message="Schedule status updated", data=schedule)


@admin_router.get("", response_model=BaseResponse)
def list_schedules(
    staff_id: Optional[int] = Query(None, ge=1),
    station_id: Optional[int] = Query(None, ge=1),
    shift_date: Optional[date] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    include_past: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(require_admin),
    service: StaffScheduleService = Depends(get_staff_schedule_service),
) -> Any:
    result = service.list(
        actor,
        staff_id=staff_id,
        station_id=station_id,
        shift_date=shift_date,
        date_from=date_from,
        date_to=date_to,
        status=status_filter,
        include_past=include_past,
        page=page,
        limit=limit,
    )
    return BaseResponse(success=True, data=result)


@admin_router.post("", response_model=BaseResponse, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: StaffScheduleCreate,
    actor: Actor = Depends(require_admin),
    service: StaffScheduleService = Depends(get_staff_schedule_service),
) -> Any:
    schedule = service.create(
        actor,
        staff_id=payload.staff_id,
        station_id=payload.station_id,
        shift_start=payload.shift_start,
        shift_end=payload.shift_end,
        status=payload.status,
        notes=payload.notes,
    )
    return BaseResponse(success=True, message="Schedule created", data=schedule)


@admin_router.put("/{schedule_id}", response_model=BaseResponse)
def update_schedule(
    payload: StaffScheduleUpdate,
    schedule_id: int = Path(..., ge=1),
    actor: Actor = Depends(require_admin),
    service: StaffScheduleService = Depends(get_staff_schedule_service),
) -> Any:
    schedule = service.update(actor, schedule_id, **payload.model_dump(exclude_unset=True))
    return BaseResponse(success=True, message="Schedule updated", data=schedule)


@admin_router.patch("/{schedule_id}/status", response_model=BaseResponse)
def set_schedule_status(
    payload: StaffScheduleStatusUpdate,
    schedule_id: int = Path(..., ge=1),
    actor: Actor = Depends(require_admin),
    service: StaffScheduleService = Depends(get_staff_schedule_service),
) -> Any:
    schedule = service.update_status(actor, schedule_id, payload.status, payload.notes)
    return BaseResponse(success=True, message="Schedule status updated", data=schedule)


@admin_router.delete("/{schedule_id}", response_model=BaseResponse)
def delete_schedule(
    schedule_id: int = Path(..., ge=1),
    actor: Actor = Depends(require_admin),
    service: StaffScheduleService = Depends(get_staff_schedule_service),
) -> Any:
    service.delete(actor, schedule_id)
    return BaseResponse(success=True, message="Schedule deleted", data={"id": schedule_id})
