from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class StaffSchedule(BaseModel):
    id: int
    staff_id: int
    station_id: Optional[int] = None
    shift_date: date
    shift_start: datetime
    shift_end: datetime
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StaffScheduleCreate(BaseModel):
    """Admin request to put a staff member on a shift"""

    staff_id: int = Field(..., description="Staff user ID")
    station_id: Optional[int] = Field(
        None, description="Defaults to the staff member's station"
    )
    shift_start: datetime
    shift_end: datetime
    status: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=1000)


class StaffScheduleUpdate(BaseModel):
    """Partial update; only fields present in the request are applied"""

    staff_id: Optional[int] = None
    station_id: Optional[int] = None
    shift_start: Optional[datetime] = None
    shift_end: Optional[datetime] = None
    status: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=1000)


class StaffScheduleStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)
    notes: Optional[str] = Field(None, max_length=1000)
