from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy import asc
from sqlalchemy.orm import Session

from swapapi.models.staff_schedule import ScheduleStatus, StaffSchedule as ScheduleModel
from swapapi.repositories.base import BaseRepository
from swapapi.schemas.staff_schedule import StaffSchedule


class StaffScheduleRepository(BaseRepository[ScheduleModel, StaffSchedule]):
    def __init__(self, db: Session):
        super().__init__(ScheduleModel, StaffSchedule, db)

    def find_overlapping(
        self,
        staff_id: int,
        shift_start: datetime,
        shift_end: datetime,
        exclude_id: Optional[int] = None,
    ) -> List[StaffSchedule]:
        """Non-cancelled shifts of staff_id intersecting [shift_start, shift_end)"""
        query = self.db.query(ScheduleModel).filter(
            ScheduleModel.staff_id == staff_id,
            ScheduleModel.status != ScheduleStatus.CANCELLED.value,
            ScheduleModel.shift_start < shift_end,
            ScheduleModel.shift_end > shift_start,
        )
        if exclude_id is not None:
            query = query.filter(ScheduleModel.id != exclude_id)
        return self._to_schemas(query.order_by(asc(ScheduleModel.shift_start)).all())

    def search(
        self,
        staff_id: Optional[int] = None,
        station_id: Optional[int] = None,
        status: Optional[str] = None,
        starts_from: Optional[datetime] = None,
        starts_before: Optional[datetime] = None,
        shift_date: Optional[date] = None,
        ends_after: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[StaffSchedule], int]:
        """Filtered shifts ordered by start time, with the unpaginated total"""
        query = self.db.query(ScheduleModel)

        if staff_id is not None:
            query = query.filter(ScheduleModel.staff_id == staff_id)
        if station_id is not None:
            query = query.filter(ScheduleModel.station_id == station_id)
        if status is not None:
            query = query.filter(ScheduleModel.status == status)
        if shift_date is not None:
            query = query.filter(ScheduleModel.shift_date == shift_date)
        if starts_from is not None:
            query = query.filter(ScheduleModel.shift_start >= starts_from)
        if starts_before is not None:
            query = query.filter(ScheduleModel.shift_start < starts_before)
        if ends_after is not None:
            query = query.filter(ScheduleModel.shift_end > ends_after)

        total = query.count()
        query = query.order_by(asc(ScheduleModel.shift_start), asc(ScheduleModel.id))
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return self._to_schemas(query.all()), total
