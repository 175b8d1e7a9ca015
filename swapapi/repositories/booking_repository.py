"""
Booking repository

Status transitions are conditional UPDATE statements that name the states
they may leave. A transition that loses a race against another request
updates no row, and the caller turns that into a conflict.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import desc, func, update
from sqlalchemy.orm import Session

from swapapi.models.booking import (
    OPEN_BOOKING_STATUSES,
    Booking as BookingModel,
    BookingStatus,
)
from swapapi.repositories.base import BaseRepository
from swapapi.schemas.booking import Booking


class BookingRepository(BaseRepository[BookingModel, Booking]):
    def __init__(self, db: Session):
        super().__init__(BookingModel, Booking, db)

    def get_fresh(self, booking_id: int) -> Optional[Booking]:
        booking = (
            self.db.query(BookingModel)
            .filter(BookingModel.id == booking_id)
            .populate_existing()
            .first()
        )
        return self._to_schema(booking)

    def find_open_for_vehicle(self, vehicle_id: int) -> Optional[Booking]:
        booking = (
            self.db.query(BookingModel)
            .filter(
                BookingModel.vehicle_id == vehicle_id,
                BookingModel.status.in_(OPEN_BOOKING_STATUSES),
            )
            .first()
        )
        return self._to_schema(booking)

    def count_reserved(
        self, station_id: int, battery_model: str, start: datetime, end: datetime
    ) -> int:
        """Open bookings for a battery model at a station scheduled within [start, end]"""
        return (
            self.db.query(func.count(BookingModel.id))
            .filter(
                BookingModel.station_id == station_id,
                func.lower(func.trim(BookingModel.battery_model))
                == battery_model.strip().lower(),
                BookingModel.status.in_(OPEN_BOOKING_STATUSES),
                BookingModel.scheduled_at >= start,
                BookingModel.scheduled_at <= end,
            )
            .scalar()
        )

    def mark_checked_in(self, booking_id: int, staff_id: int, at: datetime) -> bool:
        result = self.db.execute(
            update(BookingModel)
            .where(
                BookingModel.id == booking_id,
                BookingModel.status.in_(OPEN_BOOKING_STATUSES),
                BookingModel.checked_in_at.is_(None),
            )
            .values(
                status=BookingStatus.CONFIRMED.value,
                checked_in_at=at,
                checked_in_by_staff_id=staff_id,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def mark_completed(self, booking_id: int) -> bool:
        result = self.db.execute(
            update(BookingModel)
            .where(
                BookingModel.id == booking_id,
                BookingModel.status == BookingStatus.CONFIRMED.value,
            )
            .values(status=BookingStatus.COMPLETED.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def mark_cancelled(self, booking_id: int, notes: Optional[str] = None) -> bool:
        values = {"status": BookingStatus.CANCELLED.value}
        if notes:
            values["notes"] = notes
        result = self.db.execute(
            update(BookingModel)
            .where(
                BookingModel.id == booking_id,
                BookingModel.status.in_(OPEN_BOOKING_STATUSES),
                BookingModel.checked_in_at.is_(None),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def search(
        self,
        user_id: Optional[int] = None,
        station_id: Optional[int] = None,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Booking], int]:
        query = self.db.query(BookingModel)
        if user_id is not None:
            query = query.filter(BookingModel.user_id == user_id)
        if station_id is not None:
            query = query.filter(BookingModel.station_id == station_id)
        if status is not None:
            query = query.filter(BookingModel.status == status)

        total = query.count()
        items = (
            query.order_by(desc(BookingModel.scheduled_at), desc(BookingModel.id))
            .offset(offset)
            .limit(limit)
            .populate_existing()
            .all()
        )
        return self._to_schemas(items), total
