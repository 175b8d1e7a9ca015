import enum
from datetime import date, datetime
from typing import Optional

from sqlalchemy import BigInteger, CheckConstraint, Date, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from swapapi.models.base import BaseModel, IdType, UTCDateTime


class ScheduleStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    ABSENT = "absent"
    CANCELLED = "cancelled"


class StaffSchedule(BaseModel):
    """
    A staff shift at a station.

    For a given staff member no two non-cancelled shifts may overlap on the
    half-open interval [shift_start, shift_end). shift_date is always the UTC
    calendar date of shift_start.
    """

    __tablename__ = "staff_schedules"
    __table_args__ = (
        CheckConstraint("shift_end > shift_start", name="ck_staff_schedules_interval"),
        Index("idx_staff_schedules_staff_start", "staff_id", "shift_start"),
        Index("idx_staff_schedules_station_date", "station_id", "shift_date"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    staff_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    station_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("stations.id"), nullable=True
    )
    shift_date: Mapped[date] = mapped_column(Date, nullable=False)
    shift_start: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    shift_end: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=ScheduleStatus.SCHEDULED.value, nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
