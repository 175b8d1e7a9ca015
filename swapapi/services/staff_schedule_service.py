"""
Staff shift scheduling

A staff member can never hold two non-cancelled shifts whose half-open
intervals [shift_start, shift_end) intersect. The overlap query and the write
run in one unit of work that first locks the staff member's user row, so two
requests scheduling the same person are serialized.
"""

import logging
from datetime import date, datetime
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from swapapi.config import Settings, settings as default_settings
from swapapi.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from swapapi.database.unit_of_work import UnitOfWork
from swapapi.models.staff_schedule import ScheduleStatus
from swapapi.models.user import UserRole
from swapapi.repositories.staff_schedule_repository import StaffScheduleRepository
from swapapi.repositories.station_repository import StationRepository
from swapapi.repositories.user_repository import UserRepository
from swapapi.schemas.common import Actor, Page, PaginationMeta
from swapapi.schemas.staff_schedule import StaffSchedule
from swapapi.schemas.user import User
from swapapi.utils.date_utils import derive_shift_date, utc_day_bounds
from swapapi.utils.timezone_utils import ensure_utc, now_utc

logger = logging.getLogger(__name__)

# Statuses a staff member may record on their own shift
STAFF_SETTABLE_STATUSES = {
    ScheduleStatus.COMPLETED.value,
    ScheduleStatus.ABSENT.value,
    ScheduleStatus.CANCELLED.value,
}

UPDATABLE_FIELDS = {"staff_id", "station_id", "shift_start", "shift_end", "status", "notes"}


def normalize_status(status: Any) -> str:
    value = str(status.value if isinstance(status, ScheduleStatus) else status)
    value = value.strip().lower()
    if value not in {s.value for s in ScheduleStatus}:
        raise ValidationError(f"Invalid schedule status: {status}")
    return value


class StaffScheduleService:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings
        self.schedule_repo = StaffScheduleRepository(db)
        self.user_repo = UserRepository(db)
        self.station_repo = StationRepository(db)
        self.unit_of_work = UnitOfWork(db)

    @staticmethod
    def _require_admin(actor: Actor) -> None:
        if not actor.is_admin:
            raise AuthorizationError("Admin access required")

    def _lock_staff(self, staff_id: int) -> User:
        """Lock the staff row for the rest of the unit of work and validate it"""
        staff = self.user_repo.lock_for_update(staff_id)
        if staff is None or staff.role != UserRole.STAFF or not staff.is_active:
            raise NotFoundError(f"Staff member {staff_id} not found")
        return staff

    def _assert_no_overlap(
        self,
        staff_id: int,
        shift_start: datetime,
        shift_end: datetime,
        exclude_id: Optional[int] = None,
    ) -> None:
        clashes = self.schedule_repo.find_overlapping(
            staff_id, shift_start, shift_end, exclude_id=exclude_id
        )
        if clashes:
            logger.warning(
                f"Rejected overlapping shift for staff {staff_id}: "
                f"{shift_start.isoformat()} - {shift_end.isoformat()} "
                f"clashes with schedule {clashes[0].id}"
            )
            raise ConflictError(
                "overlapping shift",
                details={"conflicting_schedule_ids": [c.id for c in clashes]},
            )

    def create(
        self,
        actor: Actor,
        staff_id: int,
        shift_start: datetime,
        shift_end: datetime,
        station_id: Optional[int] = None,
        status: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> StaffSchedule:
        self._require_admin(actor)
        shift_start = ensure_utc(shift_start)
        shift_end = ensure_utc(shift_end)
        if shift_end <= shift_start:
            raise ValidationError("shift_end must be after shift_start")
        status = normalize_status(status) if status else ScheduleStatus.SCHEDULED.value

        with self.unit_of_work.begin():
            staff = self._lock_staff(staff_id)

            station_id = station_id if station_id is not None else staff.station_id
            if station_id is None:
                raise ValidationError(
                    "station_id is required for staff without a default station"
                )
            if self.station_repo.get_by_id(station_id) is None:
                raise NotFoundError(f"Station {station_id} not found")

            if status != ScheduleStatus.CANCELLED.value:
                self._assert_no_overlap(staff_id, shift_start, shift_end)

            schedule = self.schedule_repo.create(
                staff_id=staff_id,
                station_id=station_id,
                shift_date=derive_shift_date(shift_start),
                shift_start=shift_start,
                shift_end=shift_end,
                status=status,
                notes=notes,
            )

        logger.info(
            f"Admin {actor.id} scheduled staff {staff_id} at station {station_id}: "
            f"{shift_start.isoformat()} - {shift_end.isoformat()} (schedule {schedule.id})"
        )
        return schedule

    def update(self, actor: Actor, schedule_id: int, **changes: Any) -> StaffSchedule:
        """
        Apply a partial update. Only keys present in ``changes`` are touched;
        passing ``station_id=None`` clears the station.

        When a bound changes, the other bound comes from the stored record and
        shift_date is derived again. The overlap check runs whenever the
        interval or the owner changes, and when a cancelled shift is revived.
        """
        self._require_admin(actor)
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

        with self.unit_of_work.begin():
            current = self.schedule_repo.get_by_id(schedule_id)
            if current is None:
                raise NotFoundError(f"Schedule {schedule_id} not found")

            staff_id = changes.get("staff_id") or current.staff_id
            self._lock_staff(staff_id)

            shift_start = ensure_utc(changes.get("shift_start") or current.shift_start)
            shift_end = ensure_utc(changes.get("shift_end") or current.shift_end)
            if shift_end <= shift_start:
                raise ValidationError("shift_end must be after shift_start")

            status = (
                normalize_status(changes["status"])
                if changes.get("status")
                else current.status
            )

            moved = (
                staff_id != current.staff_id
                or shift_start != current.shift_start
                or shift_end != current.shift_end
            )
            revived = (
                current.status == ScheduleStatus.CANCELLED.value
                and status != ScheduleStatus.CANCELLED.value
            )
            if status != ScheduleStatus.CANCELLED.value and (moved or revived):
                self._assert_no_overlap(
                    staff_id, shift_start, shift_end, exclude_id=schedule_id
                )

            values = {
                "staff_id": staff_id,
                "shift_start": shift_start,
                "shift_end": shift_end,
                "shift_date": derive_shift_date(shift_start),
                "status": status,
            }
            if "station_id" in changes:
                station_id = changes["station_id"]
                if station_id is not None and self.station_repo.get_by_id(station_id) is None:
                    raise NotFoundError(f"Station {station_id} not found")
                values["station_id"] = station_id
            if "notes" in changes:
                values["notes"] = changes["notes"]

            schedule = self.schedule_repo.update(schedule_id, **values)

        logger.info(f"Admin {actor.id} updated schedule {schedule_id}")
        return schedule

    def update_status(
        self,
        actor: Actor,
        schedule_id: int,
        status: str,
        notes: Optional[str] = None,
    ) -> StaffSchedule:
        """
        Record the outcome of a shift.

        Staff may mark their own scheduled shift completed, absent or
        cancelled. Admins may set any status on any shift.
        """
        status = normalize_status(status)
        if actor.is_staff and status not in STAFF_SETTABLE_STATUSES:
            raise ValidationError(
                f"Staff can only set status to {', '.join(sorted(STAFF_SETTABLE_STATUSES))}"
            )
        if not (actor.is_staff or actor.is_admin):
            raise AuthorizationError("Staff or admin access required")

        with self.unit_of_work.begin():
            schedule = self.schedule_repo.get_by_id(schedule_id)
            # Another staff member's shift is reported as absent
            if schedule is None or (actor.is_staff and schedule.staff_id != actor.id):
                raise NotFoundError(f"Schedule {schedule_id} not found")

            if actor.is_staff and schedule.status != ScheduleStatus.SCHEDULED.value:
                raise ConflictError(
                    f"Shift is already {schedule.status}",
                    details={"current_status": schedule.status},
                )

            if (
                schedule.status == ScheduleStatus.CANCELLED.value
                and status != ScheduleStatus.CANCELLED.value
            ):
                self._lock_staff(schedule.staff_id)
                self._assert_no_overlap(
                    schedule.staff_id,
                    schedule.shift_start,
                    schedule.shift_end,
                    exclude_id=schedule_id,
                )

            values = {"status": status}
            if notes is not None:
                values["notes"] = notes
            schedule = self.schedule_repo.update(schedule_id, **values)

        logger.info(
            f"{actor.role.value} {actor.id} set schedule {schedule_id} to {status}"
        )
        return schedule

    def delete(self, actor: Actor, schedule_id: int) -> None:
        self._require_admin(actor)
        with self.unit_of_work.begin():
            if not self.schedule_repo.delete(schedule_id):
                raise NotFoundError(f"Schedule {schedule_id} not found")
        logger.info(f"Admin {actor.id} deleted schedule {schedule_id}")

    def _time_filters(
        self,
        shift_date: Optional[date],
        date_from: Optional[date],
        date_to: Optional[date],
        include_past: bool,
    ) -> dict:
        if date_from and date_to and date_to < date_from:
            raise ValidationError("date_to must not be before date_from")

        filters: dict = {}
        if shift_date is not None:
            filters["shift_date"] = shift_date
        if date_from is not None:
            filters["starts_from"] = utc_day_bounds(date_from)[0]
        if date_to is not None:
            filters["starts_before"] = utc_day_bounds(date_to)[1]
        if not filters and not include_past:
            filters["ends_after"] = now_utc()
        return filters

    def list_own(
        self,
        actor: Actor,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[str] = None,
        include_past: bool = False,
    ) -> List[StaffSchedule]:
        """A staff member's own shifts, ordered by start time"""
        filters = self._time_filters(None, date_from, date_to, include_past)
        items, _ = self.schedule_repo.search(
            staff_id=actor.id,
            status=normalize_status(status) if status else None,
            **filters,
        )
        return items

    def list(
        self,
        actor: Actor,
        staff_id: Optional[int] = None,
        station_id: Optional[int] = None,
        shift_date: Optional[date] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[str] = None,
        include_past: bool = False,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Page[StaffSchedule]:
        self._require_admin(actor)
        limit = min(limit or self.settings.DEFAULT_PAGE_SIZE, self.settings.MAX_PAGE_SIZE)
        page = max(page, 1)

        filters = self._time_filters(shift_date, date_from, date_to, include_past)
        items, total = self.schedule_repo.search(
            staff_id=staff_id,
            station_id=station_id,
            status=normalize_status(status) if status else None,
            limit=limit,
            offset=(page - 1) * limit,
            **filters,
        )
        return Page[StaffSchedule](
            items=items, pagination=PaginationMeta.build(page, limit, total)
        )
