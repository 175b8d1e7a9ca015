"""
Booking lifecycle and battery swap settlement

    pending --check-in--> confirmed --complete--> completed
    pending|confirmed (not checked in) --cancel--> cancelled

Completing a booking writes the swap transaction, its payment record, the
wallet or subscription settlement and the battery status change in one unit
of work.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from swapapi.config import Settings, settings as default_settings
from swapapi.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from swapapi.database.unit_of_work import UnitOfWork
from swapapi.models.booking import BookingStatus
from swapapi.models.payment import PaymentMethod, PaymentStatus
from swapapi.models.station import BatteryStatus
from swapapi.repositories.booking_repository import BookingRepository
from swapapi.repositories.payment_repository import PaymentRepository
from swapapi.repositories.station_repository import BatteryRepository, StationRepository
from swapapi.repositories.subscription_repository import SubscriptionRepository
from swapapi.repositories.swap_transaction_repository import SwapTransactionRepository
from swapapi.repositories.user_repository import UserRepository
from swapapi.repositories.vehicle_repository import VehicleRepository
from swapapi.schemas.booking import Booking, BookingCompletion
from swapapi.schemas.common import Actor, Page, PaginationMeta
from swapapi.schemas.swap import SwapTransaction
from swapapi.services.wallet_service import WalletService, to_amount
from swapapi.utils.date_utils import minutes_between
from swapapi.utils.timezone_utils import ensure_utc, now_utc

logger = logging.getLogger(__name__)


def normalize_payment_method(method: Optional[str]) -> str:
    value = (method or PaymentMethod.CASH.value).strip().lower()
    if value not in {m.value for m in PaymentMethod}:
        raise ValidationError(f"Unsupported payment method: {method}")
    return value


class BookingService:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings
        self.booking_repo = BookingRepository(db)
        self.vehicle_repo = VehicleRepository(db)
        self.station_repo = StationRepository(db)
        self.battery_repo = BatteryRepository(db)
        self.swap_repo = SwapTransactionRepository(db)
        self.payment_repo = PaymentRepository(db)
        self.subscription_repo = SubscriptionRepository(db)
        self.user_repo = UserRepository(db)
        self.wallet_service = WalletService(db, settings=self.settings)
        self.unit_of_work = UnitOfWork(db)

    @staticmethod
    def _require_staff(actor: Actor) -> None:
        if not (actor.is_staff or actor.is_admin):
            raise AuthorizationError("Staff access required")

    def _staff_station(self, actor: Actor) -> int:
        staff = self.user_repo.get_active_staff(actor.id)
        if staff is None:
            raise AuthorizationError("Active staff account required")
        if staff.station_id is None:
            raise ValidationError("Staff member is not assigned to any station")
        return staff.station_id

    def _check_station(self, actor: Actor, booking: Booking) -> None:
        """Staff handle only their own station's bookings; admins handle all"""
        if actor.is_staff and booking.station_id != self._staff_station(actor):
            raise NotFoundError(f"Booking {booking.id} not found")

    def _load(self, booking_id: int) -> Booking:
        booking = self.booking_repo.get_fresh(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    def create(
        self,
        actor: Actor,
        vehicle_id: int,
        station_id: int,
        scheduled_at: datetime,
        notes: Optional[str] = None,
        battery_model: Optional[str] = None,
    ) -> Booking:
        """
        Book a swap slot for one of the actor's vehicles.

        The requested battery model must match the vehicle. The station must
        hold a battery of that model for the slot: full ones count always,
        charging ones only when the slot is at least BATTERY_CHARGE_HOURS
        away, and open bookings for the same model around the slot each hold
        one.
        """
        now = now_utc()
        scheduled_at = ensure_utc(scheduled_at)
        earliest = now + timedelta(minutes=self.settings.BOOKING_MIN_LEAD_MINUTES)
        latest = now + timedelta(hours=self.settings.BOOKING_MAX_LEAD_HOURS)
        if scheduled_at < earliest:
            raise ValidationError(
                f"Booking must be at least {self.settings.BOOKING_MIN_LEAD_MINUTES} minutes ahead"
            )
        if scheduled_at > latest:
            raise ValidationError(
                f"Booking cannot be more than {self.settings.BOOKING_MAX_LEAD_HOURS} hours ahead"
            )

        with self.unit_of_work.begin():
            vehicle = self.vehicle_repo.get_owned(vehicle_id, actor.id)
            if vehicle is None:
                raise NotFoundError(f"Vehicle {vehicle_id} not found")
            if self.station_repo.get_active_station(station_id) is None:
                raise NotFoundError(f"Station {station_id} not found or not active")

            model = (battery_model or vehicle.battery_model).strip()
            if model.lower() != vehicle.battery_model.strip().lower():
                raise ValidationError(
                    f"Battery model {model} is not compatible with the vehicle "
                    f"(requires {vehicle.battery_model})",
                    details={"required_model": vehicle.battery_model},
                )

            open_booking = self.booking_repo.find_open_for_vehicle(vehicle_id)
            if open_booking is not None:
                raise ConflictError(
                    "Vehicle already has an open booking",
                    details={"booking_id": open_booking.id},
                )

            self._assert_battery_available(station_id, model, scheduled_at, now)

            booking = self.booking_repo.create(
                user_id=actor.id,
                vehicle_id=vehicle_id,
                station_id=station_id,
                battery_model=model,
                scheduled_at=scheduled_at,
                status=BookingStatus.PENDING.value,
                notes=notes,
            )

        logger.info(
            f"User {actor.id} booked station {station_id} for "
            f"{scheduled_at.isoformat()} (booking {booking.id})"
        )
        return booking

    def _assert_battery_available(
        self, station_id: int, model: str, scheduled_at: datetime, now: datetime
    ) -> None:
        charged_in_time = scheduled_at - now >= timedelta(
            hours=self.settings.BATTERY_CHARGE_HOURS
        )
        ready = self.battery_repo.count_ready(
            station_id, model, include_charging=charged_in_time
        )
        window = timedelta(minutes=self.settings.BOOKING_RESERVATION_WINDOW_MINUTES)
        reserved = self.booking_repo.count_reserved(
            station_id, model, scheduled_at - window, scheduled_at + window
        )
        if ready - reserved <= 0:
            logger.warning(
                f"No {model} battery at station {station_id} for "
                f"{scheduled_at.isoformat()}: {ready} ready, {reserved} reserved"
            )
            raise ConflictError(
                f"No {model} battery available at this station for the requested time",
                details={"ready": ready, "reserved": reserved},
            )

    def check_in(self, actor: Actor, booking_id: int) -> Booking:
        """Staff confirms the driver has arrived; the swap clock starts here."""
        self._require_staff(actor)
        now = now_utc()

        with self.unit_of_work.begin():
            booking = self._load(booking_id)
            self._check_station(actor, booking)
            if not self.booking_repo.mark_checked_in(booking_id, actor.id, now):
                logger.warning(
                    f"Check-in rejected for booking {booking_id} in status {booking.status}"
                )
                raise ConflictError(
                    "Booking cannot be checked in",
                    details={
                        "status": booking.status,
                        "checked_in": booking.checked_in_at is not None,
                    },
                )
            booking = self._load(booking_id)

        logger.info(f"Staff {actor.id} checked in booking {booking_id}")
        return booking

    confirm = check_in

    def complete(
        self,
        actor: Actor,
        booking_id: int,
        old_battery_id: int,
        new_battery_id: int,
        amount=Decimal("0"),
        payment_method: Optional[str] = PaymentMethod.CASH.value,
        notes: Optional[str] = None,
    ) -> BookingCompletion:
        """
        Finish a confirmed booking by recording the battery exchange.

        Raises:
            ValidationError: same battery on both sides, negative amount,
                unknown payment method
            NotFoundError: booking or battery does not exist, or the booking
                belongs to another station than the staff member's
            ConflictError: booking not confirmed (or already completed), new
                battery not available, no subscription entitlement left
            InsufficientFundsError: wallet payment exceeds the balance
        """
        self._require_staff(actor)
        if old_battery_id == new_battery_id:
            raise ValidationError("old_battery_id and new_battery_id must differ")
        amount = to_amount(amount)
        method = normalize_payment_method(payment_method)
        now = now_utc()

        with self.unit_of_work.begin():
            booking = self._load(booking_id)
            self._check_station(actor, booking)
            if not self.booking_repo.mark_completed(booking_id):
                logger.warning(
                    f"Completion rejected for booking {booking_id} in status {booking.status}"
                )
                raise ConflictError(
                    "Only confirmed bookings can be completed",
                    details={"status": booking.status},
                )

            old_battery = self.battery_repo.get_by_id(old_battery_id)
            if old_battery is None:
                raise NotFoundError(f"Battery {old_battery_id} not found")
            new_battery = self.battery_repo.get_by_id(new_battery_id)
            if new_battery is None:
                raise NotFoundError(f"Battery {new_battery_id} not found")
            if new_battery.status != BatteryStatus.FULL.value:
                raise ConflictError(
                    f"Battery {new_battery.code} is not available",
                    details={"status": new_battery.status},
                )

            started = booking.checked_in_at or now
            if started > now:
                started = now

            try:
                transaction = self.swap_repo.create(
                    booking_id=booking_id,
                    user_id=booking.user_id,
                    station_id=booking.station_id,
                    old_battery_id=old_battery_id,
                    new_battery_id=new_battery_id,
                    staff_id=actor.id,
                    swap_started_at=started,
                    swap_completed_at=now,
                    swap_duration_minutes=minutes_between(started, now),
                    amount=amount,
                    payment_method=method,
                    notes=notes,
                )
            except IntegrityError as e:
                raise ConflictError("Booking already has a swap transaction") from e

            self._settle(booking, transaction, method, amount)

            payment = self.payment_repo.create(
                user_id=booking.user_id,
                transaction_id=transaction.id,
                amount=amount,
                payment_method=method,
                payment_status=PaymentStatus.COMPLETED.value,
                paid_at=now,
            )

            if not self.battery_repo.mark_swapped(
                old_battery_id, new_battery_id, booking.station_id
            ):
                raise ConflictError(f"Battery {new_battery.code} is not available")

            booking = self._load(booking_id)

        logger.info(
            f"Staff {actor.id} completed booking {booking_id}: "
            f"battery {old_battery_id} -> {new_battery_id}, "
            f"{transaction.swap_duration_minutes} min, {amount} via {method}"
        )
        return BookingCompletion(booking=booking, transaction=transaction, payment=payment)

    def _settle(
        self,
        booking: Booking,
        transaction: SwapTransaction,
        method: str,
        amount: Decimal,
    ) -> None:
        if method == PaymentMethod.WALLET.value:
            self.wallet_service.debit(
                booking.user_id,
                amount,
                reason=f"Battery swap for booking {booking.id}",
                ref_id=f"swap_{transaction.id}",
            )
        elif method == PaymentMethod.SUBSCRIPTION.value:
            subscription = self.subscription_repo.find_covering(
                booking.user_id, transaction.swap_completed_at
            )
            if subscription is None or not self.subscription_repo.consume_swap(
                subscription.id
            ):
                raise ConflictError("No active subscription with remaining swaps")
            logger.info(
                f"Booking {booking.id} used one swap of subscription {subscription.id}"
            )

    def cancel(
        self, actor: Actor, booking_id: int, reason: Optional[str] = None
    ) -> Booking:
        """
        Cancel a booking that has not been checked in yet.

        Drivers cannot cancel in the last BOOKING_LATE_CANCEL_MINUTES before
        the slot; staff can still cancel for them.
        """
        now = now_utc()
        with self.unit_of_work.begin():
            booking = self._load(booking_id)
            if actor.is_driver:
                if booking.user_id != actor.id:
                    raise AuthorizationError("You can only cancel your own bookings")
                late_cutoff = timedelta(minutes=self.settings.BOOKING_LATE_CANCEL_MINUTES)
                if timedelta(0) < booking.scheduled_at - now < late_cutoff:
                    raise ValidationError(
                        f"Bookings cannot be cancelled within "
                        f"{self.settings.BOOKING_LATE_CANCEL_MINUTES} minutes of the slot",
                        details={"scheduled_at": booking.scheduled_at.isoformat()},
                    )
            else:
                self._check_station(actor, booking)

            if not self.booking_repo.mark_cancelled(booking_id, notes=reason):
                raise ConflictError(
                    "Booking can no longer be cancelled",
                    details={
                        "status": booking.status,
                        "checked_in": booking.checked_in_at is not None,
                    },
                )
            booking = self._load(booking_id)

        logger.info(f"{actor.role.value} {actor.id} cancelled booking {booking_id}")
        return booking

    def list_own(
        self,
        actor: Actor,
        status: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Page[Booking]:
        """Drivers see their own bookings, staff their station's, admins all."""
        limit = min(limit or self.settings.DEFAULT_PAGE_SIZE, self.settings.MAX_PAGE_SIZE)
        page = max(page, 1)
        if status is not None:
            status = status.strip().lower()
            if status not in {s.value for s in BookingStatus}:
                raise ValidationError(f"Unknown booking status: {status}")

        items, total = self.booking_repo.search(
            user_id=actor.id if actor.is_driver else None,
            station_id=self._staff_station(actor) if actor.is_staff else None,
            status=status,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return Page[Booking](items=items, pagination=PaginationMeta.build(page, limit, total))

    def get(self, actor: Actor, booking_id: int) -> Booking:
        booking = self.booking_repo.get_fresh(booking_id)
        if booking is None or (actor.is_driver and booking.user_id != actor.id):
            raise NotFoundError(f"Booking {booking_id} not found")
        self._check_station(actor, booking)
        return booking
