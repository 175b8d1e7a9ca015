from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from swapapi.config import settings
from swapapi.containers import Container
from swapapi.core import auth_middleware
from swapapi.core.exceptions import (
    ConflictError,
    InsufficientFundsError,
    InternalError,
    NotFoundError,
)
from swapapi.core.security import create_access_token
from swapapi.main import app
from swapapi.models.user import UserRole
from swapapi.schemas.booking import Booking, BookingCompletion
from swapapi.schemas.common import Actor, Page, PaginationMeta
from swapapi.schemas.payment import Payment
from swapapi.schemas.staff_schedule import StaffSchedule
from swapapi.schemas.subscription import SubscriptionPurchase, UserSubscription
from swapapi.schemas.swap import SwapTransaction
from swapapi.schemas.wallet import WalletBalanceResponse

UTC = timezone.utc
NOW = datetime(2030, 1, 15, 10, 0, tzinfo=UTC)


def make_schedule(**overrides) -> StaffSchedule:
    values = dict(
        id=1,
        staff_id=7,
        station_id=3,
        shift_date=date(2030, 1, 15),
        shift_start=NOW,
        shift_end=NOW + timedelta(hours=8),
        status="scheduled",
    )
    values.update(overrides)
    return StaffSchedule(**values)


def make_booking(**overrides) -> Booking:
    values = dict(
        id=11, user_id=5, vehicle_id=2, station_id=3, scheduled_at=NOW, status="pending"
    )
    values.update(overrides)
    return Booking(**values)


class FakeStaffScheduleService:
    def __init__(self, db=None):
        self.calls = []

    def list_own(self, actor, **filters):
        return [make_schedule(staff_id=actor.id)]

    def create(self, actor, staff_id, **kwargs):
        if kwargs["shift_start"].hour == 15:
            raise ConflictError("overlapping shift", details={"conflicting_schedule_ids": [1]})
        return make_schedule(staff_id=staff_id)

    def update(self, actor, schedule_id, **changes):
        FakeStaffScheduleService.last_changes = changes
        return make_schedule(id=schedule_id)

    def update_status(self, actor, schedule_id, status, notes=None):
        if schedule_id == 404:
            raise NotFoundError(f"Schedule {schedule_id} not found")
        return make_schedule(id=schedule_id, status=status)

    def delete(self, actor, schedule_id):
        return None

    def list(self, actor, page=1, limit=20, **filters):
        return Page[StaffSchedule](
            items=[make_schedule()], pagination=PaginationMeta.build(page, limit, 1)
        )


class FakeSubscriptionService:
    def __init__(self, db=None):
        pass

    def subscribe(self, actor, package_id, auto_renew=False):
        if package_id == 2:
            raise InsufficientFundsError(details={"required": "590000.00"})
        subscription = UserSubscription(
            id=21,
            user_id=actor.id,
            package_id=package_id,
            start_date=NOW,
            end_date=NOW + timedelta(days=30),
            remaining_swaps=20,
            status="active",
            auto_renew=auto_renew,
        )
        payment = Payment(
            id=31,
            user_id=actor.id,
            subscription_id=21,
            amount=Decimal("590000"),
            payment_method="wallet",
            payment_status="completed",
            paid_at=NOW,
        )
        return SubscriptionPurchase(
            subscription=subscription, payment=payment, balance_after=Decimal("10000")
        )


class FakeBookingService:
    def __init__(self, db=None):
        pass

    def check_in(self, actor, booking_id):
        return make_booking(id=booking_id, status="confirmed", checked_in_at=NOW)

    def complete(self, actor, booking_id, **kwargs):
        if booking_id == 12:
            raise ConflictError("Only confirmed bookings can be completed")
        if booking_id == 13:
            raise InternalError("relation swap_transactions does not exist")
        transaction = SwapTransaction(
            id=41,
            booking_id=booking_id,
            user_id=5,
            station_id=3,
            old_battery_id=kwargs["old_battery_id"],
            new_battery_id=kwargs["new_battery_id"],
            staff_id=actor.id,
            swap_started_at=NOW,
            swap_completed_at=NOW + timedelta(minutes=6),
            swap_duration_minutes=6,
            amount=kwargs["amount"],
            payment_method=kwargs["payment_method"],
        )
        payment = Payment(
            id=51,
            user_id=5,
            transaction_id=41,
            amount=kwargs["amount"],
            payment_method=kwargs["payment_method"],
            payment_status="completed",
        )
        return BookingCompletion(
            booking=make_booking(id=booking_id, status="completed"),
            transaction=transaction,
            payment=payment,
        )


class FakeWalletService:
    def __init__(self, db=None):
        pass

    def get_balance(self, user_id):
        return WalletBalanceResponse(user_id=user_id, balance=Decimal("10000"), currency="VND")


DRIVER = Actor(id=5, role=UserRole.DRIVER)
STAFF = Actor(id=7, role=UserRole.STAFF)
ADMIN = Actor(id=1, role=UserRole.ADMIN)


@pytest.fixture(autouse=True)
def fake_services():
    container: Container = app.container  # type: ignore
    container.services.staff_schedule_service.override(providers.Factory(FakeStaffScheduleService))
    container.services.subscription_service.override(providers.Factory(FakeSubscriptionService))
    container.services.booking_service.override(providers.Factory(FakeBookingService))
    container.services.wallet_service.override(providers.Factory(FakeWalletService))

    yield

    container.services.staff_schedule_service.reset_override()
    container.services.subscription_service.reset_override()
    container.services.booking_service.reset_override()
    container.services.wallet_service.reset_override()
    app.dependency_overrides.pop(auth_middleware.get_current_actor, None)


def act_as(actor: Actor) -> None:
    app.dependency_overrides[auth_middleware.get_current_actor] = lambda: actor


client = TestClient(app)


class TestAuthentication:
    def test_missing_token_is_401(self):
        res = client.get("/api/v1/wallet/balance")
        assert res.status_code == 401
        body = res.json()
        assert body["success"] is False
        assert body["errors"][0]["code"] == "AUTH_001"

    def test_invalid_token_is_401(self):
        res = client.get(
            "/api/v1/wallet/balance", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert res.status_code == 401

    def test_valid_token_resolves_actor(self):
        token = create_access_token(5, UserRole.DRIVER, settings)
        res = client.get(
            "/api/v1/wallet/balance", headers={"Authorization": f"Bearer {token}"}
        )
        assert res.status_code == 200
        assert res.json()["data"] == {"user_id": 5, "balance": "10000", "currency": "VND"}

    def test_wrong_role_is_403(self):
        token = create_access_token(5, UserRole.DRIVER, settings)
        res = client.get(
            "/api/v1/admin/staff-schedules", headers={"Authorization": f"Bearer {token}"}
        )
        assert res.status_code == 403
        assert res.json()["errors"][0]["code"] == "AUTH_002"


class TestScheduleRoutes:
    def test_staff_lists_own_schedules(self):
        act_as(STAFF)
        res = client.get("/api/v1/staff/schedules")
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["data"]["count"] == 1
        assert body["data"]["schedules"][0]["staff_id"] == STAFF.id

    def test_admin_creates_schedule(self):
        act_as(ADMIN)
        payload = {
            "staff_id": 7,
            "shift_start": "2030-01-15T08:00:00Z",
            "shift_end": "2030-01-15T16:00:00Z",
        }
        res = client.post("/api/v1/admin/staff-schedules", json=payload)
        assert res.status_code == 201
        assert res.json()["data"]["staff_id"] == 7

    def test_overlap_is_409(self):
        act_as(ADMIN)
        payload = {
            "staff_id": 7,
            "shift_start": "2030-01-15T15:00:00Z",
            "shift_end": "2030-01-15T23:00:00Z",
        }
        res = client.post("/api/v1/admin/staff-schedules", json=payload)
        assert res.status_code == 409
        error = res.json()["errors"][0]
        assert error["code"] == "CONFLICT_001"
        assert error["message"] == "overlapping shift"
        assert error["details"] == {"conflicting_schedule_ids": [1]}

    def test_malformed_body_is_400(self):
        act_as(ADMIN)
        res = client.post("/api/v1/admin/staff-schedules", json={"staff_id": "x"})
        assert res.status_code == 400
        assert res.json()["errors"][0]["code"] == "VALIDATION_001"

    def test_partial_update_only_passes_sent_fields(self):
        act_as(ADMIN)
        res = client.put("/api/v1/admin/staff-schedules/3", json={"station_id": None})
        assert res.status_code == 200
        assert FakeStaffScheduleService.last_changes == {"station_id": None}

    def test_staff_status_update_not_found(self):
        act_as(STAFF)
        res = client.patch("/api/v1/staff/schedules/404/status", json={"status": "absent"})
        assert res.status_code == 404
        assert res.json()["errors"][0]["code"] == "NOT_FOUND_001"

    def test_admin_list_is_paginated(self):
        act_as(ADMIN)
        res = client.get("/api/v1/admin/staff-schedules?page=1&limit=10")
        assert res.status_code == 200
        assert res.json()["data"]["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}


class TestSubscriptionRoutes:
    def test_subscribe(self):
        act_as(DRIVER)
        res = client.post("/api/v1/packages/1/subscribe", json={"auto_renew": True})
        assert res.status_code == 201
        data = res.json()["data"]
        assert data["subscription"]["auto_renew"] is True
        assert data["payment"]["payment_method"] == "wallet"
        assert data["balance_after"] == "10000"

    def test_insufficient_funds_is_400(self):
        act_as(DRIVER)
        res = client.post("/api/v1/packages/2/subscribe")
        assert res.status_code == 400
        assert res.json()["errors"][0]["code"] == "BALANCE_001"

    def test_staff_cannot_subscribe(self):
        act_as(STAFF)
        res = client.post("/api/v1/packages/1/subscribe")
        assert res.status_code == 403


class TestBookingRoutes:
    def test_check_in_and_confirm_alias(self):
        act_as(STAFF)
        for action in ("checkin", "confirm"):
            res = client.post(f"/api/v1/staff/bookings/11/{action}")
            assert res.status_code == 200
            assert res.json()["data"]["status"] == "confirmed"

    def test_complete(self):
        act_as(STAFF)
        payload = {"old_battery_id": 1, "new_battery_id": 2, "amount": "30000"}
        res = client.post("/api/v1/staff/bookings/11/complete", json=payload)
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["booking"]["status"] == "completed"
        assert data["transaction"]["swap_duration_minutes"] == 6
        assert data["payment"]["payment_method"] == "cash"

    def test_complete_pending_booking_is_409(self):
        act_as(STAFF)
        payload = {"old_battery_id": 1, "new_battery_id": 2}
        res = client.post("/api/v1/staff/bookings/12/complete", json=payload)
        assert res.status_code == 409

    def test_internal_error_hides_details(self):
        act_as(STAFF)
        payload = {"old_battery_id": 1, "new_battery_id": 2}
        res = client.post("/api/v1/staff/bookings/13/complete", json=payload)
        assert res.status_code == 500
        body = res.json()
        assert body["errors"][0]["code"] == "INTERNAL_001"
        assert "swap_transactions" not in body["message"]

    def test_driver_cannot_complete(self):
        act_as(DRIVER)
        res = client.post(
            "/api/v1/staff/bookings/11/complete", json={"old_battery_id": 1, "new_battery_id": 2}
        )
        assert res.status_code == 403


class TestHealth:
    def test_healthy(self):
        res = client.get("/health")
        assert res.status_code == 200
        assert res.json()["status"] == "healthy"

    def test_unreachable_database_is_degraded(self):
        def broken_session():
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        container: Container = app.container  # type: ignore
        with container.repositories.session_factory.override(providers.Object(broken_session)):
            res = client.get("/health")

        assert res.status_code == 200
        body = res.json()
        assert body["status"] == "degraded"
        assert body["database"] == "unreachable"
