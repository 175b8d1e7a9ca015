import os
import sys
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace
from uuid import uuid4

import pytest

# Ensure project root is on path for `swapapi` imports
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# The application engine is built at import time; keep it off PostgreSQL.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from swapapi.database.connection import create_db_engine, create_session_factory  # noqa: E402
from swapapi.database.schema import create_schema  # noqa: E402
from swapapi.models.service_package import ServicePackage  # noqa: E402
from swapapi.models.station import Battery, BatteryStatus, Station, StationStatus  # noqa: E402
from swapapi.models.user import User, UserRole  # noqa: E402
from swapapi.models.vehicle import Vehicle  # noqa: E402
from swapapi.schemas.common import Actor  # noqa: E402
from swapapi.services.wallet_service import WalletService  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    # A file database so that several connections (threads) share the data
    engine = create_db_engine(f"sqlite:///{tmp_path / 'swap.db'}")
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seed(db):
    """Stations, users, vehicles, batteries and packages shared by the service tests"""
    station = Station(name="District 1 Hub", address="12 Nguyen Hue")
    closed_station = Station(name="Closed Hub", status=StationStatus.INACTIVE.value)
    far_station = Station(name="Thu Duc Hub", address="7 Vo Van Ngan")
    db.add_all([station, closed_station, far_station])
    db.flush()

    admin = User(email="admin@example.com", full_name="Admin", role=UserRole.ADMIN.value)
    staff = User(
        email="staff@example.com",
        full_name="Staff One",
        role=UserRole.STAFF.value,
        station_id=station.id,
    )
    other_staff = User(
        email="staff2@example.com",
        full_name="Staff Two",
        role=UserRole.STAFF.value,
        station_id=station.id,
    )
    roaming_staff = User(
        email="staff3@example.com", full_name="Staff Three", role=UserRole.STAFF.value
    )
    far_staff = User(
        email="staff4@example.com",
        full_name="Staff Four",
        role=UserRole.STAFF.value,
        station_id=far_station.id,
    )
    driver = User(email="driver@example.com", full_name="Driver One")
    other_driver = User(email="driver2@example.com", full_name="Driver Two")
    db.add_all([admin, staff, other_staff, roaming_staff, far_staff, driver, other_driver])
    db.flush()

    vehicle = Vehicle(user_id=driver.id, license_plate="59X1-00001", battery_model="LFP-48V")
    other_vehicle = Vehicle(
        user_id=other_driver.id, license_plate="59X1-00002", battery_model="LFP-48V"
    )
    old_battery = Battery(code="BAT-A", model="LFP-48V", status=BatteryStatus.IN_USE.value)
    new_battery = Battery(code="BAT-B", model="LFP-48V", station_id=station.id)
    spare_battery = Battery(code="BAT-C", model="LFP-48V", station_id=station.id)
    charging_battery = Battery(
        code="BAT-D",
        model="LFP-48V",
        station_id=station.id,
        status=BatteryStatus.CHARGING.value,
    )
    basic = ServicePackage(
        name="Basic Monthly", price=Decimal("590000"), duration_days=30, swap_limit=2
    )
    twin = ServicePackage(
        name="Basic Monthly (promo)", price=Decimal("590000"), duration_days=30, swap_limit=2
    )
    unlimited = ServicePackage(
        name="Unlimited Monthly", price=Decimal("990000"), duration_days=30, swap_limit=None
    )
    retired = ServicePackage(
        name="Retired", price=Decimal("100000"), duration_days=30, is_active=False
    )
    db.add_all(
        [
            vehicle,
            other_vehicle,
            old_battery,
            new_battery,
            spare_battery,
            charging_battery,
            basic,
            twin,
            unlimited,
            retired,
        ]
    )
    db.commit()

    return SimpleNamespace(
        station=station,
        closed_station=closed_station,
        far_station=far_station,
        admin=Actor(id=admin.id, role=UserRole.ADMIN),
        staff=Actor(id=staff.id, role=UserRole.STAFF),
        other_staff=Actor(id=other_staff.id, role=UserRole.STAFF),
        roaming_staff=Actor(id=roaming_staff.id, role=UserRole.STAFF),
        far_staff=Actor(id=far_staff.id, role=UserRole.STAFF),
        driver=Actor(id=driver.id, role=UserRole.DRIVER),
        other_driver=Actor(id=other_driver.id, role=UserRole.DRIVER),
        vehicle=vehicle,
        other_vehicle=other_vehicle,
        old_battery=old_battery,
        new_battery=new_battery,
        spare_battery=spare_battery,
        charging_battery=charging_battery,
        basic=basic,
        twin=twin,
        unlimited=unlimited,
        retired=retired,
    )


@pytest.fixture
def fund(db):
    """Top up a wallet through the ledger, committed"""

    def _fund(user_id: int, amount) -> None:
        service = WalletService(db)
        with service.unit_of_work.begin():
            service.credit(
                user_id,
                Decimal(str(amount)),
                reason="test top-up",
                ref_id=f"test_topup_{user_id}_{uuid4().hex}",
            )

    return _fund
