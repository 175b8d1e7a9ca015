"""
Development seed data

Creates two stations with batteries, an admin, staff members, drivers with
vehicles, subscription packages, and funds each driver's wallet through the
ledger so integrity checks stay green.
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from decimal import Decimal

from swapapi.database.connection import SessionLocal
from swapapi.models.service_package import ServicePackage
from swapapi.models.station import Battery, Station
from swapapi.models.user import User, UserRole
from swapapi.models.vehicle import Vehicle
from swapapi.services.wallet_service import WalletService

STATIONS = [
    ("District 1 Swap Hub", "12 Nguyen Hue, District 1"),
    ("Thu Duc Swap Point", "88 Vo Van Ngan, Thu Duc"),
]

PACKAGES = [
    # name, price, duration_days, swap_limit
    ("Basic Monthly", Decimal("590000"), 30, 20),
    ("Unlimited Monthly", Decimal("990000"), 30, None),
    ("Weekly Starter", Decimal("150000"), 7, 5),
]

DRIVER_OPENING_BALANCE = Decimal("1000000")


def seed():
    db = SessionLocal()
    try:
        stations = [Station(name=name, address=address) for name, address in STATIONS]
        db.add_all(stations)
        db.flush()

        for station in stations:
            for n in range(1, 6):
                db.add(
                    Battery(
                        code=f"BAT-{station.id:02d}-{n:03d}",
                        model="LFP-48V",
                        capacity_kwh=Decimal("2.50"),
                        station_id=station.id,
                    )
                )

        db.add(User(email="admin@example.com", full_name="Admin", role=UserRole.ADMIN.value))
        for i, station in enumerate(stations, start=1):
            db.add(
                User(
                    email=f"staff{i}@example.com",
                    full_name=f"Staff {i}",
                    role=UserRole.STAFF.value,
                    station_id=station.id,
                )
            )

        drivers = [
            User(email=f"driver{i}@example.com", full_name=f"Driver {i}")
            for i in range(1, 4)
        ]
        db.add_all(drivers)
        db.flush()

        for driver in drivers:
            db.add(
                Vehicle(
                    user_id=driver.id,
                    license_plate=f"59X1-{driver.id:05d}",
                    battery_model="LFP-48V",
                )
            )

        for name, price, days, limit in PACKAGES:
            db.add(
                ServicePackage(
                    name=name, price=price, duration_days=days, swap_limit=limit
                )
            )
        db.flush()

        wallets = WalletService(db)
        for driver in drivers:
            wallets.credit(
                driver.id,
                DRIVER_OPENING_BALANCE,
                reason="Opening balance",
                ref_id=f"seed_opening_{driver.id}",
            )

        db.commit()
        print(
            f"Seeded {len(stations)} stations, {len(drivers)} drivers, "
            f"{len(PACKAGES)} packages"
        )
    except Exception as e:
        db.rollback()
        print(f"Seeding failed: {str(e)}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
