"""
Station and battery inventory

These tables belong to the inventory collaborator. The swap core reads them
and changes battery status only as the side effect of a completed swap.
"""

import enum
from decimal import Decimal
from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from swapapi.models.base import BaseModel, IdType


class StationStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


class BatteryStatus(str, enum.Enum):
    FULL = "full"
    CHARGING = "charging"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"
    DAMAGED = "damaged"


class Station(BaseModel):
    __tablename__ = "stations"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=StationStatus.ACTIVE.value, nullable=False
    )


class Battery(BaseModel):
    __tablename__ = "batteries"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    capacity_kwh: Mapped[Optional[Decimal]] = mapped_column(Numeric(6, 2), nullable=True)
    # NULL while the battery is inside a vehicle
    station_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("stations.id"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=BatteryStatus.FULL.value, nullable=False
    )
