from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class Station(BaseModel):
    id: int
    name: str
    address: Optional[str] = None
    status: str

    class Config:
        from_attributes = True


class Battery(BaseModel):
    id: int
    code: str
    model: str
    capacity_kwh: Optional[Decimal] = None
    station_id: Optional[int] = None
    status: str

    class Config:
        from_attributes = True


class Vehicle(BaseModel):
    id: int
    user_id: int
    license_plate: str
    battery_model: str

    class Config:
        from_attributes = True
