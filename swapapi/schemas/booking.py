from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from swapapi.schemas.payment import Payment
from swapapi.schemas.swap import SwapTransaction


class Booking(BaseModel):
    id: int
    user_id: int
    vehicle_id: int
    station_id: int
    battery_model: Optional[str] = None
    scheduled_at: datetime
    status: str
    checked_in_at: Optional[datetime] = None
    checked_in_by_staff_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingCreate(BaseModel):
    vehicle_id: int
    station_id: int
    battery_model: Optional[str] = Field(
        None, max_length=100, description="Defaults to the vehicle's battery model"
    )
    scheduled_at: datetime
    notes: Optional[str] = Field(None, max_length=1000)


class BookingCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class BookingCompleteRequest(BaseModel):
    old_battery_id: int
    new_battery_id: int
    amount: Decimal = Decimal("0")
    payment_method: str = "cash"
    notes: Optional[str] = Field(None, max_length=1000)


class BookingCompletion(BaseModel):
    """Records written when a booking is completed"""

    booking: Booking
    transaction: SwapTransaction
    payment: Payment
