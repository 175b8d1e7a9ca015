from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class SwapTransaction(BaseModel):
    id: int
    booking_id: int
    user_id: int
    station_id: int
    old_battery_id: int
    new_battery_id: int
    staff_id: int
    swap_started_at: datetime
    swap_completed_at: datetime
    swap_duration_minutes: int
    amount: Decimal
    payment_method: str
    notes: Optional[str] = None

    class Config:
        from_attributes = True
