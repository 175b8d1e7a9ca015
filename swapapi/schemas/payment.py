from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class Payment(BaseModel):
    id: int
    user_id: int
    subscription_id: Optional[int] = None
    transaction_id: Optional[int] = None
    amount: Decimal
    payment_method: str
    payment_status: str
    paid_at: Optional[datetime] = None

    class Config:
        from_attributes = True
