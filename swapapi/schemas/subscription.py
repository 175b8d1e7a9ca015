from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from swapapi.schemas.package import ServicePackage
from swapapi.schemas.payment import Payment


class UserSubscription(BaseModel):
    id: int
    user_id: int
    package_id: int
    start_date: datetime
    end_date: datetime
    remaining_swaps: Optional[int] = None
    status: str
    auto_renew: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubscribeRequest(BaseModel):
    auto_renew: bool = False


class SubscriptionPurchase(BaseModel):
    """Everything written by a successful subscribe"""

    subscription: UserSubscription
    payment: Payment
    balance_after: Decimal


class SubscriptionDetail(BaseModel):
    subscription: UserSubscription
    package: Optional[ServicePackage] = None
    payments: List[Payment] = []
