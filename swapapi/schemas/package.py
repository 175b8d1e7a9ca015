from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class ServicePackage(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    duration_days: int
    swap_limit: Optional[int] = None
    is_active: bool = True

    class Config:
        from_attributes = True
