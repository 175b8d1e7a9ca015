from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from swapapi.models.user import UserRole


class User(BaseModel):
    id: int
    email: str
    full_name: str
    role: UserRole = UserRole.DRIVER
    station_id: Optional[int] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_admin(self) -> bool:
        return UserRole.is_admin(self.role)

    @property
    def is_staff(self) -> bool:
        return self.role == UserRole.STAFF
