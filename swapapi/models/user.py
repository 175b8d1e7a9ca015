from enum import Enum
from typing import Optional, Union

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from swapapi.models.base import BaseModel, IdType

class UserRole(str, Enum):
    """Roles known to the swap platform"""

    DRIVER = "driver"  # books swaps, buys subscriptions
    STAFF = "staff"  # works shifts, executes swaps
    ADMIN = "admin"  # manages schedules and wallets

    @classmethod
    def is_admin(cls, role: Union[str, "UserRole"]) -> bool:
        if isinstance(role, cls):
            role = role.value
        return role == cls.ADMIN.value

    @classmethod
    def is_staff_or_admin(cls, role: Union[str, "UserRole"]) -> bool:
        if isinstance(role, cls):
            role = role.value
        return role in [cls.STAFF.value, cls.ADMIN.value]


class User(BaseModel):
    """Identity-owned user record; read-only to the swap core"""

    __tablename__ = "users"
    __table_args__ = (Index("idx_users_role", "role"),)

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), default=UserRole.DRIVER.value, nullable=False
    )
    # Default station for staff members
    station_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("stations.id"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @property
    def is_staff(self) -> bool:
        return str(self.role) == UserRole.STAFF.value
