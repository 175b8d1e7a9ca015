from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from swapapi.models.base import BaseModel, IdType


class ServicePackage(BaseModel):
    """Subscription package catalog entry, managed by admins"""

    __tablename__ = "service_packages"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_service_packages_price"),
        CheckConstraint("duration_days > 0", name="ck_service_packages_duration"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    # NULL means unlimited swaps
    swap_limit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
