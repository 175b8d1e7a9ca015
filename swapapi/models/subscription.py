import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from swapapi.models.base import BaseModel, IdType, UTCDateTime


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class UserSubscription(BaseModel):
    __tablename__ = "user_subscriptions"
    __table_args__ = (
        # At most one active entitlement per (user, package). Lapsed rows are
        # moved to 'expired' before a new purchase is attempted.
        Index(
            "uq_user_subscriptions_active_package",
            "user_id",
            "package_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("idx_user_subscriptions_user_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    package_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("service_packages.id"), nullable=False
    )
    start_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    # NULL means unlimited swaps
    remaining_swaps: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=SubscriptionStatus.ACTIVE.value, nullable=False
    )
    auto_renew: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
