from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from swapapi.models.base import BaseModel, IdType, UTCDateTime


class SwapTransaction(BaseModel):
    """Immutable record of one battery exchange, tied to a completed booking"""

    __tablename__ = "swap_transactions"
    __table_args__ = (
        CheckConstraint(
            "old_battery_id <> new_battery_id", name="ck_swap_transactions_batteries"
        ),
        CheckConstraint(
            "swap_completed_at >= swap_started_at", name="ck_swap_transactions_times"
        ),
        CheckConstraint(
            "swap_duration_minutes >= 0", name="ck_swap_transactions_duration"
        ),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    # A booking produces at most one swap
    booking_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("bookings.id"), unique=True, nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False, index=True
    )
    station_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("stations.id"), nullable=False
    )
    old_battery_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("batteries.id"), nullable=False
    )
    new_battery_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("batteries.id"), nullable=False
    )
    staff_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    swap_started_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    swap_completed_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    swap_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
