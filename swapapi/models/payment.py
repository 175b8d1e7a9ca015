import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from swapapi.models.base import BaseModel, IdType, UTCDateTime


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    WALLET = "wallet"
    SUBSCRIPTION = "subscription"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Payment(BaseModel):
    """
    Payment record, created in the same transaction as the purchase it pays
    for and never modified afterwards. Linked to exactly one of a
    subscription or a swap transaction.
    """

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint(
            "(subscription_id IS NULL) <> (transaction_id IS NULL)",
            name="ck_payments_single_link",
        ),
        CheckConstraint("amount >= 0", name="ck_payments_amount"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False, index=True
    )
    subscription_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("user_subscriptions.id"), nullable=True, index=True
    )
    transaction_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("swap_transactions.id"), nullable=True, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    payment_status: Mapped[str] = mapped_column(
        String(20), default=PaymentStatus.COMPLETED.value, nullable=False
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
