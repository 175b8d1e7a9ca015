"""
Wallet data models

The wallets table holds the current balance per user and is the row every
debit/credit updates conditionally. wallet_ledger is the append-only journal
of those changes, giving a full audit trail of the balance.
"""

from decimal import Decimal

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import UniqueConstraint

from swapapi.models.base import BaseModel, IdType

MONEY = Numeric(14, 2)


class Wallet(BaseModel):
    __tablename__ = "wallets"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_wallets_balance_non_negative"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    # One wallet per user
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), unique=True, nullable=False
    )
    balance: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)


class WalletLedgerEntry(BaseModel):
    """
    Wallet ledger - one immutable row per balance change

    - delta_amount: positive for credits, negative for debits
    - balance_after: wallet balance right after this change
    - ref_id: unique reference of the business event (subscription_12,
      swap_40, admin_credit_3_1700000000.0)
    """

    __tablename__ = "wallet_ledger"
    __table_args__ = (UniqueConstraint("ref_id", name="uq_wallet_ledger_ref_id"),)

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False, index=True
    )
    delta_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    balance_after: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    ref_id: Mapped[str] = mapped_column(Text, nullable=False)
