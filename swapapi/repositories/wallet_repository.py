"""
Wallet repository - balance rows and the wallet ledger

Balance changes are single conditional UPDATE statements so that concurrent
debits are arbitrated by the database:

    UPDATE wallets SET balance = balance - :amount
     WHERE user_id = :user_id AND balance >= :amount

An update that touches no row means the balance was insufficient at the
moment the statement ran. The CHECK (balance >= 0) constraint backs this up.
Every applied change is journaled in wallet_ledger with the resulting balance.
"""

from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from swapapi.models.wallet import Wallet as WalletModel, WalletLedgerEntry as LedgerModel
from swapapi.repositories.base import BaseRepository
from swapapi.schemas.wallet import Wallet, WalletLedgerEntry


class WalletRepository(BaseRepository[WalletModel, Wallet]):
    def __init__(self, db: Session):
        super().__init__(WalletModel, Wallet, db)

    def get_by_user_id(self, user_id: int) -> Optional[Wallet]:
        wallet = (
            self.db.query(WalletModel)
            .filter(WalletModel.user_id == user_id)
            .populate_existing()
            .first()
        )
        return self._to_schema(wallet)

    def get_or_create(self, user_id: int) -> Wallet:
        """
        Return the user's wallet, creating an empty one on first access.

        The insert runs in a savepoint so a concurrent creator of the same
        wallet only costs us a re-read, not the enclosing transaction.
        """
        wallet = self.get_by_user_id(user_id)
        if wallet is not None:
            return wallet

        try:
            with self.db.begin_nested():
                self.db.add(WalletModel(user_id=user_id, balance=Decimal("0")))
        except IntegrityError:
            pass

        wallet = self.get_by_user_id(user_id)
        if wallet is None:
            raise RuntimeError(f"Wallet for user {user_id} could not be created")
        return wallet

    def get_balance(self, user_id: int) -> Optional[Decimal]:
        return self.db.execute(
            select(WalletModel.balance).where(WalletModel.user_id == user_id)
        ).scalar_one_or_none()

    def try_debit(self, user_id: int, amount: Decimal) -> Optional[Decimal]:
        """Conditionally subtract amount; returns the new balance or None if short"""
        result = self.db.execute(
            update(WalletModel)
            .where(WalletModel.user_id == user_id, WalletModel.balance >= amount)
            .values(balance=WalletModel.balance - amount, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None
        return self.get_balance(user_id)

    def credit(self, user_id: int, amount: Decimal) -> Optional[Decimal]:
        result = self.db.execute(
            update(WalletModel)
            .where(WalletModel.user_id == user_id)
            .values(balance=WalletModel.balance + amount, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None
        return self.get_balance(user_id)


class WalletLedgerRepository(BaseRepository[LedgerModel, WalletLedgerEntry]):
    def __init__(self, db: Session):
        super().__init__(LedgerModel, WalletLedgerEntry, db)

    def append(
        self,
        user_id: int,
        delta_amount: Decimal,
        balance_after: Decimal,
        reason: str,
        ref_id: str,
    ) -> WalletLedgerEntry:
        return self.create(
            user_id=user_id,
            delta_amount=delta_amount,
            balance_after=balance_after,
            reason=reason,
            ref_id=ref_id,
        )

    def ref_exists(self, ref_id: str) -> bool:
        return self.exists({"ref_id": ref_id})

    def list_for_user(
        self, user_id: int, limit: int, offset: int = 0
    ) -> Tuple[List[WalletLedgerEntry], int]:
        query = self.db.query(LedgerModel).filter(LedgerModel.user_id == user_id)
        total = query.count()
        entries = (
            query.order_by(desc(LedgerModel.id)).offset(offset).limit(limit).all()
        )
        return self._to_schemas(entries), total

    def sum_for_user(self, user_id: int) -> Tuple[Decimal, int]:
        """Sum of deltas and number of entries for the user"""
        total, count = self.db.execute(
            select(
                func.coalesce(func.sum(LedgerModel.delta_amount), 0),
                func.count(LedgerModel.id),
            ).where(LedgerModel.user_id == user_id)
        ).one()
        return Decimal(str(total)), int(count)
