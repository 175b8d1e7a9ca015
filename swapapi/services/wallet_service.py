import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Union
from uuid import uuid4

from sqlalchemy.orm import Session

from swapapi.config import Settings, settings as default_settings
from swapapi.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
)
from swapapi.database.unit_of_work import UnitOfWork
from swapapi.repositories.user_repository import UserRepository
from swapapi.repositories.wallet_repository import (
    WalletLedgerRepository,
    WalletRepository,
)
from swapapi.schemas.common import Actor
from swapapi.schemas.wallet import (
    Wallet,
    WalletBalanceResponse,
    WalletIntegrityResponse,
    WalletLedgerResponse,
    WalletTransactionResult,
)

logger = logging.getLogger(__name__)

Amount = Union[Decimal, int, str]


def to_amount(value: Amount) -> Decimal:
    """Parse a money amount; negative or non-numeric values are rejected."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid amount: {value}")
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"Amount must be a non-negative number: {value}")
    return amount


class WalletService:
    """Wallet balance and ledger operations

    ``debit`` and ``credit`` never commit. They are building blocks for
    services that already hold a unit of work (subscription purchase, swap
    settlement). ``get_balance``, ``admin_credit`` and ``verify_integrity``
    are complete operations of their own.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings
        self.wallet_repo = WalletRepository(db)
        self.ledger_repo = WalletLedgerRepository(db)
        self.user_repo = UserRepository(db)
        self.unit_of_work = UnitOfWork(db)

    def ensure_wallet(self, user_id: int) -> Wallet:
        return self.wallet_repo.get_or_create(user_id)

    def debit(
        self, user_id: int, amount: Amount, reason: str, ref_id: str
    ) -> WalletTransactionResult:
        """Subtract amount from the balance if it is available.

        Raises:
            ValidationError: negative amount
            ConflictError: ref_id already journaled
            InsufficientFundsError: balance below amount when the update ran
        """
        amount = to_amount(amount)
        if self.ledger_repo.ref_exists(ref_id):
            raise ConflictError(f"Wallet reference already used: {ref_id}")

        self.wallet_repo.get_or_create(user_id)
        balance_after = self.wallet_repo.try_debit(user_id, amount)
        if balance_after is None:
            logger.warning(
                f"Insufficient funds for user {user_id}: required {amount} ({ref_id})"
            )
            raise InsufficientFundsError(
                details={"user_id": user_id, "required": str(amount)}
            )

        self.ledger_repo.append(user_id, -amount, balance_after, reason, ref_id)
        logger.info(f"Debited {amount} from user {user_id}, balance {balance_after}")
        return WalletTransactionResult(
            user_id=user_id,
            delta_amount=-amount,
            balance_after=balance_after,
            ref_id=ref_id,
        )

    def credit(
        self, user_id: int, amount: Amount, reason: str, ref_id: str
    ) -> WalletTransactionResult:
        amount = to_amount(amount)
        if self.ledger_repo.ref_exists(ref_id):
            raise ConflictError(f"Wallet reference already used: {ref_id}")

        self.wallet_repo.get_or_create(user_id)
        balance_after = self.wallet_repo.credit(user_id, amount)
        if balance_after is None:
            raise NotFoundError(f"Wallet not found for user {user_id}")

        self.ledger_repo.append(user_id, amount, balance_after, reason, ref_id)
        logger.info(f"Credited {amount} to user {user_id}, balance {balance_after}")
        return WalletTransactionResult(
            user_id=user_id,
            delta_amount=amount,
            balance_after=balance_after,
            ref_id=ref_id,
        )

    def get_balance(self, user_id: int) -> WalletBalanceResponse:
        with self.unit_of_work.begin():
            wallet = self.wallet_repo.get_or_create(user_id)
        return WalletBalanceResponse(
            user_id=user_id, balance=wallet.balance, currency=self.settings.CURRENCY
        )

    def get_ledger(
        self, user_id: int, limit: int = 50, offset: int = 0
    ) -> WalletLedgerResponse:
        """Journal entries, newest first (limit capped at MAX_PAGE_SIZE)"""
        limit = max(1, min(limit, self.settings.MAX_PAGE_SIZE))
        offset = max(0, offset)

        entries, total = self.ledger_repo.list_for_user(user_id, limit, offset)
        balance = self.wallet_repo.get_balance(user_id)
        return WalletLedgerResponse(
            balance=balance if balance is not None else Decimal("0"),
            entries=entries,
            total_count=total,
            has_next=offset + len(entries) < total,
        )

    def admin_credit(
        self, actor: Actor, user_id: int, amount: Amount, reason: str
    ) -> WalletTransactionResult:
        """Manual top-up recorded by an admin (cash received at the counter)"""
        if not actor.is_admin:
            raise AuthorizationError("Admin access required")
        amount = to_amount(amount)
        if amount == 0:
            raise ValidationError("Amount must be greater than zero")

        with self.unit_of_work.begin():
            if self.user_repo.get_by_id(user_id) is None:
                raise NotFoundError(f"User {user_id} not found")
            result = self.credit(
                user_id,
                amount,
                reason=f"Admin credit by {actor.id}: {reason}",
                ref_id=f"admin_credit_{user_id}_{uuid4().hex}",
            )

        logger.info(f"Admin {actor.id} credited {amount} to user {user_id}")
        return result

    def verify_integrity(self, user_id: int) -> WalletIntegrityResponse:
        """Compare the stored balance with the sum of the user's ledger entries"""
        balance = self.wallet_repo.get_balance(user_id)
        if balance is None:
            balance = Decimal("0")
        ledger_sum, entry_count = self.ledger_repo.sum_for_user(user_id)

        status = "OK" if ledger_sum == balance else "MISMATCH"
        if status != "OK":
            logger.warning(
                f"Wallet integrity mismatch for user {user_id}: "
                f"balance {balance}, ledger {ledger_sum}"
            )
        return WalletIntegrityResponse(
            user_id=user_id,
            balance=balance,
            ledger_sum=ledger_sum,
            entry_count=entry_count,
            status=status,
        )
