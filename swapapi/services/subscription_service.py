import logging
from datetime import timedelta
from typing import Optional
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from swapapi.config import Settings, settings as default_settings
from swapapi.core.exceptions import (
    ConflictError,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
)
from swapapi.database.unit_of_work import UnitOfWork
from swapapi.models.payment import PaymentMethod, PaymentStatus
from swapapi.models.subscription import SubscriptionStatus
from swapapi.repositories.payment_repository import PaymentRepository
from swapapi.repositories.service_package_repository import ServicePackageRepository
from swapapi.repositories.subscription_repository import SubscriptionRepository
from swapapi.schemas.common import Actor, Page, PaginationMeta
from swapapi.schemas.subscription import (
    SubscriptionDetail,
    SubscriptionPurchase,
    UserSubscription,
)
from swapapi.services.wallet_service import WalletService
from swapapi.utils.timezone_utils import now_utc

logger = logging.getLogger(__name__)


class SubscriptionService:
    """Wallet-funded subscription purchase and lifecycle"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings
        self.package_repo = ServicePackageRepository(db)
        self.subscription_repo = SubscriptionRepository(db)
        self.payment_repo = PaymentRepository(db)
        self.wallet_service = WalletService(db, settings=self.settings)
        self.unit_of_work = UnitOfWork(db)

    def subscribe(
        self, actor: Actor, package_id: int, auto_renew: bool = False
    ) -> SubscriptionPurchase:
        """
        Buy a package with wallet funds.

        The balance check below is only a fast path; the conditional debit is
        what decides between two purchases racing for the same funds. The
        debit, the subscription and its payment record are committed together
        or not at all.

        Raises:
            NotFoundError: package missing or inactive
            ConflictError: an active subscription to the package already exists
            InsufficientFundsError: wallet balance below the package price
        """
        now = now_utc()

        with self.unit_of_work.begin():
            package = self.package_repo.get_active_package(package_id)
            if package is None:
                raise NotFoundError(f"Service package {package_id} not found")

            expired = self.subscription_repo.expire_lapsed(actor.id, now)
            if expired:
                logger.info(f"Expired {expired} lapsed subscriptions for user {actor.id}")

            existing = self.subscription_repo.find_active_for_package(
                actor.id, package_id, now
            )
            if existing is not None:
                logger.warning(
                    f"User {actor.id} already holds subscription {existing.id} "
                    f"for package {package_id}"
                )
                raise ConflictError(
                    "An active subscription for this package already exists",
                    details={"subscription_id": existing.id},
                )

            wallet = self.wallet_service.ensure_wallet(actor.id)
            if wallet.balance < package.price:
                logger.warning(
                    f"User {actor.id} cannot afford package {package_id}: "
                    f"balance {wallet.balance}, price {package.price}"
                )
                raise InsufficientFundsError(
                    details={
                        "balance": str(wallet.balance),
                        "required": str(package.price),
                    }
                )

            debit = self.wallet_service.debit(
                actor.id,
                package.price,
                reason=f"Subscription purchase: {package.name}",
                ref_id=f"subscription_purchase_{uuid4().hex}",
            )

            try:
                subscription = self.subscription_repo.create(
                    user_id=actor.id,
                    package_id=package.id,
                    start_date=now,
                    end_date=now + timedelta(days=package.duration_days),
                    remaining_swaps=package.swap_limit,
                    status=SubscriptionStatus.ACTIVE.value,
                    auto_renew=auto_renew,
                )
            except IntegrityError as e:
                raise ConflictError(
                    "An active subscription for this package already exists"
                ) from e

            payment = self.payment_repo.create(
                user_id=actor.id,
                subscription_id=subscription.id,
                amount=package.price,
                payment_method=PaymentMethod.WALLET.value,
                payment_status=PaymentStatus.COMPLETED.value,
                paid_at=now,
            )

        logger.info(
            f"User {actor.id} subscribed to package {package_id} "
            f"(subscription {subscription.id}, paid {package.price})"
        )
        return SubscriptionPurchase(
            subscription=subscription,
            payment=payment,
            balance_after=debit.balance_after,
        )

    def cancel(self, actor: Actor, subscription_id: int) -> UserSubscription:
        """End an active subscription. Nothing is refunded."""
        now = now_utc()

        with self.unit_of_work.begin():
            subscription = self.subscription_repo.get_owned(subscription_id, actor.id)
            if subscription is None:
                raise NotFoundError(f"Subscription {subscription_id} not found")
            if subscription.status != SubscriptionStatus.ACTIVE.value:
                raise ConflictError(
                    f"Subscription is already {subscription.status}"
                )

            new_status = (
                SubscriptionStatus.EXPIRED
                if subscription.end_date <= now
                else SubscriptionStatus.CANCELLED
            )
            if not self.subscription_repo.close(subscription_id, new_status):
                raise ConflictError("Subscription is no longer active")

            subscription = self.subscription_repo.get_owned(subscription_id, actor.id)

        logger.info(
            f"Subscription {subscription_id} of user {actor.id} is now {new_status.value}"
        )
        return subscription

    def list(
        self,
        actor: Actor,
        status: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Page[UserSubscription]:
        limit = min(limit or self.settings.DEFAULT_PAGE_SIZE, self.settings.MAX_PAGE_SIZE)
        if status is not None:
            status = status.strip().lower()
            if status not in {s.value for s in SubscriptionStatus}:
                raise ValidationError(f"Unknown subscription status: {status}")

        with self.unit_of_work.begin():
            self.subscription_repo.expire_lapsed(actor.id, now_utc())

        items, total = self.subscription_repo.list_for_user(
            actor.id, status=status, limit=limit, offset=(page - 1) * limit
        )
        return Page[UserSubscription](
            items=items, pagination=PaginationMeta.build(page, limit, total)
        )

    def get(self, actor: Actor, subscription_id: int) -> SubscriptionDetail:
        subscription = self.subscription_repo.get_owned(subscription_id, actor.id)
        if subscription is None:
            raise NotFoundError(f"Subscription {subscription_id} not found")

        return SubscriptionDetail(
            subscription=subscription,
            package=self.package_repo.get_by_id(subscription.package_id),
            payments=self.payment_repo.list_for_subscription(subscription_id),
        )
