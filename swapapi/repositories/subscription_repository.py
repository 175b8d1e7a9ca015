from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import asc, desc, or_, update
from sqlalchemy.orm import Session

from swapapi.models.subscription import (
    SubscriptionStatus,
    UserSubscription as SubscriptionModel,
)
from swapapi.repositories.base import BaseRepository
from swapapi.schemas.subscription import UserSubscription


class SubscriptionRepository(BaseRepository[SubscriptionModel, UserSubscription]):
    def __init__(self, db: Session):
        super().__init__(SubscriptionModel, UserSubscription, db)

    def expire_lapsed(self, user_id: int, now: datetime) -> int:
        """Move the user's active subscriptions whose end_date has passed to expired"""
        result = self.db.execute(
            update(SubscriptionModel)
            .where(
                SubscriptionModel.user_id == user_id,
                SubscriptionModel.status == SubscriptionStatus.ACTIVE.value,
                SubscriptionModel.end_date <= now,
            )
            .values(status=SubscriptionStatus.EXPIRED.value, auto_renew=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def find_active_for_package(
        self, user_id: int, package_id: int, now: datetime
    ) -> Optional[UserSubscription]:
        subscription = (
            self.db.query(SubscriptionModel)
            .filter(
                SubscriptionModel.user_id == user_id,
                SubscriptionModel.package_id == package_id,
                SubscriptionModel.status == SubscriptionStatus.ACTIVE.value,
                SubscriptionModel.end_date >= now,
            )
            .first()
        )
        return self._to_schema(subscription)

    def find_covering(self, user_id: int, now: datetime) -> Optional[UserSubscription]:
        """Active subscription with swaps left, the one ending soonest first"""
        subscription = (
            self.db.query(SubscriptionModel)
            .filter(
                SubscriptionModel.user_id == user_id,
                SubscriptionModel.status == SubscriptionStatus.ACTIVE.value,
                SubscriptionModel.end_date > now,
                or_(
                    SubscriptionModel.remaining_swaps.is_(None),
                    SubscriptionModel.remaining_swaps > 0,
                ),
            )
            .order_by(asc(SubscriptionModel.end_date), asc(SubscriptionModel.id))
            .first()
        )
        return self._to_schema(subscription)

    def consume_swap(self, subscription_id: int) -> bool:
        """Use one entitlement. Unlimited subscriptions (NULL) are left untouched."""
        result = self.db.execute(
            update(SubscriptionModel)
            .where(
                SubscriptionModel.id == subscription_id,
                SubscriptionModel.status == SubscriptionStatus.ACTIVE.value,
                SubscriptionModel.remaining_swaps > 0,
            )
            .values(remaining_swaps=SubscriptionModel.remaining_swaps - 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return True

        # Unlimited plans have nothing to decrement
        return (
            self.db.query(SubscriptionModel)
            .filter(
                SubscriptionModel.id == subscription_id,
                SubscriptionModel.status == SubscriptionStatus.ACTIVE.value,
                SubscriptionModel.remaining_swaps.is_(None),
            )
            .first()
            is not None
        )

    def close(self, subscription_id: int, status: SubscriptionStatus) -> bool:
        """Leave 'active' for status; False if the subscription was no longer active"""
        result = self.db.execute(
            update(SubscriptionModel)
            .where(
                SubscriptionModel.id == subscription_id,
                SubscriptionModel.status == SubscriptionStatus.ACTIVE.value,
            )
            .values(status=status.value, auto_renew=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def get_owned(self, subscription_id: int, user_id: int) -> Optional[UserSubscription]:
        subscription = (
            self.db.query(SubscriptionModel)
            .filter(
                SubscriptionModel.id == subscription_id,
                SubscriptionModel.user_id == user_id,
            )
            .populate_existing()
            .first()
        )
        return self._to_schema(subscription)

    def list_for_user(
        self,
        user_id: int,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[UserSubscription], int]:
        query = self.db.query(SubscriptionModel).filter(
            SubscriptionModel.user_id == user_id
        )
        if status is not None:
            query = query.filter(SubscriptionModel.status == status)
        total = query.count()
        items = (
            query.order_by(desc(SubscriptionModel.created_at), desc(SubscriptionModel.id))
            .offset(offset)
            .limit(limit)
            .populate_existing()
            .all()
        )
        return self._to_schemas(items), total
