from typing import List

from sqlalchemy import asc
from sqlalchemy.orm import Session

from swapapi.models.payment import Payment as PaymentModel
from swapapi.repositories.base import BaseRepository
from swapapi.schemas.payment import Payment


class PaymentRepository(BaseRepository[PaymentModel, Payment]):
    def __init__(self, db: Session):
        super().__init__(PaymentModel, Payment, db)

    def list_for_subscription(self, subscription_id: int) -> List[Payment]:
        payments = (
            self.db.query(PaymentModel)
            .filter(PaymentModel.subscription_id == subscription_id)
            .order_by(asc(PaymentModel.id))
            .all()
        )
        return self._to_schemas(payments)

    def get_for_transaction(self, transaction_id: int) -> List[Payment]:
        payments = (
            self.db.query(PaymentModel)
            .filter(PaymentModel.transaction_id == transaction_id)
            .order_by(asc(PaymentModel.id))
            .all()
        )
        return self._to_schemas(payments)
