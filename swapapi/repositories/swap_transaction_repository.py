from typing import Optional

from sqlalchemy.orm import Session

from swapapi.models.swap_transaction import SwapTransaction as SwapModel
from swapapi.repositories.base import BaseRepository
from swapapi.schemas.swap import SwapTransaction


class SwapTransactionRepository(BaseRepository[SwapModel, SwapTransaction]):
    def __init__(self, db: Session):
        super().__init__(SwapModel, SwapTransaction, db)

    def get_by_booking(self, booking_id: int) -> Optional[SwapTransaction]:
        swap = self.db.query(SwapModel).filter(SwapModel.booking_id == booking_id).first()
        return self._to_schema(swap)
