from typing import Optional

from sqlalchemy.orm import Session

from swapapi.models.vehicle import Vehicle as VehicleModel
from swapapi.repositories.base import BaseRepository
from swapapi.schemas.inventory import Vehicle


class VehicleRepository(BaseRepository[VehicleModel, Vehicle]):
    def __init__(self, db: Session):
        super().__init__(VehicleModel, Vehicle, db)

    def get_owned(self, vehicle_id: int, user_id: int) -> Optional[Vehicle]:
        vehicle = (
            self.db.query(VehicleModel)
            .filter(VehicleModel.id == vehicle_id, VehicleModel.user_id == user_id)
            .first()
        )
        return self._to_schema(vehicle)
