"""
Inventory access used by the swap core

Stations and batteries are owned by the inventory collaborator. The only write
made here is the battery status change caused by a completed swap.
"""

from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from swapapi.models.station import (
    Battery as BatteryModel,
    BatteryStatus,
    Station as StationModel,
    StationStatus,
)
from swapapi.repositories.base import BaseRepository
from swapapi.schemas.inventory import Battery, Station


class StationRepository(BaseRepository[StationModel, Station]):
    def __init__(self, db: Session):
        super().__init__(StationModel, Station, db)

    def get_active_station(self, station_id: int) -> Optional[Station]:
        station = (
            self.db.query(StationModel)
            .filter(
                StationModel.id == station_id,
                StationModel.status == StationStatus.ACTIVE.value,
            )
            .first()
        )
        return self._to_schema(station)


class BatteryRepository(BaseRepository[BatteryModel, Battery]):
    def __init__(self, db: Session):
        super().__init__(BatteryModel, Battery, db)

    def count_ready(
        self, station_id: int, model: str, include_charging: bool = False
    ) -> int:
        """Batteries of a model (case-insensitive) at a station that can be handed out"""
        statuses = [BatteryStatus.FULL.value]
        if include_charging:
            statuses.append(BatteryStatus.CHARGING.value)
        return (
            self.db.query(func.count(BatteryModel.id))
            .filter(
                BatteryModel.station_id == station_id,
                func.lower(func.trim(BatteryModel.model)) == model.strip().lower(),
                BatteryModel.status.in_(statuses),
            )
            .scalar()
        )

    def mark_swapped(
        self, old_battery_id: int, new_battery_id: int, station_id: int
    ) -> bool:
        """
        Move the new battery into the vehicle and the old one onto the charger.

        The new battery is only taken while it is still 'full'; returns False
        (and changes nothing) when another swap already took it.
        """
        taken = self.db.execute(
            update(BatteryModel)
            .where(
                BatteryModel.id == new_battery_id,
                BatteryModel.status == BatteryStatus.FULL.value,
            )
            .values(status=BatteryStatus.IN_USE.value, station_id=None)
            .execution_options(synchronize_session=False)
        )
        if taken.rowcount != 1:
            return False

        self.db.execute(
            update(BatteryModel)
            .where(BatteryModel.id == old_battery_id)
            .values(status=BatteryStatus.CHARGING.value, station_id=station_id)
            .execution_options(synchronize_session=False)
        )
        return True
