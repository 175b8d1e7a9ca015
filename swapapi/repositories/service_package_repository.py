from typing import Optional

from sqlalchemy.orm import Session

from swapapi.models.service_package import ServicePackage as PackageModel
from swapapi.repositories.base import BaseRepository
from swapapi.schemas.package import ServicePackage


class ServicePackageRepository(BaseRepository[PackageModel, ServicePackage]):
    """Package catalog lookups"""

    def __init__(self, db: Session):
        super().__init__(PackageModel, ServicePackage, db)

    def get_active_package(self, package_id: int) -> Optional[ServicePackage]:
        package = (
            self.db.query(PackageModel)
            .filter(PackageModel.id == package_id, PackageModel.is_active.is_(True))
            .first()
        )
        return self._to_schema(package)
