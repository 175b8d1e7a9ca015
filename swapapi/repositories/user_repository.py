from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from swapapi.models.user import User as UserModel, UserRole
from swapapi.repositories.base import BaseRepository
from swapapi.schemas.user import User as UserSchema


class UserRepository(BaseRepository[UserModel, UserSchema]):
    """Read access to identity-owned user rows"""

    def __init__(self, db: Session):
        super().__init__(UserModel, UserSchema, db)

    def get_active_staff(self, user_id: int) -> Optional[UserSchema]:
        user = (
            self.db.query(UserModel)
            .filter(
                UserModel.id == user_id,
                UserModel.role == UserRole.STAFF.value,
                UserModel.is_active.is_(True),
            )
            .first()
        )
        return self._to_schema(user)

    def lock_for_update(self, user_id: int) -> Optional[UserSchema]:
        """
        Lock the user row until the current transaction ends.

        Shift writes for one staff member are serialized on this lock so the
        overlap check and the insert cannot interleave. SQLite ignores
        FOR UPDATE; there every write transaction starts with BEGIN IMMEDIATE.
        """
        user = self.db.execute(
            select(UserModel).where(UserModel.id == user_id).with_for_update()
        ).scalar_one_or_none()
        return self._to_schema(user)
