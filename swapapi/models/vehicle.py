from sqlalchemy import BigInteger, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from swapapi.models.base import BaseModel, IdType


class Vehicle(BaseModel):
    __tablename__ = "vehicles"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False, index=True
    )
    license_plate: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    battery_model: Mapped[str] = mapped_column(String(100), nullable=False)
