"""Table creation for scripts and tests; every model module is registered here."""

from sqlalchemy import text
from sqlalchemy.engine import Engine

from swapapi.models import (  # noqa: F401
    booking,
    payment,
    service_package,
    staff_schedule,
    station,
    subscription,
    swap_transaction,
    user,
    vehicle,
    wallet,
)
from swapapi.models.base import Base


def create_schema(engine: Engine, schema: str = None) -> None:
    if schema and engine.dialect.name == "postgresql":
        with engine.begin() as conn:
            conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema}"))
    Base.metadata.create_all(bind=engine)


def drop_schema(engine: Engine) -> None:
    Base.metadata.drop_all(bind=engine)
