from datetime import timezone

from sqlalchemy import BigInteger, Column, DateTime, Integer, func
from sqlalchemy.orm import declarative_base, declared_attr
from sqlalchemy.types import TypeDecorator

Base = declarative_base()

# SQLite only auto-increments INTEGER PRIMARY KEY columns
IdType = BigInteger().with_variant(Integer(), "sqlite")


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime that is always stored and returned in UTC.

    Naive values are interpreted as UTC. SQLite drops tzinfo on storage, so
    values read back are re-tagged as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class TimestampMixin:
    """Mixin for created_at / updated_at columns"""

    @declared_attr
    def created_at(cls):
        return Column(UTCDateTime(), server_default=func.now())

    @declared_attr
    def updated_at(cls):
        return Column(UTCDateTime(), server_default=func.now(), onupdate=func.now())


class BaseModel(Base, TimestampMixin):
    """Base class for all models"""

    __abstract__ = True
