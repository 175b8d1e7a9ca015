from abc import ABC
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type
from sqlalchemy.orm import Session
from pydantic import BaseModel

T = TypeVar("T")
SchemaType = TypeVar("SchemaType", bound=BaseModel)


class BaseRepository(Generic[T, SchemaType], ABC):
    """Base class for all repositories - always returns Pydantic schemas

    Repositories never commit. Writes are flushed so generated keys and
    constraint violations surface immediately, and the enclosing
    ``UnitOfWork`` decides whether the transaction is committed.
    """

    def __init__(
        self, model_class: Type[T], schema_class: Type[SchemaType], db: Session
    ):
        self.model_class = model_class
        self.schema_class = schema_class
        self.db = db

    def _to_schema(self, model_instance: Any) -> Optional[SchemaType]:
        if model_instance is None:
            return None
        return self.schema_class.model_validate(model_instance)

    def _to_schemas(self, model_instances: List[Any]) -> List[SchemaType]:
        return [self.schema_class.model_validate(m) for m in model_instances]

    def _get_model(self, id: Any) -> Optional[T]:
        return (
            self.db.query(self.model_class)
            .filter(getattr(self.model_class, "id") == id)
            .first()
        )

    def get_by_id(self, id: Any) -> Optional[SchemaType]:
        """Fetch by primary key"""
        return self._to_schema(self._get_model(id))

    def create(self, **kwargs) -> SchemaType:
        """Insert a record and flush it so database defaults are loaded"""
        instance = self.model_class(**kwargs)
        self.db.add(instance)
        self.db.flush()
        self.db.refresh(instance)
        return self.schema_class.model_validate(instance)

    def update(self, instance_id: Any, **kwargs) -> Optional[SchemaType]:
        instance = self._get_model(instance_id)
        if not instance:
            return None

        for key, value in kwargs.items():
            if hasattr(instance, key):
                setattr(instance, key, value)

        self.db.add(instance)
        self.db.flush()
        self.db.refresh(instance)
        return self._to_schema(instance)

    def delete(self, instance_id: Any) -> bool:
        instance = self._get_model(instance_id)
        if not instance:
            return False

        self.db.delete(instance)
        self.db.flush()
        return True

    def exists(self, filters: Dict[str, Any]) -> bool:
        query = self.db.query(self.model_class)

        for key, value in filters.items():
            if hasattr(self.model_class, key):
                query = query.filter(getattr(self.model_class, key) == value)

        return query.first() is not None
