"""
SQLAlchemy implementation of the base repository contract.
"""

from typing import Any, Generic, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.domain.repositories.base import BaseRepository, Values
from app.infrastructure.database import Base

ModelType = TypeVar("ModelType", bound=Base)


def _as_dict(values: Values) -> dict[str, Any]:
    if isinstance(values, BaseModel):
        return values.model_dump(exclude_unset=True)
    return dict(values)


class SQLAlchemyRepository(BaseRepository[ModelType], Generic[ModelType]):
    """Commits per call; each request owns its session."""

    def __init__(self, db: Session, model: Type[ModelType]):
        self.db = db
        self.model = model

    def get_by_id(self, id: int) -> Optional[ModelType]:
        return self.db.get(self.model, id)

    def create(self, values: Values) -> ModelType:
        record = self.model(**_as_dict(values))
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def update(self, record: ModelType, values: Values) -> ModelType:
        for field, value in _as_dict(values).items():
            if hasattr(record, field):
                setattr(record, field, value)
        self.db.commit()
        self.db.refresh(record)
        return record

    def delete(self, id: int) -> Optional[ModelType]:
        record = self.db.get(self.model, id)
        if record is not None:
            self.db.delete(record)
            self.db.commit()
        return record
