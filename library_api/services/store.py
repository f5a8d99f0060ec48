"""
Entity Store

Thin repository over a SQLAlchemy session for one model class. The catalog
pipeline talks to Authors and Books only through these methods, so the
query shapes live in one place.

Writes flush but do not commit; the caller owns the unit of work and
commits (or rolls back) once per request.
"""

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from library_api.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class EntityStore(Generic[ModelT]):
    """CRUD access to one table."""

    def __init__(self, db: Session, model: type[ModelT]):
        self.db = db
        self.model = model

    def find_all(self, *order_by: Any, options: Sequence[Any] = ()) -> list[ModelT]:
        stmt = select(self.model).options(*options).order_by(*order_by)
        return list(self.db.execute(stmt).scalars().all())

    def find_by_id(self, record_id: str, options: Sequence[Any] = ()) -> ModelT | None:
        stmt = select(self.model).options(*options).where(self.model.id == record_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def find_by_filter(self, *criteria: ColumnElement[bool], limit: int | None = None) -> list[ModelT]:
        stmt = select(self.model).where(*criteria).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def exists(self, *criteria: ColumnElement[bool]) -> bool:
        stmt = select(func.count()).select_from(self.model).where(*criteria)
        return (self.db.execute(stmt).scalar() or 0) > 0

    def insert(self, values: dict[str, Any]) -> ModelT:
        record = self.model(**values)
        self.db.add(record)
        self.db.flush()
        return record

    def update(self, record: ModelT, values: dict[str, Any]) -> ModelT:
        """Apply values to a loaded record."""
        for key, value in values.items():
            setattr(record, key, value)
        self.db.flush()
        return record

    def delete(self, record: ModelT) -> None:
        self.db.delete(record)
        self.db.flush()

    def delete_by_id(self, record_id: str) -> ModelT | None:
        """Delete a record and return it, or None if it did not exist."""
        record = self.find_by_id(record_id)
        if record is None:
            return None
        self.delete(record)
        return record
