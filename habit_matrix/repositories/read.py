"""Query-only repository.

Reads go through the application session, so the soft-delete
criteria registered in ``habit_matrix.db`` apply to every method
here. Callers pass SQLAlchemy boolean expressions as criteria::

    habits = ReadRepository(Habit, db.session)
    mine = habits.find(Habit.user_id == user_id, order_by=Habit.name)

Results are plain model instances. Mutating one has no effect until
it is passed to a :class:`~habit_matrix.repositories.write.WriteRepository`
and the unit of work commits.
"""
from __future__ import annotations

import uuid
from typing import Any, Generic, List, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..db import soft_delete_models

T = TypeVar("T")


class ReadRepository(Generic[T]):
    def __init__(self, model: type[T], session: Session) -> None:
        self.model = model
        self.session = session

    def get_by_id(self, entity_id: uuid.UUID) -> Optional[T]:
        # A SELECT is always issued; Session.get() would hand back a
        # soft-deleted row still sitting in the identity map.
        stmt = select(self.model).where(self.model.id == entity_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_all(self) -> List[T]:
        return list(self.session.execute(select(self.model)).scalars())

    def find(self, *criteria: Any, order_by: Any = None) -> List[T]:
        stmt = select(self.model).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        return list(self.session.execute(stmt).scalars())

    def first(self, *criteria: Any) -> Optional[T]:
        stmt = select(self.model).where(*criteria).limit(1)
        return self.session.execute(stmt).scalars().first()

    def exists(self, *criteria: Any) -> bool:
        return self.first(*criteria) is not None

    def count(self, *criteria: Any) -> int:
        stmt = select(self.model).where(*criteria)
        if self.model in soft_delete_models():
            stmt = stmt.where(self.model.is_deleted.is_(False))
        inner = stmt.subquery()
        return self.session.execute(select(func.count()).select_from(inner)).scalar_one()
