"""Staging-only repository.

A ``WriteRepository`` never talks to the database. Each call appends
an operation to the unit of work it was created from; the unit of work
applies audit stamps and persists everything in one transaction when
``commit()`` is called.
"""
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Generic, Optional, TypeVar

from ..db import is_soft_deletable

if TYPE_CHECKING:
    from .unit_of_work import UnitOfWork

T = TypeVar("T")


class WriteRepository(Generic[T]):
    def __init__(self, model: type[T], unit_of_work: "UnitOfWork") -> None:
        self.model = model
        self.unit_of_work = unit_of_work

    def _check(self, entity) -> None:
        if not isinstance(entity, self.model):
            raise TypeError(f"expected {self.model.__name__}, got {type(entity).__name__}")
        if not is_soft_deletable(entity):
            raise TypeError(f"{self.model.__name__} is not an auditable model")

    def add(self, entity: T) -> None:
        """Stage ``entity`` for insertion."""
        self._check(entity)
        self.unit_of_work.stage_add(entity)

    def update(self, entity: T) -> None:
        """Stage an update of a live entity previously loaded by the caller."""
        self._check(entity)
        self.unit_of_work.stage_update(entity)

    def remove(self, entity: T, actor: Optional[uuid.UUID] = None) -> None:
        """Stage the logical deletion of a loaded entity."""
        self._check(entity)
        self.unit_of_work.stage_soft_delete(self.model, entity=entity, actor=actor)

    def soft_delete(self, entity_id: uuid.UUID, actor: Optional[uuid.UUID] = None) -> None:
        """Stage the logical deletion of the row with ``entity_id``.

        The row is resolved when the unit of work commits. Deleting a row
        that is already deleted is a no-op.
        """
        self.unit_of_work.stage_soft_delete(self.model, entity_id=entity_id, actor=actor)
