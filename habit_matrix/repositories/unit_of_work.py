"""Unit of work with audit stamping and soft deletes.

Write repositories do not touch the session. They append tagged
operations to a :class:`UnitOfWork`, and ``commit()`` walks that
list in order:

* ``ADD`` stamps ``created_at``/``created_by`` and adds the entity.
* ``UPDATE`` stamps ``modified_at``/``modified_by``.
* ``SOFT_DELETE`` sets ``is_deleted``, ``deleted_at`` and
  ``deleted_by``. The row is updated in place; no ``DELETE`` is ever
  issued for an auditable model.

The stamps and the business changes are flushed and committed in a
single transaction. If anything fails the session is rolled back,
stamps applied to new entities are reverted and the error is raised
to the caller. Integrity violations surface as
:class:`~habit_matrix.errors.ConflictError`.

Entities must be staged to be written. Changing a loaded auditable row
without staging it makes ``commit()`` fail with
:class:`UnstagedChangeError`, so no row reaches the database without
its audit stamps.

Only acquiring the database connection is retried, a bounded number
of times with capped exponential backoff. Business writes are never
replayed.

A unit of work belongs to one request and must not be shared.
"""
from __future__ import annotations

import enum
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ..db import INCLUDE_DELETED, is_soft_deletable, soft_delete_models
from ..errors import ConflictError, NotFoundError
from ..models import utcnow
from .write import WriteRepository

logger = logging.getLogger(__name__)

_CREATE_FIELDS = ("id", "created_at", "created_by", "modified_at", "modified_by", "is_deleted")


class UnstagedChangeError(RuntimeError):
    """A loaded auditable entity was changed but never staged."""


class Operation(enum.Enum):
    ADD = "add"
    UPDATE = "update"
    SOFT_DELETE = "soft_delete"


@dataclass
class StagedOperation:
    kind: Operation
    model: type
    entity: Any = None
    entity_id: Optional[uuid.UUID] = None
    actor: Optional[uuid.UUID] = None


class UnitOfWork:
    """Collects staged writes and commits them atomically.

    Parameters
    ----------
    session: Session
        The SQLAlchemy session (normally ``db.session``).
    actor_id: uuid.UUID | None
        The user on whose behalf changes are made. Written to the
        ``*_by`` audit columns.
    max_retries: int
        How many times a failed connection attempt is retried.
    base_delay, max_delay: float
        Backoff in seconds; doubles per attempt and never exceeds
        ``max_delay``.
    """

    def __init__(
        self,
        session: Session,
        actor_id: Optional[uuid.UUID] = None,
        max_retries: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session
        self.actor_id = actor_id
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sleep = sleep
        self._operations: List[StagedOperation] = []

    def repository(self, model: type) -> WriteRepository:
        return WriteRepository(model, self)

    @property
    def pending(self) -> Tuple[StagedOperation, ...]:
        return tuple(self._operations)

    # -- staging ---------------------------------------------------------

    def stage_add(self, entity) -> None:
        self._operations.append(StagedOperation(Operation.ADD, type(entity), entity=entity))

    def stage_update(self, entity) -> None:
        if not inspect(entity).has_identity:
            raise ValueError("Only entities loaded from the database can be updated.")
        self._operations.append(StagedOperation(Operation.UPDATE, type(entity), entity=entity))

    def stage_soft_delete(
        self,
        model: type,
        entity=None,
        entity_id: Optional[uuid.UUID] = None,
        actor: Optional[uuid.UUID] = None,
    ) -> None:
        if model not in soft_delete_models():
            raise TypeError(f"{model.__name__} is not an auditable model")
        if entity is None and entity_id is None:
            raise ValueError("Either entity or entity_id is required.")
        self._operations.append(
            StagedOperation(Operation.SOFT_DELETE, model, entity=entity, entity_id=entity_id, actor=actor)
        )

    # -- commit ----------------------------------------------------------

    def commit(self) -> int:
        """Persist every staged operation in one transaction.

        Returns the number of rows affected. Re-deleting a row that is
        already deleted changes nothing and is not counted.
        """
        operations, self._operations = self._operations, []
        if not operations:
            return 0

        self._check_unstaged(operations)
        self._connect()
        now = utcnow()
        snapshots: List[Tuple[Any, Dict[str, Any]]] = []
        try:
            affected = sum(self._apply(op, now, snapshots) for op in operations)
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            self._restore(snapshots)
            logger.warning("Commit rejected by a constraint: %s", exc.orig)
            raise ConflictError("The change conflicts with an existing record.") from exc
        except Exception:
            self.session.rollback()
            self._restore(snapshots)
            logger.error("Commit of %d staged operation(s) failed", len(operations))
            raise
        logger.debug("Committed %d operation(s), %d row(s) affected", len(operations), affected)
        return affected

    def rollback(self) -> None:
        """Drop staged operations and roll back the session transaction."""
        self._operations = []
        self.session.rollback()

    def _check_unstaged(self, operations: List[StagedOperation]) -> None:
        staged = {id(op.entity) for op in operations if op.entity is not None}
        unstaged = [
            obj
            for obj in self.session.dirty
            if is_soft_deletable(obj) and id(obj) not in staged and self.session.is_modified(obj)
        ]
        if unstaged:
            names = ", ".join(sorted({type(obj).__name__ for obj in unstaged}))
            logger.error("Refusing to commit unstaged changes to %s", names)
            self.session.rollback()
            raise UnstagedChangeError(f"Changes to {names} must be staged through a repository.")

    def _apply(self, op: StagedOperation, now: datetime, snapshots: list) -> int:
        actor = op.actor or self.actor_id

        if op.kind is Operation.ADD:
            entity = op.entity
            snapshots.append((entity, {name: getattr(entity, name) for name in _CREATE_FIELDS}))
            entity.created_at = now
            entity.created_by = actor
            entity.modified_at = None
            entity.modified_by = None
            entity.is_deleted = False
            self.session.add(entity)
            return 1

        if op.kind is Operation.UPDATE:
            entity = op.entity
            if entity.is_deleted:
                raise NotFoundError(f"{op.model.__name__} {entity.id} has been deleted.")
            entity.modified_at = now
            entity.modified_by = actor
            self.session.add(entity)
            return 1

        entity = op.entity if op.entity is not None else self._load_any(op.model, op.entity_id)
        if entity is None:
            raise NotFoundError(f"{op.model.__name__} {op.entity_id} not found.")
        if entity.is_deleted:
            return 0
        entity.is_deleted = True
        entity.deleted_at = now
        entity.deleted_by = actor
        self.session.add(entity)
        return 1

    def _load_any(self, model: type, entity_id: uuid.UUID):
        stmt = select(model).where(model.id == entity_id).execution_options(**{INCLUDE_DELETED: True})
        return self.session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _restore(snapshots) -> None:
        # Persistent rows are expired by the rollback; only new entities
        # keep the values written to them and need restoring.
        for entity, values in snapshots:
            for name, value in values.items():
                setattr(entity, name, value)

    def _connect(self) -> None:
        attempt = 0
        while True:
            try:
                self.session.connection()
                return
            except OperationalError as exc:
                if attempt >= self.max_retries:
                    logger.error("Database unreachable after %d attempt(s)", attempt + 1)
                    raise
                delay = min(self.base_delay * (2 ** attempt), self.max_delay)
                attempt += 1
                logger.warning(
                    "Database connection failed (%s); retry %d/%d in %.1fs",
                    exc.orig, attempt, self.max_retries, delay,
                )
                self.session.rollback()
                self._sleep(delay)
