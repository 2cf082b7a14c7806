"""Shared plumbing for the application services."""
from __future__ import annotations

import uuid
from typing import Optional

from ..errors import ForbiddenError, NotFoundError, UnauthorizedError
from ..repositories import ReadRepository, UnitOfWork


class BaseService:
    """Holds the request's unit of work and the acting user.

    ``user_id`` is ``None`` for anonymous requests. Methods that touch
    user-owned data call :meth:`require_user` first.
    """

    def __init__(self, unit_of_work: UnitOfWork, user_id: Optional[uuid.UUID] = None) -> None:
        self.unit_of_work = unit_of_work
        self.user_id = user_id

    def reader(self, model: type) -> ReadRepository:
        return ReadRepository(model, self.unit_of_work.session)

    def require_user(self) -> uuid.UUID:
        if self.user_id is None:
            raise UnauthorizedError("Authentication required.")
        return self.user_id

    def ensure_owner(self, owner_id: uuid.UUID, label: str) -> None:
        if owner_id != self.require_user():
            raise ForbiddenError(f"You do not have access to this {label}.")

    def get_or_404(self, repository: ReadRepository, entity_id: uuid.UUID, label: str):
        entity = repository.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"{label.capitalize()} not found.")
        return entity
