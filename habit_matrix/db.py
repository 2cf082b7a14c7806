"""Database setup and the soft-delete query filter.

This module centralises the configuration of the SQLAlchemy
session. It exposes the ``db`` object used by models throughout
the application, together with the registry of soft-deletable
models.

Every model registered through :func:`register_soft_delete` is
hidden from ORM ``SELECT`` statements once its ``is_deleted``
flag is set. The criteria are attached by a ``do_orm_execute``
session event, so repositories and services never have to
remember to filter ``is_deleted`` themselves.

Import ``db`` from ``habit_matrix`` rather than from this module
directly. The application factory initialises ``db`` with the
Flask app.
"""
from __future__ import annotations

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.orm import ORMExecuteState, Session, with_loader_criteria

db = SQLAlchemy()

# Execution option reserved for the unit of work when it resolves a row
# by id during a soft delete. It is not exposed through any repository.
INCLUDE_DELETED = "include_deleted"

_soft_delete_models: list[type] = []


def register_soft_delete(*models: type) -> None:
    """Add ``models`` to the set of classes filtered on ``is_deleted``."""
    for model in models:
        if not hasattr(model, "is_deleted"):
            raise TypeError(f"{model.__name__} has no is_deleted column")
        if model not in _soft_delete_models:
            _soft_delete_models.append(model)


def soft_delete_models() -> tuple[type, ...]:
    return tuple(_soft_delete_models)


def is_soft_deletable(obj) -> bool:
    return isinstance(obj, tuple(_soft_delete_models))


@event.listens_for(Session, "do_orm_execute")
def _exclude_soft_deleted(execute_state: ORMExecuteState) -> None:
    # Refreshes of rows that were already selected are left untouched.
    # Lazy loads are filtered like any other read.
    if (
        not execute_state.is_select
        or execute_state.is_column_load
        or execute_state.execution_options.get(INCLUDE_DELETED, False)
    ):
        return
    for model in _soft_delete_models:
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                model,
                lambda cls: cls.is_deleted.is_(False),
                include_aliases=True,
            )
        )
