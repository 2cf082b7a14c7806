"""Helpers shared by the blueprints.

Every handler follows the same shape: validate the body with a
request schema, build a service bound to a fresh unit of work for the
current user, call one use case and wrap the result in the success
envelope::

    {"success": true, "data": ...}

Errors never pass through here; they are raised by the schemas or the
services and rendered by ``habit_matrix.errors``.
"""
from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from dateutil.parser import parse as parse_date  # type: ignore
from flask import current_app, request

from ..db import db
from ..errors import ValidationError
from ..identity import current_user_id
from ..repositories import UnitOfWork


def ok(data, status: int = 200) -> tuple[dict, int]:
    return {"success": True, "data": data}, status


def load(schema_cls) -> dict:
    """Validate the JSON body against ``schema_cls``."""
    return schema_cls().load(request.get_json(silent=True) or {})


def unit_of_work(anonymous: bool = False) -> UnitOfWork:
    """A unit of work for this request, acting as the current user.

    Anonymous endpoints (registration, login, lookups) skip token
    resolution entirely.
    """
    config = current_app.config
    return UnitOfWork(
        db.session,
        None if anonymous else current_user_id(),
        max_retries=config["DB_MAX_RETRIES"],
        base_delay=config["DB_RETRY_BASE_DELAY"],
        max_delay=config["DB_RETRY_MAX_DELAY"],
    )


def service(service_cls, anonymous: bool = False):
    uow = unit_of_work(anonymous)
    return service_cls(uow, uow.actor_id)


def query_date(name: str) -> Optional[date]:
    """Parse an optional ISO date from the query string."""
    value = request.args.get(name)
    if not value:
        return None
    try:
        return parse_date(value).date()
    except (ValueError, OverflowError) as exc:
        raise ValidationError(
            "Invalid date format. Use ISO 8601 (YYYY-MM-DD).", {name: ["Not a valid date."]}
        ) from exc


def query_uuid(name: str, required: bool = False) -> Optional[uuid.UUID]:
    value = request.args.get(name)
    if not value:
        if required:
            raise ValidationError(f"{name} is required.", {name: ["Missing data for required field."]})
        return None
    try:
        return uuid.UUID(value)
    except ValueError as exc:
        raise ValidationError(f"{name} must be a UUID.", {name: ["Not a valid UUID."]}) from exc
