"""Current-user resolution.

Tokens are issued by ``routes.auth`` and may arrive either as an
``Authorization: Bearer`` header (API clients) or as the access-token
cookie set at login (browser clients). The resolver never raises for
an anonymous request; services decide whether an identity is required.
A token that belongs to a deleted account is rejected.
"""
from __future__ import annotations

import uuid
from typing import Optional

from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from .db import db
from .errors import UnauthorizedError
from .models import User
from .repositories import ReadRepository


def current_user_id() -> Optional[uuid.UUID]:
    """Return the authenticated user's id, or ``None`` when anonymous.

    A present but invalid or expired token still raises, and is turned
    into a 401 by the JWT error loaders.
    """
    verify_jwt_in_request(optional=True)
    identity = get_jwt_identity()
    if not identity:
        return None
    try:
        user_id = uuid.UUID(str(identity))
    except ValueError:
        return None
    if not ReadRepository(User, db.session).exists(User.id == user_id):
        raise UnauthorizedError("Account no longer exists.")
    return user_id
