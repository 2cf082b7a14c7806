"""Registration, credential checks and account preferences.

Users are auditable like every other record: accounts are created and
changed through the unit of work, and a deleted account can no longer
log in.
"""
from __future__ import annotations

import logging

from sqlalchemy import func, or_

from ..errors import ConflictError, UnauthorizedError, ValidationError
from ..models import Role, Theme, User
from .base import BaseService

logger = logging.getLogger(__name__)


class AccountService(BaseService):
    def __init__(self, unit_of_work, user_id=None) -> None:
        super().__init__(unit_of_work, user_id)
        self.users = self.reader(User)
        self.user_writer = unit_of_work.repository(User)

    def _find_user(self, username_or_email: str):
        key = username_or_email.strip()
        return self.users.first(or_(User.username == key, func.lower(User.email) == key.lower()))

    def get_user(self, user_id) -> User:
        user = self.users.get_by_id(user_id)
        if user is None:
            raise UnauthorizedError("Account no longer exists.")
        return user

    def register(self, data: dict, role: Role = Role.USER) -> User:
        """Create an account.

        Raises
        ------
        ValidationError
            If the password confirmation does not match.
        ConflictError
            If the username or email is already taken, including by a
            deleted account.
        """
        if data["password"] != data["confirm_password"]:
            raise ValidationError(
                "Passwords do not match.", {"confirm_password": ["Must match password."]}
            )
        username = data["username"].strip()
        email = data["email"].strip().lower()
        if not username:
            raise ValidationError("Username is required.", {"username": ["Must not be blank."]})

        # A deleted account is hidden here but still trips the unique
        # constraint, which the unit of work reports as a conflict.
        if self.users.exists(or_(User.username == username, func.lower(User.email) == email)):
            raise ConflictError("A user with that username or email already exists.")

        user = User(username=username, email=email, role=role, theme_preference=Theme.LIGHT)
        user.set_password(data["password"])
        self.user_writer.add(user)
        self.unit_of_work.commit()
        logger.info("Registered user %s", user.id)
        return user

    def authenticate(self, username_or_email: str, password: str) -> User:
        user = self._find_user(username_or_email or "")
        if user is None or not user.check_password(password or ""):
            logger.info("Failed login for %r", username_or_email)
            raise UnauthorizedError("Invalid username or password.")
        return user

    def save_theme(self, theme: Theme) -> User:
        user = self.get_user(self.require_user())
        user.theme_preference = theme
        self.user_writer.update(user)
        self.unit_of_work.commit()
        return user
