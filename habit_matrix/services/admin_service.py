"""User administration.

Only administrators may list accounts, change a role or delete an
account. Every change is stamped with the acting administrator, and a
deleted account keeps its row so the audit trail stays intact.
"""
from __future__ import annotations

import logging
import uuid
from typing import List

from ..errors import ForbiddenError, ValidationError
from ..models import Role, User
from .base import BaseService

logger = logging.getLogger(__name__)


class AdminService(BaseService):
    def __init__(self, unit_of_work, user_id=None) -> None:
        super().__init__(unit_of_work, user_id)
        self.users = self.reader(User)
        self.user_writer = unit_of_work.repository(User)

    def require_admin(self) -> User:
        admin = self.users.get_by_id(self.require_user())
        if admin is None or not admin.is_admin:
            raise ForbiddenError("Administrator access required.")
        return admin

    def list_users(self) -> List[User]:
        self.require_admin()
        return self.users.find(order_by=User.username)

    def change_role(self, user_id: uuid.UUID, role: Role) -> User:
        admin = self.require_admin()
        if user_id == admin.id and role != Role.ADMIN:
            raise ValidationError("Administrators cannot remove their own admin role.")
        user = self.get_or_404(self.users, user_id, "user")
        user.role = role
        self.user_writer.update(user)
        self.unit_of_work.commit()
        logger.info("User %s is now %s (by %s)", user_id, role.value, admin.id)
        return user

    def delete_user(self, user_id: uuid.UUID) -> None:
        admin = self.require_admin()
        if user_id == admin.id:
            raise ValidationError("Administrators cannot delete their own account.")
        self.get_or_404(self.users, user_id, "user")
        self.user_writer.soft_delete(user_id, actor=admin.id)
        self.unit_of_work.commit()
        logger.info("User %s deleted by %s", user_id, admin.id)
