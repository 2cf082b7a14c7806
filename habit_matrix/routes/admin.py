"""
Routes for user administration.

All endpoints require an administrator. Non-admin users receive 403.
Deleting a user is a soft delete stamped with the acting admin; the
account disappears from listings and can no longer log in.
"""

from __future__ import annotations

import uuid

from flask import Blueprint
from flask_jwt_extended import jwt_required

from ..schemas import ChangeRoleRequest, UserSchema
from ..services import AdminService
from .common import load, ok, service


admin_bp = Blueprint("admin", __name__)


@admin_bp.route("/admin/users", methods=["GET"])
@jwt_required()
def list_users() -> tuple[dict, int]:
    return ok(UserSchema(many=True).dump(service(AdminService).list_users()))


@admin_bp.route("/admin/users/<uuid:user_id>/role", methods=["PUT"])
@jwt_required()
def change_role(user_id: uuid.UUID) -> tuple[dict, int]:
    """Promote or demote a user. Expects JSON with ``role``."""
    data = load(ChangeRoleRequest)
    return ok(UserSchema().dump(service(AdminService).change_role(user_id, data["role"])))


@admin_bp.route("/admin/users/<uuid:user_id>", methods=["DELETE"])
@jwt_required()
def delete_user(user_id: uuid.UUID) -> tuple[dict, int]:
    service(AdminService).delete_user(user_id)
    return ok({"id": str(user_id)})
