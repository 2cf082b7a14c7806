"""Routes for derived insights.

This blueprint exposes the dashboard statistics for the current user:
streaks, the seven-day trend, completion rates and category counts.
The heavy lifting is delegated to ``habit_matrix.services``.
"""
from __future__ import annotations

import uuid

from flask import Blueprint
from flask_jwt_extended import jwt_required

from ..schemas import HabitLogSchema
from ..services import DashboardService
from .common import ok, service

insights_bp = Blueprint("insights", __name__)


@insights_bp.route("/dashboard", methods=["GET"])
@jwt_required()
def dashboard() -> tuple[dict, int]:
    data = service(DashboardService).summary()
    data["recent_logs"] = HabitLogSchema(many=True).dump(data["recent_logs"])
    return ok(data)


@insights_bp.route("/dashboard/habits/<uuid:habit_id>/streak", methods=["GET"])
@jwt_required()
def habit_streak(habit_id: uuid.UUID) -> tuple[dict, int]:
    """Return the current and longest streak for one habit."""
    return ok(service(DashboardService).habit_streak(habit_id))
