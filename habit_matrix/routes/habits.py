"""
Routes for habits, daily logs and habit lookup data.

All habit endpoints act on the authenticated user's own habits.
Category, skip reason and suggestion lists are public lookup data
used by the habit forms.
"""

from __future__ import annotations

import uuid

from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from ..schemas import (
    AddSkipReasonRequest,
    CreateHabitRequest,
    HabitCategorySchema,
    HabitLogSchema,
    HabitSchema,
    HabitSkipLogSchema,
    LogHabitRequest,
    SkipReasonSchema,
    ToggleLogRequest,
    UpdateHabitRequest,
)
from ..services import HabitService
from .common import load, ok, query_date, query_uuid, service


habits_bp = Blueprint("habits", __name__)


@habits_bp.route("/habits", methods=["GET"])
@jwt_required()
def list_habits() -> tuple[dict, int]:
    """List the current user's habits, oldest first."""
    habits = service(HabitService).get_my_habits()
    return ok(HabitSchema(many=True).dump(habits))


@habits_bp.route("/habits", methods=["POST"])
@jwt_required()
def create_habit() -> tuple[dict, int]:
    """Create a habit.

    Requires ``name``. Optionally accepts ``description``,
    ``category_id``, ``color`` (``#RRGGBB``) and ``difficulty``.
    """
    data = load(CreateHabitRequest)
    habit = service(HabitService).create_habit(data)
    return ok(HabitSchema().dump(habit), 201)


@habits_bp.route("/habits/<uuid:habit_id>", methods=["GET"])
@jwt_required()
def get_habit(habit_id: uuid.UUID) -> tuple[dict, int]:
    habit = service(HabitService).get_habit(habit_id)
    return ok(HabitSchema().dump(habit))


@habits_bp.route("/habits/<uuid:habit_id>", methods=["PUT"])
@jwt_required()
def update_habit(habit_id: uuid.UUID) -> tuple[dict, int]:
    data = load(UpdateHabitRequest)
    habit = service(HabitService).update_habit(habit_id, data)
    return ok(HabitSchema().dump(habit))


@habits_bp.route("/habits/<uuid:habit_id>", methods=["DELETE"])
@jwt_required()
def delete_habit(habit_id: uuid.UUID) -> tuple[dict, int]:
    """Soft-delete a habit together with its logs and skip records."""
    service(HabitService).delete_habit(habit_id)
    return ok({"id": str(habit_id)})


@habits_bp.route("/habits/user/<uuid:user_id>", methods=["GET"])
@jwt_required()
def user_habits(user_id: uuid.UUID) -> tuple[dict, int]:
    habits = service(HabitService).get_user_habits(user_id)
    return ok(HabitSchema(many=True).dump(habits))


@habits_bp.route("/habits/<uuid:habit_id>/logs", methods=["GET"])
@jwt_required()
def habit_logs(habit_id: uuid.UUID) -> tuple[dict, int]:
    """List a habit's logs, optionally between ``start`` and ``end``."""
    logs = service(HabitService).get_habit_logs(habit_id, query_date("start"), query_date("end"))
    return ok(HabitLogSchema(many=True).dump(logs))


@habits_bp.route("/habits/log", methods=["POST"])
@jwt_required()
def log_habit() -> tuple[dict, int]:
    """Record a habit outcome for a day.

    Logging a day that already has a log updates it.
    """
    data = load(LogHabitRequest)
    log = service(HabitService).log_habit(data)
    return ok(HabitLogSchema().dump(log))


@habits_bp.route("/habits/<uuid:habit_id>/toggle", methods=["POST"])
@jwt_required()
def toggle_log(habit_id: uuid.UUID) -> tuple[dict, int]:
    """Mark a day done or not done (``{"done": true}``)."""
    data = load(ToggleLogRequest)
    log = service(HabitService).toggle_log(habit_id, data.get("log_date"), data["done"])
    return ok(HabitLogSchema().dump(log))


@habits_bp.route("/habits/skip", methods=["POST"])
@jwt_required()
def add_skip_reason() -> tuple[dict, int]:
    data = load(AddSkipReasonRequest)
    skip = service(HabitService).add_skip_reason(data)
    return ok(HabitSkipLogSchema().dump(skip))


@habits_bp.route("/categories", methods=["GET"])
def list_categories() -> tuple[dict, int]:
    categories = service(HabitService, anonymous=True).list_categories()
    return ok(HabitCategorySchema(many=True).dump(categories))


@habits_bp.route("/skip-reasons", methods=["GET"])
def list_skip_reasons() -> tuple[dict, int]:
    reasons = service(HabitService, anonymous=True).list_skip_reasons()
    return ok(SkipReasonSchema(many=True).dump(reasons))


@habits_bp.route("/suggestions", methods=["GET"])
def suggestions() -> tuple[dict, int]:
    """Suggested habit titles for ``category_id``, filtered by ``q``."""
    category_id = query_uuid("category_id", required=True)
    titles = service(HabitService, anonymous=True).suggestions(category_id, request.args.get("q", ""))
    return ok(titles)
