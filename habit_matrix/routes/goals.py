"""
Routes for goals and their milestones.

A goal is returned together with its live milestones. Goals can only
be completed once every milestone is done.
"""

from __future__ import annotations

import uuid

from flask import Blueprint
from flask_jwt_extended import jwt_required

from ..schemas import (
    AddMilestoneRequest,
    CreateGoalRequest,
    GoalCategorySchema,
    GoalSchema,
    MilestoneSchema,
    UpdateGoalRequest,
    UpdateMilestoneProgressRequest,
)
from ..services import GoalService
from .common import load, ok, service


goals_bp = Blueprint("goals", __name__)


def _dump_goal(goals: GoalService, goal) -> dict:
    data = GoalSchema().dump(goal)
    data["milestones"] = MilestoneSchema(many=True).dump(goals.goal_milestones(goal))
    return data


@goals_bp.route("/goals", methods=["GET"])
@jwt_required()
def list_goals() -> tuple[dict, int]:
    goals = service(GoalService)
    return ok([_dump_goal(goals, goal) for goal in goals.get_my_goals()])


@goals_bp.route("/goals", methods=["POST"])
@jwt_required()
def create_goal() -> tuple[dict, int]:
    """Create a goal.

    Requires ``title``. Optionally accepts ``description``,
    ``category_id``, ``priority`` (0-5), ``start_date`` and
    ``target_date``.
    """
    data = load(CreateGoalRequest)
    goals = service(GoalService)
    goal = goals.create_goal(data)
    return ok(_dump_goal(goals, goal), 201)


@goals_bp.route("/goals/<uuid:goal_id>", methods=["GET"])
@jwt_required()
def get_goal(goal_id: uuid.UUID) -> tuple[dict, int]:
    goals = service(GoalService)
    return ok(_dump_goal(goals, goals.get_goal(goal_id)))


@goals_bp.route("/goals/<uuid:goal_id>", methods=["PUT"])
@jwt_required()
def update_goal(goal_id: uuid.UUID) -> tuple[dict, int]:
    data = load(UpdateGoalRequest)
    goals = service(GoalService)
    goal = goals.update_goal(goal_id, data)
    return ok(_dump_goal(goals, goal))


@goals_bp.route("/goals/<uuid:goal_id>", methods=["DELETE"])
@jwt_required()
def delete_goal(goal_id: uuid.UUID) -> tuple[dict, int]:
    """Soft-delete a goal and its milestones."""
    service(GoalService).delete_goal(goal_id)
    return ok({"id": str(goal_id)})


@goals_bp.route("/goals/<uuid:goal_id>/complete", methods=["POST"])
@jwt_required()
def complete_goal(goal_id: uuid.UUID) -> tuple[dict, int]:
    goals = service(GoalService)
    goal = goals.complete_goal(goal_id)
    return ok(_dump_goal(goals, goal))


@goals_bp.route("/goals/<uuid:goal_id>/archive", methods=["POST"])
@jwt_required()
def archive_goal(goal_id: uuid.UUID) -> tuple[dict, int]:
    goals = service(GoalService)
    goal = goals.archive_goal(goal_id)
    return ok(_dump_goal(goals, goal))


@goals_bp.route("/goals/user/<uuid:user_id>", methods=["GET"])
@jwt_required()
def user_goals(user_id: uuid.UUID) -> tuple[dict, int]:
    goals = service(GoalService)
    return ok([_dump_goal(goals, goal) for goal in goals.get_user_goals(user_id)])


@goals_bp.route("/goal-categories", methods=["GET"])
def list_categories() -> tuple[dict, int]:
    categories = service(GoalService, anonymous=True).list_categories()
    return ok(GoalCategorySchema(many=True).dump(categories))


@goals_bp.route("/goals/milestone", methods=["POST"])
@jwt_required()
def add_milestone() -> tuple[dict, int]:
    data = load(AddMilestoneRequest)
    milestone = service(GoalService).add_milestone(data)
    return ok(MilestoneSchema().dump(milestone), 201)


@goals_bp.route("/goals/milestone", methods=["PUT"])
@jwt_required()
def update_milestone_progress() -> tuple[dict, int]:
    """Set a milestone's ``current_value``.

    Reaching the target completes the milestone.
    """
    data = load(UpdateMilestoneProgressRequest)
    milestone = service(GoalService).update_milestone_progress(data)
    return ok(MilestoneSchema().dump(milestone))


@goals_bp.route("/goals/milestone/<uuid:milestone_id>/complete", methods=["POST"])
@jwt_required()
def complete_milestone(milestone_id: uuid.UUID) -> tuple[dict, int]:
    milestone = service(GoalService).complete_milestone(milestone_id)
    return ok(MilestoneSchema().dump(milestone))
