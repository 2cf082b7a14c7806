"""Goal and milestone use cases."""
from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import List, Optional

from ..errors import NotFoundError, ValidationError
from ..models import Goal, GoalCategory, GoalStatus, Milestone
from ..util.sanitization import clean_optional, strip_tags
from .base import BaseService
from .soft_delete_service import soft_delete_goal

logger = logging.getLogger(__name__)


class GoalService(BaseService):
    def __init__(self, unit_of_work, user_id: Optional[uuid.UUID] = None) -> None:
        super().__init__(unit_of_work, user_id)
        self.goals = self.reader(Goal)
        self.milestones = self.reader(Milestone)
        self.categories = self.reader(GoalCategory)

        self.goal_writer = unit_of_work.repository(Goal)
        self.milestone_writer = unit_of_work.repository(Milestone)

    def get_goal(self, goal_id: uuid.UUID) -> Goal:
        goal = self.get_or_404(self.goals, goal_id, "goal")
        self.ensure_owner(goal.user_id, "goal")
        return goal

    def get_milestone(self, milestone_id: uuid.UUID) -> Milestone:
        milestone = self.get_or_404(self.milestones, milestone_id, "milestone")
        self.get_goal(milestone.goal_id)
        return milestone

    def goal_milestones(self, goal: Goal) -> List[Milestone]:
        return self.milestones.find(Milestone.goal_id == goal.id, order_by=Milestone.created_at)

    # -- goals -----------------------------------------------------------

    def create_goal(self, data: dict) -> Goal:
        user_id = self.require_user()
        self._check_category(data.get("category_id"))
        title = strip_tags(data["title"])
        if not title:
            raise ValidationError("Goal title is required.", {"title": ["Must not be blank."]})
        goal = Goal(
            user_id=user_id,
            category_id=data.get("category_id"),
            title=title,
            description=clean_optional(data.get("description")),
            priority=data.get("priority") or 0,
            start_date=data.get("start_date"),
            target_date=data.get("target_date"),
            status=GoalStatus.ACTIVE,
        )
        self.goal_writer.add(goal)
        self.unit_of_work.commit()
        logger.info("Goal %s created for user %s", goal.id, user_id)
        return goal

    def update_goal(self, goal_id: uuid.UUID, data: dict) -> Goal:
        """Replace the editable fields of a goal.

        Moving a goal to ``completed`` goes through the same milestone
        check as :meth:`complete_goal`.
        """
        goal = self.get_goal(goal_id)
        self._check_category(data.get("category_id"))
        title = strip_tags(data["title"])
        if not title:
            raise ValidationError("Goal title is required.", {"title": ["Must not be blank."]})
        status = data["status"]
        if status == GoalStatus.COMPLETED and goal.status != GoalStatus.COMPLETED:
            self._ensure_milestones_done(goal)

        goal.title = title
        goal.description = clean_optional(data.get("description"))
        goal.category_id = data.get("category_id")
        goal.priority = data.get("priority") or 0
        goal.start_date = data.get("start_date")
        goal.target_date = data.get("target_date")
        goal.status = status
        self.goal_writer.update(goal)
        self.unit_of_work.commit()
        return goal

    def delete_goal(self, goal_id: uuid.UUID) -> None:
        goal = self.get_goal(goal_id)
        soft_delete_goal(self.unit_of_work, goal)
        affected = self.unit_of_work.commit()
        logger.info("Goal %s deleted (%d record(s))", goal_id, affected)

    def complete_goal(self, goal_id: uuid.UUID) -> Goal:
        goal = self.get_goal(goal_id)
        if goal.status == GoalStatus.COMPLETED:
            raise ValidationError("Goal is already completed.")
        self._ensure_milestones_done(goal)
        goal.status = GoalStatus.COMPLETED
        self.goal_writer.update(goal)
        self.unit_of_work.commit()
        logger.info("Goal %s completed", goal_id)
        return goal

    def archive_goal(self, goal_id: uuid.UUID) -> Goal:
        goal = self.get_goal(goal_id)
        if goal.status == GoalStatus.ARCHIVED:
            raise ValidationError("Goal is already archived.")
        goal.status = GoalStatus.ARCHIVED
        self.goal_writer.update(goal)
        self.unit_of_work.commit()
        return goal

    def get_user_goals(self, user_id: uuid.UUID) -> List[Goal]:
        self.ensure_owner(user_id, "user's goals")
        return self.goals.find(Goal.user_id == user_id, order_by=Goal.created_at)

    def get_my_goals(self) -> List[Goal]:
        return self.get_user_goals(self.require_user())

    def list_categories(self) -> List[GoalCategory]:
        return self.categories.find(GoalCategory.is_active.is_(True), order_by=GoalCategory.display_order)

    # -- milestones ------------------------------------------------------

    def add_milestone(self, data: dict) -> Milestone:
        goal = self.get_goal(data["goal_id"])
        if goal.status != GoalStatus.ACTIVE:
            raise ValidationError("Milestones can only be added to active goals.")
        title = strip_tags(data["title"])
        if not title:
            raise ValidationError("Milestone title is required.", {"title": ["Must not be blank."]})
        milestone = Milestone(
            goal_id=goal.id,
            title=title,
            description=clean_optional(data.get("description")),
            target_value=Decimal(data["target_value"]),
            current_value=Decimal("0"),
            is_completed=False,
        )
        self.milestone_writer.add(milestone)
        self.unit_of_work.commit()
        return milestone

    def update_milestone_progress(self, data: dict) -> Milestone:
        """Set the current value of a milestone.

        Reaching the target completes the milestone; dropping back below
        it reopens a completed one.
        """
        milestone = self.get_milestone(data["milestone_id"])
        goal = self.get_goal(milestone.goal_id)
        if goal.status == GoalStatus.COMPLETED:
            raise ValidationError("Progress cannot change on a completed goal.")
        value = Decimal(data["current_value"])
        if value < 0:
            raise ValidationError("Progress cannot be negative.", {"current_value": ["Must be at least 0."]})

        milestone.current_value = value
        if value >= milestone.target_value:
            if not milestone.is_completed:
                milestone.mark_completed()
        elif milestone.is_completed:
            milestone.reopen()
        self.milestone_writer.update(milestone)
        self.unit_of_work.commit()
        return milestone

    def complete_milestone(self, milestone_id: uuid.UUID) -> Milestone:
        milestone = self.get_milestone(milestone_id)
        goal = self.get_goal(milestone.goal_id)
        if goal.status != GoalStatus.ACTIVE:
            raise ValidationError("Milestones can only be completed on active goals.")
        if milestone.is_completed:
            raise ValidationError("Milestone is already completed.")
        milestone.mark_completed()
        self.milestone_writer.update(milestone)
        self.unit_of_work.commit()
        return milestone

    def _ensure_milestones_done(self, goal: Goal) -> None:
        open_count = self.milestones.count(Milestone.goal_id == goal.id, Milestone.is_completed.is_(False))
        if open_count:
            raise ValidationError(
                f"Goal has {open_count} incomplete milestone(s).",
                {"milestones": ["All milestones must be completed first."]},
            )

    def _check_category(self, category_id: Optional[uuid.UUID]) -> None:
        if category_id is not None and not self.categories.exists(GoalCategory.id == category_id):
            raise NotFoundError("Category not found.")
