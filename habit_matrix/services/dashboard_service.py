"""Read-only dashboard queries for the current user."""
from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from ..models import Goal, GoalStatus, Habit, HabitLog, utcnow
from . import progress_service
from .base import BaseService


class DashboardService(BaseService):
    def summary(self, today: Optional[date] = None) -> dict:
        user_id = self.require_user()
        today = today or utcnow().date()
        habits = self.reader(Habit).find(Habit.user_id == user_id, order_by=Habit.name)
        habit_ids = [habit.id for habit in habits]
        logs = self.reader(HabitLog).find(HabitLog.habit_id.in_(habit_ids)) if habit_ids else []

        data = progress_service.build_dashboard(habits, logs, today)
        goals = self.reader(Goal).find(Goal.user_id == user_id)
        data["goals"] = {status.value: sum(1 for goal in goals if goal.status == status) for status in GoalStatus}
        return data

    def habit_streak(self, habit_id: uuid.UUID, today: Optional[date] = None) -> dict:
        habit = self.get_or_404(self.reader(Habit), habit_id, "habit")
        self.ensure_owner(habit.user_id, "habit")
        logs = self.reader(HabitLog).find(HabitLog.habit_id == habit.id)
        streak = progress_service.compute_streaks(logs, today or utcnow().date())
        return {"habit_id": str(habit.id), "name": habit.name, **streak}
