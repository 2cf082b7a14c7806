"""Service layer for HabitMatrix.

This package contains business logic that sits between the Flask
route handlers and the repositories. Services read through
``ReadRepository``, stage writes on the request's ``UnitOfWork`` and
commit once per use case.

Nothing in this package should perform any HTTP handling. Instead,
services return model instances or plain Python data structures, and
raise exceptions defined in ``habit_matrix.errors`` when something
goes wrong.
"""

from .account_service import AccountService
from .admin_service import AdminService
from .dashboard_service import DashboardService
from .goal_service import GoalService
from .habit_service import HabitService
from .progress_service import build_dashboard, completion_rate, compute_streaks, daily_trend
from .soft_delete_service import soft_delete_goal, soft_delete_habit

__all__ = [
    "AccountService",
    "AdminService",
    "DashboardService",
    "GoalService",
    "HabitService",
    "build_dashboard",
    "completion_rate",
    "compute_streaks",
    "daily_trend",
    "soft_delete_goal",
    "soft_delete_habit",
]
