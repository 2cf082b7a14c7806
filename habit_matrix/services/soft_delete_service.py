"""Cascading soft deletes.

Records are never removed from the database. Deleting an aggregate
root stages a soft delete for the root and for every live record it
owns, so that the whole aggregate disappears from queries in the same
commit:

* a habit takes its logs and their skip records with it;
* a goal takes its milestones with it.

The helpers only stage operations on the given unit of work. The
caller decides when to commit.
"""
from __future__ import annotations

from ..models import Goal, Habit, HabitLog, HabitSkipLog, Milestone
from ..repositories import ReadRepository, UnitOfWork


def soft_delete_habit(unit_of_work: UnitOfWork, habit: Habit) -> int:
    """Stage deletion of ``habit``, its logs and their skip records.

    Returns the number of records staged.
    """
    session = unit_of_work.session
    logs = ReadRepository(HabitLog, session).find(HabitLog.habit_id == habit.id)
    log_ids = [log.id for log in logs]
    skips = ReadRepository(HabitSkipLog, session).find(HabitSkipLog.habit_log_id.in_(log_ids)) if log_ids else []

    skip_writer = unit_of_work.repository(HabitSkipLog)
    for skip in skips:
        skip_writer.remove(skip)
    log_writer = unit_of_work.repository(HabitLog)
    for log in logs:
        log_writer.remove(log)
    unit_of_work.repository(Habit).remove(habit)
    return len(skips) + len(logs) + 1


def soft_delete_goal(unit_of_work: UnitOfWork, goal: Goal) -> int:
    """Stage deletion of ``goal`` and its milestones."""
    milestones = ReadRepository(Milestone, unit_of_work.session).find(Milestone.goal_id == goal.id)
    milestone_writer = unit_of_work.repository(Milestone)
    for milestone in milestones:
        milestone_writer.remove(milestone)
    unit_of_work.repository(Goal).remove(goal)
    return len(milestones) + 1
