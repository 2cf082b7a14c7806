"""Habit use cases.

Covers habit creation, updates and soft deletion, daily logging, skip
reasons and the lookup data shown next to the habit board (categories,
skip reasons and suggestions).

A habit has at most one log per day. Logging a day that already has
a log updates that log instead of creating a second one; the partial
unique index on ``habit_logs`` backs this up when two requests race,
in which case the loser receives a ``ConflictError``.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import List, Optional

from ..errors import NotFoundError, ValidationError
from ..models import (
    Habit,
    HabitCategory,
    HabitLog,
    HabitSkipLog,
    HabitStatus,
    HabitSuggestion,
    LogStatus,
    SkipReason,
    utcnow,
)
from ..util.sanitization import clean_optional, strip_tags
from .base import BaseService
from .soft_delete_service import soft_delete_habit

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 10


class HabitService(BaseService):
    def __init__(self, unit_of_work, user_id: Optional[uuid.UUID] = None) -> None:
        super().__init__(unit_of_work, user_id)
        self.habits = self.reader(Habit)
        self.logs = self.reader(HabitLog)
        self.skip_logs = self.reader(HabitSkipLog)
        self.categories = self.reader(HabitCategory)
        self.skip_reasons = self.reader(SkipReason)
        self.suggestion_repo = self.reader(HabitSuggestion)

        self.habit_writer = unit_of_work.repository(Habit)
        self.log_writer = unit_of_work.repository(HabitLog)
        self.skip_writer = unit_of_work.repository(HabitSkipLog)

    # -- habits ----------------------------------------------------------

    def get_habit(self, habit_id: uuid.UUID) -> Habit:
        """Load a live habit owned by the current user."""
        habit = self.get_or_404(self.habits, habit_id, "habit")
        self.ensure_owner(habit.user_id, "habit")
        return habit

    def create_habit(self, data: dict) -> Habit:
        user_id = self.require_user()
        self._check_category(data.get("category_id"))
        habit = Habit(
            user_id=user_id,
            name=strip_tags(data["name"]),
            description=clean_optional(data.get("description")),
            category_id=data.get("category_id"),
            color=data.get("color") or "#00BFFF",
            difficulty=data["difficulty"],
            status=HabitStatus.ACTIVE,
        )
        if not habit.name:
            raise ValidationError("Habit name is required.", {"name": ["Must not be blank."]})
        self.habit_writer.add(habit)
        self.unit_of_work.commit()
        logger.info("Habit %s created for user %s", habit.id, user_id)
        return habit

    def update_habit(self, habit_id: uuid.UUID, data: dict) -> Habit:
        habit = self.get_habit(habit_id)
        self._check_category(data.get("category_id"))
        name = strip_tags(data["name"])
        if not name:
            raise ValidationError("Habit name is required.", {"name": ["Must not be blank."]})
        habit.name = name
        habit.description = clean_optional(data.get("description"))
        habit.category_id = data.get("category_id")
        habit.color = data.get("color") or habit.color
        habit.difficulty = data["difficulty"]
        habit.status = data["status"]
        self.habit_writer.update(habit)
        self.unit_of_work.commit()
        return habit

    def delete_habit(self, habit_id: uuid.UUID) -> None:
        habit = self.get_habit(habit_id)
        soft_delete_habit(self.unit_of_work, habit)
        affected = self.unit_of_work.commit()
        logger.info("Habit %s deleted (%d record(s))", habit_id, affected)

    def get_user_habits(self, user_id: uuid.UUID) -> List[Habit]:
        self.ensure_owner(user_id, "user's habits")
        return self.habits.find(Habit.user_id == user_id, order_by=Habit.created_at)

    def get_my_habits(self) -> List[Habit]:
        return self.get_user_habits(self.require_user())

    # -- logs ------------------------------------------------------------

    def log_habit(self, data: dict) -> HabitLog:
        """Record the outcome of a habit for a day, updating any existing log.

        When the day is already logged, omitted or ``None`` notes keep the
        stored notes and an empty string clears them.
        """
        habit = self.get_habit(data["habit_id"])
        if habit.status == HabitStatus.ARCHIVED:
            raise ValidationError("Archived habits cannot be logged.")
        log_date = data.get("log_date") or utcnow().date()
        status = data.get("status") or LogStatus.COMPLETED
        raw_notes = data.get("notes")
        notes = clean_optional(raw_notes)

        log = self.logs.first(HabitLog.habit_id == habit.id, HabitLog.log_date == log_date)
        if log is None:
            log = HabitLog(habit_id=habit.id, log_date=log_date, status=status, notes=notes)
            self.log_writer.add(log)
        else:
            if log.status == LogStatus.SKIPPED and status != LogStatus.SKIPPED:
                skip = self.skip_logs.first(HabitSkipLog.habit_log_id == log.id)
                if skip is not None:
                    self.skip_writer.remove(skip)
            log.status = status
            if raw_notes is not None:
                log.notes = notes
            self.log_writer.update(log)
        self.unit_of_work.commit()
        return log

    def toggle_log(self, habit_id: uuid.UUID, log_date: Optional[date], done: bool) -> HabitLog:
        return self.log_habit(
            {
                "habit_id": habit_id,
                "log_date": log_date,
                "status": LogStatus.COMPLETED if done else LogStatus.MISSED,
            }
        )

    def get_habit_logs(
        self,
        habit_id: uuid.UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[HabitLog]:
        habit = self.get_habit(habit_id)
        criteria = [HabitLog.habit_id == habit.id]
        if start is not None:
            criteria.append(HabitLog.log_date >= start)
        if end is not None:
            criteria.append(HabitLog.log_date <= end)
        return self.logs.find(*criteria, order_by=HabitLog.log_date)

    def add_skip_reason(self, data: dict) -> HabitSkipLog:
        """Attach a skip reason to a log and mark the log as skipped.

        A log has at most one skip record; a second call replaces the
        reason and comment of the existing one.
        """
        log = self.get_or_404(self.logs, data["habit_log_id"], "habit log")
        self.get_habit(log.habit_id)
        reason = self.get_or_404(self.skip_reasons, data["reason_id"], "skip reason")
        comment = clean_optional(data.get("comment"))

        skip = self.skip_logs.first(HabitSkipLog.habit_log_id == log.id)
        if skip is None:
            skip = HabitSkipLog(habit_log_id=log.id, reason_id=reason.id, comment=comment)
            self.skip_writer.add(skip)
        else:
            skip.reason_id = reason.id
            skip.comment = comment
            self.skip_writer.update(skip)

        log.status = LogStatus.SKIPPED
        self.log_writer.update(log)
        self.unit_of_work.commit()
        return skip

    # -- lookups ---------------------------------------------------------

    def list_categories(self) -> List[HabitCategory]:
        return self.categories.find(HabitCategory.is_active.is_(True), order_by=HabitCategory.display_order)

    def list_skip_reasons(self) -> List[SkipReason]:
        return self.skip_reasons.find(order_by=SkipReason.code)

    def suggestions(self, category_id: uuid.UUID, query: str = "") -> List[str]:
        """Distinct suggestion titles for a category, optionally filtered."""
        rows = self.suggestion_repo.find(HabitSuggestion.category_id == category_id, order_by=HabitSuggestion.title)
        needle = (query or "").strip().casefold()
        titles: List[str] = []
        for row in rows:
            if needle and needle not in row.title.casefold():
                continue
            if row.title not in titles:
                titles.append(row.title)
            if len(titles) == MAX_SUGGESTIONS:
                break
        return titles

    def _check_category(self, category_id: Optional[uuid.UUID]) -> None:
        if category_id is not None and not self.categories.exists(HabitCategory.id == category_id):
            raise NotFoundError("Category not found.")
