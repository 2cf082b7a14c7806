"""Habit progress statistics.

These functions compute the numbers shown on the dashboard from rows
that have already been fetched: streaks, a seven-day completion trend,
the weekly completion rate, habit counts per category and the most
consistent habits. They do no I/O, which keeps the route handlers free
of arithmetic and makes the rules easy to unit test.

Rates only consider logs that are ``completed`` or ``missed``. A
``skipped`` day is an excused absence: it does not count against the
rate and does not break a running streak, but it does not extend one
either.
"""
from __future__ import annotations

from collections import Counter
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from ..models import Habit, HabitLog, LogStatus

TREND_DAYS = 7
TOP_HABITS = 5
UNCATEGORISED = "Uncategorised"


def compute_streaks(logs: Iterable[HabitLog], today: date) -> Dict[str, int]:
    """Compute the current and longest completion streak for one habit.

    Parameters
    ----------
    logs: Iterable[HabitLog]
        Live logs of a single habit, in any order.
    today: date
        Reference day. A streak is still current if its last day is
        today or yesterday.

    Returns
    -------
    dict[str, int]
        ``{"current": n, "longest": m}``.
    """
    statuses = {log.log_date: log.status for log in logs}
    longest = run = 0
    last: Optional[date] = None
    for day in sorted(statuses):
        status = statuses[day]
        contiguous = last is not None and (day - last).days == 1
        if status == LogStatus.COMPLETED:
            run = run + 1 if contiguous else 1
            last = day
        elif status == LogStatus.SKIPPED and contiguous and run:
            last = day
        else:
            run, last = 0, None
        longest = max(longest, run)
    current = run if last is not None and (today - last).days <= 1 else 0
    return {"current": current, "longest": longest}


def completion_rate(logs: Iterable[HabitLog]) -> float:
    """Percentage of completed logs among completed and missed ones.

    Returns ``0.0`` when there is nothing to rate.
    """
    completed = missed = 0
    for log in logs:
        if log.status == LogStatus.COMPLETED:
            completed += 1
        elif log.status == LogStatus.MISSED:
            missed += 1
    if not completed + missed:
        return 0.0
    return round(completed * 100.0 / (completed + missed), 1)


def window(logs: Iterable[HabitLog], today: date, days: int = TREND_DAYS) -> List[HabitLog]:
    """Logs dated within the last ``days`` days, today included."""
    start = today - timedelta(days=days - 1)
    return [log for log in logs if start <= log.log_date <= today]


def daily_trend(logs: Iterable[HabitLog], today: date, days: int = TREND_DAYS) -> List[dict]:
    """Per-day counts of completed, missed and skipped logs.

    Every day of the window is present, oldest first, even when no
    habit was logged on it.
    """
    start = today - timedelta(days=days - 1)
    counts = {start + timedelta(days=offset): Counter() for offset in range(days)}
    for log in logs:
        if log.log_date in counts:
            counts[log.log_date][log.status] += 1
    return [
        {
            "date": day.isoformat(),
            "completed": counter[LogStatus.COMPLETED],
            "missed": counter[LogStatus.MISSED],
            "skipped": counter[LogStatus.SKIPPED],
        }
        for day, counter in counts.items()
    ]


def category_counts(habits: Iterable[Habit]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for habit in habits:
        name = habit.category.name if habit.category is not None else UNCATEGORISED
        counts[name] = counts.get(name, 0) + 1
    return counts


def group_logs(logs: Iterable[HabitLog]) -> Dict[object, List[HabitLog]]:
    grouped: Dict[object, List[HabitLog]] = {}
    for log in logs:
        grouped.setdefault(log.habit_id, []).append(log)
    return grouped


def top_habits(
    habits: Sequence[Habit],
    logs_by_habit: Dict[object, List[HabitLog]],
    limit: int = TOP_HABITS,
) -> List[dict]:
    """Habits ordered by completion rate, best first, ties by name."""
    ranked = [
        {"habit_id": str(habit.id), "name": habit.name, "rate": completion_rate(logs_by_habit.get(habit.id, []))}
        for habit in habits
    ]
    ranked.sort(key=lambda item: (-item["rate"], item["name"]))
    return ranked[:limit]


def build_dashboard(habits: Sequence[Habit], logs: Sequence[HabitLog], today: date) -> dict:
    """Assemble every dashboard statistic for a user's habits and logs."""
    logs_by_habit = group_logs(logs)
    recent = sorted(logs, key=lambda log: log.log_date, reverse=True)[:5]
    return {
        "habit_count": len(habits),
        "active_habit_count": sum(1 for habit in habits if habit.is_active),
        "weekly_rate": completion_rate(window(logs, today)),
        "trend": daily_trend(logs, today),
        "category_counts": category_counts(habits),
        "streaks": {
            str(habit.id): compute_streaks(logs_by_habit.get(habit.id, []), today) for habit in habits
        },
        "top_habits": top_habits(habits, logs_by_habit),
        "recent_logs": recent,
    }
