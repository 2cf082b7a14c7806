"""Pure dashboard statistics."""
from __future__ import annotations

from datetime import date, timedelta
from types import SimpleNamespace

from habit_matrix.models import LogStatus
from habit_matrix.services.progress_service import (
    build_dashboard,
    category_counts,
    completion_rate,
    compute_streaks,
    daily_trend,
    top_habits,
)

TODAY = date(2024, 6, 10)
C, M, S = LogStatus.COMPLETED, LogStatus.MISSED, LogStatus.SKIPPED


def logs(*entries, habit_id="h1"):
    """``entries`` are ``(days_ago, status)`` pairs."""
    return [
        SimpleNamespace(habit_id=habit_id, log_date=TODAY - timedelta(days=ago), status=status)
        for ago, status in entries
    ]


def habit(habit_id, name, category=None, active=True):
    return SimpleNamespace(
        id=habit_id,
        name=name,
        category=SimpleNamespace(name=category) if category else None,
        is_active=active,
    )


def test_streaks_current_and_longest():
    history = logs((7, C), (6, C), (5, C), (4, M), (1, C), (0, C))
    assert compute_streaks(history, TODAY) == {"current": 2, "longest": 3}


def test_gap_breaks_streak():
    history = logs((3, C), (2, C), (0, C))
    assert compute_streaks(history, TODAY) == {"current": 1, "longest": 2}


def test_skipped_day_bridges_but_does_not_extend():
    history = logs((2, C), (1, S), (0, C))
    assert compute_streaks(history, TODAY) == {"current": 2, "longest": 2}


def test_streak_ending_yesterday_is_current():
    history = logs((2, C), (1, C))
    assert compute_streaks(history, TODAY)["current"] == 2


def test_stale_streak_is_not_current():
    history = logs((9, C), (8, C))
    assert compute_streaks(history, TODAY) == {"current": 0, "longest": 2}


def test_no_logs():
    assert compute_streaks([], TODAY) == {"current": 0, "longest": 0}


def test_completion_rate_ignores_skips():
    history = logs((3, C), (2, C), (1, C), (0, M), (4, S))
    assert completion_rate(history) == 75.0
    assert completion_rate([]) == 0.0
    assert completion_rate(logs((0, S))) == 0.0


def test_daily_trend_covers_every_day():
    history = logs((0, C), (0, M), (2, S), (10, C), habit_id="h1")
    trend = daily_trend(history, TODAY)

    assert len(trend) == 7
    assert trend[0]["date"] == (TODAY - timedelta(days=6)).isoformat()
    assert trend[-1] == {"date": TODAY.isoformat(), "completed": 1, "missed": 1, "skipped": 0}
    assert trend[-3]["skipped"] == 1
    assert sum(day["completed"] for day in trend) == 1


def test_category_counts():
    habits = [habit("a", "A", "Health"), habit("b", "B", "Health"), habit("c", "C")]
    assert category_counts(habits) == {"Health": 2, "Uncategorised": 1}


def test_top_habits_ranked_by_rate():
    habits = [habit(f"h{i}", f"Habit {i}") for i in range(7)]
    grouped = {
        "h0": logs((0, M), habit_id="h0"),
        "h1": logs((0, C), habit_id="h1"),
        "h2": logs((0, C), (1, M), habit_id="h2"),
    }
    ranked = top_habits(habits, grouped)

    assert len(ranked) == 5
    assert ranked[0] == {"habit_id": "h1", "name": "Habit 1", "rate": 100.0}
    assert ranked[1]["name"] == "Habit 2"
    assert [item["rate"] for item in ranked[2:]] == [0.0, 0.0, 0.0]


def test_build_dashboard():
    habits = [habit("h1", "Read", "Learning"), habit("h2", "Walk", active=False)]
    history = logs((0, C), (1, C), habit_id="h1") + logs((0, M), (30, C), habit_id="h2")

    data = build_dashboard(habits, history, TODAY)

    assert data["habit_count"] == 2
    assert data["active_habit_count"] == 1
    assert data["weekly_rate"] == round(200 / 3, 1)
    assert data["streaks"]["h1"] == {"current": 2, "longest": 2}
    assert data["streaks"]["h2"] == {"current": 0, "longest": 1}
    assert data["category_counts"] == {"Learning": 1, "Uncategorised": 1}
    assert data["top_habits"][0]["name"] == "Read"
    assert len(data["recent_logs"]) == 4
    assert data["recent_logs"][-1].log_date == TODAY - timedelta(days=30)
