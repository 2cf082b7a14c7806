from __future__ import annotations

import uuid
from datetime import date

import pytest
from sqlalchemy import text

from habit_matrix import db
from habit_matrix.errors import ForbiddenError, NotFoundError, UnauthorizedError, ValidationError
from habit_matrix.models import (
    Difficulty,
    Habit,
    HabitCategory,
    HabitLog,
    HabitSkipLog,
    HabitStatus,
    LogStatus,
    SkipReason,
)
from habit_matrix.repositories import ReadRepository
from habit_matrix.services import DashboardService, HabitService

DAY = date(2024, 5, 1)


@pytest.fixture
def habits(alice, make_uow):
    return HabitService(make_uow(alice), alice.id)


@pytest.fixture
def habit(habits):
    return habits.create_habit({"name": "Read", "difficulty": Difficulty.EASY})


def live_logs(habit_id):
    return ReadRepository(HabitLog, db.session).find(HabitLog.habit_id == habit_id)


def skip_reason(code: str) -> SkipReason:
    return ReadRepository(SkipReason, db.session).first(SkipReason.code == code)


def test_create_habit_stamps_owner(habits, alice):
    habit = habits.create_habit(
        {"name": " <b>Walk</b> ", "description": "", "color": "#123456", "difficulty": Difficulty.MEDIUM}
    )

    assert habit.name == "Walk"
    assert habit.description is None
    assert habit.user_id == alice.id
    assert habit.created_by == alice.id
    assert habit.status == HabitStatus.ACTIVE
    assert habits.get_my_habits() == [habit]


def test_create_habit_requires_user(make_uow):
    anonymous = HabitService(make_uow())
    with pytest.raises(UnauthorizedError):
        anonymous.create_habit({"name": "Read", "difficulty": Difficulty.EASY})
    assert ReadRepository(Habit, db.session).get_all() == []


def test_create_habit_with_unknown_category(habits):
    with pytest.raises(NotFoundError):
        habits.create_habit({"name": "Read", "difficulty": Difficulty.EASY, "category_id": uuid.uuid4()})


def test_update_habit(habits, habit):
    category = ReadRepository(HabitCategory, db.session).first(HabitCategory.name == "Learning")
    updated = habits.update_habit(
        habit.id,
        {
            "name": "Read more",
            "category_id": category.id,
            "difficulty": Difficulty.HARD,
            "status": HabitStatus.PAUSED,
        },
    )

    assert updated.name == "Read more"
    assert updated.category.name == "Learning"
    assert updated.status == HabitStatus.PAUSED
    assert updated.modified_at is not None


def test_other_users_cannot_touch_habit(habit, bob, make_uow):
    intruder = HabitService(make_uow(bob), bob.id)
    with pytest.raises(ForbiddenError):
        intruder.get_habit(habit.id)
    with pytest.raises(ForbiddenError):
        intruder.log_habit({"habit_id": habit.id, "log_date": DAY})
    with pytest.raises(ForbiddenError):
        intruder.get_user_habits(habit.user_id)


def test_logging_same_day_twice_updates_the_log(habits, habit):
    first = habits.log_habit({"habit_id": habit.id, "log_date": DAY, "status": LogStatus.COMPLETED})
    first_id = first.id
    second = habits.log_habit(
        {"habit_id": habit.id, "log_date": DAY, "status": LogStatus.MISSED, "notes": "busy day"}
    )

    assert second.id == first_id
    logs = live_logs(habit.id)
    assert len(logs) == 1
    assert logs[0].status == LogStatus.MISSED
    assert logs[0].notes == "busy day"
    assert logs[0].modified_at is not None


def test_log_defaults_to_completed_today(habits, habit):
    log = habits.log_habit({"habit_id": habit.id})
    assert log.status == LogStatus.COMPLETED
    assert log.log_date is not None


def test_toggle_log(habits, habit):
    log = habits.toggle_log(habit.id, DAY, False)
    assert log.status == LogStatus.MISSED
    log = habits.toggle_log(habit.id, DAY, True)
    assert log.status == LogStatus.COMPLETED
    assert len(live_logs(habit.id)) == 1


def test_archived_habit_cannot_be_logged(habits, habit):
    habits.update_habit(habit.id, {"name": "Read", "difficulty": Difficulty.EASY, "status": HabitStatus.ARCHIVED})
    with pytest.raises(ValidationError):
        habits.log_habit({"habit_id": habit.id, "log_date": DAY})


def test_skip_reason_marks_log_skipped(habits, habit):
    log = habits.log_habit({"habit_id": habit.id, "log_date": DAY, "status": LogStatus.MISSED})
    sick = skip_reason("SICK")
    travel = skip_reason("TRAVEL")

    skip = habits.add_skip_reason({"habit_log_id": log.id, "reason_id": sick.id, "comment": "flu"})
    assert skip.reason.code == "SICK"
    assert log.status == LogStatus.SKIPPED

    again = habits.add_skip_reason({"habit_log_id": log.id, "reason_id": travel.id})
    assert again.id == skip.id
    skips = ReadRepository(HabitSkipLog, db.session).find(HabitSkipLog.habit_log_id == log.id)
    assert len(skips) == 1
    assert skips[0].reason.code == "TRAVEL"
    assert skips[0].comment is None


def test_completing_a_skipped_day_drops_the_skip_record(habits, habit):
    log = habits.log_habit({"habit_id": habit.id, "log_date": DAY, "status": LogStatus.MISSED})
    habits.add_skip_reason({"habit_log_id": log.id, "reason_id": skip_reason("SICK").id})

    habits.log_habit({"habit_id": habit.id, "log_date": DAY, "status": LogStatus.COMPLETED})

    assert ReadRepository(HabitSkipLog, db.session).get_all() == []


def test_skip_reason_requires_existing_reason(habits, habit):
    log = habits.log_habit({"habit_id": habit.id, "log_date": DAY})
    with pytest.raises(NotFoundError):
        habits.add_skip_reason({"habit_log_id": log.id, "reason_id": uuid.uuid4()})


def test_habit_logs_in_range(habits, habit):
    for day in (date(2024, 5, 1), date(2024, 5, 2), date(2024, 5, 3)):
        habits.log_habit({"habit_id": habit.id, "log_date": day})

    logs = habits.get_habit_logs(habit.id, start=date(2024, 5, 2))
    assert [log.log_date for log in logs] == [date(2024, 5, 2), date(2024, 5, 3)]
    logs = habits.get_habit_logs(habit.id, end=date(2024, 5, 1))
    assert [log.log_date for log in logs] == [date(2024, 5, 1)]


def test_delete_habit_cascades(habits, habit):
    habit_id = habit.id
    log = habits.log_habit({"habit_id": habit_id, "log_date": DAY, "status": LogStatus.MISSED})
    habits.log_habit({"habit_id": habit_id, "log_date": date(2024, 5, 2)})
    habits.add_skip_reason({"habit_log_id": log.id, "reason_id": skip_reason("SICK").id})

    habits.delete_habit(habit_id)

    with pytest.raises(NotFoundError):
        habits.get_habit(habit_id)
    assert habits.get_my_habits() == []
    assert live_logs(habit_id) == []
    assert ReadRepository(HabitSkipLog, db.session).get_all() == []

    connection = db.session.connection()
    assert connection.execute(text("SELECT COUNT(*) FROM habit_logs WHERE is_deleted = 1")).scalar() == 2
    assert connection.execute(text("SELECT COUNT(*) FROM habit_skip_logs WHERE is_deleted = 1")).scalar() == 1
    assert connection.execute(text("SELECT COUNT(*) FROM habits WHERE is_deleted = 1")).scalar() == 1


def test_deleted_day_can_be_logged_again(habits, habit, make_uow, alice):
    log = habits.log_habit({"habit_id": habit.id, "log_date": DAY})
    uow = make_uow(alice)
    uow.repository(HabitLog).remove(log)
    uow.commit()

    fresh = habits.log_habit({"habit_id": habit.id, "log_date": DAY, "status": LogStatus.MISSED})

    assert fresh.id != log.id
    assert [row.status for row in live_logs(habit.id)] == [LogStatus.MISSED]


def test_lookups(habits):
    names = [category.name for category in habits.list_categories()]
    assert names[:2] == ["Health", "Fitness"]
    assert "SICK" in [reason.code for reason in habits.list_skip_reasons()]


def test_suggestions_are_distinct_and_filtered(habits):
    health = ReadRepository(HabitCategory, db.session).first(HabitCategory.name == "Health")

    titles = habits.suggestions(health.id)
    assert titles == sorted(set(titles))
    assert "Drink Water" in titles
    assert habits.suggestions(health.id, "water") == ["Drink Water"]
    assert habits.suggestions(uuid.uuid4()) == []


def test_relogging_keeps_or_clears_notes(habits, habit):
    habits.log_habit({"habit_id": habit.id, "log_date": DAY, "notes": "felt great"})

    kept = habits.log_habit({"habit_id": habit.id, "log_date": DAY, "status": LogStatus.MISSED, "notes": None})
    assert kept.notes == "felt great"

    cleared = habits.log_habit({"habit_id": habit.id, "log_date": DAY, "notes": ""})
    assert cleared.notes is None
    assert [log.notes for log in live_logs(habit.id)] == [None]


def test_deleted_category_is_no_longer_resolved(habits, habit, alice, make_uow):
    health = ReadRepository(HabitCategory, db.session).first(HabitCategory.name == "Health")
    filed = habits.create_habit({"name": "Drink", "difficulty": Difficulty.EASY, "category_id": health.id})
    assert filed.category.name == "Health"

    uow = make_uow(alice)
    uow.repository(HabitCategory).remove(health)
    uow.commit()
    db.session.expire_all()

    assert filed.category is None
    summary = DashboardService(make_uow(alice), alice.id).summary()
    assert summary["category_counts"] == {"Uncategorised": 2}
