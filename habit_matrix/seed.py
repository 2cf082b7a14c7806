"""Seed data for lookup tables.

Populates habit and goal categories, skip reasons and habit
suggestions, and optionally a demo account and an administrator.
Rows that already exist (matched by name, code or username) are left
alone, so the command can be run repeatedly::

    flask --app habit_matrix seed
    flask --app habit_matrix seed --demo
    flask --app habit_matrix seed --admin --password s3cret-pass
"""
from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from .db import db
from .models import GoalCategory, HabitCategory, HabitSuggestion, Role, SkipReason, Theme, User
from .repositories import ReadRepository, UnitOfWork

logger = logging.getLogger(__name__)

HABIT_CATEGORIES = {
    "Health": [
        ("Drink Water", "Drink eight glasses of water"),
        ("Get Enough Sleep", "Aim for 7-9 hours of sleep"),
        ("Eat Vegetables", "Include vegetables in every meal"),
    ],
    "Fitness": [
        ("Morning Walk", "Walk for 30 minutes"),
        ("Stretching", "Stretch for 10 minutes"),
        ("Workout", "Complete a workout session"),
    ],
    "Learning": [
        ("Read", "Read 20 pages"),
        ("Practice a Language", "Study a language for 15 minutes"),
    ],
    "Mindfulness": [
        ("Meditate", "Meditate for 10 minutes"),
        ("Journal", "Write a short journal entry"),
    ],
    "Productivity": [
        ("Plan the Day", "Write tomorrow's top three tasks"),
        ("Inbox Zero", "Clear the inbox"),
    ],
}

GOAL_CATEGORIES = ["Career", "Finance", "Health", "Learning", "Personal"]

SKIP_REASONS = [
    ("SICK", "Feeling unwell"),
    ("TRAVEL", "Travelling"),
    ("REST_DAY", "Planned rest day"),
    ("NO_TIME", "Not enough time"),
    ("OTHER", "Other reason"),
]


def seed_lookups(session) -> int:
    """Insert missing lookup rows. Returns the number of rows added."""
    uow = UnitOfWork(session)
    categories = ReadRepository(HabitCategory, session)
    goal_categories = ReadRepository(GoalCategory, session)
    reasons = ReadRepository(SkipReason, session)

    for order, name in enumerate(HABIT_CATEGORIES):
        if not categories.exists(HabitCategory.name == name):
            uow.repository(HabitCategory).add(HabitCategory(name=name, display_order=order, is_active=True))
    for order, name in enumerate(GOAL_CATEGORIES):
        if not goal_categories.exists(GoalCategory.name == name):
            uow.repository(GoalCategory).add(GoalCategory(name=name, display_order=order, is_active=True))
    for code, description in SKIP_REASONS:
        if not reasons.exists(SkipReason.code == code):
            uow.repository(SkipReason).add(SkipReason(code=code, description=description, is_system_defined=True))
    added = uow.commit()

    suggestions = ReadRepository(HabitSuggestion, session)
    for name, items in HABIT_CATEGORIES.items():
        category = categories.first(HabitCategory.name == name)
        for title, description in items:
            if not suggestions.exists(HabitSuggestion.category_id == category.id, HabitSuggestion.title == title):
                uow.repository(HabitSuggestion).add(
                    HabitSuggestion(category_id=category.id, title=title, description=description, is_editable=True)
                )
    return added + uow.commit()


def seed_user(session, username: str, password: str, role: Role = Role.USER) -> bool:
    """Create an account unless ``username`` is already taken."""
    if ReadRepository(User, session).exists(User.username == username):
        return False
    user = User(username=username, email=f"{username}@example.com", role=role, theme_preference=Theme.LIGHT)
    user.set_password(password)
    uow = UnitOfWork(session)
    uow.repository(User).add(user)
    uow.commit()
    return True


@click.command("seed")
@click.option("--demo", is_flag=True, help="Also create a demo account.")
@click.option("--admin", is_flag=True, help="Also create an administrator account.")
@click.option("--password", default="password123", show_default=True, help="Password for the created accounts.")
@with_appcontext
def seed_command(demo: bool, admin: bool, password: str) -> None:
    """Insert lookup data (and optionally demo and admin accounts)."""
    db.create_all()
    added = seed_lookups(db.session)
    click.echo(f"Seeded {added} lookup row(s).")
    for wanted, username, role in ((demo, "demo", Role.USER), (admin, "admin", Role.ADMIN)):
        if wanted:
            created = seed_user(db.session, username, password, role)
            click.echo(f"User {username} created." if created else f"User {username} already exists.")
    logger.info("Seed finished: %d lookup row(s) added", added)
