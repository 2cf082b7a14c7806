"""
Database models for HabitMatrix.

Every business record mixes in :class:`AuditableMixin`, which carries
the identity, audit stamps and soft-delete flag shared by all tables.
The stamps are never written by services directly; the unit of work
fills them in when it commits. Users are auditable too, so an
administrator can retire an account without losing its history.

Habits own their daily logs, and a log may own a single skip record.
Goals own their milestones. Lookup tables (categories, skip reasons
and habit suggestions) are auditable as well so they can be retired
without breaking historical references. Relationships to a lookup row
resolve to ``None`` once that row is deleted.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, List

from werkzeug.security import generate_password_hash, check_password_hash

from .db import db, register_soft_delete

PASSWORD_HASH_METHOD = "pbkdf2:sha256:600000"


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the ``DateTime`` columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Difficulty(enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class HabitStatus(enum.Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"


class LogStatus(enum.Enum):
    COMPLETED = "completed"
    MISSED = "missed"
    SKIPPED = "skipped"


class GoalStatus(enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class Role(enum.Enum):
    """Enumeration of user roles."""

    USER = "user"
    ADMIN = "admin"


class Theme(enum.Enum):
    LIGHT = "light"
    DARK = "dark"


class AuditableMixin:
    """Identity, audit stamps and soft-delete flag.

    ``id`` is generated when the row is first flushed. ``created_at`` is
    stamped once on insert, ``modified_at`` stays ``None`` until the first
    update. ``deleted_at``/``deleted_by`` are only written on the transition
    to ``is_deleted = True``.
    """

    # Mixin columns stay unannotated; SQLAlchemy only accepts Mapped[] here.
    id = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    created_at = db.Column(db.DateTime, nullable=False)
    created_by = db.Column(db.Uuid, nullable=True)
    modified_at = db.Column(db.DateTime, nullable=True)
    modified_by = db.Column(db.Uuid, nullable=True)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False, server_default=db.false())
    deleted_at = db.Column(db.DateTime, nullable=True)
    deleted_by = db.Column(db.Uuid, nullable=True)


class User(AuditableMixin, db.Model):
    """A registered account.

    Passwords are stored as salted PBKDF2 hashes. ``created_at`` is the
    join date. Deleted accounts can no longer log in, and their username
    and email stay reserved.
    """
    __allow_unmapped__ = True
    __tablename__ = "users"

    username: str = db.Column(db.String(50), unique=True, nullable=False)
    email: str = db.Column(db.String(120), unique=True, nullable=False)
    password_hash: str = db.Column(db.String(255), nullable=False)
    role: Role = db.Column(db.Enum(Role), nullable=False, default=Role.USER)
    theme_preference: Theme = db.Column(db.Enum(Theme), nullable=False, default=Theme.LIGHT)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password, method=PASSWORD_HASH_METHOD, salt_length=16)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def __repr__(self) -> str:
        return f"<User {self.username}>"


class HabitCategory(AuditableMixin, db.Model):
    __allow_unmapped__ = True
    __tablename__ = "habit_categories"

    name: str = db.Column(db.String(100), unique=True, nullable=False)
    display_order: int = db.Column(db.Integer, nullable=False, default=0)
    is_active: bool = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<HabitCategory {self.name}>"


class GoalCategory(AuditableMixin, db.Model):
    __allow_unmapped__ = True
    __tablename__ = "goal_categories"

    name: str = db.Column(db.String(100), unique=True, nullable=False)
    display_order: int = db.Column(db.Integer, nullable=False, default=0)
    is_active: bool = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<GoalCategory {self.name}>"


class SkipReason(AuditableMixin, db.Model):
    __allow_unmapped__ = True
    """Why a habit was skipped on a given day (``SICK``, ``TRAVEL``...)."""
    __tablename__ = "skip_reasons"

    code: str = db.Column(db.String(50), unique=True, nullable=False)
    description: str = db.Column(db.String(255), nullable=False)
    is_system_defined: bool = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<SkipReason {self.code}>"


class HabitSuggestion(AuditableMixin, db.Model):
    __allow_unmapped__ = True
    """Predefined habit title offered when a user picks a category."""
    __tablename__ = "habit_suggestions"

    category_id: uuid.UUID = db.Column(db.Uuid, db.ForeignKey("habit_categories.id"), nullable=False)
    title: str = db.Column(db.String(100), nullable=False)
    description: Optional[str] = db.Column(db.String(255))
    is_editable: bool = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<HabitSuggestion {self.title}>"


class Habit(AuditableMixin, db.Model):
    __allow_unmapped__ = True
    """A habit tracked by a single user."""
    __tablename__ = "habits"

    user_id: uuid.UUID = db.Column(db.Uuid, db.ForeignKey("users.id"), nullable=False, index=True)
    category_id: Optional[uuid.UUID] = db.Column(db.Uuid, db.ForeignKey("habit_categories.id"))
    name: str = db.Column(db.String(100), nullable=False)
    description: Optional[str] = db.Column(db.String(255))
    color: str = db.Column(db.String(7), nullable=False, default="#00BFFF")
    difficulty: Difficulty = db.Column(db.Enum(Difficulty), nullable=False, default=Difficulty.MEDIUM)
    status: HabitStatus = db.Column(db.Enum(HabitStatus), nullable=False, default=HabitStatus.ACTIVE)

    category: Optional[HabitCategory] = db.relationship(
        "HabitCategory",
        primaryjoin="and_(Habit.category_id == HabitCategory.id, HabitCategory.is_deleted.is_(False))",
        viewonly=True,
    )

    @property
    def is_active(self) -> bool:
        return self.status == HabitStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<Habit {self.name}>"


class HabitLog(AuditableMixin, db.Model):
    __allow_unmapped__ = True
    """The outcome of a habit on one calendar day.

    A habit has at most one live log per day. The uniqueness is enforced
    by a partial index so that a soft-deleted log does not block a new
    one for the same date.
    """
    __tablename__ = "habit_logs"

    habit_id: uuid.UUID = db.Column(db.Uuid, db.ForeignKey("habits.id"), nullable=False)
    log_date: date = db.Column(db.Date, nullable=False)
    status: LogStatus = db.Column(db.Enum(LogStatus), nullable=False)
    notes: Optional[str] = db.Column(db.String(1000))

    __table_args__ = (
        db.Index(
            "uix_habit_log_date",
            "habit_id",
            "log_date",
            unique=True,
            sqlite_where=db.text("is_deleted = 0"),
            postgresql_where=db.text("NOT is_deleted"),
        ),
    )

    def __repr__(self) -> str:
        return f"<HabitLog habit={self.habit_id} {self.log_date} {self.status.value}>"


class HabitSkipLog(AuditableMixin, db.Model):
    __allow_unmapped__ = True
    """Reason recorded against a skipped habit log."""
    __tablename__ = "habit_skip_logs"

    habit_log_id: uuid.UUID = db.Column(db.Uuid, db.ForeignKey("habit_logs.id"), nullable=False)
    reason_id: uuid.UUID = db.Column(db.Uuid, db.ForeignKey("skip_reasons.id"), nullable=False)
    comment: Optional[str] = db.Column(db.String(500))

    __table_args__ = (
        db.Index(
            "uix_skip_log_habit_log",
            "habit_log_id",
            unique=True,
            sqlite_where=db.text("is_deleted = 0"),
            postgresql_where=db.text("NOT is_deleted"),
        ),
    )

    reason: Optional[SkipReason] = db.relationship(
        "SkipReason",
        primaryjoin="and_(HabitSkipLog.reason_id == SkipReason.id, SkipReason.is_deleted.is_(False))",
        viewonly=True,
    )

    def __repr__(self) -> str:
        return f"<HabitSkipLog log={self.habit_log_id}>"


class Goal(AuditableMixin, db.Model):
    __allow_unmapped__ = True
    """A user goal, optionally broken down into milestones."""
    __tablename__ = "goals"

    user_id: uuid.UUID = db.Column(db.Uuid, db.ForeignKey("users.id"), nullable=False, index=True)
    category_id: Optional[uuid.UUID] = db.Column(db.Uuid, db.ForeignKey("goal_categories.id"))
    title: str = db.Column(db.String(200), nullable=False)
    description: Optional[str] = db.Column(db.String(1000))
    priority: int = db.Column(db.Integer, nullable=False, default=0)
    start_date: Optional[date] = db.Column(db.Date)
    target_date: Optional[date] = db.Column(db.Date)
    status: GoalStatus = db.Column(db.Enum(GoalStatus), nullable=False, default=GoalStatus.ACTIVE)

    category: Optional[GoalCategory] = db.relationship(
        "GoalCategory",
        primaryjoin="and_(Goal.category_id == GoalCategory.id, GoalCategory.is_deleted.is_(False))",
        viewonly=True,
    )

    def __repr__(self) -> str:
        return f"<Goal {self.title}>"


class Milestone(AuditableMixin, db.Model):
    __allow_unmapped__ = True
    """Measurable step towards a goal (``Lose first 3kg``)."""
    __tablename__ = "milestones"

    goal_id: uuid.UUID = db.Column(db.Uuid, db.ForeignKey("goals.id"), nullable=False, index=True)
    title: str = db.Column(db.String(200), nullable=False)
    description: Optional[str] = db.Column(db.String(1000))
    target_value: Decimal = db.Column(db.Numeric(12, 2), nullable=False)
    current_value: Decimal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    is_completed: bool = db.Column(db.Boolean, nullable=False, default=False)
    completed_at: Optional[datetime] = db.Column(db.DateTime)

    def mark_completed(self) -> None:
        self.is_completed = True
        self.completed_at = utcnow()

    def reopen(self) -> None:
        self.is_completed = False
        self.completed_at = None

    def __repr__(self) -> str:
        return f"<Milestone {self.title} {self.current_value}/{self.target_value}>"


AUDITABLE_MODELS: List[type] = [
    User,
    HabitCategory,
    GoalCategory,
    SkipReason,
    HabitSuggestion,
    Habit,
    HabitLog,
    HabitSkipLog,
    Goal,
    Milestone,
]

register_soft_delete(*AUDITABLE_MODELS)
