"""
Serialization schemas using Marshmallow for HabitMatrix.

Request schemas validate incoming JSON and return plain dictionaries
for the service layer. Response schemas convert SQLAlchemy models to
JSON-friendly representations. Password hashes and the raw
soft-delete columns are never serialised.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate, validates_schema, ValidationError, EXCLUDE
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field

from .models import (
    User,
    Habit,
    HabitLog,
    HabitSkipLog,
    HabitCategory,
    GoalCategory,
    SkipReason,
    HabitSuggestion,
    Goal,
    Milestone,
    Difficulty,
    HabitStatus,
    LogStatus,
    GoalStatus,
    Role,
    Theme,
)

HEX_COLOR = validate.Regexp(r"^#[0-9A-Fa-f]{6}$", error="Colour must look like #RRGGBB.")

AUDIT_FIELDS = ("is_deleted", "deleted_at", "deleted_by")
LOOKUP_EXCLUDE = AUDIT_FIELDS + ("created_at", "created_by", "modified_at", "modified_by")


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class RequestSchema(Schema):
    class Meta:
        unknown = EXCLUDE


class RegisterRequest(RequestSchema):
    username = fields.String(required=True, validate=validate.Length(min=3, max=50))
    email = fields.Email(required=True, validate=validate.Length(max=120))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=8, max=128))
    confirm_password = fields.String(required=True, load_only=True)


class LoginRequest(RequestSchema):
    username = fields.String(required=True)
    password = fields.String(required=True, load_only=True)


class ThemeRequest(RequestSchema):
    theme = fields.Enum(Theme, by_value=True, required=True)


class ChangeRoleRequest(RequestSchema):
    role = fields.Enum(Role, by_value=True, required=True)


class CreateHabitRequest(RequestSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    description = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=255))
    category_id = fields.UUID(load_default=None, allow_none=True)
    color = fields.String(load_default="#00BFFF", validate=HEX_COLOR)
    difficulty = fields.Enum(Difficulty, by_value=True, load_default=Difficulty.MEDIUM)


class UpdateHabitRequest(CreateHabitRequest):
    status = fields.Enum(HabitStatus, by_value=True, required=True)


class LogHabitRequest(RequestSchema):
    habit_id = fields.UUID(required=True)
    log_date = fields.Date(load_default=None)
    status = fields.Enum(LogStatus, by_value=True, load_default=LogStatus.COMPLETED)
    notes = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=1000))


class ToggleLogRequest(RequestSchema):
    log_date = fields.Date(load_default=None)
    done = fields.Boolean(required=True)


class AddSkipReasonRequest(RequestSchema):
    habit_log_id = fields.UUID(required=True)
    reason_id = fields.UUID(required=True)
    comment = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=500))


class CreateGoalRequest(RequestSchema):
    title = fields.String(required=True, validate=validate.Length(min=1, max=200))
    description = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=1000))
    category_id = fields.UUID(load_default=None, allow_none=True)
    priority = fields.Integer(load_default=0, validate=validate.Range(min=0, max=5))
    start_date = fields.Date(load_default=None, allow_none=True)
    target_date = fields.Date(load_default=None, allow_none=True)

    @validates_schema
    def check_dates(self, data, **kwargs):
        start, target = data.get("start_date"), data.get("target_date")
        if start and target and target < start:
            raise ValidationError("Target date cannot be before the start date.", "target_date")


class UpdateGoalRequest(CreateGoalRequest):
    status = fields.Enum(GoalStatus, by_value=True, required=True)


class AddMilestoneRequest(RequestSchema):
    goal_id = fields.UUID(required=True)
    title = fields.String(required=True, validate=validate.Length(min=1, max=200))
    description = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=1000))
    target_value = fields.Decimal(required=True, places=2, validate=validate.Range(min=0, min_inclusive=False))


class UpdateMilestoneProgressRequest(RequestSchema):
    milestone_id = fields.UUID(required=True)
    current_value = fields.Decimal(required=True, places=2, validate=validate.Range(min=0))


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class UserSchema(SQLAlchemyAutoSchema):
    """Schema for serialising ``User`` objects."""

    role = fields.Enum(Role, by_value=True)
    theme_preference = fields.Enum(Theme, by_value=True)

    class Meta:
        model = User
        # Exclude password_hash from the serialised output
        exclude = ("password_hash", "created_by", "modified_by") + AUDIT_FIELDS


class HabitCategorySchema(SQLAlchemyAutoSchema):
    class Meta:
        model = HabitCategory
        exclude = LOOKUP_EXCLUDE + ("is_active",)


class GoalCategorySchema(SQLAlchemyAutoSchema):
    class Meta:
        model = GoalCategory
        exclude = LOOKUP_EXCLUDE + ("is_active",)


class SkipReasonSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = SkipReason
        exclude = LOOKUP_EXCLUDE


class HabitSuggestionSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = HabitSuggestion
        include_fk = True
        exclude = LOOKUP_EXCLUDE + ("is_editable",)


class HabitSchema(SQLAlchemyAutoSchema):
    """Schema for serialising ``Habit`` objects."""

    difficulty = fields.Enum(Difficulty, by_value=True)
    status = fields.Enum(HabitStatus, by_value=True)
    is_active = fields.Boolean(dump_only=True)

    class Meta:
        model = Habit
        include_fk = True
        exclude = AUDIT_FIELDS


class HabitSkipLogSchema(SQLAlchemyAutoSchema):
    reason = fields.Nested(SkipReasonSchema)

    class Meta:
        model = HabitSkipLog
        include_fk = True
        exclude = AUDIT_FIELDS


class HabitLogSchema(SQLAlchemyAutoSchema):
    """Schema for serialising ``HabitLog`` objects."""

    status = fields.Enum(LogStatus, by_value=True)
    notes = auto_field(validate=validate.Length(max=1000), allow_none=True)

    class Meta:
        model = HabitLog
        include_fk = True
        exclude = AUDIT_FIELDS


class MilestoneSchema(SQLAlchemyAutoSchema):
    target_value = fields.Decimal(as_string=True)
    current_value = fields.Decimal(as_string=True)

    class Meta:
        model = Milestone
        include_fk = True
        exclude = AUDIT_FIELDS


class GoalSchema(SQLAlchemyAutoSchema):
    """Schema for serialising ``Goal`` objects."""

    status = fields.Enum(GoalStatus, by_value=True)
    is_completed = fields.Method("_is_completed")

    class Meta:
        model = Goal
        include_fk = True
        exclude = AUDIT_FIELDS

    def _is_completed(self, goal) -> bool:
        return goal.status == GoalStatus.COMPLETED
