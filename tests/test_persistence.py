"""Soft-delete filtering and audit stamping through the repositories."""
from __future__ import annotations

import uuid

import pytest
from sqlalchemy import text

from habit_matrix import db
from habit_matrix.errors import ConflictError, NotFoundError
from habit_matrix.models import AUDITABLE_MODELS, GoalCategory, HabitCategory, User
from habit_matrix.repositories import ReadRepository, UnstagedChangeError, WriteRepository

AUDIT_COLUMNS = {"id", "created_at", "created_by", "modified_at", "modified_by", "is_deleted", "deleted_at", "deleted_by"}


class Note:
    """Neither mapped nor auditable."""


def raw_category(name: str):
    """Read a category row without the ORM soft-delete filter."""
    return db.session.connection().execute(
        text("SELECT is_deleted, deleted_at, deleted_by FROM habit_categories WHERE name = :name"),
        {"name": name},
    ).first()


def add_category(uow, name: str) -> HabitCategory:
    category = HabitCategory(name=name, display_order=99, is_active=True)
    uow.repository(HabitCategory).add(category)
    assert uow.commit() == 1
    return category


def test_add_stamps_creation_fields(make_uow):
    actor = uuid.uuid4()
    uow = make_uow()
    uow.actor_id = actor

    category = add_category(uow, "Hobbies")

    assert category.id is not None
    assert category.created_at is not None
    assert category.created_by == actor
    assert category.modified_at is None
    assert category.is_deleted is False


def test_update_stamps_modified_at(make_uow):
    uow = make_uow()
    category = add_category(uow, "Hobbies")
    reader = ReadRepository(HabitCategory, db.session)

    loaded = reader.get_by_id(category.id)
    loaded.display_order = 1
    uow.repository(HabitCategory).update(loaded)
    uow.commit()
    first_modified = loaded.modified_at
    assert first_modified is not None
    assert first_modified >= loaded.created_at

    loaded.display_order = 2
    uow.repository(HabitCategory).update(loaded)
    uow.commit()
    assert loaded.modified_at >= first_modified


def test_removed_rows_are_hidden_but_kept(make_uow):
    actor = uuid.uuid4()
    uow = make_uow()
    uow.actor_id = actor
    category = add_category(uow, "Hobbies")
    category_id = category.id
    reader = ReadRepository(HabitCategory, db.session)

    uow.repository(HabitCategory).remove(category)
    assert uow.commit() == 1

    assert reader.get_by_id(category_id) is None
    assert all(row.id != category_id for row in reader.get_all())
    assert reader.find(HabitCategory.name == "Hobbies") == []
    assert not reader.exists(HabitCategory.name == "Hobbies")
    assert reader.count(HabitCategory.name == "Hobbies") == 0

    row = raw_category("Hobbies")
    assert row is not None
    assert row.is_deleted == 1
    assert row.deleted_at is not None
    assert row.deleted_by is not None


def test_soft_delete_twice_keeps_first_deletion(make_uow):
    uow = make_uow()
    category = add_category(uow, "Hobbies")
    category_id = category.id

    uow.repository(HabitCategory).soft_delete(category_id)
    assert uow.commit() == 1
    first = raw_category("Hobbies")

    uow.repository(HabitCategory).soft_delete(category_id, actor=uuid.uuid4())
    assert uow.commit() == 0
    second = raw_category("Hobbies")

    assert second.deleted_at == first.deleted_at
    assert second.deleted_by == first.deleted_by


def test_soft_delete_unknown_id_is_not_found(make_uow):
    uow = make_uow()
    uow.repository(HabitCategory).soft_delete(uuid.uuid4())
    with pytest.raises(NotFoundError):
        uow.commit()


def test_failed_commit_applies_nothing(make_uow):
    uow = make_uow()
    fresh = HabitCategory(name="Brand New", display_order=50, is_active=True)
    duplicate = HabitCategory(name="Health", display_order=51, is_active=True)
    writer = uow.repository(HabitCategory)
    writer.add(fresh)
    writer.add(duplicate)

    with pytest.raises(ConflictError):
        uow.commit()

    assert raw_category("Brand New") is None
    assert fresh.created_at is None
    assert duplicate.created_at is None
    assert uow.pending == ()


def test_rollback_discards_staged_operations(make_uow):
    uow = make_uow()
    uow.repository(HabitCategory).add(HabitCategory(name="Never", display_order=1, is_active=True))
    uow.rollback()

    assert uow.commit() == 0
    assert raw_category("Never") is None


def test_staging_requires_auditable_entities(make_uow):
    uow = make_uow()
    with pytest.raises(TypeError):
        uow.repository(Note).add(Note())
    with pytest.raises(TypeError):
        WriteRepository(HabitCategory, uow).add(GoalCategory(name="Wrong table", display_order=1))
    with pytest.raises(TypeError):
        uow.stage_soft_delete(Note, entity_id=uuid.uuid4())
    assert uow.pending == ()


def test_update_requires_loaded_entity(make_uow):
    uow = make_uow()
    with pytest.raises(ValueError):
        uow.repository(HabitCategory).update(HabitCategory(name="Loose", display_order=1, is_active=True))


def test_every_auditable_table_carries_the_audit_columns():
    assert User in AUDITABLE_MODELS
    for model in AUDITABLE_MODELS:
        assert AUDIT_COLUMNS <= set(model.__table__.c.keys()), model.__name__
        assert model.__table__.c.id.primary_key


def test_unstaged_changes_are_rejected(make_uow):
    uow = make_uow()
    health = ReadRepository(HabitCategory, db.session).first(HabitCategory.name == "Health")
    health.display_order = 777
    uow.repository(HabitCategory).add(HabitCategory(name="Hobbies", display_order=99, is_active=True))

    with pytest.raises(UnstagedChangeError):
        uow.commit()

    row = db.session.connection().execute(
        text("SELECT display_order, modified_at FROM habit_categories WHERE name = 'Health'")
    ).first()
    assert row.display_order == 0
    assert row.modified_at is None
    assert raw_category("Hobbies") is None
    assert health.display_order == 0
    assert uow.pending == ()


def test_count_skips_deleted_rows(make_uow):
    reader = ReadRepository(HabitCategory, db.session)
    assert reader.count() == 5

    uow = make_uow()
    uow.repository(HabitCategory).remove(reader.first(HabitCategory.name == "Health"))
    uow.commit()

    assert reader.count() == 4
    assert reader.count(HabitCategory.name == "Health") == 0
    assert reader.count(HabitCategory.display_order < 3) == 2
