"""Tests for ownership/visibility rules."""

import uuid

from app.core.enums import WorkoutScope
from app.models.workout import Exercise, Workout
from app.services import policy

OWNER = uuid.uuid4()
OTHER = uuid.uuid4()


def _workout(is_public: bool) -> Workout:
    return Workout(id=uuid.uuid4(), owner=OWNER, title="Push", is_public=is_public)


class TestReadRules:
    """Tests for can_read_workout."""

    def test_public_workout_readable_by_anyone(self):
        workout = _workout(is_public=True)
        assert policy.can_read_workout(None, workout)
        assert policy.can_read_workout(OTHER, workout)
        assert policy.can_read_workout(OWNER, workout)

    def test_private_workout_readable_by_owner_only(self):
        workout = _workout(is_public=False)
        assert policy.can_read_workout(OWNER, workout)
        assert not policy.can_read_workout(OTHER, workout)
        assert not policy.can_read_workout(None, workout)


class TestWriteRules:
    """Tests for workout and exercise write checks."""

    def test_only_owner_writes_workout(self):
        workout = _workout(is_public=True)
        assert policy.can_write_workout(OWNER, workout)
        assert not policy.can_write_workout(OTHER, workout)
        assert not policy.can_write_workout(None, workout)

    def test_exercise_write_follows_parent_owner(self):
        parent = _workout(is_public=True)
        exercise = Exercise(id=uuid.uuid4(), workout_id=parent.id, name="Squat")
        assert policy.can_write_exercise(OWNER, exercise, parent)
        assert not policy.can_write_exercise(OTHER, exercise, parent)

    def test_exercise_write_rejects_mismatched_parent(self):
        parent = _workout(is_public=True)
        exercise = Exercise(id=uuid.uuid4(), workout_id=uuid.uuid4(), name="Squat")
        assert not policy.can_write_exercise(OWNER, exercise, parent)


class TestListingClauses:
    """The listing postures compile to the expected filters."""

    def test_public_scope_ignores_viewer(self):
        sql = str(policy.scope_clause(WorkoutScope.PUBLIC, OWNER))
        assert "is_public" in sql
        assert "owner" not in sql

    def test_mine_scope_filters_owner(self):
        sql = str(policy.scope_clause(WorkoutScope.MINE, OWNER))
        assert "owner" in sql
        assert "is_public" not in sql

    def test_discover_for_anonymous_is_public_only(self):
        sql = str(policy.scope_clause(WorkoutScope.DISCOVER, None))
        assert "is_public" in sql
        assert "owner" not in sql

    def test_discover_for_viewer_includes_own(self):
        sql = str(policy.scope_clause(WorkoutScope.DISCOVER, OWNER))
        assert "is_public" in sql
        assert "owner" in sql
