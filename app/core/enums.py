"""Shared enums for models and API."""

from enum import Enum


class Difficulty(str, Enum):
    """Workout difficulty (optional on a workout)."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class WorkoutScope(str, Enum):
    """Listing posture for GET /workouts."""

    PUBLIC = "public"  # Public workouts, any viewer
    MINE = "mine"  # Viewer's own workouts (dashboard)
    DISCOVER = "discover"  # Public or own, for search


class AuthEvent(str, Enum):
    """Auth state change notifications."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
