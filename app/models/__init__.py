"""ORM models - import all so Base.metadata is complete for migrations."""

from app.models.favorite import Favorite
from app.models.user import Profile, User
from app.models.workout import Exercise, Workout

__all__ = [
    "Exercise",
    "Favorite",
    "Profile",
    "User",
    "Workout",
]
