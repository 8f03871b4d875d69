"""Workout and Exercise models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.enums import Difficulty
from app.db.base import Base


class Workout(Base):
    """A workout owned by one user; readable by others only when public."""

    __tablename__ = "workouts"
    __table_args__ = (
        Index("ix_workouts_owner_created", "owner", "created_at"),
        Index("ix_workouts_public_created", "is_public", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Never reassigned after creation
    owner: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    difficulty: Mapped[Difficulty | None] = mapped_column(
        Enum(Difficulty, values_callable=lambda e: [m.value for m in e]), nullable=True
    )
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    exercises: Mapped[list["Exercise"]] = relationship(
        "Exercise",
        back_populates="workout",
        cascade="all, delete-orphan",
        order_by="Exercise.created_at",
    )
    favorites: Mapped[list["Favorite"]] = relationship(
        "Favorite", back_populates="workout", cascade="all, delete-orphan"
    )


class Exercise(Base):
    """One exercise in a workout. Write access follows the parent workout's owner."""

    __tablename__ = "exercises"
    __table_args__ = (
        Index("ix_exercises_workout_created", "workout_id", "created_at"),
        CheckConstraint("sets IS NULL OR sets >= 1", name="ck_exercises_sets_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    workout_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("workouts.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sets: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reps: Mapped[str | None] = mapped_column(String(50), nullable=True)  # "8-12", "30s", ...
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    workout: Mapped["Workout"] = relationship("Workout", back_populates="exercises")
