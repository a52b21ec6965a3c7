from typing import List, Optional

from pydantic import BaseModel, Field


class WorkoutEntry(BaseModel):
    """A single exercise performed as part of a workout."""

    id: Optional[int] = None
    exercise: str
    sets: int = 0
    reps: Optional[int] = None
    duration_seconds: Optional[int] = None
    weight: Optional[float] = None
    notes: str = ""
    order_index: int = 0


class Workout(BaseModel):
    """Workout header plus its entries in display order."""

    id: Optional[int] = None
    title: str = ""
    description: str = ""
    duration_minutes: int = 0
    calories_burned: int = 0
    entries: List[WorkoutEntry] = Field(default_factory=list)
