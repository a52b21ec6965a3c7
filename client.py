import requests

from db import NotFoundError
from models import Workout, WorkoutEntry


class WorkoutClient:
    """Simple REST client for the workout API."""

    def __init__(self, base_url: str = "http://localhost:8080", session=None) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _check(self, resp, what: str) -> None:
        if resp.status_code == 404:
            raise NotFoundError(f"{what} not found")
        resp.raise_for_status()

    def create_workout(self, workout: Workout) -> Workout:
        resp = self.session.post(
            f"{self.base_url}/workouts", json=workout.model_dump(mode="json")
        )
        resp.raise_for_status()
        return Workout.model_validate(resp.json())

    def get_workout(self, workout_id: int) -> Workout:
        resp = self.session.get(f"{self.base_url}/workouts/{workout_id}")
        self._check(resp, f"workout {workout_id}")
        return Workout.model_validate(resp.json())

    def update_workout(self, workout: Workout) -> None:
        resp = self.session.put(
            f"{self.base_url}/workouts/{workout.id}",
            json=workout.model_dump(mode="json", exclude={"entries"}),
        )
        self._check(resp, f"workout {workout.id}")

    def update_workout_entry(self, entry: WorkoutEntry) -> None:
        resp = self.session.put(
            f"{self.base_url}/workout-entries/{entry.id}",
            json=entry.model_dump(mode="json"),
        )
        self._check(resp, f"workout entry {entry.id}")

    def delete_workout(self, workout_id: int) -> None:
        resp = self.session.delete(f"{self.base_url}/workouts/{workout_id}")
        self._check(resp, f"workout {workout_id}")

    def delete_workout_entry(self, entry_id: int) -> None:
        resp = self.session.delete(f"{self.base_url}/workout-entries/{entry_id}")
        self._check(resp, f"workout entry {entry_id}")
