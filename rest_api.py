import logging

from fastapi import FastAPI, HTTPException, Response

from config import APP_VERSION, load_settings
from db import NotFoundError, WorkoutStore
from logger_config import setup_logging
from models import Workout, WorkoutEntry

logger = logging.getLogger(__name__)


class WorkoutAPI:
    """Provides REST endpoints for workouts and their entries."""

    def __init__(
        self,
        db_path: str = "workout.db",
        yaml_path: str = "settings.yaml",
        *,
        db_url: str | None = None,
    ) -> None:
        self.settings = load_settings(yaml_path)
        self.db_path = db_path
        self.workouts = WorkoutStore(
            db_path,
            db_url=db_url or self.settings.db_url,
            timeout=self.settings.timeout,
        )
        self.app = FastAPI(
            title="Workout API",
            description="REST API for storing workouts and their exercise entries",
            version=APP_VERSION,
        )
        self._setup_routes()

    @staticmethod
    def _check_id(value: int, label: str) -> None:
        if value <= 0:
            raise HTTPException(status_code=400, detail=f"Invalid {label} ID")

    def _setup_routes(self) -> None:
        @self.app.get(
            "/health",
            summary="Health check",
            description="Verify API and database connectivity.",
        )
        def health():
            """Return API and database connection status."""
            try:
                self.workouts.ping()
                return {"status": "ok"}
            except Exception as e:
                logger.error("Health check failed: %s", e)
                raise HTTPException(status_code=500, detail=str(e))

        @self.app.post("/workouts", status_code=201, response_model=Workout)
        def create_workout(workout: Workout):
            workout.id = None
            for entry in workout.entries:
                entry.id = None
            try:
                return self.workouts.create_workout(workout)
            except Exception as e:
                logger.error("Workout creation error: %s", e)
                raise HTTPException(status_code=500, detail="Failed to create workout")

        @self.app.get("/workouts/{workout_id}", response_model=Workout)
        def get_workout(workout_id: int):
            self._check_id(workout_id, "workout")
            try:
                return self.workouts.get_workout_by_id(workout_id)
            except NotFoundError:
                raise HTTPException(status_code=404, detail="Workout not found")
            except Exception as e:
                logger.error("Failed to fetch workout %s: %s", workout_id, e)
                raise HTTPException(status_code=500, detail="Failed to fetch workout")

        @self.app.put("/workouts/{workout_id}")
        def update_workout(workout_id: int, workout: Workout):
            self._check_id(workout_id, "workout")
            workout.id = workout_id
            try:
                self.workouts.update_workout(workout)
            except NotFoundError:
                raise HTTPException(status_code=404, detail="Workout not found")
            except Exception as e:
                logger.error("Failed to update workout %s: %s", workout_id, e)
                raise HTTPException(status_code=500, detail="Failed to update workout")
            return {"status": "updated"}

        @self.app.delete("/workouts/{workout_id}", status_code=204)
        def delete_workout(workout_id: int):
            self._check_id(workout_id, "workout")
            try:
                self.workouts.delete_workout(workout_id)
            except NotFoundError:
                raise HTTPException(status_code=404, detail="Workout not found")
            except Exception as e:
                logger.error("Failed to delete workout %s: %s", workout_id, e)
                raise HTTPException(status_code=500, detail="Failed to delete workout")
            return Response(status_code=204)

        @self.app.put("/workout-entries/{entry_id}")
        def update_workout_entry(entry_id: int, entry: WorkoutEntry):
            self._check_id(entry_id, "entry")
            entry.id = entry_id
            try:
                self.workouts.update_workout_entry(entry)
            except NotFoundError:
                raise HTTPException(status_code=404, detail="Workout entry not found")
            except Exception as e:
                logger.error("Failed to update workout entry %s: %s", entry_id, e)
                raise HTTPException(
                    status_code=500, detail="Failed to update workout entry"
                )
            return {"status": "updated"}

        @self.app.delete("/workout-entries/{entry_id}", status_code=204)
        def delete_workout_entry(entry_id: int):
            self._check_id(entry_id, "entry")
            try:
                self.workouts.delete_workout_entry_by_id(entry_id)
            except NotFoundError:
                raise HTTPException(status_code=404, detail="Workout entry not found")
            except Exception as e:
                logger.error("Failed to delete workout entry %s: %s", entry_id, e)
                raise HTTPException(
                    status_code=500, detail="Failed to delete workout entry"
                )
            return Response(status_code=204)


def create_app(yaml_path: str = "settings.yaml") -> FastAPI:
    settings = load_settings(yaml_path)
    setup_logging(settings.log_level)
    return WorkoutAPI(settings.db_path, yaml_path, db_url=settings.db_url).app


if __name__ == "__main__":
    import uvicorn

    settings = load_settings()
    uvicorn.run(create_app(), host=settings.host, port=settings.port)
