import argparse
import logging
import shutil
import sys

from config import load_settings
from db import NotFoundError, WorkoutStore
from logger_config import setup_logging
from migrate import migrate
from models import Workout, WorkoutEntry

logger = logging.getLogger(__name__)


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def demo_data(db_path: str) -> int | None:
    """Insert a sample workout into an empty database and return its id."""
    store = WorkoutStore(db_path)
    if not store.is_empty():
        print("Database already contains workouts")
        return None
    workout = store.create_workout(
        Workout(
            title="Leg Day",
            description="Lower body strength",
            duration_minutes=45,
            calories_burned=300,
            entries=[
                WorkoutEntry(exercise="Squat", sets=3, reps=10, order_index=0),
                WorkoutEntry(
                    exercise="Lunge", sets=3, duration_seconds=60, order_index=1
                ),
            ],
        )
    )
    print(f"Demo workout {workout.id} inserted")
    return workout.id


def show_workout(db_path: str, workout_id: int) -> int:
    try:
        workout = WorkoutStore(db_path).get_workout_by_id(workout_id)
    except NotFoundError:
        print(f"Workout {workout_id} not found", file=sys.stderr)
        return 1
    print(workout.model_dump_json(indent=2))
    return 0


def delete_workout(db_path: str, workout_id: int) -> int:
    try:
        WorkoutStore(db_path).delete_workout(workout_id)
    except NotFoundError:
        print(f"Workout {workout_id} not found", file=sys.stderr)
        return 1
    print(f"Workout {workout_id} deleted")
    return 0


def serve(config_path: str, host: str | None, port: int | None) -> None:
    import uvicorn

    from rest_api import create_app

    settings = load_settings(config_path)
    host = host or settings.host
    port = port or settings.port
    logger.info("Serving workout API on %s:%d", host, port)
    uvicorn.run(create_app(config_path), host=host, port=port)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Workout store commands")
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="cmd", required=True)

    srv = sub.add_parser("serve")
    srv.add_argument("--config", default="settings.yaml")
    srv.add_argument("--host", default=None)
    srv.add_argument("--port", type=int, default=None)

    mig = sub.add_parser("migrate")
    mig.add_argument("--db", default="workout.db")

    demo = sub.add_parser("demo")
    demo.add_argument("--db", default="workout.db")

    show = sub.add_parser("show")
    show.add_argument("id", type=int)
    show.add_argument("--db", default="workout.db")

    rm = sub.add_parser("delete")
    rm.add_argument("id", type=int)
    rm.add_argument("--db", default="workout.db")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--db", default="workout.db")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")
    rst.add_argument("--db", default="workout.db")

    args = parser.parse_args(argv)
    setup_logging(args.log_level or "WARNING")

    if args.cmd == "serve":
        serve(args.config, args.host, args.port)
    elif args.cmd == "migrate":
        migrate(args.db)
    elif args.cmd == "demo":
        demo_data(args.db)
    elif args.cmd == "show":
        return show_workout(args.db, args.id)
    elif args.cmd == "delete":
        return delete_workout(args.db, args.id)
    elif args.cmd == "backup":
        backup_db(args.db, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, args.db)
    return 0


if __name__ == "__main__":
    sys.exit(main())
