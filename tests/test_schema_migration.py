import os
import sqlite3
import sys

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import Database, WorkoutStore
from migrate import migrate


def _old_schema(db_file):
    conn = sqlite3.connect(str(db_file))
    conn.execute(
        "CREATE TABLE workouts (id INTEGER PRIMARY KEY AUTOINCREMENT, title TEXT NOT NULL, "
        "description TEXT NOT NULL, duration_minutes INTEGER NOT NULL)"
    )
    conn.execute(
        "CREATE TABLE workout_entries (id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "workout_id INTEGER NOT NULL, exercise TEXT NOT NULL, sets INTEGER NOT NULL, "
        "reps INTEGER, duration_seconds INTEGER, weight REAL, "
        "FOREIGN KEY(workout_id) REFERENCES workouts(id))"
    )
    conn.execute(
        "INSERT INTO workouts (title, description, duration_minutes) VALUES ('Old', '', 20)"
    )
    conn.execute(
        "INSERT INTO workout_entries (workout_id, exercise, sets, reps) VALUES (1, 'Squat', 3, 5)"
    )
    conn.commit()
    conn.close()


class TestSchemaMigration:
    def test_migrate_adds_missing_columns(self, tmp_path):
        db_file = tmp_path / "old.db"
        _old_schema(db_file)
        migrate(str(db_file))
        migrate(str(db_file))

        conn = sqlite3.connect(str(db_file))
        cols = [row[1] for row in conn.execute("PRAGMA table_info(workout_entries)")]
        assert cols[-2:] == ["notes", "order_index"]
        cols = [row[1] for row in conn.execute("PRAGMA table_info(workouts)")]
        assert "calories_burned" in cols
        conn.close()

        workout = WorkoutStore(str(db_file)).get_workout_by_id(1)
        assert workout.calories_burned == 0
        assert workout.entries[0].notes == ""
        assert workout.entries[0].order_index == 0

    def test_migrate_ignores_fresh_database(self, tmp_path):
        db_file = tmp_path / "empty.db"
        migrate(str(db_file))
        conn = sqlite3.connect(str(db_file))
        tables = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        conn.close()
        assert tables == []

    def test_rebuilds_mismatched_tables(self, tmp_path):
        db_file = tmp_path / "old.db"
        _old_schema(db_file)
        conn = sqlite3.connect(str(db_file))
        conn.execute("CREATE TABLE workouts_old (id INTEGER)")
        conn.commit()
        conn.close()

        store = WorkoutStore(str(db_file))
        workout = store.get_workout_by_id(1)
        assert workout.title == "Old"
        assert workout.calories_burned == 0
        assert workout.entries[0].exercise == "Squat"
        assert workout.entries[0].reps == 5

        conn = sqlite3.connect(str(db_file))
        assert conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='workouts_old'"
        ).fetchone() is None
        refs = [row[2] for row in conn.execute("PRAGMA foreign_key_list(workout_entries)")]
        assert refs == ["workouts"]
        conn.close()

        store.delete_workout(1)
        assert store.is_empty()

    def test_schema_is_stable(self, tmp_path):
        db_file = str(tmp_path / "fresh.db")
        Database(db_file)
        Database(db_file)
        conn = sqlite3.connect(db_file)
        indexes = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='index' AND name='idx_workout_entries_order'"
        ).fetchall()
        conn.close()
        assert len(indexes) == 1
