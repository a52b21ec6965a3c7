import sqlite3
import sys

def migrate(db_path='workout.db'):
    conn = sqlite3.connect(db_path)
    cur = conn.cursor()
    cur.execute("PRAGMA table_info(workouts);")
    cols = [r[1] for r in cur.fetchall()]
    if cols and 'calories_burned' not in cols:
        cur.execute("ALTER TABLE workouts ADD COLUMN calories_burned INTEGER NOT NULL DEFAULT 0;")
    cur.execute("PRAGMA table_info(workout_entries);")
    cols = [r[1] for r in cur.fetchall()]
    if cols:
        if 'notes' not in cols:
            cur.execute("ALTER TABLE workout_entries ADD COLUMN notes TEXT NOT NULL DEFAULT '';")
        if 'order_index' not in cols:
            cur.execute("ALTER TABLE workout_entries ADD COLUMN order_index INTEGER NOT NULL DEFAULT 0;")
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_workout_entries_order ON workout_entries (workout_id, order_index);"
        )
    conn.commit()
    conn.close()

if __name__ == '__main__':
    path = sys.argv[1] if len(sys.argv) > 1 else 'workout.db'
    migrate(path)
