import logging
import re
import sqlite3
from contextlib import contextmanager, asynccontextmanager
from typing import List, Tuple

import aiosqlite

from models import Workout, WorkoutEntry

logger = logging.getLogger(__name__)


class NotFoundError(ValueError):
    """No row matched the requested identifier."""


class Database:
    """Provides connection management and schema initialization.

    SQLite is used unless ``db_url`` points at PostgreSQL, in which case
    ``psycopg2`` is imported on first connection.
    """

    _TABLE_DEFINITIONS = {
        "workouts": (
            """CREATE TABLE workouts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL,
                    duration_minutes INTEGER NOT NULL,
                    calories_burned INTEGER NOT NULL
                );""",
            ["id", "title", "description", "duration_minutes", "calories_burned"],
        ),
        "workout_entries": (
            """CREATE TABLE workout_entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    workout_id INTEGER NOT NULL,
                    exercise TEXT NOT NULL,
                    sets INTEGER NOT NULL,
                    reps INTEGER,
                    duration_seconds INTEGER,
                    weight DOUBLE PRECISION,
                    notes TEXT NOT NULL,
                    order_index INTEGER NOT NULL,
                    FOREIGN KEY(workout_id) REFERENCES workouts(id)
                );""",
            [
                "id",
                "workout_id",
                "exercise",
                "sets",
                "reps",
                "duration_seconds",
                "weight",
                "notes",
                "order_index",
            ],
        ),
    }

    _INDEX_DEFINITIONS = [
        "CREATE INDEX IF NOT EXISTS idx_workout_entries_order "
        "ON workout_entries (workout_id, order_index);",
    ]

    # Values used for NOT NULL columns missing from an older table layout.
    _COLUMN_DEFAULTS = {
        "title": "''",
        "description": "''",
        "notes": "''",
        "duration_minutes": "0",
        "calories_burned": "0",
        "sets": "0",
        "order_index": "0",
    }

    def __init__(
        self,
        db_path: str = "workout.db",
        db_url: str | None = None,
        timeout: float = 5.0,
    ) -> None:
        self._db_url = db_url
        self._db_path = db_path
        self._timeout = timeout
        self._ensure_schema()

    @property
    def is_postgres(self) -> bool:
        return bool(self._db_url and self._db_url.startswith("postgresql"))

    def _sql(self, query: str) -> str:
        """Translate ``?`` placeholders for the active driver."""
        if self.is_postgres:
            return query.replace("?", "%s")
        return query

    def _connect(self):
        if self.is_postgres:
            import psycopg2

            return psycopg2.connect(
                self._db_url, connect_timeout=max(1, int(self._timeout))
            )
        connection = sqlite3.connect(self._db_path, timeout=self._timeout)
        connection.execute("PRAGMA foreign_keys=ON;")
        return connection

    @contextmanager
    def _connection(self):
        connection = self._connect()
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    @contextmanager
    def _transaction(self):
        """Run the body as one atomic unit.

        Commits on normal exit. Any exception, including cancellation and
        ``KeyboardInterrupt``, rolls back everything issued inside the block.
        """
        connection = self._connect()
        try:
            try:
                yield connection
            except BaseException:
                connection.rollback()
                raise
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            cursor = conn.cursor()
            if not self.is_postgres:
                cursor.execute("PRAGMA foreign_keys=off;")
                cursor.execute("PRAGMA legacy_alter_table=on;")
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(cursor, table, sql, columns)
            for sql in self._INDEX_DEFINITIONS:
                cursor.execute(sql)
            if not self.is_postgres:
                cursor.execute("PRAGMA legacy_alter_table=off;")
                cursor.execute("PRAGMA foreign_keys=on;")

    def _ensure_table(self, cursor, table: str, sql: str, columns: List[str]) -> None:
        if self.is_postgres:
            sql_pg = re.sub(
                r"INTEGER PRIMARY KEY AUTOINCREMENT",
                "SERIAL PRIMARY KEY",
                sql,
            )
            sql_pg = sql_pg.replace("CREATE TABLE", "CREATE TABLE IF NOT EXISTS")
            cursor.execute(sql_pg)
            return

        cursor.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cursor.fetchone() is None:
            cursor.execute(sql)
            return

        cursor.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cursor.fetchall()]
        if existing_cols == columns:
            return

        logger.info("Rebuilding table %s with columns %s", table, columns)
        cursor.execute(f"DROP TABLE IF EXISTS {table}_old;")
        cursor.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        cursor.execute(sql)

        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            missing = [c for c in columns if c not in existing_cols]
            if missing:
                defaults = ", ".join(
                    self._COLUMN_DEFAULTS.get(c, "NULL") for c in missing
                )
                cursor.execute(
                    f"INSERT INTO {table} ({cols}, {', '.join(missing)}) "
                    f"SELECT {cols}, {defaults} FROM {table}_old;"
                )
            else:
                cursor.execute(
                    f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;"
                )
        cursor.execute(f"DROP TABLE {table}_old;")


def _workout_from_row(row: Tuple) -> Workout:
    wid, title, description, duration, calories = row
    return Workout(
        id=wid,
        title=title,
        description=description,
        duration_minutes=duration,
        calories_burned=calories,
    )


def _entry_from_row(row: Tuple) -> WorkoutEntry:
    eid, exercise, sets, reps, duration_seconds, weight, notes, order_index = row
    return WorkoutEntry(
        id=eid,
        exercise=exercise,
        sets=sets,
        reps=reps,
        duration_seconds=duration_seconds,
        weight=weight,
        notes=notes,
        order_index=order_index,
    )


def _entry_params(entry: WorkoutEntry) -> Tuple:
    return (
        entry.exercise,
        entry.sets,
        entry.reps,
        entry.duration_seconds,
        entry.weight,
        entry.notes,
        entry.order_index,
    )


class WorkoutStore(Database):
    """Transactional persistence for workouts and their entries."""

    INSERT_WORKOUT = (
        "INSERT INTO workouts (title, description, duration_minutes, calories_burned) "
        "VALUES (?, ?, ?, ?);"
    )
    INSERT_ENTRY = (
        "INSERT INTO workout_entries (workout_id, exercise, sets, reps, duration_seconds, "
        "weight, notes, order_index) VALUES (?, ?, ?, ?, ?, ?, ?, ?);"
    )
    SELECT_WORKOUT = (
        "SELECT id, title, description, duration_minutes, calories_burned "
        "FROM workouts WHERE id = ?;"
    )
    SELECT_ENTRIES = (
        "SELECT id, exercise, sets, reps, duration_seconds, weight, notes, order_index "
        "FROM workout_entries WHERE workout_id = ? ORDER BY order_index, id;"
    )
    UPDATE_WORKOUT = (
        "UPDATE workouts SET title = ?, description = ?, duration_minutes = ?, "
        "calories_burned = ? WHERE id = ?;"
    )
    UPDATE_ENTRY = (
        "UPDATE workout_entries SET exercise = ?, sets = ?, reps = ?, duration_seconds = ?, "
        "weight = ?, notes = ?, order_index = ? WHERE id = ?;"
    )
    DELETE_ENTRIES_FOR_WORKOUT = "DELETE FROM workout_entries WHERE workout_id = ?;"
    DELETE_WORKOUT = "DELETE FROM workouts WHERE id = ?;"
    DELETE_ENTRY = "DELETE FROM workout_entries WHERE id = ?;"

    def _insert(self, cursor, query: str, params: Tuple) -> int:
        if self.is_postgres:
            cursor.execute(self._sql(query.rstrip(";") + " RETURNING id;"), params)
            return cursor.fetchone()[0]
        cursor.execute(query, params)
        return cursor.lastrowid

    def _execute(self, cursor, query: str, params: Tuple) -> int:
        cursor.execute(self._sql(query), params)
        return cursor.rowcount

    def ping(self) -> None:
        """Run a trivial query to verify the database is reachable."""
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1;")
            cursor.fetchone()

    def is_empty(self) -> bool:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT id FROM workouts LIMIT 1;")
            return cursor.fetchone() is None

    def create_workout(self, workout: Workout) -> Workout:
        """Insert ``workout`` and its entries as one unit.

        Returns a copy with the workout id and every entry id filled in;
        ``workout`` itself is not modified.
        """
        created = Workout.model_validate(workout.model_dump())
        try:
            with self._transaction() as conn:
                cursor = conn.cursor()
                created.id = self._insert(
                    cursor,
                    self.INSERT_WORKOUT,
                    (
                        created.title,
                        created.description,
                        created.duration_minutes,
                        created.calories_burned,
                    ),
                )
                for entry in created.entries:
                    entry.id = self._insert(
                        cursor, self.INSERT_ENTRY, (created.id, *_entry_params(entry))
                    )
        except Exception as e:
            logger.error("Failed to create workout %r: %s", workout.title, e)
            raise
        logger.info(
            "Created workout %s with %d entries", created.id, len(created.entries)
        )
        return created

    def get_workout_by_id(self, workout_id: int) -> Workout:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(self._sql(self.SELECT_WORKOUT), (workout_id,))
            row = cursor.fetchone()
            if row is None:
                logger.warning("Workout %s not found", workout_id)
                raise NotFoundError(f"workout {workout_id} not found")
            workout = _workout_from_row(row)
            cursor.execute(self._sql(self.SELECT_ENTRIES), (workout_id,))
            workout.entries = [_entry_from_row(r) for r in cursor.fetchall()]
        return workout

    def update_workout(self, workout: Workout) -> None:
        """Overwrite the header fields of ``workout``; entries are left alone."""
        with self._connection() as conn:
            changed = self._execute(
                conn.cursor(),
                self.UPDATE_WORKOUT,
                (
                    workout.title,
                    workout.description,
                    workout.duration_minutes,
                    workout.calories_burned,
                    workout.id,
                ),
            )
            if changed == 0:
                logger.warning("No workout %s to update", workout.id)
                raise NotFoundError(f"workout {workout.id} not found")
        logger.info("Updated workout %s", workout.id)

    def update_workout_entry(self, entry: WorkoutEntry) -> None:
        with self._connection() as conn:
            changed = self._execute(
                conn.cursor(), self.UPDATE_ENTRY, (*_entry_params(entry), entry.id)
            )
            if changed == 0:
                logger.warning("No workout entry %s to update", entry.id)
                raise NotFoundError(f"workout entry {entry.id} not found")
        logger.info("Updated workout entry %s", entry.id)

    def delete_workout(self, workout_id: int) -> None:
        """Delete a workout and all of its entries atomically.

        Entries go first because the foreign key from ``workout_entries``
        has no cascade.
        """
        try:
            with self._transaction() as conn:
                cursor = conn.cursor()
                removed = self._execute(
                    cursor, self.DELETE_ENTRIES_FOR_WORKOUT, (workout_id,)
                )
                if self._execute(cursor, self.DELETE_WORKOUT, (workout_id,)) == 0:
                    raise NotFoundError(f"workout {workout_id} not found")
        except NotFoundError:
            logger.warning("No workout %s to delete", workout_id)
            raise
        except Exception as e:
            logger.error("Failed to delete workout %s: %s", workout_id, e)
            raise
        logger.info("Deleted workout %s and %d entries", workout_id, removed)

    def delete_workout_entry_by_id(self, entry_id: int) -> None:
        with self._connection() as conn:
            if self._execute(conn.cursor(), self.DELETE_ENTRY, (entry_id,)) == 0:
                logger.warning("No workout entry %s to delete", entry_id)
                raise NotFoundError(f"workout entry {entry_id} not found")
        logger.info("Deleted workout entry %s", entry_id)


class AsyncDatabase(Database):
    """Provides asynchronous connection management over aiosqlite."""

    def __init__(self, db_path: str = "workout.db", timeout: float = 5.0) -> None:
        super().__init__(db_path, timeout=timeout)

    async def _async_connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self._db_path, timeout=self._timeout)
        await conn.execute("PRAGMA foreign_keys=ON;")
        return conn

    @asynccontextmanager
    async def _async_connection(self):
        conn = await self._async_connect()
        try:
            yield conn
            await conn.commit()
        finally:
            await conn.close()

    @asynccontextmanager
    async def _async_transaction(self):
        conn = await self._async_connect()
        try:
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            await conn.commit()
        finally:
            await conn.close()


class AsyncWorkoutStore(AsyncDatabase):
    """Async variant of WorkoutStore with the same transactional rules."""

    async def create_workout(self, workout: Workout) -> Workout:
        created = Workout.model_validate(workout.model_dump())
        try:
            async with self._async_transaction() as conn:
                cursor = await conn.execute(
                    WorkoutStore.INSERT_WORKOUT,
                    (
                        created.title,
                        created.description,
                        created.duration_minutes,
                        created.calories_burned,
                    ),
                )
                created.id = cursor.lastrowid
                for entry in created.entries:
                    cursor = await conn.execute(
                        WorkoutStore.INSERT_ENTRY, (created.id, *_entry_params(entry))
                    )
                    entry.id = cursor.lastrowid
        except Exception as e:
            logger.error("Failed to create workout %r: %s", workout.title, e)
            raise
        logger.info(
            "Created workout %s with %d entries", created.id, len(created.entries)
        )
        return created

    async def get_workout_by_id(self, workout_id: int) -> Workout:
        async with self._async_connection() as conn:
            cursor = await conn.execute(WorkoutStore.SELECT_WORKOUT, (workout_id,))
            row = await cursor.fetchone()
            if row is None:
                logger.warning("Workout %s not found", workout_id)
                raise NotFoundError(f"workout {workout_id} not found")
            workout = _workout_from_row(row)
            cursor = await conn.execute(WorkoutStore.SELECT_ENTRIES, (workout_id,))
            workout.entries = [_entry_from_row(r) for r in await cursor.fetchall()]
        return workout

    async def update_workout(self, workout: Workout) -> None:
        async with self._async_connection() as conn:
            cursor = await conn.execute(
                WorkoutStore.UPDATE_WORKOUT,
                (
                    workout.title,
                    workout.description,
                    workout.duration_minutes,
                    workout.calories_burned,
                    workout.id,
                ),
            )
            if cursor.rowcount == 0:
                logger.warning("No workout %s to update", workout.id)
                raise NotFoundError(f"workout {workout.id} not found")
        logger.info("Updated workout %s", workout.id)

    async def update_workout_entry(self, entry: WorkoutEntry) -> None:
        async with self._async_connection() as conn:
            cursor = await conn.execute(
                WorkoutStore.UPDATE_ENTRY, (*_entry_params(entry), entry.id)
            )
            if cursor.rowcount == 0:
                logger.warning("No workout entry %s to update", entry.id)
                raise NotFoundError(f"workout entry {entry.id} not found")
        logger.info("Updated workout entry %s", entry.id)

    async def delete_workout(self, workout_id: int) -> None:
        try:
            async with self._async_transaction() as conn:
                cursor = await conn.execute(
                    WorkoutStore.DELETE_ENTRIES_FOR_WORKOUT, (workout_id,)
                )
                removed = cursor.rowcount
                cursor = await conn.execute(WorkoutStore.DELETE_WORKOUT, (workout_id,))
                if cursor.rowcount == 0:
                    raise NotFoundError(f"workout {workout_id} not found")
        except NotFoundError:
            logger.warning("No workout %s to delete", workout_id)
            raise
        except Exception as e:
            logger.error("Failed to delete workout %s: %s", workout_id, e)
            raise
        logger.info("Deleted workout %s and %d entries", workout_id, removed)

    async def delete_workout_entry_by_id(self, entry_id: int) -> None:
        async with self._async_connection() as conn:
            cursor = await conn.execute(WorkoutStore.DELETE_ENTRY, (entry_id,))
            if cursor.rowcount == 0:
                logger.warning("No workout entry %s to delete", entry_id)
                raise NotFoundError(f"workout entry {entry_id} not found")
        logger.info("Deleted workout entry %s", entry_id)
