"""SQLite repository adapters.

Implements the four repository ports using SQLite with aiosqlite for async
access. All repositories share one SQLiteDatabase, which owns a small
connection pool and creates the schema on first use.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiosqlite

from teamboard.core.assignment import Assignment
from teamboard.core.errors import (
    AssignmentNotFoundError,
    AssignmentRepositoryFindManyByError,
    AssignmentRepositorySaveError,
    AssignmentRepositoryUpdateError,
    ParticipantNotFoundError,
    ParticipantRepositoryFindManyByError,
    ParticipantRepositorySaveError,
    ParticipantRepositoryUpdateError,
    TaskRepositoryFindByIdError,
    TaskRepositoryFindManyByError,
    TaskRepositorySaveError,
    TeamNotFoundError,
    TeamRepositoryCreateError,
    TeamRepositoryDeleteError,
    TeamRepositoryFindByIdError,
    TeamRepositoryListError,
    TeamRepositoryUpdateError,
)
from teamboard.core.participant import Participant, ParticipantRecord
from teamboard.core.ports import (
    AssignmentRepositoryPort,
    ParticipantRepositoryPort,
    TaskRepositoryPort,
    TeamRepositoryPort,
)
from teamboard.core.task import Task
from teamboard.core.team import Team

from .query import build_set_clause, build_where_clause, qmark_placeholder, to_db_value

logger = logging.getLogger(__name__)

TASK_COLUMNS = ("id", "title", "is_done")
PARTICIPANT_COLUMNS = ("id", "team_id", "name", "email", "enrollment_status")
PARTICIPANT_UPDATE_COLUMNS = ("name", "email", "enrollment_status")
ASSIGNMENT_COLUMNS = ("id", "task_id", "participant_id", "progress_status")
ASSIGNMENT_UPDATE_COLUMNS = ("task_id", "participant_id", "progress_status")


class SQLiteDatabase:
    """SQLite file with connection pooling, shared by the SQLite repositories."""

    def __init__(self, db_path: str, pool_size: int = 5):
        """Initialize SQLite database with connection pooling.

        Args:
            db_path: Path to SQLite database file.
            pool_size: Number of connections to maintain in the pool.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._pool: list[aiosqlite.Connection] = []
        self._pool_lock = asyncio.Lock()
        self._schema_lock = asyncio.Lock()
        self._pool_size = pool_size
        self._schema_initialized = False

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a connection from the pool or create a new one."""
        async with self._pool_lock:
            if self._pool:
                return self._pool.pop()
        conn = await aiosqlite.connect(str(self.db_path))
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA foreign_keys = ON")
        return conn

    async def _return_connection(self, conn: aiosqlite.Connection) -> None:
        """Return a connection to the pool."""
        async with self._pool_lock:
            if len(self._pool) < self._pool_size:
                self._pool.append(conn)
                return
        await conn.close()

    async def close_pool(self) -> None:
        """Close all pooled connections."""
        async with self._pool_lock:
            for conn in self._pool:
                await conn.close()
            self._pool.clear()

    async def _init_schema(self) -> None:
        """Create tables and indexes on first use.

        Only runs once per instance. Subsequent calls are no-ops.
        """
        if self._schema_initialized:
            return

        async with self._schema_lock:
            if self._schema_initialized:
                return

            conn = await self._get_connection()
            try:
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS teams (
                        id TEXT PRIMARY KEY,
                        name TEXT NOT NULL
                    )
                    """
                )
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS participants (
                        id TEXT PRIMARY KEY,
                        team_id TEXT REFERENCES teams(id),
                        position INTEGER,
                        name TEXT NOT NULL,
                        email TEXT NOT NULL,
                        enrollment_status TEXT NOT NULL
                    )
                    """
                )
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS tasks (
                        id TEXT PRIMARY KEY,
                        title TEXT NOT NULL,
                        is_done INTEGER NOT NULL DEFAULT 0
                    )
                    """
                )
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS assignments (
                        id TEXT PRIMARY KEY,
                        task_id TEXT NOT NULL,
                        participant_id TEXT NOT NULL,
                        progress_status TEXT NOT NULL,
                        UNIQUE (task_id, participant_id)
                    )
                    """
                )
                await conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_participants_team_id "
                    "ON participants(team_id)"
                )
                await conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_assignments_participant_id "
                    "ON assignments(participant_id)"
                )
                await conn.commit()
                self._schema_initialized = True
            finally:
                await self._return_connection(conn)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a pooled connection with the schema in place."""
        await self._init_schema()
        conn = await self._get_connection()
        try:
            yield conn
        finally:
            await self._return_connection(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a connection and commit on success, roll back on error."""
        async with self.connection() as conn:
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            await conn.commit()


def _participant_rows_to_records(rows: Sequence[Mapping[str, Any]]) -> list[ParticipantRecord]:
    return [
        ParticipantRecord(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            enrollment_status=row["enrollment_status"],
        )
        for row in rows
    ]


# ============================================================================
# TEAM
# ============================================================================


class SQLiteTeamRepository(TeamRepositoryPort):
    """Team aggregates stored as one ``teams`` row plus ``participants`` rows."""

    def __init__(self, database: SQLiteDatabase):
        self.database = database

    async def list(self) -> list[Team]:
        try:
            async with self.database.connection() as conn:
                cursor = await conn.execute("SELECT id, name FROM teams ORDER BY id")
                team_rows = await cursor.fetchall()
                cursor = await conn.execute(
                    """
                    SELECT * FROM participants
                    WHERE team_id IS NOT NULL
                    ORDER BY team_id, position, id
                    """
                )
                participant_rows = await cursor.fetchall()

            members: dict[str, list[Mapping[str, Any]]] = {}
            for row in participant_rows:
                members.setdefault(row["team_id"], []).append(row)

            return [
                self._rows_to_team(row, members.get(row["id"], []))
                for row in team_rows
            ]
        except Exception as e:
            logger.error(f"Failed to list teams: {e}", exc_info=True)
            raise TeamRepositoryListError(str(e)) from e

    async def find_by_id(self, team_id: str) -> Team:
        try:
            async with self.database.connection() as conn:
                cursor = await conn.execute(
                    "SELECT id, name FROM teams WHERE id = ?", (to_db_value(team_id),)
                )
                team_row = await cursor.fetchone()
                if team_row is None:
                    raise TeamNotFoundError()
                participant_rows = await self._fetch_members(conn, team_row["id"])
            return self._rows_to_team(team_row, participant_rows)
        except TeamNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Failed to load team {team_id}: {e}", exc_info=True)
            raise TeamRepositoryFindByIdError(str(e)) from e

    async def create(self, team: Team) -> Team:
        try:
            async with self.database.transaction() as conn:
                await conn.execute(
                    "INSERT INTO teams (id, name) VALUES (?, ?)",
                    (str(team.id), str(team.name)),
                )
                await self._insert_members(conn, str(team.id), team.participants.to_records())
                cursor = await conn.execute(
                    "SELECT id, name FROM teams WHERE id = ?", (str(team.id),)
                )
                team_row = await cursor.fetchone()
                participant_rows = await self._fetch_members(conn, str(team.id))
                return self._rows_to_team(team_row, participant_rows)
        except Exception as e:
            logger.error(f"Failed to create team {team.id}: {e}", exc_info=True)
            raise TeamRepositoryCreateError(str(e)) from e

    async def update(
        self,
        team_id: str,
        name: str | None = None,
        participants: Sequence[Mapping[str, Any]] | None = None,
    ) -> Team:
        try:
            async with self.database.transaction() as conn:
                cursor = await conn.execute(
                    "UPDATE teams SET name = COALESCE(?, name) WHERE id = ?",
                    (to_db_value(name), to_db_value(team_id)),
                )
                if cursor.rowcount == 0:
                    raise TeamNotFoundError()

                if participants is not None:
                    await conn.execute(
                        "DELETE FROM participants WHERE team_id = ?", (to_db_value(team_id),)
                    )
                    await self._insert_members(conn, to_db_value(team_id), participants)

                cursor = await conn.execute(
                    "SELECT id, name FROM teams WHERE id = ?", (to_db_value(team_id),)
                )
                team_row = await cursor.fetchone()
                participant_rows = await self._fetch_members(conn, team_row["id"])
                return self._rows_to_team(team_row, participant_rows)
        except TeamNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Failed to update team {team_id}: {e}", exc_info=True)
            raise TeamRepositoryUpdateError(str(e)) from e

    async def delete(self, team_id: str) -> None:
        try:
            async with self.database.transaction() as conn:
                await conn.execute(
                    "DELETE FROM participants WHERE team_id = ?", (to_db_value(team_id),)
                )
                cursor = await conn.execute(
                    "DELETE FROM teams WHERE id = ?", (to_db_value(team_id),)
                )
                if cursor.rowcount == 0:
                    raise TeamNotFoundError()
        except TeamNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Failed to delete team {team_id}: {e}", exc_info=True)
            raise TeamRepositoryDeleteError(str(e)) from e

    @staticmethod
    async def _fetch_members(conn: aiosqlite.Connection, team_id: str) -> Sequence[aiosqlite.Row]:
        cursor = await conn.execute(
            "SELECT * FROM participants WHERE team_id = ? ORDER BY position, id",
            (team_id,),
        )
        return list(await cursor.fetchall())

    @staticmethod
    async def _insert_members(
        conn: aiosqlite.Connection,
        team_id: str,
        participants: Sequence[Mapping[str, Any]],
    ) -> None:
        await conn.executemany(
            """
            INSERT INTO participants (id, team_id, position, name, email, enrollment_status)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    to_db_value(row["id"]),
                    team_id,
                    position,
                    to_db_value(row["name"]),
                    to_db_value(row["email"]),
                    to_db_value(row["enrollment_status"]),
                )
                for position, row in enumerate(participants)
            ],
        )

    @staticmethod
    def _rows_to_team(
        team_row: Mapping[str, Any], participant_rows: Sequence[Mapping[str, Any]]
    ) -> Team:
        return Team.reconstruct(
            id=team_row["id"],
            name=team_row["name"],
            participants=_participant_rows_to_records(participant_rows),
        )


# ============================================================================
# TASK
# ============================================================================


class SQLiteTaskRepository(TaskRepositoryPort):
    def __init__(self, database: SQLiteDatabase):
        self.database = database

    async def save(self, task: Task) -> Task:
        try:
            async with self.database.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO tasks (id, title, is_done) VALUES (?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        title = excluded.title,
                        is_done = excluded.is_done
                    """,
                    (str(task.id), str(task.title), int(task.is_done)),
                )
                cursor = await conn.execute(
                    "SELECT id, title, is_done FROM tasks WHERE id = ?", (str(task.id),)
                )
                row = await cursor.fetchone()
            return self._row_to_task(row)
        except Exception as e:
            logger.error(f"Failed to save task {task.id}: {e}", exc_info=True)
            raise TaskRepositorySaveError(str(e)) from e

    async def find_by_id(self, task_id: str) -> Task | None:
        try:
            async with self.database.connection() as conn:
                cursor = await conn.execute(
                    "SELECT id, title, is_done FROM tasks WHERE id = ?",
                    (to_db_value(task_id),),
                )
                row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_task(row)
        except Exception as e:
            logger.error(f"Failed to load task {task_id}: {e}", exc_info=True)
            raise TaskRepositoryFindByIdError(str(e)) from e

    async def find_many_by(self, **filters: Any) -> list[Task]:
        try:
            where, params = build_where_clause(filters, TASK_COLUMNS, qmark_placeholder)
            async with self.database.connection() as conn:
                cursor = await conn.execute(
                    f"SELECT id, title, is_done FROM tasks{where} ORDER BY id", params
                )
                rows = await cursor.fetchall()
            return [self._row_to_task(row) for row in rows]
        except Exception as e:
            logger.error(f"Failed to query tasks {filters}: {e}", exc_info=True)
            raise TaskRepositoryFindManyByError(str(e)) from e

    @staticmethod
    def _row_to_task(row: Mapping[str, Any]) -> Task:
        # SQLite has no boolean type; is_done comes back as 0/1
        return Task.reconstruct(
            id=row["id"], title=row["title"], is_done=bool(row["is_done"])
        )


# ============================================================================
# PARTICIPANT
# ============================================================================


class SQLiteParticipantRepository(ParticipantRepositoryPort):
    def __init__(self, database: SQLiteDatabase):
        self.database = database

    async def save(self, participant: Participant) -> Participant:
        """Upsert a participant. Team membership is managed by the team repository."""
        try:
            async with self.database.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO participants (id, name, email, enrollment_status)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        name = excluded.name,
                        email = excluded.email,
                        enrollment_status = excluded.enrollment_status
                    """,
                    (
                        str(participant.id),
                        str(participant.name),
                        str(participant.email),
                        participant.enrollment_status.value,
                    ),
                )
                row = await self._fetch_one(conn, str(participant.id))
            return self._row_to_participant(row)
        except Exception as e:
            logger.error(f"Failed to save participant {participant.id}: {e}", exc_info=True)
            raise ParticipantRepositorySaveError(str(e)) from e

    async def find_many_by(self, **filters: Any) -> list[Participant]:
        try:
            where, params = build_where_clause(
                filters, PARTICIPANT_COLUMNS, qmark_placeholder
            )
            async with self.database.connection() as conn:
                cursor = await conn.execute(
                    f"SELECT * FROM participants{where} ORDER BY id", params
                )
                rows = await cursor.fetchall()
            return [self._row_to_participant(row) for row in rows]
        except Exception as e:
            logger.error(f"Failed to query participants {filters}: {e}", exc_info=True)
            raise ParticipantRepositoryFindManyByError(str(e)) from e

    async def update(self, participant_id: str, **fields: Any) -> Participant:
        try:
            assignments, params = build_set_clause(
                fields, PARTICIPANT_UPDATE_COLUMNS, qmark_placeholder
            )
            async with self.database.transaction() as conn:
                cursor = await conn.execute(
                    f"UPDATE participants SET {assignments} WHERE id = ?",
                    (*params, to_db_value(participant_id)),
                )
                if cursor.rowcount == 0:
                    raise ParticipantNotFoundError()
                row = await self._fetch_one(conn, to_db_value(participant_id))
                return self._row_to_participant(row)
        except ParticipantNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Failed to update participant {participant_id}: {e}", exc_info=True)
            raise ParticipantRepositoryUpdateError(str(e)) from e

    @staticmethod
    async def _fetch_one(conn: aiosqlite.Connection, participant_id: str) -> aiosqlite.Row:
        cursor = await conn.execute(
            "SELECT * FROM participants WHERE id = ?", (participant_id,)
        )
        return await cursor.fetchone()

    @staticmethod
    def _row_to_participant(row: Mapping[str, Any]) -> Participant:
        return Participant.reconstruct(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            enrollment_status=row["enrollment_status"],
        )


# ============================================================================
# ASSIGNMENT
# ============================================================================


class SQLiteAssignmentRepository(AssignmentRepositoryPort):
    def __init__(self, database: SQLiteDatabase):
        self.database = database

    async def save(self, assignment: Assignment) -> Assignment:
        try:
            async with self.database.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO assignments (id, task_id, participant_id, progress_status)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        task_id = excluded.task_id,
                        participant_id = excluded.participant_id,
                        progress_status = excluded.progress_status
                    """,
                    (
                        str(assignment.id),
                        str(assignment.task_id),
                        str(assignment.participant_id),
                        assignment.progress_status.value,
                    ),
                )
                row = await self._fetch_one(conn, str(assignment.id))
            return self._row_to_assignment(row)
        except Exception as e:
            logger.error(f"Failed to save assignment {assignment.id}: {e}", exc_info=True)
            raise AssignmentRepositorySaveError(str(e)) from e

    async def find_many_by(self, **filters: Any) -> list[Assignment]:
        try:
            where, params = build_where_clause(
                filters, ASSIGNMENT_COLUMNS, qmark_placeholder
            )
            async with self.database.connection() as conn:
                cursor = await conn.execute(
                    f"SELECT * FROM assignments{where} ORDER BY id", params
                )
                rows = await cursor.fetchall()
            return [self._row_to_assignment(row) for row in rows]
        except Exception as e:
            logger.error(f"Failed to query assignments {filters}: {e}", exc_info=True)
            raise AssignmentRepositoryFindManyByError(str(e)) from e

    async def update(self, assignment_id: str, **fields: Any) -> Assignment:
        try:
            assignments, params = build_set_clause(
                fields, ASSIGNMENT_UPDATE_COLUMNS, qmark_placeholder
            )
            async with self.database.transaction() as conn:
                cursor = await conn.execute(
                    f"UPDATE assignments SET {assignments} WHERE id = ?",
                    (*params, to_db_value(assignment_id)),
                )
                if cursor.rowcount == 0:
                    raise AssignmentNotFoundError()
                row = await self._fetch_one(conn, to_db_value(assignment_id))
                return self._row_to_assignment(row)
        except AssignmentNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Failed to update assignment {assignment_id}: {e}", exc_info=True)
            raise AssignmentRepositoryUpdateError(str(e)) from e

    @staticmethod
    async def _fetch_one(conn: aiosqlite.Connection, assignment_id: str) -> aiosqlite.Row:
        cursor = await conn.execute(
            "SELECT * FROM assignments WHERE id = ?", (assignment_id,)
        )
        return await cursor.fetchone()

    @staticmethod
    def _row_to_assignment(row: Mapping[str, Any]) -> Assignment:
        return Assignment.reconstruct(
            id=row["id"],
            task_id=row["task_id"],
            participant_id=row["participant_id"],
            progress_status=row["progress_status"],
        )
