"""PostgreSQL repository adapters.

Implements the four repository ports on top of a shared asyncpg connection
pool. Team writes touch the team row and its participant rows inside a
single transaction, so a failure part-way through leaves nothing behind.
"""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any

import asyncpg

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

from .query import build_set_clause, build_where_clause, dollar_placeholder, to_db_value

logger = logging.getLogger(__name__)

TASK_COLUMNS = ("id", "title", "is_done")
PARTICIPANT_COLUMNS = ("id", "team_id", "name", "email", "enrollment_status")
PARTICIPANT_UPDATE_COLUMNS = ("name", "email", "enrollment_status")
ASSIGNMENT_COLUMNS = ("id", "task_id", "participant_id", "progress_status")
ASSIGNMENT_UPDATE_COLUMNS = ("task_id", "participant_id", "progress_status")


class PostgreSQLDatabase:
    """Connection pool and schema shared by the PostgreSQL repositories."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "teamboard",
        user: str = "teamboard",
        password: str = "",
        pool_size: int = 10,
    ):
        """Initialize the database handle. No connection is opened yet.

        Args:
            host: PostgreSQL server hostname.
            port: PostgreSQL server port.
            database: Database name.
            user: Database user.
            password: Database password.
            pool_size: Number of connections to maintain in the pool.
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self._pool: asyncpg.Pool | None = None
        self._pool_size = pool_size
        self._schema_lock = asyncio.Lock()
        self._schema_initialized = False

    async def _init_pool(self) -> None:
        """Initialize the connection pool on first use."""
        if self._pool is not None:
            return

        self._pool = await asyncpg.create_pool(
            host=self.host,
            port=self.port,
            database=self.database,
            user=self.user,
            password=self.password,
            min_size=1,
            max_size=self._pool_size,
        )

    async def close_pool(self) -> None:
        """Close all pooled connections."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def _init_schema(self) -> None:
        """Create tables and indexes on first use.

        Only runs once per instance. Subsequent calls are no-ops.
        """
        if self._schema_initialized:
            return

        async with self._schema_lock:
            if self._schema_initialized:
                return

            await self._init_pool()
            assert self._pool is not None

            async with self._pool.acquire() as conn:
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
                        is_done BOOLEAN NOT NULL DEFAULT FALSE
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

                self._schema_initialized = True

    async def pool(self) -> asyncpg.Pool:
        """Return the ready pool, creating it and the schema if needed."""
        await self._init_schema()
        await self._init_pool()
        assert self._pool is not None
        return self._pool


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


class PostgreSQLTeamRepository(TeamRepositoryPort):
    """Team aggregates stored as one ``teams`` row plus ``participants`` rows."""

    def __init__(self, database: PostgreSQLDatabase):
        self.database = database

    async def list(self) -> list[Team]:
        try:
            pool = await self.database.pool()
            async with pool.acquire() as conn:
                team_rows = await conn.fetch("SELECT id, name FROM teams ORDER BY id")
                participant_rows = await conn.fetch(
                    """
                    SELECT * FROM participants
                    WHERE team_id IS NOT NULL
                    ORDER BY team_id, position, id
                    """
                )
        except Exception as e:
            logger.error(f"Failed to list teams: {e}", exc_info=True)
            raise TeamRepositoryListError(str(e)) from e

        members: dict[str, list[Mapping[str, Any]]] = {}
        for row in participant_rows:
            members.setdefault(row["team_id"], []).append(row)

        try:
            return [
                self._rows_to_team(row, members.get(row["id"], []))
                for row in team_rows
            ]
        except Exception as e:
            logger.error(f"Stored team failed validation: {e}", exc_info=True)
            raise TeamRepositoryListError(str(e)) from e

    async def find_by_id(self, team_id: str) -> Team:
        try:
            pool = await self.database.pool()
            async with pool.acquire() as conn:
                team_row = await conn.fetchrow(
                    "SELECT id, name FROM teams WHERE id = $1", to_db_value(team_id)
                )
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
            pool = await self.database.pool()
            async with pool.acquire() as conn:
                async with conn.transaction():
                    await conn.execute(
                        "INSERT INTO teams (id, name) VALUES ($1, $2)",
                        str(team.id),
                        str(team.name),
                    )
                    await self._insert_members(conn, str(team.id), team.participants.to_records())
                    team_row = await conn.fetchrow(
                        "SELECT id, name FROM teams WHERE id = $1", str(team.id)
                    )
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
            pool = await self.database.pool()
            async with pool.acquire() as conn:
                async with conn.transaction():
                    team_row = await conn.fetchrow(
                        """
                        UPDATE teams SET name = COALESCE($2, name)
                        WHERE id = $1
                        RETURNING id, name
                        """,
                        to_db_value(team_id),
                        to_db_value(name),
                    )
                    if team_row is None:
                        raise TeamNotFoundError()

                    if participants is not None:
                        await conn.execute(
                            "DELETE FROM participants WHERE team_id = $1", team_row["id"]
                        )
                        await self._insert_members(conn, team_row["id"], participants)

                    participant_rows = await self._fetch_members(conn, team_row["id"])
                    return self._rows_to_team(team_row, participant_rows)
        except TeamNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Failed to update team {team_id}: {e}", exc_info=True)
            raise TeamRepositoryUpdateError(str(e)) from e

    async def delete(self, team_id: str) -> None:
        try:
            pool = await self.database.pool()
            async with pool.acquire() as conn:
                async with conn.transaction():
                    await conn.execute(
                        "DELETE FROM participants WHERE team_id = $1", to_db_value(team_id)
                    )
                    deleted = await conn.fetchrow(
                        "DELETE FROM teams WHERE id = $1 RETURNING id", to_db_value(team_id)
                    )
                    if deleted is None:
                        raise TeamNotFoundError()
        except TeamNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Failed to delete team {team_id}: {e}", exc_info=True)
            raise TeamRepositoryDeleteError(str(e)) from e

    @staticmethod
    async def _fetch_members(conn: asyncpg.Connection, team_id: str) -> Sequence[asyncpg.Record]:
        return await conn.fetch(
            "SELECT * FROM participants WHERE team_id = $1 ORDER BY position, id",
            team_id,
        )

    @staticmethod
    async def _insert_members(
        conn: asyncpg.Connection,
        team_id: str,
        participants: Sequence[Mapping[str, Any]],
    ) -> None:
        await conn.executemany(
            """
            INSERT INTO participants (id, team_id, position, name, email, enrollment_status)
            VALUES ($1, $2, $3, $4, $5, $6)
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
        """Rebuild a Team, applying every domain rule to the stored data.

        Raises:
            ValidationError: If the stored rows violate a team invariant.
        """
        return Team.reconstruct(
            id=team_row["id"],
            name=team_row["name"],
            participants=_participant_rows_to_records(participant_rows),
        )


# ============================================================================
# TASK
# ============================================================================


class PostgreSQLTaskRepository(TaskRepositoryPort):
    def __init__(self, database: PostgreSQLDatabase):
        self.database = database

    async def save(self, task: Task) -> Task:
        try:
            pool = await self.database.pool()
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    INSERT INTO tasks (id, title, is_done)
                    VALUES ($1, $2, $3)
                    ON CONFLICT (id) DO UPDATE SET
                        title = $2,
                        is_done = $3
                    RETURNING id, title, is_done
                    """,
                    str(task.id),
                    str(task.title),
                    bool(task.is_done),
                )
            return self._row_to_task(row)
        except Exception as e:
            logger.error(f"Failed to save task {task.id}: {e}", exc_info=True)
            raise TaskRepositorySaveError(str(e)) from e

    async def find_by_id(self, task_id: str) -> Task | None:
        try:
            pool = await self.database.pool()
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    "SELECT id, title, is_done FROM tasks WHERE id = $1",
                    to_db_value(task_id),
                )
            if row is None:
                return None
            return self._row_to_task(row)
        except Exception as e:
            logger.error(f"Failed to load task {task_id}: {e}", exc_info=True)
            raise TaskRepositoryFindByIdError(str(e)) from e

    async def find_many_by(self, **filters: Any) -> list[Task]:
        try:
            where, params = build_where_clause(filters, TASK_COLUMNS, dollar_placeholder)
            pool = await self.database.pool()
            async with pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT id, title, is_done FROM tasks{where} ORDER BY id", *params
                )
            return [self._row_to_task(row) for row in rows]
        except Exception as e:
            logger.error(f"Failed to query tasks {filters}: {e}", exc_info=True)
            raise TaskRepositoryFindManyByError(str(e)) from e

    @staticmethod
    def _row_to_task(row: Mapping[str, Any]) -> Task:
        return Task.reconstruct(id=row["id"], title=row["title"], is_done=row["is_done"])


# ============================================================================
# PARTICIPANT
# ============================================================================


class PostgreSQLParticipantRepository(ParticipantRepositoryPort):
    def __init__(self, database: PostgreSQLDatabase):
        self.database = database

    async def save(self, participant: Participant) -> Participant:
        """Upsert a participant. Team membership is managed by the team repository."""
        try:
            pool = await self.database.pool()
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    INSERT INTO participants (id, name, email, enrollment_status)
                    VALUES ($1, $2, $3, $4)
                    ON CONFLICT (id) DO UPDATE SET
                        name = $2,
                        email = $3,
                        enrollment_status = $4
                    RETURNING *
                    """,
                    str(participant.id),
                    str(participant.name),
                    str(participant.email),
                    participant.enrollment_status.value,
                )
            return self._row_to_participant(row)
        except Exception as e:
            logger.error(f"Failed to save participant {participant.id}: {e}", exc_info=True)
            raise ParticipantRepositorySaveError(str(e)) from e

    async def find_many_by(self, **filters: Any) -> list[Participant]:
        try:
            where, params = build_where_clause(
                filters, PARTICIPANT_COLUMNS, dollar_placeholder
            )
            pool = await self.database.pool()
            async with pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT * FROM participants{where} ORDER BY id", *params
                )
            return [self._row_to_participant(row) for row in rows]
        except Exception as e:
            logger.error(f"Failed to query participants {filters}: {e}", exc_info=True)
            raise ParticipantRepositoryFindManyByError(str(e)) from e

    async def update(self, participant_id: str, **fields: Any) -> Participant:
        try:
            assignments, params = build_set_clause(
                fields, PARTICIPANT_UPDATE_COLUMNS, dollar_placeholder, first_index=2
            )
            pool = await self.database.pool()
            async with pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(
                        f"UPDATE participants SET {assignments} WHERE id = $1 RETURNING *",
                        to_db_value(participant_id),
                        *params,
                    )
                    if row is None:
                        raise ParticipantNotFoundError()
                    return self._row_to_participant(row)
        except ParticipantNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Failed to update participant {participant_id}: {e}", exc_info=True)
            raise ParticipantRepositoryUpdateError(str(e)) from e

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


class PostgreSQLAssignmentRepository(AssignmentRepositoryPort):
    def __init__(self, database: PostgreSQLDatabase):
        self.database = database

    async def save(self, assignment: Assignment) -> Assignment:
        try:
            pool = await self.database.pool()
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    INSERT INTO assignments (id, task_id, participant_id, progress_status)
                    VALUES ($1, $2, $3, $4)
                    ON CONFLICT (id) DO UPDATE SET
                        task_id = $2,
                        participant_id = $3,
                        progress_status = $4
                    RETURNING *
                    """,
                    str(assignment.id),
                    str(assignment.task_id),
                    str(assignment.participant_id),
                    assignment.progress_status.value,
                )
            return self._row_to_assignment(row)
        except Exception as e:
            logger.error(f"Failed to save assignment {assignment.id}: {e}", exc_info=True)
            raise AssignmentRepositorySaveError(str(e)) from e

    async def find_many_by(self, **filters: Any) -> list[Assignment]:
        try:
            where, params = build_where_clause(
                filters, ASSIGNMENT_COLUMNS, dollar_placeholder
            )
            pool = await self.database.pool()
            async with pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT * FROM assignments{where} ORDER BY id", *params
                )
            return [self._row_to_assignment(row) for row in rows]
        except Exception as e:
            logger.error(f"Failed to query assignments {filters}: {e}", exc_info=True)
            raise AssignmentRepositoryFindManyByError(str(e)) from e

    async def update(self, assignment_id: str, **fields: Any) -> Assignment:
        try:
            assignments, params = build_set_clause(
                fields, ASSIGNMENT_UPDATE_COLUMNS, dollar_placeholder, first_index=2
            )
            pool = await self.database.pool()
            async with pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(
                        f"UPDATE assignments SET {assignments} WHERE id = $1 RETURNING *",
                        to_db_value(assignment_id),
                        *params,
                    )
                    if row is None:
                        raise AssignmentNotFoundError()
                    return self._row_to_assignment(row)
        except AssignmentNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Failed to update assignment {assignment_id}: {e}", exc_info=True)
            raise AssignmentRepositoryUpdateError(str(e)) from e

    @staticmethod
    def _row_to_assignment(row: Mapping[str, Any]) -> Assignment:
        return Assignment.reconstruct(
            id=row["id"],
            task_id=row["task_id"],
            participant_id=row["participant_id"],
            progress_status=row["progress_status"],
        )
