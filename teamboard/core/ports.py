"""Port interfaces for the teamboard backend.

These abstract base classes define the boundaries between the core domain
and the storage adapters. Implementations live in the adapters/ package.

All ports are **driven ports** (the use cases call out to them):
   - TeamRepositoryPort: Team aggregates together with their participants
   - TaskRepositoryPort: Task aggregates
   - ParticipantRepositoryPort: Individual participant rows
   - AssignmentRepositoryPort: Task-to-participant assignments

Every method raises a subclass of the matching RepositoryError family on
failure. Infrastructure exceptions never cross the port boundary raw.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from .assignment import Assignment
from .participant import Participant
from .task import Task
from .team import Team


# ============================================================================
# TEAM
# ============================================================================


class TeamRepositoryPort(ABC):
    """Port for persisting Team aggregates.

    A team and its participant rows are written together. Implementations
    must wrap create, update and delete in a single transaction so the team
    row and its participants never diverge.

    Teams read back are rebuilt through ``Team.reconstruct`` and therefore
    pass the same invariants as newly created teams.
    """

    @abstractmethod
    async def list(self) -> list[Team]:
        """Return every team, ordered by id.

        Raises:
            TeamRepositoryListError: If the query or rehydration fails.
        """

    @abstractmethod
    async def find_by_id(self, team_id: str) -> Team:
        """Return one team.

        Raises:
            TeamNotFoundError: If no team has this id.
            TeamRepositoryFindByIdError: If the query or rehydration fails.
        """

    @abstractmethod
    async def create(self, team: Team) -> Team:
        """Insert a new team and its participants.

        Raises:
            TeamRepositoryCreateError: If either insert fails. Nothing is
                written in that case.
        """

    @abstractmethod
    async def update(
        self,
        team_id: str,
        name: str | None = None,
        participants: Sequence[Mapping[str, Any]] | None = None,
    ) -> Team:
        """Partially update a team.

        Args:
            team_id: Team to update.
            name: New team name, or None to keep the current one.
            participants: Full replacement participant rows (each with an
                ``id``), or None to keep the current members.

        Returns:
            The team as stored after the update.

        Raises:
            TeamNotFoundError: If no team has this id.
            TeamRepositoryUpdateError: If the write or rehydration fails.
        """

    @abstractmethod
    async def delete(self, team_id: str) -> None:
        """Delete a team and its participant rows.

        Raises:
            TeamNotFoundError: If no team has this id.
            TeamRepositoryDeleteError: If the delete fails.
        """


# ============================================================================
# TASK
# ============================================================================


class TaskRepositoryPort(ABC):
    """Port for persisting Task aggregates."""

    @abstractmethod
    async def save(self, task: Task) -> Task:
        """Insert or replace a task by id.

        Raises:
            TaskRepositorySaveError: If the write fails.
        """

    @abstractmethod
    async def find_by_id(self, task_id: str) -> Task | None:
        """Return a task, or None if no task has this id.

        Raises:
            TaskRepositoryFindByIdError: If the query or rehydration fails.
        """

    @abstractmethod
    async def find_many_by(self, **filters: Any) -> list[Task]:
        """Return tasks matching every given field.

        Supported filters: ``id``, ``title``, ``is_done``. Filters set to
        None are ignored; with no filters every task is returned.

        Raises:
            TaskRepositoryFindManyByError: On unknown filter names or query
                failure.
        """


# ============================================================================
# PARTICIPANT
# ============================================================================


class ParticipantRepositoryPort(ABC):
    """Port for participant rows, independent of their team."""

    @abstractmethod
    async def save(self, participant: Participant) -> Participant:
        """Insert or replace a participant by id.

        Raises:
            ParticipantRepositorySaveError: If the write fails.
        """

    @abstractmethod
    async def find_many_by(self, **filters: Any) -> list[Participant]:
        """Return participants matching every given field.

        Supported filters: ``id``, ``name``, ``email``, ``enrollment_status``,
        ``team_id``.

        Raises:
            ParticipantRepositoryFindManyByError: On unknown filter names or
                query failure.
        """

    @abstractmethod
    async def update(self, participant_id: str, **fields: Any) -> Participant:
        """Update the given fields and return the stored participant.

        Raises:
            ParticipantNotFoundError: If no participant has this id.
            ParticipantRepositoryUpdateError: If the write fails or the
                resulting row is invalid.
        """


# ============================================================================
# ASSIGNMENT
# ============================================================================


class AssignmentRepositoryPort(ABC):
    """Port for task assignments.

    Implementations must reject a second assignment for the same
    (task_id, participant_id) pair.
    """

    @abstractmethod
    async def save(self, assignment: Assignment) -> Assignment:
        """Insert or replace an assignment by id.

        Raises:
            AssignmentRepositorySaveError: If the write fails, including a
                duplicate (task_id, participant_id) pair.
        """

    @abstractmethod
    async def find_many_by(self, **filters: Any) -> list[Assignment]:
        """Return assignments matching every given field.

        Supported filters: ``id``, ``task_id``, ``participant_id``,
        ``progress_status``.

        Raises:
            AssignmentRepositoryFindManyByError: On unknown filter names or
                query failure.
        """

    @abstractmethod
    async def update(self, assignment_id: str, **fields: Any) -> Assignment:
        """Update the given fields and return the stored assignment.

        Raises:
            AssignmentNotFoundError: If no assignment has this id.
            AssignmentRepositoryUpdateError: If the write fails or the
                resulting row is invalid.
        """
