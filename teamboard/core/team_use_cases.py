"""Team use cases: create, read, update and delete teams.

Each use case wraps a single TeamRepositoryPort call plus at most one domain
operation. Domain and repository failures are re-raised as the use case's
own error type, whose message keeps the original text behind a
``"<ErrorClassName>: "`` prefix. Results are plain TeamPayload dicts.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from .errors import NotFoundUseCaseError, TeamboardError, TeamNotFoundError, UseCaseError
from .ports import TeamRepositoryPort
from .team import Team, TeamPayload, build_team_participants
from .value_objects import create_team_name, parse_id

logger = logging.getLogger(__name__)


class CreateTeamUseCaseError(UseCaseError):
    pass


class FindTeamByIdUseCaseError(UseCaseError):
    pass


class FindTeamByIdUseCaseNotFoundError(FindTeamByIdUseCaseError, NotFoundUseCaseError):
    pass


class FindManyTeamsUseCaseError(UseCaseError):
    pass


class UpdateTeamUseCaseError(UseCaseError):
    pass


class UpdateTeamUseCaseNotFoundError(UpdateTeamUseCaseError, NotFoundUseCaseError):
    pass


class DeleteTeamUseCaseError(UseCaseError):
    pass


class DeleteTeamUseCaseNotFoundError(DeleteTeamUseCaseError, NotFoundUseCaseError):
    pass


class CreateTeamUseCase:
    """Validate a new team and store it with its participants."""

    def __init__(self, team_repository: TeamRepositoryPort):
        self.team_repository = team_repository

    async def execute(
        self, name: str, participants: Sequence[Mapping[str, Any]]
    ) -> TeamPayload:
        """Create a team.

        Args:
            name: Team name.
            participants: Rows with ``name``, ``email`` and
                ``enrollment_status`` (2 to 4 rows, distinct emails).

        Returns:
            The stored team as a payload dict.

        Raises:
            CreateTeamUseCaseError: If validation or the insert fails.
        """
        try:
            team = Team.create(name=name, participants=participants)
            created = await self.team_repository.create(team)
        except TeamboardError as e:
            raise CreateTeamUseCaseError(str(e)) from e

        logger.info(
            f"Team {created.id} created",
            extra={
                "team_id": str(created.id),
                "participant_count": len(created.participants),
            },
        )
        return created.to_payload()


class FindTeamByIdUseCase:
    def __init__(self, team_repository: TeamRepositoryPort):
        self.team_repository = team_repository

    async def execute(self, team_id: str) -> TeamPayload:
        """Look up one team.

        Raises:
            FindTeamByIdUseCaseNotFoundError: If no team has this id.
            FindTeamByIdUseCaseError: For an invalid id or a storage failure.
        """
        try:
            valid_id = parse_id(team_id)
            team = await self.team_repository.find_by_id(valid_id)
        except TeamNotFoundError as e:
            raise FindTeamByIdUseCaseNotFoundError(str(e)) from e
        except TeamboardError as e:
            raise FindTeamByIdUseCaseError(str(e)) from e

        return team.to_payload()


class FindManyTeamsUseCase:
    def __init__(self, team_repository: TeamRepositoryPort):
        self.team_repository = team_repository

    async def execute(self) -> list[TeamPayload]:
        try:
            teams = await self.team_repository.list()
        except TeamboardError as e:
            raise FindManyTeamsUseCaseError(str(e)) from e

        return [team.to_payload() for team in teams]


class UpdateTeamUseCase:
    """Partially update a team's name and/or its full participant list.

    Replacement participants carry their existing ids and go through the same
    ``build_team_participants`` path as ``Team.reconstruct``, count first,
    before the repository is touched.
    """

    def __init__(self, team_repository: TeamRepositoryPort):
        self.team_repository = team_repository

    async def execute(
        self,
        team_id: str,
        name: str | None = None,
        participants: Sequence[Mapping[str, Any]] | None = None,
    ) -> TeamPayload:
        """Update a team.

        Raises:
            UpdateTeamUseCaseNotFoundError: If no team has this id.
            UpdateTeamUseCaseError: For invalid input or a storage failure.
        """
        try:
            valid_id = parse_id(team_id)
            valid_name = create_team_name(name) if name is not None else None
            member_records = None
            if participants is not None:
                members = build_team_participants(participants, with_ids=True)
                member_records = members.to_records()

            updated = await self.team_repository.update(
                valid_id, name=valid_name, participants=member_records
            )
        except TeamNotFoundError as e:
            raise UpdateTeamUseCaseNotFoundError(str(e)) from e
        except TeamboardError as e:
            raise UpdateTeamUseCaseError(str(e)) from e

        logger.info(
            f"Team {updated.id} updated",
            extra={
                "team_id": str(updated.id),
                "name_changed": name is not None,
                "participants_replaced": participants is not None,
            },
        )
        return updated.to_payload()


class DeleteTeamUseCase:
    def __init__(self, team_repository: TeamRepositoryPort):
        self.team_repository = team_repository

    async def execute(self, team_id: str) -> None:
        """Delete a team and its participants.

        Raises:
            DeleteTeamUseCaseNotFoundError: If no team has this id.
            DeleteTeamUseCaseError: For an invalid id or a storage failure.
        """
        try:
            valid_id = parse_id(team_id)
            await self.team_repository.delete(valid_id)
        except TeamNotFoundError as e:
            raise DeleteTeamUseCaseNotFoundError(str(e)) from e
        except TeamboardError as e:
            raise DeleteTeamUseCaseError(str(e)) from e

        logger.info(f"Team {valid_id} deleted", extra={"team_id": str(valid_id)})
